"""
Core context components.

Client context, database context, identifier encoding and collection
name resolution.
"""

from .client_context import MongoClientContext
from .db_context import MongoDbContext
from .identifiers import (
    IdentifierEncoding,
    get_identifier_encoding,
    parse_uuid_representation,
)
from .naming import (
    CollectionNameRegistry,
    camelize,
    collection_name,
    get_declared_collection_name,
    get_name_registry,
    pluralize,
    register_collection_name,
    resolve_collection_name,
)

__all__ = [
    "MongoClientContext",
    "MongoDbContext",
    "IdentifierEncoding",
    "get_identifier_encoding",
    "parse_uuid_representation",
    "CollectionNameRegistry",
    "collection_name",
    "register_collection_name",
    "get_declared_collection_name",
    "get_name_registry",
    "resolve_collection_name",
    "pluralize",
    "camelize",
]
