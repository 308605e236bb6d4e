"""
MDB_REPOSITORY - Generic MongoDB Repository

Maps document types to MongoDB collections, partitions them per tenant,
and shares one client and database context across repositories.
"""

from .config import ContextConfig, create_db_context
from .core import (
    MongoClientContext,
    MongoDbContext,
    collection_name,
    get_identifier_encoding,
    register_collection_name,
    resolve_collection_name,
)
from .exceptions import (
    ClientConnectionError,
    ConfigurationError,
    DatabaseNotBoundError,
    MongoRepositoryError,
)
from .repositories import (
    BaseMongoRepository,
    Document,
    PartitionedDocument,
    Repository,
    UuidDocument,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "MongoClientContext",
    "MongoDbContext",
    "collection_name",
    "register_collection_name",
    "resolve_collection_name",
    "get_identifier_encoding",
    # Configuration
    "ContextConfig",
    "create_db_context",
    # Repositories
    "Repository",
    "BaseMongoRepository",
    "Document",
    "UuidDocument",
    "PartitionedDocument",
    # Errors
    "MongoRepositoryError",
    "ClientConnectionError",
    "DatabaseNotBoundError",
    "ConfigurationError",
]
