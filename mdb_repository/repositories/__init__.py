"""
MDB Repository Pattern

Documents, the repository contract and its MongoDB implementation.

Usage:
    from mdb_repository.repositories import BaseMongoRepository, Document

    repo = BaseMongoRepository(context)
    order_id = await repo.add_one(Order(customer="acme"))
"""

from .base import (
    Document,
    PartitionedDocument,
    Repository,
    UuidDocument,
    resolve_partition_key,
)
from .mongo import BaseMongoRepository

__all__ = [
    "Document",
    "UuidDocument",
    "PartitionedDocument",
    "Repository",
    "BaseMongoRepository",
    "resolve_partition_key",
]
