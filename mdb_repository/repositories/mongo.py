"""
MongoDB Repository Implementation

Implements the Repository contract on top of a ``MongoDbContext``. Every
operation asks the context for the collection of the document type (and
partition key) and delegates to the motor collection. Nothing about the
collection is cached on the repository.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from ..core.db_context import MongoDbContext
from ..observability import timed_operation
from .base import Document, Repository, TDocument, TKey, resolve_partition_key

logger = logging.getLogger(__name__)


class BaseMongoRepository(Repository[TKey]):
    """
    MongoDB repository keyed by ``TKey``.

    Build one per database at startup and share it; it is safe to use from
    concurrent tasks.

    Example:
        context = MongoDbContext(client_context, "shop")
        repo: BaseMongoRepository[ObjectId] = BaseMongoRepository(context)

        line_id = await repo.add_one(OrderLine(sku="A-1", quantity=2))
        line = await repo.get_by_id(OrderLine, line_id)
        acme_lines = await repo.get_all(OrderLine, partition_key="acme")
    """

    def __init__(self, context: MongoDbContext):
        """
        Initialize the repository.

        Args:
            context: Database context shared by this repository
        """
        self._context = context

    @classmethod
    def from_connection_string(
        cls, connection_string: str, database_name: str, **client_options: Any
    ) -> "BaseMongoRepository[TKey]":
        """Build a repository with its own client and database context."""
        return cls(
            MongoDbContext.from_connection_string(
                connection_string, database_name, **client_options
            )
        )

    @property
    def context(self) -> MongoDbContext:
        return self._context

    def get_collection(self, document_type: type, partition_key: str | None = None):
        """Collection handle for a document type; resolved on every call."""
        return self._context.get_collection(document_type, partition_key)

    async def get_by_id(
        self, document_type: type[TDocument], id: TKey, partition_key: str | None = None
    ) -> TDocument | None:
        doc = await self.get_collection(document_type, partition_key).find_one({"_id": id})
        return document_type.from_dict(doc)

    async def get_one(
        self,
        document_type: type[TDocument],
        filter: dict[str, Any],
        partition_key: str | None = None,
    ) -> TDocument | None:
        doc = await self.get_collection(document_type, partition_key).find_one(filter)
        return document_type.from_dict(doc)

    async def get_all(
        self,
        document_type: type[TDocument],
        filter: dict[str, Any] | None = None,
        partition_key: str | None = None,
        skip: int = 0,
        limit: int = 0,
        sort: list[tuple] | None = None,
    ) -> list[TDocument]:
        cursor = self.get_collection(document_type, partition_key).find(filter or {})

        if skip > 0:
            cursor = cursor.skip(skip)
        if limit > 0:
            cursor = cursor.limit(limit)
        if sort:
            cursor = cursor.sort(sort)

        docs = await cursor.to_list(length=limit or None)
        return [document_type.from_dict(doc) for doc in docs]

    async def any(
        self,
        document_type: type[TDocument],
        filter: dict[str, Any],
        partition_key: str | None = None,
    ) -> bool:
        doc = await self.get_collection(document_type, partition_key).find_one(
            filter, projection={"_id": 1}
        )
        return doc is not None

    async def count(
        self,
        document_type: type[TDocument],
        filter: dict[str, Any] | None = None,
        partition_key: str | None = None,
    ) -> int:
        return await self.get_collection(document_type, partition_key).count_documents(
            filter or {}
        )

    @timed_operation("repository.add_one")
    async def add_one(self, document: Document, partition_key: str | None = None) -> TKey:
        partition_key = resolve_partition_key(document, partition_key)
        if document.added_at is None:
            document.added_at = datetime.now(timezone.utc)

        result = await self.get_collection(type(document), partition_key).insert_one(
            document.to_dict()
        )
        document.id = result.inserted_id

        logger.debug(f"Added {type(document).__name__} with id={document.id}")
        return document.id

    @timed_operation("repository.add_many")
    async def add_many(
        self, documents: Iterable[Document], partition_key: str | None = None
    ) -> list[TKey]:
        """Insert documents, one ``insert_many`` per target collection."""
        documents = list(documents)
        if not documents:
            return []

        now = datetime.now(timezone.utc)
        groups: dict[tuple[type, str | None], list[Document]] = {}
        for document in documents:
            if document.added_at is None:
                document.added_at = now
            key = (type(document), resolve_partition_key(document, partition_key))
            groups.setdefault(key, []).append(document)

        for (document_type, group_partition), group in groups.items():
            result = await self.get_collection(document_type, group_partition).insert_many(
                [document.to_dict() for document in group]
            )
            for document, inserted_id in zip(group, result.inserted_ids):
                document.id = inserted_id

        logger.debug(f"Added {len(documents)} documents to {len(groups)} collection(s)")
        return [document.id for document in documents]

    @timed_operation("repository.update_one")
    async def update_one(self, document: Document, partition_key: str | None = None) -> bool:
        if document.id is None:
            raise ValueError(f"Cannot update a {type(document).__name__} without an id")

        partition_key = resolve_partition_key(document, partition_key)
        result = await self.get_collection(type(document), partition_key).replace_one(
            {"_id": document.id}, document.to_dict()
        )
        return result.modified_count > 0

    @timed_operation("repository.update_fields")
    async def update_fields(
        self,
        document_type: type[TDocument],
        id: TKey,
        fields: dict[str, Any],
        partition_key: str | None = None,
    ) -> bool:
        if not fields:
            return False

        result = await self.get_collection(document_type, partition_key).update_one(
            {"_id": id}, {"$set": fields}
        )
        return result.modified_count > 0

    @timed_operation("repository.delete_one")
    async def delete_one(self, document: Document, partition_key: str | None = None) -> bool:
        if document.id is None:
            return False

        partition_key = resolve_partition_key(document, partition_key)
        result = await self.get_collection(type(document), partition_key).delete_one(
            {"_id": document.id}
        )
        return result.deleted_count > 0

    @timed_operation("repository.delete_by_id")
    async def delete_by_id(
        self, document_type: type[TDocument], id: TKey, partition_key: str | None = None
    ) -> bool:
        result = await self.get_collection(document_type, partition_key).delete_one({"_id": id})
        return result.deleted_count > 0

    @timed_operation("repository.delete_many")
    async def delete_many(
        self,
        document_type: type[TDocument],
        filter: dict[str, Any],
        partition_key: str | None = None,
    ) -> int:
        result = await self.get_collection(document_type, partition_key).delete_many(filter)
        return result.deleted_count

    @timed_operation("repository.delete_documents")
    async def delete_documents(
        self, documents: Iterable[Document], partition_key: str | None = None
    ) -> int:
        """Delete documents by key, one ``delete_many`` per target collection."""
        groups: dict[tuple[type, str | None], list[Any]] = {}
        for document in documents:
            if document.id is None:
                continue
            key = (type(document), resolve_partition_key(document, partition_key))
            groups.setdefault(key, []).append(document.id)

        deleted = 0
        for (document_type, group_partition), ids in groups.items():
            result = await self.get_collection(document_type, group_partition).delete_many(
                {"_id": {"$in": ids}}
            )
            deleted += result.deleted_count
        return deleted

    async def drop_collection(
        self, document_type: type, partition_key: str | None = None
    ) -> None:
        """Drop the collection of a document type. Irreversible."""
        await self._context.drop_collection(document_type, partition_key)
