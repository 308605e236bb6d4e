"""
Documents and the repository contract.

Documents are dataclasses with an ``id`` key stored as ``_id``. The key type
is a type parameter and only has to be hashable (``ObjectId``, ``UUID``,
``str``, ``int``...).

Repositories are generic over the key type and take the document type per
call, so one long-lived repository serves every document type of a database.
"""

import dataclasses
import uuid
from abc import ABC, abstractmethod
from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

TKey = TypeVar("TKey", bound=Hashable)


@dataclass
class Document(Generic[TKey]):
    """
    Base class for stored documents.

    When ``id`` is left as None MongoDB assigns an ``ObjectId`` on insert.
    ``version`` is the schema version of the stored shape.

    Example:
        @collection_name("custom_orders")
        @dataclass
        class Order(Document[ObjectId]):
            customer: str = ""
            total: float = 0.0
    """

    id: TKey | None = None
    added_at: datetime | None = None
    version: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Convert the document to a MongoDB document, skipping None values."""
        data: dict[str, Any] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            data["_id" if f.name == "id" else f.name] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None):
        """Create a document from a MongoDB document, ignoring unknown fields."""
        if data is None:
            return None

        data = dict(data)
        if "_id" in data:
            data["id"] = data.pop("_id")

        field_names = {f.name for f in dataclasses.fields(cls) if f.init}
        return cls(**{k: v for k, v in data.items() if k in field_names})


@dataclass
class UuidDocument(Document[uuid.UUID]):
    """Document keyed by a client-generated ``uuid4``."""

    id: uuid.UUID | None = field(default_factory=uuid.uuid4)


@dataclass
class PartitionedDocument(Document[TKey]):
    """
    Document that knows its partition.

    Repository writes use ``partition_key`` when no partition key is passed
    explicitly. The key is stored with the document as well.
    """

    partition_key: str | None = None


TDocument = TypeVar("TDocument", bound=Document)


def resolve_partition_key(document: Any, partition_key: str | None = None) -> str | None:
    """
    Explicit partition key, or the one carried by a ``PartitionedDocument``.

    An empty key counts as absent.
    """
    if partition_key:
        return partition_key
    if isinstance(document, PartitionedDocument):
        return document.partition_key
    return None


class Repository(ABC, Generic[TKey]):
    """
    Repository contract for documents keyed by ``TKey``.

    Every operation resolves its collection on each call from the document
    type and the optional partition key.
    """

    @abstractmethod
    async def get_by_id(
        self, document_type: type[TDocument], id: TKey, partition_key: str | None = None
    ) -> TDocument | None:
        """Get a single document by key, or None."""

    @abstractmethod
    async def get_one(
        self,
        document_type: type[TDocument],
        filter: dict[str, Any],
        partition_key: str | None = None,
    ) -> TDocument | None:
        """Get the first document matching a filter, or None."""

    @abstractmethod
    async def get_all(
        self,
        document_type: type[TDocument],
        filter: dict[str, Any] | None = None,
        partition_key: str | None = None,
        skip: int = 0,
        limit: int = 0,
        sort: list[tuple] | None = None,
    ) -> list[TDocument]:
        """Get all documents matching a filter (``limit=0`` means no limit)."""

    @abstractmethod
    async def any(
        self,
        document_type: type[TDocument],
        filter: dict[str, Any],
        partition_key: str | None = None,
    ) -> bool:
        """True if at least one document matches the filter."""

    @abstractmethod
    async def count(
        self,
        document_type: type[TDocument],
        filter: dict[str, Any] | None = None,
        partition_key: str | None = None,
    ) -> int:
        """Count documents matching a filter."""

    @abstractmethod
    async def add_one(self, document: Document, partition_key: str | None = None) -> TKey:
        """Insert a document and return its key."""

    @abstractmethod
    async def add_many(
        self, documents: Iterable[Document], partition_key: str | None = None
    ) -> list[TKey]:
        """Insert documents and return their keys in input order."""

    @abstractmethod
    async def update_one(self, document: Document, partition_key: str | None = None) -> bool:
        """Replace a stored document by key. True if one was modified."""

    @abstractmethod
    async def update_fields(
        self,
        document_type: type[TDocument],
        id: TKey,
        fields: dict[str, Any],
        partition_key: str | None = None,
    ) -> bool:
        """Set fields of a stored document. True if one was modified."""

    @abstractmethod
    async def delete_one(self, document: Document, partition_key: str | None = None) -> bool:
        """Delete a stored document. True if one was deleted."""

    @abstractmethod
    async def delete_by_id(
        self, document_type: type[TDocument], id: TKey, partition_key: str | None = None
    ) -> bool:
        """Delete a document by key. True if one was deleted."""

    @abstractmethod
    async def delete_many(
        self,
        document_type: type[TDocument],
        filter: dict[str, Any],
        partition_key: str | None = None,
    ) -> int:
        """Delete documents matching a filter and return the count."""

    @abstractmethod
    async def delete_documents(
        self, documents: Iterable[Document], partition_key: str | None = None
    ) -> int:
        """Delete the given documents by key and return the count."""
