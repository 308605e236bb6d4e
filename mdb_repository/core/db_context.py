"""
Database context.

A ``MongoDbContext`` binds a shared ``MongoClientContext`` to one database
and hands out collection handles for document types. Collection names come
from ``resolve_collection_name``; every handle carries the current
process-wide identifier encoding.

Binding options:
    - ``MongoDbContext(client_context, "shop")`` binds eagerly.
    - ``MongoDbContext.from_connection_string(uri, "shop")`` builds a new
      client context, then binds eagerly.
    - ``MongoDbContext.from_database(db)`` uses a handle owned elsewhere.
    - ``MongoDbContext(client_context)`` stays unbound until ``bind()`` is
      called, or a subclass overrides ``database`` to pick the database per
      call (e.g. per request in multi-tenant hosting).

Once bound the database never changes. Subclasses that need per-call
selection must override the ``database`` property instead of rebinding a
shared instance.

This module is part of MDB_REPOSITORY.
"""

import logging
import threading
import time
from typing import Any

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from ..exceptions import ConfigurationError, DatabaseNotBoundError
from ..observability import get_logger as get_contextual_logger
from ..observability import record_operation
from .client_context import MongoClientContext
from .identifiers import get_identifier_encoding
from .naming import resolve_collection_name

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)


class MongoDbContext:
    """
    Hands out collection handles for document types within one database.

    Example:
        context = MongoDbContext(client_context, "shop")
        lines = context.get_collection(OrderLine)                 # orderLines
        tenant_lines = context.get_collection(OrderLine, "acme")  # acme-orderLines
    """

    def __init__(
        self,
        client_context: MongoClientContext | None = None,
        database_name: str | None = None,
        database: AsyncIOMotorDatabase | None = None,
    ) -> None:
        """
        Initialize the context.

        Args:
            client_context: Shared client context (not owned by this context)
            database_name: Database to bind eagerly; requires client_context
            database: Already-resolved database handle; excludes the other two

        Raises:
            ConfigurationError: If arguments are combined incorrectly or the
                database name is invalid
        """
        if database is not None and (client_context is not None or database_name is not None):
            raise ConfigurationError(
                "Pass either a database handle or a client context and database name, not both"
            )
        if database_name is not None and client_context is None:
            raise ConfigurationError(
                "A client context is required to bind a database by name",
                config_key="database_name",
                config_value=database_name,
            )

        self._client_context = client_context
        self._database: AsyncIOMotorDatabase | None = database
        self._bind_lock = threading.Lock()

        if database_name is not None:
            self.bind(database_name)

    @classmethod
    def from_connection_string(
        cls, connection_string: str, database_name: str, **client_options: Any
    ) -> "MongoDbContext":
        """
        Build a fresh client context and bind it eagerly to a database.

        Args:
            connection_string: MongoDB connection URI
            database_name: Database to bind
            **client_options: Forwarded to ``MongoClientContext``

        Raises:
            ClientConnectionError: If the client cannot be constructed
            ConfigurationError: If the database name is rejected; the new
                client is closed before the error propagates
        """
        client_context = MongoClientContext(connection_string, **client_options)
        try:
            return cls(client_context, database_name)
        except ConfigurationError:
            client_context.close()
            raise

    @classmethod
    def from_database(cls, database: AsyncIOMotorDatabase) -> "MongoDbContext":
        """Wrap a database handle owned by another component."""
        return cls(database=database)

    @property
    def client_context(self) -> MongoClientContext | None:
        """Shared client context, or None when built from a database handle."""
        return self._client_context

    @property
    def database(self) -> AsyncIOMotorDatabase:
        """
        The bound database handle.

        Raises:
            DatabaseNotBoundError: If no database has been bound
        """
        if self._database is None:
            raise DatabaseNotBoundError()
        return self._database

    @property
    def is_bound(self) -> bool:
        return self._database is not None

    def bind(self, database_name: str) -> AsyncIOMotorDatabase:
        """
        Bind the context to a database once.

        Binding again to the same database is a no-op.

        Returns:
            The bound database handle

        Raises:
            ConfigurationError: If there is no client context, or the context
                is already bound to a different database
        """
        if self._client_context is None:
            raise ConfigurationError(
                "Cannot bind a database by name without a client context",
                config_key="database_name",
                config_value=database_name,
            )

        start_time = time.time()
        with self._bind_lock:
            if self._database is not None:
                if self._database.name != database_name:
                    raise ConfigurationError(
                        "MongoDbContext is already bound to another database",
                        config_key="database_name",
                        config_value=database_name,
                        context={"bound_database": self._database.name},
                    )
                return self._database

            self._database = self._client_context.get_database(database_name)

        duration_ms = (time.time() - start_time) * 1000
        record_operation("context.bind", duration_ms, success=True)
        contextual_logger.debug(
            "MongoDbContext bound to database", extra={"database_name": database_name}
        )
        return self._database

    def get_collection_name(self, document_type: type, partition_key: str | None = None) -> str:
        """
        Given a document type and partition key, return its collection name.

        Override to change the naming policy for this context.
        """
        return resolve_collection_name(document_type, partition_key)

    def get_collection(
        self, document_type: type, partition_key: str | None = None
    ) -> AsyncIOMotorCollection:
        """
        Return the collection storing ``document_type`` for a partition key.

        Args:
            document_type: The class representing a document
            partition_key: Optional partition (tenant) key

        Raises:
            DatabaseNotBoundError: If no database has been bound
        """
        collection_name = self.get_collection_name(document_type, partition_key)
        database = self.database

        encoding = get_identifier_encoding()
        encoding.seal()
        return database.get_collection(
            collection_name, codec_options=encoding.codec_options(database.codec_options)
        )

    async def drop_collection(self, document_type: type, partition_key: str | None = None) -> None:
        """
        Drop the collection storing ``document_type`` for a partition key.

        Irreversible. There is no confirmation step; callers (tests,
        administrative tooling) guard this themselves.

        Raises:
            DatabaseNotBoundError: If no database has been bound
        """
        collection_name = self.get_collection_name(document_type, partition_key)
        database = self.database

        start_time = time.time()
        success = False
        try:
            await database.drop_collection(collection_name)
            success = True
        finally:
            duration_ms = (time.time() - start_time) * 1000
            record_operation(
                "context.drop_collection",
                duration_ms,
                success=success,
                collection_name=collection_name,
            )

        contextual_logger.warning(
            "Dropped collection",
            extra={
                "database_name": database.name,
                "collection_name": collection_name,
                "partition_key": partition_key,
            },
        )
