"""
Shared MongoDB client context.

A ``MongoClientContext`` owns exactly one ``AsyncIOMotorClient`` and is meant
to be constructed once per process (or per cluster) and shared by every
``MongoDbContext`` that talks to that cluster. Database contexts never build
their own client.

Construction validates the connection string, then resets the process-wide
identifier encoding to the standard UUID representation (BSON binary
subtype 4) and creates the client. A rejected connection string leaves the
encoding untouched.

Failure modes:
    - An empty or malformed connection string fails eagerly, at construction,
      with ``ClientConnectionError``.
    - An unreachable server fails lazily: motor does not contact the server
      until the first operation, and that error is the driver's own.

This module is part of MDB_REPOSITORY.
"""

import logging
import time
from typing import TYPE_CHECKING

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConfigurationError as PyMongoConfigurationError
from pymongo.errors import (
    ConnectionFailure,
    InvalidName,
    InvalidOperation,
    InvalidURI,
    OperationFailure,
    ServerSelectionTimeoutError,
)
from pymongo.uri_parser import parse_uri

from ..constants import (
    DEFAULT_APP_NAME,
    DEFAULT_MAX_IDLE_TIME_MS,
    DEFAULT_MAX_POOL_SIZE,
    DEFAULT_MIN_POOL_SIZE,
    DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
)
from ..exceptions import ClientConnectionError, ConfigurationError, mask_mongo_uri
from ..observability import get_logger as get_contextual_logger
from ..observability import record_operation
from .identifiers import get_identifier_encoding, uuid_representation_name

if TYPE_CHECKING:
    from ..config import ContextConfig

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)


class MongoClientContext:
    """
    Owns the MongoDB client shared by database contexts.

    Example:
        client_context = MongoClientContext("mongodb://localhost:27017")
        orders = MongoDbContext(client_context, "shop")
        audit = MongoDbContext(client_context, "audit")
    """

    def __init__(
        self,
        connection_string: str,
        uuid_representation: int | str | None = None,
        max_pool_size: int = DEFAULT_MAX_POOL_SIZE,
        min_pool_size: int = DEFAULT_MIN_POOL_SIZE,
        server_selection_timeout_ms: int = DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
        app_name: str = DEFAULT_APP_NAME,
    ) -> None:
        """
        Validate the connection string, initialize the identifier encoding
        and create the client.

        Args:
            connection_string: MongoDB connection URI
            uuid_representation: Optional identifier encoding to apply instead
                of the default (see ``set_identifier_encoding``)
            max_pool_size: Maximum connection pool size
            min_pool_size: Minimum connection pool size
            server_selection_timeout_ms: Server selection timeout in milliseconds
            app_name: Application name sent to the server

        Raises:
            ClientConnectionError: If the connection string is empty or
                malformed, or the driver rejects the client options
            ConfigurationError: If ``uuid_representation`` is invalid
        """
        start_time = time.time()
        self._closed = False

        if not isinstance(connection_string, str) or not connection_string.strip():
            record_operation("client_context.create", 0.0, success=False)
            raise ClientConnectionError(
                "A non-empty MongoDB connection string is required",
                context={"received_type": type(connection_string).__name__},
            )

        self.connection_string = connection_string
        masked_uri = mask_mongo_uri(connection_string)

        # The driver treats a scheme-less string as a host name and only warns
        # about bad option values, so parse strictly up front.
        try:
            parse_uri(connection_string, warn=False)
        except (InvalidURI, PyMongoConfigurationError, ValueError) as e:
            duration_ms = (time.time() - start_time) * 1000
            record_operation("client_context.create", duration_ms, success=False)
            contextual_logger.error(
                "Malformed MongoDB connection string",
                extra={
                    "mongo_uri": masked_uri,
                    "error_type": type(e).__name__,
                    "error": str(e),
                },
            )
            raise ClientConnectionError(
                f"Malformed MongoDB connection string: {e}",
                mongo_uri=connection_string,
                context={"error_type": type(e).__name__},
            ) from e

        self._initialize_identifier_encoding()
        if uuid_representation is not None:
            self.set_identifier_encoding(uuid_representation)

        try:
            self._client = AsyncIOMotorClient(
                connection_string,
                serverSelectionTimeoutMS=server_selection_timeout_ms,
                appname=app_name,
                maxPoolSize=max_pool_size,
                minPoolSize=min_pool_size,
                maxIdleTimeMS=DEFAULT_MAX_IDLE_TIME_MS,
                uuidRepresentation=uuid_representation_name(
                    get_identifier_encoding().uuid_representation
                ),
                retryWrites=True,
                retryReads=True,
            )
        except (PyMongoConfigurationError, TypeError, ValueError) as e:
            duration_ms = (time.time() - start_time) * 1000
            record_operation("client_context.create", duration_ms, success=False)
            contextual_logger.error(
                "Failed to create MongoDB client",
                extra={
                    "mongo_uri": masked_uri,
                    "error_type": type(e).__name__,
                    "error": str(e),
                },
            )
            raise ClientConnectionError(
                f"Failed to create MongoDB client: {e}",
                mongo_uri=connection_string,
                context={"error_type": type(e).__name__},
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        record_operation("client_context.create", duration_ms, success=True)
        contextual_logger.info(
            "MongoDB client created",
            extra={
                "mongo_uri": masked_uri,
                "pool_size": f"{min_pool_size}-{max_pool_size}",
                "duration_ms": round(duration_ms, 2),
            },
        )

    @classmethod
    def from_config(cls, config: "ContextConfig") -> "MongoClientContext":
        """Build a client context from a validated ``ContextConfig``."""
        return cls(
            config.mongo_uri,
            uuid_representation=config.uuid_representation,
            max_pool_size=config.max_pool_size,
            min_pool_size=config.min_pool_size,
            server_selection_timeout_ms=config.server_selection_timeout_ms,
        )

    def _initialize_identifier_encoding(self) -> None:
        """
        Reset the process-wide UUID representation to the standard one.

        Override this method to start from a different default.
        """
        get_identifier_encoding().apply_default()

    def set_identifier_encoding(self, mode: int | str) -> None:
        """
        Set the UUID representation used by every collection in the process.

        Call during startup, before any collection is used. The new encoding
        applies to collections resolved afterwards on every context,
        including contexts built before this call. Stored data is not
        re-encoded.

        Args:
            mode: ``bson.binary.UuidRepresentation`` value or URI option name

        Raises:
            ConfigurationError: If the mode is unknown or traffic already began
        """
        get_identifier_encoding().set(mode)

    @property
    def client(self) -> AsyncIOMotorClient:
        """
        The shared motor client.

        The client carries the identifier encoding in force when it was
        created. Use ``get_database`` or ``MongoDbContext.get_collection`` for
        handles that follow later ``set_identifier_encoding`` calls.
        """
        return self._client

    def get_database(self, database_name: str) -> AsyncIOMotorDatabase:
        """
        Get a database handle by name. No network round-trip is made.

        The handle carries the identifier encoding in force at this call.

        Raises:
            ConfigurationError: If the name is empty or rejected by the driver
        """
        if not isinstance(database_name, str) or not database_name.strip():
            raise ConfigurationError(
                "A non-empty database name is required",
                config_key="database_name",
                config_value=database_name,
            )
        try:
            return self._client.get_database(
                database_name,
                codec_options=get_identifier_encoding().codec_options(
                    self._client.codec_options
                ),
            )
        except InvalidName as e:
            raise ConfigurationError(
                f"Invalid database name: {e}",
                config_key="database_name",
                config_value=database_name,
            ) from e

    async def verify(self) -> bool:
        """
        Ping the server.

        Returns:
            True if the server answered, False otherwise
        """
        try:
            await self._client.admin.command("ping")
            logger.debug("MongoDB client verification successful")
            return True
        except (
            ConnectionFailure,
            ServerSelectionTimeoutError,
            OperationFailure,
            InvalidOperation,
        ) as e:
            logger.warning(f"MongoDB client verification failed: {e}")
            return False

    def close(self) -> None:
        """Close the client. Idempotent."""
        if self._closed:
            return
        self._client.close()
        self._closed = True
        logger.info("MongoDB client closed")

    @property
    def closed(self) -> bool:
        return self._closed
