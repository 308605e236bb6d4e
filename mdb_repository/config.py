"""
Configuration management for MDB_REPOSITORY.

``ContextConfig`` gathers connection settings and the identifier encoding in
one validated object, built from arguments or environment variables.
``create_db_context`` is the composition root: it applies the configuration
once, at startup, and returns the long-lived database context to pass to
repositories.

Example:
    config = ContextConfig.from_env()
    context = create_db_context(config)
    orders = BaseMongoRepository(context)
"""

import os
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .constants import (
    DEFAULT_MAX_POOL_SIZE,
    DEFAULT_MIN_POOL_SIZE,
    DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
    MIN_SERVER_SELECTION_TIMEOUT_MS,
)
from .core.client_context import MongoClientContext
from .core.db_context import MongoDbContext
from .core.identifiers import parse_uuid_representation, uuid_representation_name
from .exceptions import ConfigurationError

ENV_VARS: dict[str, str] = {
    "mongo_uri": "MONGO_URI",
    "db_name": "DB_NAME",
    "max_pool_size": "MONGO_MAX_POOL_SIZE",
    "min_pool_size": "MONGO_MIN_POOL_SIZE",
    "server_selection_timeout_ms": "MONGO_SERVER_SELECTION_TIMEOUT_MS",
    "uuid_representation": "MONGO_UUID_REPRESENTATION",
}
"""Environment variable read for each configuration field."""


class ContextConfig(BaseModel):
    """
    Validated context configuration.

    Attributes:
        mongo_uri: MongoDB connection URI
        db_name: Database to bind
        max_pool_size: Maximum connection pool size
        min_pool_size: Minimum connection pool size
        server_selection_timeout_ms: Server selection timeout in milliseconds
        uuid_representation: Identifier encoding name (``standard`` by default)
    """

    model_config = ConfigDict(frozen=True)

    mongo_uri: str = Field(..., min_length=1, description="MongoDB connection URI")
    db_name: str = Field(..., min_length=1, description="Database name")
    max_pool_size: int = Field(DEFAULT_MAX_POOL_SIZE, ge=1)
    min_pool_size: int = Field(DEFAULT_MIN_POOL_SIZE, ge=0)
    server_selection_timeout_ms: int = Field(
        DEFAULT_SERVER_SELECTION_TIMEOUT_MS, ge=MIN_SERVER_SELECTION_TIMEOUT_MS
    )
    uuid_representation: str = "standard"

    @field_validator("uuid_representation", mode="before")
    @classmethod
    def _normalize_uuid_representation(cls, value: Any) -> str:
        return uuid_representation_name(parse_uuid_representation(value))

    @model_validator(mode="after")
    def _check_pool_sizes(self) -> "ContextConfig":
        if self.min_pool_size > self.max_pool_size:
            raise ValueError(
                f"min_pool_size ({self.min_pool_size}) cannot be greater than "
                f"max_pool_size ({self.max_pool_size})"
            )
        return self

    @classmethod
    def create(cls, **values: Any) -> "ContextConfig":
        """
        Validate values into a config.

        Raises:
            ConfigurationError: If any value is missing or invalid
        """
        try:
            return cls(**values)
        except ValidationError as e:
            first = e.errors()[0]
            config_key = ".".join(str(part) for part in first.get("loc", ())) or None
            raise ConfigurationError(
                f"Invalid configuration: {first.get('msg')}",
                config_key=config_key,
                context={"error_count": e.error_count()},
            ) from e

    @classmethod
    def from_env(cls, **overrides: Any) -> "ContextConfig":
        """
        Build a config from environment variables; explicit values win.

        Raises:
            ConfigurationError: If any value is missing or invalid
        """
        values: dict[str, Any] = {}
        for field_name, env_var in ENV_VARS.items():
            env_value = os.getenv(env_var)
            if env_value:
                values[field_name] = env_value
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.create(**values)


def create_db_context(config: ContextConfig) -> MongoDbContext:
    """
    Build the long-lived database context for a configuration.

    Call once during application startup, before any traffic, and pass the
    result to the repositories that need it.
    """
    client_context = MongoClientContext.from_config(config)
    return MongoDbContext(client_context, config.db_name)
