"""
Custom exceptions for MDB_REPOSITORY.

These exceptions surface the unresolved dependency (bad connection string,
missing database binding, invalid configuration) instead of a generic I/O
error. Errors raised by the MongoDB driver itself are passed through unchanged.
"""

from typing import Any, Dict, Optional
from urllib.parse import urlsplit, urlunsplit


def mask_mongo_uri(mongo_uri: Optional[str]) -> Optional[str]:
    """Hide the password part of a MongoDB URI so it can be logged."""
    if not mongo_uri or not isinstance(mongo_uri, str):
        return mongo_uri
    try:
        parts = urlsplit(mongo_uri)
    except ValueError:
        return mongo_uri
    if parts.password is None:
        return mongo_uri
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


class MongoRepositoryError(RuntimeError):
    """
    Base exception for MDB_REPOSITORY errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (database_name,
                 collection_name, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class ClientConnectionError(MongoRepositoryError):
    """
    Raised when a MongoDB client cannot be constructed.

    Covers an empty or malformed connection string and any failure of the
    driver while building the client. Unreachable servers are not detected
    here: motor connects lazily, so those surface as driver errors on the
    first operation.

    Attributes:
        message: Error message
        mongo_uri: Connection string with credentials masked (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        mongo_uri: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        masked = mask_mongo_uri(mongo_uri)
        if masked:
            context["mongo_uri"] = masked
        super().__init__(message, context=context)
        self.mongo_uri = masked


class DatabaseNotBoundError(MongoRepositoryError):
    """
    Raised when a collection is requested from a context with no database.

    This is a programming error: the context was built without a database
    name or handle and was never bound.

    Attributes:
        message: Error message
        database_name: Name of the database the caller expected (if known)
        context: Additional context information
    """

    def __init__(
        self,
        message: str = "MongoDbContext is not bound to a database",
        database_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if database_name:
            context["database_name"] = database_name
        super().__init__(message, context=context)
        self.database_name = database_name


class ConfigurationError(MongoRepositoryError):
    """
    Raised when configuration is invalid, missing or written too late.

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value
