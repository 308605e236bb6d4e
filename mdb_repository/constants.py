"""
Constants for MDB_REPOSITORY.

This module contains shared constants used across the codebase to avoid
magic numbers and improve maintainability.
"""

from typing import Final

from bson.binary import UuidRepresentation

# ============================================================================
# CONNECTION CONSTANTS
# ============================================================================

DEFAULT_MAX_POOL_SIZE: Final[int] = 50
"""Default maximum MongoDB connection pool size."""

DEFAULT_MIN_POOL_SIZE: Final[int] = 10
"""Default minimum MongoDB connection pool size."""

DEFAULT_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection timeout in milliseconds."""

MIN_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 1000
"""Lowest accepted server selection timeout in milliseconds."""

DEFAULT_MAX_IDLE_TIME_MS: Final[int] = 45000
"""Default maximum idle time before closing connections (milliseconds)."""

DEFAULT_APP_NAME: Final[str] = "MDB_REPOSITORY"
"""Application name reported to the server in the client handshake."""

# ============================================================================
# IDENTIFIER ENCODING CONSTANTS
# ============================================================================

DEFAULT_UUID_REPRESENTATION: Final[int] = UuidRepresentation.STANDARD
"""Default UUID encoding: BSON binary subtype 4, never a legacy subtype 3 layout."""

UUID_REPRESENTATION_NAMES: Final[dict[str, int]] = {
    "unspecified": UuidRepresentation.UNSPECIFIED,
    "standard": UuidRepresentation.STANDARD,
    "pythonLegacy": UuidRepresentation.PYTHON_LEGACY,
    "javaLegacy": UuidRepresentation.JAVA_LEGACY,
    "csharpLegacy": UuidRepresentation.CSHARP_LEGACY,
}
"""UUID representation names, spelled as in the ``uuidRepresentation`` URI option."""

# ============================================================================
# COLLECTION NAMING CONSTANTS
# ============================================================================

PARTITION_KEY_SEPARATOR: Final[str] = "-"
"""Separator between a partition key and the collection name."""

COLLECTION_NAME_ATTRIBUTE: Final[str] = "__collection_name__"
"""Class attribute holding a type-level collection name override."""
