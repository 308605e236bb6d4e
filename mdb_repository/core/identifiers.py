"""
Process-wide identifier encoding.

The BSON representation of ``uuid.UUID`` values is one setting shared by every
client, database and collection in the process. It is set once at startup,
before any traffic. The first collection handed out seals the setting; later
writes raise ``ConfigurationError`` so that one database never ends up with
mixed UUID encodings. Data already written is never re-encoded.

This module is part of MDB_REPOSITORY.
"""

import logging
import threading

from bson.codec_options import DEFAULT_CODEC_OPTIONS, CodecOptions

from ..constants import DEFAULT_UUID_REPRESENTATION, UUID_REPRESENTATION_NAMES
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def parse_uuid_representation(mode: int | str) -> int:
    """
    Normalize an identifier encoding mode.

    Args:
        mode: A ``bson.binary.UuidRepresentation`` value or its URI option name
              (``standard``, ``pythonLegacy``, ``javaLegacy``, ``csharpLegacy``,
              ``unspecified``).

    Returns:
        The ``UuidRepresentation`` integer

    Raises:
        ConfigurationError: If the mode is not a known representation
    """
    if isinstance(mode, str):
        for name, value in UUID_REPRESENTATION_NAMES.items():
            if name.lower() == mode.strip().lower():
                return value
    elif isinstance(mode, int) and not isinstance(mode, bool):
        if mode in UUID_REPRESENTATION_NAMES.values():
            return mode

    raise ConfigurationError(
        f"Unknown UUID representation: {mode!r}",
        config_key="uuid_representation",
        config_value=mode,
        context={"allowed": ", ".join(UUID_REPRESENTATION_NAMES)},
    )


def uuid_representation_name(value: int) -> str:
    """Return the URI option name of a ``UuidRepresentation`` value."""
    for name, known in UUID_REPRESENTATION_NAMES.items():
        if known == value:
            return name
    return str(value)


class IdentifierEncoding:
    """
    Holds the UUID representation used by all collections in the process.

    Usage:
        encoding = get_identifier_encoding()
        encoding.set("javaLegacy")          # during startup only
        options = encoding.codec_options(db.codec_options)
    """

    def __init__(self, uuid_representation: int = DEFAULT_UUID_REPRESENTATION) -> None:
        self._uuid_representation = uuid_representation
        self._sealed = False
        self._lock = threading.Lock()

    @property
    def uuid_representation(self) -> int:
        """Current ``UuidRepresentation`` value."""
        return self._uuid_representation

    @property
    def sealed(self) -> bool:
        """True once traffic has begun and the encoding can no longer change."""
        return self._sealed

    def set(self, mode: int | str) -> int:
        """
        Overwrite the process-wide UUID representation.

        Applies to every collection resolved afterwards, including those of
        contexts constructed earlier.

        Args:
            mode: Representation value or URI option name

        Returns:
            The applied ``UuidRepresentation`` integer

        Raises:
            ConfigurationError: If the mode is unknown or traffic already began
        """
        value = parse_uuid_representation(mode)
        with self._lock:
            if self._sealed and value != self._uuid_representation:
                raise ConfigurationError(
                    "Identifier encoding cannot change after collections have been "
                    "handed out; set it during startup",
                    config_key="uuid_representation",
                    config_value=uuid_representation_name(value),
                    context={"current": uuid_representation_name(self._uuid_representation)},
                )
            self._uuid_representation = value
        logger.info(
            f"Identifier encoding set to uuidRepresentation={uuid_representation_name(value)}"
        )
        return value

    def apply_default(self) -> None:
        """Reset to the default representation unless traffic has begun."""
        with self._lock:
            if self._sealed:
                logger.debug(
                    "Identifier encoding already in use "
                    f"(uuidRepresentation={uuid_representation_name(self._uuid_representation)}); "
                    "keeping it"
                )
                return
            self._uuid_representation = DEFAULT_UUID_REPRESENTATION

    def seal(self) -> None:
        """Mark the start of traffic. Idempotent."""
        if not self._sealed:
            with self._lock:
                self._sealed = True

    def codec_options(self, base: CodecOptions | None = None) -> CodecOptions:
        """Return ``base`` codec options carrying the current UUID representation."""
        base = base if isinstance(base, CodecOptions) else DEFAULT_CODEC_OPTIONS
        return base.with_options(uuid_representation=self._uuid_representation)

    def reset(self) -> None:
        """Restore the default and unseal (useful for testing)."""
        with self._lock:
            self._uuid_representation = DEFAULT_UUID_REPRESENTATION
            self._sealed = False


_identifier_encoding = IdentifierEncoding()


def get_identifier_encoding() -> IdentifierEncoding:
    """Get the process-wide identifier encoding."""
    return _identifier_encoding
