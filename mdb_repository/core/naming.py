"""
Collection name resolution.

Maps a document type and an optional partition key to the name of the
MongoDB collection that stores it:

1. A type-level override (``__collection_name__``, usually set with the
   ``@collection_name`` decorator) is used verbatim.
2. Otherwise a name registered with ``register_collection_name`` is used.
   This is meant for types that cannot be decorated.
3. Otherwise the type name is pluralized and camel-cased
   (``OrderLine`` -> ``orderLines``).
4. A non-empty partition key is prepended: ``tenantA-orderLines``.

Resolution is pure and deterministic. Nothing is cached, so renaming or
re-decorating a type takes effect immediately.

Pluralization is a naive suffix heuristic with no irregular nouns
(``Person`` -> ``persons``). Changing it would silently rename existing
collections, so it stays as it is.

This module is part of MDB_REPOSITORY.
"""

import logging
import re
import threading
from collections.abc import Callable
from typing import TypeVar

from ..constants import COLLECTION_NAME_ATTRIBUTE, PARTITION_KEY_SEPARATOR
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=type)

_VOWELS = frozenset("aeiou")
_WORD_SEPARATORS = re.compile(r"[\s_\-]+")


def _validate_override(name: object, source: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError(
            f"Collection name override must be a non-empty string ({source})",
            config_key=COLLECTION_NAME_ATTRIBUTE,
            config_value=name,
        )
    return name


def collection_name(name: str) -> Callable[[T], T]:
    """
    Class decorator declaring the collection a document type is stored in.

    Example:
        @collection_name("custom_orders")
        @dataclass
        class Order(Document):
            total: float = 0.0
    """
    _validate_override(name, "decorator")

    def decorator(cls: T) -> T:
        setattr(cls, COLLECTION_NAME_ATTRIBUTE, name)
        return cls

    return decorator


class CollectionNameRegistry:
    """Table of collection name overrides keyed by document type."""

    def __init__(self) -> None:
        self._names: dict[type, str] = {}
        self._lock = threading.Lock()

    def register(self, document_type: type, name: str) -> None:
        type_name = getattr(document_type, "__name__", document_type)
        _validate_override(name, f"registry entry for {type_name}")
        with self._lock:
            self._names[document_type] = name

    def unregister(self, document_type: type) -> None:
        with self._lock:
            self._names.pop(document_type, None)

    def get(self, document_type: type) -> str | None:
        return self._names.get(document_type)

    def clear(self) -> None:
        with self._lock:
            self._names.clear()


_registry = CollectionNameRegistry()


def get_name_registry() -> CollectionNameRegistry:
    """Get the process-wide collection name registry."""
    return _registry


def register_collection_name(document_type: type, name: str) -> None:
    """Register a collection name override for a type you cannot decorate."""
    _registry.register(document_type, name)


def get_declared_collection_name(document_type: type) -> str | None:
    """
    Return the explicit collection name of a document type, if any.

    The type-level declaration wins over a registry entry. When both exist
    and differ a warning is logged.
    """
    declared = getattr(document_type, COLLECTION_NAME_ATTRIBUTE, None)
    registered = _registry.get(document_type)

    if declared is not None:
        declared = _validate_override(
            declared, f"{document_type.__name__}.{COLLECTION_NAME_ATTRIBUTE}"
        )
        if registered is not None and registered != declared:
            logger.warning(
                f"Conflicting collection names for {document_type.__name__}: "
                f"declared '{declared}', registered '{registered}'. Using '{declared}'."
            )
        return declared

    return registered


def pluralize(word: str) -> str:
    """
    Naively pluralize an English word using suffix rules only.

    ``Address`` -> ``Addresses``, ``Category`` -> ``Categories``,
    ``Day`` -> ``Days``, ``OrderLine`` -> ``OrderLines``.
    """
    if not word:
        return word

    lower = word.lower()
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    if lower.endswith("y") and len(word) > 1 and lower[-2] not in _VOWELS:
        return word[:-1] + "ies"
    return word + "s"


def camelize(word: str) -> str:
    """
    Join words into a lowercase-leading compact form.

    ``OrderLines`` -> ``orderLines``, ``order_lines`` -> ``orderLines``.
    Only the very first character is lowered; the rest keep their case.
    """
    parts = [p for p in _WORD_SEPARATORS.split(word) if p]
    if not parts:
        return word
    joined = parts[0] + "".join(p[:1].upper() + p[1:] for p in parts[1:])
    return joined[:1].lower() + joined[1:]


def default_collection_name(document_type: type) -> str:
    """Conventional collection name derived from the type name."""
    return camelize(pluralize(document_type.__name__))


def resolve_collection_name(document_type: type, partition_key: str | None = None) -> str:
    """
    Resolve the collection name for a document type and partition key.

    Args:
        document_type: The class representing a document
        partition_key: Optional tenant/shard key; ``None`` and ``""`` both
                       mean "no partition"

    Returns:
        The physical collection name

    Raises:
        TypeError: If document_type is not a class or partition_key is not a string
        ConfigurationError: If the type declares an empty override name
    """
    if not isinstance(document_type, type):
        raise TypeError(f"document_type must be a class, got {type(document_type).__name__}")
    if partition_key is not None and not isinstance(partition_key, str):
        raise TypeError(f"partition_key must be a string, got {type(partition_key).__name__}")

    name = get_declared_collection_name(document_type) or default_collection_name(document_type)

    if not partition_key:
        return name
    return f"{partition_key}{PARTITION_KEY_SEPARATOR}{name}"
