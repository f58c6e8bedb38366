import difflib
from typing import Any, List, Mapping, Optional, Sequence

from lazygraph_di.domain.exceptions import ContainerConfigError, ReservedKeyError

# Public attribute names of the container facade, its test double and the resolution context.
# Registering one of these would make attribute-style access ambiguous.
RESERVED_KEYS = (
    "resolve",
    "get",
    "scope",
    "extend",
    "preload",
    "reset",
    "dispose",
    "is_resolved",
    "register_singletons",
    "register_transients",
    "dependency_graph",
    "warnings",
    "registered_keys",
    "name",
    "resolver",
    "from_resolver",
    "override",
    "mock_singleton",
    "mock_transient",
    "reset_overrides",
)


def validate_key(key: Any) -> None:
    """Validate a single provider key.

    Raises:
        ContainerConfigError: If the key is not a non-empty string.
        ReservedKeyError: If the key is reserved or private.
    """
    if not isinstance(key, str) or not key:
        raise ContainerConfigError(key, f"keys must be non-empty strings, got {type(key).__name__}")
    if key in RESERVED_KEYS or key.startswith("_"):
        raise ReservedKeyError(key, RESERVED_KEYS)


def validate_providers(providers: Mapping[Any, Any]) -> None:
    """Validate a mapping of keys to factories before it reaches a resolver.

    Raises:
        ContainerConfigError: If a key is invalid or a value is not callable.
        ReservedKeyError: If a key is reserved or private.

    Example:
        >>> validate_providers({"api_key": "sk-123"})
        Traceback (most recent call last):
        ...
        ContainerConfigError: Invalid registration for 'api_key': expected a factory, got str
    """
    for key, factory in providers.items():
        validate_key(key)
        if not callable(factory):
            raise ContainerConfigError(key, f"expected a factory, got {type(factory).__name__}")


def detect_duplicate_keys(*modules: Mapping[str, Any]) -> List[str]:
    """Return keys that appear in more than one of the given provider mappings."""
    seen = set()
    duplicates: List[str] = []
    for module in modules:
        for key in module:
            if key in seen and key not in duplicates:
                duplicates.append(key)
            seen.add(key)
    return duplicates


def suggest_key(key: str, registered: Sequence[str]) -> Optional[str]:
    """Return the registered key closest to ``key``, or None when nothing is similar enough."""
    matches = difflib.get_close_matches(key, list(registered), n=1, cutoff=0.5)
    return matches[0] if matches else None
