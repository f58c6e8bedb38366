from typing import Any, Dict, Iterable, List, Optional, Set


class LifetimeManager:
    """Owns a resolver's singleton cache and its init-completed markers.

    Insertion order of the cache is the order in which singletons finished
    resolving; the disposer relies on it for reverse teardown.

    Attributes:
        _singleton_cache: Cached singleton values by key.
        _initialized: Keys whose ``on_init`` hook has been started.
    """

    def __init__(
        self,
        singleton_cache: Optional[Dict[str, Any]] = None,
        initialized: Optional[Iterable[str]] = None,
    ) -> None:
        """Initialize the lifetime manager.

        Args:
            singleton_cache: Values to seed the cache with. The mapping is copied, never aliased.
            initialized: Keys to seed the init markers with.
        """
        self._singleton_cache: Dict[str, Any] = dict(singleton_cache) if singleton_cache is not None else {}
        self._initialized: Set[str] = set(initialized) if initialized is not None else set()

    def has(self, key: str) -> bool:
        return key in self._singleton_cache

    def get(self, key: str) -> Any:
        return self._singleton_cache[key]

    def store(self, key: str, instance: Any) -> None:
        """Cache a singleton value.

        A re-resolved key moves to the end so teardown order follows the latest resolution.
        """
        self._singleton_cache.pop(key, None)
        self._singleton_cache[key] = instance

    def evict(self, *keys: str) -> None:
        for key in keys:
            self._singleton_cache.pop(key, None)

    def is_initialized(self, key: str) -> bool:
        return key in self._initialized

    def mark_initialized(self, key: str) -> None:
        self._initialized.add(key)

    def clear_initialized(self, *keys: str) -> None:
        for key in keys:
            self._initialized.discard(key)

    def resolved_keys(self) -> List[str]:
        return list(self._singleton_cache)

    def get_singleton_cache(self) -> Dict[str, Any]:
        """Get a copy of the singleton cache in first-resolution order."""
        return dict(self._singleton_cache)

    def initialized_keys(self) -> Set[str]:
        return set(self._initialized)

    def clear_cache(self) -> None:
        """Clear all cached instances and init markers."""
        self._singleton_cache.clear()
        self._initialized.clear()
