from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

ResolveCallback = Callable[[str, List[str]], Any]


class IResolutionContext(ABC):
    """Capability handed to every factory for reaching its dependencies."""

    @abstractmethod
    def get(self, key: str) -> Any:
        """Resolve ``key`` and record it as a dependency of the key being built.

        Args:
            key: The dependency to resolve.
        """


class ICycleDetector(ABC):
    """Abstract interface for tracking keys mid-resolution."""

    @abstractmethod
    def enter(self, key: str) -> None:
        """Mark a key as being resolved."""

    @abstractmethod
    def leave(self, key: str) -> None:
        """Mark a key as no longer being resolved."""

    @abstractmethod
    def is_resolving(self, key: str) -> bool:
        """Return whether the key is currently being resolved."""


class IDependencyTracker(ABC):
    """Abstract interface for recording which keys each factory accesses."""

    @abstractmethod
    def create_context(self, deps: List[str], chain: List[str], resolve: ResolveCallback) -> IResolutionContext:
        """Create a context that appends accessed keys to ``deps`` and resolves them.

        Args:
            deps: Accumulator receiving every accessed key.
            chain: Resolution chain to pass on to nested resolutions.
            resolve: Callback resolving a key with a chain.
        """

    @abstractmethod
    def record_deps(self, key: str, deps: Sequence[str]) -> None:
        """Store the dependencies observed during the last resolution of ``key``."""

    @abstractmethod
    def get_dependency_graph(self) -> Dict[str, List[str]]:
        """Return a copy of the dependency graph."""

    @abstractmethod
    def clear(self, *keys: str) -> None:
        """Remove the graph entries of the given keys."""

    @abstractmethod
    def clear_all(self) -> None:
        """Remove every graph entry."""


class IResolver(ABC):
    """Abstract interface for the resolution engine.

    The preloader and disposer only depend on this contract.
    """

    @abstractmethod
    def resolve(self, key: str, chain: Optional[List[str]] = None) -> Any:
        """Resolve a key, building and caching it as needed.

        Args:
            key: The key to resolve.
            chain: Keys already being resolved above this one.

        Raises:
            ProviderNotFoundError: If no provider exists in the scope chain.
            CircularDependencyError: If the key is already being resolved.
            UndefinedReturnError: If the factory returned None.
            FactoryError: If the factory raised.
        """

    @abstractmethod
    def is_resolved(self, key: str) -> bool:
        """Return whether a value for the key is cached locally."""

    @abstractmethod
    def get_dependency_graph(self) -> Dict[str, List[str]]:
        """Return a copy of the dependency graph."""

    @abstractmethod
    def get_cache(self) -> Dict[str, Any]:
        """Return a copy of the cache in first-resolution order."""

    @abstractmethod
    def get_warnings(self) -> List[Any]:
        """Return a copy of the recorded warnings."""

    @abstractmethod
    def get_all_registered_keys(self) -> List[str]:
        """Return registered keys across the scope chain."""

    @abstractmethod
    def get_local_keys(self) -> List[str]:
        """Return keys registered on this resolver only."""

    @abstractmethod
    def set_deferred_init(self, deferred: bool) -> None:
        """Toggle whether ``on_init`` fires automatically after resolution."""

    @abstractmethod
    async def call_on_init(self, key: str) -> None:
        """Run ``on_init`` for a cached key unless it already ran, waiting for one still running."""

    @abstractmethod
    def reset(self, *keys: str) -> None:
        """Forget cached values and their derived state; no keys means everything."""
