"""Application layer - Dependency graph discovery."""

from typing import Any, Dict, List, Sequence

from lazygraph_di.domain import IDependencyTracker, IResolutionContext
from lazygraph_di.domain.interfaces import ResolveCallback


class TrackingContext(IResolutionContext):
    """Resolution context that records every key a factory touches.

    Factories receive this object and reach their dependencies through it.
    Three spellings are equivalent: ``c.get("db")``, ``c["db"]`` and ``c.db``.

    Example:
        >>> container = Container({
        ...     "config": lambda c: Config(),
        ...     "db": lambda c: Database(c.config),
        ... })
    """

    __slots__ = ("_deps", "_chain", "_resolve")

    def __init__(self, deps: List[str], chain: List[str], resolve: ResolveCallback) -> None:
        self._deps = deps
        self._chain = chain
        self._resolve = resolve

    def get(self, key: str) -> Any:
        """Resolve a key and record it as a dependency.

        Non-string keys are ignored: nothing is recorded and None is returned.
        """
        if not isinstance(key, str):
            return None
        self._deps.append(key)
        return self._resolve(key, self._chain)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __getattr__(self, name: str) -> Any:
        # Private names and protocol probes (copy, pickle, mocks) are never keys.
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get(name)

    def __repr__(self) -> str:
        return f"TrackingContext(chain={self._chain!r})"


class DependencyTracker(IDependencyTracker):
    """Builds the dependency graph from what factories access at runtime.

    Attributes:
        _graph: Dependencies observed during each key's last successful resolution.
    """

    def __init__(self) -> None:
        self._graph: Dict[str, List[str]] = {}

    def create_context(self, deps: List[str], chain: List[str], resolve: ResolveCallback) -> TrackingContext:
        """Create the context passed to a factory.

        Args:
            deps: Accumulator receiving every accessed key, repeats included.
            chain: Resolution chain including the key being built.
            resolve: Callback used for each accessed key.

        Returns:
            A context recording into ``deps``.
        """
        return TrackingContext(deps, chain, resolve)

    def record_deps(self, key: str, deps: Sequence[str]) -> None:
        self._graph[key] = list(deps)

    def get_dependency_graph(self) -> Dict[str, List[str]]:
        return {key: list(deps) for key, deps in self._graph.items()}

    def clear(self, *keys: str) -> None:
        for key in keys:
            self._graph.pop(key, None)

    def clear_all(self) -> None:
        self._graph.clear()
