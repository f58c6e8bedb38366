"""Application layer - Ordered, parallel initialization of resolved values."""

import asyncio
import logging
from typing import Dict, Iterable, List, Mapping, Sequence

from lazygraph_di.domain import IncompleteTopologicalSortError, IResolver, raise_collected

logger = logging.getLogger(__name__)


def topological_levels(dependency_graph: Mapping[str, Sequence[str]], keys: Iterable[str]) -> List[List[str]]:
    """Group keys into layers with Kahn's algorithm.

    Layer 0 holds keys with no dependencies inside ``keys``; every later layer
    holds keys whose in-set dependencies all sit in earlier layers. Members of a
    layer may be initialized concurrently.

    Args:
        dependency_graph: Dependencies of each key. Keys outside ``keys`` are ignored.
        keys: The keys to order.

    Returns:
        The layers, in initialization order.

    Raises:
        IncompleteTopologicalSortError: If some keys cannot be placed (a cycle).

    Example:
        >>> topological_levels({"db": [], "cache": [], "api": ["db", "cache"]}, ["db", "cache", "api"])
        [['db', 'cache'], ['api']]
    """
    members = list(dict.fromkeys(keys))
    member_set = set(members)
    in_degree: Dict[str, int] = {key: 0 for key in members}
    dependents: Dict[str, List[str]] = {}

    for key in members:
        # Repeated accesses of one dependency count once.
        for dep in dict.fromkeys(dependency_graph.get(key, ())):
            if dep in member_set:
                in_degree[key] += 1
                dependents.setdefault(dep, []).append(key)

    levels: List[List[str]] = []
    queue = [key for key in members if in_degree[key] == 0]
    while queue:
        levels.append(queue)
        next_queue: List[str] = []
        for key in queue:
            for dependent in dependents.get(key, ()):
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    next_queue.append(dependent)
        queue = next_queue

    placed = sum(len(level) for level in levels)
    if placed < len(members):
        placed_keys = {key for level in levels for key in level}
        raise IncompleteTopologicalSortError([key for key in members if key not in placed_keys])

    return levels


class Preloader:
    """Resolves keys eagerly, then runs their ``on_init`` hooks layer by layer.

    Attributes:
        _resolver: The resolver whose values are preloaded.
    """

    def __init__(self, resolver: IResolver) -> None:
        self._resolver = resolver

    async def preload(self, *keys: str) -> None:
        """Resolve the given keys (all local keys when none) and initialize their closure.

        Values are produced first with automatic initialization turned off.
        Hooks then run in dependency order: every member of a layer starts
        together, and the next layer waits until the whole layer has settled.

        Args:
            *keys: Keys to preload.

        Raises:
            DIException: If resolving a key fails; values built by this call are rolled back.
            IncompleteTopologicalSortError: If the closure cannot be layered.
            Exception: The failure of a single ``on_init`` hook.
            AggregateError: If several ``on_init`` hooks failed.

        Example:
            >>> await Preloader(resolver).preload("db", "cache")
        """
        requested = list(keys) if keys else self._resolver.get_local_keys()

        self._resolve_deferred(requested)

        dependency_graph = self._resolver.get_dependency_graph()
        closure = self._collect_closure(requested, dependency_graph)
        levels = topological_levels(dependency_graph, closure)
        logger.debug("Preloading %d keys in %d layers: %s", len(closure), len(levels), levels)

        errors: List[Exception] = []
        failed_keys: List[str] = []
        for level in levels:
            results = await asyncio.gather(
                *(self._resolver.call_on_init(key) for key in level),
                return_exceptions=True,
            )
            for key, result in zip(level, results):
                if isinstance(result, Exception):
                    result.add_note(f"Raised by on_init() of '{key}' during preload()")
                    logger.warning("on_init() of '%s' failed during preload(): %r", key, result)
                    errors.append(result)
                    failed_keys.append(key)
                elif isinstance(result, BaseException):
                    raise result

        raise_collected(errors, "preload", failed_keys)

    def _resolve_deferred(self, keys: Sequence[str]) -> None:
        known_before = set(self._resolver.get_cache()) | set(self._resolver.get_dependency_graph())
        self._resolver.set_deferred_init(True)
        try:
            for key in keys:
                self._resolver.resolve(key)
        except Exception:
            # Forget what this call built so lazy access re-resolves it with on_init enabled.
            known = dict.fromkeys([*self._resolver.get_cache(), *self._resolver.get_dependency_graph()])
            created = [key for key in known if key not in known_before]
            if created:
                self._resolver.reset(*created)
            logger.debug("preload() failed; rolled back %s", created)
            raise
        finally:
            self._resolver.set_deferred_init(False)

    @staticmethod
    def _collect_closure(keys: Sequence[str], dependency_graph: Mapping[str, Sequence[str]]) -> List[str]:
        closure: Dict[str, None] = {}
        stack = list(reversed(keys))
        while stack:
            key = stack.pop()
            if key in closure:
                continue
            closure[key] = None
            stack.extend(reversed(dependency_graph.get(key, ())))
        return list(closure)
