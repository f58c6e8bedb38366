import asyncio
import functools
import inspect
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from lazygraph_di.application.circular_detector import CircularDependencyDetector
from lazygraph_di.application.dependency_tracker import DependencyTracker
from lazygraph_di.application.lifetime_manager import LifetimeManager
from lazygraph_di.domain import (
    AsyncInitErrorWarning,
    CircularDependencyError,
    ContainerWarning,
    DuplicateKeyError,
    FactoryError,
    ICycleDetector,
    IDependencyTracker,
    IResolver,
    Provider,
    ProviderNotFoundError,
    ScopeMismatchWarning,
    ScopeOptions,
    UndefinedReturnError,
    has_on_init,
    suggest_key,
)

logger = logging.getLogger(__name__)

SuggestFunction = Callable[[str, Sequence[str]], Optional[str]]

# Failures that already carry their own key and chain and must reach the caller unwrapped.
_RESOLUTION_ERRORS = (ProviderNotFoundError, CircularDependencyError, UndefinedReturnError, FactoryError)


class Resolver(IResolver):
    """Lazy resolution engine behind a container.

    Owns a provider registry, a singleton cache, a dependency graph and a list
    of warnings. Factories are called with a tracking context, so the graph is
    discovered while values are built. Keys missing locally are delegated to
    the optional parent resolver.

    Attributes:
        _providers: Providers registered on this resolver, in insertion order.
        _parent: Resolver consulted when a key is not registered locally.
        _lifetime_manager: Singleton cache and init-completed markers.
        _cycle_detector: Keys currently mid-resolution.
        _dependency_tracker: Dependency graph storage.
        _warnings: Diagnostics recorded as a side effect of resolution.
        _init_tokens: Liveness tokens of background ``on_init`` tasks, by key.
        _init_tasks: Background ``on_init`` tasks that have not settled, by key.
    """

    def __init__(
        self,
        providers: Mapping[str, Provider],
        *,
        parent: Optional["Resolver"] = None,
        options: Optional[ScopeOptions] = None,
        lifetime_manager: Optional[LifetimeManager] = None,
        cycle_detector: Optional[ICycleDetector] = None,
        dependency_tracker: Optional[IDependencyTracker] = None,
        suggest: SuggestFunction = suggest_key,
    ) -> None:
        """Initialize the resolver.

        Args:
            providers: Providers keyed by name. The mapping is copied.
            parent: Resolver to fall back to for keys not registered here.
            options: Scope options such as the scope name.
            lifetime_manager: Pre-seeded cache, used by ``extend``.
            cycle_detector: Cycle detector, a fresh one by default.
            dependency_tracker: Graph storage, a fresh one by default.
            suggest: Collaborator returning a "did you mean" key for missing providers.
        """
        self._providers: Dict[str, Provider] = dict(providers)
        self._parent = parent
        self._options = options if options is not None else ScopeOptions()
        self._lifetime_manager = lifetime_manager if lifetime_manager is not None else LifetimeManager()
        self._cycle_detector = cycle_detector if cycle_detector is not None else CircularDependencyDetector()
        self._dependency_tracker = dependency_tracker if dependency_tracker is not None else DependencyTracker()
        self._suggest = suggest
        self._warnings: List[ContainerWarning] = []
        self._deferred_init = False
        self._init_tokens: Dict[str, object] = {}
        self._init_tasks: Dict[str, "asyncio.Future[Any]"] = {}
        self._background_tasks: Set["asyncio.Future[Any]"] = set()

    @property
    def name(self) -> Optional[str]:
        return self._options.name

    @property
    def parent(self) -> Optional["Resolver"]:
        return self._parent

    def resolve(self, key: str, chain: Optional[List[str]] = None) -> Any:
        """Resolve a key, building it on first use.

        Args:
            key: The key to resolve.
            chain: Keys being resolved above this one, outermost first.

        Returns:
            The cached singleton, or a freshly built value.

        Raises:
            ProviderNotFoundError: If no provider exists in the scope chain.
            CircularDependencyError: If the key is already being resolved.
            UndefinedReturnError: If the factory returned None.
            FactoryError: If the factory (or a synchronous on_init) raised.

        Example:
            >>> resolver = Resolver({"config": Provider(key="config", factory=lambda c: {"debug": True})})
            >>> resolver.resolve("config")
            {'debug': True}
        """
        chain = list(chain) if chain is not None else []
        provider = self._providers.get(key)

        if provider is not None and not provider.is_transient and self._lifetime_manager.has(key):
            return self._lifetime_manager.get(key)

        if provider is None:
            if self._parent is not None:
                return self._parent.resolve(key, chain)
            registered = self.get_all_registered_keys()
            raise ProviderNotFoundError(key, chain, registered, self._suggest(key, registered))

        if self._cycle_detector.is_resolving(key):
            raise CircularDependencyError(key, chain)

        self._cycle_detector.enter(key)
        current_chain = chain + [key]
        try:
            return self._build(provider, current_chain)
        except _RESOLUTION_ERRORS:
            raise
        except Exception as error:
            raise FactoryError(key, current_chain, error) from error
        finally:
            self._cycle_detector.leave(key)

    def _build(self, provider: Provider, chain: List[str]) -> Any:
        key = provider.key
        deps: List[str] = []
        context = self._dependency_tracker.create_context(deps, chain, self.resolve)

        instance = provider.factory(context)
        if instance is None:
            raise UndefinedReturnError(key, chain)

        self._dependency_tracker.record_deps(key, deps)

        if not provider.is_transient:
            self._record_scope_mismatches(key, deps)
            self._lifetime_manager.store(key, instance)
            logger.debug("Resolved singleton '%s' (deps: %s)", key, deps)

        if not self._deferred_init and not self._lifetime_manager.is_initialized(key) and has_on_init(instance):
            self._start_on_init(key, instance)

        return instance

    def _record_scope_mismatches(self, key: str, deps: Sequence[str]) -> None:
        for dep in dict.fromkeys(deps):
            dep_provider = self.get_provider(dep)
            if dep_provider is None or not dep_provider.is_transient:
                continue
            warning = ScopeMismatchWarning(singleton=key, transient=dep)
            if warning in self._warnings:
                continue
            self._warnings.append(warning)
            logger.warning("%s %s", warning.message, warning.hint)

    def _start_on_init(self, key: str, instance: Any) -> None:
        """Run ``on_init`` after a lazy resolution without blocking the caller.

        Awaitable results become background tasks on the running loop. Their
        failures are recorded as warnings unless ``call_on_init`` took the task
        over or the key was reset in the meantime.
        """
        self._lifetime_manager.mark_initialized(key)
        result = instance.on_init()
        if not inspect.isawaitable(result):
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Nothing can drive the hook here; leave it for preload().
            if inspect.iscoroutine(result):
                result.close()
            self._lifetime_manager.clear_initialized(key)
            logger.debug("No running event loop; on_init() of '%s' deferred until preload()", key)
            return

        token = object()
        self._init_tokens[key] = token
        task = asyncio.ensure_future(result, loop=loop)
        self._background_tasks.add(task)
        self._init_tasks[key] = task
        task.add_done_callback(functools.partial(self._on_background_init_done, key, token))

    def _on_background_init_done(self, key: str, token: object, task: "asyncio.Future[Any]") -> None:
        self._background_tasks.discard(task)
        if self._init_tasks.get(key) is task:
            del self._init_tasks[key]
        error = None if task.cancelled() else task.exception()
        if self._init_tokens.get(key) is not token:
            logger.debug("on_init() result of '%s' is reported elsewhere or stale", key)
            return
        del self._init_tokens[key]
        if error is None:
            return

        warning = AsyncInitErrorWarning(key=key, error=error)
        self._warnings.append(warning)
        logger.warning("%s", warning.message, exc_info=error)

    async def call_on_init(self, key: str) -> None:
        """Run ``on_init`` of a cached key, awaiting it when it is a coroutine.

        A hook already running in the background is awaited instead, and its
        failure is raised to the caller rather than recorded as a warning. Keys
        registered only on an ancestor are handed to that ancestor. Does nothing
        for keys that are not cached, have no hook, or whose hook has settled.
        """
        if key not in self._providers and self._parent is not None:
            await self._parent.call_on_init(key)
            return
        if self._lifetime_manager.is_initialized(key):
            await self._await_background_init(key)
            return
        if not self._lifetime_manager.has(key):
            return
        instance = self._lifetime_manager.get(key)
        if not has_on_init(instance):
            return

        self._lifetime_manager.mark_initialized(key)
        result = instance.on_init()
        if inspect.isawaitable(result):
            await result

    async def _await_background_init(self, key: str) -> None:
        task = self._init_tasks.get(key)
        if task is None or task.done():
            return
        # The awaiting caller reports the outcome, so the done-callback must not.
        self._init_tokens.pop(key, None)
        logger.debug("Waiting for background on_init() of '%s'", key)
        await asyncio.shield(task)

    def set_deferred_init(self, deferred: bool) -> None:
        self._deferred_init = deferred

    @property
    def deferred_init(self) -> bool:
        return self._deferred_init

    def is_resolved(self, key: str) -> bool:
        return self._lifetime_manager.has(key)

    def get_dependency_graph(self) -> Dict[str, List[str]]:
        return self._dependency_tracker.get_dependency_graph()

    def get_cache(self) -> Dict[str, Any]:
        return self._lifetime_manager.get_singleton_cache()

    def get_warnings(self) -> List[ContainerWarning]:
        return list(self._warnings)

    def get_local_keys(self) -> List[str]:
        return list(self._providers)

    def get_all_registered_keys(self) -> List[str]:
        """Get every key registered on this resolver or an ancestor, local keys first."""
        keys = dict.fromkeys(self._providers)
        if self._parent is not None:
            keys.update(dict.fromkeys(self._parent.get_all_registered_keys()))
        return list(keys)

    def register(self, provider: Provider) -> None:
        """Add a provider under a key that is not registered locally yet.

        Raises:
            DuplicateKeyError: If the key is already registered on this resolver.
        """
        if provider.key in self._providers:
            raise DuplicateKeyError(provider.key)
        self._providers[provider.key] = provider

    def get_providers(self) -> Dict[str, Provider]:
        return dict(self._providers)

    def get_provider(self, key: str) -> Optional[Provider]:
        """Look up a provider here or in the parent chain."""
        provider = self._providers.get(key)
        if provider is None and self._parent is not None:
            return self._parent.get_provider(key)
        return provider

    def reset(self, *keys: str) -> None:
        """Forget cached values so the next access rebuilds them.

        Removes cache entries, init markers, graph entries and warnings about
        the given keys. With no keys, clears all of them. Never touches the parent.

        Args:
            *keys: Keys to reset; none means every key.
        """
        if not keys:
            self._lifetime_manager.clear_cache()
            self._dependency_tracker.clear_all()
            self._warnings.clear()
            self._init_tokens.clear()
            self._init_tasks.clear()
            logger.debug("Reset all state of %s", self._label())
            return

        self._lifetime_manager.evict(*keys)
        self._lifetime_manager.clear_initialized(*keys)
        self._dependency_tracker.clear(*keys)
        self._warnings = [warning for warning in self._warnings if not any(warning.concerns(key) for key in keys)]
        for key in keys:
            self._init_tokens.pop(key, None)
            self._init_tasks.pop(key, None)
        logger.debug("Reset %s of %s", list(keys), self._label())

    def create_scope(self, providers: Mapping[str, Provider], options: Optional[ScopeOptions] = None) -> "Resolver":
        """Create a child resolver with its own cache that falls back to this one.

        Providers given here shadow this resolver's providers of the same key.

        Args:
            providers: Providers registered only on the child.
            options: Scope options such as the scope name.

        Returns:
            The child resolver.
        """
        child = Resolver(providers, parent=self, options=options, suggest=self._suggest)
        logger.debug("Created %s with %s", child._label(), list(providers))
        return child

    def extend(self, providers: Mapping[str, Provider]) -> "Resolver":
        """Create an independent resolver with merged providers and a copied cache.

        Singletons already resolved here are reused without calling their
        factories again, except for keys overridden by ``providers``. The new
        resolver has no parent and shares no mutable state with this one.

        Args:
            providers: Providers to add; they win over existing ones on collision.

        Returns:
            The extended resolver.
        """
        merged, cache, initialized = self._visible_state()
        for key in providers:
            cache.pop(key, None)
            initialized.discard(key)
        merged.update(providers)
        return Resolver(
            merged,
            options=self._options,
            lifetime_manager=LifetimeManager(cache, initialized),
            suggest=self._suggest,
        )

    def _visible_state(self) -> Tuple[Dict[str, Provider], Dict[str, Any], Set[str]]:
        """Flatten providers, cached values and init markers as seen from this resolver."""
        if self._parent is None:
            providers: Dict[str, Provider] = {}
            cache: Dict[str, Any] = {}
            initialized: Set[str] = set()
        else:
            providers, cache, initialized = self._parent._visible_state()
            for key in self._providers:
                cache.pop(key, None)
                initialized.discard(key)

        providers.update(self._providers)
        cache.update(self._lifetime_manager.get_singleton_cache())
        initialized.update(self._lifetime_manager.initialized_keys())
        return providers, cache, initialized

    def _label(self) -> str:
        return f"scope '{self.name}'" if self.name else "resolver"
