from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from lazygraph_di.application.disposer import Disposer
from lazygraph_di.application.preloader import Preloader
from lazygraph_di.application.resolver import Resolver
from lazygraph_di.domain import (
    ContainerWarning,
    DuplicateKeyError,
    Lifetime,
    Provider,
    ScopeOptions,
    detect_duplicate_keys,
    validate_key,
    validate_providers,
)

Factory = Callable[[Any], Any]


def build_registry(*modules: Mapping[str, Factory], lifetime: Optional[Lifetime] = None) -> Dict[str, Provider]:
    """Validate provider mappings and turn them into a registry.

    Args:
        *modules: Mappings of keys to factories.
        lifetime: Lifetime forced on every provider. By default factories
            wrapped with ``transient()`` are transient and all others singletons.

    Returns:
        Providers keyed by name, in the order given.

    Raises:
        ContainerConfigError: If a key or factory is invalid.
        DuplicateKeyError: If two modules define the same key.
    """
    duplicates = detect_duplicate_keys(*modules)
    if duplicates:
        raise DuplicateKeyError(duplicates[0])

    registry: Dict[str, Provider] = {}
    for module in modules:
        validate_providers(module)
        for key, factory in module.items():
            registry[key] = Provider.from_factory(key, factory, lifetime)
    return registry


class Container:
    """Dependency injection container built from factory functions.

    Each factory receives a resolution context and returns a value. Values
    are built lazily on first access and cached as singletons unless the
    factory is wrapped with ``transient()``. The dependency graph is discovered
    from what each factory accesses.

    Attributes:
        _resolver: Engine that builds and caches values.
        _preloader: Eager resolution and ordered ``on_init``.
        _disposer: Reverse-order ``on_destroy``.

    Example:
        >>> container = Container({
        ...     "config": lambda c: Config.from_env(),
        ...     "db": lambda c: Database(c.config.dsn),
        ...     "request_id": transient(lambda c: uuid4().hex),
        ... })
        >>> container.db is container.resolve("db")
        True
    """

    def __init__(self, *modules: Mapping[str, Factory], name: Optional[str] = None) -> None:
        """Initialize the container.

        Args:
            *modules: Mappings of keys to factories; a key may appear in only one.
            name: Optional label used in log messages.

        Raises:
            ContainerConfigError: If a registration is invalid.
            DuplicateKeyError: If two modules define the same key.
        """
        self._attach(Resolver(build_registry(*modules), options=ScopeOptions(name=name)))

    @classmethod
    def from_resolver(cls, resolver: Resolver) -> "Container":
        """Wrap an existing resolver."""
        container = cls.__new__(cls)
        container._attach(resolver)
        return container

    def _attach(self, resolver: Resolver) -> None:
        self._resolver = resolver
        self._preloader = Preloader(resolver)
        self._disposer = Disposer(resolver)

    def _register(self, dependencies: Mapping[str, Factory], lifetime: Optional[Lifetime]) -> None:
        validate_providers(dependencies)
        for key in dependencies:
            if key in self._resolver.get_local_keys():
                raise DuplicateKeyError(key)
        for key, factory in dependencies.items():
            self._resolver.register(Provider.from_factory(key, factory, lifetime))

    def register_singletons(self, dependencies: Mapping[str, Factory]) -> None:
        """Register multiple singleton dependencies at once.

        Singletons are built once and shared until reset or dispose. Factories
        wrapped with ``transient()`` keep their transient lifetime.

        Args:
            dependencies: Dictionary mapping keys to factories.

        Raises:
            ContainerConfigError: If a registration is invalid.
            DuplicateKeyError: If a key is already registered in this container.

        Example:
            >>> container.register_singletons({
            ...     "config": lambda c: DatabaseConfig.from_env(),
            ...     "db": lambda c: DatabaseConnection(c.config),
            ... })
        """
        self._register(dependencies, None)

    def register_transients(self, dependencies: Mapping[str, Factory]) -> None:
        """Register multiple transient dependencies at once.

        Transient dependencies are built fresh on each resolution.

        Args:
            dependencies: Dictionary mapping keys to factories.

        Raises:
            ContainerConfigError: If a registration is invalid.
            DuplicateKeyError: If a key is already registered in this container.
        """
        self._register(dependencies, Lifetime.TRANSIENT)

    def resolve(self, key: str) -> Any:
        """Resolve and return the value registered under ``key``.

        Raises:
            ProviderNotFoundError: If the key is not registered in the scope chain.
            CircularDependencyError: If the factories form a cycle.
            UndefinedReturnError: If a factory returned None.
            FactoryError: If a factory raised.

        Example:
            >>> user_service = container.resolve("user_service")
        """
        return self._resolver.resolve(key)

    def __getitem__(self, key: str) -> Any:
        return self.resolve(key)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.resolve(name)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key in self._resolver.get_all_registered_keys()

    def __iter__(self) -> Iterator[str]:
        return iter(self._resolver.get_all_registered_keys())

    def scope(self, extra: Optional[Mapping[str, Factory]] = None, *, name: Optional[str] = None) -> "Container":
        """Create a child container for per-request or per-job state.

        The child has its own cache. Keys it does not register are resolved by
        this container, so singletons cached here are shared. Keys it does
        register shadow this container's entirely.

        Args:
            extra: Providers registered only on the child.
            name: Optional label for the scope.

        Returns:
            The child container.

        Example:
            >>> request = container.scope({"request_id": lambda c: uuid4().hex}, name="request")
            >>> request.logger is container.logger
            True
        """
        registry = build_registry(extra or {})
        return Container.from_resolver(self._resolver.create_scope(registry, ScopeOptions(name=name)))

    def extend(self, *modules: Mapping[str, Factory]) -> "Container":
        """Return a new, independent container with additional providers.

        Singletons already resolved here are reused; later resolutions on either
        container do not affect the other. Keys in ``modules`` override existing ones.

        Args:
            *modules: Mappings of keys to factories; a key may appear in only one.

        Returns:
            The extended container.
        """
        return Container.from_resolver(self._resolver.extend(build_registry(*modules)))

    async def preload(self, *keys: str) -> None:
        """Resolve keys eagerly and run their ``on_init`` hooks in dependency order.

        Args:
            *keys: Keys to preload; all keys registered on this container when empty.

        Example:
            >>> await container.preload("db", "cache")
        """
        await self._preloader.preload(*keys)

    def reset(self, *keys: str) -> None:
        """Forget cached values so the next access rebuilds them.

        Args:
            *keys: Keys to reset; every key when empty.
        """
        for key in keys:
            validate_key(key)
        self._resolver.reset(*keys)

    async def dispose(self) -> None:
        """Call ``on_destroy`` on resolved values in reverse resolution order and clear state."""
        await self._disposer.dispose()

    async def __aenter__(self) -> "Container":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> bool:
        await self.dispose()
        return False

    def is_resolved(self, key: str) -> bool:
        return self._resolver.is_resolved(key)

    @property
    def dependency_graph(self) -> Dict[str, List[str]]:
        return self._resolver.get_dependency_graph()

    @property
    def warnings(self) -> List[ContainerWarning]:
        return self._resolver.get_warnings()

    @property
    def registered_keys(self) -> List[str]:
        return self._resolver.get_all_registered_keys()

    @property
    def name(self) -> Optional[str]:
        return self._resolver.name

    @property
    def resolver(self) -> Resolver:
        return self._resolver

    def __repr__(self) -> str:
        label = f"name={self.name!r}, " if self.name else ""
        return f"Container({label}keys={self.registered_keys!r})"
