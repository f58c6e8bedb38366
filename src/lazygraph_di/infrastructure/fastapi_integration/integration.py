import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from lazygraph_di.application import Container

logger = logging.getLogger(__name__)

RequestProviders = Callable[[Request], Mapping[str, Callable[[Any], Any]]]


def create_fastapi_dependency(container: Container, key: str) -> Callable[[], Any]:
    """Create a FastAPI Depends() callable that resolves from the container.

    The resolved value follows the registration in the container: the same
    singleton on every request, or a fresh transient each time.

    Args:
        container: The container to resolve from.
        key: The key to resolve when the dependency is called.

    Returns:
        A callable that FastAPI can use with Depends().

    Example:
        >>> container = Container({
        ...     "db": lambda c: DatabaseConnection(),
        ...     "user_repo": lambda c: UserRepository(c.db),
        ... })
        >>>
        >>> get_user_repo = create_fastapi_dependency(container, "user_repo")
        >>>
        >>> @app.get("/users")
        >>> async def list_users(repo: UserRepository = Depends(get_user_repo)):
        ...     return await repo.get_all()
    """

    def dependency() -> Any:
        """Resolve the dependency from the container."""
        return container.resolve(key)

    return dependency


def create_scoped_dependency(key: str) -> Callable[[Request], Any]:
    """Create a FastAPI dependency that uses the request-scoped container.

    Requires the ScopedContainerMiddleware to be installed.

    Args:
        key: The key to resolve from the scoped container.

    Returns:
        A callable that resolves from the request-scoped container.

    Example:
        >>> app.add_middleware(
        ...     ScopedContainerMiddleware,
        ...     container=container,
        ...     request_providers=lambda request: {"request": lambda c: request},
        ... )
        >>>
        >>> get_request_context = create_scoped_dependency("request_context")
        >>>
        >>> @app.get("/process")
        >>> async def process_request(ctx: RequestContext = Depends(get_request_context)):
        ...     return {"request_id": ctx.request_id}
    """

    def scoped_dependency(request: Request) -> Any:
        """Resolve from the request's scoped container."""
        if not hasattr(request.state, "di_container"):
            raise RuntimeError(
                "Request does not have a scoped DI container. Did you forget to add ScopedContainerMiddleware?"
            )
        scoped_container: Container = request.state.di_container
        return scoped_container.resolve(key)

    return scoped_dependency


class ScopedContainerMiddleware(BaseHTTPMiddleware):
    """Middleware that creates a scoped container for each request.

    The scope is accessible via `request.state.di_container`. Singletons of the
    parent container are shared; providers returned by ``request_providers`` live
    only for the request and are disposed when it completes.

    Attributes:
        container: The parent container to create scopes from.
        request_providers: Builds the per-request providers from the request.
    """

    def __init__(
        self,
        app: FastAPI,
        container: Container,
        request_providers: Optional[RequestProviders] = None,
    ):
        """Initialize the middleware with a parent container.

        Args:
            app: The FastAPI/Starlette application.
            container: The parent container to create scopes from.
            request_providers: Optional callable returning providers for the request scope.
        """
        super().__init__(app)
        self.container = container
        self.request_providers = request_providers

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        """Create a scoped container for the request and execute the endpoint.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            The response from the endpoint.
        """
        providers = self.request_providers(request) if self.request_providers is not None else None
        scoped_container = self.container.scope(providers, name="request")
        request.state.di_container = scoped_container

        try:
            return await call_next(request)
        finally:
            # Only values cached by the request scope are torn down
            await scoped_container.dispose()


def create_lifespan(container: Container, *keys: str) -> Callable[[FastAPI], Any]:
    """Create a FastAPI lifespan that preloads on startup and disposes on shutdown.

    Args:
        container: The application container.
        *keys: Keys to preload; every registered key when empty.

    Returns:
        A lifespan context manager factory for ``FastAPI(lifespan=...)``.

    Example:
        >>> app = FastAPI(lifespan=create_lifespan(container, "db", "cache"))
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await container.preload(*keys)
        logger.debug("Container preloaded for application startup")
        try:
            yield
        finally:
            await container.dispose()
            logger.debug("Container disposed at application shutdown")

    return lifespan
