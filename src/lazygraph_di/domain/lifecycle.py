import functools
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

T = TypeVar("T")

_TRANSIENT_MARKER = "__lazygraph_transient__"


class OnInit(ABC):
    """Implement (or just define an ``on_init`` method) to run setup after construction.

    The hook may be a coroutine function. It runs once per container, either
    in the background after a lazy resolution or in dependency order during
    ``preload()``.

    Example:
        >>> class Database(OnInit):
        ...     async def on_init(self) -> None:
        ...         await self.connect()
    """

    @abstractmethod
    def on_init(self) -> Optional[Awaitable[None]]:
        """Initialize the instance."""


class OnDestroy(ABC):
    """Implement (or just define an ``on_destroy`` method) to release resources on ``dispose()``."""

    @abstractmethod
    def on_destroy(self) -> Optional[Awaitable[None]]:
        """Tear the instance down."""


def has_on_init(value: Any) -> bool:
    """Duck-type check: does the value have a callable ``on_init``?"""
    return value is not None and not isinstance(value, type) and callable(getattr(value, "on_init", None))


def has_on_destroy(value: Any) -> bool:
    """Duck-type check: does the value have a callable ``on_destroy``?"""
    return value is not None and not isinstance(value, type) and callable(getattr(value, "on_destroy", None))


def transient(factory: Callable[..., T]) -> Callable[..., T]:
    """Mark a factory as transient: it produces a new value on every resolution.

    Example:
        >>> container = Container({
        ...     "logger": lambda c: Logger(),             # singleton (default)
        ...     "request_id": transient(lambda c: uuid4()),  # new value every access
        ... })
    """

    @functools.wraps(factory)
    def wrapper(context: Any) -> T:
        return factory(context)

    setattr(wrapper, _TRANSIENT_MARKER, True)
    return wrapper


def is_transient(factory: Union[Callable[..., Any], Any]) -> bool:
    """Check whether a factory was wrapped with :func:`transient`."""
    return callable(factory) and getattr(factory, _TRANSIENT_MARKER, False) is True
