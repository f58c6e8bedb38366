"""Application layer - Teardown of resolved values."""

import inspect
import logging
from typing import List

from lazygraph_di.domain import IResolver, has_on_destroy, raise_collected

logger = logging.getLogger(__name__)


class Disposer:
    """Calls ``on_destroy`` on cached values in reverse resolution order.

    Attributes:
        _resolver: The resolver whose cached values are torn down.
    """

    def __init__(self, resolver: IResolver) -> None:
        self._resolver = resolver

    async def dispose(self) -> None:
        """Tear down every cached value, then clear the resolver's state.

        The last value resolved is destroyed first. A failing hook does not stop
        the others. The parent of a scoped resolver is never touched.

        Raises:
            Exception: The failure of a single ``on_destroy`` hook.
            AggregateError: If several ``on_destroy`` hooks failed.
        """
        entries = list(self._resolver.get_cache().items())
        errors: List[Exception] = []
        failed_keys: List[str] = []

        for key, instance in reversed(entries):
            if not has_on_destroy(instance):
                continue
            try:
                result = instance.on_destroy()
                if inspect.isawaitable(result):
                    await result
            except Exception as error:
                error.add_note(f"Raised by on_destroy() of '{key}' during dispose()")
                logger.warning("on_destroy() of '%s' failed: %r", key, error)
                errors.append(error)
                failed_keys.append(key)
            else:
                logger.debug("Disposed '%s'", key)

        self._resolver.reset()
        raise_collected(errors, "dispose", failed_keys)
