"""Application layer - Circular dependency detection."""

from typing import Set

from lazygraph_di.domain import ICycleDetector


class CircularDependencyDetector(ICycleDetector):
    """Tracks which keys are currently being resolved.

    The resolver checks ``is_resolving`` before building a key and wraps the
    build in ``enter``/``leave``. A key requested while already present means
    the factories form a cycle.

    Attributes:
        _resolving: Keys currently mid-resolution.
    """

    def __init__(self) -> None:
        """Initialize the detector with an empty resolving set."""
        self._resolving: Set[str] = set()

    def enter(self, key: str) -> None:
        """Mark a key as being resolved.

        Args:
            key: The key about to be built.

        Example:
            >>> detector = CircularDependencyDetector()
            >>> detector.enter("db")
            >>> detector.is_resolving("db")
            True
        """
        self._resolving.add(key)

    def leave(self, key: str) -> None:
        """Remove a key from the resolving set.

        Must run on every exit path of a build, including failures.
        """
        self._resolving.discard(key)

    def is_resolving(self, key: str) -> bool:
        return key in self._resolving

    def clear(self) -> None:
        """Forget every key being resolved.

        Useful for testing or error recovery.
        """
        self._resolving.clear()
