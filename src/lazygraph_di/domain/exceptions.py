from typing import Any, Dict, List, Optional, Sequence


def _format_chain(chain: Sequence[str]) -> str:
    return " -> ".join(chain)


class DIException(Exception):
    """Base exception for container errors.

    Attributes:
        key: The key being resolved or registered when the error occurred.
        chain: The resolution chain leading to the key.
        hint: Human-readable suggestion on how to fix the problem.
        details: Structured context for tooling.
    """

    key: Optional[str] = None
    chain: List[str]
    hint: str = ""

    @property
    def details(self) -> Dict[str, Any]:
        return {"key": self.key, "chain": list(self.chain)}


class ContainerConfigError(DIException):
    """Raised when a provider registration is invalid.

    This occurs when:
    - The key is not a non-empty string.
    - The registered value is not callable.
    """

    def __init__(self, key: Any, reason: str) -> None:
        self.key = key
        self.chain = []
        self.reason = reason
        self.hint = f"Register '{key}' as a factory, e.g. {{'{key}': lambda c: value}}."
        super().__init__(f"Invalid registration for '{key}': {reason}")


class ReservedKeyError(ContainerConfigError):
    """Raised when a key collides with a container attribute or is private."""

    def __init__(self, key: str, reserved: Sequence[str]) -> None:
        self.reserved = list(reserved)
        super().__init__(key, "the name is reserved by the container")
        self.hint = f"Rename this dependency, e.g. '{key.strip('_')}_service'."

    @property
    def details(self) -> Dict[str, Any]:
        return {"key": self.key, "reserved": list(self.reserved)}


class DuplicateKeyError(ContainerConfigError):
    """Raised when a key is registered twice in the same container."""

    def __init__(self, key: str) -> None:
        super().__init__(key, "the key is already registered")
        self.hint = f"Use extend() or scope() to override '{key}' instead of registering it again."


class ProviderNotFoundError(DIException):
    """Raised when no provider exists for a key anywhere in the scope chain.

    Attributes:
        registered: Every key registered across the scope chain.
        suggestion: Closest registered key, if any.
    """

    def __init__(
        self,
        key: str,
        chain: Sequence[str],
        registered: Sequence[str],
        suggestion: Optional[str] = None,
    ) -> None:
        self.key = key
        self.chain = list(chain)
        self.registered = list(registered)
        self.suggestion = suggestion

        root = self.chain[0] if self.chain else key
        message = f"Cannot resolve '{root}': dependency '{key}' not found."
        if self.chain:
            message += f"\n\nResolution chain: {_format_chain(self.chain + [f'{key} (not found)'])}"
        message += f"\nRegistered keys: [{', '.join(self.registered)}]"
        if suggestion:
            message += f"\n\nDid you mean '{suggestion}'?"

        if suggestion:
            self.hint = f"Did you mean '{suggestion}'? Or register '{key}' in your container."
        else:
            self.hint = f"Register '{key}' in your container: {{'{key}': lambda c: ...}}."
        super().__init__(message)

    @property
    def details(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "chain": list(self.chain),
            "registered": list(self.registered),
            "suggestion": self.suggestion,
        }


class CircularDependencyError(DIException):
    """Raised when a key is requested while it is already being resolved.

    Attributes:
        cycle: The chain followed by the re-entered key, e.g. ``['a', 'b', 'a']``.
    """

    def __init__(self, key: str, chain: Sequence[str]) -> None:
        self.key = key
        self.chain = list(chain)
        self.cycle = self.chain + [key]
        root = self.chain[0] if self.chain else key
        self.hint = (
            "To fix:\n"
            "  1. Extract shared logic into a new dependency both can use\n"
            "  2. Restructure so one doesn't depend on the other\n"
            "  3. Use a mediator/event pattern to decouple them"
        )
        super().__init__(f"Circular dependency detected while resolving '{root}'.\n\nCycle: {_format_chain(self.cycle)}")

    @property
    def details(self) -> Dict[str, Any]:
        return {"key": self.key, "chain": list(self.chain), "cycle": list(self.cycle)}


class UndefinedReturnError(DIException):
    """Raised when a factory returns ``None``."""

    def __init__(self, key: str, chain: Sequence[str]) -> None:
        self.key = key
        self.chain = list(chain)
        self.hint = "Your factory returned None. Did you forget a return statement?"
        message = f"Factory '{key}' returned None."
        if len(self.chain) > 1:
            message += f"\n\nResolution chain: {_format_chain(self.chain)}"
        super().__init__(message)


class FactoryError(DIException):
    """Raised when a factory raises an arbitrary exception.

    Attributes:
        original_error: The exception raised by the factory.
    """

    def __init__(self, key: str, chain: Sequence[str], original_error: BaseException) -> None:
        self.key = key
        self.chain = list(chain)
        self.original_error = original_error
        self.hint = f"Check the factory function for '{key}'. The error occurred during instantiation."
        message = f"Factory '{key}' raised an error: {original_error!r}"
        if len(self.chain) > 1:
            message += f"\n\nResolution chain: {_format_chain(self.chain[:-1] + [f'{key} (factory raised)'])}"
        super().__init__(message)

    @property
    def details(self) -> Dict[str, Any]:
        return {"key": self.key, "chain": list(self.chain), "original_error": str(self.original_error)}


class IncompleteTopologicalSortError(DIException):
    """Raised when preload cannot order its closure into layers.

    Attributes:
        remaining: Keys that could not be placed in any layer.
    """

    def __init__(self, remaining: Sequence[str]) -> None:
        self.remaining = list(remaining)
        self.key = self.remaining[0] if self.remaining else None
        self.chain = list(self.remaining)
        self.hint = "The dependency graph is inconsistent with resolution; call reset() and preload again."
        super().__init__(
            f"Incomplete topological sort: [{', '.join(self.remaining)}] could not be ordered. "
            "This may indicate a cycle in the dependency graph."
        )

    @property
    def details(self) -> Dict[str, Any]:
        return {"remaining": list(self.remaining)}


class AggregateError(DIException, ExceptionGroup):
    """Raised when two or more lifecycle hooks fail in one preload or dispose pass.

    The individual failures are available through ``exceptions``.

    Attributes:
        keys: The keys whose hooks failed, in the order of ``exceptions``.
    """

    def __new__(cls, message: str, exceptions: Sequence[Exception], keys: Optional[Sequence[str]] = None):
        return super().__new__(cls, message, exceptions)

    def __init__(self, message: str, exceptions: Sequence[Exception], keys: Optional[Sequence[str]] = None) -> None:
        super().__init__(message, exceptions)
        self.keys = list(keys) if keys is not None else []
        self.chain = []
        self.hint = "Inspect the individual failures in 'exceptions'; each one names its key in a note."

    @property
    def details(self) -> Dict[str, Any]:
        return {"keys": list(self.keys), "errors": [str(error) for error in self.exceptions]}


def raise_collected(errors: Sequence[Exception], operation: str, keys: Optional[Sequence[str]] = None) -> None:
    """Raise a single failure as-is, or several as one ``AggregateError``.

    Does nothing when ``errors`` is empty.
    """
    if len(errors) == 1:
        raise errors[0]
    if len(errors) > 1:
        raise AggregateError(f"{operation}() encountered {len(errors)} errors", list(errors), keys)
