from enum import Enum


class Lifetime(str, Enum):
    """Defines the lifetime of a provider's value.

    Attributes:
        SINGLETON: Built once per resolver and cached until reset or dispose.
        TRANSIENT: Built anew on every resolution, never cached.
    """

    SINGLETON = "singleton"
    TRANSIENT = "transient"

    def __str__(self) -> str:
        return self.value


class WarningType(str, Enum):
    """Kinds of non-fatal diagnostics recorded during resolution."""

    SCOPE_MISMATCH = "scope_mismatch"
    ASYNC_INIT_ERROR = "async_init_error"

    def __str__(self) -> str:
        return self.value
