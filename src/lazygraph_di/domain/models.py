from typing import Any, Callable, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from lazygraph_di.domain.enums import Lifetime, WarningType
from lazygraph_di.domain.lifecycle import is_transient


class Provider(BaseModel):
    """Value object representing a registered factory.

    Attributes:
        key: The name the provider is registered under.
        factory: Function receiving a resolution context and returning the value.
        lifetime: Whether the value is cached (singleton) or rebuilt (transient).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: str = Field(..., description="The key the provider is registered under.")
    factory: Callable[..., Any] = Field(
        ..., description="The factory function producing the value."
    )
    lifetime: Lifetime = Field(default=Lifetime.SINGLETON, description="The lifetime of the provided value.")

    @property
    def is_transient(self) -> bool:
        return self.lifetime == Lifetime.TRANSIENT

    @classmethod
    def from_factory(cls, key: str, factory: Callable[..., Any], lifetime: Optional[Lifetime] = None) -> "Provider":
        """Build a provider, honouring the ``transient()`` marker when no lifetime is given."""
        if lifetime is None:
            lifetime = Lifetime.TRANSIENT if is_transient(factory) else Lifetime.SINGLETON
        return cls(key=key, factory=factory, lifetime=lifetime)


class ScopeOptions(BaseModel):
    """Options for a scoped (child) resolver.

    Attributes:
        name: Optional label used in log messages.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = Field(default=None, description="Optional label for the scope.")


class ScopeMismatchWarning(BaseModel):
    """A singleton captured the value of a transient dependency.

    The transient value is frozen inside the singleton, which is almost always a bug.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal[WarningType.SCOPE_MISMATCH] = WarningType.SCOPE_MISMATCH
    singleton: str
    transient: str

    @property
    def message(self) -> str:
        return f"Singleton '{self.singleton}' depends on transient '{self.transient}'."

    @property
    def hint(self) -> str:
        return (
            f"Make '{self.singleton}' transient too, make '{self.transient}' a singleton, "
            f"or inject a factory returning fresh '{self.transient}' values."
        )

    def concerns(self, key: str) -> bool:
        return key in (self.singleton, self.transient)

    @property
    def details(self) -> Dict[str, Any]:
        return {"singleton": self.singleton, "transient": self.transient}


class AsyncInitErrorWarning(BaseModel):
    """A background ``on_init`` started by a lazy resolution failed."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: Literal[WarningType.ASYNC_INIT_ERROR] = WarningType.ASYNC_INIT_ERROR
    key: str
    error: BaseException

    @property
    def message(self) -> str:
        return f"Background on_init() of '{self.key}' failed: {self.error!r}"

    @property
    def hint(self) -> str:
        return f"Use 'await container.preload(\"{self.key}\")' to surface initialization errors."

    def concerns(self, key: str) -> bool:
        return key == self.key

    @property
    def details(self) -> Dict[str, Any]:
        return {"key": self.key, "error": str(self.error)}


ContainerWarning = Union[ScopeMismatchWarning, AsyncInitErrorWarning]
