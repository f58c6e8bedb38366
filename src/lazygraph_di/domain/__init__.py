"""
Domain layer - Core types of the resolution engine.

This layer contains the providers, warnings, errors and contracts used by the engine.
It has no dependencies on other layers.
"""

from .enums import Lifetime, WarningType
from .exceptions import (
    AggregateError,
    CircularDependencyError,
    ContainerConfigError,
    DIException,
    DuplicateKeyError,
    FactoryError,
    IncompleteTopologicalSortError,
    ProviderNotFoundError,
    ReservedKeyError,
    UndefinedReturnError,
    raise_collected,
)
from .interfaces import ICycleDetector, IDependencyTracker, IResolutionContext, IResolver
from .lifecycle import OnDestroy, OnInit, has_on_destroy, has_on_init, is_transient, transient
from .models import AsyncInitErrorWarning, ContainerWarning, Provider, ScopeMismatchWarning, ScopeOptions
from .validation import RESERVED_KEYS, detect_duplicate_keys, suggest_key, validate_key, validate_providers

__all__ = [
    # Enums
    "Lifetime",
    "WarningType",
    # Exceptions
    "DIException",
    "ContainerConfigError",
    "ReservedKeyError",
    "DuplicateKeyError",
    "ProviderNotFoundError",
    "CircularDependencyError",
    "UndefinedReturnError",
    "FactoryError",
    "IncompleteTopologicalSortError",
    "AggregateError",
    "raise_collected",
    # Interfaces
    "IResolutionContext",
    "ICycleDetector",
    "IDependencyTracker",
    "IResolver",
    # Lifecycle
    "OnInit",
    "OnDestroy",
    "has_on_init",
    "has_on_destroy",
    "transient",
    "is_transient",
    # Models
    "Provider",
    "ScopeOptions",
    "ScopeMismatchWarning",
    "AsyncInitErrorWarning",
    "ContainerWarning",
    # Validation
    "RESERVED_KEYS",
    "validate_key",
    "validate_providers",
    "detect_duplicate_keys",
    "suggest_key",
]
