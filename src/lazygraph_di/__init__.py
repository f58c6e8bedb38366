"""
lazygraph-di: Lazy dependency injection built from plain factory functions.

Public API exports for the lazygraph-di package.
"""

# Application exports
from lazygraph_di.application.container import Container

# Domain exports
from lazygraph_di.domain.enums import Lifetime, WarningType
from lazygraph_di.domain.exceptions import (
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
)
from lazygraph_di.domain.lifecycle import OnDestroy, OnInit, transient
from lazygraph_di.domain.models import AsyncInitErrorWarning, ContainerWarning, ScopeMismatchWarning

__version__ = "0.1.0"

__all__ = [
    # Container
    "Container",
    "transient",
    # Lifecycle
    "OnInit",
    "OnDestroy",
    # Enums
    "Lifetime",
    "WarningType",
    # Warnings
    "ScopeMismatchWarning",
    "AsyncInitErrorWarning",
    "ContainerWarning",
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
]
