"""
Application layer - Resolution, preloading and teardown.

This layer contains the engine that builds, orders and disposes values.
It depends only on the Domain layer.
"""

from .circular_detector import CircularDependencyDetector
from .container import Container, build_registry
from .dependency_tracker import DependencyTracker, TrackingContext
from .disposer import Disposer
from .lifetime_manager import LifetimeManager
from .preloader import Preloader, topological_levels
from .resolver import Resolver

__all__ = [
    # Facade
    "Container",
    "build_registry",
    # Engine
    "Resolver",
    "LifetimeManager",
    "CircularDependencyDetector",
    "DependencyTracker",
    "TrackingContext",
    # Lifecycle orchestration
    "Preloader",
    "Disposer",
    "topological_levels",
]
