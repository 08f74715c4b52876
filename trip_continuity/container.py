"""Dependency injection container.

This module provides a simple DI container without external frameworks.
It allows registering and resolving the engine's collaborators.

Design principles:
1. No magic - explicit registration and resolution
2. Testable - easy to swap the location matcher
3. Lazy loading - components instantiated on first use
4. Thread-safe - one container can serve concurrent repairs
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, TypeVar

from .config import AppConfig, get_config

T = TypeVar("T")


@dataclass
class Container:
    """Dependency injection container.

    Usage:
        # Production
        container = Container.create_default()
        service = container.resolve(ContinuityService)

        # Testing
        container = Container()
        container.register(LocationMatcherPort, lambda: ExactLocationMatcher())
        matcher = container.resolve(LocationMatcherPort)

    Attributes:
        config: Application configuration
    """

    config: AppConfig = field(default_factory=get_config)

    _factories: Dict[type[Any], Callable[[], Any]] = field(
        default_factory=dict, repr=False
    )
    _singletons: Dict[type[Any], Any] = field(default_factory=dict, repr=False)
    _singleton_types: set[type[Any]] = field(default_factory=set, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def register(
        self,
        port_type: type[Any],
        factory: Callable[[], Any],
        singleton: bool = True,
    ) -> None:
        """Register a factory for a port type.

        Args:
            port_type: The type (usually a Protocol) to register.
            factory: A callable that creates instances of the type.
            singleton: If True, only one instance is created.
        """
        with self._lock:
            self._factories[port_type] = factory
            if singleton:
                self._singleton_types.add(port_type)

    def resolve(self, port_type: type[Any]) -> Any:
        """Resolve an instance of a port type.

        Raises:
            KeyError: If the type is not registered.
        """
        with self._lock:
            if port_type not in self._factories:
                raise KeyError(f"Type not registered: {port_type}")

            if port_type in self._singleton_types:
                if port_type not in self._singletons:
                    self._singletons[port_type] = self._factories[port_type]()
                return self._singletons[port_type]

            return self._factories[port_type]()

    def is_registered(self, port_type: type[Any]) -> bool:
        return port_type in self._factories

    def clear_singletons(self) -> None:
        """Clear all cached singletons.

        Call this in tests to ensure fresh instances.
        """
        with self._lock:
            self._singletons.clear()

    def clear_all(self) -> None:
        """Clear all registrations and singletons."""
        with self._lock:
            self._factories.clear()
            self._singletons.clear()
            self._singleton_types.clear()

    @classmethod
    def create_default(cls, config: Optional[AppConfig] = None) -> Container:
        """Create a container with default production bindings.

        The location matcher follows config.matching.strategy and is
        shared by every stage of the engine.

        Args:
            config: Optional configuration override.

        Returns:
            A configured Container instance.

        Raises:
            ConfigurationError: If the matching strategy is unknown.
        """
        from .pipeline import create_matcher
        from .ports.location import LocationMatcherPort
        from .services import (
            ContinuityService,
            GapDetector,
            GapResolver,
            IntegrityValidator,
            SegmentClassifier,
        )

        config = config or get_config()
        container = cls(config=config)

        # Fail at wiring time rather than on the first repair
        matcher = create_matcher(config.matching.strategy, config.matching)
        container.register(LocationMatcherPort, lambda: matcher)

        container.register(
            SegmentClassifier,
            lambda: SegmentClassifier(container.resolve(LocationMatcherPort)),
        )
        container.register(
            GapDetector,
            lambda: GapDetector(
                container.resolve(LocationMatcherPort),
                container.resolve(SegmentClassifier),
            ),
        )
        container.register(GapResolver, lambda: GapResolver(config.synthesis))
        container.register(
            IntegrityValidator,
            lambda: IntegrityValidator(
                container.resolve(LocationMatcherPort),
                container.resolve(SegmentClassifier),
            ),
        )

        # Main service
        def create_continuity_service() -> ContinuityService:
            return ContinuityService(
                matcher=container.resolve(LocationMatcherPort),
                detector=container.resolve(GapDetector),
                resolver=container.resolve(GapResolver),
                validator=container.resolve(IntegrityValidator),
                classifier=container.resolve(SegmentClassifier),
            )

        container.register(ContinuityService, create_continuity_service)

        return container


# Global default container (lazy initialized)
_default_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Get the default application container.

    Returns:
        The default Container instance (creates one if needed).
    """
    global _default_container
    if _default_container is None:
        with _container_lock:
            if _default_container is None:
                _default_container = Container.create_default()
    return _default_container


def reset_container() -> None:
    """Reset the default container.

    Call this in tests to ensure a fresh container.
    """
    global _default_container
    with _container_lock:
        if _default_container is not None:
            _default_container.clear_all()
        _default_container = None
