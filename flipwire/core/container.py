"""Component registry — "give me an instance of this type".

The flip layer needs exactly one operation from the host container:
resolve an instance by type.  ``ComponentResolver`` captures that
capability; ``ComponentRegistry`` is a small thread-safe container that
satisfies it for applications without a container of their own.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from flipwire.core.dispatch import FlipDispatcher
    from flipwire.core.interception import FlipProxy

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ComponentNotRegisteredError(LookupError):
    """Raised when no component is registered for the requested type."""


class ComponentCreationError(RuntimeError):
    """Raised when a registered factory fails to build its component."""


@runtime_checkable
class ComponentResolver(Protocol):
    """Protocol for component lookup backends.

    Any object with a ``resolve(component_type) -> instance`` method
    satisfies this protocol: a DI container adapter, a service locator,
    or a hand-written factory map.
    """

    def resolve(self, component_type: type[T]) -> T:
        """Return an instance of *component_type*.

        Raises
        ------
        LookupError
            If the type is not available.
        """
        ...


class Scope(str, Enum):
    """Lifecycle of a factory-registered component."""

    SINGLETON = "singleton"
    PROTOTYPE = "prototype"


class ComponentRegistry:
    """Minimal type-keyed component container.

    Components are registered either as ready-made instances (always
    singletons) or as zero-argument factories with a ``Scope``.  The
    registry owns every instance it hands out; callers borrow them.

    Examples
    --------
    >>> class Clock:
    ...     pass
    >>> registry = ComponentRegistry()
    >>> registry.register_factory(Clock, Clock)
    >>> registry.resolve(Clock) is registry.resolve(Clock)
    True
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._instances: dict[type, Any] = {}
        self._factories: dict[type, tuple[Callable[[], Any], Scope]] = {}

    # -- Registration -------------------------------------------------------

    def register_instance(self, component_type: type[T], instance: T) -> None:
        """Register a ready-made singleton for *component_type*."""
        with self._lock:
            self._factories.pop(component_type, None)
            self._instances[component_type] = instance
        logger.info("Registered instance for %s", component_type.__qualname__)

    def register_factory(
        self,
        component_type: type[T],
        factory: Callable[[], T],
        scope: Scope = Scope.SINGLETON,
    ) -> None:
        """Register a factory for *component_type*.

        Singleton factories run at most once, on first resolution.
        Prototype factories run on every resolution.
        """
        with self._lock:
            self._instances.pop(component_type, None)
            self._factories[component_type] = (factory, Scope(scope))
        logger.info(
            "Registered %s factory for %s", Scope(scope).value, component_type.__qualname__
        )

    def unregister(self, component_type: type) -> bool:
        """Forget *component_type*.  Returns whether anything was removed."""
        with self._lock:
            had_instance = self._instances.pop(component_type, None) is not None
            had_factory = self._factories.pop(component_type, None) is not None
        removed = had_instance or had_factory
        if removed:
            logger.info("Unregistered %s", component_type.__qualname__)
        return removed

    # -- Lookup -------------------------------------------------------------

    def is_registered(self, component_type: type) -> bool:
        with self._lock:
            return component_type in self._instances or component_type in self._factories

    @property
    def registered_types(self) -> list[type]:
        """Registered component types, sorted by qualified name."""
        with self._lock:
            types = set(self._instances) | set(self._factories)
        return sorted(types, key=lambda t: f"{t.__module__}.{t.__qualname__}")

    def resolve(self, component_type: type[T]) -> T:
        """Return the instance registered for *component_type*.

        Raises
        ------
        ComponentNotRegisteredError
            If nothing is registered for the type.
        ComponentCreationError
            If the registered factory raises.
        """
        with self._lock:
            if component_type in self._instances:
                return self._instances[component_type]

            registration = self._factories.get(component_type)
            if registration is None:
                raise ComponentNotRegisteredError(
                    f"No component registered for {component_type.__qualname__}"
                )

            factory, scope = registration
            try:
                instance = factory()
            except Exception as exc:
                raise ComponentCreationError(
                    f"Factory for {component_type.__qualname__} failed: {exc}"
                ) from exc

            if scope is Scope.SINGLETON:
                self._instances[component_type] = instance
                del self._factories[component_type]
                logger.debug("Created singleton %s", component_type.__qualname__)
            return instance

    def get_flippable(self, component_type: type[T], dispatcher: FlipDispatcher) -> FlipProxy:
        """Resolve *component_type* and wrap it so its calls go through *dispatcher*."""
        from flipwire.core.interception import FlipProxy

        return FlipProxy(self.resolve(component_type), dispatcher)
