"""Explicit interception — route calls on flippable components through a dispatcher.

Two ways in:

* ``FlipProxy`` wraps a component instance.  Public methods declared on a
  type the dispatcher knows about are routed through
  ``FlipDispatcher.handle``; everything else passes straight through.
* ``@flippable(dispatcher)`` marks individual methods at the definition
  site.  Every call to a marked method goes through ``handle``, so a
  marked method on an undeclared class fails with
  ``ConfigurationIntegrityError``.

Both build a ``CallDescriptor`` per call with ``describe_call``.  The
declaring type is the class whose body defines the method, so inherited
methods are judged by their own class's declaration.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any

from flipwire.core.dispatch import FlipDispatcher
from flipwire.core.introspection import defining_class, member_parameter_types, method_signature
from flipwire.models.call import CallDescriptor

logger = logging.getLogger(__name__)


def describe_call(
    declaring_type: type,
    method_name: str,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
    proceed: Callable[[], Any],
) -> CallDescriptor:
    """Snapshot one invocation of ``declaring_type.method_name``."""
    return CallDescriptor(
        declaring_type=declaring_type,
        method_name=method_name,
        parameter_types=member_parameter_types(declaring_type, method_name) or (),
        signature=method_signature(declaring_type, method_name),
        args=tuple(args),
        kwargs=dict(kwargs),
        proceed=proceed,
    )


class FlipProxy:
    """Wraps a component so calls to its flippable methods go through a dispatcher.

    Attribute reads other than public methods (private names, data
    attributes, properties) are served by the target directly.

    Examples
    --------
    >>> proxy = FlipProxy(source, dispatcher)  # doctest: +SKIP
    >>> proxy.map("x")                          # doctest: +SKIP
    'x:TARGET'
    """

    def __init__(self, target: Any, dispatcher: FlipDispatcher) -> None:
        self._flip_target = target
        self._flip_dispatcher = dispatcher

    @property
    def flip_target(self) -> Any:
        """The wrapped component."""
        return self._flip_target

    def __getattr__(self, name: str) -> Any:
        target = self._flip_target
        value = getattr(target, name)
        if name.startswith("_") or not callable(value):
            return value

        declaring_type = defining_class(type(target), name)
        if declaring_type is None or member_parameter_types(declaring_type, name) is None:
            return value
        if not self._flip_dispatcher.intercepts(declaring_type):
            return value

        dispatcher = self._flip_dispatcher

        @functools.wraps(value)
        def intercepted(*args: Any, **kwargs: Any) -> Any:
            call = describe_call(
                declaring_type, name, args, kwargs,
                proceed=lambda: value(*args, **kwargs),
            )
            return dispatcher.handle(call)

        return intercepted

    def __repr__(self) -> str:
        return f"FlipProxy({self._flip_target!r})"


class _FlippableMethod:
    """Method descriptor installed by ``@flippable``."""

    def __init__(
        self,
        func: Callable[..., Any],
        dispatcher: FlipDispatcher | Callable[[], FlipDispatcher],
    ) -> None:
        self._func = func
        self._dispatcher = dispatcher
        self._owner: type | None = None
        self._name = func.__name__
        functools.update_wrapper(self, func)

    def __set_name__(self, owner: type, name: str) -> None:
        self._owner = owner
        self._name = name

    def _get_dispatcher(self) -> FlipDispatcher:
        if isinstance(self._dispatcher, FlipDispatcher):
            return self._dispatcher
        return self._dispatcher()

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        bound = self._func.__get__(instance, owner)
        declaring_type = self._owner if self._owner is not None else type(instance)
        name = self._name

        @functools.wraps(self._func)
        def intercepted(*args: Any, **kwargs: Any) -> Any:
            dispatcher = self._get_dispatcher()
            call = describe_call(
                declaring_type, name, args, kwargs,
                proceed=lambda: bound(*args, **kwargs),
            )
            return dispatcher.handle(call)

        return intercepted


def flippable(
    dispatcher: FlipDispatcher | Callable[[], FlipDispatcher],
) -> Callable[[Callable[..., Any]], Any]:
    """Route calls to the decorated method through *dispatcher*.

    *dispatcher* may be the dispatcher itself or a zero-argument callable
    returning it, for dispatchers built after the class is defined.

    Examples
    --------
    >>> @flip_bean_with(NewBilling)               # doctest: +SKIP
    ... class Billing:
    ...     @flippable(lambda: app.dispatcher)
    ...     def charge(self, amount: int) -> str:
    ...         ...
    """

    def decorator(func: Callable[..., Any]) -> Any:
        return _FlippableMethod(func, dispatcher)

    return decorator
