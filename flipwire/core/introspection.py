"""Method introspection — parameter types and redirect target lookup.

Parameter types are taken from resolved annotations with the receiver
(``self`` / ``cls``) dropped, so a method on the source type and one on
the alternate type compare equal when a caller could use them
interchangeably.
"""

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


def _unwrap_member(owner: type, name: str) -> tuple[Callable[..., Any], bool] | None:
    """Return ``(function, takes_receiver)`` for *name* on *owner*, or None.

    Only plain functions, static methods and class methods count as
    methods.  Properties, data attributes and missing names return None.
    """
    try:
        raw = inspect.getattr_static(owner, name)
    except AttributeError:
        return None
    if isinstance(raw, staticmethod):
        return raw.__func__, False
    if isinstance(raw, classmethod):
        return raw.__func__, True
    if inspect.isfunction(raw):
        return raw, True
    # Method descriptors built with functools.update_wrapper (@flippable)
    wrapped = getattr(raw, "__wrapped__", None)
    if inspect.isfunction(wrapped):
        return wrapped, True
    return None


def defining_class(owner: type, name: str) -> type | None:
    """The class in *owner*'s MRO whose body defines *name*."""
    for klass in owner.__mro__:
        if name in vars(klass):
            return klass
    return None


def method_signature(owner: type, name: str) -> inspect.Signature | None:
    """Signature of method *name* on *owner*, receiver included."""
    member = _unwrap_member(owner, name)
    if member is None:
        return None
    return inspect.signature(member[0])


def _resolve_annotation(annotation: Any, globalns: dict[str, Any]) -> Any:
    """Evaluate a string annotation against *globalns*.

    Annotations that cannot be evaluated (names imported only under
    ``TYPE_CHECKING``, locals of an enclosing function) stay strings, with
    any extra layer of quotes removed.
    """
    # A quoted annotation under PEP 563 needs two rounds: "'Name'" -> 'Name' -> Name
    for _ in range(2):
        if not isinstance(annotation, str):
            return annotation
        try:
            annotation = eval(annotation, globalns)  # noqa: S307
        except Exception:  # noqa: BLE001
            break
    if isinstance(annotation, str):
        return annotation.strip("'\"")
    return annotation


def parameter_types_of(func: Callable[..., Any], *, skip_receiver: bool = False) -> tuple[Any, ...]:
    """Return the declared parameter types of *func* in positional order.

    Each annotation is resolved on its own against the function's module
    globals, so one unresolvable parameter does not leave the others as
    raw strings.  Unannotated parameters report ``typing.Any``.
    """
    signature = inspect.signature(func)
    globalns = getattr(inspect.unwrap(func), "__globals__", {})

    params = list(signature.parameters.values())
    if skip_receiver:
        params = params[1:]

    types: list[Any] = []
    for param in params:
        annotation = param.annotation
        if annotation is inspect.Parameter.empty:
            types.append(Any)
            continue
        resolved = _resolve_annotation(annotation, globalns)
        if isinstance(resolved, str):
            logger.debug("Annotation %r of %r left unresolved.", resolved, func)
        types.append(resolved)
    return tuple(types)


def member_parameter_types(owner: type, name: str) -> tuple[Any, ...] | None:
    """Parameter types of method *name* declared on *owner*, or None if absent."""
    member = _unwrap_member(owner, name)
    if member is None:
        return None
    func, takes_receiver = member
    return parameter_types_of(func, skip_receiver=takes_receiver)


_QUALIFIED_NAME = re.compile(r"\b(?:\w+\.)+(\w+)")


def _text_key(annotation: Any) -> str:
    """Module-less text form, for comparisons involving an unresolved annotation."""
    if isinstance(annotation, str):
        text = annotation
    elif isinstance(annotation, type):
        text = annotation.__qualname__
    else:
        text = repr(annotation)
    text = text.replace(" ", "").replace("'", "").replace('"', "")
    return _QUALIFIED_NAME.sub(r"\1", text)


def _same_type(a: Any, b: Any) -> bool:
    if isinstance(a, str) or isinstance(b, str):
        return _text_key(a) == _text_key(b)
    if isinstance(a, type) and isinstance(b, type):
        return a is b or (
            a.__module__ == b.__module__ and a.__qualname__ == b.__qualname__
        )
    return a == b


def same_parameter_types(left: tuple[Any, ...], right: tuple[Any, ...]) -> bool:
    """Whether two parameter type tuples describe the same signature.

    Resolved classes must be the same class.  Only when one side stayed a
    string are both compared by their module-less names.
    """
    if len(left) != len(right):
        return False
    return all(_same_type(a, b) for a, b in zip(left, right))


def locate_method(
    owner: type,
    name: str,
    parameter_types: tuple[Any, ...],
    *,
    match_parameter_types: bool = True,
) -> Callable[..., Any] | None:
    """Find the method on *owner* equivalent to ``name(parameter_types)``.

    Parameters
    ----------
    owner:
        The type to search, usually the alternate implementation.
    name:
        Method name on the source type.
    parameter_types:
        Parameter types of the source method, receiver excluded.
    match_parameter_types:
        When ``False`` only the name and the number of parameters must
        agree.

    Returns
    -------
    Callable | None
        The underlying function, or ``None`` when no compatible method
        exists.
    """
    member = _unwrap_member(owner, name)
    if member is None:
        return None
    func, takes_receiver = member
    candidate = parameter_types_of(func, skip_receiver=takes_receiver)

    if match_parameter_types:
        compatible = same_parameter_types(candidate, parameter_types)
    else:
        compatible = len(candidate) == len(parameter_types)

    if not compatible:
        logger.debug(
            "%s.%s%s does not match expected parameters %s",
            owner.__qualname__, name, candidate, parameter_types,
        )
        return None
    return func


def public_methods(owner: type) -> list[str]:
    """Names of the public methods *owner* defines or inherits, sorted.

    Methods inherited from ``object`` are excluded.
    """
    names: set[str] = set()
    for klass in owner.__mro__:
        if klass is object:
            continue
        for name in vars(klass):
            if name.startswith("_"):
                continue
            if _unwrap_member(owner, name) is not None:
                names.add(name)
    return sorted(names)
