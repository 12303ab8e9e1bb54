"""Call descriptor — immutable snapshot of one intercepted invocation."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CallDescriptor(BaseModel):
    """Everything the dispatcher needs to know about a single call.

    Built by the interceptor for each invocation and discarded once the
    call completes.  ``proceed`` runs the original method with the
    original arguments, exactly as the caller would have without the
    flip layer in between.

    Examples
    --------
    >>> class Greeter:
    ...     def greet(self, name: str) -> str:
    ...         return f"hello {name}"
    >>> g = Greeter()
    >>> call = CallDescriptor(
    ...     declaring_type=Greeter,
    ...     method_name="greet",
    ...     parameter_types=(str,),
    ...     args=("bob",),
    ...     proceed=lambda: g.greet("bob"),
    ... )
    >>> call.qualified_name
    'Greeter.greet'
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    declaring_type: type
    method_name: str
    parameter_types: tuple[Any, ...] = ()
    signature: inspect.Signature | None = None
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = Field(default_factory=dict)
    proceed: Callable[[], Any]

    @property
    def qualified_name(self) -> str:
        """``DeclaringType.method`` for log and error messages."""
        return f"{self.declaring_type.__qualname__}.{self.method_name}"
