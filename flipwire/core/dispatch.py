"""FlipDispatcher — decides which implementation runs for an intercepted call.

Per call, exactly one of the original method or the alternate method
executes::

    START -> DECLARATION_LOOKUP
          -> PROCEED_ORIGINAL                         (alternate is the source)
          -> RESOLVE_ALTERNATE -> LOCATE_METHOD -> INVOKE
                -> RETURN_VALUE | PROPAGATE_DISABLED_SIGNAL | WRAP_AND_FAIL

Nothing is cached between calls.  The alternate instance and its method
are resolved again on every call, so registry changes take effect
immediately.

Location checks the alternate *type*; the call itself is dispatched
virtually through the resolved instance.  A registered subclass of the
alternate therefore runs its own override, as does a mock standing in
for it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from flipwire.core.container import ComponentResolver
from flipwire.core.declarations import (
    AnnotationDeclarationSource,
    ConfigurationIntegrityError,
    DeclarationSource,
)
from flipwire.core.introspection import locate_method
from flipwire.models.call import CallDescriptor

logger = logging.getLogger(__name__)


class FeatureNotEnabledError(RuntimeError):
    """Raised by an implementation to say "this feature path is switched off".

    The flip layer treats it as a control signal: it reaches the caller
    unchanged and is never wrapped.
    """

    def __init__(self, message: str = "feature not enabled", feature: str | None = None) -> None:
        super().__init__(message)
        self.feature = feature


class FlipRedirectError(RuntimeError):
    """Base class for failures of the redirect path."""


class RedirectResolutionError(FlipRedirectError):
    """Raised when the alternate type cannot be obtained from the registry."""


class RedirectTargetIncompatibleError(FlipRedirectError):
    """Raised when the alternate type has no method matching the source method.

    This is a static mismatch between the two implementations; an
    operator has to fix the binding or the alternate class.
    """


class RedirectInvocationError(FlipRedirectError):
    """Raised when the alternate method fails with anything but the disabled signal.

    The original exception is kept on ``cause`` (and ``__cause__``).
    """

    def __init__(self, message: str, cause: BaseException) -> None:
        super().__init__(message)
        self.cause = cause


class FlipDispatcher:
    """Routes intercepted calls to the source or its declared alternate.

    Parameters
    ----------
    resolver:
        Component lookup used to obtain alternate instances.
    declarations:
        Where alternate declarations are read from.  Defaults to the
        ``@flip_bean_with`` class metadata.
    match_parameter_types:
        When ``False`` the alternate method only needs the same name and
        arity as the source method.
    """

    def __init__(
        self,
        resolver: ComponentResolver,
        declarations: DeclarationSource | None = None,
        *,
        match_parameter_types: bool = True,
    ) -> None:
        self._resolver = resolver
        self._declarations = declarations if declarations is not None else AnnotationDeclarationSource()
        self._match_parameter_types = match_parameter_types

    def intercepts(self, declaring_type: type) -> bool:
        """Whether calls to methods declared on *declaring_type* go through ``handle``."""
        return self._declarations.find(declaring_type) is not None

    def handle(self, call: CallDescriptor) -> Any:
        """Run *call* against the implementation its declaration selects.

        Returns
        -------
        Any
            The return value of whichever method executed, untouched.

        Raises
        ------
        ConfigurationIntegrityError
            If no declaration exists for ``call.declaring_type``.
        RedirectResolutionError
            If the alternate cannot be resolved.
        RedirectTargetIncompatibleError
            If the alternate lacks an equivalent method.
        FeatureNotEnabledError
            Propagated unchanged from the alternate method.
        RedirectInvocationError
            For any other failure of the alternate method.
        """
        declaration = self._declarations.find(call.declaring_type)
        if declaration is None:
            raise ConfigurationIntegrityError(
                f"No alternate declaration for {call.declaring_type.__qualname__} "
                f"(intercepted {call.qualified_name})"
            )

        alternate = declaration.alternate
        if alternate is call.declaring_type:
            logger.debug("No flip for %s", call.qualified_name)
            return call.proceed()

        logger.debug("Flipping %s to %s", call.qualified_name, alternate.__qualname__)
        instance = self._resolve_alternate(call, alternate)
        method = self._locate(call, alternate)
        logger.debug("Located %s for %s", method.__qualname__, call.qualified_name)
        return self._invoke(call, alternate, instance)

    # -- Steps --------------------------------------------------------------

    def _resolve_alternate(self, call: CallDescriptor, alternate: type) -> Any:
        try:
            return self._resolver.resolve(alternate)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Cannot resolve %s to redirect %s: %s",
                alternate.__qualname__, call.qualified_name, exc,
            )
            raise RedirectResolutionError(
                f"Could not obtain {alternate.__qualname__} from the component "
                f"registry to redirect {call.qualified_name}: {exc}"
            ) from exc

    def _locate(self, call: CallDescriptor, alternate: type) -> Callable[..., Any]:
        method = locate_method(
            alternate,
            call.method_name,
            call.parameter_types,
            match_parameter_types=self._match_parameter_types,
        )
        if method is None:
            logger.warning(
                "%s has no method compatible with %s%s",
                alternate.__qualname__, call.qualified_name, call.parameter_types,
            )
            raise RedirectTargetIncompatibleError(
                f"{alternate.__qualname__} has no method '{call.method_name}' with "
                f"parameter types {call.parameter_types} to stand in for "
                f"{call.qualified_name}"
            )
        return method

    def _invoke(self, call: CallDescriptor, alternate: type, instance: Any) -> Any:
        # Looked up on the instance, not the located function: overrides apply.
        try:
            return getattr(instance, call.method_name)(*call.args, **call.kwargs)
        except FeatureNotEnabledError:
            logger.debug("%s.%s reported feature not enabled", alternate.__qualname__, call.method_name)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Redirected call %s.%s failed: %s",
                alternate.__qualname__, call.method_name, exc,
            )
            raise RedirectInvocationError(
                f"Redirected call {alternate.__qualname__}.{call.method_name} "
                f"(from {call.qualified_name}) failed: {exc}",
                cause=exc,
            ) from exc
