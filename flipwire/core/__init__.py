"""flipwire core — declarations, component lookup and the flip dispatcher."""

from flipwire.core.binding_guard import BindingValidationError, load_bindings, validate_bindings
from flipwire.core.container import (
    ComponentCreationError,
    ComponentNotRegisteredError,
    ComponentRegistry,
    ComponentResolver,
    Scope,
)
from flipwire.core.declarations import (
    BindingTable,
    ChainedDeclarationSource,
    ConfigurationIntegrityError,
    flip_bean_with,
)
from flipwire.core.dispatch import (
    FeatureNotEnabledError,
    FlipDispatcher,
    FlipRedirectError,
    RedirectInvocationError,
    RedirectResolutionError,
    RedirectTargetIncompatibleError,
)
from flipwire.core.interception import FlipProxy, flippable

__all__ = [
    "BindingTable",
    "BindingValidationError",
    "ChainedDeclarationSource",
    "ComponentCreationError",
    "ComponentNotRegisteredError",
    "ComponentRegistry",
    "ComponentResolver",
    "ConfigurationIntegrityError",
    "FeatureNotEnabledError",
    "FlipDispatcher",
    "FlipProxy",
    "FlipRedirectError",
    "RedirectInvocationError",
    "RedirectResolutionError",
    "RedirectTargetIncompatibleError",
    "Scope",
    "flip_bean_with",
    "flippable",
    "load_bindings",
    "validate_bindings",
]
