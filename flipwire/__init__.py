"""flipwire: flip calls on a component to a declared alternate implementation.

A source class declares its alternate with ``@flip_bean_with(Alternate)``
(or through an explicit ``BindingTable``).  Calls reaching the source
through a ``FlipProxy`` or a ``@flippable`` method are handed to the
``FlipDispatcher``, which either lets the original method run or resolves
the alternate from the component registry and invokes its equivalent
method instead.
"""

__version__ = "0.1.0"
__description__ = "Annotation-driven bean flipping for component registries"

from flipwire.core import (
    BindingTable,
    ComponentRegistry,
    ConfigurationIntegrityError,
    FeatureNotEnabledError,
    FlipDispatcher,
    FlipProxy,
    RedirectInvocationError,
    RedirectResolutionError,
    RedirectTargetIncompatibleError,
    flip_bean_with,
    flippable,
)

__all__ = [
    "BindingTable",
    "ComponentRegistry",
    "ConfigurationIntegrityError",
    "FeatureNotEnabledError",
    "FlipDispatcher",
    "FlipProxy",
    "RedirectInvocationError",
    "RedirectResolutionError",
    "RedirectTargetIncompatibleError",
    "flip_bean_with",
    "flippable",
    "__version__",
]
