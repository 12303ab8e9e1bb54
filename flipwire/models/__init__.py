"""flipwire data models — Pydantic v2, frozen (immutable)."""

from flipwire.models.bindings import AlternateDeclaration, BindingRecord
from flipwire.models.call import CallDescriptor

__all__ = [
    # call
    "CallDescriptor",
    # bindings
    "AlternateDeclaration",
    "BindingRecord",
]
