"""Binding models — source type to alternate type declarations."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class AlternateDeclaration(BaseModel):
    """Frozen ``source -> alternate`` mapping for one source type.

    A declaration whose alternate is the source itself means "no flip":
    calls on the source proceed untouched.
    """

    model_config = ConfigDict(frozen=True)

    source: type
    alternate: type

    @property
    def is_self_reference(self) -> bool:
        """Whether the declaration routes calls back to the source."""
        return self.alternate is self.source


class BindingRecord(BaseModel):
    """Serializable form of a declaration, as stored in a bindings file.

    Both sides are import paths of the form ``package.module:ClassName``.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    alternate: str
    enabled: bool = True
