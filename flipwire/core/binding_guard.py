"""Binding guard — checks alternates can stand in for their sources.

Run once at startup over every declaration.  For each non-self binding,
every public method of the source must have a compatible method on the
alternate.  Violations are collected and reported together, so an
operator sees the whole mismatch in one go instead of one
``RedirectTargetIncompatibleError`` per call at runtime.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from flipwire.config import FlipConfig
from flipwire.core.declarations import BindingTable, import_path_of
from flipwire.core.introspection import locate_method, member_parameter_types, public_methods
from flipwire.models.bindings import AlternateDeclaration

logger = logging.getLogger(__name__)


class BindingValidationError(RuntimeError):
    """Raised when one or more bindings point at an incompatible alternate.

    The application cannot safely route calls with the current bindings.
    """


class BindingFinding(BaseModel):
    """Validation outcome for one declaration."""

    model_config = ConfigDict(frozen=True)

    source: str
    alternate: str
    self_reference: bool = False
    checked_methods: list[str] = Field(default_factory=list)
    missing_methods: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing_methods


def check_binding(
    declaration: AlternateDeclaration,
    *,
    match_parameter_types: bool = True,
) -> BindingFinding:
    """Validate a single declaration without raising."""
    source = import_path_of(declaration.source)
    alternate = import_path_of(declaration.alternate)
    if declaration.is_self_reference:
        return BindingFinding(source=source, alternate=alternate, self_reference=True)

    checked: list[str] = []
    missing: list[str] = []
    for name in public_methods(declaration.source):
        parameter_types = member_parameter_types(declaration.source, name) or ()
        checked.append(name)
        found = locate_method(
            declaration.alternate,
            name,
            parameter_types,
            match_parameter_types=match_parameter_types,
        )
        if found is None:
            missing.append(name)

    return BindingFinding(
        source=source,
        alternate=alternate,
        checked_methods=checked,
        missing_methods=missing,
    )


def binding_report(
    declarations: Iterable[AlternateDeclaration],
    *,
    match_parameter_types: bool = True,
) -> list[BindingFinding]:
    """Findings for every declaration, in the given order."""
    return [
        check_binding(d, match_parameter_types=match_parameter_types)
        for d in declarations
    ]


def validate_bindings(
    declarations: Iterable[AlternateDeclaration],
    *,
    match_parameter_types: bool = True,
) -> list[BindingFinding]:
    """Validate every declaration and raise if any is incompatible.

    Returns
    -------
    list[BindingFinding]
        All findings, when every binding is compatible.

    Raises
    ------
    BindingValidationError
        Listing every source method the alternate cannot serve.
    """
    findings = binding_report(declarations, match_parameter_types=match_parameter_types)

    violations: list[str] = []
    for finding in findings:
        for name in finding.missing_methods:
            violations.append(
                f"{finding.alternate} has no method compatible with "
                f"{finding.source}.{name}"
            )

    if violations:
        msg = "Binding validation failed.\n" + "\n".join(f"  - {v}" for v in violations)
        logger.critical(msg)
        raise BindingValidationError(msg)

    logger.info("Binding validation passed for %d binding(s).", len(findings))
    return findings


def load_bindings(path: Path | None = None, settings: FlipConfig | None = None) -> BindingTable:
    """Load the bindings file named by *settings* and validate it.

    Parameters
    ----------
    path:
        Bindings file; defaults to ``settings.bindings_path``.
    settings:
        Configuration to use; defaults to the module-level ``config``.
    """
    if settings is None:
        from flipwire.config import config as settings

    table = BindingTable.load(path or settings.bindings_path)
    if settings.validate_on_startup:
        validate_bindings(
            table.list_bindings(),
            match_parameter_types=settings.match_parameter_types,
        )
    return table
