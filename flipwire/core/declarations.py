"""Alternate declarations — where a source type says what to flip to.

Two sources of declarations exist:

* the ``@flip_bean_with(Alternate)`` class decorator, which attaches an
  ``AlternateDeclaration`` to the decorated class, and
* a ``BindingTable``, an explicit mapping supplied at construction or
  loaded from a JSON bindings file at startup.

The dispatcher only sees the ``DeclarationSource`` protocol and issues a
single read-only query per call: "what is the declared alternate for this
declaring type?".
"""

from __future__ import annotations

import importlib
import json
import logging
import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Protocol, TypeVar, runtime_checkable

from flipwire.models.bindings import AlternateDeclaration, BindingRecord

logger = logging.getLogger(__name__)

DECLARATION_ATTR = "__flip_bean_with__"

T = TypeVar("T", bound=type)


class ConfigurationIntegrityError(RuntimeError):
    """Raised when a declaration the flip layer relies on is missing or broken.

    Interception is only applied to declared types, so hitting this at
    call time means the wiring itself is wrong.  It is never retried.
    """


@runtime_checkable
class DeclarationSource(Protocol):
    """Anything that can answer "declared alternate for this type"."""

    def find(self, declaring_type: type) -> AlternateDeclaration | None:
        """Return the declaration for *declaring_type*, or ``None``."""
        ...


# ---------------------------------------------------------------------------
# Class decorator
# ---------------------------------------------------------------------------


def flip_bean_with(alternate: type) -> Callable[[T], T]:
    """Declare the alternate implementation for the decorated class.

    Examples
    --------
    >>> class Target:
    ...     def map(self, s: str) -> str:
    ...         return s + ":TARGET"
    >>> @flip_bean_with(Target)
    ... class Source:
    ...     def map(self, s: str) -> str:
    ...         return s + ":SOURCE"
    >>> find_declaration(Source).alternate is Target
    True
    """
    if not isinstance(alternate, type):
        raise TypeError(f"flip_bean_with expects a class, got {alternate!r}")

    def decorator(cls: T) -> T:
        declaration = AlternateDeclaration(source=cls, alternate=alternate)
        setattr(cls, DECLARATION_ATTR, declaration)
        logger.debug("Declared %s -> %s", cls.__qualname__, alternate.__qualname__)
        return cls

    return decorator


def find_declaration(cls: type) -> AlternateDeclaration | None:
    """Return the nearest declaration on *cls* or one of its bases."""
    for klass in cls.__mro__:
        declaration = vars(klass).get(DECLARATION_ATTR)
        if isinstance(declaration, AlternateDeclaration):
            return declaration
    return None


class AnnotationDeclarationSource:
    """``DeclarationSource`` backed by ``@flip_bean_with`` metadata."""

    def find(self, declaring_type: type) -> AlternateDeclaration | None:
        return find_declaration(declaring_type)


class ChainedDeclarationSource:
    """Consult several declaration sources in order; first hit wins."""

    def __init__(self, sources: Iterable[DeclarationSource]) -> None:
        self._sources = list(sources)

    def find(self, declaring_type: type) -> AlternateDeclaration | None:
        for source in self._sources:
            declaration = source.find(declaring_type)
            if declaration is not None:
                return declaration
        return None


# ---------------------------------------------------------------------------
# Import paths
# ---------------------------------------------------------------------------


def import_path_of(cls: type) -> str:
    """``package.module:QualName`` for *cls*."""
    return f"{cls.__module__}:{cls.__qualname__}"


def resolve_import_path(path: str) -> type:
    """Import the class named by ``package.module:QualName``.

    Raises
    ------
    ConfigurationIntegrityError
        If the path is malformed, the module cannot be imported, or the
        named attribute is not a class.
    """
    module_name, sep, qualname = path.partition(":")
    if not sep or not module_name or not qualname:
        raise ConfigurationIntegrityError(
            f"Invalid import path '{path}' (expected 'package.module:ClassName')."
        )
    try:
        obj: object = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationIntegrityError(
            f"Cannot import module '{module_name}' for '{path}': {exc}"
        ) from exc
    for part in qualname.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise ConfigurationIntegrityError(
                f"'{path}' does not name an attribute of '{module_name}'."
            ) from exc
    if not isinstance(obj, type):
        raise ConfigurationIntegrityError(f"'{path}' does not name a class.")
    return obj


# ---------------------------------------------------------------------------
# Explicit binding table
# ---------------------------------------------------------------------------


class BindingTable:
    """Explicit ``source -> alternate`` bindings, resolved once at startup.

    Parameters
    ----------
    declarations:
        Initial declarations to bind.

    Examples
    --------
    >>> class A: ...
    >>> class B: ...
    >>> table = BindingTable()
    >>> _ = table.bind(A, B)
    >>> table.find(A).alternate is B
    True
    >>> table.find(B) is None
    True
    """

    def __init__(self, declarations: Iterable[AlternateDeclaration] = ()) -> None:
        self._lock = threading.RLock()
        self._bindings: dict[type, AlternateDeclaration] = {}
        for declaration in declarations:
            self.bind(declaration.source, declaration.alternate)

    # -- Binding ------------------------------------------------------------

    def bind(self, source: type, alternate: type) -> AlternateDeclaration:
        """Bind *source* to *alternate*.

        Raises
        ------
        ValueError
            If *source* is already bound to a different alternate.  To
            change it, ``unbind`` the source first.
        """
        declaration = AlternateDeclaration(source=source, alternate=alternate)
        with self._lock:
            existing = self._bindings.get(source)
            if existing is not None and existing.alternate is not alternate:
                raise ValueError(
                    f"{source.__qualname__} is already bound to "
                    f"{existing.alternate.__qualname__}.  Unbind it before "
                    f"binding {alternate.__qualname__}."
                )
            self._bindings[source] = declaration
        logger.info("Bound %s -> %s", source.__qualname__, alternate.__qualname__)
        return declaration

    def unbind(self, source: type) -> bool:
        """Remove the binding for *source*.  Returns whether one existed."""
        with self._lock:
            removed = self._bindings.pop(source, None)
        if removed is None:
            logger.warning("Cannot unbind %s: not bound.", source.__qualname__)
            return False
        logger.info("Unbound %s", source.__qualname__)
        return True

    # -- Lookup -------------------------------------------------------------

    def find(self, declaring_type: type) -> AlternateDeclaration | None:
        with self._lock:
            return self._bindings.get(declaring_type)

    def list_bindings(self) -> list[AlternateDeclaration]:
        """All declarations, sorted by source import path."""
        with self._lock:
            declarations = list(self._bindings.values())
        return sorted(declarations, key=lambda d: import_path_of(d.source))

    def __len__(self) -> int:
        with self._lock:
            return len(self._bindings)

    # -- Persistence --------------------------------------------------------

    @classmethod
    def load(cls, path: Path) -> BindingTable:
        """Build a table from a JSON bindings file.

        The file holds a list of records::

            [
              {"source": "app.billing:LegacyBilling",
               "alternate": "app.billing:NewBilling",
               "enabled": true}
            ]

        Disabled records are skipped.  A missing file yields an empty
        table.

        Raises
        ------
        ConfigurationIntegrityError
            If the file is malformed or names a class that cannot be
            imported.
        """
        table = cls()
        if not path.exists():
            logger.debug("No bindings file at %s, starting empty.", path)
            return table

        for record in read_binding_records(path):
            if not record.enabled:
                logger.info("Skipping disabled binding %s -> %s", record.source, record.alternate)
                continue
            source = resolve_import_path(record.source)
            alternate = resolve_import_path(record.alternate)
            try:
                table.bind(source, alternate)
            except ValueError as exc:
                raise ConfigurationIntegrityError(f"{path}: {exc}") from exc

        logger.info("Loaded %d binding(s) from %s.", len(table), path)
        return table

    def persist(self, path: Path) -> None:
        """Write the table to *path* as JSON, creating parent directories."""
        records = [
            BindingRecord(
                source=import_path_of(d.source),
                alternate=import_path_of(d.alternate),
            ).model_dump()
            for d in self.list_bindings()
        ]
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(records, indent=2), encoding="utf-8")
        logger.debug("Persisted %d binding(s) to %s.", len(records), path)


def read_binding_records(path: Path) -> list[BindingRecord]:
    """Parse the records of a bindings file without importing anything."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError("top-level value must be a list of records")
        return [BindingRecord(**item) for item in raw]
    except Exception as exc:
        raise ConfigurationIntegrityError(
            f"Invalid bindings file '{path}': {exc}"
        ) from exc
