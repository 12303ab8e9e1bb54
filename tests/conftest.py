"""Shared test fixtures for flipwire."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from flip_fixtures import FlipSource, FlipTarget
from flipwire.core.container import ComponentRegistry
from flipwire.core.dispatch import FlipDispatcher
from flipwire.core.interception import describe_call
from flipwire.models.call import CallDescriptor


@pytest.fixture
def registry() -> ComponentRegistry:
    """A registry holding one ``FlipTarget`` singleton."""
    registry = ComponentRegistry()
    registry.register_instance(FlipTarget, FlipTarget())
    return registry


@pytest.fixture
def dispatcher(registry: ComponentRegistry) -> FlipDispatcher:
    """A dispatcher reading ``@flip_bean_with`` declarations."""
    return FlipDispatcher(registry)


@pytest.fixture
def make_call() -> Callable[..., CallDescriptor]:
    """Factory fixture: describe a call whose ``proceed`` is a ``MagicMock``.

    The mock is reachable as ``call.proceed`` and returns ``"ORIGINAL"``
    unless ``proceed`` is passed explicitly.
    """

    def _factory(
        declaring_type: type = FlipSource,
        method_name: str = "map",
        args: tuple[Any, ...] = ("Input",),
        kwargs: dict[str, Any] | None = None,
        proceed: Any = None,
    ) -> CallDescriptor:
        if proceed is None:
            proceed = MagicMock(return_value="ORIGINAL")
        return describe_call(declaring_type, method_name, args, kwargs or {}, proceed)

    return _factory
