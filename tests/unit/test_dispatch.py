"""Unit tests for FlipDispatcher — route decision and redirected invocation."""

from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import pytest

from flip_fixtures import (
    DisabledTarget,
    FailingTarget,
    FlipSource,
    FlipTarget,
    IncompatibleSource,
    SelfSource,
    Undeclared,
)
from flipwire.core.container import ComponentNotRegisteredError, ComponentRegistry
from flipwire.core.declarations import (
    AnnotationDeclarationSource,
    BindingTable,
    ChainedDeclarationSource,
    ConfigurationIntegrityError,
)
from flipwire.core.dispatch import (
    FeatureNotEnabledError,
    FlipDispatcher,
    FlipRedirectError,
    RedirectInvocationError,
    RedirectResolutionError,
    RedirectTargetIncompatibleError,
)


def _resolver_for(instance: object) -> MagicMock:
    resolver = MagicMock()
    resolver.resolve.return_value = instance
    return resolver


# ---------------------------------------------------------------------------
# Test: self-referencing declaration
# ---------------------------------------------------------------------------


class TestNoFlip:
    """When the alternate is the declaring type, the original call runs."""

    def test_proceeds_with_original_call(self, make_call):
        resolver = MagicMock()
        dispatcher = FlipDispatcher(resolver)
        call = make_call(declaring_type=SelfSource)

        assert dispatcher.handle(call) == "ORIGINAL"
        call.proceed.assert_called_once_with()
        resolver.resolve.assert_not_called()

    def test_returns_real_result_of_source(self, make_call):
        source = SelfSource()
        dispatcher = FlipDispatcher(MagicMock())
        call = make_call(declaring_type=SelfSource, proceed=lambda: source.map("x"))

        assert dispatcher.handle(call) == "x:SELF"

    def test_original_failure_propagates_unchanged(self, make_call):
        error = ValueError("boom")
        proceed = MagicMock(side_effect=error)
        dispatcher = FlipDispatcher(MagicMock())

        with pytest.raises(ValueError) as excinfo:
            dispatcher.handle(make_call(declaring_type=SelfSource, proceed=proceed))
        assert excinfo.value is error

    def test_feature_signal_from_original_propagates(self, make_call):
        signal = FeatureNotEnabledError("off")
        dispatcher = FlipDispatcher(MagicMock())
        call = make_call(declaring_type=SelfSource, proceed=MagicMock(side_effect=signal))

        with pytest.raises(FeatureNotEnabledError) as excinfo:
            dispatcher.handle(call)
        assert excinfo.value is signal


# ---------------------------------------------------------------------------
# Test: redirect
# ---------------------------------------------------------------------------


class TestFlip:
    """When the alternate differs, the alternate method runs instead."""

    def test_redirects_to_alternate(self, make_call, dispatcher):
        call = make_call(args=("x",))

        assert dispatcher.handle(call) == "x:TARGET"
        call.proceed.assert_not_called()

    def test_resolves_alternate_exactly_once(self, make_call):
        target = MagicMock(spec=FlipTarget)
        target.map.return_value = "mocked"
        resolver = _resolver_for(target)
        call = make_call(args=("Input",))

        result = FlipDispatcher(resolver).handle(call)

        assert result == "mocked"
        resolver.resolve.assert_called_once_with(FlipTarget)
        target.map.assert_called_once_with("Input")
        call.proceed.assert_not_called()

    def test_keyword_arguments_are_forwarded(self, make_call, dispatcher):
        call = make_call(args=(), kwargs={"s": "kw"})
        assert dispatcher.handle(call) == "kw:TARGET"

    def test_return_value_is_not_transformed(self, make_call):
        sentinel = object()
        target = MagicMock(spec=FlipTarget)
        target.current_date.return_value = sentinel
        call = make_call(method_name="current_date", args=())

        assert FlipDispatcher(_resolver_for(target)).handle(call) is sentinel

    def test_none_return_value_is_returned(self, make_call):
        target = MagicMock(spec=FlipTarget)
        target.map.return_value = None
        assert FlipDispatcher(_resolver_for(target)).handle(make_call()) is None

    def test_date_method_is_redirected(self, make_call, dispatcher):
        call = make_call(method_name="previous_date", args=())
        assert dispatcher.handle(call) == date(1999, 12, 31)

    def test_identical_calls_give_identical_outcomes(self, make_call, dispatcher):
        first = dispatcher.handle(make_call(args=("x",)))
        second = dispatcher.handle(make_call(args=("x",)))
        assert first == second == "x:TARGET"

    def test_alternate_is_resolved_on_every_call(self, make_call):
        resolver = _resolver_for(FlipTarget())
        dispatcher = FlipDispatcher(resolver)

        dispatcher.handle(make_call())
        dispatcher.handle(make_call())

        assert resolver.resolve.call_count == 2

    def test_registry_changes_take_effect_immediately(self, make_call):
        registry = ComponentRegistry()
        registry.register_instance(FlipTarget, FlipTarget())
        dispatcher = FlipDispatcher(registry)
        assert dispatcher.handle(make_call(args=("a",))) == "a:TARGET"

        replacement = MagicMock(spec=FlipTarget)
        replacement.map.return_value = "replaced"
        registry.register_instance(FlipTarget, replacement)

        assert dispatcher.handle(make_call(args=("a",))) == "replaced"


# ---------------------------------------------------------------------------
# Test: failures
# ---------------------------------------------------------------------------


class TestMissingDeclaration:
    def test_undeclared_type_fails_fast(self, make_call):
        resolver = MagicMock()
        call = make_call(declaring_type=Undeclared)

        with pytest.raises(ConfigurationIntegrityError, match="Undeclared"):
            FlipDispatcher(resolver).handle(call)
        resolver.resolve.assert_not_called()
        call.proceed.assert_not_called()


class TestResolutionFailure:
    def test_unregistered_alternate_is_wrapped(self, make_call):
        call = make_call()

        with pytest.raises(RedirectResolutionError) as excinfo:
            FlipDispatcher(ComponentRegistry()).handle(call)

        assert isinstance(excinfo.value.__cause__, ComponentNotRegisteredError)
        assert "FlipTarget" in str(excinfo.value)
        call.proceed.assert_not_called()

    def test_generic_resolver_error_is_wrapped(self, make_call):
        resolver = MagicMock()
        resolver.resolve.side_effect = KeyError("FlipTarget")

        with pytest.raises(RedirectResolutionError):
            FlipDispatcher(resolver).handle(make_call())


class TestIncompatibleTarget:
    def test_missing_method_is_incompatible(self, make_call):
        target = MagicMock(spec=FlipTarget)
        call = make_call(method_name="next_date", args=())

        with pytest.raises(RedirectTargetIncompatibleError, match="next_date"):
            FlipDispatcher(_resolver_for(target)).handle(call)

        call.proceed.assert_not_called()
        assert target.mock_calls == []

    def test_parameter_type_mismatch_is_incompatible(self, make_call, dispatcher):
        call = make_call(declaring_type=IncompatibleSource, args=(1,))

        with pytest.raises(RedirectTargetIncompatibleError):
            dispatcher.handle(call)
        call.proceed.assert_not_called()

    def test_loose_matching_accepts_same_arity(self, make_call, registry):
        dispatcher = FlipDispatcher(registry, match_parameter_types=False)
        call = make_call(declaring_type=IncompatibleSource, args=("1",))

        assert dispatcher.handle(call) == "1:TARGET"

    def test_incompatible_is_a_redirect_error(self):
        assert issubclass(RedirectTargetIncompatibleError, FlipRedirectError)


class TestInvocationFailure:
    def _dispatcher(self, alternate: type, instance: object) -> FlipDispatcher:
        table = BindingTable()
        table.bind(FlipSource, alternate)
        return FlipDispatcher(_resolver_for(instance), table)

    def test_feature_signal_passes_through_unwrapped(self, make_call):
        target = DisabledTarget()
        dispatcher = self._dispatcher(DisabledTarget, target)

        with pytest.raises(FeatureNotEnabledError) as excinfo:
            dispatcher.handle(make_call())

        assert excinfo.value is DisabledTarget.signal
        assert excinfo.value.feature == "map"

    def test_other_failure_is_wrapped_with_cause(self, make_call):
        dispatcher = self._dispatcher(FailingTarget, FailingTarget())

        with pytest.raises(RedirectInvocationError) as excinfo:
            dispatcher.handle(make_call())

        cause = excinfo.value.cause
        assert isinstance(cause, RuntimeError)
        assert str(cause) == "test"
        assert excinfo.value.__cause__ is cause

    def test_wrapped_failure_is_not_the_signal(self, make_call):
        dispatcher = self._dispatcher(FailingTarget, FailingTarget())

        with pytest.raises(FlipRedirectError) as excinfo:
            dispatcher.handle(make_call())
        assert not isinstance(excinfo.value, FeatureNotEnabledError)

    def test_original_not_invoked_when_alternate_fails(self, make_call):
        dispatcher = self._dispatcher(FailingTarget, FailingTarget())
        call = make_call()

        with pytest.raises(RedirectInvocationError):
            dispatcher.handle(call)
        call.proceed.assert_not_called()

    def test_repeated_failure_gives_same_error_kind(self, make_call):
        dispatcher = self._dispatcher(FailingTarget, FailingTarget())
        kinds = []
        for _ in range(2):
            with pytest.raises(RedirectInvocationError) as excinfo:
                dispatcher.handle(make_call())
            kinds.append(type(excinfo.value))
        assert kinds[0] is kinds[1]


class TestDeclarationSources:
    def test_empty_binding_table_ignores_class_decorator(self, make_call):
        table = BindingTable()
        dispatcher = FlipDispatcher(MagicMock(), table)

        with pytest.raises(ConfigurationIntegrityError):
            dispatcher.handle(make_call())

    def test_chained_table_overrides_class_decorator(self, make_call, registry):
        table = BindingTable()
        table.bind(SelfSource, FlipTarget)
        source = ChainedDeclarationSource([table, AnnotationDeclarationSource()])
        dispatcher = FlipDispatcher(registry, source)

        assert dispatcher.handle(make_call(declaring_type=SelfSource, args=("x",))) == "x:TARGET"
        assert dispatcher.handle(make_call(args=("y",))) == "y:TARGET"
        with pytest.raises(ConfigurationIntegrityError):
            dispatcher.handle(make_call(declaring_type=Undeclared))

    def test_intercepts_reports_declared_types(self, dispatcher):
        assert dispatcher.intercepts(FlipSource) is True
        assert dispatcher.intercepts(SelfSource) is True
        assert dispatcher.intercepts(Undeclared) is False


class TestTypeCheckingOnlyImports:
    """A source importing a parameter type only for type checking still flips."""

    def test_redirects_to_alternate_with_same_signature(self, make_call):
        from decimal import Decimal

        from flip_fixtures import PaymentTarget
        from flip_payments import PaymentSource

        registry = ComponentRegistry()
        registry.register_instance(PaymentTarget, PaymentTarget())
        call = make_call(
            declaring_type=PaymentSource,
            method_name="pay",
            args=(None, Decimal("9.99")),
        )

        assert FlipDispatcher(registry).handle(call) == "target"
        call.proceed.assert_not_called()


class TestVirtualDispatch:
    """The alternate method is looked up on the resolved instance."""

    def test_subclass_registered_for_alternate_runs_its_override(self, make_call):
        class TunedTarget(FlipTarget):
            def map(self, s: str) -> str:
                return s + ":TUNED"

        registry = ComponentRegistry()
        registry.register_instance(FlipTarget, TunedTarget())

        assert FlipDispatcher(registry).handle(make_call(args=("x",))) == "x:TUNED"
