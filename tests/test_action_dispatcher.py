from __future__ import annotations

import asyncio

import pytest

pytest.importorskip("PySide6")

from tests.helpers.view_models import AmbiguousViewModel, AsyncViewModel, FakeSubject, ShellViewModel
from view_actions import (
    INITIAL_ACTION_TARGET,
    ActionDispatcher,
    ActionNotFoundError,
    AmbiguousMatchError,
    DispatchState,
    MethodResolver,
    TargetNotSetError,
    TargetNullError,
    UnavailableBehaviour,
)

B = UnavailableBehaviour


def _dispatcher(method: str, null=B.ENABLE, missing=B.THROW, **kwargs) -> ActionDispatcher:
    return ActionDispatcher(method, null, missing, **kwargs)


def test_method_name_is_required():
    with pytest.raises(ValueError, match="method_name"):
        ActionDispatcher("", B.ENABLE, B.THROW)


def test_resolves_on_each_target_change():
    subject = FakeSubject()
    d = _dispatcher("save")
    d.observe(subject)
    assert d.state is DispatchState.UNBOUND
    assert d.target is INITIAL_ACTION_TARGET

    vm = ShellViewModel()
    subject.set(vm)
    assert d.state is DispatchState.BOUND
    assert d.target_method is not None and d.target_method.attribute == "save"

    subject.set(object())
    assert d.state is DispatchState.BOUND_NO_METHOD
    assert d.target_method is None


@pytest.mark.parametrize("prior", ["unbound", "null", "bound", "no-method"])
def test_sentinel_never_triggers_resolution(prior):
    class CountingResolver(MethodResolver):
        calls = 0

        def resolve(self, target, name):
            self.calls += 1
            return super().resolve(target, name)

    resolver = CountingResolver()
    subject = FakeSubject()
    d = _dispatcher("save", null=B.THROW, missing=B.THROW, resolver=resolver)
    d.observe(subject)
    if prior == "null":
        d.target_null_behaviour = B.ENABLE
        subject.set(None)
        d.target_null_behaviour = B.THROW
    elif prior == "bound":
        subject.set(ShellViewModel())
    elif prior == "no-method":
        subject.set(object())
    state_before = d.state
    calls_before = resolver.calls
    refreshes: list = []
    d.add_refresh_listener(lambda old, new: refreshes.append(new))

    subject.set(INITIAL_ACTION_TARGET)
    subject.set(INITIAL_ACTION_TARGET)

    assert resolver.calls == calls_before
    assert d.state is state_before
    assert refreshes == []


def test_null_target_with_throw_fails_at_change_time():
    subject = FakeSubject()
    d = _dispatcher("save", null=B.THROW)
    d.observe(subject)

    with pytest.raises(TargetNullError, match="save"):
        subject.set(None)


def test_null_target_without_throw_carries_on():
    subject = FakeSubject()
    d = _dispatcher("save", null=B.ENABLE)
    d.observe(subject)

    subject.set(None)

    assert d.state is DispatchState.BOUND_NO_METHOD
    assert d.target is None


def test_ambiguous_match_fails_regardless_of_behaviour():
    for missing in (B.ENABLE, B.DISABLE, B.THROW):
        d = _dispatcher("save", missing=missing)
        with pytest.raises(AmbiguousMatchError, match="Ambiguous match for save method on AmbiguousViewModel") as exc:
            d.fix(AmbiguousViewModel())
        assert isinstance(exc.value.__cause__, AmbiguousMatchError)


def test_validator_sees_resolved_method_and_type():
    seen: list = []
    d = _dispatcher("open", validator=lambda method, owner: seen.append((method.attribute, owner)))
    d.fix(ShellViewModel())

    assert seen == [("open", ShellViewModel)]


def test_assert_ready_reports_unset_target():
    d = _dispatcher("save")
    d.observe(FakeSubject())

    with pytest.raises(TargetNotSetError, match="save"):
        d.assert_ready()


def test_assert_ready_reports_missing_method_only_under_throw():
    d = _dispatcher("nope", missing=B.THROW)
    d.fix(ShellViewModel())
    with pytest.raises(ActionNotFoundError, match="Unable to find method nope on target ShellViewModel"):
        d.assert_ready()

    lenient = _dispatcher("nope", missing=B.ENABLE)
    lenient.fix(ShellViewModel())
    lenient.assert_ready()


def test_assert_ready_tolerates_null_target_under_throw():
    subject = FakeSubject()
    d = _dispatcher("save", null=B.ENABLE, missing=B.THROW)
    d.observe(subject)
    subject.set(None)

    assert d.state is DispatchState.BOUND_NO_METHOD
    d.assert_ready()


def test_invoke_calls_bound_method():
    vm = ShellViewModel()
    d = _dispatcher("open")
    d.fix(vm)

    assert d.invoke(["a.txt"]) is None
    assert vm.calls == [("open", "a.txt")]


def test_invoke_static_method_on_type_target():
    ShellViewModel.resets = 0
    d = _dispatcher("reset_all")
    d.fix(ShellViewModel)

    assert d.target_name() == "static target ShellViewModel"
    d.invoke()
    assert ShellViewModel.resets == 1


def test_synchronous_error_keeps_identity():
    d = _dispatcher("explode")
    d.fix(ShellViewModel())

    with pytest.raises(KeyError) as exc:
        d.invoke([])

    assert exc.value.args == ("kablammo",)
    # The callee's frame is still on the traceback.
    assert exc.traceback[-1].name == "explode"


def test_async_failure_reaches_fault_channel_once(event_loop_channel, fault_sink):
    vm = AsyncViewModel("x")
    d = _dispatcher("fail_later")
    d.fix(vm)

    handle = d.invoke([])

    # The call returned before the coroutine ran.
    assert fault_sink == []
    assert not handle.done()

    event_loop_channel.run_until_complete(asyncio.wait([handle]))
    event_loop_channel.run_until_complete(asyncio.sleep(0))

    assert len(fault_sink) == 1
    exc, description = fault_sink[0]
    assert isinstance(exc, ValueError) and str(exc) == "x failed"
    assert description == "fail_later on target AsyncViewModel"


def test_target_change_mid_flight_keeps_original_receiver(event_loop_channel):
    subject = FakeSubject()
    d = _dispatcher("load")
    d.observe(subject)

    x = AsyncViewModel("x")
    x.gate = asyncio.Event()
    subject.set(x)
    in_flight = d.invoke([])
    assert x.started == ["x"] and x.finished == []

    y = AsyncViewModel("y")
    subject.set(y)
    second = d.invoke([])
    # y.load never suspends, so it is complete by the time invoke returns.
    assert second.done()

    x.gate.set()
    event_loop_channel.run_until_complete(asyncio.gather(in_flight, second))

    assert x.finished == ["x"]
    assert y.started == ["y"] and y.finished == ["y"]
