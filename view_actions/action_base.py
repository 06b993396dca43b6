from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

from . import faults
from .behaviour import UnavailableBehaviour
from .errors import ActionNotFoundError, AmbiguousMatchError, TargetNotSetError, TargetNullError
from .logger import get_logger
from .resolver import MethodResolver, ResolvedMethod, default_resolver
from .settings_manager import get_settings
from .target_reference import ActionTargetReference
from .view import INITIAL_ACTION_TARGET

_logger = get_logger("engine")

MethodValidator = Callable[[ResolvedMethod, type], None]


class DispatchState(Enum):
    UNBOUND = "unbound"
    BOUND_NO_METHOD = "bound-no-method"
    BOUND = "bound"


class ActionDispatcher:
    """Resolves a method name on the current action target and invokes it.

    Shared by CommandAction and EventAction. The dispatcher owns the target
    reference and the resolved-method slot; every change of the effective
    target re-runs resolution, and the front end is told through the refresh
    listeners so it can update derived state (command enablement).

    Behaviours passed in are the concrete ones (see behaviour.effective_policy).
    Everything runs on the UI thread; the resolved-method slot is not locked.
    """

    def __init__(
        self,
        method_name: str,
        target_null_behaviour: UnavailableBehaviour,
        action_not_found_behaviour: UnavailableBehaviour,
        *,
        validator: MethodValidator | None = None,
        resolver: MethodResolver | None = None,
    ) -> None:
        if not method_name:
            raise ValueError("method_name is required")
        self._method_name = method_name
        self.target_null_behaviour = target_null_behaviour
        self.action_not_found_behaviour = action_not_found_behaviour
        self._validator = validator
        self._resolver = resolver or default_resolver
        self._target_method: ResolvedMethod | None = None
        self._state = DispatchState.UNBOUND
        self._refresh_listeners: list[Callable[[Any, Any], None]] = []

        self._reference = ActionTargetReference()
        self._reference.add_listener(self.on_target_changed)

    # ---- wiring ----
    def observe(self, subject: Any, backup_subject: Any = None) -> None:
        """Follow subject.actionTarget (and the backup's)."""
        self._reference.observe(subject, backup_subject)

    def fix(self, target: Any) -> None:
        """Use an explicit target instead of following a subject."""
        self._reference.fix(target)

    def add_refresh_listener(self, callback: Callable[[Any, Any], None]) -> None:
        self._refresh_listeners.append(callback)

    # ---- read-only state ----
    @property
    def method_name(self) -> str:
        return self._method_name

    @property
    def reference(self) -> ActionTargetReference:
        return self._reference

    @property
    def subject(self) -> Any:
        return self._reference.subject

    @property
    def target(self) -> Any:
        return self._reference.current()

    @property
    def target_method(self) -> ResolvedMethod | None:
        return self._target_method

    @property
    def state(self) -> DispatchState:
        return self._state

    def target_name(self) -> str:
        target = self.target
        if isinstance(target, type):
            return f"static target {target.__name__}"
        return f"target {type(target).__name__}"

    # ---- resolution ----
    def on_target_changed(self, old_target: Any, new_target: Any) -> None:
        # INITIAL_ACTION_TARGET means the view has not assigned actionTarget yet.
        # Throwing here would trip THROW behaviours during construction; wait
        # until the real value arrives.
        if new_target is INITIAL_ACTION_TARGET:
            return

        target_method: ResolvedMethod | None = None
        if new_target is None:
            if self.target_null_behaviour is UnavailableBehaviour.THROW:
                e = TargetNullError(
                    f"ActionTarget on element {self.subject!r} is None (method name is {self._method_name})"
                )
                _logger.error("%s", e)
                raise e
            _logger.info(
                "ActionTarget on element %r is None (method name is %s), but null target behaviour is not THROW, "
                "so carrying on",
                self.subject,
                self._method_name,
            )
        else:
            static = isinstance(new_target, type)
            target_type = new_target if static else type(new_target)
            try:
                target_method = self._resolver.resolve(new_target, self._method_name)
            except AmbiguousMatchError as inner:
                ex = AmbiguousMatchError(f"Ambiguous match for {self._method_name} method on {target_type.__name__}")
                _logger.error("%s", ex)
                raise ex from inner

            if target_method is None:
                _logger.warning(
                    "Unable to find%s method %s on %s",
                    " static" if static else "",
                    self._method_name,
                    target_type.__name__,
                )
            elif self._validator is not None:
                self._validator(target_method, target_type)

        self._target_method = target_method
        self._state = DispatchState.BOUND if target_method is not None else DispatchState.BOUND_NO_METHOD

        for callback in list(self._refresh_listeners):
            callback(old_target, new_target)

    # ---- invocation ----
    def assert_ready(self) -> None:
        """Raise if invoking now would be a configuration mistake."""
        if self.target is INITIAL_ACTION_TARGET:
            ex = TargetNotSetError(
                f"actionTarget not set on {self.subject!r} (method {self._method_name}). "
                "This probably means the control has not inherited it from a parent, e.g. because it sits in a "
                "popup or menu. Set actionTarget on it explicitly."
            )
            _logger.error("%s", ex)
            raise ex

        # A None target was already handled by the null target behaviour when it arrived.
        target = self.target
        if (
            target is not None
            and self._target_method is None
            and self.action_not_found_behaviour is UnavailableBehaviour.THROW
        ):
            ex = ActionNotFoundError(f"Unable to find method {self._method_name} on {self.target_name()}")
            _logger.error("%s", ex)
            raise ex

    def invoke(self, parameters: Sequence[Any] | None = None) -> Any:
        """Call the resolved method with `parameters`.

        Returns None for synchronous methods. A coroutine runs up to its first
        suspending await before this returns; its future (or any future the
        method returned) is then watched by the fault channel, and failures
        are reported there rather than raised here.
        """
        method = self._target_method
        if method is None:
            ex = ActionNotFoundError(f"No method {self._method_name} resolved on {self.target_name()}")
            _logger.error("%s", ex)
            raise ex

        target = self.target
        args = list(parameters or ())
        rendered = ", ".join(repr(p) for p in args) if args else "none"
        log = _logger.info if get_settings().log_invocations else _logger.debug
        log("Invoking method %s on %s with parameters (%s)", self._method_name, self.target_name(), rendered)

        # Bind now so an in-flight call keeps its receiver after a target change.
        bound = method.bind(target)
        try:
            result = bound(*args)
        except Exception:
            _logger.exception(
                "Failed to invoke method %s on %s with parameters (%s)",
                self._method_name,
                self.target_name(),
                rendered,
            )
            raise

        if faults.is_async_result(result):
            return faults.track(result, f"{self._method_name} on {self.target_name()}")
        return None
