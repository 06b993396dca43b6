from __future__ import annotations

import contextlib
from typing import Any

from PySide6.QtCore import Property, QObject, Signal, Slot

from .action_base import ActionDispatcher
from .behaviour import UnavailableBehaviour
from .errors import SignatureInvalidError
from .logger import get_logger
from .resolver import MethodResolver, ResolvedMethod
from .view import INITIAL_ACTION_TARGET

_logger = get_logger("command")


def guard_names(method_name: str) -> tuple[str, ...]:
    """Guard property names checked for `method_name`: can_save / canSave."""
    camel = "can" + method_name[:1].upper() + method_name[1:]
    return (f"can_{method_name}", camel)


class CommandAction(QObject):
    """Command bound to a method on the action target.

    QML/Python bind to `canExecute()` / `execute(parameter)` and listen to
    `canExecuteChanged`. If the target has a guard property (`can_<method>` or
    `can<Method>`), the command is only enabled while it is truthy; a matching
    `<guard>Changed` signal keeps enablement current.
    """

    canExecuteChanged = Signal()

    def __init__(
        self,
        method_name: str,
        target_null_behaviour: UnavailableBehaviour,
        action_not_found_behaviour: UnavailableBehaviour,
        parent: QObject | None = None,
        *,
        resolver: MethodResolver | None = None,
    ) -> None:
        super().__init__(parent)
        self._guard_name: str | None = None
        self._guard_signal: Any = None
        self._dispatcher = ActionDispatcher(
            method_name,
            target_null_behaviour,
            action_not_found_behaviour,
            validator=self._assert_method_signature,
            resolver=resolver,
        )
        self._dispatcher.add_refresh_listener(self._on_target_changed)
        self._dispatcher.reference.add_listener(self._on_reference_changed)

    @classmethod
    def observing(
        cls,
        subject: Any,
        backup_subject: Any,
        method_name: str,
        target_null_behaviour: UnavailableBehaviour,
        action_not_found_behaviour: UnavailableBehaviour,
        **kwargs: Any,
    ) -> CommandAction:
        """Command that follows subject.actionTarget (falling back to backup_subject)."""
        command = cls(method_name, target_null_behaviour, action_not_found_behaviour, **kwargs)
        command._dispatcher.observe(subject, backup_subject)
        return command

    @classmethod
    def with_target(
        cls,
        target: Any,
        method_name: str,
        target_null_behaviour: UnavailableBehaviour,
        action_not_found_behaviour: UnavailableBehaviour,
        **kwargs: Any,
    ) -> CommandAction:
        """Command pinned to an explicit target."""
        command = cls(method_name, target_null_behaviour, action_not_found_behaviour, **kwargs)
        command._dispatcher.fix(target)
        return command

    @property
    def dispatcher(self) -> ActionDispatcher:
        return self._dispatcher

    @property
    def guard_name(self) -> str | None:
        return self._guard_name

    def _get_method_name(self) -> str:
        return self._dispatcher.method_name

    methodName = Property(str, _get_method_name, constant=True)  # type: ignore[arg-type]

    # ---- target changes ----
    def _assert_method_signature(self, method: ResolvedMethod, target_type: type) -> None:
        if method.required_count > 1 or method.required_keyword_only:
            e = SignatureInvalidError(
                f"Method {self._dispatcher.method_name} on {target_type.__name__} must have zero or one parameters"
            )
            _logger.error("%s", e)
            raise e

    def _on_target_changed(self, old_target: Any, new_target: Any) -> None:  # noqa: ARG002
        self._disconnect_guard()
        if self._dispatcher.target_method is not None and not isinstance(new_target, type):
            self._connect_guard(new_target)
        self.canExecuteChanged.emit()

    def _on_reference_changed(self, old_target: Any, new_target: Any) -> None:  # noqa: ARG002
        # Resolution skips the placeholder, so drop the old target's guard here.
        if new_target is INITIAL_ACTION_TARGET:
            self._disconnect_guard()
            self.canExecuteChanged.emit()

    def _connect_guard(self, target: Any) -> None:
        for name in guard_names(self._dispatcher.method_name):
            if not hasattr(target, name) or callable(getattr(target, name)):
                continue
            self._guard_name = name
            signal = getattr(target, f"{name}Changed", None)
            if signal is not None and hasattr(signal, "connect"):
                signal.connect(self._on_guard_changed)
                self._guard_signal = signal
            _logger.debug("guard %s found for %s", name, self._dispatcher.method_name)
            return

    def _disconnect_guard(self) -> None:
        if self._guard_signal is not None:
            # Qt raises if the target (and its signal) was already destroyed.
            with contextlib.suppress(RuntimeError, TypeError):
                self._guard_signal.disconnect(self._on_guard_changed)
        self._guard_signal = None
        self._guard_name = None

    def _on_guard_changed(self, *_args: Any) -> None:
        self.canExecuteChanged.emit()

    # ---- command surface ----
    @Slot(result=bool)
    @Slot("QVariant", result=bool)
    def canExecute(self, parameter: Any = None) -> bool:  # noqa: ARG002
        target = self._dispatcher.target

        # Nothing to do until the view assigns actionTarget.
        if target is INITIAL_ACTION_TARGET:
            return False

        # THROW was handled when the target changed, so only DISABLE matters here.
        if target is None:
            return self._dispatcher.target_null_behaviour is not UnavailableBehaviour.DISABLE

        if self._dispatcher.target_method is None:
            # THROW will surface on execute(); report unavailable until then.
            return self._dispatcher.action_not_found_behaviour is UnavailableBehaviour.ENABLE

        if self._guard_name is not None:
            return bool(getattr(target, self._guard_name))

        return True

    @Slot()
    @Slot("QVariant")
    def execute(self, parameter: Any = None) -> Any:
        """Invoke the method; returns the watched future for asynchronous methods."""
        self._dispatcher.assert_ready()

        method = self._dispatcher.target_method
        if self._dispatcher.target is None or method is None:
            _logger.debug(
                "execute(%s) ignored: %s is not available on %r",
                parameter,
                self._dispatcher.method_name,
                self._dispatcher.target,
            )
            return None

        params = [parameter] if method.parameter_count >= 1 or method.accepts_varargs else []
        return self._dispatcher.invoke(params)
