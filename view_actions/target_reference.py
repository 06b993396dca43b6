from __future__ import annotations

from collections.abc import Callable
from typing import Any

from PySide6.QtCore import QObject, Signal

from .logger import get_logger
from .view import INITIAL_ACTION_TARGET

_logger = get_logger("target")


def _read_action_target(subject: Any) -> Any:
    return getattr(subject, "actionTarget", INITIAL_ACTION_TARGET)


def _check_subject(subject: Any, role: str) -> None:
    if not hasattr(subject, "actionTarget") or not hasattr(subject, "actionTargetChanged"):
        raise TypeError(f"{role} {subject!r} has no actionTarget property with an actionTargetChanged signal")


class ActionTargetReference(QObject):
    """Tracks the effective actionTarget of one binding.

    Observes a subject (and optionally a backup subject) and re-emits
    `targetChanged(old, new)` whenever the effective target changes. The
    effective target is the backup's value when one was supplied and it is not
    INITIAL_ACTION_TARGET, otherwise the subject's value.
    """

    targetChanged = Signal(object, object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._subject: Any = None
        self._backup_subject: Any = None
        self._primary_value: Any = INITIAL_ACTION_TARGET
        self._backup_value: Any = INITIAL_ACTION_TARGET
        self._current: Any = INITIAL_ACTION_TARGET
        self._fixed = False
        self._listeners: list[Callable[[Any, Any], None]] = []

    @property
    def subject(self) -> Any:
        return self._subject

    @property
    def backup_subject(self) -> Any:
        return self._backup_subject

    @property
    def is_fixed(self) -> bool:
        return self._fixed

    def add_listener(self, callback: Callable[[Any, Any], None]) -> None:
        """Call `callback(old, new)` synchronously on every effective change.

        Unlike slots connected to targetChanged, exceptions raised by a
        listener propagate to whoever triggered the change.
        """
        self._listeners.append(callback)

    def observe(self, subject: Any, backup_subject: Any = None) -> None:
        if self._subject is not None or self._fixed:
            raise RuntimeError("ActionTargetReference is already wired")
        _check_subject(subject, "subject")
        if backup_subject is not None:
            _check_subject(backup_subject, "backup subject")

        self._subject = subject
        self._backup_subject = backup_subject

        subject.actionTargetChanged.connect(self._on_primary_changed)
        if backup_subject is not None:
            backup_subject.actionTargetChanged.connect(self._on_backup_changed)
            self._backup_value = _read_action_target(backup_subject)
        self._primary_value = _read_action_target(subject)
        self._refresh()

    def fix(self, target: Any) -> None:
        """Pin an explicit target; nothing is observed afterwards."""
        if target is None:
            raise ValueError("explicit action target must not be None")
        if self._subject is not None or self._fixed:
            raise RuntimeError("ActionTargetReference is already wired")
        self._fixed = True
        self._primary_value = target
        self._refresh()

    def current(self) -> Any:
        if self._backup_subject is not None and self._backup_value is not INITIAL_ACTION_TARGET:
            return self._backup_value
        return self._primary_value

    def _on_primary_changed(self, value: Any) -> None:
        self._primary_value = value
        self._refresh()

    def _on_backup_changed(self, value: Any) -> None:
        self._backup_value = value
        self._refresh()

    def _refresh(self) -> None:
        new = self.current()
        old = self._current
        if new is old:
            return
        self._current = new
        _logger.debug("effective action target changed: %r -> %r", old, new)
        for callback in list(self._listeners):
            callback(old, new)
        self.targetChanged.emit(old, new)
