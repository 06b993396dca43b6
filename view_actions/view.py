from __future__ import annotations

from enum import Enum
from typing import Any

from PySide6.QtCore import Property, QObject, Signal


class _InitialActionTarget:
    """Placeholder held by actionTarget until the view assigns a real one."""

    _instance: _InitialActionTarget | None = None

    def __new__(cls) -> _InitialActionTarget:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "INITIAL_ACTION_TARGET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _InitialActionTarget:
        return self

    def __deepcopy__(self, memo: dict) -> _InitialActionTarget:
        return self


INITIAL_ACTION_TARGET = _InitialActionTarget()


class TargetState(Enum):
    UNINITIALIZED = "uninitialized"
    NULL = "null"
    RESOLVED = "resolved"


def target_state(value: Any) -> TargetState:
    if value is INITIAL_ACTION_TARGET:
        return TargetState.UNINITIALIZED
    if value is None:
        return TargetState.NULL
    return TargetState.RESOLVED


class View(QObject):
    """Subject carrying the actionTarget that actions resolve methods on.

    Any QObject with an `actionTarget` property and an `actionTargetChanged`
    signal can serve as a subject; this is the stock one.
    """

    actionTargetChanged = Signal(object)

    def __init__(self, parent: QObject | None = None, action_target: Any = INITIAL_ACTION_TARGET) -> None:
        super().__init__(parent)
        self._action_target = action_target

    def _get_action_target(self) -> Any:
        return self._action_target

    def _set_action_target(self, value: Any) -> None:
        if value is self._action_target:
            return
        self._action_target = value
        self.actionTargetChanged.emit(value)

    actionTarget = Property(object, _get_action_target, _set_action_target, notify=actionTargetChanged)  # type: ignore[arg-type]

    def set_action_target(self, value: Any) -> None:
        self._set_action_target(value)

    def clear_action_target(self) -> None:
        """Return to the uninitialized state (e.g. while a view is being torn down)."""
        self._set_action_target(INITIAL_ACTION_TARGET)
