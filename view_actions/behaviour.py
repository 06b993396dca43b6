from __future__ import annotations

from enum import Enum


class UnavailableBehaviour(Enum):
    """What to do if the target is None, or the method does not exist on it."""

    # Meaning depends on whether this is a command or an event, and on
    # whether it describes the target or the method; see effective_policy().
    DEFAULT = "default"
    # Enable the control anyway; activating it does nothing.
    ENABLE = "enable"
    # Disable the control. Only meaningful for commands.
    DISABLE = "disable"
    THROW = "throw"

    @classmethod
    def parse(cls, value: UnavailableBehaviour | str | None) -> UnavailableBehaviour:
        if value is None:
            return cls.DEFAULT
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown UnavailableBehaviour: {value!r}")


class PolicyContext(Enum):
    COMMAND_NULL_TARGET = "command/null-target"
    COMMAND_ACTION_NOT_FOUND = "command/action-not-found"
    EVENT_NULL_TARGET = "event/null-target"
    EVENT_ACTION_NOT_FOUND = "event/action-not-found"


_DEFAULTS = {
    PolicyContext.COMMAND_ACTION_NOT_FOUND: UnavailableBehaviour.THROW,
    PolicyContext.EVENT_NULL_TARGET: UnavailableBehaviour.ENABLE,
    PolicyContext.EVENT_ACTION_NOT_FOUND: UnavailableBehaviour.THROW,
}


def effective_policy(
    context: PolicyContext,
    configured: UnavailableBehaviour | str | None,
    *,
    design_mode: bool = False,
) -> UnavailableBehaviour:
    """Resolve DEFAULT to the concrete behaviour for `context`.

    A command with no target is disabled, except in design mode where the
    control should look usable.
    """
    behaviour = UnavailableBehaviour.parse(configured)
    if behaviour is not UnavailableBehaviour.DEFAULT:
        return behaviour
    if context is PolicyContext.COMMAND_NULL_TARGET:
        return UnavailableBehaviour.ENABLE if design_mode else UnavailableBehaviour.DISABLE
    return _DEFAULTS[context]
