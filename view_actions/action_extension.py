"""Declarative entry point: turn an action declaration into a command or handler.

    spec = ActionSpec("save", null_target="enable")
    bind_action(spec, save_button, "command", root=shell_view)
    bind_action(spec, editor, "textChanged", root=shell_view)
"""

from __future__ import annotations

import inspect
import typing
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .behaviour import PolicyContext, UnavailableBehaviour, effective_policy
from .command_action import CommandAction
from .errors import ActionBindingError
from .event_action import EventAction, EventShape
from .logger import get_logger
from .resolver import MethodResolver
from .settings_manager import in_design_mode

_logger = get_logger("extension")

_SPEC_KEYS = {
    "method": "method",
    "target": "target",
    "null_target": "null_target",
    "nullTarget": "null_target",
    "action_not_found": "action_not_found",
    "actionNotFound": "action_not_found",
}


@dataclass
class ActionSpec:
    """An action as declared by the view: method name, optional target, behaviours."""

    method: str | None = None
    target: Any = None
    null_target: UnavailableBehaviour = UnavailableBehaviour.DEFAULT
    action_not_found: UnavailableBehaviour = UnavailableBehaviour.DEFAULT

    def __post_init__(self) -> None:
        self.null_target = UnavailableBehaviour.parse(self.null_target)
        self.action_not_found = UnavailableBehaviour.parse(self.action_not_found)

    @classmethod
    def parse(cls, text: str) -> ActionSpec:
        """Build from the short string form: ``"save"`` or ``"save, nullTarget=enable"``."""
        method, *options = (part.strip() for part in text.split(","))
        if "=" in method:
            raise ActionBindingError(f"Action {text!r} must start with the method name")
        data: dict[str, Any] = {"method": method or None}
        for option in options:
            key, sep, value = option.partition("=")
            if not sep:
                raise ActionBindingError(f"Action option {option!r} is not of the form key=value")
            data[key.strip()] = value.strip()
        return cls.from_mapping(data)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ActionSpec:
        """Build from a dict such as QML or JSON would provide (camelCase accepted)."""
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _SPEC_KEYS.get(key)
            if name is None:
                raise ActionBindingError(f"Unknown action option {key!r}")
            kwargs[name] = value
        return cls(**kwargs)

    def command_null_target_behaviour(self, design_mode: bool = False) -> UnavailableBehaviour:
        return effective_policy(PolicyContext.COMMAND_NULL_TARGET, self.null_target, design_mode=design_mode)

    def command_action_not_found_behaviour(self) -> UnavailableBehaviour:
        return effective_policy(PolicyContext.COMMAND_ACTION_NOT_FOUND, self.action_not_found)

    def event_null_target_behaviour(self) -> UnavailableBehaviour:
        return effective_policy(PolicyContext.EVENT_NULL_TARGET, self.null_target)

    def event_action_not_found_behaviour(self) -> UnavailableBehaviour:
        return effective_policy(PolicyContext.EVENT_ACTION_NOT_FOUND, self.action_not_found)


class SlotKind(Enum):
    COMMAND = "command"
    EVENT = "event"
    ATTACHED_EVENT = "attached-event"


@dataclass(frozen=True)
class CommandSlot:
    """A property that takes a command object."""

    name: str
    kind: SlotKind = field(default=SlotKind.COMMAND, init=False)


@dataclass(frozen=True)
class EventSlot:
    """A signal (or other event source) that takes a handler."""

    name: str
    shape: EventShape = field(default_factory=EventShape)
    kind: SlotKind = field(default=SlotKind.EVENT, init=False)


@dataclass(frozen=True)
class AttachedEventSlot:
    """A registration function `adder(element, handler)`.

    The handler shape is read from the annotation of the second parameter,
    e.g. ``def add_drop_handler(element, handler: Callable[[object, DropEvent], None])``.
    """

    adder: Callable[..., Any]
    kind: SlotKind = field(default=SlotKind.ATTACHED_EVENT, init=False)


ActionSlot = CommandSlot | EventSlot | AttachedEventSlot


def describe_slot(obj: Any, name: str) -> CommandSlot | EventSlot:
    """Work out from the Qt meta object whether `name` is a signal or a property."""
    try:
        return EventSlot(name, EventShape.from_signal(obj, name))
    except ValueError:
        pass
    if obj.metaObject().indexOfProperty(name) >= 0:
        return CommandSlot(name)
    raise ActionBindingError(f"{type(obj).__name__}.{name} is neither a signal nor a property")


def attached_event_shape(adder: Callable[..., Any]) -> EventShape:
    try:
        params = list(inspect.signature(adder).parameters.values())
    except (TypeError, ValueError) as e:
        raise ActionBindingError(f"Cannot inspect attached event adder {adder!r}") from e
    if len(params) != 2:  # noqa: PLR2004
        raise ActionBindingError(
            "Action used with an attached event (or something similar) which didn't follow the normal pattern"
        )
    try:
        hints = typing.get_type_hints(adder)
    except (NameError, TypeError):
        hints = {}
    annotation = hints.get(params[1].name, params[1].annotation)
    try:
        return EventShape.from_callable_annotation(annotation)
    except ValueError as e:
        raise ActionBindingError(f"Cannot derive a handler shape from {adder!r}: {e}") from e


def _create_command(
    spec: ActionSpec, subject: Any, root: Any, design_mode: bool, resolver: MethodResolver | None
) -> CommandAction:
    null_behaviour = spec.command_null_target_behaviour(design_mode)
    missing_behaviour = spec.command_action_not_found_behaviour()
    parent = subject if hasattr(subject, "metaObject") else None
    if spec.target is None:
        return CommandAction.observing(
            subject, root, spec.method, null_behaviour, missing_behaviour, parent=parent, resolver=resolver
        )
    return CommandAction.with_target(
        spec.target, spec.method, null_behaviour, missing_behaviour, parent=parent, resolver=resolver
    )


def _create_event(
    spec: ActionSpec, subject: Any, root: Any, shape: EventShape, resolver: MethodResolver | None
) -> EventAction:
    null_behaviour = spec.event_null_target_behaviour()
    missing_behaviour = spec.event_action_not_found_behaviour()
    if spec.target is None:
        return EventAction.observing(
            subject, root, spec.method, shape, null_behaviour, missing_behaviour, resolver=resolver
        )
    return EventAction.with_target(spec.target, spec.method, shape, null_behaviour, missing_behaviour, resolver=resolver)


def build_action(
    spec: ActionSpec,
    subject: Any,
    slot: ActionSlot,
    root: Any = None,
    *,
    design_mode: bool | None = None,
    resolver: MethodResolver | None = None,
) -> Any:
    """Return a CommandAction for command slots, or a handler for event slots.

    Without an explicit `spec.target` the action follows `subject.actionTarget`,
    with `root` (normally the view the subject lives in) as the backup subject.
    """
    if not spec.method:
        raise ActionBindingError("Method has not been set")

    if root is subject:
        root = None

    if isinstance(slot, CommandSlot):
        design = in_design_mode() if design_mode is None else design_mode
        return _create_command(spec, subject, root, design, resolver)

    if isinstance(slot, EventSlot):
        return _create_event(spec, subject, root, slot.shape, resolver).handler()

    if isinstance(slot, AttachedEventSlot):
        shape = attached_event_shape(slot.adder)
        return _create_event(spec, subject, root, shape, resolver).handler()

    raise ActionBindingError("Can only use an action with a command property or an event")


def bind_action(
    spec: ActionSpec | str,
    subject: Any,
    slot: ActionSlot | str,
    root: Any = None,
    **kwargs: Any,
) -> Any:
    """Build the action and attach it to `slot` on `subject`."""
    if isinstance(spec, str):
        spec = ActionSpec(spec)
    if isinstance(slot, str):
        slot = describe_slot(subject, slot)

    value = build_action(spec, subject, slot, root, **kwargs)

    if isinstance(slot, CommandSlot):
        setattr(subject, slot.name, value)
    elif isinstance(slot, EventSlot):
        getattr(subject, slot.name).connect(value)
    else:
        slot.adder(subject, value)

    _logger.debug("bound %s to %s.%s", spec.method, type(subject).__name__, getattr(slot, "name", slot.kind.value))
    return value
