"""Bind view commands and events to methods on an action target.

A view declares "call method M" on a control; the action resolves M on
whatever object is currently the control's actionTarget (normally its view
model), follows changes of that target, and applies the configured behaviour
when the target is None or has no such method.

- Commands: `CommandAction` (canExecute / execute)
- Events: `EventAction.handler()`
- Declarative entry point: `ActionSpec` + `build_action` / `bind_action`
"""

from .action_base import ActionDispatcher, DispatchState
from .action_extension import (
    ActionSpec,
    AttachedEventSlot,
    CommandSlot,
    EventSlot,
    SlotKind,
    bind_action,
    build_action,
    describe_slot,
)
from .behaviour import PolicyContext, UnavailableBehaviour, effective_policy
from .command_action import CommandAction
from .errors import (
    ActionBindingError,
    ActionError,
    ActionNotFoundError,
    AmbiguousMatchError,
    SignatureInvalidError,
    TargetNotSetError,
    TargetNullError,
)
from .event_action import EventAction, EventShape
from .resolver import MethodResolver, ResolvedMethod, action, default_resolver
from .view import INITIAL_ACTION_TARGET, TargetState, View, target_state

__all__ = [
    "INITIAL_ACTION_TARGET",
    "ActionBindingError",
    "ActionDispatcher",
    "ActionError",
    "ActionNotFoundError",
    "ActionSpec",
    "AmbiguousMatchError",
    "AttachedEventSlot",
    "CommandAction",
    "CommandSlot",
    "DispatchState",
    "EventAction",
    "EventShape",
    "EventSlot",
    "MethodResolver",
    "PolicyContext",
    "ResolvedMethod",
    "SignatureInvalidError",
    "SlotKind",
    "TargetNotSetError",
    "TargetNullError",
    "TargetState",
    "UnavailableBehaviour",
    "View",
    "action",
    "bind_action",
    "build_action",
    "default_resolver",
    "describe_slot",
    "effective_policy",
    "target_state",
]
