from __future__ import annotations

import collections.abc
import typing
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from PySide6.QtCore import QMetaMethod, QObject

from .action_base import ActionDispatcher
from .behaviour import UnavailableBehaviour
from .errors import SignatureInvalidError
from .logger import get_logger
from .resolver import MethodResolver, ResolvedMethod

_logger = get_logger("event")

MAX_EVENT_ARITY = 2


@dataclass(frozen=True)
class EventShape:
    """Call shape of an event handler: 0, 1 or 2 positional arguments.

    Two arguments are conventionally (sender, event data).
    """

    arity: int = 2

    def __post_init__(self) -> None:
        if not 0 <= self.arity <= MAX_EVENT_ARITY:
            raise ValueError(f"event handlers take 0 to {MAX_EVENT_ARITY} arguments, not {self.arity}")

    @classmethod
    def from_signal(cls, obj: QObject, name: str) -> EventShape:
        meta = obj.metaObject()
        for i in range(meta.methodCount()):
            method = meta.method(i)
            if method.methodType() != QMetaMethod.MethodType.Signal:
                continue
            if method.name().data().decode() == name:
                return cls(method.parameterCount())
        raise ValueError(f"{type(obj).__name__} has no signal {name!r}")

    @classmethod
    def from_callable_annotation(cls, annotation: Any) -> EventShape:
        """Shape of `Callable[[A, B], R]`."""
        if typing.get_origin(annotation) is not collections.abc.Callable:
            raise ValueError(f"{annotation!r} is not a Callable[[...], ...] annotation")
        args = typing.get_args(annotation)
        if not args or args[0] is ...:
            raise ValueError(f"{annotation!r} does not declare its parameters")
        return cls(len(args[0]))


def _is_compatible(value: Any, hint: Any) -> bool:
    if not isinstance(hint, type) or hint is object:
        # Unions, generics, TypeVars: not checked.
        return True
    if hint is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, hint)


class EventAction:
    """Builds event handlers that call a method on the action target.

    The handler returned by `handler()` takes exactly `shape.arity`
    arguments and forwards as many as the method declares: none, the first,
    or both.
    """

    def __init__(
        self,
        method_name: str,
        shape: EventShape,
        target_null_behaviour: UnavailableBehaviour,
        action_not_found_behaviour: UnavailableBehaviour,
        *,
        resolver: MethodResolver | None = None,
    ) -> None:
        if target_null_behaviour is UnavailableBehaviour.DISABLE:
            raise ValueError("Setting null target behaviour to DISABLE is unsupported when used on an event")
        if action_not_found_behaviour is UnavailableBehaviour.DISABLE:
            raise ValueError("Setting action not found behaviour to DISABLE is unsupported when used on an event")

        self._shape = shape
        self._dispatcher = ActionDispatcher(
            method_name,
            target_null_behaviour,
            action_not_found_behaviour,
            resolver=resolver,
        )

    @classmethod
    def observing(
        cls,
        subject: Any,
        backup_subject: Any,
        method_name: str,
        shape: EventShape,
        target_null_behaviour: UnavailableBehaviour,
        action_not_found_behaviour: UnavailableBehaviour,
        **kwargs: Any,
    ) -> EventAction:
        event_action = cls(method_name, shape, target_null_behaviour, action_not_found_behaviour, **kwargs)
        event_action._dispatcher.observe(subject, backup_subject)
        return event_action

    @classmethod
    def with_target(
        cls,
        target: Any,
        method_name: str,
        shape: EventShape,
        target_null_behaviour: UnavailableBehaviour,
        action_not_found_behaviour: UnavailableBehaviour,
        **kwargs: Any,
    ) -> EventAction:
        event_action = cls(method_name, shape, target_null_behaviour, action_not_found_behaviour, **kwargs)
        event_action._dispatcher.fix(target)
        return event_action

    @property
    def dispatcher(self) -> ActionDispatcher:
        return self._dispatcher

    @property
    def shape(self) -> EventShape:
        return self._shape

    def handler(self) -> Callable[..., Any]:
        if self._shape.arity == 0:

            def on_event() -> Any:
                return self.invoke(())

        elif self._shape.arity == 1:

            def on_event(arg: Any) -> Any:  # type: ignore[misc]
                return self.invoke((arg,))

        else:

            def on_event(sender: Any, event_args: Any) -> Any:  # type: ignore[misc]
                return self.invoke((sender, event_args))

        on_event.__qualname__ = on_event.__name__ = f"on_{self._dispatcher.method_name}"
        on_event.event_action = self  # type: ignore[attr-defined]
        return on_event

    def invoke(self, args: Sequence[Any]) -> Any:
        self._dispatcher.assert_ready()

        method = self._dispatcher.target_method
        if self._dispatcher.target is None or method is None:
            _logger.debug(
                "event for %s ignored: method is not available on %r",
                self._dispatcher.method_name,
                self._dispatcher.target,
            )
            return None

        forwarded = self._select_arguments(method, tuple(args))
        return self._dispatcher.invoke(forwarded)

    def _signature_error(self, method: ResolvedMethod, reason: str) -> SignatureInvalidError:
        e = SignatureInvalidError(
            f"Method {self._dispatcher.method_name} on {method.owner.__name__} cannot handle an event with "
            f"{self._shape.arity} argument(s): {reason}"
        )
        _logger.error("%s", e)
        return e

    def _select_arguments(self, method: ResolvedMethod, args: tuple[Any, ...]) -> list[Any]:
        if method.required_keyword_only:
            raise self._signature_error(method, f"required keyword-only parameters {method.required_keyword_only}")

        if method.accepts_varargs:
            count = len(args)
        else:
            if method.parameter_count > MAX_EVENT_ARITY:
                raise self._signature_error(method, f"it declares {method.parameter_count} parameters")
            count = min(method.parameter_count, len(args))
        if method.required_count > len(args):
            raise self._signature_error(method, f"it requires {method.required_count} arguments")

        forwarded = list(args[:count])
        self._check_types(method, forwarded)
        return forwarded

    def _check_types(self, method: ResolvedMethod, forwarded: list[Any]) -> None:
        try:
            hints = typing.get_type_hints(method.function)
        except (NameError, TypeError, AttributeError):
            # Forward references we cannot evaluate are left unchecked.
            return
        for param, value in zip(method.positional, forwarded):
            hint = hints.get(param.name)
            if hint is not None and not _is_compatible(value, hint):
                raise self._signature_error(
                    method,
                    f"parameter {param.name!r} expects {getattr(hint, '__name__', hint)}, got {type(value).__name__}",
                )
