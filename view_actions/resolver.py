"""Name-based lookup of action methods.

Actions are looked up through a per-type descriptor instead of raw
``getattr``: the first time a type is seen, its public methods are collected
into a table keyed by action name (the attribute name, or the name given to
``@action``). Hosts can build the tables up front with
``default_resolver.register(...)``.
"""

from __future__ import annotations

import inspect
import threading
import types
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from .errors import AmbiguousMatchError

_ACTION_NAME_ATTR = "__view_action__"

F = TypeVar("F")

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def action(func: F | None = None, *, name: str | None = None) -> Any:
    """Mark a method as an action, optionally under a different name.

        class ShellViewModel:
            @action(name="ShowDialog")
            async def show_dialog(self): ...

    Plain public methods are actions already; the decorator is only needed to
    rename one.
    """

    def decorate(f: F) -> F:
        target = f.__func__ if isinstance(f, (staticmethod, classmethod)) else f
        setattr(target, _ACTION_NAME_ATTR, name or target.__name__)  # type: ignore[union-attr]
        return f

    if func is None:
        return decorate
    return decorate(func)


@dataclass(frozen=True)
class ResolvedMethod:
    name: str
    attribute: str
    owner: type
    is_static: bool
    function: Callable[..., Any]
    parameters: tuple[inspect.Parameter, ...]
    is_classmethod: bool = False

    @property
    def positional(self) -> tuple[inspect.Parameter, ...]:
        return tuple(p for p in self.parameters if p.kind in _POSITIONAL)

    @property
    def parameter_count(self) -> int:
        return len(self.positional)

    @property
    def required_count(self) -> int:
        return sum(1 for p in self.positional if p.default is inspect.Parameter.empty)

    @property
    def accepts_varargs(self) -> bool:
        return any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in self.parameters)

    @property
    def required_keyword_only(self) -> tuple[str, ...]:
        return tuple(
            p.name
            for p in self.parameters
            if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
        )

    def bind(self, target: Any) -> Callable[..., Any]:
        """Return the callable for `target`, capturing the receiver now."""
        if self.is_classmethod:
            return types.MethodType(self.function, target if isinstance(target, type) else type(target))
        if self.is_static:
            return self.function
        return types.MethodType(self.function, target)


@dataclass(frozen=True)
class _Candidate:
    attribute: str
    function: Callable[..., Any]
    is_static: bool
    is_classmethod: bool


def _classify(attribute: str, raw: Any) -> _Candidate | None:
    if isinstance(raw, staticmethod):
        return _Candidate(attribute, raw.__func__, True, False)
    if isinstance(raw, classmethod):
        return _Candidate(attribute, raw.__func__, True, True)
    if inspect.isfunction(raw):
        return _Candidate(attribute, raw, False, False)
    # Properties, Qt signals, C++ wrapped members and plain data are not actions.
    return None


def _signature_parameters(candidate: _Candidate) -> tuple[inspect.Parameter, ...]:
    try:
        params = tuple(inspect.signature(candidate.function).parameters.values())
    except (TypeError, ValueError):
        return ()
    if candidate.is_classmethod or not candidate.is_static:
        # Drop the receiver (self / cls).
        return params[1:]
    return params


class MethodResolver:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._descriptors: weakref.WeakKeyDictionary[type, dict[str, tuple[_Candidate, ...]]] = (
            weakref.WeakKeyDictionary()
        )

    def describe(self, cls: type) -> dict[str, tuple[_Candidate, ...]]:
        with self._lock:
            table = self._descriptors.get(cls)
            if table is None:
                table = self._build(cls)
                self._descriptors[cls] = table
            return table

    def register(self, *classes: type) -> None:
        for cls in classes:
            self.describe(cls)

    def forget(self, cls: type) -> None:
        with self._lock:
            self._descriptors.pop(cls, None)

    def is_registered(self, cls: type) -> bool:
        with self._lock:
            return cls in self._descriptors

    @staticmethod
    def _build(cls: type) -> dict[str, tuple[_Candidate, ...]]:
        table: dict[str, list[_Candidate]] = {}
        for attribute in dir(cls):
            if attribute.startswith("_"):
                continue
            try:
                raw = inspect.getattr_static(cls, attribute)
            except AttributeError:
                continue
            candidate = _classify(attribute, raw)
            if candidate is None:
                continue
            name = getattr(candidate.function, _ACTION_NAME_ATTR, None) or attribute
            table.setdefault(name, []).append(candidate)
        return {name: tuple(found) for name, found in table.items()}

    def resolve(self, target: Any, method_name: str) -> ResolvedMethod | None:
        """Find the single public method named `method_name`.

        A type target only matches static and class methods; an instance
        target only matches instance methods.
        """
        static = isinstance(target, type)
        owner = target if static else type(target)
        matches = [c for c in self.describe(owner).get(method_name, ()) if c.is_static == static]
        if not matches:
            return None
        if len(matches) > 1:
            attrs = ", ".join(c.attribute for c in matches)
            raise AmbiguousMatchError(f"{method_name!r} matches {len(matches)} members on {owner.__name__}: {attrs}")

        found = matches[0]
        return ResolvedMethod(
            name=method_name,
            attribute=found.attribute,
            owner=owner,
            is_static=found.is_static,
            function=found.function,
            parameters=_signature_parameters(found),
            is_classmethod=found.is_classmethod,
        )


default_resolver = MethodResolver()
