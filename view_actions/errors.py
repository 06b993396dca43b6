"""Exceptions raised while binding and invoking actions."""

from __future__ import annotations


class ActionError(Exception):
    """Base class for every action failure."""


class TargetNotSetError(ActionError):
    """The subject's actionTarget was never assigned.

    Usually the control sits somewhere (a popup, a menu) that does not inherit
    the view's actionTarget; set it explicitly on that control.
    """


class TargetNullError(ActionError):
    """The actionTarget is None and the null-target behaviour is THROW."""


class ActionNotFoundError(ActionError):
    """The method could not be found on the actionTarget."""


class SignatureInvalidError(ActionError):
    """The method exists but cannot be called by the bound command or event."""


class AmbiguousMatchError(ActionError):
    """More than one public member answers to the method name."""


class ActionBindingError(ActionError, RuntimeError):
    """An action was declared in a way that cannot produce a command or handler."""
