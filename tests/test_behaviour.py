from __future__ import annotations

import pytest

from view_actions.behaviour import PolicyContext, UnavailableBehaviour, effective_policy

B = UnavailableBehaviour


@pytest.mark.parametrize(
    ("context", "design_mode", "expected"),
    [
        (PolicyContext.COMMAND_NULL_TARGET, False, B.DISABLE),
        (PolicyContext.COMMAND_NULL_TARGET, True, B.ENABLE),
        (PolicyContext.COMMAND_ACTION_NOT_FOUND, False, B.THROW),
        (PolicyContext.COMMAND_ACTION_NOT_FOUND, True, B.THROW),
        (PolicyContext.EVENT_NULL_TARGET, False, B.ENABLE),
        (PolicyContext.EVENT_ACTION_NOT_FOUND, False, B.THROW),
    ],
)
def test_default_resolves_per_context(context, design_mode, expected):
    assert effective_policy(context, B.DEFAULT, design_mode=design_mode) is expected


@pytest.mark.parametrize("context", list(PolicyContext))
@pytest.mark.parametrize("configured", [B.ENABLE, B.DISABLE, B.THROW])
def test_explicit_behaviour_passes_through(context, configured):
    assert effective_policy(context, configured) is configured
    assert effective_policy(context, configured, design_mode=True) is configured


def test_none_and_names_are_parsed():
    assert effective_policy(PolicyContext.EVENT_NULL_TARGET, None) is B.ENABLE
    assert effective_policy(PolicyContext.EVENT_NULL_TARGET, "Throw") is B.THROW
    assert B.parse(" disable ") is B.DISABLE


def test_unknown_behaviour_name_is_rejected():
    with pytest.raises(ValueError, match="Unknown UnavailableBehaviour"):
        B.parse("sometimes")
