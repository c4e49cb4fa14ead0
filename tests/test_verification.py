from dataclasses import replace

import pytest
from conftest import el, make_state

from desktop_agent.errors import VerificationFailure
from desktop_agent.models import Action, ActionType, ExecutionStep
from desktop_agent.verification import RecoveryManager, VerificationEngine

BEFORE = make_state([el(0, 0, 10, 10, text="a")], title="Untitled - Notepad", app="notepad.exe")
ACTION = Action(ActionType.TYPE, "editor", "Hello")


def test_identical_states_are_unchanged():
    assert VerificationEngine().verify(ACTION, BEFORE, replace(BEFORE)) is False


@pytest.mark.parametrize("after", [
    replace(BEFORE, window_title="*Untitled - Notepad"),
    replace(BEFORE, application_name="explorer.exe"),
    replace(BEFORE, elements=()),
])
def test_any_coarse_difference_counts_as_change(after):
    assert VerificationEngine().verify(ACTION, BEFORE, after) is True


def test_element_content_changes_are_not_detected():
    moved = replace(BEFORE, elements=(el(500, 500, 10, 10, text="b"),))
    assert VerificationEngine().verify(ACTION, BEFORE, moved) is False


def test_check_raises_when_unchanged():
    with pytest.raises(VerificationFailure, match="type 'editor'"):
        VerificationEngine().check(ACTION, BEFORE, BEFORE)


async def test_recovery_always_succeeds():
    failed = ExecutionStep(action=ACTION, before=BEFORE, after=BEFORE, success=False)
    assert await RecoveryManager(delay=0).recover(failed) is True


@pytest.mark.parametrize("value, expected", [
    ("1500", 1500),
    ("0", 0),
    ("", 1000),
    ("soon", 1000),
    ("-5", 1000),
])
def test_wait_ms(value, expected):
    assert Action(ActionType.WAIT, value=value).wait_ms == expected
