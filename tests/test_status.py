import pytest

from clinic_api.errors import ValidationError
from clinic_api.schemas import AppointmentStatus
from clinic_api.services.status import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    can_transition,
    ensure_transition,
    parse_status,
)

ALL = [s.value for s in AppointmentStatus]


def test_every_status_has_a_row():
    assert set(ALLOWED_TRANSITIONS) == set(AppointmentStatus)


@pytest.mark.parametrize("target", ALL)
def test_scheduled_can_move_anywhere(target):
    assert can_transition("SCHEDULED", target)


@pytest.mark.parametrize("terminal", ["COMPLETED", "CANCELLED"])
@pytest.mark.parametrize("target", ALL)
def test_terminal_statuses_only_repeat(terminal, target):
    assert can_transition(terminal, target) == (terminal == target)


def test_terminal_set():
    assert {s.value for s in TERMINAL_STATUSES} == {"COMPLETED", "CANCELLED"}


def test_non_terminal_can_continue():
    assert can_transition("CONFIRMED", "IN_PROGRESS")
    assert can_transition("IN_PROGRESS", "COMPLETED")
    assert can_transition("NO_SHOW", "SCHEDULED")


@pytest.mark.parametrize("value", ["AGENDADO", "scheduled", "", None, "DONE"])
def test_unrecognized_status(value):
    with pytest.raises(ValidationError):
        parse_status(value)


def test_ensure_transition_rejects_leaving_terminal():
    with pytest.raises(ValidationError):
        ensure_transition("CANCELLED", "CONFIRMED")
    assert ensure_transition("CONFIRMED", "COMPLETED") is AppointmentStatus.completed
