# clinic_api/services/status.py

from typing import Dict, FrozenSet

from ..errors import ValidationError
from ..schemas import AppointmentStatus

TERMINAL_STATUSES = frozenset({AppointmentStatus.completed, AppointmentStatus.cancelled})

# status -> statuses it may move to; terminal statuses only repeat themselves
ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    status: (frozenset({status}) if status in TERMINAL_STATUSES else frozenset(AppointmentStatus))
    for status in AppointmentStatus
}


def parse_status(value) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in AppointmentStatus)
        raise ValidationError(f"Invalid status {value!r}; expected one of: {allowed}")


def can_transition(current, new) -> bool:
    return parse_status(new) in ALLOWED_TRANSITIONS[parse_status(current)]


def ensure_transition(current, new) -> AppointmentStatus:
    target = parse_status(new)
    if not can_transition(current, target):
        raise ValidationError(f"Cannot change status from {parse_status(current).value} to {target.value}")
    return target
