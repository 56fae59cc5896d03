# clinic_api/services/availability.py

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..errors import ValidationError
from ..models import Appointment
from ..repository import AppointmentRepository


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open intervals: back-to-back intervals do not overlap."""
    return a_start < b_end and a_end > b_start


@dataclass
class ConflictCheck:
    has_conflict: bool
    conflicts: List[Appointment] = field(default_factory=list)


class AvailabilityChecker:
    """
    Finds non-cancelled appointments that overlap a candidate interval.

    The professional scope is exact: ``professional_id=None`` checks only
    appointments with no professional assigned, it is not a wildcard.
    """

    def __init__(self, repository: AppointmentRepository):
        self.repository = repository

    def check_conflict(
        self,
        professional_id: Optional[int],
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[int] = None,
    ) -> ConflictCheck:
        if end <= start:
            raise ValidationError("End time must be after start time")

        conflicts = self.repository.find_overlapping(
            professional_id, start, end, exclude_appointment_id=exclude_appointment_id
        )
        return ConflictCheck(has_conflict=bool(conflicts), conflicts=conflicts)
