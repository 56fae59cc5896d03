# clinic_api/services/appointments.py
"""
Appointment lifecycle: create, update, cancel and status changes.

All invariants are enforced here before anything is written:

* ``end > start`` for the stored interval, whatever fields an edit replaces;
* a new (or moved) start may not be earlier than "now", compared at whole
  seconds with no grace window;
* referenced client, procedure, professional and insurance plan rows must
  exist and be active;
* status changes follow ``services.status.ALLOWED_TRANSITIONS``;
* when ``ENFORCE_NO_DOUBLE_BOOKING`` is on, the availability checker must
  report no conflict for the resulting professional scope and interval.

Cancellation is a status change, rows are never deleted.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from .. import config
from ..errors import ConflictError, ForbiddenError, NotFoundError, PastDateError, ValidationError
from ..models import Appointment, Client, InsurancePlan, Procedure, ProcedurePlanPrice, Professional
from ..repository import AppointmentRepository
from ..schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentStatus,
    AppointmentUpdate,
    UserRole,
)
from ..timeutils import from_storage, parse_instant, resolve_range, to_storage, utcnow
from .availability import AvailabilityChecker
from .status import ensure_transition, parse_status

logger = logging.getLogger(__name__)


class AppointmentService:
    def __init__(
        self,
        repository: AppointmentRepository,
        checker: Optional[AvailabilityChecker] = None,
        clock: Optional[Callable[[], datetime]] = None,
        enforce_no_double_booking: Optional[bool] = None,
    ):
        self.repository = repository
        self.checker = checker or AvailabilityChecker(repository)
        self.clock = clock or utcnow
        if enforce_no_double_booking is None:
            enforce_no_double_booking = config.ENFORCE_NO_DOUBLE_BOOKING
        self.enforce_no_double_booking = enforce_no_double_booking

    # -- queries ------------------------------------------------------------

    def get(self, appointment_id: int) -> Appointment:
        appointment = self.repository.get(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment

    def list_range(
        self,
        on_date: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> List[Appointment]:
        range_start, range_end = resolve_range(on_date, start, end)
        return self.repository.list_between(range_start, range_end)

    def list_mine(self, user_id: int) -> List[Appointment]:
        return self.repository.list_for_user(user_id)

    # -- commands -----------------------------------------------------------

    def create(
        self, data: AppointmentCreate, caller_id: Optional[int] = None, caller_role: Optional[str] = None
    ) -> Appointment:
        start = parse_instant(data.start_time)
        end = parse_instant(data.end_time)
        self._ensure_interval(start, end)
        self._ensure_not_past(start)

        client = self._require(Client, data.client_id, "Client")
        if caller_id is not None and caller_role != UserRole.admin.value and client.user_id != caller_id:
            raise ForbiddenError("You can only book appointments for your own clients")
        procedure = self._require(Procedure, data.procedure_id, "Procedure")
        if data.professional_id is not None:
            self._require(Professional, data.professional_id, "Professional")
        plan = None
        if data.insurance_plan_id is not None:
            plan = self._require(InsurancePlan, data.insurance_plan_id, "Insurance plan")

        if self.enforce_no_double_booking:
            self._ensure_available(data.professional_id, start, end)

        charged_amount = data.charged_amount
        if charged_amount is None:
            negotiated = self.repository.plan_price(procedure.id, plan.id) if plan is not None else None
            charged_amount = default_charge(procedure, plan, negotiated)

        now = to_storage(self.clock())
        appointment = Appointment(
            client_id=data.client_id,
            professional_id=data.professional_id,
            procedure_id=data.procedure_id,
            insurance_plan_id=data.insurance_plan_id,
            charged_amount=charged_amount,
            start_time=to_storage(start),
            end_time=to_storage(end),
            status=AppointmentStatus.scheduled.value,
            notes=data.notes,
            created_at=now,
            updated_at=now,
        )
        self.repository.save(appointment)
        logger.info(
            "Appointment %s created for client %s (professional=%s, %s - %s)",
            appointment.id, appointment.client_id, appointment.professional_id, start.isoformat(), end.isoformat(),
        )
        return appointment

    def update(self, appointment_id: int, changes: AppointmentUpdate, caller_id: int, caller_role: str) -> Appointment:
        appointment = self.get(appointment_id)
        self._ensure_owner_or_admin(appointment, caller_id, caller_role)
        fields = changes.model_fields_set

        for name in ("start_time", "end_time", "procedure_id", "status", "charged_amount"):
            if name in fields and getattr(changes, name) is None:
                raise ValidationError(f"{name} cannot be null")

        start = parse_instant(changes.start_time) if "start_time" in fields else from_storage(appointment.start_time)
        end = parse_instant(changes.end_time) if "end_time" in fields else from_storage(appointment.end_time)
        self._ensure_interval(start, end)
        if "start_time" in fields and start != from_storage(appointment.start_time):
            self._ensure_not_past(start)

        if "procedure_id" in fields and changes.procedure_id != appointment.procedure_id:
            self._require(Procedure, changes.procedure_id, "Procedure")
        if "professional_id" in fields and changes.professional_id is not None \
                and changes.professional_id != appointment.professional_id:
            self._require(Professional, changes.professional_id, "Professional")
        if "insurance_plan_id" in fields and changes.insurance_plan_id is not None \
                and changes.insurance_plan_id != appointment.insurance_plan_id:
            self._require(InsurancePlan, changes.insurance_plan_id, "Insurance plan")

        status = parse_status(appointment.status)
        if "status" in fields:
            status = ensure_transition(appointment.status, changes.status)
            # owners may cancel through an edit; anything else goes through update_status
            if status.value != appointment.status and status != AppointmentStatus.cancelled \
                    and caller_role != UserRole.admin.value:
                raise ForbiddenError("Only administrators can change appointment status")

        professional_id = changes.professional_id if "professional_id" in fields else appointment.professional_id
        rescheduled = (
            start != from_storage(appointment.start_time)
            or end != from_storage(appointment.end_time)
            or professional_id != appointment.professional_id
        )
        if self.enforce_no_double_booking and rescheduled and status != AppointmentStatus.cancelled:
            self._ensure_available(professional_id, start, end, exclude_appointment_id=appointment.id)

        appointment.start_time = to_storage(start)
        appointment.end_time = to_storage(end)
        appointment.professional_id = professional_id
        for name in ("procedure_id", "insurance_plan_id", "charged_amount", "notes"):
            if name in fields:
                setattr(appointment, name, getattr(changes, name))
        appointment.status = status.value
        appointment.updated_at = to_storage(self.clock())

        self.repository.save(appointment)
        logger.info("Appointment %s updated (%s)", appointment.id, ", ".join(sorted(fields)) or "no fields")
        return appointment

    def cancel(self, appointment_id: int, caller_id: int, caller_role: str) -> Appointment:
        appointment = self.get(appointment_id)
        self._ensure_owner_or_admin(appointment, caller_id, caller_role)

        if appointment.status == AppointmentStatus.cancelled.value:
            logger.info("Appointment %s already cancelled", appointment.id)
            return appointment

        appointment.status = AppointmentStatus.cancelled.value
        appointment.updated_at = to_storage(self.clock())
        self.repository.save(appointment)
        logger.info("Appointment %s cancelled by user %s", appointment.id, caller_id)
        return appointment

    def update_status(self, appointment_id: int, new_status: str) -> Appointment:
        target = parse_status(new_status)
        appointment = self.get(appointment_id)
        ensure_transition(appointment.status, target)

        if appointment.status == target.value:
            return appointment

        previous = appointment.status
        appointment.status = target.value
        appointment.updated_at = to_storage(self.clock())
        self.repository.save(appointment)
        logger.info("Appointment %s status %s -> %s", appointment.id, previous, target.value)
        return appointment

    # -- invariants ---------------------------------------------------------

    def _ensure_interval(self, start: datetime, end: datetime):
        if end <= start:
            raise ValidationError("End time must be after start time")

    def _ensure_not_past(self, start: datetime):
        if start.replace(microsecond=0) < self.clock():
            raise PastDateError("Cannot schedule an appointment in the past")

    def _require(self, model, entity_id: int, label: str):
        entity = self.repository.active_reference(model, entity_id)
        if entity is None:
            raise NotFoundError(f"{label} not found")
        return entity

    def _ensure_owner_or_admin(self, appointment: Appointment, caller_id: int, caller_role: str):
        if caller_role == UserRole.admin.value:
            return
        client = self.repository.get_client(appointment.client_id)
        if client is None or client.user_id != caller_id:
            raise ForbiddenError("You do not have permission to change this appointment")

    def _ensure_available(self, professional_id, start, end, exclude_appointment_id=None):
        result = self.checker.check_conflict(
            professional_id, start, end, exclude_appointment_id=exclude_appointment_id
        )
        if result.has_conflict:
            conflicts = [
                AppointmentPublic.model_validate(a).model_dump(mode="json", by_alias=True)
                for a in result.conflicts
            ]
            raise ConflictError("Time slot conflicts with an existing appointment", conflicts)


def default_charge(
    procedure: Procedure,
    plan: Optional[InsurancePlan] = None,
    negotiated: Optional[ProcedurePlanPrice] = None,
) -> float:
    """Negotiated plan price when one exists, else procedure price less the plan discount."""
    if negotiated is not None:
        return round(negotiated.price, 2)
    price = procedure.price or 0.0
    if plan is not None and plan.discount_percent:
        price = price * (1 - plan.discount_percent / 100)
    return round(price, 2)
