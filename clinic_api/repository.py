# clinic_api/repository.py

import logging
from datetime import datetime
from typing import List, Optional, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select, or_

from .errors import StoreError
from .models import Appointment, Client, ProcedurePlanPrice, Professional
from .schemas import AppointmentStatus
from .timeutils import to_storage

logger = logging.getLogger(__name__)

CANCELLED = AppointmentStatus.cancelled.value


class AppointmentRepository:
    """Store access for the scheduling core. Takes aware datetimes, stores UTC."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, appointment_id: int) -> Optional[Appointment]:
        return self._run(lambda: self.session.get(Appointment, appointment_id))

    def get_client(self, client_id: int) -> Optional[Client]:
        return self._run(lambda: self.session.get(Client, client_id))

    def active_reference(self, model: Type[SQLModel], entity_id: int) -> Optional[SQLModel]:
        entity = self._run(lambda: self.session.get(model, entity_id))
        if entity is None or not getattr(entity, "active", True):
            return None
        return entity

    def find_overlapping(
        self,
        professional_id: Optional[int],
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[int] = None,
    ) -> List[Appointment]:
        stmt = (
            select(Appointment)
            .where(Appointment.status != CANCELLED)
            .where(Appointment.start_time < to_storage(end))
            .where(Appointment.end_time > to_storage(start))
        )
        if professional_id is None:
            stmt = stmt.where(Appointment.professional_id.is_(None))
        else:
            stmt = stmt.where(Appointment.professional_id == professional_id)
        if exclude_appointment_id is not None:
            stmt = stmt.where(Appointment.id != exclude_appointment_id)

        stmt = stmt.order_by(Appointment.start_time)
        return self._run(lambda: list(self.session.exec(stmt).all()))

    def list_between(self, start: datetime, end: datetime, include_cancelled: bool = False) -> List[Appointment]:
        stmt = (
            select(Appointment)
            .where(Appointment.start_time >= to_storage(start))
            .where(Appointment.start_time <= to_storage(end))
        )
        if not include_cancelled:
            stmt = stmt.where(Appointment.status != CANCELLED)

        stmt = stmt.order_by(Appointment.start_time)
        return self._run(lambda: list(self.session.exec(stmt).all()))

    def list_for_user(self, user_id: int) -> List[Appointment]:
        client_ids = select(Client.id).where(Client.user_id == user_id)
        professional_ids = select(Professional.id).where(Professional.user_id == user_id)
        stmt = (
            select(Appointment)
            .where(
                or_(
                    Appointment.client_id.in_(client_ids),
                    Appointment.professional_id.in_(professional_ids),
                )
            )
            .where(Appointment.status != CANCELLED)
            .order_by(Appointment.start_time)
        )
        return self._run(lambda: list(self.session.exec(stmt).all()))

    def plan_price(self, procedure_id: int, insurance_plan_id: int) -> Optional[ProcedurePlanPrice]:
        stmt = (
            select(ProcedurePlanPrice)
            .where(ProcedurePlanPrice.procedure_id == procedure_id)
            .where(ProcedurePlanPrice.insurance_plan_id == insurance_plan_id)
        )
        return self._run(lambda: self.session.exec(stmt).first())

    def save(self, obj: SQLModel) -> SQLModel:
        return save(self.session, obj)

    def _run(self, query):
        try:
            return query()
        except SQLAlchemyError as exc:
            logger.error("Store query failed", exc_info=True)
            raise StoreError("Could not read from the store") from exc


def save(session: Session, obj: SQLModel) -> SQLModel:
    """Add and commit ``obj``; database failures roll back and surface as StoreError."""
    session.add(obj)
    _commit(session, type(obj).__name__)
    session.refresh(obj)
    return obj


def delete(session: Session, obj: SQLModel) -> None:
    session.delete(obj)
    _commit(session, type(obj).__name__)


def _commit(session: Session, label: str):
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Failed to persist %s", label, exc_info=True)
        raise StoreError("Could not save changes") from exc
