# clinic_api/deps.py

from fastapi import Depends, HTTPException, Response
from sqlmodel import Session

from .db import get_session
from .repository import AppointmentRepository, save
from .services.appointments import AppointmentService
from .services.availability import AvailabilityChecker


def require_role(user: dict, role: str):
    if user["role"] != role:
        raise HTTPException(status_code=403, detail="Forbidden")


# columns that cannot be cleared with an explicit null
NOT_NULL = {"name", "active", "duration_minutes", "price", "discount_percent"}


def apply_changes(entity, changes):
    """Copy the fields the caller actually sent onto ``entity``."""
    for name, value in changes.model_dump(exclude_unset=True).items():
        if value is None and name in NOT_NULL:
            raise HTTPException(status_code=400, detail=f"{name} cannot be null")
        setattr(entity, name, value)
    return entity


def deactivate(session: Session, entity) -> Response:
    # soft delete: appointments and prices keep pointing at the row
    entity.active = False
    save(session, entity)
    return Response(status_code=204)


def get_repository(session: Session = Depends(get_session)) -> AppointmentRepository:
    return AppointmentRepository(session)


def get_availability_checker(
    repository: AppointmentRepository = Depends(get_repository),
) -> AvailabilityChecker:
    return AvailabilityChecker(repository)


def get_appointment_service(
    repository: AppointmentRepository = Depends(get_repository),
    checker: AvailabilityChecker = Depends(get_availability_checker),
) -> AppointmentService:
    return AppointmentService(repository, checker)
