# clinic_api/routers/appointments_routes.py

from typing import Optional, List

from fastapi import APIRouter, Depends, Query, Response

from clinic_api.auth import get_current_user
from clinic_api.deps import get_appointment_service, get_availability_checker, require_role
from clinic_api.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentUpdate,
    AvailabilityResponse,
    StatusUpdate,
)
from clinic_api.services.appointments import AppointmentService
from clinic_api.services.availability import AvailabilityChecker
from clinic_api.timeutils import parse_instant

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


@router.post("", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
    current_user: dict = Depends(get_current_user),
):
    return service.create(appt, current_user["id"], current_user["role"])


@router.get("/availability", response_model=AvailabilityResponse)
def check_availability(
    start: str,
    end: str,
    professional_id: Optional[int] = Query(default=None, alias="professionalId"),
    exclude_appointment_id: Optional[int] = Query(default=None, alias="excludeAppointmentId"),
    checker: AvailabilityChecker = Depends(get_availability_checker),
    current_user: dict = Depends(get_current_user),
):
    result = checker.check_conflict(
        professional_id,
        parse_instant(start),
        parse_instant(end),
        exclude_appointment_id=exclude_appointment_id,
    )
    return {"available": not result.has_conflict, "conflicts": result.conflicts}


@router.get("", response_model=List[AppointmentPublic])
def list_appointments(
    date: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    service: AppointmentService = Depends(get_appointment_service),
    current_user: dict = Depends(get_current_user),
):
    return service.list_range(date, start, end)


@router.get("/mine", response_model=List[AppointmentPublic])
def list_my_appointments(
    service: AppointmentService = Depends(get_appointment_service),
    current_user: dict = Depends(get_current_user),
):
    return service.list_mine(current_user["id"])


@router.get("/{appt_id}", response_model=AppointmentPublic)
def get_appointment(
    appt_id: int,
    service: AppointmentService = Depends(get_appointment_service),
    current_user: dict = Depends(get_current_user),
):
    return service.get(appt_id)


@router.patch("/{appt_id}/status", response_model=AppointmentPublic)
def update_appointment_status(
    appt_id: int,
    body: StatusUpdate,
    service: AppointmentService = Depends(get_appointment_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "ADMIN")
    return service.update_status(appt_id, body.status)


@router.patch("/{appt_id}", response_model=AppointmentPublic)
def update_appointment(
    appt_id: int,
    changes: AppointmentUpdate,
    service: AppointmentService = Depends(get_appointment_service),
    current_user: dict = Depends(get_current_user),
):
    return service.update(appt_id, changes, current_user["id"], current_user["role"])


@router.delete("/{appt_id}", status_code=204)
def cancel_appointment(
    appt_id: int,
    service: AppointmentService = Depends(get_appointment_service),
    current_user: dict = Depends(get_current_user),
):
    service.cancel(appt_id, current_user["id"], current_user["role"])
    return Response(status_code=204)
