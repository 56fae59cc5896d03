# clinic_api/models.py

from typing import Optional
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, UniqueConstraint
from sqlmodel import SQLModel, Field, Column


def _stored_now() -> datetime:
    return datetime.now(timezone.utc)


def _instant_column() -> Column:
    # UTC instants; SQLite hands them back naive, see timeutils.from_storage
    return Column(DateTime(timezone=True), nullable=False)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str = "USER"  # ADMIN or USER


class Client(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    active: bool = True


class Professional(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    specialty: Optional[str] = None
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    active: bool = True


class Procedure(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    duration_minutes: int = 30
    price: float = 0.0
    active: bool = True


class InsurancePlan(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    discount_percent: float = 0.0
    active: bool = True


class ProcedurePlanPrice(SQLModel, table=True):
    """Negotiated price of a procedure under one insurance plan."""

    __table_args__ = (
        UniqueConstraint("procedure_id", "insurance_plan_id", name="uq_procedure_plan"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    procedure_id: int = Field(foreign_key="procedure.id", index=True)
    insurance_plan_id: int = Field(foreign_key="insuranceplan.id", index=True)
    price: float


class Appointment(SQLModel, table=True):
    __table_args__ = (
        Index("ix_appointment_professional_start", "professional_id", "start_time"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    client_id: int = Field(foreign_key="client.id", index=True)
    professional_id: Optional[int] = Field(default=None, foreign_key="professional.id")
    procedure_id: int = Field(foreign_key="procedure.id")
    insurance_plan_id: Optional[int] = Field(default=None, foreign_key="insuranceplan.id")
    charged_amount: float = 0.0

    start_time: datetime = Field(sa_column=_instant_column())
    end_time: datetime = Field(sa_column=_instant_column())

    status: str = Field(default="SCHEDULED", index=True)
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=_stored_now, sa_column=_instant_column())
    updated_at: datetime = Field(default_factory=_stored_now, sa_column=_instant_column())
