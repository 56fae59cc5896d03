# clinic_api/schemas.py

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .timeutils import from_storage


class ApiModel(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    admin = "ADMIN"
    user = "USER"


class AppointmentStatus(str, Enum):
    scheduled = "SCHEDULED"
    confirmed = "CONFIRMED"
    in_progress = "IN_PROGRESS"
    completed = "COMPLETED"
    cancelled = "CANCELLED"
    no_show = "NO_SHOW"


class UserPublic(ApiModel):
    id: int
    name: str
    email: str
    role: UserRole


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=8, max_length=72)


class ClientCreate(ApiModel):
    name: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    user_id: Optional[int] = None


class ClientPublic(ClientCreate):
    id: int
    active: bool


class ProfessionalCreate(ApiModel):
    name: str = Field(min_length=1)
    specialty: Optional[str] = None
    user_id: Optional[int] = None


class ProfessionalPublic(ProfessionalCreate):
    id: int
    active: bool


class ProcedureCreate(ApiModel):
    name: str = Field(min_length=1)
    duration_minutes: int = Field(default=30, gt=0)
    price: float = Field(default=0.0, ge=0)


class ProcedurePublic(ProcedureCreate):
    id: int
    active: bool


class InsurancePlanCreate(ApiModel):
    name: str = Field(min_length=1)
    discount_percent: float = Field(default=0.0, ge=0, le=100)


class InsurancePlanPublic(InsurancePlanCreate):
    id: int
    active: bool


class ClientUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    active: Optional[bool] = None


class ProfessionalUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    specialty: Optional[str] = None
    user_id: Optional[int] = None
    active: Optional[bool] = None


class ProcedureUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, ge=0)
    active: Optional[bool] = None


class InsurancePlanUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    discount_percent: Optional[float] = Field(default=None, ge=0, le=100)
    active: Optional[bool] = None


class PlanPriceSet(ApiModel):
    price: float = Field(ge=0)


class PlanPricePublic(ApiModel):
    procedure_id: int
    insurance_plan_id: int
    price: float


class AppointmentCreate(ApiModel):
    client_id: int
    professional_id: Optional[int] = None
    procedure_id: int
    insurance_plan_id: Optional[int] = None
    charged_amount: Optional[float] = Field(default=None, ge=0)
    # raw strings, normalized by timeutils.parse_instant
    start_time: str
    end_time: str
    notes: Optional[str] = None


class AppointmentUpdate(ApiModel):
    professional_id: Optional[int] = None
    procedure_id: Optional[int] = None
    insurance_plan_id: Optional[int] = None
    charged_amount: Optional[float] = Field(default=None, ge=0)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None


class StatusUpdate(ApiModel):
    status: str


class AppointmentPublic(ApiModel):
    id: int
    client_id: int
    professional_id: Optional[int]
    procedure_id: int
    insurance_plan_id: Optional[int]
    charged_amount: float
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    @field_validator("start_time", "end_time", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return from_storage(value)


class AvailabilityResponse(ApiModel):
    available: bool
    conflicts: List[AppointmentPublic]
