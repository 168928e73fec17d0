from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models import Role, SpotType


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


def _not_null(value):
    if value is None:
        raise ValueError("may not be null")
    return value


# --- people ---

class StudentCreate(BaseModel):
    enrollment: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=100)
    course: Optional[str] = Field(default=None, max_length=50)
    phone: Optional[str] = Field(default=None, max_length=15)
    email: Optional[str] = Field(default=None, max_length=100)


class StudentUpdate(BaseModel):
    enrollment: Optional[str] = Field(default=None, min_length=1, max_length=20)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    course: Optional[str] = Field(default=None, max_length=50)
    phone: Optional[str] = Field(default=None, max_length=15)
    email: Optional[str] = Field(default=None, max_length=100)
    is_active: Optional[bool] = None

    check_not_null = field_validator("enrollment", "name", "is_active")(_not_null)


class StudentRead(ORMModel):
    id: int
    enrollment: str
    name: str
    course: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    is_active: bool
    registered_on: date


class FacultyCreate(BaseModel):
    enrollment: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=100)
    department: Optional[str] = Field(default=None, max_length=50)
    phone: Optional[str] = Field(default=None, max_length=15)
    email: Optional[str] = Field(default=None, max_length=100)


class FacultyUpdate(BaseModel):
    enrollment: Optional[str] = Field(default=None, min_length=1, max_length=20)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    department: Optional[str] = Field(default=None, max_length=50)
    phone: Optional[str] = Field(default=None, max_length=15)
    email: Optional[str] = Field(default=None, max_length=100)
    is_active: Optional[bool] = None

    check_not_null = field_validator("enrollment", "name", "is_active")(_not_null)


class FacultyRead(ORMModel):
    id: int
    enrollment: str
    name: str
    department: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    is_active: bool
    registered_on: date


# --- vehicles ---

class VehicleCreate(BaseModel):
    plate: str = Field(min_length=1, max_length=10)
    model: str = Field(min_length=1, max_length=50)
    color: Optional[str] = Field(default=None, max_length=20)
    year: Optional[int] = None
    student_id: Optional[int] = Field(default=None, gt=0)
    faculty_id: Optional[int] = Field(default=None, gt=0)


class VehicleUpdate(BaseModel):
    plate: Optional[str] = Field(default=None, min_length=1, max_length=10)
    model: Optional[str] = Field(default=None, min_length=1, max_length=50)
    color: Optional[str] = Field(default=None, max_length=20)
    year: Optional[int] = None
    student_id: Optional[int] = Field(default=None, gt=0)
    faculty_id: Optional[int] = Field(default=None, gt=0)

    check_not_null = field_validator("plate", "model")(_not_null)


class OwnerSummary(ORMModel):
    id: int
    name: str
    enrollment: str


class VehicleRead(ORMModel):
    id: int
    plate: str
    model: str
    color: Optional[str]
    year: Optional[int]
    student_id: Optional[int]
    faculty_id: Optional[int]
    owner_type: Optional[str]
    owner: Optional[OwnerSummary]


# --- spots ---

class SpotCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    number: str = Field(min_length=1, max_length=10)
    location: Optional[str] = Field(default=None, max_length=100)
    type: SpotType = SpotType.common


class SpotUpdate(BaseModel):
    # occupancy is not editable here, so unknown fields are rejected
    model_config = ConfigDict(extra="forbid")

    number: Optional[str] = Field(default=None, min_length=1, max_length=10)
    location: Optional[str] = Field(default=None, max_length=100)
    type: Optional[SpotType] = None
    is_active: Optional[bool] = None

    check_not_null = field_validator("number", "type", "is_active")(_not_null)


class SpotRead(ORMModel):
    id: int
    number: str
    location: Optional[str]
    type: SpotType
    occupied: bool
    is_active: bool


# --- parking sessions ---

class EntryCreate(BaseModel):
    vehicle_id: int = Field(gt=0)
    spot_id: int = Field(gt=0)


class ExitUpdate(BaseModel):
    amount_paid: Optional[float] = Field(default=None, allow_inf_nan=False)


class SessionVehicle(ORMModel):
    id: int
    plate: str
    model: str
    owner_type: Optional[str]
    owner_name: Optional[str]


class SessionSpot(ORMModel):
    id: int
    number: str
    type: SpotType


class ParkingSessionRead(ORMModel):
    id: int
    vehicle_id: int
    spot_id: int
    entry_timestamp: datetime
    exit_timestamp: Optional[datetime]
    amount_paid: Optional[float]
    vehicle: SessionVehicle
    spot: SessionSpot


class ParkingSessionDetail(ORMModel):
    id: int
    vehicle_id: int
    spot_id: int
    entry_timestamp: datetime
    exit_timestamp: Optional[datetime]
    amount_paid: Optional[float]
    vehicle: VehicleRead
    spot: SpotRead


# --- accounts ---

class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AccountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=4)
    role: Role = Role.gatekeeper


class AccountRead(ORMModel):
    id: int
    name: str
    email: str
    role: Role
    is_active: bool


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    account: AccountRead


class Identity(BaseModel):
    id: int
    role: Role
