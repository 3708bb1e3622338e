from datetime import datetime
from typing import Annotated, Optional

from pydantic import EmailStr, StringConstraints, field_validator
from sqlmodel import SQLModel, Field

from models.enums import ReservationSource, ReservationStatus, TableLocation
from schemas.validators import to_local_naive

PHONE_PATTERN = r"^[\+]?[\d\s\-\(\)]{8,15}$"
PhoneStr = Annotated[str, StringConstraints(pattern=PHONE_PATTERN)]


class ReservationCreate(SQLModel):
    """Reserva pública: identifica o crea al cliente por su email."""
    customer_id: Optional[int] = None
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    phone: Optional[PhoneStr] = None

    date_time: datetime
    party_size: int = Field(ge=1, le=20)
    duration: int = Field(default=120, ge=60, le=300)

    table_id: Optional[int] = None
    preferred_location: Optional[TableLocation] = None
    special_requests: Optional[str] = Field(default=None, max_length=500)
    occasion: Optional[str] = Field(default=None, max_length=100)
    dietary_notes: Optional[str] = Field(default=None, max_length=500)
    source: ReservationSource = ReservationSource.WEBSITE

    data_processing_consent: bool
    email_consent: bool = False
    marketing_consent: bool = False

    @field_validator("date_time")
    @classmethod
    def _future(cls, value: datetime) -> datetime:
        value = to_local_naive(value)
        if value <= datetime.now():
            raise ValueError("Reservation date must be in the future")
        return value

    @field_validator("data_processing_consent")
    @classmethod
    def _consent(cls, value: bool) -> bool:
        if value is not True:
            raise ValueError("Data processing consent must be accepted")
        return value


class ReservationUpdate(SQLModel):
    table_id: Optional[int] = None
    date_time: Optional[datetime] = None
    party_size: Optional[int] = Field(default=None, ge=1, le=20)
    duration: Optional[int] = Field(default=None, ge=60, le=300)
    status: Optional[ReservationStatus] = None
    special_requests: Optional[str] = Field(default=None, max_length=500)
    occasion: Optional[str] = Field(default=None, max_length=100)
    dietary_notes: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=1000)
    cancellation_reason: Optional[str] = Field(default=None, max_length=500)

    @field_validator("date_time")
    @classmethod
    def _naive(cls, value):
        return to_local_naive(value)


class ReservationRead(SQLModel):
    id: int
    customer_id: int
    table_id: Optional[int]
    date_time: datetime
    duration: int
    party_size: int
    status: ReservationStatus
    source: ReservationSource
    special_requests: Optional[str] = None
    occasion: Optional[str] = None
    dietary_notes: Optional[str] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_by_id: Optional[int] = None
    updated_by_id: Optional[int] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
