from sqlmodel import SQLModel, Field
from pydantic import EmailStr, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum

from models.enums import Language, TableLocation, UserRole
from schemas.reservations_schema import PhoneStr


class CustomerBase(SQLModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: EmailStr = Field(max_length=100)
    phone: Optional[PhoneStr] = None
    language: Language = Language.DE
    preferred_location: Optional[TableLocation] = None
    allergies: Optional[str] = Field(default=None, max_length=500)
    email_consent: bool = False
    marketing_consent: bool = False

class CustomerCreate(CustomerBase):
    data_processing_consent: bool

    @field_validator("data_processing_consent")
    @classmethod
    def _consent(cls, value: bool) -> bool:
        if value is not True:
            raise ValueError("Data processing consent must be accepted")
        return value

class CustomerUpdate(SQLModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[PhoneStr] = None
    language: Optional[Language] = None
    preferred_location: Optional[TableLocation] = None
    allergies: Optional[str] = Field(default=None, max_length=500)
    email_consent: Optional[bool] = None
    marketing_consent: Optional[bool] = None
    is_vip: Optional[bool] = None

class CustomerRead(CustomerBase):
    id: int
    data_processing_consent: bool
    consent_date: Optional[datetime] = None
    is_vip: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CustomerNoteCreate(SQLModel):
    note: str = Field(min_length=1, max_length=1000)
    is_important: bool = False

class NoteAuthor(SQLModel):
    id: int
    name: str
    role: UserRole

    class Config:
        from_attributes = True

class CustomerNoteRead(SQLModel):
    id: int
    customer_id: int
    note: str
    is_important: bool
    created_at: datetime
    user: Optional[NoteAuthor] = None

    class Config:
        from_attributes = True


class GdprAction(str, Enum):
    UPDATE_CONSENT = "UPDATE_CONSENT"
    REVOKE_ALL_CONSENT = "REVOKE_ALL_CONSENT"
    REQUEST_DELETION = "REQUEST_DELETION"
    REQUEST_EXPORT = "REQUEST_EXPORT"

class ConsentUpdate(SQLModel):
    data_processing_consent: Optional[bool] = None
    email_consent: Optional[bool] = None
    marketing_consent: Optional[bool] = None

class GdprActionRequest(SQLModel):
    action: GdprAction
    consent_updates: Optional[ConsentUpdate] = None
    reason: Optional[str] = Field(default=None, max_length=500)
