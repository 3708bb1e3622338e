from datetime import datetime
from typing import Optional, List
from sqlmodel import Field, SQLModel, Relationship

from models.enums import Language, TableLocation


class Customer(SQLModel, table=True):
    __tablename__ = "customers"

    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str = Field(max_length=50, nullable=False)
    last_name: str = Field(max_length=50, nullable=False)
    email: str = Field(max_length=100, unique=True, index=True, nullable=False)
    phone: Optional[str] = Field(default=None, max_length=20)
    language: Language = Field(default=Language.DE)

    # Preferencias
    preferred_location: Optional[TableLocation] = Field(default=None)
    allergies: Optional[str] = Field(default=None, max_length=500)

    # Consentimientos (GDPR)
    email_consent: bool = Field(default=False)
    marketing_consent: bool = Field(default=False)
    data_processing_consent: bool = Field(default=False)
    consent_date: Optional[datetime] = Field(default=None)

    is_vip: bool = Field(default=False)
    created_at: Optional[datetime] = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = Field(default_factory=datetime.utcnow)

    # Relaciones
    reservations: List["Reservation"] = Relationship(back_populates="customer")
    notes: List["CustomerNote"] = Relationship(
        back_populates="customer", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models.customer_notes import CustomerNote
    from models.reservations import Reservation
