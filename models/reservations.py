from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlmodel import Field, SQLModel, Relationship

from models.enums import ReservationStatus, ReservationSource


class Reservation(SQLModel, table=True):
    """Reserva de mesa. Nunca se borra: la cancelación es un cambio de estado."""
    __tablename__ = "reservations"

    id: Optional[int] = Field(default=None, primary_key=True)
    date_time: datetime = Field(nullable=False, index=True)
    duration: int = Field(default=120, nullable=False)  # minutos
    party_size: int = Field(nullable=False)
    status: ReservationStatus = Field(default=ReservationStatus.PENDING, nullable=False, index=True)
    source: ReservationSource = Field(default=ReservationSource.WEBSITE)

    special_requests: Optional[str] = Field(default=None, max_length=500)
    occasion: Optional[str] = Field(default=None, max_length=100)
    dietary_notes: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=1000)
    cancellation_reason: Optional[str] = Field(default=None, max_length=500)

    # Claves Foráneas
    customer_id: int = Field(foreign_key="customers.id", index=True)
    table_id: Optional[int] = Field(default=None, foreign_key="tables.id", index=True)
    created_by_id: Optional[int] = Field(default=None, foreign_key="users.id")
    updated_by_id: Optional[int] = Field(default=None, foreign_key="users.id")

    completed_at: Optional[datetime] = Field(default=None)
    cancelled_at: Optional[datetime] = Field(default=None)
    created_at: Optional[datetime] = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = Field(default_factory=datetime.utcnow)

    # Relaciones
    customer: "Customer" = Relationship(back_populates="reservations")
    table: Optional["Table"] = Relationship(back_populates="reservations")

if TYPE_CHECKING:
    from models.customers import Customer
    from models.tables import Table
