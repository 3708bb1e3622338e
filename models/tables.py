from datetime import datetime
from typing import Optional, List, TYPE_CHECKING
from sqlmodel import Field, SQLModel, Relationship

from models.enums import TableLocation, TableShape

DESCRIPTION_MAX_LENGTH = 500


class Table(SQLModel, table=True):
    __tablename__ = "tables"

    id: Optional[int] = Field(default=None, primary_key=True)
    number: int = Field(unique=True, index=True, nullable=False)
    capacity: int = Field(nullable=False)
    location: TableLocation = Field(nullable=False, index=True)
    is_active: bool = Field(default=True, nullable=False)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)

    # Plano del salón
    x_position: Optional[float] = Field(default=None)
    y_position: Optional[float] = Field(default=None)
    shape: TableShape = Field(default=TableShape.RECTANGLE)

    created_at: Optional[datetime] = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = Field(default_factory=datetime.utcnow)

    # Relaciones
    reservations: List["Reservation"] = Relationship(back_populates="table")

if TYPE_CHECKING:
    from models.reservations import Reservation
