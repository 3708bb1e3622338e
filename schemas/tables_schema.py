from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from models.enums import ReservationStatus, TableLocation, TableShape, TableStatus
from schemas.validators import to_local_naive


class TableBase(SQLModel):
    number: int = Field(ge=1, le=999)
    capacity: int = Field(ge=1, le=20)
    location: TableLocation
    is_active: bool = True
    description: Optional[str] = Field(default=None, max_length=200)
    x_position: Optional[float] = Field(default=None, ge=0, le=1000)
    y_position: Optional[float] = Field(default=None, ge=0, le=1000)
    shape: TableShape = TableShape.RECTANGLE

class TableCreate(TableBase):
    pass

class TableUpdate(SQLModel):
    number: Optional[int] = Field(default=None, ge=1, le=999)
    capacity: Optional[int] = Field(default=None, ge=1, le=20)
    location: Optional[TableLocation] = None
    is_active: Optional[bool] = None
    description: Optional[str] = Field(default=None, max_length=200)
    x_position: Optional[float] = Field(default=None, ge=0, le=1000)
    y_position: Optional[float] = Field(default=None, ge=0, le=1000)
    shape: Optional[TableShape] = None

class TableRead(TableBase):
    # Las notas de estado se van acumulando en la descripción
    description: Optional[str] = None
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TableListResponse(SQLModel):
    """
    Schema de respuesta para el endpoint de listar mesas, incluyendo paginación.
    """
    items: List[TableRead] = Field(description="Lista de mesas que cumplen con el filtro y paginación.")
    total_count: int = Field(description="Número total de mesas que coinciden con los filtros.")
    offset: int
    limit: int
    total_pages: int
    current_page: int


class TablePosition(SQLModel):
    id: int
    x_position: float = Field(ge=0, le=1000)
    y_position: float = Field(ge=0, le=1000)
    shape: Optional[TableShape] = None

class TableLayoutUpdate(SQLModel):
    tables: List[TablePosition] = Field(min_length=1)


class TableStatusUpdate(SQLModel):
    """Cambio manual del estado de una mesa."""
    table_id: int
    status: TableStatus
    notes: Optional[str] = Field(default=None, max_length=500)
    estimated_free_time: Optional[datetime] = None

    @field_validator("estimated_free_time")
    @classmethod
    def _naive(cls, value):
        return to_local_naive(value)


class ReservationBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date_time: datetime
    duration: int
    status: ReservationStatus
    party_size: int

class TableStatusRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    number: int
    location: TableLocation
    capacity: int
    is_active: bool
    current_status: TableStatus
    current_reservation: Optional[ReservationBrief] = None
    next_reservation: Optional[ReservationBrief] = None
    last_updated: datetime


class TableStatusBulkRead(BaseModel):
    message: str
    updated_tables: List[TableStatusRead]
