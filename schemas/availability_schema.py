from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.enums import TableLocation
from schemas.validators import to_local_naive


class AvailabilityRequest(BaseModel):
    """Acepta los nombres en snake_case y en camelCase."""
    model_config = ConfigDict(populate_by_name=True)

    date_time: datetime = Field(alias="dateTime")
    party_size: int = Field(alias="partySize", ge=1, le=20)
    duration: int = Field(default=120, ge=60, le=300)
    preferred_location: Optional[TableLocation] = Field(default=None, alias="preferredLocation")

    @field_validator("date_time")
    @classmethod
    def _naive(cls, value):
        return to_local_naive(value)


class TableOptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    number: int
    capacity: int
    location: TableLocation
    description: Optional[str] = None

class RecommendationRead(TableOptionRead):
    price_multiplier: float


class AvailabilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    available: bool
    total_tables: int
    requested_date_time: datetime
    party_size: int
    duration: int
    preferred_location: Optional[TableLocation] = None
    tables_by_location: Dict[str, List[TableOptionRead]]
    recommendations: List[RecommendationRead]
    alternative_times: List[datetime] = []


class HourlySlotRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time: str
    available_tables: int
    total_capacity: int
    occupancy_rate: int

class DailyAvailabilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    total_tables: int
    total_reservations: int
    hourly_availability: List[HourlySlotRead]
    peak_hours: List[str]
    recommended_times: List[str]
