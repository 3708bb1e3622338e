import logging
from datetime import date

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError

from core.database import SessionDep
from schemas.availability_schema import AvailabilityRequest, AvailabilityResponse, DailyAvailabilityResponse
from services.availability import find_available_tables
from services.occupancy import daily_occupancy
from services.stores import SqlReservationStore, SqlTableStore

logger = logging.getLogger(__name__)

# Rutas públicas: las usa el formulario de reservas del sitio web
router = APIRouter(prefix="/api/availability", tags=["AVAILABILITY"])


# ======================================================================
# POST /api/availability - Mesas libres para una fecha, hora y grupo
# ======================================================================
@router.post("", response_model=AvailabilityResponse, summary="Comprobar disponibilidad de mesas")
def check_availability(request_data: AvailabilityRequest, session: SessionDep):
    try:
        return find_available_tables(
            SqlTableStore(session),
            SqlReservationStore(session),
            requested_start=request_data.date_time,
            party_size=request_data.party_size,
            duration_minutes=request_data.duration,
            preferred_location=request_data.preferred_location,
        )
    except SQLAlchemyError:
        logger.exception("Error checking availability")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to check availability")


# ======================================================================
# GET /api/availability?date=YYYY-MM-DD - Ocupación por hora de un día
# ======================================================================
@router.get("", response_model=DailyAvailabilityResponse, summary="Ocupación por hora de un día")
def daily_availability(
    session: SessionDep,
    day: date = Query(..., alias="date", description="Día a consultar (YYYY-MM-DD)"),
):
    try:
        return daily_occupancy(day, SqlTableStore(session), SqlReservationStore(session))
    except SQLAlchemyError:
        logger.exception("Error fetching daily availability")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch availability information",
        )
