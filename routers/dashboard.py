import logging
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, func, select

from core.database import SessionDep
from core.security import StaffUser
from models.customers import Customer
from models.enums import ReservationStatus
from models.reservations import Reservation
from models.tables import Table
from services.dashboard import (
    AVERAGE_OCCUPANCY,
    AVERAGE_REVENUE_PER_RESERVATION,
    FORECAST_UPLIFT,
    estimated_revenue,
    occupancy_percent,
    period_bounds,
    previous_period_bounds,
    summarize_reservations,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["DASHBOARD"])

OCCUPYING_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.SEATED)


def _count(session: SessionDep, query) -> int:
    return session.exec(select(func.count()).select_from(query.subquery())).one()


def _reservations_between(start: datetime, end: datetime):
    return select(Reservation).where(Reservation.date_time >= start, Reservation.date_time < end)


@router.get("/metrics", summary="Métricas del panel de control")
def dashboard_metrics(
    response: Response,
    session: SessionDep,
    _: StaffUser,
    period: Literal["today", "week", "month"] = Query("today"),
    compare_with_previous: bool = Query(True),
):
    now = datetime.now()
    start, end = period_bounds(period, now)

    try:
        # 1. Reservas por estado
        rows = session.exec(
            select(Reservation.status, func.count(Reservation.id))
            .where(Reservation.date_time >= start, Reservation.date_time < end)
            .group_by(Reservation.status)
        ).all()
        summary = summarize_reservations({row[0]: row[1] for row in rows})

        # 2. Clientes
        new_customers = _count(session, select(Customer).where(Customer.created_at >= start, Customer.created_at < end))
        vip_customers = _count(session, select(Customer).where(Customer.is_vip == True))
        total_customers = _count(session, select(Customer))

        # 3. Ocupación
        total_tables = _count(session, select(Table).where(Table.is_active == True))
        occupied_slots = _count(
            session,
            _reservations_between(start, end).where(col(Reservation.status).in_(OCCUPYING_STATUSES)),
        )
        occupancy = occupancy_percent(occupied_slots, total_tables)
        revenue = estimated_revenue(summary.confirmed)

        trends = {
            "reservations_vs_previous": 0,
            "customers_vs_previous": 0,
            "occupancy_vs_previous": 0,
            "revenue_vs_previous": 0,
        }
        if compare_with_previous:
            prev_start, prev_end = previous_period_bounds(period, now)
            prev_reservations = _count(session, _reservations_between(prev_start, prev_end))
            prev_customers = _count(
                session, select(Customer).where(Customer.created_at >= prev_start, Customer.created_at < prev_end)
            )
            prev_occupied = _count(
                session,
                _reservations_between(prev_start, prev_end).where(col(Reservation.status).in_(OCCUPYING_STATUSES)),
            )
            trends = {
                "reservations_vs_previous": summary.total - prev_reservations,
                "customers_vs_previous": new_customers - prev_customers,
                "occupancy_vs_previous": occupancy - occupancy_percent(prev_occupied, total_tables),
                "revenue_vs_previous": revenue - estimated_revenue(prev_reservations),
            }
    except SQLAlchemyError:
        logger.exception("Error fetching dashboard metrics")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch dashboard metrics")

    response.headers["Cache-Control"] = "private, max-age=60"

    return {
        "current": {
            "reservations": {
                "total": summary.total,
                "confirmed": summary.confirmed,
                "pending": summary.pending,
                "cancelled": summary.cancelled,
            },
            "occupancy": {
                "current": occupancy,
                "average": AVERAGE_OCCUPANCY,
                "forecast": min(occupancy + FORECAST_UPLIFT, 100),
            },
            "customers": {
                "new": new_customers,
                "returning": total_customers - new_customers,
                "vip": vip_customers,
                "total": total_customers,
            },
            "revenue": {
                "estimated": revenue,
                "average_per_reservation": AVERAGE_REVENUE_PER_RESERVATION,
            },
        },
        "trends": trends,
        "period": period,
        "last_updated": now.isoformat(),
    }
