from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Dict, Tuple

from models.enums import ReservationStatus

# Ingreso medio estimado por reserva confirmada
AVERAGE_REVENUE_PER_RESERVATION = 85
AVERAGE_OCCUPANCY = 75
FORECAST_UPLIFT = 15

PERIODS = ("today", "week", "month")


def _start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min)


def _start_of_month(moment: datetime) -> datetime:
    return _start_of_day(moment).replace(day=1)


def _next_month(moment: datetime) -> datetime:
    first = _start_of_month(moment)
    return (first + timedelta(days=32)).replace(day=1)


def period_bounds(period: str, now: datetime) -> Tuple[datetime, datetime]:
    """Rango semiabierto [inicio, fin) del periodo que contiene `now`. Las semanas empiezan en lunes."""
    if period == "today":
        start = _start_of_day(now)
        return start, start + timedelta(days=1)
    if period == "week":
        start = _start_of_day(now) - timedelta(days=now.weekday())
        return start, start + timedelta(days=7)
    if period == "month":
        return _start_of_month(now), _next_month(now)
    raise ValueError(f"Unknown period: {period}")


def previous_period_bounds(period: str, now: datetime) -> Tuple[datetime, datetime]:
    start, _ = period_bounds(period, now)
    return period_bounds(period, start - timedelta(days=1))


@dataclass
class ReservationSummary:
    total: int
    confirmed: int
    pending: int
    cancelled: int


def summarize_reservations(counts: Dict[ReservationStatus, int]) -> ReservationSummary:
    def count(status: ReservationStatus) -> int:
        return counts.get(status, 0)

    return ReservationSummary(
        total=sum(counts.values()),
        confirmed=count(ReservationStatus.CONFIRMED) + count(ReservationStatus.SEATED) + count(ReservationStatus.COMPLETED),
        pending=count(ReservationStatus.PENDING),
        cancelled=count(ReservationStatus.CANCELLED) + count(ReservationStatus.NO_SHOW),
    )


def occupancy_percent(occupied_slots: int, total_tables: int) -> int:
    if total_tables <= 0:
        return 0
    return round(occupied_slots / total_tables * 100)


def estimated_revenue(confirmed: int) -> int:
    return confirmed * AVERAGE_REVENUE_PER_RESERVATION
