"""Ocupación por hora de un día, dentro del horario fijo del restaurante."""
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, List

from models.enums import ACTIVE_RESERVATION_STATUSES
from models.reservations import Reservation
from models.tables import Table
from services.availability import reservation_end
from services.stores import ReservationStore, ReservationsInRange, TableFilter, TableStore

OPENING_HOUR = 12
LAST_SLOT_HOUR = 22
PEAK_THRESHOLD = 80
RECOMMENDED_THRESHOLD = 60
MAX_RECOMMENDED_TIMES = 3


@dataclass
class HourlySlot:
    time: str
    available_tables: int
    total_capacity: int
    occupancy_rate: int


@dataclass
class DailyOccupancy:
    date: date
    total_tables: int
    total_reservations: int
    hourly_availability: List[HourlySlot]
    peak_hours: List[str]
    recommended_times: List[str]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def hourly_occupancy(day: date, reservations: Iterable[Reservation], tables: Iterable[Table]) -> List[HourlySlot]:
    active_tables = [table for table in tables if table.is_active]
    active_ids = {table.id for table in active_tables}
    active_reservations = [
        r for r in reservations
        if r.status in ACTIVE_RESERVATION_STATUSES and r.table_id in active_ids
    ]
    total = len(active_tables)

    slots = []
    for hour in range(OPENING_HOUR, LAST_SLOT_HOUR + 1):
        slot_instant = datetime.combine(day, time(hour, 0))
        occupied_ids = {
            r.table_id for r in active_reservations
            if r.date_time <= slot_instant < reservation_end(r)
        }

        available = total - len(occupied_ids)
        capacity = sum(table.capacity for table in active_tables if table.id not in occupied_ids)
        rate = _round_half_up(100 * (total - available) / total) if total else 0

        slots.append(HourlySlot(
            time=f"{hour:02d}:00",
            available_tables=available,
            total_capacity=capacity,
            occupancy_rate=rate,
        ))
    return slots


def peak_hours(slots: Iterable[HourlySlot]) -> List[str]:
    return [slot.time for slot in slots if slot.occupancy_rate > PEAK_THRESHOLD]


def recommended_times(slots: Iterable[HourlySlot]) -> List[str]:
    return [slot.time for slot in slots if slot.occupancy_rate < RECOMMENDED_THRESHOLD][:MAX_RECOMMENDED_TIMES]


def daily_occupancy(day: date, table_store: TableStore, reservation_store: ReservationStore) -> DailyOccupancy:
    start = datetime.combine(day, time.min)
    reservations = reservation_store.list_reservations(
        ReservationsInRange(start=start, end=start + timedelta(days=1))
    )
    tables = table_store.list_tables(TableFilter(is_active=True))

    slots = hourly_occupancy(day, reservations, tables)
    return DailyOccupancy(
        date=day,
        total_tables=len(tables),
        total_reservations=len(reservations),
        hourly_availability=slots,
        peak_hours=peak_hours(slots),
        recommended_times=recommended_times(slots),
    )
