"""Estado en vivo de las mesas, derivado de sus reservas al momento de leer."""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from models.enums import ReservationStatus, TableLocation, TableStatus
from models.reservations import Reservation
from models.tables import Table
from services.stores import ReservationStore, ReservationsForTable, TableFilter, TableStore

# Ventana fija de ocupación, independiente de la duración de la reserva
OCCUPANCY_WINDOW = timedelta(hours=2)


@dataclass
class TableStatusEntry:
    id: int
    number: int
    location: TableLocation
    capacity: int
    is_active: bool
    current_status: TableStatus
    current_reservation: Optional[Reservation]
    next_reservation: Optional[Reservation]
    last_updated: datetime


def _is_confirmed(reservation: Reservation) -> bool:
    return reservation.status == ReservationStatus.CONFIRMED


def current_reservation(reservations: Iterable[Reservation], now: datetime) -> Optional[Reservation]:
    """Reserva confirmada cuya ventana [inicio, inicio + 2h) contiene `now`."""
    for reservation in reservations:
        if _is_confirmed(reservation) and reservation.date_time <= now < reservation.date_time + OCCUPANCY_WINDOW:
            return reservation
    return None


def next_reservation(reservations: Iterable[Reservation], now: datetime) -> Optional[Reservation]:
    upcoming = [r for r in reservations if r.date_time > now]
    return min(upcoming, key=lambda r: r.date_time) if upcoming else None


def resolve_status(table: Table, active_reservations: Iterable[Reservation], now: datetime) -> TableStatus:
    """
    Precedencia: fuera de servicio > ocupada > reservada > disponible.
    MAINTENANCE nunca se produce aquí.
    """
    if not table.is_active:
        return TableStatus.OUT_OF_ORDER

    reservations = list(active_reservations)
    if current_reservation(reservations, now) is not None:
        return TableStatus.OCCUPIED
    if any(_is_confirmed(r) and r.date_time > now for r in reservations):
        return TableStatus.RESERVED
    return TableStatus.AVAILABLE


def table_status_board(
    table_store: TableStore,
    reservation_store: ReservationStore,
    now: datetime,
    include_inactive: bool = True,
) -> List[TableStatusEntry]:
    tables = table_store.list_tables(TableFilter(is_active=None if include_inactive else True))
    tables.sort(key=lambda t: (TableLocation(t.location).value, t.number))

    board = []
    for table in tables:
        reservations = reservation_store.list_reservations(ReservationsForTable(table_id=table.id))
        board.append(TableStatusEntry(
            id=table.id,
            number=table.number,
            location=table.location,
            capacity=table.capacity,
            is_active=table.is_active,
            current_status=resolve_status(table, reservations, now),
            current_reservation=current_reservation(reservations, now),
            next_reservation=next_reservation(reservations, now),
            last_updated=now,
        ))
    return board
