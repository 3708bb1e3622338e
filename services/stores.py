"""
Colaboradores de acceso a datos para el núcleo de disponibilidad.

Los servicios reciben estos handles de forma explícita; nunca leen la sesión
global. Los filtros son estructuras cerradas en lugar de diccionarios sueltos.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol, Sequence, Union

from sqlalchemy import case
from sqlmodel import Session, col, select

from models.enums import ACTIVE_RESERVATION_STATUSES, ReservationStatus, TableLocation
from models.reservations import Reservation
from models.tables import Table


@dataclass(frozen=True)
class TableFilter:
    min_capacity: Optional[int] = None
    location: Optional[TableLocation] = None
    is_active: Optional[bool] = None


@dataclass(frozen=True)
class ReservationsForTable:
    table_id: int
    status_in: Sequence[ReservationStatus] = ACTIVE_RESERVATION_STATUSES


@dataclass(frozen=True)
class ReservationsInRange:
    """Reservas con inicio en [start, end)."""
    start: datetime
    end: datetime
    status_in: Sequence[ReservationStatus] = ACTIVE_RESERVATION_STATUSES


ReservationFilter = Union[ReservationsForTable, ReservationsInRange]


# Las ubicaciones se ordenan alfabéticamente en cualquier motor, no por el orden
# interno del tipo ENUM de la base de datos
LOCATION_ORDER = sorted(location.value for location in TableLocation)


def location_sort_key():
    return case({name: index for index, name in enumerate(LOCATION_ORDER)}, value=Table.location)


class TableStore(Protocol):
    def list_tables(self, filter: TableFilter) -> List[Table]: ...


class ReservationStore(Protocol):
    def list_reservations(self, filter: ReservationFilter) -> List[Reservation]: ...


class SqlTableStore:
    """Mesas ordenadas por ubicación, capacidad y número."""

    def __init__(self, session: Session):
        self.session = session

    def list_tables(self, filter: TableFilter) -> List[Table]:
        query = select(Table)
        if filter.min_capacity is not None:
            query = query.where(Table.capacity >= filter.min_capacity)
        if filter.location is not None:
            query = query.where(Table.location == filter.location)
        if filter.is_active is not None:
            query = query.where(Table.is_active == filter.is_active)

        query = query.order_by(location_sort_key(), Table.capacity, Table.number)
        return list(self.session.exec(query).all())


class SqlReservationStore:

    def __init__(self, session: Session):
        self.session = session

    def list_reservations(self, filter: ReservationFilter) -> List[Reservation]:
        query = select(Reservation).where(col(Reservation.status).in_(list(filter.status_in)))

        if isinstance(filter, ReservationsForTable):
            query = query.where(Reservation.table_id == filter.table_id)
        elif isinstance(filter, ReservationsInRange):
            query = query.where(Reservation.date_time >= filter.start, Reservation.date_time < filter.end)
        else:
            raise TypeError(f"Unsupported reservation filter: {type(filter).__name__}")

        query = query.order_by(Reservation.date_time)
        return list(self.session.exec(query).all())
