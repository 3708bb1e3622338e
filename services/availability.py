"""
Motor de disponibilidad de mesas.

Una mesa está disponible para una ventana [inicio, inicio + duración) si ninguna
de sus reservas activas se solapa con ella. Las ventanas son semiabiertas: una
reserva que termina justo cuando empieza otra no es conflicto.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from core.exceptions import ConflictException, ValidationException
from models.enums import TableLocation
from models.reservations import Reservation
from models.tables import Table
from services.stores import ReservationStore, ReservationsForTable, TableFilter, TableStore

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 120
MIN_DURATION_MINUTES = 60
MAX_DURATION_MINUTES = 300
MAX_RECOMMENDATIONS = 5

# Multiplicador de precio por ubicación (solo para mostrar/ordenar)
LOCATION_PRICING: Dict[TableLocation, float] = {
    TableLocation.TERRACE_SEA_VIEW: 1.2,
    TableLocation.TERRACE_STANDARD: 1.1,
    TableLocation.INDOOR_WINDOW: 1.0,
    TableLocation.INDOOR_STANDARD: 0.9,
    TableLocation.BAR_AREA: 0.8,
}


@dataclass
class TableOption:
    id: int
    number: int
    capacity: int
    location: TableLocation
    description: Optional[str] = None
    price_multiplier: Optional[float] = None


@dataclass
class AvailabilityResult:
    available: bool
    total_tables: int
    requested_date_time: datetime
    party_size: int
    duration: int
    preferred_location: Optional[TableLocation]
    tables_by_location: Dict[str, List[TableOption]]
    recommendations: List[TableOption]
    alternative_times: List[datetime] = field(default_factory=list)


def price_multiplier(location) -> float:
    try:
        return LOCATION_PRICING.get(TableLocation(location), 1.0)
    except ValueError:
        return 1.0


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return not (a_end <= b_start or b_end <= a_start)


def reservation_end(reservation: Reservation) -> datetime:
    duration = reservation.duration or DEFAULT_DURATION_MINUTES
    return reservation.date_time + timedelta(minutes=duration)


def validate_window(party_size: int, duration_minutes: int) -> None:
    """Rechaza ventanas inválidas antes de calcular solapamientos."""
    errors = []
    if party_size is None or party_size < 1:
        errors.append({"field": "party_size", "message": "Party size must be at least 1."})
    if duration_minutes is None or not MIN_DURATION_MINUTES <= duration_minutes <= MAX_DURATION_MINUTES:
        errors.append({
            "field": "duration",
            "message": f"Duration must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES} minutes.",
        })
    if errors:
        raise ValidationException("Invalid availability request", details=errors)


def conflicting_reservations(
    reservations: Iterable[Reservation],
    start: datetime,
    duration_minutes: int,
    exclude_id: Optional[int] = None,
) -> List[Reservation]:
    """Reservas (ya filtradas como activas) que se solapan con la ventana pedida."""
    end = start + timedelta(minutes=duration_minutes)
    return [
        reservation
        for reservation in reservations
        if exclude_id is None or reservation.id != exclude_id
        if intervals_overlap(reservation.date_time, reservation_end(reservation), start, end)
    ]


def ensure_table_free(
    reservation_store: ReservationStore,
    table_id: int,
    start: datetime,
    duration_minutes: int,
    exclude_reservation_id: Optional[int] = None,
) -> None:
    """
    Verificación en el momento de escribir: debe ejecutarse dentro de la misma
    transacción que inserta o modifica la reserva.
    """
    validate_window(1, duration_minutes)
    reservations = reservation_store.list_reservations(ReservationsForTable(table_id=table_id))
    conflicts = conflicting_reservations(reservations, start, duration_minutes, exclude_reservation_id)
    if conflicts:
        logger.info("Mesa %s ocupada a las %s (%s conflicto(s))", table_id, start, len(conflicts))
        raise ConflictException(
            "Table is not available at the requested time",
            details={"table_id": table_id, "conflicting_reservation_ids": [r.id for r in conflicts]},
        )


def _as_option(table: Table, with_multiplier: bool = False) -> TableOption:
    return TableOption(
        id=table.id,
        number=table.number,
        capacity=table.capacity,
        location=table.location,
        description=table.description,
        price_multiplier=price_multiplier(table.location) if with_multiplier else None,
    )


def find_available_tables(
    table_store: TableStore,
    reservation_store: ReservationStore,
    requested_start: datetime,
    party_size: int,
    duration_minutes: int = DEFAULT_DURATION_MINUTES,
    preferred_location: Optional[TableLocation] = None,
) -> AvailabilityResult:
    """
    Mesas libres para el grupo en la ventana pedida, agrupadas por ubicación y
    con hasta cinco recomendaciones. Operación de solo lectura: el resultado es
    orientativo y la reserva vuelve a validarse al escribirse.
    """
    validate_window(party_size, duration_minutes)

    # 1. Mesas candidatas (activas, con capacidad suficiente)
    candidates = table_store.list_tables(
        TableFilter(min_capacity=party_size, location=preferred_location, is_active=True)
    )

    # 2-4. Descartar mesas con reservas activas que se solapan
    available_tables: List[Table] = []
    for table in candidates:
        reservations = reservation_store.list_reservations(ReservationsForTable(table_id=table.id))
        if not conflicting_reservations(reservations, requested_start, duration_minutes):
            available_tables.append(table)

    # 5. Agrupar por ubicación conservando el orden de la consulta
    tables_by_location: Dict[str, List[TableOption]] = {}
    for table in available_tables:
        key = TableLocation(table.location).value
        tables_by_location.setdefault(key, []).append(_as_option(table))

    # 6-7. Recomendaciones con multiplicador de precio
    recommendations = [_as_option(table, with_multiplier=True) for table in available_tables[:MAX_RECOMMENDATIONS]]

    logger.debug(
        "Disponibilidad %s (grupo %s, %s min): %s de %s mesas libres",
        requested_start, party_size, duration_minutes, len(available_tables), len(candidates),
    )

    return AvailabilityResult(
        available=len(available_tables) > 0,
        total_tables=len(available_tables),
        requested_date_time=requested_start,
        party_size=party_size,
        duration=duration_minutes,
        preferred_location=preferred_location,
        tables_by_location=tables_by_location,
        recommendations=recommendations,
    )
