import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, func, select

from core.database import SessionDep
from core.exceptions import ConflictException, NotFoundException, RestaurantException
from core.mailer import Mailer, get_mailer
from core.security import OptionalUser, StaffUser
from models.customers import Customer
from models.enums import ACTIVE_RESERVATION_STATUSES, ReservationStatus
from models.reservations import Reservation
from models.tables import Table
from schemas.reservations_schema import ReservationCreate, ReservationRead, ReservationUpdate
from services.availability import ensure_table_free
from services.notifications import send_reservation_cancellation, send_reservation_confirmation
from services.stores import SqlReservationStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reservations", tags=["RESERVATIONS"])


def _get_reservation_or_404(session: SessionDep, reservation_id: int) -> Reservation:
    reservation = session.get(Reservation, reservation_id)
    if not reservation:
        raise NotFoundException(f"Reservation {reservation_id} not found")
    return reservation


def _lock_table(session: SessionDep, table_id: int) -> Table:
    """Bloquea la fila de la mesa hasta el commit (SELECT ... FOR UPDATE donde exista)."""
    table = session.exec(select(Table).where(Table.id == table_id).with_for_update()).first()
    if not table:
        raise NotFoundException(f"Table {table_id} not found")
    if not table.is_active:
        raise ConflictException(f"Table {table.number} is out of order")
    return table


def _reserve_table(session: SessionDep, table_id: int, start: datetime, duration: int,
                   party_size: int, exclude_reservation_id: Optional[int] = None) -> Table:
    """Revalida el solapamiento dentro de la transacción que escribe la reserva."""
    table = _lock_table(session, table_id)
    if party_size > table.capacity:
        logger.warning("Grupo de %s asignado a la mesa %s (capacidad %s)", party_size, table.number, table.capacity)
    ensure_table_free(SqlReservationStore(session), table.id, start, duration, exclude_reservation_id)
    return table


def _resolve_customer(session: SessionDep, data: ReservationCreate) -> Customer:
    if data.customer_id is not None:
        customer = session.get(Customer, data.customer_id)
        if not customer:
            raise NotFoundException(f"Customer {data.customer_id} not found")
        return customer

    customer = session.exec(select(Customer).where(Customer.email == data.email)).first()
    if customer:
        return customer

    customer = Customer(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        phone=data.phone,
        preferred_location=data.preferred_location,
        email_consent=data.email_consent,
        marketing_consent=data.marketing_consent,
        data_processing_consent=data.data_processing_consent,
        consent_date=datetime.utcnow(),
    )
    session.add(customer)
    session.flush()
    return customer


# ==========================================================
# GET → Listar reservas con filtros y metadatos
# ==========================================================
@router.get("", status_code=status.HTTP_200_OK)
def list_reservations(
    session: SessionDep,
    _: StaffUser,
    start_date: Optional[datetime] = Query(None, description="Desde fecha/hora"),
    end_date: Optional[datetime] = Query(None, description="Hasta fecha/hora"),
    reservation_status: Optional[ReservationStatus] = Query(None, alias="status", description="Filtrar por estado"),
    customer_id: Optional[int] = Query(None, description="Filtrar por cliente"),
    table_id: Optional[int] = Query(None, description="Filtrar por mesa"),
    limit: int = Query(100, ge=1, le=500, description="Límite de resultados"),
    offset: int = Query(0, ge=0, description="Desplazamiento"),
):
    """Lista las reservas ordenadas por fecha, con filtros y paginación."""
    try:
        query = select(Reservation)

        if start_date:
            query = query.where(col(Reservation.date_time) >= start_date)
        if end_date:
            query = query.where(col(Reservation.date_time) <= end_date)
        if reservation_status:
            query = query.where(Reservation.status == reservation_status)
        if customer_id:
            query = query.where(Reservation.customer_id == customer_id)
        if table_id:
            query = query.where(Reservation.table_id == table_id)

        total_count = session.exec(
            select(func.count()).select_from(query.subquery())
        ).one()

        reservations = session.exec(
            query.order_by(Reservation.date_time).limit(limit).offset(offset)
        ).all()

        return {
            "data": [ReservationRead.model_validate(r) for r in reservations],
            "metadata": {
                "total_count": total_count,
                "limit": limit,
                "offset": offset
            }
        }
    except SQLAlchemyError:
        logger.exception("Error fetching reservations")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch reservations")


# ==========================================================
# GET → Obtener una reserva específica
# ==========================================================
@router.get("/{reservation_id}", response_model=ReservationRead)
def read_reservation(reservation_id: int, session: SessionDep, _: StaffUser):
    return _get_reservation_or_404(session, reservation_id)


# ==========================================================
# POST → Crear una reserva (pública)
# ==========================================================
@router.post("", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
def create_reservation(
    reservation_data: ReservationCreate,
    session: SessionDep,
    current_user: OptionalUser,
    mailer: Mailer = Depends(get_mailer),
):
    """Crea la reserva en estado PENDING y envía la confirmación si el cliente lo consiente."""
    table_number = None
    try:
        customer = _resolve_customer(session, reservation_data)

        # La comprobación de conflicto y el INSERT van en la misma transacción
        if reservation_data.table_id is not None:
            table = _reserve_table(
                session,
                reservation_data.table_id,
                reservation_data.date_time,
                reservation_data.duration,
                reservation_data.party_size,
            )
            table_number = table.number

        reservation = Reservation(
            customer_id=customer.id,
            table_id=reservation_data.table_id,
            date_time=reservation_data.date_time,
            party_size=reservation_data.party_size,
            duration=reservation_data.duration,
            special_requests=reservation_data.special_requests,
            occasion=reservation_data.occasion,
            dietary_notes=reservation_data.dietary_notes,
            source=reservation_data.source,
            status=ReservationStatus.PENDING,
            created_by_id=current_user.id if current_user else None,
        )
        session.add(reservation)
        session.commit()
        session.refresh(reservation)
        session.refresh(customer)

    except RestaurantException:
        session.rollback()
        raise
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error creating reservation")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create reservation")

    logger.info("Reserva %s creada para %s (%s personas)", reservation.id, reservation.date_time, reservation.party_size)
    send_reservation_confirmation(mailer, customer, reservation, table_number)
    return reservation


# ==========================================================
# PATCH → Actualizar una reserva
# ==========================================================
@router.patch("/{reservation_id}", response_model=ReservationRead)
def update_reservation(
    reservation_id: int,
    reservation_data: ReservationUpdate,
    session: SessionDep,
    current_user: StaffUser,
    mailer: Mailer = Depends(get_mailer),
):
    try:
        reservation = _get_reservation_or_404(session, reservation_id)
        previous_status = reservation.status
        update_data = reservation_data.model_dump(exclude_unset=True)
        if not update_data:
            raise HTTPException(status_code=400, detail="No fields were sent to update")

        new_status = update_data.get("status", reservation.status)
        table_id = update_data.get("table_id", reservation.table_id)
        date_time = update_data.get("date_time", reservation.date_time)
        duration = update_data.get("duration", reservation.duration)
        party_size = update_data.get("party_size", reservation.party_size)

        # 1. Revalidar conflictos si cambia la mesa o la ventana, o si la reserva se reactiva
        window_changed = any(key in update_data for key in ("table_id", "date_time", "duration"))
        reactivated = previous_status not in ACTIVE_RESERVATION_STATUSES
        if table_id is not None and new_status in ACTIVE_RESERVATION_STATUSES and (window_changed or reactivated):
            _reserve_table(session, table_id, date_time, duration, party_size, exclude_reservation_id=reservation.id)

        # 2. Aplicar cambios
        reservation.sqlmodel_update(update_data)

        now = datetime.utcnow()
        if new_status == ReservationStatus.COMPLETED and previous_status != ReservationStatus.COMPLETED:
            reservation.completed_at = now
        if new_status == ReservationStatus.CANCELLED and previous_status != ReservationStatus.CANCELLED:
            reservation.cancelled_at = now

        reservation.updated_by_id = current_user.id
        reservation.updated_at = now

        session.add(reservation)
        session.commit()
        session.refresh(reservation)

    except (HTTPException, RestaurantException):
        session.rollback()
        raise
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error updating reservation %s", reservation_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update reservation")

    if new_status == ReservationStatus.CANCELLED and previous_status != ReservationStatus.CANCELLED:
        send_reservation_cancellation(mailer, reservation.customer, reservation, reservation.cancellation_reason)

    return reservation


# ==========================================================
# DELETE → Cancelar una reserva (no se borra)
# ==========================================================
@router.delete("/{reservation_id}", response_model=ReservationRead)
def cancel_reservation(
    reservation_id: int,
    session: SessionDep,
    current_user: StaffUser,
    mailer: Mailer = Depends(get_mailer),
):
    try:
        reservation = _get_reservation_or_404(session, reservation_id)
        if reservation.status == ReservationStatus.CANCELLED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Reservation is already cancelled")

        now = datetime.utcnow()
        reservation.status = ReservationStatus.CANCELLED
        reservation.cancelled_at = now
        reservation.cancellation_reason = "Cancelled by staff"
        reservation.updated_by_id = current_user.id
        reservation.updated_at = now

        session.add(reservation)
        session.commit()
        session.refresh(reservation)

    except (HTTPException, RestaurantException):
        session.rollback()
        raise
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error cancelling reservation %s", reservation_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to cancel reservation")

    send_reservation_cancellation(mailer, reservation.customer, reservation, "Cancelled by restaurant")
    return reservation
