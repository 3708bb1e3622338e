import logging
from datetime import datetime
from typing import List, Optional, Union

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, func, select

from core.database import SessionDep
from core.exceptions import ConflictException, NotFoundException, PermissionDeniedException, RestaurantException
from core.security import MANAGER_ROLES, ManagerUser, StaffUser
from models.enums import ReservationStatus, TableLocation, TableShape, TableStatus
from models.reservations import Reservation
from models.tables import DESCRIPTION_MAX_LENGTH, Table
from models.users import User
from schemas.tables_schema import (
    TableCreate,
    TableLayoutUpdate,
    TableListResponse,
    TableRead,
    TableStatusBulkRead,
    TableStatusRead,
    TableStatusUpdate,
    TableUpdate,
)
from services.stores import ReservationsForTable, SqlReservationStore, SqlTableStore, location_sort_key
from services.table_status import TableStatusEntry, current_reservation, next_reservation, table_status_board

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tables", tags=["TABLES"])

# Reservas que impiden dejar una mesa fuera de servicio
BLOCKING_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


def _get_table_or_404(session: SessionDep, table_id: int) -> Table:
    table = session.get(Table, table_id)
    if not table:
        raise NotFoundException(f"Table {table_id} not found")
    return table


def _ensure_number_free(session: SessionDep, number: int, table_id: Optional[int] = None) -> None:
    existing = session.exec(select(Table).where(Table.number == number)).first()
    if existing and existing.id != table_id:
        raise ConflictException(f"Table number {number} is already in use")


def _upcoming_reservations(session: SessionDep, table_id: int, now: datetime) -> List[Reservation]:
    return list(session.exec(
        select(Reservation).where(
            Reservation.table_id == table_id,
            col(Reservation.status).in_(BLOCKING_STATUSES),
            Reservation.date_time >= now,
        )
    ).all())


def _ensure_can_deactivate(session: SessionDep, table: Table, now: datetime, message: str) -> None:
    """Una mesa con reservas pendientes o confirmadas por delante no puede salir de servicio."""
    upcoming = _upcoming_reservations(session, table.id, now)
    if upcoming:
        raise ConflictException(message, details={"active_reservations": len(upcoming)})


def _append_note(table: Table, note: str) -> None:
    description = f"{table.description} | {note}" if table.description else note
    # Si no cabe, se descartan las notas más antiguas
    if len(description) > DESCRIPTION_MAX_LENGTH:
        description = "..." + description[-(DESCRIPTION_MAX_LENGTH - 3):]
    table.description = description


def _db_error(action: str):
    logger.exception("Error al %s", action)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}")


def _apply_status_update(session: SessionDep, status_data: TableStatusUpdate, current_user: User,
                         now: datetime) -> Table:
    table = _get_table_or_404(session, status_data.table_id)

    # 1. Dejar una mesa fuera de servicio requiere rol de gerente
    if status_data.status == TableStatus.OUT_OF_ORDER:
        if current_user.role not in MANAGER_ROLES:
            raise PermissionDeniedException("Insufficient permissions")
        _ensure_can_deactivate(
            session, table, now, f"Table {table.number} cannot be taken out of order: it has active reservations"
        )

    # 2. Notas de estado (mantenimiento incluye la hora estimada de liberación)
    note = status_data.notes
    if status_data.status == TableStatus.MAINTENANCE:
        note = f"Maintenance: {status_data.notes or 'no details given'}"
        if status_data.estimated_free_time:
            note += f" | expected free: {status_data.estimated_free_time:%Y-%m-%d %H:%M}"
    if note:
        _append_note(table, note)

    # 3. El estado persistente se refleja solo en is_active
    table.is_active = status_data.status != TableStatus.OUT_OF_ORDER
    table.updated_at = datetime.utcnow()
    session.add(table)
    return table


def _status_read(session: SessionDep, table: Table, current_status: TableStatus, now: datetime) -> TableStatusRead:
    reservations = SqlReservationStore(session).list_reservations(ReservationsForTable(table_id=table.id))
    return TableStatusRead.model_validate(TableStatusEntry(
        id=table.id,
        number=table.number,
        location=table.location,
        capacity=table.capacity,
        is_active=table.is_active,
        current_status=current_status,
        current_reservation=current_reservation(reservations, now),
        next_reservation=next_reservation(reservations, now),
        last_updated=now,
    ))


# ======================================================================
# GET /api/tables/status - Estado en vivo de todas las mesas
# ======================================================================
@router.get("/status", response_model=List[TableStatusRead], summary="Estado actual de todas las mesas")
def list_table_status(
    session: SessionDep,
    _: StaffUser,
    include_inactive: bool = Query(True, description="Incluir mesas fuera de servicio"),
):
    try:
        board = table_status_board(
            SqlTableStore(session), SqlReservationStore(session), datetime.now(), include_inactive=include_inactive
        )
        return [TableStatusRead.model_validate(entry) for entry in board]
    except SQLAlchemyError:
        raise _db_error("fetch table status")


# ======================================================================
# PATCH /api/tables/status - Cambio manual del estado de una o varias mesas
# ======================================================================
@router.patch(
    "/status",
    response_model=Union[TableStatusRead, TableStatusBulkRead],
    summary="Actualizar el estado de una mesa (o de varias con una lista)",
)
def update_table_status(
    status_data: Union[TableStatusUpdate, List[TableStatusUpdate]],
    session: SessionDep,
    current_user: StaffUser,
):
    """
    Acepta un único cambio o una lista de cambios. Una lista se aplica en una
    sola transacción: si un cambio falla no se aplica ninguno.
    """
    now = datetime.now()
    updates = status_data if isinstance(status_data, list) else [status_data]
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No table status updates were sent")

    try:
        tables = [_apply_status_update(session, update, current_user, now) for update in updates]
        session.commit()
        for table in tables:
            session.refresh(table)

        results = [_status_read(session, table, update.status, now) for table, update in zip(tables, updates)]
    except RestaurantException:
        session.rollback()
        raise
    except SQLAlchemyError:
        session.rollback()
        raise _db_error("update table status")

    for update, table in zip(updates, tables):
        logger.info("Mesa %s marcada como %s por %s", table.number, update.status.value, current_user.username)

    if isinstance(status_data, list):
        return TableStatusBulkRead(message=f"{len(results)} tables updated", updated_tables=results)
    return results[0]


# ======================================================================
# PATCH /api/tables/layout - Posiciones del plano del salón
# ======================================================================
@router.patch("/layout", response_model=List[TableRead], summary="Actualizar el plano del salón")
def update_layout(layout: TableLayoutUpdate, session: SessionDep, _: ManagerUser):
    try:
        updated = []
        now = datetime.utcnow()
        for position in layout.tables:
            table = _get_table_or_404(session, position.id)
            table.x_position = position.x_position
            table.y_position = position.y_position
            if position.shape:
                table.shape = position.shape
            table.updated_at = now
            session.add(table)
            updated.append(table)

        session.commit()
        for table in updated:
            session.refresh(table)
        return updated
    except (RestaurantException, HTTPException):
        session.rollback()
        raise
    except SQLAlchemyError:
        session.rollback()
        raise _db_error("update table layout")


# ======================================================================
# GET /api/tables - Listar mesas con filtros y paginación
# ======================================================================
@router.get("", response_model=TableListResponse, summary="Listar mesas con filtros y paginación")
def list_tables(
    session: SessionDep,
    _: StaffUser,
    location: Optional[TableLocation] = Query(None, description="Filtrar por ubicación"),
    is_active: Optional[bool] = Query(None, description="Filtrar por mesas activas/inactivas"),
    min_capacity: Optional[int] = Query(None, ge=1, description="Filtrar por capacidad mínima"),
    max_capacity: Optional[int] = Query(None, ge=1, description="Filtrar por capacidad máxima"),
    shape: Optional[TableShape] = Query(None, description="Filtrar por forma"),
    limit: int = Query(50, ge=1, le=100, description="Cantidad máxima de resultados por página"),
    offset: int = Query(0, ge=0, description="Número de elementos a omitir (para paginación)"),
):
    try:
        query = select(Table)

        # Aplicar filtros dinámicos
        if location:
            query = query.where(Table.location == location)
        if is_active is not None:
            query = query.where(Table.is_active == is_active)
        if min_capacity:
            query = query.where(Table.capacity >= min_capacity)
        if max_capacity:
            query = query.where(Table.capacity <= max_capacity)
        if shape:
            query = query.where(Table.shape == shape)

        # Total de registros que cumplen el filtro
        total_count = session.exec(select(func.count()).select_from(query.subquery())).one()

        # Paginación
        query = query.order_by(location_sort_key(), Table.number)
        tables = session.exec(query.offset(offset).limit(limit)).all()

        total_pages = (total_count + limit - 1) // limit
        current_page = (offset // limit) + 1

        return TableListResponse(
            items=tables,
            total_count=total_count,
            offset=offset,
            limit=limit,
            total_pages=total_pages,
            current_page=current_page
        )
    except SQLAlchemyError:
        raise _db_error("list tables")


# ======================================================================
# GET /api/tables/{table_id} - Obtener mesa por ID
# ======================================================================
@router.get("/{table_id}", response_model=TableRead, summary="Obtener detalles de una mesa por ID")
def get_table(table_id: int, session: SessionDep, _: StaffUser):
    return _get_table_or_404(session, table_id)


# ======================================================================
# POST /api/tables - Crear nueva mesa
# ======================================================================
@router.post("", response_model=TableRead, status_code=status.HTTP_201_CREATED, summary="Crear una nueva mesa")
def create_table(table_data: TableCreate, session: SessionDep, _: ManagerUser):
    try:
        _ensure_number_free(session, table_data.number)

        new_table = Table(**table_data.model_dump())
        session.add(new_table)
        session.commit()
        session.refresh(new_table)
        return new_table
    except SQLAlchemyError:
        session.rollback()
        raise _db_error("create table")


# ======================================================================
# PATCH /api/tables/{table_id} - Actualizar mesa
# ======================================================================
@router.patch("/{table_id}", response_model=TableRead, summary="Actualizar datos de una mesa")
def update_table(table_id: int, table_data: TableUpdate, session: SessionDep, _: ManagerUser):
    try:
        table = _get_table_or_404(session, table_id)

        update_data = table_data.model_dump(exclude_unset=True)
        if not update_data:
            raise HTTPException(status_code=400, detail="No fields were sent to update")

        if "number" in update_data:
            _ensure_number_free(session, update_data["number"], table_id=table.id)
        if update_data.get("is_active") is False and table.is_active:
            _ensure_can_deactivate(
                session, table, datetime.now(), f"Table {table.number} has upcoming reservations and cannot be deactivated"
            )

        for key, value in update_data.items():
            setattr(table, key, value)

        table.updated_at = datetime.utcnow()
        session.add(table)
        session.commit()
        session.refresh(table)
        return table
    except SQLAlchemyError:
        session.rollback()
        raise _db_error("update table")


# ======================================================================
# DELETE /api/tables/{table_id} - Desactivar mesa
# ======================================================================
@router.delete("/{table_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Desactivar una mesa")
def delete_table(table_id: int, session: SessionDep, _: ManagerUser):
    """Las mesas con historial de reservas no se borran: se desactivan."""
    try:
        table = _get_table_or_404(session, table_id)

        _ensure_can_deactivate(session, table, datetime.now(), "Table has upcoming reservations and cannot be removed")

        table.is_active = False
        table.updated_at = datetime.utcnow()
        session.add(table)
        session.commit()
        return
    except SQLAlchemyError:
        session.rollback()
        raise _db_error("delete table")
