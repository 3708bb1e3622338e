import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import func, or_, select

from core.database import SessionDep
from core.exceptions import ConflictException, NotFoundException, PermissionDeniedException, ValidationException
from core.mailer import Mailer, get_mailer
from core.security import ManagerUser, StaffUser
from models.customer_notes import CustomerNote
from models.customers import Customer
from models.enums import Language
from models.reservations import Reservation
from models.tables import Table
from schemas.customers_schema import (
    CustomerCreate,
    CustomerNoteCreate,
    CustomerNoteRead,
    CustomerRead,
    CustomerUpdate,
    GdprAction,
    GdprActionRequest,
)
from services.gdpr import gdpr_status
from services.notifications import send_welcome_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/customers", tags=["CUSTOMERS"])


def _get_customer_or_404(session: SessionDep, customer_id: int) -> Customer:
    customer = session.get(Customer, customer_id)
    if not customer:
        raise NotFoundException(f"Customer {customer_id} not found")
    return customer


def _ensure_email_free(session: SessionDep, email: str, customer_id: Optional[int] = None) -> None:
    existing = session.exec(select(Customer).where(Customer.email == email)).first()
    if existing and existing.id != customer_id:
        raise ConflictException("A customer with this email already exists")


def _reservation_count(session: SessionDep, customer_id: int) -> int:
    return session.exec(
        select(func.count()).select_from(Reservation).where(Reservation.customer_id == customer_id)
    ).one()


# 1. Obtener lista de clientes (GET)
@router.get("", response_model=Dict[str, Any], summary="Listar y filtrar clientes con paginación")
def list_customers(
    session: SessionDep,
    _: StaffUser,
    offset: int = Query(default=0, ge=0, description="Número de registros a omitir (offset)."),
    limit: int = Query(default=20, ge=1, le=100, description="Máxima cantidad de clientes a retornar (limit)."),
    search: Optional[str] = Query(default=None, max_length=100, description="Buscar en nombre, email o teléfono."),
    language: Optional[Language] = Query(default=None),
    is_vip: Optional[bool] = Query(default=None),
):
    """
    Obtiene una lista paginada y filtrada de clientes, incluyendo el conteo total de registros.
    """
    try:
        query = select(Customer)

        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                Customer.first_name.ilike(pattern),
                Customer.last_name.ilike(pattern),
                Customer.email.ilike(pattern),
                Customer.phone.ilike(pattern),
            ))
        if language:
            query = query.where(Customer.language == language)
        if is_vip is not None:
            query = query.where(Customer.is_vip == is_vip)

        total_count = session.exec(select(func.count()).select_from(query.subquery())).one()
        customers = session.exec(
            query.order_by(Customer.last_name, Customer.first_name).limit(limit).offset(offset)
        ).all()

        return {
            "data": [CustomerRead.model_validate(c) for c in customers],
            "metadata": {
                "total_count": total_count,
                "limit": limit,
                "offset": offset
            }
        }
    except SQLAlchemyError:
        logger.exception("Error listing customers")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to list customers")


# 2. Obtener un cliente en particular (GET)
@router.get("/{customer_id}", response_model=CustomerRead)
def read_customer(customer_id: int, session: SessionDep, _: StaffUser):
    return _get_customer_or_404(session, customer_id)


# 3. Crear cliente (POST)
@router.post("", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
def create_customer(customer_data: CustomerCreate, session: SessionDep, _: StaffUser):
    try:
        _ensure_email_free(session, customer_data.email)

        customer = Customer.model_validate(customer_data.model_dump())
        customer.consent_date = datetime.utcnow()

        session.add(customer)
        session.commit()
        session.refresh(customer)
        return customer
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error creating customer")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create customer")


# 4. Actualizar cliente (PATCH)
@router.patch("/{customer_id}", response_model=CustomerRead)
def update_customer(customer_id: int, customer_data: CustomerUpdate, session: SessionDep, _: StaffUser):
    try:
        customer = _get_customer_or_404(session, customer_id)

        data_to_update = customer_data.model_dump(exclude_unset=True)
        if "email" in data_to_update and data_to_update["email"] != customer.email:
            _ensure_email_free(session, data_to_update["email"], customer_id=customer.id)

        # Cualquier cambio de consentimiento renueva la fecha de consentimiento
        if {"email_consent", "marketing_consent"} & data_to_update.keys():
            customer.consent_date = datetime.utcnow()

        customer.sqlmodel_update(data_to_update)
        customer.updated_at = datetime.utcnow()

        session.add(customer)
        session.commit()
        session.refresh(customer)
        return customer
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error updating customer %s", customer_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update customer")


# 5. Exportar datos del cliente (GDPR, portabilidad)
@router.get("/{customer_id}/export", summary="Exportar los datos personales de un cliente")
def export_customer(customer_id: int, session: SessionDep, current_user: StaffUser):
    customer = _get_customer_or_404(session, customer_id)

    rows = session.exec(
        select(Reservation, Table)
        .join(Table, Reservation.table_id == Table.id, isouter=True)
        .where(Reservation.customer_id == customer.id)
        .order_by(Reservation.date_time.desc())
    ).all()

    logger.info("Exportación GDPR del cliente %s solicitada por %s", customer.id, current_user.username)

    return {
        "export_info": {
            "export_date": datetime.utcnow().isoformat(),
            "requested_by": current_user.username,
            "purpose": "GDPR data portability request",
            "format": "JSON",
        },
        "personal_data": {
            "id": customer.id,
            "first_name": customer.first_name,
            "last_name": customer.last_name,
            "email": customer.email,
            "phone": customer.phone,
            "language": customer.language,
            "created_at": customer.created_at,
            "updated_at": customer.updated_at,
        },
        "preferences": {
            "preferred_location": customer.preferred_location,
            "allergies": customer.allergies,
        },
        "consents": {
            "data_processing_consent": customer.data_processing_consent,
            "email_consent": customer.email_consent,
            "marketing_consent": customer.marketing_consent,
            "consent_date": customer.consent_date,
        },
        "reservations": [
            {
                "id": reservation.id,
                "date_time": reservation.date_time,
                "party_size": reservation.party_size,
                "duration": reservation.duration,
                "status": reservation.status,
                "special_requests": reservation.special_requests,
                "occasion": reservation.occasion,
                "table": {
                    "number": table.number,
                    "capacity": table.capacity,
                    "location": table.location,
                } if table else None,
            }
            for reservation, table in rows
        ],
    }


# 6. Eliminar cliente (DELETE)
@router.delete("/{customer_id}", summary="Eliminar un cliente sin reservas")
def delete_customer(customer_id: int, session: SessionDep, current_user: ManagerUser):
    """Solo se eliminan clientes sin reservas; sus notas se borran con él."""
    try:
        customer = _get_customer_or_404(session, customer_id)

        reservation_count = _reservation_count(session, customer.id)
        if reservation_count:
            raise ConflictException(
                "Cannot delete customer with existing reservations",
                details={"reservation_count": reservation_count},
            )

        session.delete(customer)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error deleting customer %s", customer_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete customer")

    logger.info("Cliente %s eliminado por %s", customer_id, current_user.username)
    return {"message": "Customer deleted successfully"}


# 7. Estado GDPR del cliente (GET)
@router.get("/{customer_id}/gdpr", summary="Estado de consentimientos y derechos GDPR")
def read_gdpr_status(customer_id: int, session: SessionDep, _: StaffUser):
    customer = _get_customer_or_404(session, customer_id)
    note_count = session.exec(
        select(func.count()).select_from(CustomerNote).where(CustomerNote.customer_id == customer.id)
    ).one()
    return gdpr_status(customer, _reservation_count(session, customer.id), note_count, datetime.utcnow())


# 8. Acciones GDPR (POST)
@router.post("/{customer_id}/gdpr", summary="Gestionar una solicitud GDPR del cliente")
def handle_gdpr_action(customer_id: int, request_data: GdprActionRequest, session: SessionDep, current_user: StaffUser):
    customer = _get_customer_or_404(session, customer_id)
    action = request_data.action

    try:
        if action == GdprAction.UPDATE_CONSENT:
            if request_data.consent_updates is None:
                raise ValidationException("Consent updates required for UPDATE_CONSENT action")
            customer.sqlmodel_update(request_data.consent_updates.model_dump(exclude_none=True))
            customer.consent_date = datetime.utcnow()
            customer.updated_at = customer.consent_date
            session.add(customer)
            session.commit()
            session.refresh(customer)
            result = {
                "action": "consent_updated",
                "new_consent_status": {
                    "data_processing_consent": customer.data_processing_consent,
                    "email_consent": customer.email_consent,
                    "marketing_consent": customer.marketing_consent,
                    "consent_date": customer.consent_date,
                },
                "message": "Consent preferences updated successfully",
            }

        elif action == GdprAction.REVOKE_ALL_CONSENT:
            customer.data_processing_consent = False
            customer.email_consent = False
            customer.marketing_consent = False
            customer.consent_date = datetime.utcnow()
            customer.updated_at = customer.consent_date
            session.add(customer)
            session.commit()
            result = {
                "action": "consent_revoked",
                "message": "All consent has been revoked",
                "next_steps": "Customer data will be anonymized according to retention policy",
            }

        elif action == GdprAction.REQUEST_DELETION:
            reservation_count = _reservation_count(session, customer.id)
            if reservation_count:
                raise ConflictException(
                    "Cannot process deletion request: customer has existing reservations",
                    details={"reservation_count": reservation_count},
                )
            result = {
                "action": "deletion_request_approved",
                "message": "Customer data can be safely deleted",
                "warning": "This action cannot be undone",
            }

        else:
            result = {
                "action": "export_request_acknowledged",
                "message": "Data export can be processed",
                "export_url": f"/api/customers/{customer.id}/export",
            }
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error processing GDPR request for customer %s", customer_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to process GDPR request")

    # Registro de auditoría
    logger.info(
        "Acción GDPR %s sobre el cliente %s por %s (motivo: %s)",
        action.value, customer_id, current_user.username, request_data.reason or "-",
    )
    return result


# 9. Notas internas del cliente (GET / POST)
@router.get("/{customer_id}/notes", response_model=List[CustomerNoteRead])
def list_customer_notes(customer_id: int, session: SessionDep, _: StaffUser):
    customer = _get_customer_or_404(session, customer_id)
    return session.exec(
        select(CustomerNote)
        .where(CustomerNote.customer_id == customer.id)
        .order_by(CustomerNote.created_at.desc(), CustomerNote.id.desc())
    ).all()


@router.post("/{customer_id}/notes", response_model=CustomerNoteRead, status_code=status.HTTP_201_CREATED)
def create_customer_note(customer_id: int, note_data: CustomerNoteCreate, session: SessionDep, current_user: StaffUser):
    customer = _get_customer_or_404(session, customer_id)
    try:
        note = CustomerNote(
            customer_id=customer.id,
            user_id=current_user.id,
            note=note_data.note,
            is_important=note_data.is_important,
        )
        session.add(note)
        session.commit()
        session.refresh(note)
        return note
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error creating note for customer %s", customer_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create customer note")


# 10. Correo de bienvenida (POST)
@router.post("/{customer_id}/welcome-email", summary="Enviar el correo de bienvenida")
def send_customer_welcome_email(
    customer_id: int,
    session: SessionDep,
    _: StaffUser,
    mailer: Mailer = Depends(get_mailer),
):
    customer = _get_customer_or_404(session, customer_id)
    if not customer.email_consent:
        raise PermissionDeniedException("Customer has not consented to email communication")

    if not send_welcome_email(mailer, customer):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to send welcome email")

    return {"message": "Welcome email sent successfully", "recipient": customer.email}
