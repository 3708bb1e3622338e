import logging
from typing import Optional

from core.config import settings
from core.mailer import Mailer, MailerNotConfigured
from models.customers import Customer
from models.reservations import Reservation

logger = logging.getLogger(__name__)


def _full_name(customer: Customer) -> str:
    return f"{customer.first_name} {customer.last_name}"


def _format_when(reservation: Reservation) -> str:
    return reservation.date_time.strftime("%d.%m.%Y %H:%M")


def render_confirmation(customer: Customer, reservation: Reservation, table_number: Optional[int] = None) -> str:
    lines = [
        f"Hello {_full_name(customer)},",
        "",
        f"thank you for your reservation at {settings.RESTAURANT_NAME}.",
        "",
        f"Date and time: {_format_when(reservation)}",
        f"Guests: {reservation.party_size}",
    ]
    if table_number is not None:
        lines.append(f"Table: {table_number}")
    if reservation.special_requests:
        lines.append(f"Special requests: {reservation.special_requests}")
    lines += [
        "",
        "Questions or changes:",
        f"Phone: {settings.RESTAURANT_PHONE}",
        f"Email: {settings.RESTAURANT_EMAIL}",
    ]
    return "\n".join(lines)


def render_cancellation(customer: Customer, reservation: Reservation, reason: Optional[str] = None) -> str:
    lines = [
        f"Hello {_full_name(customer)},",
        "",
        f"your reservation for {_format_when(reservation)} has been cancelled.",
    ]
    if reason:
        lines.append(f"Reason: {reason}")
    lines += [
        "",
        f"Book again: {settings.APP_URL}/reservations",
    ]
    return "\n".join(lines)


def _deliver(mailer: Mailer, to: str, subject: str, body: str) -> bool:
    """Los fallos de correo se registran pero nunca hacen fallar la petición."""
    try:
        mailer.send(to, subject, body)
        return True
    except MailerNotConfigured as e:
        logger.warning("%s", e)
    except Exception:
        logger.exception("Failed to send email '%s' to %s", subject, to)
    return False


def send_reservation_confirmation(mailer: Mailer, customer: Customer, reservation: Reservation,
                                  table_number: Optional[int] = None) -> bool:
    if not customer.email_consent:
        return False
    return _deliver(
        mailer,
        customer.email,
        f"Reservation confirmation - {settings.RESTAURANT_NAME}",
        render_confirmation(customer, reservation, table_number),
    )


def send_reservation_cancellation(mailer: Mailer, customer: Customer, reservation: Reservation,
                                  reason: Optional[str] = None) -> bool:
    if not customer.email_consent:
        return False
    return _deliver(
        mailer,
        customer.email,
        f"Reservation cancelled - {settings.RESTAURANT_NAME}",
        render_cancellation(customer, reservation, reason),
    )


def render_welcome(customer: Customer) -> str:
    lines = [
        f"Hello {_full_name(customer)},",
        "",
        f"welcome to {settings.RESTAURANT_NAME}. We look forward to your visit.",
        "",
        f"Reserve a table: {settings.APP_URL}/reservations",
        f"Phone: {settings.RESTAURANT_PHONE}",
    ]
    return "\n".join(lines)


def send_welcome_email(mailer: Mailer, customer: Customer) -> bool:
    if not customer.email_consent:
        return False
    return _deliver(
        mailer,
        customer.email,
        f"Welcome to {settings.RESTAURANT_NAME}",
        render_welcome(customer),
    )
