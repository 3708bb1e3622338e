import logging
import smtplib
from email.message import EmailMessage
from typing import Iterable, Union

from core.config import settings

logger = logging.getLogger(__name__)


class MailerNotConfigured(RuntimeError):
    """Se lanza cuando no hay servidor SMTP configurado (SMTP_HOST vacío)."""


class Mailer:
    """Envío de correos transaccionales vía SMTP."""

    def __init__(self, host: str, port: int, user: str = "", password: str = "",
                 use_tls: bool = True, sender: str = "", reply_to: str = ""):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.reply_to = reply_to

    def send(self, to: Union[str, Iterable[str]], subject: str, body: str) -> None:
        if not self.host:
            raise MailerNotConfigured("SMTP_HOST is not configured, email sending disabled.")

        recipients = [to] if isinstance(to, str) else list(to)

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        if self.reply_to:
            message["Reply-To"] = self.reply_to
        message.set_content(body)

        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(message)

        logger.info("Correo '%s' enviado a %s", subject, message["To"])


def get_mailer() -> Mailer:
    """Dependencia de FastAPI: construye el mailer a partir de la configuración."""
    return Mailer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        user=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        use_tls=settings.SMTP_USE_TLS,
        sender=settings.MAIL_FROM,
        reply_to=settings.MAIL_REPLY_TO,
    )
