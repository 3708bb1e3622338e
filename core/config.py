import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Configuración de la aplicación leída desde variables de entorno (.env)."""

    def __init__(self):
        # --- Base de datos ---
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./restaurant.db")
        self.DB_ECHO: bool = _as_bool(os.getenv("DB_ECHO", "false"))

        # --- Seguridad (JWT) ---
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me-in-production")
        self.ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

        # --- Logging / CORS ---
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.CORS_ORIGINS: List[str] = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "http://localhost,http://localhost:3000").split(",")
            if origin.strip()
        ]

        # --- Correo (SMTP) ---
        self.SMTP_HOST: str = os.getenv("SMTP_HOST", "")
        self.SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
        self.SMTP_USER: str = os.getenv("SMTP_USER", "")
        self.SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
        self.SMTP_USE_TLS: bool = _as_bool(os.getenv("SMTP_USE_TLS", "true"))
        self.MAIL_FROM: str = os.getenv("MAIL_FROM", "Restaurant <noreply@example.com>")
        self.MAIL_REPLY_TO: str = os.getenv("MAIL_REPLY_TO", "reservations@example.com")

        # --- Datos del restaurante usados en los correos ---
        self.RESTAURANT_NAME: str = os.getenv("RESTAURANT_NAME", "Restaurant")
        self.RESTAURANT_PHONE: str = os.getenv("RESTAURANT_PHONE", "")
        self.RESTAURANT_EMAIL: str = os.getenv("RESTAURANT_EMAIL", "reservations@example.com")
        self.APP_URL: str = os.getenv("APP_URL", "http://localhost:3000")


settings = Settings()
