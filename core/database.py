import logging
from typing import Annotated

from fastapi import Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine, Session

from core.config import settings

logger = logging.getLogger(__name__)

# SQLite necesita check_same_thread=False para usarse desde el pool de FastAPI
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

# El motor de la base de datos
engine = create_engine(settings.DATABASE_URL, echo=settings.DB_ECHO, connect_args=connect_args)


def create_db_and_tables(bind=None):
    """Crea todas las tablas definidas en los modelos si no existen."""
    # Importar TODOS los modelos aquí para registrarlos en el metadata
    from models.users import User
    from models.tokens import Token
    from models.customers import Customer
    from models.customer_notes import CustomerNote
    from models.tables import Table
    from models.reservations import Reservation
    from models.menu import MenuCategory, MenuItem

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """Generador para obtener la sesión de la base de datos."""
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_session)]


def ping_database(engine) -> bool:
    """
    Intenta una consulta simple para despertar la base de datos,
    útil para servicios que hibernan la conexión.
    """
    logger.info("Intentando 'ping' a la base de datos...")
    try:
        with Session(engine) as session:
            session.execute(text("SELECT 1"))
        logger.info("Ping exitoso: conexión establecida.")
        return True
    except SQLAlchemyError as e:
        logger.warning("Fallo el ping a la base de datos: %s", e)
        return False
