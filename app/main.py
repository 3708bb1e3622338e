import logging
import os
import sys
from pathlib import Path
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

# --- Configuración de Path para Módulos Hermanos ---
ROOT_DIR = Path(__file__).parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))
# ------------------------------------------------------------------------

from core.config import settings
from core.database import create_db_and_tables, engine, ping_database
from core.exceptions import RestaurantException

# --- Importación de Routers ---
from routers import auth
from routers import availability
from routers import customers
from routers import dashboard
from routers import menu
from routers import reservations
from routers import tables

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Restaurant Reservations API",
    version="1.0.0",
    description="Backend para reservas, mesas, clientes y métricas del restaurante."
)

# --- Evento de Inicio ---
@app.on_event("startup")
def startup():
    """
    Función que se ejecuta al iniciar la aplicación.
    1. Crea las tablas.
    2. Realiza un 'ping' a la DB para despertar la conexión.
    """
    create_db_and_tables()
    logger.info("Tablas verificadas.")

    if engine:
        ping_database(engine)


# --- Manejo de errores ---
@app.exception_handler(RestaurantException)
async def restaurant_exception_handler(request: Request, exc: RestaurantException):
    content = {"error": exc.message}
    if exc.details is not None:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Los datos inválidos se devuelven como 400 con el detalle por campo."""
    details = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path")),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request data", "details": details},
    )


# --- Configuración de CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Inclusión de Routers (Rutas de la API) ---
app.include_router(auth.router)
app.include_router(availability.router)
app.include_router(tables.router)
app.include_router(reservations.router)
app.include_router(customers.router)
app.include_router(dashboard.router)
app.include_router(menu.router)


# --- Ruta Raíz de Bienvenida ---
@app.get("/", tags=["API Health"])
def read_root():
    """Verifica que la API está en línea."""
    return {"message": "Restaurant Reservations API online"}


# --- Ejecución Local ---
if __name__ == "__main__":
    port = int(os.environ.get("PORT", 10000))
    uvicorn.run("app.main:app", host="0.0.0.0", port=port, reload=True)
