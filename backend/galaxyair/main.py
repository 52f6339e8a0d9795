import logging
import os
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from galaxyair.api.router import api_router
from galaxyair.booking.errors import (
    AvailabilityConflict,
    BookingFlowError,
    CollaboratorError,
    FieldValidationError,
    InvalidTransition,
    UnknownOffer,
)
from galaxyair.core.config import settings
from galaxyair.core.logging_config import configure_logging
from galaxyair.db.init_db import create_tables, seed_demo_data

configure_logging()
logger = logging.getLogger(__name__)

def _run_migrations_if_needed():
    """Apply Alembic migrations automatically in production if enabled.

    Controlled by env var AUTO_APPLY_MIGRATIONS (default: '1'). Safe to run repeatedly.
    """
    if settings.env.lower() != "prod":
        return
    if os.getenv("AUTO_APPLY_MIGRATIONS", "1") != "1":
        return
    from alembic import command
    from alembic.config import Config
    alembic_ini = Path(__file__).resolve().parents[1] / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("[migrate] alembic.ini not found at %s, skipping auto-migrations", alembic_ini)
        return
    cfg = Config(str(alembic_ini))
    # Ensure script_location resolves correctly when launched from arbitrary CWD
    script_location = Path(__file__).resolve().parents[1] / "alembic"
    if script_location.exists():
        cfg.set_main_option("script_location", str(script_location))
    logger.info("[migrate] Applying Alembic migrations -> head ...")
    try:
        command.upgrade(cfg, "head")
    except Exception:  # pragma: no cover
        # Do not kill the app on migration failure, just log; can be retried manually.
        logger.error("[migrate] Migration failed", exc_info=True)
        return
    logger.info("[migrate] Migrations applied successfully")

app = FastAPI(title=settings.app_name, version="0.1.0")

# Configurable CORS origins (CORS_ORIGINS env). If empty -> dev defaults.
origins = settings.cors_origins
logger.info("[startup] Resolved CORS origins: %s", origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)

_ERROR_STATUS = [
    (FieldValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (UnknownOffer, status.HTTP_404_NOT_FOUND),
    (AvailabilityConflict, status.HTTP_409_CONFLICT),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (CollaboratorError, status.HTTP_503_SERVICE_UNAVAILABLE),
]

@app.exception_handler(BookingFlowError)
async def booking_flow_error_handler(request: Request, exc: BookingFlowError):
    code = status.HTTP_400_BAD_REQUEST
    for exc_type, exc_code in _ERROR_STATUS:
        if isinstance(exc, exc_type):
            code = exc_code
            break
    body: dict = {"detail": exc.message, "type": type(exc).__name__}
    if isinstance(exc, FieldValidationError):
        body["errors"] = exc.errors
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, body["type"], exc.message)
    return JSONResponse(status_code=code, content=body)

@app.on_event("startup")
def startup():
    _run_migrations_if_needed()
    if settings.env.lower() in {"dev", "development"}:
        create_tables()
        seed_demo_data()
