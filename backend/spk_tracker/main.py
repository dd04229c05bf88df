"""
Main Entry Point - FastAPI Application
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Configura l'applicazione FastAPI con middleware, router e lifecycle.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from spk_tracker.core.config import settings
from spk_tracker.core.database import close_db, init_db
from spk_tracker.core.deps import shutdown_services
from spk_tracker.core.exceptions import AppException, BusinessValidationError
from spk_tracker.core.logging_config import configure_logging
from spk_tracker.schemas.common import ErrorResponse

# ------------------------------------------------------------
# Configurazione Logging
# ------------------------------------------------------------
configure_logging(settings)
logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# Lifespan Handler
# ------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestisce il ciclo di vita dell'applicazione.

    - Startup: inizializza la connessione al database
    - Shutdown: attende le notifiche in corso e chiude le connessioni database
    """
    # Startup
    logger.info("Avvio %s v%s", settings.app_name, settings.app_version)
    await init_db()
    logger.info("Applicazione avviata con successo")

    yield

    # Shutdown
    logger.info("Arresto applicazione in corso...")
    shutdown_services()
    await close_db()
    logger.info("Applicazione arrestata")


# ------------------------------------------------------------
# FastAPI Application
# ------------------------------------------------------------
app = FastAPI(
    title=settings.app_name,
    description="Gestione SPK (Surat Perintah Kerja) e pagamenti ai vendor - Backend API",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# ------------------------------------------------------------
# Exception Handlers
# ------------------------------------------------------------
def error_response(exc: AppException) -> JSONResponse:
    """Converte un'AppException nel corpo di errore standard."""
    body = ErrorResponse(
        error_code=exc.error_code,
        detail=exc.public_detail,
        field=getattr(exc, "field", None),
        extra=exc.extra if exc.expose_detail else None,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
    )


@app.exception_handler(BusinessValidationError)
async def validation_exception_handler(request: Request, exc: BusinessValidationError) -> JSONResponse:
    """
    Gestore per eccezioni BusinessValidationError.

    Converte l'eccezione in risposta HTTP 422 con il campo dell'errore.
    """
    logger.info("Validazione fallita su %s %s: %s", request.method, request.url.path, exc.detail)
    return error_response(exc)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Gestore per tutte le eccezioni applicative.

    Gli errori interni (persistenza, rendering) vengono loggati con il
    dettaglio completo; al client arriva solo il messaggio generico.
    """
    if exc.expose_detail:
        logger.warning("%s su %s %s: %s", exc.error_code, request.method, request.url.path, exc.detail)
    else:
        logger.error(
            "%s su %s %s: %s",
            exc.error_code,
            request.method,
            request.url.path,
            exc.detail,
            exc_info=exc,
        )
    return error_response(exc)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Gestore generico per tutte le eccezioni non catturate.

    Converte l'eccezione in risposta HTTP 500 e logga l'errore.
    """
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    body = ErrorResponse(error_code="INTERNAL_SERVER_ERROR", detail="Errore interno del server")
    return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


# ------------------------------------------------------------
# Middleware CORS
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------
@app.get(
    "/health",
    name="Health Check",
    summary="Controlla lo stato dell'applicazione",
    tags=["System"],
)
async def health_check() -> dict[str, str]:
    """
    Endpoint per il controllo dello stato di salute.

    Returns:
        dict: Stato dell'applicazione
    """
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.app_env,
    }


# ------------------------------------------------------------
# Router
# ------------------------------------------------------------
from spk_tracker.api.v1 import api_v1_router  # noqa: E402

app.include_router(api_v1_router)
