"""
Produccion API — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (`uvicorn produccion.main:app`) or `python -m produccion`.
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────┐ ┌────────┐ ┌────────────┐ ┌─────────┐ ┌──────┐ │
    │  │ CORS │→│ Req ID │→│ Access log │→│ API key │→│ GZip │ │
    │  └──────┘ └────────┘ └────────────┘ └─────────┘ └──────┘ │
    │                                                          │
    │  Routes:                                                 │
    │   /health  /login  /api/...  /lotesprogramados/*  /peso  │
    │                                                          │
    │  Exception Handlers:                                     │
    │   Validation→400 │ Auth→401 │ NotFound→404 │ Conflict→409│
    │   Database→500   │ anything else→500                     │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging (stdout + optional log file)
    2. Select the DataStore: live SQL Server or fixture records
    3. Log the mode and listen address

    Shutdown:
    1. Close the DataStore (disposes the connection pool in live mode)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from produccion import __version__
from produccion.config import Settings, settings as default_settings
from produccion.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ProduccionError,
    ValidationError,
)
from produccion.middleware.api_key import APIKeyMiddleware
from produccion.middleware.logging import RequestLoggingMiddleware
from produccion.middleware.request_id import RequestIDMiddleware, request_id_var
from produccion.routes import (
    auth,
    catalogo,
    clientes,
    health,
    ingredientes,
    lotes,
    peso,
    productos,
)
from produccion.services.factory import create_data_store
from produccion.services.store_base import DataStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(app_settings: Settings) -> None:
    """
    Configure the root logger once at startup.

    Output goes to stdout and, unless LOG_FILE is empty, to a log file as
    well. Level is LOG_LEVEL, or DEBUG in development and INFO in production.
    """
    handlers: list = [logging.StreamHandler(sys.stdout)]
    if app_settings.log_file:
        handlers.append(logging.FileHandler(app_settings.log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, app_settings.effective_log_level, logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=handlers,
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(app_settings)
    logger.info("=" * 60)
    logger.info("Produccion API %s starting up (%s)", __version__, app_settings.environment)

    if app.state.store is None:
        app.state.store = create_data_store(app_settings)
    store: DataStore = app.state.store
    logger.info("Data mode: %s", store.mode)
    if app_settings.api_key:
        logger.info("API key check enabled")

    logger.info("Server ready at http://%s:%d", app_settings.host, app_settings.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Produccion API shutting down...")
    await store.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: Optional[dict] = None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the shared error body
    `{error, message, details?, request_id}`.

    Handler hierarchy:
        ValidationError / RequestValidationError → 400
        AuthenticationError                      → 401
        NotFoundError                            → 404
        ConflictError                            → 409
        DatabaseError                            → 500 (generic message)
        ProduccionError (base)                   → 500
        Exception (fallback)                     → 500, stack trace logged

    SQL text, connection details and stack traces never reach the response.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        logger.warning(
            "[%s] Request validation failed on %s: %s",
            request_id_var.get(""),
            request.url.path,
            errors,
        )
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", "Datos inválidos o incompletos", {"errors": errors}),
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=_error_body("unauthorized", exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message),
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.warning("[%s] Conflict: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=409,
            content=_error_body("conflict", exc.message),
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("database_error", "Error al consultar la base de datos"),
        )

    @app.exception_handler(ProduccionError)
    async def handle_produccion_error(request: Request, exc: ProduccionError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "Ocurrió un error inesperado"),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=exc)
        # Served by ServerErrorMiddleware, outside RequestIDMiddleware
        return JSONResponse(
            status_code=500,
            content=_error_body("internal_server_error", "Ocurrió un error inesperado"),
            headers={"X-Request-ID": rid} if rid else None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    store: Optional[DataStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use; the process-wide `settings` by default
        store: Pre-built DataStore; when None the lifespan selects one

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="Produccion API",
        description=(
            "Production scheduling and batch weighing over the plant's SQL Server "
            "database: clients, ingredients, finished products, scheduled batches "
            "and weigh-ins."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.store = store

    # ── Register Middleware ───────────────────────────────────────────────
    # Execution order is the reverse of addition (last added runs first).

    app.add_middleware(GZipMiddleware, minimum_size=500)

    if app_settings.api_key:
        app.add_middleware(APIKeyMiddleware, api_key=app_settings.api_key)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Outermost, so 401s from the API key gate still carry CORS headers
    origins = app_settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(clientes.router)
    app.include_router(catalogo.router)
    app.include_router(ingredientes.router)
    app.include_router(productos.router)
    app.include_router(lotes.router)
    app.include_router(peso.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
