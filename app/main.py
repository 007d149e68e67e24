# app/main.py

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from app.api.dependencies import get_container, reset_container
from app.api.middleware import (
    ActorContextMiddleware,
    CorrelationIdMiddleware,
    RequestAuditMiddleware,
)
from app.api.routers import audit, bookings, health, versions
from app.application.exceptions import ApplicationError, BookingNotFoundError
from app.config.logging import configure_logging
from app.config.settings import get_settings
from app.domain.exceptions import DomainError, DomainValidationError
from app.governance.exceptions import (
    GovernanceError,
    RecordNotFoundError,
    UnknownDocumentTypeError,
    VersionMismatchError,
)
from app.security.exceptions import AuthenticationRequiredError, AuthorizationError

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = get_container()
    if settings.storage_backend == "database":
        from app.infrastructure.database.session import create_tables

        await create_tables()

    sweep_task = None
    if settings.retention_sweep_enabled:
        sweep_task = asyncio.create_task(
            container.sweeper.run_forever(settings.retention_sweep_interval_seconds)
        )
        logger.info(
            "retention_sweeper_started",
            extra={"interval_seconds": settings.retention_sweep_interval_seconds},
        )
    try:
        yield
    finally:
        if sweep_task is not None:
            sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweep_task
        await container.close()
        if settings.storage_backend == "database":
            from app.infrastructure.database.session import dispose_engine

            await dispose_engine()
        reset_container()


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Middleware order: last added runs first (outermost). Request flow: CorrelationId -> ActorContext -> RequestAudit.
app.add_middleware(RequestAuditMiddleware)
app.add_middleware(ActorContextMiddleware)
app.add_middleware(CorrelationIdMiddleware)


@app.exception_handler(AuthenticationRequiredError)
async def authentication_required_handler(request, exc: AuthenticationRequiredError):
    return JSONResponse(status_code=401, content={"detail": exc.message})


@app.exception_handler(AuthorizationError)
async def authorization_error_handler(request, exc: AuthorizationError):
    return JSONResponse(status_code=403, content=exc.to_dict())


@app.exception_handler(DomainValidationError)
async def domain_validation_error_handler(request, exc: DomainValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.message})


@app.exception_handler(DomainError)
async def domain_error_handler(request, exc: DomainError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(RecordNotFoundError)
async def record_not_found_handler(request, exc: RecordNotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(VersionMismatchError)
async def version_mismatch_handler(request, exc: VersionMismatchError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(UnknownDocumentTypeError)
async def unknown_document_type_handler(request, exc: UnknownDocumentTypeError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(GovernanceError)
async def governance_error_handler(request, exc: GovernanceError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(BookingNotFoundError)
async def booking_not_found_handler(request, exc: BookingNotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ApplicationError)
async def application_error_handler(request, exc: ApplicationError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request, exc: Exception):
    logger.exception("unhandled_error")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Routers: /health, /metrics, /audit, /versions, /bookings
app.include_router(health.router)
app.include_router(audit.router, prefix="/audit")
app.include_router(versions.router, prefix="/versions")
app.include_router(bookings.router, prefix="/bookings")
