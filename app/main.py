# app/main.py
"""
Slot scheduler API: recurring weekly slots with per-date exceptions.
"""

import time
from contextlib import asynccontextmanager

import psycopg
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.config import settings
from app.db.helpers import DatabaseError
from app.db.pool import db_pool
from app.db.schema import apply_schema
from app.features.scheduling import slots_router
from app.features.scheduling.api.router import STORAGE_FAULT
from app.features.scheduling.domain import FailureReason, ValidationFailure
from app.infrastructure.observability.logging import get_logger, log_request, setup_logging
from app.middleware import CORSMiddleware, RequestContextMiddleware
from app.routes import health

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database pool (and ensure the schema) on startup, close it on shutdown."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    try:
        await db_pool.initialize()

        if settings.DB_AUTO_MIGRATE:
            await apply_schema()

        logger.info("All services initialized successfully")

    except Exception as e:
        logger.error("Failed to initialize services", error=str(e))
        try:
            await db_pool.close()
        except Exception as cleanup_error:
            logger.error("Error cleaning up database pool", error=str(cleanup_error))
        raise

    yield

    logger.info("Application shutting down")
    try:
        await db_pool.close()
        logger.info("All services closed successfully")
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))


app = FastAPI(
    title="Slot Scheduler",
    description="Recurring weekly time slots with per-date exceptions",
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware runs in reverse order of registration: request context is outermost
app.add_middleware(CORSMiddleware, allowed_origins=settings.CORS_ORIGINS)
app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(slots_router)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies/queries use the same error shape as domain refusals."""
    fields = [".".join(str(part) for part in error["loc"]) for error in exc.errors()]
    failure = ValidationFailure(
        FailureReason.MALFORMED_REQUEST,
        f"Invalid or missing fields: {', '.join(fields)}",
    )
    return JSONResponse(status_code=failure.status_code, content={"detail": failure.to_dict()})


@app.exception_handler(DatabaseError)
@app.exception_handler(psycopg.Error)
async def storage_fault_handler(request: Request, exc: Exception):
    """Storage faults that escape a route become the generic StorageFault body."""
    logger.error(
        "Unhandled storage failure",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=STORAGE_FAULT.status_code, content={"detail": STORAGE_FAULT.to_dict()}
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
