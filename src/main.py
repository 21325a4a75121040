"""schedshare - Delegated schedule sharing and access control."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.core.config import constants, settings
from src.core.db_client import Database, init_db
from src.core.errors import SharingError, to_error_response
from src.core.logging import configure_logfire, instrument_fastapi, log_with_principal_context
from src.interface.dependencies import SharingServices
from src.interface.shares_router import router as shares_router


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    # Configure logging first so startup logs are captured
    configure_logfire()

    database = Database(db_path=settings.sqlite_db_path, busy_timeout_ms=settings.sqlite_busy_timeout_ms)
    await init_db(database)
    logger.info("Database initialized", extra={"db_path": str(database.path)})

    app.state.database = database
    app.state.services = SharingServices.for_database(database)
    yield
    # Shutdown
    await database.close()


app = FastAPI(
    title="schedshare",
    description="Delegated schedule sharing and access control",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(shares_router)


@app.exception_handler(SharingError)
async def sharing_error_handler(_request: Request, exc: SharingError) -> JSONResponse:
    """Render expected sharing failures as structured error responses."""
    status_code, response = to_error_response(exc)
    return JSONResponse(content=response.model_dump(mode="json"), status_code=status_code)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log storage and other unexpected failures and hide their details from the caller."""
    log_with_principal_context(
        logger,
        "error",
        "Unhandled error while serving request",
        principal_id=getattr(request.state, "principal_id", None),
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
    )
    status_code, response = to_error_response(exc)
    return JSONResponse(content=response.model_dump(mode="json"), status_code=status_code)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=constants.HTTP_OK)
