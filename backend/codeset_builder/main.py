"""FastAPI application for the Lab Code Set Builder."""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import Depends, FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from codeset_builder.api import labtest_search_router, method_not_allowed_handler, validation_error_handler
from codeset_builder.core.config import settings
from codeset_builder.core.database import close_engine, get_session, init_db, init_engine

logger = logging.getLogger(__name__)

SERVICE_NAME = "lab-codeset-builder"
VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events:
    - Startup: Create the shared database engine (and tables in debug mode)
    - Shutdown: Dispose the engine and its connection pool
    """
    logging.basicConfig(level=settings.log_level)
    startup_start = time.perf_counter()

    init_engine()
    if settings.debug:
        init_db()

    app.state.startup_time_ms = (time.perf_counter() - startup_start) * 1000
    logger.info(f"Server ready - startup time: {app.state.startup_time_ms:.0f}ms")

    yield

    close_engine()


app = FastAPI(
    title=settings.app_name,
    description="API for searching OMOP lab test concepts (LOINC, CPT4, HCPCS, SNOMED) and building code sets.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

app.include_router(labtest_search_router)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, Any]:
    """Health check endpoint (liveness probe).

    Use /ready for readiness checks.
    """
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/ready", tags=["Health"])
def readiness_check(session: Session = Depends(get_session)) -> Any:
    """Readiness check endpoint.

    Confirms a database round-trip succeeds.
    """
    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "service": SERVICE_NAME},
        )

    return {
        "status": "ready",
        "service": SERVICE_NAME,
        "version": VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "service": "Lab Code Set Builder API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
    }
