"""
FastAPI application for CANORA.
"""

from __future__ import annotations

import importlib.metadata
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .curation.routes import router as curation_router
from .db.base import init_database
from .errors import CurationError
from .observability import bind_context, clear_context, configure_logging

logger = structlog.get_logger(__name__)

settings = get_settings()


def _package_version() -> str:
    return importlib.metadata.version("canora")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    configure_logging()
    logger.info("Starting CANORA", environment=settings.environment)

    try:
        init_database()
    except Exception as e:
        logger.error("Failed to start application", error=str(e))
        raise

    yield

    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="Lineage and promotion core for curated creative works",
    version=_package_version(),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Bind a request id to every log line emitted while serving a request."""
    clear_context()
    bind_context(
        request_id=request.headers.get("X-Request-ID") or str(uuid.uuid4()),
        path=request.url.path,
    )
    try:
        return await call_next(request)
    finally:
        clear_context()


@app.exception_handler(CurationError)
async def curation_error_handler(request: Request, exc: CurationError) -> JSONResponse:
    logger.info(
        "Curation request rejected",
        code=exc.code,
        message=exc.message,
        method=request.method,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.get("/health", tags=["system"])
async def health() -> dict:
    """Confirm the API is reachable."""
    return {"status": "ok"}


@app.get("/version", tags=["system"])
def version() -> dict[str, str]:
    """Return the version of the application."""
    return {"version": _package_version()}


app.include_router(curation_router)
