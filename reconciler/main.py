"""Reconciler API application."""

import time
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog
from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from reconciler import __version__
from reconciler.config import settings
from reconciler.database import get_db, init_db
from reconciler.logger import configure_logging, get_logger, log_exception
from reconciler.routers import match_settings, matching, transactions

configure_logging()
logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await init_db()
    logger.info(
        "Application started",
        version=__version__,
        environment=settings.environment,
        default_threshold=settings.match_default_auto_match_threshold,
        default_strategy=settings.match_default_strategy,
    )
    yield
    logger.info("Application shutting down")


app = FastAPI(
    title="Reconciler API",
    description="Expense and sale reconciliation with automatic and manual matching",
    version=__version__,
    lifespan=lifespan,
)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


@app.middleware("http")
async def logging_middleware(request: Request, call_next: Any) -> Response:
    """Tag every log line of a request with its id; log one line per request."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as exc:
        log_exception(logger, exc, "HTTP Request Failed", duration_ms=_elapsed_ms(started))
        raise

    log = logger.warning if response.status_code >= 500 else logger.info
    log("HTTP Request", status_code=response.status_code, duration_ms=_elapsed_ms(started))
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """JSON body for anything the routers did not translate."""
    content: dict[str, Any] = {
        "detail": "An internal server error occurred. Please try again later.",
        "trace": None,
        "request_id": structlog.contextvars.get_contextvars().get("request_id"),
    }
    if settings.debug:
        content["detail"] = str(exc)
        content["trace"] = traceback.format_exc()
    return JSONResponse(status_code=500, content=content)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["Content-Type", "Authorization", REQUEST_ID_HEADER],
)

app.include_router(transactions.router)
app.include_router(matching.router)
app.include_router(match_settings.router)


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)) -> Response:
    """Liveness plus a database round trip; 503 when the database is unreachable."""
    checks: dict[str, bool] = {"database": True}
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        log_exception(logger, exc, "Health check: database unreachable", include_traceback=False)
        checks["database"] = False

    healthy = all(checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": checks,
            "version": __version__,
        },
    )
