"""Structured logging for the reconciler.

Every module logs through ``get_logger(__name__)``. Output is JSON unless
``DEBUG`` is set, in which case the console renderer is used. When
``OTEL_EXPORTER_OTLP_ENDPOINT`` is configured and the ``otel`` extra is
installed, records are also shipped over OTLP/HTTP.

Matching runs and CSV ingestion are timed with ``log_timing`` /
``async_log_timing``; failures are reported with ``log_exception`` so the
error type and module always travel with the event.
"""

import logging
import sys
import time
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import Processor

from reconciler.config import parse_key_value_pairs, settings

# Libraries that are chatty at INFO; raised to WARNING outside debug
NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "aiosqlite")


def _build_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _select_renderer() -> Processor:
    if settings.debug:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def _build_otlp_logs_endpoint(endpoint: str) -> str:
    base = endpoint.rstrip("/")
    return base if base.endswith("/v1/logs") else f"{base}/v1/logs"


def _otel_resource_attributes() -> dict[str, str]:
    attributes = {
        "service.name": settings.otel_service_name,
        "deployment.environment": settings.environment,
    }
    # Explicit OTEL_RESOURCE_ATTRIBUTES win over the derived values
    attributes.update(parse_key_value_pairs(settings.otel_resource_attributes))
    return attributes


def _configure_otel_logging() -> None:
    endpoint = settings.otel_exporter_otlp_endpoint
    if not endpoint:
        return

    try:
        from opentelemetry._logs import set_logger_provider
        from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
        from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
        from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
        from opentelemetry.sdk.resources import Resource
    except ImportError:
        logging.getLogger(__name__).warning("OTEL log exporter not available", exc_info=True)
        return

    provider = LoggerProvider(resource=Resource.create(_otel_resource_attributes()))
    provider.add_log_record_processor(
        BatchLogRecordProcessor(OTLPLogExporter(endpoint=_build_otlp_logs_endpoint(endpoint)))
    )
    set_logger_provider(provider)
    logging.getLogger().addHandler(LoggingHandler(level=logging.INFO, logger_provider=provider))


def configure_logging() -> None:
    """Route structlog and stdlib logging through one stdout handler."""
    processors = _build_processors()

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=_select_renderer(), foreign_pre_chain=processors)
    )
    logging.basicConfig(handlers=[handler], level=logging.DEBUG if settings.debug else logging.INFO)

    if not settings.debug:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    _configure_otel_logging()


def get_logger(name: str | None = None) -> BoundLogger:
    return structlog.get_logger(name)


# =============================================================================
# Timing
# =============================================================================


def _emit_timing(
    log: BoundLogger,
    level: str,
    operation: str,
    started: float,
    outcome: str,
    context: dict[str, Any],
    result_context: dict[str, Any],
) -> None:
    result_context["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
    extra = {key: value for key, value in result_context.items() if key != "duration_ms"}
    getattr(log, level, log.info)(
        f"{operation} completed",
        operation=operation,
        outcome=outcome,
        duration_ms=result_context["duration_ms"],
        **context,
        **extra,
    )


@contextmanager
def log_timing(
    operation: str,
    logger: BoundLogger | None = None,
    level: str = "info",
    **context: Any,
) -> Iterator[dict[str, Any]]:
    """Log how long a block took, once, when it exits.

    Usage:
        with log_timing("ingest_csv_batch", logger=logger, batch_id=str(batch.id)) as timing:
            rows, total = parse_transactions_csv(content, kind)
            timing.update(total_rows=total)

    The yielded dict is merged into the event, so results known only inside
    the block (row counts, matched pairs) land on the same line. ``outcome``
    is ``"error"`` when the block raised; the exception still propagates.
    """
    log = logger or get_logger(__name__)
    started = time.perf_counter()
    result_context: dict[str, Any] = {}
    outcome = "error"
    try:
        yield result_context
        outcome = "ok"
    finally:
        _emit_timing(log, level, operation, started, outcome, context, result_context)


@asynccontextmanager
async def async_log_timing(
    operation: str,
    logger: BoundLogger | None = None,
    level: str = "info",
    **context: Any,
) -> AsyncIterator[dict[str, Any]]:
    """Async twin of ``log_timing``, used around auto-match runs."""
    log = logger or get_logger(__name__)
    started = time.perf_counter()
    result_context: dict[str, Any] = {}
    outcome = "error"
    try:
        yield result_context
        outcome = "ok"
    finally:
        _emit_timing(log, level, operation, started, outcome, context, result_context)


# =============================================================================
# Exceptions
# =============================================================================


def log_exception(
    logger: BoundLogger,
    exc: BaseException,
    context: str,
    *,
    level: str = "error",
    include_traceback: bool = True,
    **extra: Any,
) -> None:
    """Log ``exc`` under the message ``context`` with its type and module.

    Usage:
        except StoreUnavailable as exc:
            log_exception(logger, exc, "Auto-match aborted", committed=len(committed))
            raise
    """
    fields: dict[str, Any] = {
        "error": str(exc),
        "error_type": type(exc).__name__,
        "error_module": type(exc).__module__,
        **extra,
    }
    if include_traceback:
        fields["exc_info"] = exc
    getattr(logger, level, logger.error)(context, **fields)
