from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class LogConfig:
    """Process-wide logging context, filled in by `setup_logging`."""

    LOG_LEVEL = "INFO"
    APP_NAME = "eco-rewards-backend"
    ENVIRONMENT = "development"


def add_request_id(logger: logging.Logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add the current request ID to the log event."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_app_context(logger: logging.Logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add application name and environment to the log event."""
    event_dict["app"] = LogConfig.APP_NAME
    event_dict["environment"] = LogConfig.ENVIRONMENT
    return event_dict


# PUBLIC_INTERFACE
def setup_logging(
    log_level: str = "INFO",
    use_json: bool = False,
    app_name: str = "eco-rewards-backend",
    environment: str = "development",
) -> None:
    """Configure structlog on top of the standard library root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        use_json: Render JSON lines (True) or plain console output (False).
        app_name: Application name added to every event.
        environment: Environment name added to every event.
    """
    LogConfig.LOG_LEVEL = log_level.upper()
    LogConfig.APP_NAME = app_name
    LogConfig.ENVIRONMENT = environment

    level = getattr(logging, LogConfig.LOG_LEVEL, logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_request_id,
        add_app_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if use_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False, exception_formatter=structlog.dev.plain_traceback)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared_processors,
        )
    )

    logging.root.handlers = [handler]
    logging.root.setLevel(level)

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# PUBLIC_INTERFACE
def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to `name`."""
    return structlog.get_logger(name)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request and tags it with an `X-Request-ID`."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        token = request_id_var.set(request_id)
        logger = get_logger("api.access")
        start_time = datetime.now(timezone.utc)

        try:
            logger.info("request_started", method=request.method, path=request.url.path)
            response = await call_next(request)
            duration_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as exc:
            duration_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
                error=str(exc),
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )
        finally:
            request_id_var.reset(token)


# PUBLIC_INTERFACE
def setup_app_logging(app: FastAPI, log_level: str, use_json: bool, environment: str) -> None:
    """Configure logging and install the request logging middleware on `app`."""
    setup_logging(log_level=log_level, use_json=use_json, app_name=app.title, environment=environment)
    app.add_middleware(LoggingMiddleware)
