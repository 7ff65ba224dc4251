"""
JSON logging for the service order API.

Every line carries the id, method and path of the request that produced it,
so a failed create or PDF render can be followed across log records.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Optional

from pythonjsonlogger import jsonlogger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from servicedesk.core.config import settings

REQUEST_ID_HEADER = "X-Request-ID"

# Record attributes written to each JSON line.
LOG_FIELDS = ("asctime", "levelname", "name", "message", "request_id", "http_method", "http_path")
RENAMED_FIELDS = {"asctime": "timestamp", "levelname": "level"}

# Chatty dependencies held at WARNING whatever LOG_LEVEL says.
QUIET_LOGGERS = ("aiosqlite", "asyncio", "multipart")

request_context: ContextVar[Optional[dict]] = ContextVar("request_context", default=None)


class RequestContextFilter(logging.Filter):
    """Copy the active request's id, method and path onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = request_context.get() or {}
        record.request_id = context.get("request_id", "-")
        record.http_method = context.get("method", "-")
        record.http_path = context.get("path", "-")
        return True


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and echo it in ``X-Request-ID``."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        token = request_context.set(
            {"request_id": request_id, "method": request.method, "path": request.url.path}
        )
        try:
            response = await call_next(request)
        finally:
            request_context.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def build_formatter() -> jsonlogger.JsonFormatter:
    return jsonlogger.JsonFormatter(
        " ".join(f"%({field})s" for field in LOG_FIELDS),
        rename_fields=RENAMED_FIELDS,
    )


def setup_logging(level: Optional[str] = None) -> None:
    """Send every record to stdout as one JSON object per line."""
    level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter())
    handler.addFilter(RequestContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # uvicorn installs its own handlers; hand its records to the root one.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
        uvicorn_logger.setLevel(level)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DB_ECHO else logging.WARNING
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = [
    "REQUEST_ID_HEADER",
    "RequestContextFilter",
    "RequestContextMiddleware",
    "request_context",
    "setup_logging",
]
