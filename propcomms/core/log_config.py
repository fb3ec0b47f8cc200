"""Logging for the API and the notification worker.

Both structlog and stdlib loggers render through the same structlog chain.
Correlation fields live in structlog contextvars:

- ``request_id`` and ``thread_id`` are bound per request by
  ``RequestLoggingMiddleware``
- ``caller_id`` is bound once the caller is authenticated
- ``message_id`` is bound for the lifetime of a dispatch task

so a thread's authorization failures and its notification outcomes can be
followed across the API and the worker.
"""

import logging
import re
import sys
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import UUID

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from propcomms.core.config import settings

REQUEST_ID_HEADER = "X-Request-ID"

_THREAD_PATH = re.compile(r"/threads/(?P<thread_id>[0-9a-fA-F-]{36})(?:/|$)")

# Libraries that log every query, request or task at INFO
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "celery.app.trace")


def _shared_processors(debug: bool) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if not debug:
        # ConsoleRenderer prints tracebacks itself
        processors.append(structlog.processors.format_exc_info)
    processors.append(structlog.processors.UnicodeDecoder())
    return processors


def setup_logging(debug: bool | None = None, level: int = logging.INFO) -> None:
    """Route structlog and stdlib logging to stdout.

    Pretty console output when ``debug`` (defaults to ``settings.DEBUG``),
    one JSON object per line otherwise.
    """
    if debug is None:
        debug = settings.DEBUG
    shared = _shared_processors(debug)
    renderer: Any = (
        structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_caller(caller_id: UUID) -> None:
    structlog.contextvars.bind_contextvars(caller_id=str(caller_id))


def request_context(request: Request) -> dict[str, str]:
    """Correlation fields for a request: its id and, when the path names one, the thread."""
    context = {"request_id": request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex}
    match = _THREAD_PATH.search(request.url.path)
    if match:
        context["thread_id"] = match.group("thread_id").lower()
    return context


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind request correlation fields, then log method, path, status and duration.

    The request id is echoed back in ``X-Request-ID``.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        logger = structlog.get_logger("http")
        structlog.contextvars.clear_contextvars()
        context = request_context(request)
        structlog.contextvars.bind_contextvars(**context)
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            await logger.aexception(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise

        response.headers[REQUEST_ID_HEADER] = context["request_id"]
        await logger.ainfo(
            "request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            client=request.client.host if request.client else "unknown",
        )
        return response
