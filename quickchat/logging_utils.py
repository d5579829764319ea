import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from pythonjsonlogger import jsonlogger

from quickchat.metrics import record_http_request


# Correlation id of the HTTP request or chat session currently being served
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

REQUEST_LOGGER = "quickchat.requests"

# Uvicorn's access log duplicates the per-request line written by the middleware
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_ctx.get()


def new_session_id() -> str:
    """
    Bind a fresh id to the current context and return it.
    Used by the console shell so every log line of one chat session correlates.
    """
    session_id = str(uuid.uuid4())
    request_id_ctx.set(session_id)
    return session_id


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Stamps every record with a UTC timestamp, its level and the active correlation id."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        if not log_record.get('ts'):
            log_record['ts'] = _utc_timestamp()
        log_record['level'] = record.levelname

        correlation_id = request_id_ctx.get()
        if correlation_id and 'request_id' not in log_record:
            log_record['request_id'] = correlation_id


def setup_logging(log_level: str = "INFO", stream=None):
    """
    Route the root logger and uvicorn's loggers through one JSON handler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Output stream for the handler (defaults to stdout). The console
            shell passes stderr so log lines don't interleave with the menu.
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(CustomJsonFormatter('%(ts)s %(level)s %(name)s %(message)s'))

    root = logging.getLogger()
    root.setLevel(log_level.upper())
    root.handlers = [handler]

    for name in _UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False
    logging.getLogger("uvicorn.access").disabled = True

    return root


def level_for_status(status: int) -> int:
    """Server errors log at ERROR, client errors (including rejections) at WARNING."""
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Writes one "Request completed" line per HTTP call and tags the
    response with an X-Request-ID header.

    The line carries method, path, status and latency_ms next to the
    formatter's ts/level/request_id. Message routes add whatever they
    attached through log_message_data(), so a rejected message shows up
    with its id and rejection reason in the same line as the 422.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            elapsed = time.perf_counter() - started
            response.headers["X-Request-ID"] = request_id

            path = request.url.path
            if path != "/metrics":
                record_http_request(
                    method=request.method,
                    path=path,
                    status=response.status_code,
                    latency_seconds=elapsed,
                )

            fields = {
                "request_id": request_id,
                "method": request.method,
                "path": path,
                "status": response.status_code,
                "latency_ms": round(elapsed * 1000, 2),
            }
            fields.update(getattr(request.state, "message_log_data", {}))

            logging.getLogger(REQUEST_LOGGER).log(
                level_for_status(response.status_code), "Request completed", extra=fields
            )
            return response
        finally:
            request_id_ctx.reset(token)


def log_message_data(request: Request, message_id: str = None, result: str = None, action: str = None):
    """
    Record the outcome of a message call for the request log line.

    Only the values that are known are kept: a rejected message has no
    action, and an unknown action never reaches construction.
    """
    fields = {"message_id": message_id, "result": result, "action": action}
    request.state.message_log_data = {k: v for k, v in fields.items() if v is not None}
