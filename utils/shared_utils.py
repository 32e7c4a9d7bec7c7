"""
Shared utilities: logging setup, request ids and the middleware both apps use
"""
import json
import logging
import secrets
import string
import time
import traceback
from pathlib import Path
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
REQUEST_ID_ALPHABET = string.ascii_lowercase + string.digits


def configure_logging(level: str = "info", log_file: Optional[str] = None) -> None:
    """Configure root logging once: stream handler plus optional file handler."""
    handlers = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def generate_request_id() -> str:
    """req_<epoch ms>_<9 random base36 chars>"""
    suffix = "".join(secrets.choice(REQUEST_ID_ALPHABET) for _ in range(9))
    return f"req_{int(time.time() * 1000)}_{suffix}"


def get_request_id(request: Request) -> str:
    """Request id assigned by RequestLoggingMiddleware, created on demand."""
    request_id = getattr(request.state, "request_id", None)
    if request_id is None:
        request_id = generate_request_id()
        request.state.request_id = request_id
    return request_id


def log_endpoint_event(endpoint: str, result: str = "success", details: Optional[dict] = None):
    """Log endpoint execution to app.log"""
    logger.info(f"{endpoint} | {result} | {json.dumps(details or {}, default=str)}")


def status_log_level(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request; stamps X-Request-ID and X-Response-Time."""

    async def dispatch(self, request: Request, call_next) -> Response:
        started = time.perf_counter()
        request_id = get_request_id(request)

        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            logger.error(f"{request.method} {request.url.path} failed after {elapsed_ms}ms [{request_id}]")
            raise

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms}ms"
        logger.log(
            status_log_level(response.status_code),
            f"{request.method} {request.url.path} {response.status_code} {elapsed_ms}ms [{request_id}]",
        )
        return response


class UncaughtExceptionMiddleware(BaseHTTPMiddleware):
    """Logs all unhandled exceptions and returns a generic 500."""

    def __init__(self, app, content: Optional[dict] = None):
        super().__init__(app)
        self.content = content or {"message": "Internal Server Error"}

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Uncaught exception: {e}\n{traceback.format_exc()}")
            return JSONResponse(status_code=500, content=self.content)
