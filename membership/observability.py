from __future__ import annotations

import logging
import time

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from .column_codec import CodecRangeError
from .errors import DependencyError, InvalidRequestError, ServiceError


LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s:%(lineno)d] - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    numeric_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger("membership").setLevel(numeric_level)


class RequestTimingLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that measures request processing time and logs concise request/response info.

    Adds an 'X-Process-Time-Ms' header on responses to aid in quick diagnostics.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self.logger = logging.getLogger("request")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers["X-Process-Time-Ms"] = str(duration_ms)

        client_ip = request.client.host if request.client else "?"
        self.logger.info(
            "method=%s path=%s status=%s duration_ms=%s ip=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            client_ip,
        )
        return response


def add_exception_handlers(app: FastAPI) -> None:
    """Map service errors to their fixed payloads; keep a structured shape for everything else."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if isinstance(exc, DependencyError):
            logging.getLogger("error").error(
                "Dependency failure on %s: %s", request.url.path, exc.__cause__ or exc.message
            )
        return JSONResponse(status_code=exc.status_code, content=exc.payload)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logging.getLogger("request").info("Rejected body on %s: %s", request.url.path, exc.errors())
        error = InvalidRequestError()
        return JSONResponse(status_code=error.status_code, content=error.payload)

    @app.exception_handler(CodecRangeError)
    async def codec_range_handler(request: Request, exc: CodecRangeError):
        logging.getLogger("error").error("Attendance sheet out of date columns: %s", exc)
        return JSONResponse(status_code=500, content={"message": "Attendance sheet has no free date columns."})

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        payload = {
            "ok": False,
            "error": {
                "status": exc.status_code,
                "message": exc.detail if isinstance(exc.detail, str) else "",
                "path": request.url.path,
            },
        }
        return JSONResponse(status_code=exc.status_code, content=payload)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        # Do not leak internals; keep it simple.
        payload = {
            "ok": False,
            "error": {
                "status": 500,
                "message": "Internal server error",
                "path": request.url.path,
            },
        }
        logging.getLogger("error").exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content=payload)
