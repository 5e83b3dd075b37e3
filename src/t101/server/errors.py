"""Error formatting for the HTTP API.

Every failure that leaves a route goes through ``error_response``: it builds
the ``{success: false, error: {...}}`` envelope, logs the error and appends
an entry to the daily error log.
"""

import json
import logging
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import (
    InternalError,
    NotFoundError,
    ProviderError,
    T101Error,
    ValidationError,
    translate_provider_error,
)

logger = logging.getLogger(__name__)

SENSITIVE_FIELDS = ("password", "token", "apiKey", "secret", "api_key", "authorization")
REDACTED = "***REDACTED***"


def redact(body: Any) -> Any:
    """Return a copy of a request body with sensitive fields masked."""
    if not isinstance(body, dict):
        return body
    return {
        key: REDACTED if key in SENSITIVE_FIELDS and value else value
        for key, value in body.items()
    }


class ErrorLogger:
    """Appends errors as JSON lines to ``errors-YYYY-MM-DD.log``."""

    def __init__(self, log_dir: Path) -> None:
        self.log_dir = log_dir

    def path_for(self, when: datetime) -> Path:
        return self.log_dir / f"errors-{when:%Y-%m-%d}.log"

    def write(self, entry: dict[str, Any], when: datetime | None = None) -> None:
        when = when or datetime.now(timezone.utc)
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            with self.path_for(when).open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, default=str) + "\n")
        except OSError as e:
            logger.error(f"Failed to write error log: {e}")


def _as_t101_error(exc: Exception) -> T101Error:
    if isinstance(exc, T101Error):
        return exc
    if isinstance(exc, ProviderError):
        return translate_provider_error(exc)
    return InternalError(original_error=exc)


def _stack(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def build_log_entry(request: Request, error: T101Error, cause: Exception) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "requestId": getattr(request.state, "request_id", "unknown"),
        "method": request.method,
        "url": str(request.url.path),
        "ip": request.client.host if request.client else "unknown",
        "userAgent": request.headers.get("user-agent", "unknown"),
        "error": {
            "name": type(cause).__name__,
            "message": str(cause),
            "code": error.code,
            "status": error.status_code,
            "stack": _stack(cause),
        },
    }
    body = getattr(request.state, "body", None)
    if request.method != "GET" and body is not None:
        entry["body"] = redact(body)
    return entry


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Format any exception as the standard error envelope."""
    context = request.app.state.context
    error = _as_t101_error(exc)

    log = logger.error if error.status_code >= 500 else logger.warning
    log(f"{request.method} {request.url.path} -> {error.status_code} {error.code}: {error.message}")
    context.error_logger.write(build_log_entry(request, error, exc))

    payload: dict[str, Any] = {
        "message": error.message,
        "code": error.code,
        "status": error.status_code,
    }
    if error.validation_errors:
        payload["validationErrors"] = error.validation_errors
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        payload["requestId"] = request_id
    if context.config.server.is_development:
        payload["stack"] = _stack(exc)
        original = error.original_error
        if original is not None and original is not exc:
            payload["originalError"] = {"message": str(original), "stack": _stack(original)}

    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "error": payload},
        headers=getattr(error, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Route every error type through ``error_response``."""

    @app.exception_handler(T101Error)
    async def handle_t101_error(request: Request, exc: T101Error) -> JSONResponse:
        return error_response(request, exc)

    @app.exception_handler(ProviderError)
    async def handle_provider_error(request: Request, exc: ProviderError) -> JSONResponse:
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        message = details[0]["message"] if details else "Validation error"
        return error_response(request, ValidationError(message, validation_errors=details))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:
            error: T101Error = NotFoundError(f"Route not found: {request.url.path}")
        else:
            error = T101Error(str(exc.detail))
            error.status_code = exc.status_code
            error.code = "HTTP_ERROR"
        return error_response(request, error)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        return error_response(request, exc)
