"""
spac_os.api.errors

HTTP translation of application errors.

Responsibilities:
- Render every error as JSON with at least an `error` message (and usually a `code`).
- Turn FastAPI request validation failures into 400s with field-level details.
- Log unexpected exceptions with context and return a generic 500 (no internals leaked).
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from spac_os.errors import AppError
from spac_os.observability.logging import get_logger

log = get_logger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_exception)
    app.add_exception_handler(Exception, _unhandled)


async def _app_error(_: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, AppError)
    if exc.status_code >= 500:
        log.warning(
            "request_failed", status_code=exc.status_code, code=exc.code, error=exc.message
        )
    return JSONResponse(exc.to_body(), status_code=exc.status_code, headers=exc.headers)


async def _request_validation_error(_: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    details = validation_details(exc.errors())
    in_body = any(d["loc"][:1] == ["body"] for d in details)
    return JSONResponse(
        {
            "error": "Invalid request body" if in_body else "Invalid query parameters",
            "code": "VALIDATION_ERROR",
            "details": details,
        },
        status_code=400,
    )


async def _http_exception(_: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, StarletteHTTPException)
    return JSONResponse(
        {"error": exc.detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None)
    )


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", path=request.url.path, error_type=type(exc).__name__)
    return JSONResponse(
        {"error": "Internal server error", "code": "INTERNAL_ERROR"}, status_code=500
    )


def validation_details(errors: Any) -> list[dict[str, Any]]:
    # Drop `input`/`ctx`: they may echo secrets or hold non-JSON values.
    return [{"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in errors]


# --- Module Notes -----------------------------------------------------------
# Starlette serves the `Exception` handler from its outermost middleware, so the
# 500 body is produced even when the error escapes every router.
