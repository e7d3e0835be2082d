"""
spac_os.errors

Typed application errors.

Responsibilities:
- Carry an HTTP status, a machine-readable code and a client-safe message.
- Let services and guards fail without knowing about FastAPI response types.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"
    headers: dict[str, str] | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = details
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class RequestValidationFailed(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Invalid query parameters"


class Unauthenticated(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    message = "Unauthorized"


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"
    message = "Access denied"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Not found"


class Conflict(AppError):
    status_code = 409
    code = "CONFLICT"
    message = "Conflict"


class RateLimited(AppError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    message = "Rate limit exceeded"
    headers = {"Retry-After": "1"}


class UpstreamError(AppError):
    # 502 when the provider failed; 503 when a required provider is unavailable.
    status_code = 502
    code = "UPSTREAM_ERROR"
    message = "Upstream provider error"

    def __init__(self, message: str | None = None, *, status_code: int = 502, **kw: Any) -> None:
        super().__init__(message, **kw)
        self.status_code = status_code


# --- Module Notes -----------------------------------------------------------
# Translation to HTTP responses lives in `spac_os.api.errors`.
