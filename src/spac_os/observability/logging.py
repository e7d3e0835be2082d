"""
spac_os.observability.logging

Structured logging for SPAC OS.

Responsibilities:
- Configure `structlog` for JSON logs over stdlib logging (one object per line on stdout).
- Mask credential-like fields before anything is rendered.
- Provide helpers for obtaining bound loggers and enriching request context.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

REDACTED = "[redacted]"

# Matched case-insensitively against event keys.
SENSITIVE_KEYS = frozenset({"authorization", "token", "access_token", "jwt_secret", "password"})

# Access lines come from `RequestContextMiddleware`; uvicorn's would duplicate them.
_QUIET_LOGGERS = ("uvicorn.access",)


def configure_logging(*, service_name: str, level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    logging.getLogger().setLevel(log_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name(service_name),
            redact_sensitive,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _add_service_name(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def redact_sensitive(
    _: Any, __: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(**values: Any) -> None:
    # e.g. user_id, organization_id; cleared per request by the middleware.
    structlog.contextvars.bind_contextvars(**values)


# --- Module Notes -----------------------------------------------------------
# `configure_logging` runs once per app; calling it again (tests) only resets levels.
