"""
spac_os.auth.deps

FastAPI dependency functions for authentication.

Responsibilities:
- Convert a bearer token into a typed `Principal`.
- Bind the principal into the request log context.
"""

from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from spac_os.api.deps import settings_dep
from spac_os.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from spac_os.auth.models import Principal
from spac_os.errors import Unauthenticated
from spac_os.observability.logging import bind_request_context, get_logger
from spac_os.settings import Settings

log = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> Principal:
    if creds is None or not creds.credentials:
        raise Unauthenticated()

    cfg = JwtConfig.from_settings(settings)
    try:
        principal = Principal.from_claims(decode_and_validate(cfg=cfg, token=creds.credentials))
    except (JwtValidationError, ValueError) as e:
        log.info("token_rejected", reason=str(e))
        raise Unauthenticated() from e

    bind_request_context(user_id=principal.subject)
    return principal


# --- Module Notes -----------------------------------------------------------
# Settings come from `app.state` so tests and prod share this code path.
