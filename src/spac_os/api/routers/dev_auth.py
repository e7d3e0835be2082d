"""
spac_os.api.routers.dev_auth

Development-only token minting (`POST /v1/dev/token`). Disabled in `prod`.

Tokens carry identity only; what the subject may touch is decided per request
from `organization_members`, so a dev token for `alice` sees exactly alice's tenants.
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_404_NOT_FOUND

from spac_os.api.deps import settings_dep
from spac_os.auth.jwt import JwtConfig, issue_token
from spac_os.observability.logging import get_logger
from spac_os.settings import Settings

router = APIRouter(prefix="/v1/dev", tags=["dev"])
log = get_logger(__name__)


class DevTokenRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=256, pattern=r".*\S")
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevTokenResponse(BaseModel):
    # OAuth2 token-response field names.
    access_token: str
    token_type: str = "bearer"
    expires_in: int


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(settings_dep),
) -> DevTokenResponse:
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    subject = body.subject.strip()
    ttl = timedelta(minutes=body.ttl_minutes)
    access_token = issue_token(cfg=JwtConfig.from_settings(settings), subject=subject, ttl=ttl)
    log.info("dev_token_issued", subject=subject, ttl_minutes=body.ttl_minutes)
    return DevTokenResponse(access_token=access_token, expires_in=int(ttl.total_seconds()))
