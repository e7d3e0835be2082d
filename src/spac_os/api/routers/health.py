"""
spac_os.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness check (`/healthz`) reporting the running version.
- Provide readiness check (`/readyz`) with DB connectivity validation and the
  capability flags resolved at startup.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from spac_os import __version__
from spac_os.api.deps import analysis_cache_available, db_session

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


@router.get("/readyz")
async def readyz(
    session: AsyncSession = Depends(db_session),
    analysis_cache: bool = Depends(analysis_cache_available),
) -> dict[str, Any]:
    # A DB failure surfaces as a 500 through the generic handler.
    await session.execute(text("SELECT 1"))
    return {"status": "ready", "analysisCache": analysis_cache}


# --- Module Notes -----------------------------------------------------------
# `analysisCache: false` is not a readiness failure; the service degrades without it.
