"""
spac_os.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and shared caches.
- Encapsulate app.state access patterns (settings/sessionmaker/caches/flags).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from spac_os.cache.ttl import TTLCache
from spac_os.services.analysis_cache import DocumentAnalysisCache
from spac_os.services.filings import FilingLookupService
from spac_os.settings import Settings


def settings_dep(request: Request) -> Settings:
    # Settings are fixed at app creation (`spac_os.api.app.create_app`).
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer;
    # anything left uncommitted is rolled back when the session closes.
    async with session_factory() as session:
        yield session


def filings_cache(request: Request) -> TTLCache[dict[str, Any]]:
    return request.app.state.filings_cache  # type: ignore[attr-defined]


def analysis_cache_available(request: Request) -> bool:
    # Resolved once at startup from settings + schema inspection.
    return bool(getattr(request.app.state, "analysis_cache_available", False))


def analysis_cache_dep(
    session: AsyncSession = Depends(db_session),
    available: bool = Depends(analysis_cache_available),
    settings: Settings = Depends(settings_dep),
) -> DocumentAnalysisCache:
    return DocumentAnalysisCache(
        session, available=available, ttl_hours=settings.analysis_cache_ttl_hours
    )


def filing_lookup(
    request: Request,
    cache: TTLCache[dict[str, Any]] = Depends(filings_cache),
) -> FilingLookupService:
    client = request.app.state.edgar  # type: ignore[attr-defined]
    return FilingLookupService(cache=cache, client=client)


# --- Module Notes -----------------------------------------------------------
# Per-request resources (sessions, caches, capability flags) are injected from here
# so routers never touch `app.state` directly.
