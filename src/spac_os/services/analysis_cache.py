"""
spac_os.services.analysis_cache

Persisted document-analysis cache.

Responsibilities:
- Keep at most one analysis row per document, valid for a fixed TTL (24h by default).
- Derive an overall risk level from the analysis' risk flags.
- Degrade to a no-op when the cache is unavailable (disabled or not migrated).

Methods flush but never commit; callers own the transaction, so invalidation can
ride along with a document update or delete.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.db.models import DocumentAnalysis, utcnow
from spac_os.db.repositories.analyses import AnalysisRepo
from spac_os.enums import RiskLevel
from spac_os.observability.logging import get_logger

log = get_logger(__name__)

DEFAULT_TTL_HOURS = 24

_LIST_FIELDS = ("key_terms", "risk_flags", "action_items", "insights")


def risk_level_for(risk_flags: Iterable[Mapping[str, Any]] | None) -> RiskLevel:
    severities = {str(flag.get("severity", "")).lower() for flag in risk_flags or ()}
    if not severities:
        return RiskLevel.none
    if "high" in severities:
        return RiskLevel.high
    if "medium" in severities:
        return RiskLevel.medium
    return RiskLevel.low


class DocumentAnalysisCache:
    def __init__(
        self,
        session: AsyncSession,
        *,
        available: bool,
        ttl_hours: int = DEFAULT_TTL_HOURS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repo = AnalysisRepo(session)
        self._session = session
        self._available = available
        self._ttl = timedelta(hours=ttl_hours)
        self._clock = clock

    @property
    def available(self) -> bool:
        return self._available

    async def get(self, document_id: uuid.UUID) -> DocumentAnalysis | None:
        if not self._available:
            log.warning("analysis_cache_unavailable", op="get", document_id=str(document_id))
            return None
        return await self._repo.get(document_id)

    def is_fresh(self, analysis: DocumentAnalysis | None) -> bool:
        if analysis is None:
            return False
        now = self._clock()
        if analysis.expires_at is not None:
            return now < analysis.expires_at
        # Rows written without an expiry fall back to their age.
        return now - analysis.created_at < self._ttl

    async def get_fresh(self, document_id: uuid.UUID) -> DocumentAnalysis | None:
        analysis = await self.get(document_id)
        return analysis if self.is_fresh(analysis) else None

    async def store(
        self, document_id: uuid.UUID, analysis: Mapping[str, Any]
    ) -> DocumentAnalysis | None:
        if not self._available:
            log.warning("analysis_cache_unavailable", op="store", document_id=str(document_id))
            return None

        now = self._clock()
        values: dict[str, Any] = {
            "summary": analysis.get("summary") or None,
            "financial_highlights": analysis.get("financial_highlights"),
            "risk_level": risk_level_for(analysis.get("risk_flags")).value,
            "expires_at": now + self._ttl,
            "updated_at": now,
        }
        for name in _LIST_FIELDS:
            values[name] = list(analysis.get(name) or [])

        row = await self._repo.get(document_id)
        if row is None:
            row = await self._repo.add(
                DocumentAnalysis(document_id=document_id, created_at=now, **values)
            )
        else:
            for key, value in values.items():
                setattr(row, key, value)
            await self._session.flush()

        log.info("analysis_cached", document_id=str(document_id), risk_level=row.risk_level)
        return row

    async def invalidate(self, document_id: uuid.UUID) -> bool:
        if not self._available:
            # Nothing can be cached, so there is nothing to invalidate.
            log.warning(
                "analysis_cache_unavailable", op="invalidate", document_id=str(document_id)
            )
            return True
        removed = await self._repo.delete_for_document(document_id)
        if removed:
            log.info("analysis_invalidated", document_id=str(document_id), removed=removed)
        return True


# --- Module Notes -----------------------------------------------------------
# `available` is resolved once at startup (`analysis_cache_enabled` and the table
# being present) and injected; nothing here inspects database error text.
