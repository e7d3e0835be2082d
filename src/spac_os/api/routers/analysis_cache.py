"""
spac_os.api.routers.analysis_cache

Persisted AI-analysis cache endpoints (`/v1/ai/analysis-cache?documentId=...`).

Responsibilities:
- Read the cached analysis for a document and report whether it is still fresh.
- Store (upsert) an analysis produced elsewhere.
- Invalidate a document's cached analysis.

Access follows the document: the caller must be a member of the document's tenant.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.api.deps import analysis_cache_dep, db_session
from spac_os.api.schemas import ApiModel
from spac_os.auth.deps import get_principal
from spac_os.auth.models import Principal
from spac_os.db.session import transaction
from spac_os.services.analysis_cache import DocumentAnalysisCache
from spac_os.services.documents import DocumentService

router = APIRouter(prefix="/v1/ai/analysis-cache", tags=["ai"])

Severity = Literal["high", "medium", "low"]

_ITEM_LISTS = ("key_terms", "risk_flags", "action_items", "insights", "financial_highlights")


class RiskFlag(ApiModel):
    severity: Severity
    title: str
    description: str = ""
    page: int | None = None


class KeyTerm(ApiModel):
    term: str
    definition: str = ""
    importance: Severity = "medium"


class ActionItem(ApiModel):
    task: str
    priority: Severity = "medium"
    assignee: str | None = None
    due_date: datetime | None = None


class Insight(ApiModel):
    type: str
    content: str


class FinancialHighlight(ApiModel):
    metric: str
    value: str
    change: str | None = None


class AnalysisData(ApiModel):
    summary: str = ""
    key_terms: list[KeyTerm] = Field(default_factory=list)
    risk_flags: list[RiskFlag] = Field(default_factory=list)
    action_items: list[ActionItem] = Field(default_factory=list)
    insights: list[Insight] = Field(default_factory=list)
    financial_highlights: list[FinancialHighlight] | None = None

    def to_cache_payload(self) -> dict[str, Any]:
        # Top-level keys name columns; nested items keep their wire (camelCase) names.
        payload: dict[str, Any] = {"summary": self.summary}
        for name in _ITEM_LISTS:
            items = getattr(self, name)
            if items is not None:
                items = [i.model_dump(mode="json", by_alias=True) for i in items]
            payload[name] = items
        return payload


class AnalysisStoreRequest(ApiModel):
    document_id: uuid.UUID
    analysis: AnalysisData


class CachedAnalysisOut(ApiModel):
    id: uuid.UUID
    document_id: uuid.UUID
    summary: str | None
    key_terms: list[dict[str, Any]]
    risk_flags: list[dict[str, Any]]
    action_items: list[dict[str, Any]]
    insights: list[dict[str, Any]]
    financial_highlights: list[dict[str, Any]] | None
    risk_level: str
    created_at: datetime
    updated_at: datetime
    expires_at: datetime | None


class AnalysisReadResponse(ApiModel):
    success: bool = True
    data: CachedAnalysisOut | None
    is_fresh: bool
    message: str


class AnalysisStoreResponse(ApiModel):
    success: bool = True
    cached: bool
    data: CachedAnalysisOut | None = None
    message: str


class AnalysisInvalidateResponse(ApiModel):
    success: bool
    message: str


async def _require_document(
    principal: Principal,
    session: AsyncSession,
    cache: DocumentAnalysisCache,
    document_id: uuid.UUID,
) -> None:
    await DocumentService(session=session, analysis_cache=cache).get(principal, document_id)


@router.get("", response_model=AnalysisReadResponse)
async def read_cached_analysis(
    document_id: uuid.UUID = Query(alias="documentId"),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    cache: DocumentAnalysisCache = Depends(analysis_cache_dep),
) -> AnalysisReadResponse:
    await _require_document(principal, session, cache, document_id)

    cached = await cache.get(document_id)
    if cached is None:
        return AnalysisReadResponse(data=None, is_fresh=False, message="No cached analysis found")

    fresh = cache.is_fresh(cached)
    return AnalysisReadResponse(
        data=CachedAnalysisOut.model_validate(cached),
        is_fresh=fresh,
        message="Fresh cached analysis retrieved" if fresh else "Cached analysis expired",
    )


@router.post("", response_model=AnalysisStoreResponse)
async def store_analysis(
    body: AnalysisStoreRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    cache: DocumentAnalysisCache = Depends(analysis_cache_dep),
) -> AnalysisStoreResponse:
    await _require_document(principal, session, cache, body.document_id)

    async with transaction(session):
        stored = await cache.store(body.document_id, body.analysis.to_cache_payload())

    if stored is None:
        return AnalysisStoreResponse(
            cached=False, message="Analysis not cached - cache unavailable"
        )
    return AnalysisStoreResponse(
        cached=True,
        data=CachedAnalysisOut.model_validate(stored),
        message="Analysis cached successfully",
    )


@router.delete("", response_model=AnalysisInvalidateResponse)
async def invalidate_analysis(
    document_id: uuid.UUID = Query(alias="documentId"),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    cache: DocumentAnalysisCache = Depends(analysis_cache_dep),
) -> AnalysisInvalidateResponse:
    await _require_document(principal, session, cache, document_id)

    async with transaction(session):
        ok = await cache.invalidate(document_id)

    return AnalysisInvalidateResponse(
        success=ok,
        message="Cache invalidated successfully" if ok else "Failed to invalidate cache",
    )
