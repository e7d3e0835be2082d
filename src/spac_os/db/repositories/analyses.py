"""
spac_os.db.repositories.analyses

Repository for `DocumentAnalysis` rows (persisted AI analysis cache).
"""

from __future__ import annotations

import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.db.models import DocumentAnalysis


class AnalysisRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, document_id: uuid.UUID) -> DocumentAnalysis | None:
        stmt = select(DocumentAnalysis).where(DocumentAnalysis.document_id == document_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def add(self, analysis: DocumentAnalysis) -> DocumentAnalysis:
        self._session.add(analysis)
        await self._session.flush()
        return analysis

    async def delete_for_document(self, document_id: uuid.UUID) -> int:
        result = await self._session.execute(
            delete(DocumentAnalysis).where(DocumentAnalysis.document_id == document_id)
        )
        return int(result.rowcount or 0)
