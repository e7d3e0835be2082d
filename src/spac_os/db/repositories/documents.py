"""
spac_os.db.repositories.documents

Repository for `Document` metadata rows.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.db.models import Document
from spac_os.enums import DocumentCategory, DocumentSortField
from spac_os.listing import EntityListing

DOCUMENT_LISTING = EntityListing(
    name="documents",
    model=Document,
    id_column=Document.id,
    tenant_column=Document.organization_id,
    sort_fields={
        DocumentSortField.name: Document.name,
        DocumentSortField.category: Document.category,
        DocumentSortField.created_at: Document.created_at,
        DocumentSortField.updated_at: Document.updated_at,
    },
    search_columns=(Document.name, Document.description),
    default_sort=DocumentSortField.created_at,
    # Documents filter on category through the shared `status` parameter.
    status_column=Document.category,
    status_enum=DocumentCategory,
    deleted_column=Document.deleted_at,
)


class DocumentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, document: Document) -> Document:
        self._session.add(document)
        await self._session.flush()
        return document

    async def get_live(self, document_id: uuid.UUID) -> Document | None:
        stmt = select(Document).where(Document.id == document_id, Document.deleted_at.is_(None))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_export(
        self,
        organization_id: uuid.UUID,
        *,
        spac_id: uuid.UUID | None = None,
        limit: int,
    ) -> list[Document]:
        stmt = select(Document).where(
            Document.organization_id == organization_id, Document.deleted_at.is_(None)
        )
        if spac_id is not None:
            stmt = stmt.where(Document.spac_id == spac_id)
        stmt = stmt.order_by(Document.created_at, Document.id).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())
