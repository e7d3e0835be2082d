"""
spac_os.services.documents

Document metadata service.

Responsibilities:
- Tenant-scoped CRUD over document records (no file storage).
- Invalidate the persisted analysis cache whenever a document changes or goes away,
  inside the same transaction as the change.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.auth.guard import AccessGuard
from spac_os.auth.models import Principal
from spac_os.db.models import Document, utcnow
from spac_os.db.repositories.audit import AuditRepo
from spac_os.db.repositories.documents import DOCUMENT_LISTING, DocumentRepo
from spac_os.db.repositories.spacs import SpacRepo
from spac_os.db.session import transaction
from spac_os.enums import AuditAction
from spac_os.errors import Forbidden, NotFound
from spac_os.listing import ListQuerySpec, PageEnvelope, fetch_page
from spac_os.observability.logging import get_logger
from spac_os.services.analysis_cache import DocumentAnalysisCache
from spac_os.services.common import apply_updates

log = get_logger(__name__)

ENTITY_TYPE = "Document"


class DocumentService:
    def __init__(self, *, session: AsyncSession, analysis_cache: DocumentAnalysisCache) -> None:
        self._session = session
        self._guard = AccessGuard(session)
        self._spacs = SpacRepo(session)
        self._documents = DocumentRepo(session)
        self._audit = AuditRepo(session)
        self._analysis_cache = analysis_cache

    async def list(
        self, principal: Principal, spec: ListQuerySpec, *, spac_id: uuid.UUID | None = None
    ) -> PageEnvelope[Document]:
        await self._guard.require(principal, spec.organization_id)
        filters = [Document.spac_id == spac_id] if spac_id is not None else []
        return await fetch_page(self._session, DOCUMENT_LISTING, spec, *filters)

    async def create(
        self, principal: Principal, data: dict[str, Any], *, scope: uuid.UUID | None = None
    ) -> Document:
        organization_id: uuid.UUID = data["organization_id"]
        if scope is not None and organization_id != scope:
            raise Forbidden()
        await self._guard.require(principal, organization_id)

        spac_id = data.get("spac_id")
        if spac_id is not None:
            spac = await self._spacs.get_live(spac_id)
            if spac is None or spac.organization_id != organization_id:
                raise NotFound("SPAC not found")

        async with transaction(self._session):
            document = await self._documents.add(Document(**data, created_by=principal.subject))
            await self._audit.add(
                action=AuditAction.create,
                entity_type=ENTITY_TYPE,
                entity_id=document.id,
                user_id=principal.subject,
                organization_id=organization_id,
                metadata={"name": document.name, "category": document.category.value},
            )

        log.info("document_created", document_id=str(document.id))
        return document

    async def get(self, principal: Principal, document_id: uuid.UUID) -> Document:
        document = await self._require_document(document_id)
        await self._guard.require(principal, document.organization_id)
        return document

    async def update(
        self,
        principal: Principal,
        document_id: uuid.UUID,
        updates: dict[str, Any],
        *,
        scope: uuid.UUID | None = None,
    ) -> Document:
        document = await self._require_document(document_id, scope)
        await self._guard.require(principal, document.organization_id)

        async with transaction(self._session):
            changes = apply_updates(document, updates)
            if changes:
                await self._session.flush()
                await self._analysis_cache.invalidate(document.id)
                await self._audit.add(
                    action=AuditAction.update,
                    entity_type=ENTITY_TYPE,
                    entity_id=document.id,
                    user_id=principal.subject,
                    organization_id=document.organization_id,
                    metadata={"name": document.name},
                    changes=changes,
                )

        log.info("document_updated", document_id=str(document.id), changed=sorted(changes))
        return document

    async def delete(
        self, principal: Principal, document_id: uuid.UUID, *, scope: uuid.UUID | None = None
    ) -> None:
        document = await self._require_document(document_id, scope)
        await self._guard.require_admin(principal, document.organization_id)

        async with transaction(self._session):
            document.deleted_at = utcnow()
            document.deleted_by = principal.subject
            await self._session.flush()
            await self._analysis_cache.invalidate(document.id)
            await self._audit.add(
                action=AuditAction.delete,
                entity_type=ENTITY_TYPE,
                entity_id=document.id,
                user_id=principal.subject,
                organization_id=document.organization_id,
                metadata={"name": document.name},
            )

        log.info("document_deleted", document_id=str(document.id))

    async def _require_document(
        self, document_id: uuid.UUID, scope: uuid.UUID | None = None
    ) -> Document:
        document = await self._documents.get_live(document_id)
        if document is None or (scope is not None and document.organization_id != scope):
            raise NotFound("Document not found")
        return document
