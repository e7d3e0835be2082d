"""
spac_os.db.repositories.audit

Repository for `AuditLog` entities.

Responsibilities:
- Append audit records (create/update/delete/export) inside the caller's transaction.
- Query the audit trail by tenant for export.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.db.models import AuditLog
from spac_os.enums import AuditAction


class AuditRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        action: AuditAction,
        entity_type: str,
        entity_id: uuid.UUID | str,
        user_id: str,
        organization_id: uuid.UUID,
        metadata: dict[str, Any] | None = None,
        changes: dict[str, Any] | None = None,
    ) -> AuditLog:
        # Append-only; flushed (not committed) so it shares the mutation's transaction.
        row = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            user_id=user_id,
            organization_id=organization_id,
            metadata_=metadata or {},
            changes=changes,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def list_for_organization(
        self,
        organization_id: uuid.UUID,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 10_000,
    ) -> list[AuditLog]:
        stmt = select(AuditLog).where(AuditLog.organization_id == organization_id)
        if start is not None:
            stmt = stmt.where(AuditLog.created_at >= start)
        if end is not None:
            stmt = stmt.where(AuditLog.created_at <= end)
        stmt = stmt.order_by(desc(AuditLog.created_at), AuditLog.id).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())


# --- Module Notes -----------------------------------------------------------
# Bulk exports reference the tenant id as `entity_id`.
