"""
spac_os.db.repositories.targets

Repository for `Target` entities (acquisition candidates of a SPAC).
"""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from spac_os.db.models import Spac, Target
from spac_os.enums import TargetSortField, TargetStatus
from spac_os.listing import EntityListing

TARGET_LISTING = EntityListing(
    name="targets",
    model=Target,
    id_column=Target.id,
    tenant_column=Target.organization_id,
    sort_fields={
        TargetSortField.name: Target.name,
        TargetSortField.industry: Target.industry,
        TargetSortField.status: Target.status,
        TargetSortField.evaluation_score: Target.evaluation_score,
        TargetSortField.enterprise_value: Target.enterprise_value,
        TargetSortField.created_at: Target.created_at,
        TargetSortField.updated_at: Target.updated_at,
    },
    search_columns=(Target.name, Target.industry, Target.description),
    default_sort=TargetSortField.created_at,
    status_column=Target.status,
    status_enum=TargetStatus,
    deleted_column=Target.deleted_at,
)

# Targets under a soft-deleted SPAC are treated as deleted.
PARENT_SPAC_LIVE = Target.spac.has(Spac.deleted_at.is_(None))


class TargetRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, target: Target) -> Target:
        self._session.add(target)
        await self._session.flush()
        return target

    async def get_live(self, target_id: uuid.UUID) -> Target | None:
        stmt = (
            select(Target)
            .where(Target.id == target_id, Target.deleted_at.is_(None))
            .options(selectinload(Target.spac))
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_export(
        self,
        organization_id: uuid.UUID,
        *,
        spac_id: uuid.UUID | None = None,
        status: TargetStatus | None = None,
        limit: int,
    ) -> list[Target]:
        stmt = (
            select(Target)
            .where(
                Target.organization_id == organization_id,
                Target.deleted_at.is_(None),
                PARENT_SPAC_LIVE,
            )
            .options(selectinload(Target.spac))
        )
        if spac_id is not None:
            stmt = stmt.where(Target.spac_id == spac_id)
        if status is not None:
            stmt = stmt.where(Target.status == status)
        stmt = stmt.order_by(Target.created_at, Target.id).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())
