"""
spac_os.db.repositories.spacs

Repository for `Spac` entities.

Responsibilities:
- Declare the SPAC listing contract (sortable/searchable columns).
- Fetch live (not soft-deleted) SPACs and their child counts.
- Answer ticker-uniqueness questions for the service layer.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.db.models import Document, Spac, Target
from spac_os.enums import SpacSortField, SpacStatus
from spac_os.listing import EntityListing

SPAC_LISTING = EntityListing(
    name="spacs",
    model=Spac,
    id_column=Spac.id,
    tenant_column=Spac.organization_id,
    sort_fields={
        SpacSortField.name: Spac.name,
        SpacSortField.ticker: Spac.ticker,
        SpacSortField.status: Spac.status,
        SpacSortField.created_at: Spac.created_at,
        SpacSortField.updated_at: Spac.updated_at,
        SpacSortField.deadline: Spac.deadline,
        SpacSortField.ipo_amount: Spac.ipo_amount,
    },
    search_columns=(Spac.name, Spac.ticker, Spac.description),
    default_sort=SpacSortField.created_at,
    status_column=Spac.status,
    status_enum=SpacStatus,
    deleted_column=Spac.deleted_at,
)


class SpacRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, spac: Spac) -> Spac:
        self._session.add(spac)
        await self._session.flush()
        return spac

    async def get_live(self, spac_id: uuid.UUID) -> Spac | None:
        stmt = select(Spac).where(Spac.id == spac_id, Spac.deleted_at.is_(None))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def ticker_taken(self, ticker: str, *, exclude_id: uuid.UUID | None = None) -> bool:
        # Soft-deleted SPACs release their ticker.
        stmt = select(Spac.id).where(Spac.ticker == ticker, Spac.deleted_at.is_(None))
        if exclude_id is not None:
            stmt = stmt.where(Spac.id != exclude_id)
        return (await self._session.execute(stmt.limit(1))).first() is not None

    async def child_counts(self, spac_ids: list[uuid.UUID]) -> dict[uuid.UUID, dict[str, int]]:
        counts = {sid: {"targets": 0, "documents": 0} for sid in spac_ids}
        if not spac_ids:
            return counts

        for model, key in ((Target, "targets"), (Document, "documents")):
            stmt = (
                select(model.spac_id, func.count())
                .where(model.spac_id.in_(spac_ids), model.deleted_at.is_(None))
                .group_by(model.spac_id)
            )
            for spac_id, n in (await self._session.execute(stmt)).all():
                counts[spac_id][key] = int(n)
        return counts

    async def target_status_counts(self, spac_id: uuid.UUID) -> dict[str, int]:
        stmt = (
            select(Target.status, func.count())
            .where(Target.spac_id == spac_id, Target.deleted_at.is_(None))
            .group_by(Target.status)
        )
        return {status.value: int(n) for status, n in (await self._session.execute(stmt)).all()}

    async def list_for_export(
        self,
        organization_id: uuid.UUID,
        *,
        status: SpacStatus | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int,
    ) -> list[Spac]:
        stmt = select(Spac).where(
            Spac.organization_id == organization_id, Spac.deleted_at.is_(None)
        )
        if status is not None:
            stmt = stmt.where(Spac.status == status)
        if start is not None:
            stmt = stmt.where(Spac.created_at >= start)
        if end is not None:
            stmt = stmt.where(Spac.created_at <= end)
        stmt = stmt.order_by(Spac.created_at, Spac.id).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())
