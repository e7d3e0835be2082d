"""
spac_os.db.repositories.memberships

Repository for `OrganizationMember` rows (read-only from this service).

Responsibilities:
- Resolve the membership for a (tenant, principal) pair.
- List the tenants a principal belongs to.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from spac_os.db.models import OrganizationMember


class MembershipRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, *, organization_id: uuid.UUID, user_id: str) -> OrganizationMember | None:
        # Backed by uq_member_org_user, so at most one row.
        stmt = select(OrganizationMember).where(
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.user_id == user_id,
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> list[OrganizationMember]:
        stmt = (
            select(OrganizationMember)
            .where(OrganizationMember.user_id == user_id)
            .options(selectinload(OrganizationMember.organization))
            .order_by(OrganizationMember.created_at, OrganizationMember.id)
        )
        return list((await self._session.execute(stmt)).scalars().all())
