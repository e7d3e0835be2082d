"""
spac_os.api.routers.organizations

Read-only view of the caller's tenant memberships.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.api.deps import db_session
from spac_os.api.schemas import ApiModel
from spac_os.auth.deps import get_principal
from spac_os.auth.models import Principal
from spac_os.db.repositories.memberships import MembershipRepo
from spac_os.enums import MemberRole

router = APIRouter(prefix="/v1/organizations", tags=["organizations"])


class OrganizationOut(ApiModel):
    id: uuid.UUID
    name: str
    role: MemberRole


class OrganizationsResponse(ApiModel):
    organizations: list[OrganizationOut]


@router.get("", response_model=OrganizationsResponse)
async def list_my_organizations(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> OrganizationsResponse:
    memberships = await MembershipRepo(session).list_for_user(principal.subject)
    return OrganizationsResponse(
        organizations=[
            OrganizationOut(id=m.organization.id, name=m.organization.name, role=m.role)
            for m in memberships
        ]
    )
