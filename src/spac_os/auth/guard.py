"""
spac_os.auth.guard

Tenant access guard.

Responsibilities:
- Resolve Principal -> Membership for a target tenant on every call.
- Reject callers without a membership (Forbidden) or below a required role.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.auth.models import Principal
from spac_os.db.models import OrganizationMember
from spac_os.db.repositories.memberships import MembershipRepo
from spac_os.enums import MemberRole
from spac_os.errors import Forbidden
from spac_os.observability.logging import bind_request_context, get_logger

log = get_logger(__name__)


class AccessGuard:
    """
    Pure read: never caches the decision, since roles can change between requests.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._memberships = MembershipRepo(session)

    async def require(
        self,
        principal: Principal,
        organization_id: uuid.UUID,
        *,
        minimum_role: MemberRole = MemberRole.member,
    ) -> OrganizationMember:
        bind_request_context(organization_id=str(organization_id))
        membership = await self._memberships.get(
            organization_id=organization_id, user_id=principal.subject
        )
        if membership is None:
            log.info("access_denied", reason="no_membership")
            raise Forbidden()

        if not membership.role.at_least(minimum_role):
            log.info(
                "access_denied",
                reason="insufficient_role",
                role=membership.role.value,
                required=minimum_role.value,
            )
            raise Forbidden("Access denied - admin required", code="FORBIDDEN_ELEVATED")
        return membership

    async def require_admin(
        self, principal: Principal, organization_id: uuid.UUID
    ) -> OrganizationMember:
        return await self.require(principal, organization_id, minimum_role=MemberRole.admin)


# --- Module Notes -----------------------------------------------------------
# Detail routes look the entity up first (404 beats 403 for missing rows), then call
# the guard with the entity's tenant.
