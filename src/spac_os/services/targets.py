"""
spac_os.services.targets

Target-company pipeline service.

Targets belong to a SPAC and inherit its tenant; access is always checked
against the parent SPAC's organization.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.auth.guard import AccessGuard
from spac_os.auth.models import Principal
from spac_os.db.models import Target, utcnow
from spac_os.db.repositories.audit import AuditRepo
from spac_os.db.repositories.spacs import SpacRepo
from spac_os.db.repositories.targets import PARENT_SPAC_LIVE, TARGET_LISTING, TargetRepo
from spac_os.db.session import transaction
from spac_os.enums import AuditAction
from spac_os.errors import NotFound
from spac_os.listing import ListQuerySpec, PageEnvelope, fetch_page
from spac_os.observability.logging import get_logger
from spac_os.services.common import apply_updates

log = get_logger(__name__)

ENTITY_TYPE = "Target"


class TargetService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._guard = AccessGuard(session)
        self._spacs = SpacRepo(session)
        self._targets = TargetRepo(session)
        self._audit = AuditRepo(session)

    async def list(
        self, principal: Principal, spec: ListQuerySpec, *, spac_id: uuid.UUID | None = None
    ) -> PageEnvelope[Target]:
        await self._guard.require(principal, spec.organization_id)
        filters = [PARENT_SPAC_LIVE]
        if spac_id is not None:
            filters.append(Target.spac_id == spac_id)
        return await fetch_page(self._session, TARGET_LISTING, spec, *filters)

    async def create(
        self, principal: Principal, data: dict[str, Any], *, scope: uuid.UUID | None = None
    ) -> Target:
        spac = await self._spacs.get_live(data["spac_id"])
        if spac is None or (scope is not None and spac.organization_id != scope):
            raise NotFound("SPAC not found")
        await self._guard.require(principal, spac.organization_id)

        async with transaction(self._session):
            target = await self._targets.add(
                Target(**data, organization_id=spac.organization_id, created_by=principal.subject)
            )
            await self._audit.add(
                action=AuditAction.create,
                entity_type=ENTITY_TYPE,
                entity_id=target.id,
                user_id=principal.subject,
                organization_id=spac.organization_id,
                metadata={"name": target.name, "spacId": str(spac.id)},
            )

        log.info("target_created", target_id=str(target.id), spac_id=str(spac.id))
        return target

    async def get(self, principal: Principal, target_id: uuid.UUID) -> Target:
        target = await self._require_target(target_id)
        await self._guard.require(principal, target.organization_id)
        return target

    async def update(
        self,
        principal: Principal,
        target_id: uuid.UUID,
        updates: dict[str, Any],
        *,
        scope: uuid.UUID | None = None,
    ) -> Target:
        target = await self._require_target(target_id, scope)
        await self._guard.require(principal, target.organization_id)

        async with transaction(self._session):
            changes = apply_updates(target, updates)
            if changes:
                await self._session.flush()
                await self._audit.add(
                    action=AuditAction.update,
                    entity_type=ENTITY_TYPE,
                    entity_id=target.id,
                    user_id=principal.subject,
                    organization_id=target.organization_id,
                    metadata={"name": target.name},
                    changes=changes,
                )

        log.info("target_updated", target_id=str(target.id), changed=sorted(changes))
        return target

    async def delete(
        self, principal: Principal, target_id: uuid.UUID, *, scope: uuid.UUID | None = None
    ) -> None:
        target = await self._require_target(target_id, scope)
        await self._guard.require_admin(principal, target.organization_id)

        async with transaction(self._session):
            target.deleted_at = utcnow()
            target.deleted_by = principal.subject
            await self._session.flush()
            await self._audit.add(
                action=AuditAction.delete,
                entity_type=ENTITY_TYPE,
                entity_id=target.id,
                user_id=principal.subject,
                organization_id=target.organization_id,
                metadata={"name": target.name},
            )

        log.info("target_deleted", target_id=str(target.id))

    async def _require_target(
        self, target_id: uuid.UUID, scope: uuid.UUID | None = None
    ) -> Target:
        target = await self._targets.get_live(target_id)
        # A target under a soft-deleted SPAC is gone too; so is one outside `scope`.
        if (
            target is None
            or target.spac.deleted_at is not None
            or (scope is not None and target.organization_id != scope)
        ):
            raise NotFound("Target not found")
        return target
