"""
spac_os.services.spacs

SPAC lifecycle service (transaction + audit owner).

Responsibilities:
- Enforce tenant access for every SPAC read and write.
- Keep live tickers unique.
- Write each mutation and its audit record in one transaction.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.auth.guard import AccessGuard
from spac_os.auth.models import Principal
from spac_os.db.models import Spac, utcnow
from spac_os.db.repositories.audit import AuditRepo
from spac_os.db.repositories.spacs import SPAC_LISTING, SpacRepo
from spac_os.db.session import transaction
from spac_os.enums import AuditAction
from spac_os.errors import Conflict, NotFound
from spac_os.listing import ListQuerySpec, PageEnvelope, fetch_page
from spac_os.observability.logging import get_logger
from spac_os.services.common import apply_updates

log = get_logger(__name__)

ENTITY_TYPE = "Spac"


class SpacService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._guard = AccessGuard(session)
        self._spacs = SpacRepo(session)
        self._audit = AuditRepo(session)

    async def list(
        self, principal: Principal, spec: ListQuerySpec
    ) -> tuple[PageEnvelope[Spac], dict[uuid.UUID, dict[str, int]]]:
        await self._guard.require(principal, spec.organization_id)
        page = await fetch_page(self._session, SPAC_LISTING, spec)
        counts = await self._spacs.child_counts([s.id for s in page.items])
        return page, counts

    async def create(self, principal: Principal, data: dict[str, Any]) -> Spac:
        organization_id: uuid.UUID = data["organization_id"]
        await self._guard.require(principal, organization_id)

        ticker = data.get("ticker")
        if ticker and await self._spacs.ticker_taken(ticker):
            raise Conflict("Ticker already exists", code="TICKER_EXISTS")

        with _ticker_conflicts(ticker):
            async with transaction(self._session):
                spac = await self._spacs.add(Spac(**data, created_by=principal.subject))
                await self._audit.add(
                    action=AuditAction.create,
                    entity_type=ENTITY_TYPE,
                    entity_id=spac.id,
                    user_id=principal.subject,
                    organization_id=organization_id,
                    metadata={"name": spac.name, "ticker": spac.ticker},
                )

        log.info("spac_created", spac_id=str(spac.id))
        return spac

    async def get(self, principal: Principal, spac_id: uuid.UUID) -> tuple[Spac, dict[str, Any]]:
        spac = await self._require_spac(spac_id)
        await self._guard.require(principal, spac.organization_id)
        statistics = {"targets": await self._spacs.target_status_counts(spac.id)}
        return spac, statistics

    async def update(
        self, principal: Principal, spac_id: uuid.UUID, updates: dict[str, Any]
    ) -> Spac:
        spac = await self._require_spac(spac_id)
        await self._guard.require(principal, spac.organization_id)

        ticker = updates.get("ticker")
        if ticker and ticker != spac.ticker and await self._spacs.ticker_taken(
            ticker, exclude_id=spac.id
        ):
            raise Conflict("Ticker already exists", code="TICKER_EXISTS")

        with _ticker_conflicts(ticker):
            async with transaction(self._session):
                changes = apply_updates(spac, updates)
                if changes:
                    await self._session.flush()
                    await self._audit.add(
                        action=AuditAction.update,
                        entity_type=ENTITY_TYPE,
                        entity_id=spac.id,
                        user_id=principal.subject,
                        organization_id=spac.organization_id,
                        metadata={"name": spac.name},
                        changes=changes,
                    )

        log.info("spac_updated", spac_id=str(spac.id), changed=sorted(changes))
        return spac

    async def delete(self, principal: Principal, spac_id: uuid.UUID) -> None:
        spac = await self._require_spac(spac_id)
        await self._guard.require_admin(principal, spac.organization_id)

        async with transaction(self._session):
            spac.deleted_at = utcnow()
            spac.deleted_by = principal.subject
            await self._session.flush()
            await self._audit.add(
                action=AuditAction.delete,
                entity_type=ENTITY_TYPE,
                entity_id=spac.id,
                user_id=principal.subject,
                organization_id=spac.organization_id,
                metadata={"name": spac.name, "ticker": spac.ticker},
            )

        log.info("spac_deleted", spac_id=str(spac.id))

    async def _require_spac(self, spac_id: uuid.UUID) -> Spac:
        spac = await self._spacs.get_live(spac_id)
        if spac is None:
            raise NotFound("SPAC not found")
        return spac


@contextmanager
def _ticker_conflicts(ticker: str | None) -> Iterator[None]:
    # `uq_spacs_live_ticker` rejects a concurrent writer that passed `ticker_taken`.
    try:
        yield
    except IntegrityError as e:
        if not ticker:
            raise
        log.info("ticker_conflict", ticker=ticker)
        raise Conflict("Ticker already exists", code="TICKER_EXISTS") from e


# --- Module Notes -----------------------------------------------------------
# Lookups run before the guard so a missing row is a 404 for every caller.
