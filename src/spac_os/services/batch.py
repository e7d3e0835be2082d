"""
spac_os.services.batch

Bulk target/document mutations for one tenant.

Responsibilities:
- Check tenant membership once, then run each operation through the owning service.
- Commit every operation (and its audit row) on its own; one failure never undoes another.
- Report a per-operation result and record a BATCH_OPERATION audit entry for the run.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, assert_never

from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.auth.guard import AccessGuard
from spac_os.auth.models import Principal
from spac_os.db.repositories.audit import AuditRepo
from spac_os.db.session import transaction
from spac_os.enums import AuditAction, BatchAction, BatchEntity
from spac_os.errors import AppError
from spac_os.observability.logging import get_logger
from spac_os.services.analysis_cache import DocumentAnalysisCache
from spac_os.services.documents import DocumentService
from spac_os.services.targets import TargetService

log = get_logger(__name__)

ENTITY_TYPE = "Batch"


@dataclass(frozen=True, slots=True)
class BatchOperation:
    op_id: str
    action: BatchAction
    entity_type: BatchEntity
    entity_id: uuid.UUID | None = None
    data: dict[str, Any] = field(default_factory=dict)
    # Set when `data` failed validation; the operation is reported, not run.
    invalid: str | None = None


@dataclass(frozen=True, slots=True)
class BatchResult:
    op_id: str
    success: bool
    entity_type: BatchEntity
    entity_id: uuid.UUID | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class BatchOutcome:
    results: list[BatchResult]

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.successful


class BatchService:
    def __init__(self, *, session: AsyncSession, analysis_cache: DocumentAnalysisCache) -> None:
        self._session = session
        self._guard = AccessGuard(session)
        self._audit = AuditRepo(session)
        self._targets = TargetService(session=session)
        self._documents = DocumentService(session=session, analysis_cache=analysis_cache)

    async def run(
        self,
        principal: Principal,
        organization_id: uuid.UUID,
        operations: Sequence[BatchOperation],
    ) -> BatchOutcome:
        await self._guard.require(principal, organization_id)

        results: list[BatchResult] = []
        for op in operations:
            if op.invalid is not None:
                results.append(_failure(op, op.invalid))
                continue
            if op.action is not BatchAction.create and op.entity_id is None:
                results.append(_failure(op, f"entityId required for {op.action.value}"))
                continue
            try:
                entity_id = await self._apply(principal, organization_id, op)
            except AppError as e:
                log.info("batch_operation_failed", op_id=op.op_id, code=e.code)
                results.append(_failure(op, e.message))
                continue
            results.append(
                BatchResult(
                    op_id=op.op_id, success=True, entity_type=op.entity_type, entity_id=entity_id
                )
            )

        outcome = BatchOutcome(results=results)
        async with transaction(self._session):
            await self._audit.add(
                action=AuditAction.batch,
                entity_type=ENTITY_TYPE,
                entity_id=organization_id,
                user_id=principal.subject,
                organization_id=organization_id,
                metadata={
                    "totalOperations": outcome.total,
                    "successful": outcome.successful,
                    "failed": outcome.failed,
                },
            )

        log.info(
            "batch_completed",
            total=outcome.total,
            successful=outcome.successful,
            failed=outcome.failed,
        )
        return outcome

    async def _apply(
        self, principal: Principal, organization_id: uuid.UUID, op: BatchOperation
    ) -> uuid.UUID | None:
        # Each service call commits its own change and audit row.
        scope = organization_id
        match op.entity_type:
            case BatchEntity.target:
                targets = self._targets
                match op.action:
                    case BatchAction.create:
                        return (await targets.create(principal, op.data, scope=scope)).id
                    case BatchAction.update:
                        assert op.entity_id is not None
                        await targets.update(principal, op.entity_id, op.data, scope=scope)
                    case BatchAction.delete:
                        assert op.entity_id is not None
                        await targets.delete(principal, op.entity_id, scope=scope)
                    case _:
                        assert_never(op.action)
            case BatchEntity.document:
                documents = self._documents
                match op.action:
                    case BatchAction.create:
                        return (await documents.create(principal, op.data, scope=scope)).id
                    case BatchAction.update:
                        assert op.entity_id is not None
                        await documents.update(principal, op.entity_id, op.data, scope=scope)
                    case BatchAction.delete:
                        assert op.entity_id is not None
                        await documents.delete(principal, op.entity_id, scope=scope)
                    case _:
                        assert_never(op.action)
            case _:
                assert_never(op.entity_type)
        return op.entity_id


def _failure(op: BatchOperation, error: str) -> BatchResult:
    return BatchResult(
        op_id=op.op_id,
        success=False,
        entity_type=op.entity_type,
        entity_id=op.entity_id,
        error=error,
    )


# --- Module Notes -----------------------------------------------------------
# Operations run in request order. Unexpected (non-`AppError`) failures abort the
# batch; operations already applied stay committed.
