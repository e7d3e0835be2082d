"""
spac_os.api.routers.batch

Bulk target/document mutations (`POST /v1/batch`).

Each operation's `data` is checked against the same body models as the single-entity
endpoints. An operation with bad data fails on its own instead of rejecting the batch.
"""

from __future__ import annotations

import uuid
from typing import Any, assert_never

from fastapi import APIRouter, Depends
from pydantic import Field, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.api.deps import analysis_cache_dep, db_session
from spac_os.api.routers.documents import DocumentCreateRequest, DocumentUpdateRequest
from spac_os.api.routers.targets import TargetCreateRequest, TargetUpdateRequest
from spac_os.api.schemas import ApiModel, PatchModel
from spac_os.auth.deps import get_principal
from spac_os.auth.models import Principal
from spac_os.enums import BatchAction, BatchEntity
from spac_os.services.analysis_cache import DocumentAnalysisCache
from spac_os.services.batch import BatchOperation, BatchResult, BatchService

router = APIRouter(prefix="/v1/batch", tags=["batch"])

MAX_BATCH_OPERATIONS = 100

_CREATE_MODELS: dict[BatchEntity, type[ApiModel]] = {
    BatchEntity.target: TargetCreateRequest,
    BatchEntity.document: DocumentCreateRequest,
}
_UPDATE_MODELS: dict[BatchEntity, type[PatchModel]] = {
    BatchEntity.target: TargetUpdateRequest,
    BatchEntity.document: DocumentUpdateRequest,
}


class BatchOperationIn(ApiModel):
    id: str | None = Field(default=None, max_length=128)
    action: BatchAction
    entity_type: BatchEntity
    entity_id: uuid.UUID | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class BatchRequest(ApiModel):
    organization_id: uuid.UUID
    operations: list[BatchOperationIn] = Field(min_length=1, max_length=MAX_BATCH_OPERATIONS)


class BatchResultOut(ApiModel):
    id: str
    success: bool
    entity_type: BatchEntity
    entity_id: uuid.UUID | None = None
    error: str | None = None

    @classmethod
    def from_result(cls, result: BatchResult) -> BatchResultOut:
        return cls(
            id=result.op_id,
            success=result.success,
            entity_type=result.entity_type,
            entity_id=result.entity_id,
            error=result.error,
        )


class BatchResponse(ApiModel):
    total: int
    successful: int
    failed: int
    results: list[BatchResultOut]


def _operation(index: int, op: BatchOperationIn, organization_id: uuid.UUID) -> BatchOperation:
    op_id = op.id or f"op_{index}"
    data: dict[str, Any] = {}
    invalid: str | None = None
    try:
        match op.action:
            case BatchAction.create:
                raw = op.data
                if op.entity_type is BatchEntity.document:
                    raw = {**raw, "organizationId": str(organization_id)}
                data = _CREATE_MODELS[op.entity_type].model_validate(raw).model_dump()
            case BatchAction.update:
                data = _UPDATE_MODELS[op.entity_type].model_validate(op.data).updates()
            case BatchAction.delete:
                pass
            case _:
                assert_never(op.action)
    except ValidationError as e:
        invalid = _describe(e)
    return BatchOperation(
        op_id=op_id,
        action=op.action,
        entity_type=op.entity_type,
        entity_id=op.entity_id,
        data=data,
        invalid=invalid,
    )


def _describe(e: ValidationError) -> str:
    first = e.errors()[0]
    loc = ".".join(str(part) for part in first["loc"]) or "data"
    return f"Invalid data ({loc}: {first['msg']})"


@router.post("", response_model=BatchResponse, response_model_exclude_none=True)
async def run_batch(
    body: BatchRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    analysis_cache: DocumentAnalysisCache = Depends(analysis_cache_dep),
) -> BatchResponse:
    operations = [
        _operation(index, op, body.organization_id) for index, op in enumerate(body.operations)
    ]
    svc = BatchService(session=session, analysis_cache=analysis_cache)
    outcome = await svc.run(principal, body.organization_id, operations)
    return BatchResponse(
        total=outcome.total,
        successful=outcome.successful,
        failed=outcome.failed,
        results=[BatchResultOut.from_result(r) for r in outcome.results],
    )
