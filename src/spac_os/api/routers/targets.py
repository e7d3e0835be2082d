"""
spac_os.api.routers.targets

Target-company endpoints (pipeline of acquisition candidates per SPAC).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from spac_os.api.deps import db_session
from spac_os.api.schemas import ApiModel, Page, PatchModel, SuccessResponse
from spac_os.auth.deps import get_principal
from spac_os.auth.models import Principal
from spac_os.db.repositories.targets import TARGET_LISTING
from spac_os.enums import TargetStatus
from spac_os.listing import parse_list_params
from spac_os.services.targets import TargetService

router = APIRouter(prefix="/v1/targets", tags=["targets"])


class TargetCreateRequest(ApiModel):
    spac_id: uuid.UUID
    name: str = Field(min_length=1, max_length=256)
    industry: str | None = Field(default=None, max_length=128)
    status: TargetStatus = TargetStatus.identified
    description: str | None = Field(default=None, max_length=10_000)
    enterprise_value: float | None = Field(default=None, ge=0)
    evaluation_score: float | None = Field(default=None, ge=0, le=100)


class TargetUpdateRequest(PatchModel):
    non_nullable = frozenset({"name", "status"})

    name: str | None = Field(default=None, min_length=1, max_length=256)
    industry: str | None = Field(default=None, max_length=128)
    status: TargetStatus | None = None
    description: str | None = Field(default=None, max_length=10_000)
    enterprise_value: float | None = Field(default=None, ge=0)
    evaluation_score: float | None = Field(default=None, ge=0, le=100)


class TargetOut(ApiModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    spac_id: uuid.UUID
    name: str
    industry: str | None
    status: TargetStatus
    description: str | None
    enterprise_value: float | None
    evaluation_score: float | None
    created_by: str
    created_at: datetime
    updated_at: datetime


class TargetResponse(ApiModel):
    target: TargetOut


@router.get("", response_model=Page[TargetOut])
async def list_targets(
    request: Request,
    spac_id: uuid.UUID | None = Query(default=None, alias="spacId"),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    spec = parse_list_params(TARGET_LISTING, request.query_params)
    page = await TargetService(session=session).list(principal, spec, spac_id=spac_id)
    return page.map(TargetOut.model_validate).to_dict()


@router.post("", response_model=TargetResponse, status_code=HTTP_201_CREATED)
async def create_target(
    body: TargetCreateRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> TargetResponse:
    target = await TargetService(session=session).create(principal, body.model_dump())
    return TargetResponse(target=TargetOut.model_validate(target))


@router.get("/{target_id}", response_model=TargetResponse)
async def get_target(
    target_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> TargetResponse:
    target = await TargetService(session=session).get(principal, target_id)
    return TargetResponse(target=TargetOut.model_validate(target))


@router.api_route("/{target_id}", methods=["PUT", "PATCH"], response_model=TargetResponse)
async def update_target(
    target_id: uuid.UUID,
    body: TargetUpdateRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> TargetResponse:
    target = await TargetService(session=session).update(principal, target_id, body.updates())
    return TargetResponse(target=TargetOut.model_validate(target))


@router.delete("/{target_id}", response_model=SuccessResponse)
async def delete_target(
    target_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> SuccessResponse:
    await TargetService(session=session).delete(principal, target_id)
    return SuccessResponse()
