"""
spac_os.api.routers.spacs

SPAC endpoints.

Responsibilities:
- List SPACs for a tenant (filter/search/sort/paginate) with child counts.
- Create, read, update and soft-delete a SPAC.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from spac_os.api.deps import db_session
from spac_os.api.schemas import ApiModel, Page, PatchModel, SuccessResponse, UtcDatetime
from spac_os.auth.deps import get_principal
from spac_os.auth.models import Principal
from spac_os.db.models import Spac
from spac_os.db.repositories.spacs import SPAC_LISTING
from spac_os.enums import SpacStatus
from spac_os.listing import parse_list_params
from spac_os.services.spacs import SpacService

router = APIRouter(prefix="/v1/spacs", tags=["spacs"])


class SpacCreateRequest(ApiModel):
    organization_id: uuid.UUID
    name: str = Field(min_length=1, max_length=256)
    ticker: str | None = Field(default=None, min_length=1, max_length=16)
    cik: str | None = Field(default=None, pattern=r"^\d{1,10}$")
    status: SpacStatus = SpacStatus.pre_ipo
    description: str | None = Field(default=None, max_length=10_000)
    ipo_amount: float | None = Field(default=None, ge=0)
    trust_amount: float | None = Field(default=None, ge=0)
    ipo_date: UtcDatetime | None = None
    deadline: UtcDatetime | None = None
    target_sectors: list[str] = Field(default_factory=list)


class SpacUpdateRequest(PatchModel):
    non_nullable = frozenset({"name", "status", "target_sectors"})

    name: str | None = Field(default=None, min_length=1, max_length=256)
    ticker: str | None = Field(default=None, min_length=1, max_length=16)
    cik: str | None = Field(default=None, pattern=r"^\d{1,10}$")
    status: SpacStatus | None = None
    description: str | None = Field(default=None, max_length=10_000)
    ipo_amount: float | None = Field(default=None, ge=0)
    trust_amount: float | None = Field(default=None, ge=0)
    ipo_date: UtcDatetime | None = None
    deadline: UtcDatetime | None = None
    target_sectors: list[str] | None = None


class SpacOut(ApiModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    name: str
    ticker: str | None
    cik: str | None
    status: SpacStatus
    description: str | None
    ipo_amount: float | None
    trust_amount: float | None
    ipo_date: datetime | None
    deadline: datetime | None
    target_sectors: list[str]
    created_by: str
    created_at: datetime
    updated_at: datetime


class SpacListItem(SpacOut):
    target_count: int = 0
    document_count: int = 0


class SpacDetail(SpacOut):
    statistics: dict[str, dict[str, int]] = Field(default_factory=dict)


class SpacResponse(ApiModel):
    spac: SpacOut


class SpacDetailResponse(ApiModel):
    spac: SpacDetail


def _list_item(spac: Spac, counts: dict[str, int]) -> SpacListItem:
    item = SpacListItem.model_validate(spac)
    item.target_count = counts["targets"]
    item.document_count = counts["documents"]
    return item


@router.get("", response_model=Page[SpacListItem])
async def list_spacs(
    request: Request,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    spec = parse_list_params(SPAC_LISTING, request.query_params)
    page, counts = await SpacService(session=session).list(principal, spec)
    return page.map(lambda s: _list_item(s, counts[s.id])).to_dict()


@router.post("", response_model=SpacResponse, status_code=HTTP_201_CREATED)
async def create_spac(
    body: SpacCreateRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> SpacResponse:
    spac = await SpacService(session=session).create(principal, body.model_dump())
    return SpacResponse(spac=SpacOut.model_validate(spac))


@router.get("/{spac_id}", response_model=SpacDetailResponse)
async def get_spac(
    spac_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> SpacDetailResponse:
    spac, statistics = await SpacService(session=session).get(principal, spac_id)
    detail = SpacDetail.model_validate(spac)
    detail.statistics = statistics
    return SpacDetailResponse(spac=detail)


@router.api_route("/{spac_id}", methods=["PUT", "PATCH"], response_model=SpacResponse)
async def update_spac(
    spac_id: uuid.UUID,
    body: SpacUpdateRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> SpacResponse:
    spac = await SpacService(session=session).update(principal, spac_id, body.updates())
    return SpacResponse(spac=SpacOut.model_validate(spac))


@router.delete("/{spac_id}", response_model=SuccessResponse)
async def delete_spac(
    spac_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> SuccessResponse:
    await SpacService(session=session).delete(principal, spac_id)
    return SuccessResponse()
