"""
spac_os.api.routers.documents

Document metadata endpoints. File bytes are stored elsewhere; this API only
tracks the records (and keeps their cached AI analysis consistent).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from spac_os.api.deps import analysis_cache_dep, db_session
from spac_os.api.schemas import ApiModel, Page, PatchModel, SuccessResponse
from spac_os.auth.deps import get_principal
from spac_os.auth.models import Principal
from spac_os.db.repositories.documents import DOCUMENT_LISTING
from spac_os.enums import DocumentCategory
from spac_os.listing import parse_list_params
from spac_os.services.analysis_cache import DocumentAnalysisCache
from spac_os.services.documents import DocumentService

router = APIRouter(prefix="/v1/documents", tags=["documents"])


class DocumentCreateRequest(ApiModel):
    organization_id: uuid.UUID
    spac_id: uuid.UUID | None = None
    name: str = Field(min_length=1, max_length=256)
    category: DocumentCategory = DocumentCategory.other
    description: str | None = Field(default=None, max_length=10_000)
    mime_type: str | None = Field(default=None, max_length=128)


class DocumentUpdateRequest(PatchModel):
    non_nullable = frozenset({"name", "category"})

    name: str | None = Field(default=None, min_length=1, max_length=256)
    category: DocumentCategory | None = None
    description: str | None = Field(default=None, max_length=10_000)
    mime_type: str | None = Field(default=None, max_length=128)


class DocumentOut(ApiModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    spac_id: uuid.UUID | None
    name: str
    category: DocumentCategory
    description: str | None
    mime_type: str | None
    created_by: str
    created_at: datetime
    updated_at: datetime


class DocumentResponse(ApiModel):
    document: DocumentOut


def _service(
    session: AsyncSession = Depends(db_session),
    analysis_cache: DocumentAnalysisCache = Depends(analysis_cache_dep),
) -> DocumentService:
    return DocumentService(session=session, analysis_cache=analysis_cache)


@router.get("", response_model=Page[DocumentOut])
async def list_documents(
    request: Request,
    spac_id: uuid.UUID | None = Query(default=None, alias="spacId"),
    principal: Principal = Depends(get_principal),
    svc: DocumentService = Depends(_service),
) -> dict[str, Any]:
    spec = parse_list_params(DOCUMENT_LISTING, request.query_params)
    page = await svc.list(principal, spec, spac_id=spac_id)
    return page.map(DocumentOut.model_validate).to_dict()


@router.post("", response_model=DocumentResponse, status_code=HTTP_201_CREATED)
async def create_document(
    body: DocumentCreateRequest,
    principal: Principal = Depends(get_principal),
    svc: DocumentService = Depends(_service),
) -> DocumentResponse:
    document = await svc.create(principal, body.model_dump())
    return DocumentResponse(document=DocumentOut.model_validate(document))


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    svc: DocumentService = Depends(_service),
) -> DocumentResponse:
    document = await svc.get(principal, document_id)
    return DocumentResponse(document=DocumentOut.model_validate(document))


@router.api_route("/{document_id}", methods=["PUT", "PATCH"], response_model=DocumentResponse)
async def update_document(
    document_id: uuid.UUID,
    body: DocumentUpdateRequest,
    principal: Principal = Depends(get_principal),
    svc: DocumentService = Depends(_service),
) -> DocumentResponse:
    document = await svc.update(principal, document_id, body.updates())
    return DocumentResponse(document=DocumentOut.model_validate(document))


@router.delete("/{document_id}", response_model=SuccessResponse)
async def delete_document(
    document_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    svc: DocumentService = Depends(_service),
) -> SuccessResponse:
    await svc.delete(principal, document_id)
    return SuccessResponse()
