"""
spac_os.api.routers.filings

SEC filing lookup (`GET /v1/sec/filings`).

Listing: `?cik=...&page=&pageSize=&formTypes=S1,FORM_8K`.
Detail: add `accessionNumber=...`. Both carry `cached` in the response.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from spac_os.api.deps import filing_lookup
from spac_os.auth.deps import get_principal
from spac_os.auth.models import Principal
from spac_os.listing import MAX_PAGE_SIZE
from spac_os.services.filings import FilingLookupService

router = APIRouter(prefix="/v1/sec/filings", tags=["sec"])


@router.get("")
async def get_filings(
    cik: str = Query(min_length=1, max_length=13),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    form_types: str | None = Query(default=None, alias="formTypes"),
    accession_number: str | None = Query(default=None, alias="accessionNumber", max_length=32),
    principal: Principal = Depends(get_principal),
    svc: FilingLookupService = Depends(filing_lookup),
) -> dict[str, Any]:
    if accession_number:
        return await svc.filing(cik, accession_number)

    forms = [f.strip() for f in form_types.split(",") if f.strip()] if form_types else None
    return await svc.list_filings(cik, page=page, page_size=page_size, form_types=forms)
