"""
spac_os.services.filings

External filing lookups with process-local memoization.

Responsibilities:
- Serve EDGAR filing listings/details through the injected `TTLCache`.
- Report whether each response came from cache.
- Map EDGAR client failures onto the application error taxonomy.
"""

from __future__ import annotations

import math
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from spac_os.cache.ttl import TTLCache, filing_cache_key, filings_cache_key
from spac_os.errors import NotFound, RateLimited, RequestValidationFailed, UpstreamError
from spac_os.filings_clients.edgar import (
    EdgarClient,
    EdgarNotFound,
    EdgarRateLimited,
    EdgarUnavailable,
    normalize_cik,
)
from spac_os.observability.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


class FilingLookupService:
    def __init__(self, *, cache: TTLCache[Any], client: EdgarClient) -> None:
        self._cache = cache
        self._client = client

    async def list_filings(
        self,
        cik: str,
        *,
        page: int,
        page_size: int,
        form_types: list[str] | None = None,
    ) -> dict[str, Any]:
        padded = _validated_cik(cik)
        key = filings_cache_key(padded, page, page_size, form_types)

        result = await self._cache.get_or_load(
            key,
            lambda: _translated(
                lambda: self._client.company_filings(
                    padded, page=page, page_size=page_size, form_types=form_types
                )
            ),
        )
        body = dict(result.value)
        body["totalPages"] = math.ceil(body["totalFilings"] / body["pageSize"])
        body["cached"] = result.cached
        log.info("filings_lookup", cik=padded, cached=result.cached, total=body["totalFilings"])
        return body

    async def filing(self, cik: str, accession_number: str) -> dict[str, Any]:
        padded = _validated_cik(cik)

        async def load() -> dict[str, Any]:
            filing = await _translated(
                lambda: self._client.filing_details(padded, accession_number)
            )
            if filing is None:
                # Not cached: the filing may simply not be indexed yet.
                raise NotFound("Filing not found")
            return filing

        result = await self._cache.get_or_load(filing_cache_key(padded, accession_number), load)
        return {"filing": result.value, "cached": result.cached}


def _validated_cik(cik: str) -> str:
    try:
        return normalize_cik(cik)
    except ValueError as e:
        raise RequestValidationFailed(
            details=[{"loc": ["cik"], "msg": "CIK must be up to 10 digits", "type": "value_error"}]
        ) from e


async def _translated(call: Callable[[], Awaitable[T]]) -> T:
    try:
        return await call()
    except EdgarNotFound as e:
        raise NotFound(str(e)) from e
    except EdgarRateLimited as e:
        raise RateLimited(str(e)) from e
    except EdgarUnavailable as e:
        raise UpstreamError(str(e)) from e
