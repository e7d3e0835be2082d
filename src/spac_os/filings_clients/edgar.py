"""
spac_os.filings_clients.edgar

SEC EDGAR submissions client.

Responsibilities:
- Fetch a company's submission history from `data.sec.gov` with the required User-Agent.
- Stay under EDGAR's request-rate limit (minimum spacing between requests).
- Retry transient failures (transport errors, 5xx) with exponential backoff.
- Flatten EDGAR's columnar `filings.recent` arrays into filing records.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from spac_os.observability.logging import get_logger
from spac_os.settings import Settings

log = get_logger(__name__)

ARCHIVES_BASE_URL = "https://www.sec.gov/Archives/edgar/data"

# Internal filing-type groups -> EDGAR form names.
FORM_TYPE_GROUPS: dict[str, tuple[str, ...]] = {
    "S1": ("S-1", "S-1/A"),
    "S4": ("S-4", "S-4/A"),
    "DEF14A": ("DEF 14A",),
    "PREM14A": ("PREM14A",),
    "DEFA14A": ("DEFA14A",),
    "FORM_8K": ("8-K", "8-K/A"),
    "FORM_10K": ("10-K", "10-K/A"),
    "FORM_10Q": ("10-Q", "10-Q/A"),
    "SUPER_8K": ("8-K",),
    "FORM_425": ("425",),
    "SC_13D": ("SC 13D", "SC 13D/A"),
    "SC_13G": ("SC 13G", "SC 13G/A"),
    "FORM_3": ("3",),
    "FORM_4": ("4",),
    "FORM_5": ("5",),
}


class EdgarError(Exception):
    pass


class EdgarNotFound(EdgarError):
    pass


class EdgarRateLimited(EdgarError):
    pass


class EdgarUnavailable(EdgarError):
    pass


class _ServerError(Exception):
    """A 5xx from EDGAR; retried, then surfaced as `EdgarUnavailable`."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"http_{status_code}")
        self.url = url
        self.status_code = status_code


def normalize_cik(cik: str) -> str:
    digits = cik.strip()
    if digits.upper().startswith("CIK"):
        digits = digits[3:]
    if not digits.isdigit() or len(digits) > 10:
        raise ValueError(f"invalid CIK: {cik!r}")
    return digits.zfill(10)


def expand_form_types(form_types: Iterable[str] | None) -> frozenset[str] | None:
    """
    Resolve group names (e.g. `FORM_8K`) to EDGAR form names; anything else is
    taken as a literal form name. `None`/empty means no filtering.
    """

    if not form_types:
        return None
    forms: set[str] = set()
    for raw in form_types:
        name = raw.strip()
        if not name:
            continue
        forms.update(FORM_TYPE_GROUPS.get(name.upper(), (name,)))
    return frozenset(f.upper() for f in forms) or None


class EdgarClient:
    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        base_url: str = "https://data.sec.gov",
        user_agent: str,
        max_retries: int = 2,
        backoff_seconds: float = 0.5,
        min_interval_seconds: float = 0.1,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}
        self._max_retries = max_retries
        self._backoff = backoff_seconds
        self._min_interval = min_interval_seconds
        self._sleep = sleep
        self._clock = clock
        self._last_request = float("-inf")
        self._throttle = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, http: httpx.AsyncClient) -> EdgarClient:
        return cls(
            http=http,
            base_url=settings.edgar_base_url,
            user_agent=settings.edgar_user_agent,
            max_retries=settings.edgar_max_retries,
            backoff_seconds=settings.edgar_backoff_seconds,
            min_interval_seconds=settings.edgar_min_interval_seconds,
        )

    async def company_filings(
        self,
        cik: str,
        *,
        page: int = 1,
        page_size: int = 20,
        form_types: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        padded = normalize_cik(cik)
        data = await self._submissions(padded)
        wanted = expand_form_types(form_types)

        filings = [
            f
            for f in _recent_filings(padded, data)
            if wanted is None or f["filingType"].upper() in wanted
        ]
        start = (page - 1) * page_size
        return {
            "filings": filings[start : start + page_size],
            "totalFilings": len(filings),
            "page": page,
            "pageSize": page_size,
            "companyInfo": _company_info(padded, data),
        }

    async def filing_details(self, cik: str, accession_number: str) -> dict[str, Any] | None:
        padded = normalize_cik(cik)
        data = await self._submissions(padded)
        for filing in _recent_filings(padded, data):
            if filing["accessionNumber"] == accession_number:
                return filing
        return None

    async def _submissions(self, padded_cik: str) -> dict[str, Any]:
        return await self._get_json(f"/submissions/CIK{padded_cik}.json")

    async def _get_json(self, path: str) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        retrying = AsyncRetrying(
            retry=retry_if_exception_type((httpx.TransportError, _ServerError)),
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_exponential(multiplier=self._backoff),
            sleep=self._sleep,
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            r = await retrying(self._fetch, url)
        except (httpx.TransportError, _ServerError) as e:
            log.warning("edgar_unavailable", url=url, error=str(e), attempts=self._max_retries + 1)
            raise EdgarUnavailable("SEC EDGAR is unavailable") from e

        try:
            return r.json()
        except ValueError as e:
            raise EdgarUnavailable("SEC EDGAR returned an invalid response") from e

    async def _fetch(self, url: str) -> httpx.Response:
        await self._wait_turn()
        r = await self._http.get(url, headers=self._headers)
        if r.status_code == 404:
            raise EdgarNotFound("Company not found in SEC EDGAR")
        if r.status_code == 429:
            log.warning("edgar_rate_limited", url=url)
            raise EdgarRateLimited("SEC EDGAR rate limit exceeded")
        if r.status_code >= 500:
            raise _ServerError(url, r.status_code)
        if r.status_code >= 400:
            log.warning("edgar_unavailable", url=url, status_code=r.status_code)
            raise EdgarUnavailable(f"SEC EDGAR returned HTTP {r.status_code}")
        return r

    async def _wait_turn(self) -> None:
        async with self._throttle:
            wait = self._last_request + self._min_interval - self._clock()
            if wait > 0:
                await self._sleep(wait)
            self._last_request = self._clock()


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    log.info(
        "edgar_retry",
        url=retry_state.args[0] if retry_state.args else None,
        attempt=retry_state.attempt_number,
        delay_s=retry_state.next_action.sleep if retry_state.next_action else None,
        reason=str(error) if isinstance(error, _ServerError) else type(error).__name__,
    )


def _company_info(padded_cik: str, data: dict[str, Any]) -> dict[str, Any]:
    tickers = data.get("tickers") or []
    recent = (data.get("filings") or {}).get("recent") or {}
    return {
        "cik": padded_cik,
        "name": data.get("name", ""),
        "ticker": tickers[0] if tickers else "",
        "sicCode": data.get("sic", ""),
        "sicDescription": data.get("sicDescription", ""),
        "stateOfIncorporation": data.get("stateOfIncorporation", ""),
        "fiscalYearEnd": data.get("fiscalYearEnd", ""),
        "exchanges": data.get("exchanges") or [],
        "ein": data.get("ein"),
        "category": data.get("category", ""),
        "filingCount": len(recent.get("accessionNumber") or []),
    }


def _recent_filings(padded_cik: str, data: dict[str, Any]) -> list[dict[str, Any]]:
    recent = (data.get("filings") or {}).get("recent") or {}
    accessions = recent.get("accessionNumber") or []

    def col(name: str, i: int, default: Any = None) -> Any:
        values = recent.get(name) or []
        return values[i] if i < len(values) and values[i] not in (None, "") else default

    archive_cik = str(int(padded_cik))
    filings: list[dict[str, Any]] = []
    for i, accession in enumerate(accessions):
        primary = col("primaryDocument", i, "")
        items = col("items", i, "")
        filings.append(
            {
                "accessionNumber": accession,
                "filingType": col("form", i, ""),
                "filingDate": col("filingDate", i, ""),
                "reportDate": col("reportDate", i),
                "acceptanceDateTime": col("acceptanceDateTime", i, ""),
                "primaryDocument": primary,
                "primaryDocDescription": col("primaryDocDescription", i, ""),
                "size": col("size", i, 0),
                "isXbrl": bool(col("isXBRL", i, False)),
                "isInlineXbrl": bool(col("isInlineXBRL", i, False)),
                "fileNumber": col("fileNumber", i, ""),
                "filmNumber": col("filmNumber", i, ""),
                "items": [s for s in items.split(",") if s],
                "documentUrl": (
                    f"{ARCHIVES_BASE_URL}/{archive_cik}/{accession.replace('-', '')}/{primary}"
                    if primary
                    else None
                ),
            }
        )
    return filings


# --- Module Notes -----------------------------------------------------------
# Only `filings.recent` (EDGAR's last ~1000 filings) is read; older history lives in
# separate paged files that this service does not need.
