"""
spac_os.listing

List query construction shared by every collection endpoint.

Responsibilities:
- Parse raw (untrusted, string-valued) query parameters into a bounded `ListQuerySpec`.
- Build the tenant-scoped filter/sort/pagination statement for an entity.
- Execute count + page queries and wrap the result in a `PageEnvelope`.
"""

from __future__ import annotations

import enum
import math
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, assert_never

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy import ColumnElement, Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from spac_os.enums import SortOrder
from spac_os.errors import RequestValidationFailed

T = TypeVar("T")
U = TypeVar("U")

MAX_PAGE_SIZE = 100
MAX_SEARCH_LENGTH = 200


@dataclass(frozen=True, slots=True)
class EntityListing:
    """
    Per-entity listing contract: which columns may be sorted/searched/filtered.
    """

    name: str
    model: type[Any]
    id_column: InstrumentedAttribute[Any]
    tenant_column: InstrumentedAttribute[Any]
    sort_fields: Mapping[str, InstrumentedAttribute[Any]]
    search_columns: tuple[InstrumentedAttribute[Any], ...]
    default_sort: str = "createdAt"
    default_page_size: int = 20
    status_column: InstrumentedAttribute[Any] | None = None
    status_enum: type[enum.StrEnum] | None = None
    deleted_column: InstrumentedAttribute[Any] | None = None

    def __post_init__(self) -> None:
        if self.default_sort not in self.sort_fields:
            raise ValueError(f"{self.name}: default sort {self.default_sort!r} not allowed")
        if (self.status_column is None) != (self.status_enum is None):
            raise ValueError(f"{self.name}: status_column and status_enum go together")


@dataclass(frozen=True, slots=True)
class ListQuerySpec:
    organization_id: uuid.UUID
    sort_by: str
    sort_order: SortOrder = SortOrder.desc
    page: int = 1
    page_size: int = 20
    search: str | None = None
    status: str | None = None

    def __post_init__(self) -> None:
        # Programmatic callers get normalized values; HTTP input is rejected earlier instead.
        object.__setattr__(self, "page", max(1, int(self.page)))
        object.__setattr__(self, "page_size", min(MAX_PAGE_SIZE, max(1, int(self.page_size))))
        if self.search is not None and not self.search.strip():
            object.__setattr__(self, "search", None)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


@dataclass(frozen=True, slots=True)
class PageEnvelope(Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "total_pages", math.ceil(self.total / self.page_size))

    def map(self, fn: Callable[[T], U]) -> PageEnvelope[U]:
        return PageEnvelope(
            items=[fn(i) for i in self.items],
            total=self.total,
            page=self.page,
            page_size=self.page_size,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": self.items,
            "total": self.total,
            "page": self.page,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
        }


class _RawListParams(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, populate_by_name=True)

    organization_id: uuid.UUID = Field(alias="organizationId")
    status: str | None = None
    search: str | None = Field(default=None, max_length=MAX_SEARCH_LENGTH)
    page: int = Field(default=1, ge=1)
    page_size: int | None = Field(default=None, ge=1, le=MAX_PAGE_SIZE, alias="pageSize")
    sort_by: str | None = Field(default=None, alias="sortBy")
    sort_order: SortOrder = Field(default=SortOrder.desc, alias="sortOrder")


def parse_list_params(listing: EntityListing, raw: Mapping[str, str]) -> ListQuerySpec:
    """
    Validate raw query parameters for `listing`.

    Unknown `sortBy`/`status` values and out-of-range paging are rejected with
    field-level details; nothing is silently substituted.
    """

    try:
        params = _RawListParams.model_validate(dict(raw))
    except ValidationError as e:
        raise RequestValidationFailed(details=_error_details(e)) from e

    details: list[dict[str, Any]] = []

    sort_by = params.sort_by or listing.default_sort
    if sort_by not in listing.sort_fields:
        details.append(
            {
                "loc": ["sortBy"],
                "msg": f"Input should be one of: {', '.join(listing.sort_fields)}",
                "type": "enum",
            }
        )

    status = params.status or None
    if status is not None:
        if listing.status_enum is None:
            details.append({"loc": ["status"], "msg": "Filter not supported", "type": "extra"})
        elif status not in {m.value for m in listing.status_enum}:
            allowed = ", ".join(m.value for m in listing.status_enum)
            details.append(
                {
                    "loc": ["status"],
                    "msg": f"Input should be one of: {allowed}",
                    "type": "enum",
                }
            )

    if details:
        raise RequestValidationFailed(details=details)

    return ListQuerySpec(
        organization_id=params.organization_id,
        sort_by=sort_by,
        sort_order=params.sort_order,
        page=params.page,
        page_size=params.page_size or listing.default_page_size,
        search=params.search,
        status=status,
    )


def build_select(
    listing: EntityListing,
    spec: ListQuerySpec,
    *extra_filters: ColumnElement[bool],
) -> Select[Any]:
    """Filtered (unordered, unpaginated) statement for the spec."""

    stmt = select(listing.model).where(listing.tenant_column == spec.organization_id)
    if listing.deleted_column is not None:
        stmt = stmt.where(listing.deleted_column.is_(None))
    if spec.status is not None and listing.status_column is not None:
        assert listing.status_enum is not None
        stmt = stmt.where(listing.status_column == listing.status_enum(spec.status))
    if spec.search:
        stmt = stmt.where(
            or_(*(col.icontains(spec.search, autoescape=True) for col in listing.search_columns))
        )
    for clause in extra_filters:
        stmt = stmt.where(clause)
    return stmt


def order_by_clauses(listing: EntityListing, spec: ListQuerySpec) -> list[ColumnElement[Any]]:
    column = listing.sort_fields[spec.sort_by]
    match spec.sort_order:
        case SortOrder.asc:
            primary = column.asc()
        case SortOrder.desc:
            primary = column.desc()
        case _:
            assert_never(spec.sort_order)
    # Unique tie-break keeps pages stable when many rows share the sort key.
    return [primary, listing.id_column.asc()]


async def fetch_page(
    session: AsyncSession,
    listing: EntityListing,
    spec: ListQuerySpec,
    *extra_filters: ColumnElement[bool],
    options: Sequence[Any] = (),
) -> PageEnvelope[Any]:
    base = build_select(listing, spec, *extra_filters)

    total = int(
        (await session.execute(select(func.count()).select_from(base.subquery()))).scalar_one()
    )

    items: list[Any] = []
    if spec.offset < total:
        stmt = (
            base.order_by(*order_by_clauses(listing, spec))
            .offset(spec.offset)
            .limit(spec.limit)
            .options(*options)
        )
        items = list((await session.execute(stmt)).scalars().all())

    return PageEnvelope(items=items, total=total, page=spec.page, page_size=spec.page_size)


def _error_details(e: ValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in e.errors(include_url=False, include_context=False, include_input=False)
    ]


# --- Module Notes -----------------------------------------------------------
# Entity listings are declared next to their repositories (e.g. `SPAC_LISTING`).
