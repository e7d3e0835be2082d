"""
spac_os.api.schemas

Shared request/response building blocks.

Responsibilities:
- camelCase wire names over snake_case attributes (`ApiModel`).
- The page envelope returned by every listing endpoint.
- Partial-update models that reject explicit nulls for required columns.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any, ClassVar, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


def _naive_utc(value: datetime) -> datetime:
    # Stored timestamps are naive UTC.
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


UtcDatetime = Annotated[datetime, AfterValidator(_naive_utc)]


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class Page(ApiModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int


class PatchModel(ApiModel):
    """
    Base for PUT/PATCH bodies: only fields the client sent are applied, and
    columns listed in `non_nullable` may be omitted but not set to null.
    """

    model_config = ConfigDict(extra="forbid")

    non_nullable: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_nulls(self) -> PatchModel:
        for name in self.non_nullable & self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def updates(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class SuccessResponse(ApiModel):
    success: bool = True
