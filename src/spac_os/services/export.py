"""
spac_os.services.export

Tenant data export.

Responsibilities:
- Collect the rows for one entity type under the caller's tenant (with filters and a row cap).
- Record an EXPORT audit entry for every export.
- Flatten nested records and render them as RFC-4180 CSV.
"""

from __future__ import annotations

import csv
import enum
import io
import json
import uuid
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any, assert_never

from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.auth.guard import AccessGuard
from spac_os.auth.models import Principal
from spac_os.db.repositories.audit import AuditRepo
from spac_os.db.repositories.documents import DocumentRepo
from spac_os.db.repositories.spacs import SpacRepo
from spac_os.db.repositories.targets import TargetRepo
from spac_os.db.session import transaction
from spac_os.enums import (
    AuditAction,
    ExportEntity,
    ExportFormat,
    MemberRole,
    SpacStatus,
    TargetStatus,
)
from spac_os.errors import Forbidden, RequestValidationFailed
from spac_os.observability.logging import get_logger
from spac_os.services.common import jsonable

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ExportFilters:
    spac_id: uuid.UUID | None = None
    status: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    def to_metadata(self) -> dict[str, Any]:
        return {
            "spacId": jsonable(self.spac_id),
            "status": self.status,
            "startDate": jsonable(self.start_date),
            "endDate": jsonable(self.end_date),
        }


class ExportService:
    def __init__(self, *, session: AsyncSession, max_rows: int) -> None:
        self._session = session
        self._max_rows = max_rows
        self._guard = AccessGuard(session)
        self._audit = AuditRepo(session)

    async def collect(
        self,
        principal: Principal,
        *,
        organization_id: uuid.UUID,
        entity_type: ExportEntity,
        export_format: ExportFormat,
        filters: ExportFilters,
    ) -> list[Any]:
        membership = await self._guard.require(principal, organization_id)
        start, end = _naive_utc(filters.start_date), _naive_utc(filters.end_date)

        match entity_type:
            case ExportEntity.spacs:
                rows: list[Any] = await SpacRepo(self._session).list_for_export(
                    organization_id,
                    status=_parse_status(SpacStatus, filters.status),
                    start=start,
                    end=end,
                    limit=self._max_rows,
                )
            case ExportEntity.targets:
                rows = await TargetRepo(self._session).list_for_export(
                    organization_id,
                    spac_id=filters.spac_id,
                    status=_parse_status(TargetStatus, filters.status),
                    limit=self._max_rows,
                )
            case ExportEntity.documents:
                rows = await DocumentRepo(self._session).list_for_export(
                    organization_id, spac_id=filters.spac_id, limit=self._max_rows
                )
            case ExportEntity.audit_logs:
                if not membership.role.at_least(MemberRole.admin):
                    raise Forbidden(
                        "Admin access required for audit log export", code="FORBIDDEN_ELEVATED"
                    )
                rows = await self._audit.list_for_organization(
                    organization_id, start=start, end=end, limit=self._max_rows
                )
            case _:
                assert_never(entity_type)

        async with transaction(self._session):
            await self._audit.add(
                action=AuditAction.export,
                entity_type=entity_type.value,
                entity_id=organization_id,
                user_id=principal.subject,
                organization_id=organization_id,
                metadata={
                    "format": export_format.value,
                    "recordCount": len(rows),
                    "filters": filters.to_metadata(),
                },
            )

        log.info(
            "export_completed",
            entity_type=entity_type.value,
            format=export_format.value,
            record_count=len(rows),
        )
        return rows


def select_fields(
    records: Iterable[Mapping[str, Any]], fields: Sequence[str] | None
) -> list[dict[str, Any]]:
    if not fields:
        return [dict(r) for r in records]
    return [{f: r[f] for f in fields if f in r} for r in records]


def flatten_record(record: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """
    Flatten nested mappings into dotted keys with CSV-ready scalar values.

    `None` becomes "", dates become ISO-8601 and lists become JSON text.
    """

    flat: dict[str, Any] = {}
    for key, value in record.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if value is None:
            flat[name] = ""
        elif isinstance(value, Mapping):
            flat.update(flatten_record(value, name))
        elif isinstance(value, (list, tuple)):
            flat[name] = json.dumps(jsonable(value))
        elif isinstance(value, (datetime, date)):
            flat[name] = value.isoformat()
        elif isinstance(value, enum.Enum):
            flat[name] = value.value
        else:
            flat[name] = value
    return flat


def to_csv(records: Sequence[Mapping[str, Any]]) -> str:
    if not records:
        return ""
    flat = [flatten_record(r) for r in records]

    # Header is the union of keys in first-seen order.
    header: dict[str, None] = {}
    for row in flat:
        header.update(dict.fromkeys(row))

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=list(header), restval="", quoting=csv.QUOTE_MINIMAL)
    writer.writeheader()
    writer.writerows(flat)
    return buf.getvalue()


def _parse_status(enum_cls: type[enum.StrEnum], value: str | None) -> Any:
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError as e:
        raise RequestValidationFailed(
            "Invalid request body",
            details=[
                {
                    "loc": ["filters", "status"],
                    "msg": f"Input should be one of: {', '.join(m.value for m in enum_cls)}",
                    "type": "enum",
                }
            ],
        ) from e


def _naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)
