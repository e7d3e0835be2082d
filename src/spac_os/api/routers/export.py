"""
spac_os.api.routers.export

Bulk data export (`POST /v1/export`) as JSON or CSV.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, assert_never

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from spac_os.api.deps import db_session, settings_dep
from spac_os.api.routers.documents import DocumentOut
from spac_os.api.routers.spacs import SpacOut
from spac_os.api.routers.targets import TargetOut
from spac_os.api.schemas import ApiModel, UtcDatetime
from spac_os.auth.deps import get_principal
from spac_os.auth.models import Principal
from spac_os.db.models import AuditLog, Target
from spac_os.enums import AuditAction, ExportEntity, ExportFormat
from spac_os.services.export import ExportFilters, ExportService, select_fields, to_csv
from spac_os.settings import Settings

router = APIRouter(prefix="/v1/export", tags=["export"])


class ExportFiltersIn(ApiModel):
    spac_id: uuid.UUID | None = None
    status: str | None = Field(default=None, max_length=64)
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None


class ExportRequest(ApiModel):
    organization_id: uuid.UUID
    entity_type: ExportEntity
    format: ExportFormat = ExportFormat.json
    filters: ExportFiltersIn = Field(default_factory=ExportFiltersIn)
    field_names: list[str] | None = Field(default=None, alias="fields")


class SpacRef(ApiModel):
    name: str
    ticker: str | None


class TargetExportRecord(TargetOut):
    spac: SpacRef


class AuditLogOut(ApiModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    user_id: str
    action: AuditAction
    entity_type: str
    entity_id: str
    metadata: dict[str, Any]
    changes: dict[str, Any] | None
    created_at: datetime

    @classmethod
    def from_row(cls, row: AuditLog) -> AuditLogOut:
        # `metadata` is shadowed by SQLAlchemy's declarative metadata on the ORM class.
        return cls(
            id=row.id,
            organization_id=row.organization_id,
            user_id=row.user_id,
            action=row.action,
            entity_type=row.entity_type,
            entity_id=row.entity_id,
            metadata=row.metadata_,
            changes=row.changes,
            created_at=row.created_at,
        )


def _record(entity_type: ExportEntity, row: Any) -> dict[str, Any]:
    match entity_type:
        case ExportEntity.spacs:
            model: ApiModel = SpacOut.model_validate(row)
        case ExportEntity.targets:
            assert isinstance(row, Target)
            model = TargetExportRecord.model_validate(row)
        case ExportEntity.documents:
            model = DocumentOut.model_validate(row)
        case ExportEntity.audit_logs:
            model = AuditLogOut.from_row(row)
        case _:
            assert_never(entity_type)
    return model.model_dump(mode="json", by_alias=True)


@router.post("")
async def export_data(
    body: ExportRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> Response:
    rows = await ExportService(session=session, max_rows=settings.export_max_rows).collect(
        principal,
        organization_id=body.organization_id,
        entity_type=body.entity_type,
        export_format=body.format,
        filters=ExportFilters(**body.filters.model_dump()),
    )
    records = select_fields([_record(body.entity_type, r) for r in rows], body.field_names)
    now = datetime.now(tz=UTC)

    match body.format:
        case ExportFormat.csv:
            filename = f"{body.entity_type.value}_export_{int(now.timestamp() * 1000)}.csv"
            return Response(
                content=to_csv(records),
                media_type="text/csv",
                headers={"Content-Disposition": f'attachment; filename="{filename}"'},
            )
        case ExportFormat.json:
            return JSONResponse(
                {
                    "entityType": body.entity_type.value,
                    "recordCount": len(records),
                    "exportedAt": now.isoformat(),
                    "data": records,
                }
            )
        case _:
            assert_never(body.format)
