"""
spac_os.enums

Enumerations shared by the API, persistence and service layers.

Responsibilities:
- Define every status/role/sort/action literal exactly once.
- Provide role ordering for authorization checks.
"""

from __future__ import annotations

import enum


class MemberRole(enum.StrEnum):
    # Ordered: MEMBER < ADMIN < OWNER (see `rank`).
    member = "MEMBER"
    admin = "ADMIN"
    owner = "OWNER"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def at_least(self, other: MemberRole) -> bool:
        return self.rank >= other.rank


_ROLE_RANK: dict[MemberRole, int] = {
    MemberRole.member: 0,
    MemberRole.admin: 1,
    MemberRole.owner: 2,
}


class SpacStatus(enum.StrEnum):
    pre_ipo = "PRE_IPO"
    searching = "SEARCHING"
    loi_signed = "LOI_SIGNED"
    da_announced = "DA_ANNOUNCED"
    proxy_filed = "PROXY_FILED"
    vote_scheduled = "VOTE_SCHEDULED"
    closing = "CLOSING"
    completed = "COMPLETED"
    liquidated = "LIQUIDATED"


class TargetStatus(enum.StrEnum):
    identified = "IDENTIFIED"
    preliminary = "PRELIMINARY"
    nda_signed = "NDA_SIGNED"
    due_diligence = "DUE_DILIGENCE"
    term_sheet = "TERM_SHEET"
    loi = "LOI"
    definitive = "DEFINITIVE"
    closed = "CLOSED"
    passed = "PASSED"
    terminated = "TERMINATED"


class DocumentCategory(enum.StrEnum):
    corporate = "CORPORATE"
    financial = "FINANCIAL"
    legal = "LEGAL"
    tax = "TAX"
    regulatory = "REGULATORY"
    other = "OTHER"


class SortOrder(enum.StrEnum):
    asc = "asc"
    desc = "desc"


# Sort allow-lists. Values are the public (query-string) names.
class SpacSortField(enum.StrEnum):
    name = "name"
    ticker = "ticker"
    status = "status"
    created_at = "createdAt"
    updated_at = "updatedAt"
    deadline = "deadline"
    ipo_amount = "ipoAmount"


class TargetSortField(enum.StrEnum):
    name = "name"
    industry = "industry"
    status = "status"
    evaluation_score = "evaluationScore"
    enterprise_value = "enterpriseValue"
    created_at = "createdAt"
    updated_at = "updatedAt"


class DocumentSortField(enum.StrEnum):
    name = "name"
    category = "category"
    created_at = "createdAt"
    updated_at = "updatedAt"


class AuditAction(enum.StrEnum):
    create = "CREATE"
    update = "UPDATE"
    delete = "DELETE"
    export = "EXPORT"
    batch = "BATCH_OPERATION"


class ExportEntity(enum.StrEnum):
    spacs = "spacs"
    targets = "targets"
    documents = "documents"
    audit_logs = "audit_logs"


class ExportFormat(enum.StrEnum):
    json = "json"
    csv = "csv"


class BatchAction(enum.StrEnum):
    create = "create"
    update = "update"
    delete = "delete"


class BatchEntity(enum.StrEnum):
    target = "target"
    document = "document"


class RiskLevel(enum.StrEnum):
    none = "none"
    low = "low"
    medium = "medium"
    high = "high"


# --- Module Notes -----------------------------------------------------------
# Enum values are stored in the DB and exposed over HTTP; treat them as a stable contract.
