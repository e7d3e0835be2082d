"""
spac_os.db.models

Persistence schema for the SPAC deal-lifecycle service.

Responsibilities:
- Define ORM models:
  - Organization / OrganizationMember: tenants and the membership join used for authz
  - Spac / Target / Document: tenant-scoped, soft-deletable deal records
  - DocumentAnalysis: persisted AI analysis cache (one row per document)
  - AuditLog: append-only audit trail
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Enum,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid as SAUuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spac_os.db.base import Base
from spac_os.enums import AuditAction, DocumentCategory, MemberRole, SpacStatus, TargetStatus


def utcnow() -> datetime:
    # Naive UTC timestamps; SQLite has no tz-aware storage.
    return datetime.now(tz=UTC).replace(tzinfo=None)


class Organization(Base):
    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    members: Mapped[list[OrganizationMember]] = relationship(
        back_populates="organization", cascade="all, delete-orphan"
    )


class OrganizationMember(Base):
    __tablename__ = "organization_members"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True
    )
    # Principal identifier (JWT `sub`).
    user_id: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    role: Mapped[MemberRole] = mapped_column(Enum(MemberRole), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    organization: Mapped[Organization] = relationship(back_populates="members")

    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_member_org_user"),
    )


class Spac(Base):
    __tablename__ = "spacs"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    # Live tickers are unique across tenants; soft deletes free them (`uq_spacs_live_ticker`).
    ticker: Mapped[str | None] = mapped_column(String(16), nullable=True)
    cik: Mapped[str | None] = mapped_column(String(10), nullable=True)
    status: Mapped[SpacStatus] = mapped_column(Enum(SpacStatus), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    ipo_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    trust_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    ipo_date: Mapped[datetime | None] = mapped_column(nullable=True)
    deadline: Mapped[datetime | None] = mapped_column(nullable=True)
    target_sectors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_by: Mapped[str] = mapped_column(String(256), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True, index=True)
    deleted_by: Mapped[str | None] = mapped_column(String(256), nullable=True)

    targets: Mapped[list[Target]] = relationship(back_populates="spac")

    __table_args__ = (
        Index("ix_spacs_org_created", "organization_id", "created_at"),
        Index(
            "uq_spacs_live_ticker",
            "ticker",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )


class Target(Base):
    __tablename__ = "targets"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # Denormalized from the parent SPAC so listings scope by tenant without a join.
    organization_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True
    )
    spac_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("spacs.id"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    industry: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[TargetStatus] = mapped_column(Enum(TargetStatus), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    enterprise_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    evaluation_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_by: Mapped[str] = mapped_column(String(256), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True, index=True)
    deleted_by: Mapped[str | None] = mapped_column(String(256), nullable=True)

    spac: Mapped[Spac] = relationship(back_populates="targets")


class Document(Base):
    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True
    )
    spac_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("spacs.id"), nullable=True, index=True
    )

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    category: Mapped[DocumentCategory] = mapped_column(Enum(DocumentCategory), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(128), nullable=True)

    created_by: Mapped[str] = mapped_column(String(256), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True, index=True)
    deleted_by: Mapped[str | None] = mapped_column(String(256), nullable=True)


class DocumentAnalysis(Base):
    __tablename__ = "document_analyses"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("documents.id"), nullable=False, unique=True
    )

    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    key_terms: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    risk_flags: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    action_items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    insights: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    financial_highlights: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSON, nullable=True
    )
    risk_level: Mapped[str] = mapped_column(String(16), nullable=False, default="none")

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(256), nullable=False)
    action: Mapped[AuditAction] = mapped_column(Enum(AuditAction), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    # `metadata` is reserved on declarative classes; the column keeps the public name.
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )
    changes: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, index=True)

    __table_args__ = (Index("ix_audit_org_created", "organization_id", "created_at"),)


# --- Module Notes -----------------------------------------------------------
# Soft-deleted rows keep `deleted_at`; every read path filters them out explicitly.
