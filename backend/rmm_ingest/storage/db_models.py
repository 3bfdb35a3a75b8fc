"""SQLAlchemy models for persistence."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from rmm_ingest.storage.database import Base
from rmm_ingest.utils.time_windows import utcnow


def json_type():
    """Use JSONB on postgres and JSON elsewhere."""

    return JSON().with_variant(JSONB, "postgresql")


class ClientORM(Base):
    """Tenant-owned client, provisioned outside this service."""

    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    company_id: Mapped[str] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    rmm_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class IntegrationORM(Base):
    """One tenant's connection to one RMM provider. Read-only here."""

    __tablename__ = "integrations"

    id: Mapped[str] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    company_id: Mapped[str] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    field_mappings: Mapped[dict | None] = mapped_column(json_type(), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class DeviceMappingORM(Base):
    __tablename__ = "device_mappings"
    __table_args__ = (
        UniqueConstraint("integration_id", "external_device_id", name="uq_device_mappings_integration_device"),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    integration_id: Mapped[str] = mapped_column(UUID(as_uuid=True), ForeignKey("integrations.id"), nullable=False, index=True)
    external_device_id: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id: Mapped[str | None] = mapped_column(UUID(as_uuid=True), ForeignKey("clients.id"), nullable=True, index=True)
    # Claimed by the asset provisioning workflow, never written on ingest.
    asset_id: Mapped[str | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    device_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sync_metadata: Mapped[dict] = mapped_column(json_type(), nullable=False, default=dict)
    last_seen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class AlertORM(Base):
    __tablename__ = "alerts"
    __table_args__ = (
        Index("ix_alerts_integration_hash_created", "integration_id", "duplicate_hash", "created_at"),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    integration_id: Mapped[str] = mapped_column(UUID(as_uuid=True), ForeignKey("integrations.id"), nullable=False, index=True)
    device_mapping_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("device_mappings.id"), nullable=True
    )
    external_alert_id: Mapped[str] = mapped_column(String(255), nullable=False)
    device_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    asset_id: Mapped[str | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    alert_type: Mapped[str] = mapped_column(String(255), nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    raw_payload: Mapped[dict] = mapped_column(json_type(), nullable=False)
    duplicate_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    occurred_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
