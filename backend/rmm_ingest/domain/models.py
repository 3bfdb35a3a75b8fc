"""Domain schemas and enums."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field


class Severity(str, Enum):
    """Canonical severity vocabulary."""

    urgent = "urgent"
    high = "high"
    normal = "normal"
    low = "low"


class CanonicalAlertData(BaseModel):
    """Provider-independent alert, fully defaulted."""

    device_id: str | None = None
    device_name: str = "Unknown Device"
    client_id: str | None = None
    alert_id: str
    alert_type: str = "RMM Alert"
    severity: Severity = Severity.normal
    message: str = "RMM Alert"
    raw_payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime | None = None


class WebhookIngestResponse(BaseModel):
    status: Literal["created", "duplicate"]
    alert_id: UUID | None = None
    duplicate_hash: str
    device_mapping_id: UUID | None = None


class WebhookTestResponse(BaseModel):
    """Dry-run standardization result."""

    alert: CanonicalAlertData
    resolved_client_id: UUID | None = None
    duplicate_hash: str


class IntegrationHealth(BaseModel):
    integration_id: UUID
    provider: str
    is_active: bool
    status: Literal["ok", "inactive"]
    last_alert_at: datetime | None = None
    recent_alerts: int = 0


class IntegrationStats(BaseModel):
    integration_id: UUID
    total_alerts: int
    alerts_last_24h: int
    alerts_last_7d: int
    severity_breakdown: dict[str, int] = Field(default_factory=dict)
    total_devices: int
    active_devices: int
    mapped_devices: int


class ProviderInfo(BaseModel):
    provider: str
    name: str
    description: str


class ProviderDefaults(BaseModel):
    provider: str
    field_mappings: dict[str, str]
    severity_map: dict[str, Severity]


class MappingSuggestion(BaseModel):
    field_mappings: dict[str, str]
    unmatched_keys: list[str] = Field(default_factory=list)
