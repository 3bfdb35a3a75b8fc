"""Alert creation."""

from datetime import datetime

from sqlalchemy.orm import Session

from rmm_ingest.domain.models import CanonicalAlertData
from rmm_ingest.services.deduplication import alert_duplicate_hash
from rmm_ingest.storage.db_models import AlertORM, DeviceMappingORM, IntegrationORM
from rmm_ingest.storage.repositories import IntegrationRepository
from rmm_ingest.utils.time_windows import utcnow


class AlertFactory:
    """Single-purpose write primitive; deduplication happens upstream."""

    def __init__(self, db: Session):
        self.repo = IntegrationRepository(db)

    def create_alert(
        self,
        integration: IntegrationORM,
        data: CanonicalAlertData,
        device_mapping: DeviceMappingORM | None = None,
        *,
        duplicate_hash: str | None = None,
        created_at: datetime | None = None,
    ) -> AlertORM:
        return self.repo.create_alert(
            integration_id=integration.id,
            device_mapping_id=device_mapping.id if device_mapping else None,
            external_alert_id=data.alert_id,
            device_id=data.device_id,
            asset_id=device_mapping.asset_id if device_mapping else None,
            alert_type=data.alert_type,
            severity=data.severity.value,
            message=data.message,
            raw_payload=data.raw_payload,
            duplicate_hash=duplicate_hash or alert_duplicate_hash(data),
            occurred_at=data.timestamp,
            created_at=created_at or utcnow(),
        )
