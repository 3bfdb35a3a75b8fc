"""Device mapping upserts."""

from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy.orm import Session

from rmm_ingest.domain.models import CanonicalAlertData
from rmm_ingest.services.client_resolver import ClientResolver
from rmm_ingest.services.field_maps import ProviderFieldMap, get_field_map
from rmm_ingest.storage.db_models import DeviceMappingORM, IntegrationORM
from rmm_ingest.storage.repositories import IntegrationRepository
from rmm_ingest.utils.time_windows import utcnow


def _provider_data(payload: dict[str, Any], consumed: set[str]) -> dict[str, Any]:
    """Scalar payload entries not already captured by canonical fields."""

    return {
        key: value
        for key, value in payload.items()
        if key not in consumed and (value is None or isinstance(value, (str, int, float, bool)))
    }


class DeviceMappingStore:
    """Create or refresh the (integration, external device) link."""

    def __init__(
        self,
        db: Session,
        resolver: ClientResolver | None = None,
        field_map: ProviderFieldMap | None = None,
    ):
        self.repo = IntegrationRepository(db)
        self.resolver = resolver or ClientResolver(db)
        self.field_map = field_map or get_field_map()

    def upsert_device_mapping(
        self,
        integration: IntegrationORM,
        data: CanonicalAlertData,
        seen_at: datetime | None = None,
    ) -> DeviceMappingORM | None:
        if not data.device_id:
            logger.debug(f"device mapping skipped: no device id integration={integration.id}")
            return None
        client_id = self.resolver.resolve_client_id(integration, data.client_id)
        if client_id is None:
            logger.debug(
                f"device mapping skipped: unresolvable client={data.client_id!r} integration={integration.id}"
            )
            return None

        seen_at = seen_at or utcnow()
        sync_metadata = self._sync_metadata(integration, data, seen_at)
        mapping = self.repo.get_device_mapping(integration.id, data.device_id)
        if mapping is None:
            mapping = self.repo.create_device_mapping(
                integration_id=integration.id,
                external_device_id=data.device_id,
                client_id=client_id,
                device_name=data.device_name,
                sync_metadata=sync_metadata,
                seen_at=seen_at,
            )
            logger.info(f"device mapping created id={mapping.id} device={data.device_id} integration={integration.id}")
            return mapping
        return self.repo.refresh_device_mapping(
            mapping,
            client_id=client_id,
            device_name=data.device_name,
            sync_metadata=sync_metadata,
            seen_at=seen_at,
        )

    def _sync_metadata(self, integration: IntegrationORM, data: CanonicalAlertData, seen_at: datetime) -> dict:
        overrides = integration.field_mappings if isinstance(integration.field_mappings, dict) else None
        consumed = self.field_map.source_keys(integration.provider, overrides)
        return {
            "last_alert": {
                "alert_id": data.alert_id,
                "alert_type": data.alert_type,
                "severity": data.severity.value,
                "message": data.message,
                "timestamp": data.timestamp.isoformat() if data.timestamp else None,
                "received_at": seen_at.isoformat(),
            },
            "provider": integration.provider,
            "provider_data": _provider_data(data.raw_payload, consumed),
        }
