"""Webhook ingestion orchestration."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Literal

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rmm_ingest.config import get_settings
from rmm_ingest.domain.models import (
    CanonicalAlertData,
    IntegrationHealth,
    IntegrationStats,
    WebhookIngestResponse,
    WebhookTestResponse,
)
from rmm_ingest.services.alert_factory import AlertFactory
from rmm_ingest.services.client_resolver import ClientResolver
from rmm_ingest.services.deduplication import DuplicateDetector, alert_duplicate_hash
from rmm_ingest.services.device_mappings import DeviceMappingStore
from rmm_ingest.services.standardizer import PayloadStandardizer
from rmm_ingest.storage.db_models import AlertORM, DeviceMappingORM, IntegrationORM
from rmm_ingest.storage.repositories import IntegrationRepository
from rmm_ingest.utils.time_windows import utcnow


@dataclass
class WebhookOutcome:
    """Result of one delivery: a created alert or a duplicate signal."""

    status: Literal["created", "duplicate"]
    duplicate_hash: str
    data: CanonicalAlertData
    alert: AlertORM | None = None
    device_mapping: DeviceMappingORM | None = None

    @property
    def created(self) -> bool:
        return self.status == "created"

    def to_response(self) -> WebhookIngestResponse:
        return WebhookIngestResponse(
            status=self.status,
            alert_id=self.alert.id if self.alert else None,
            duplicate_hash=self.duplicate_hash,
            device_mapping_id=self.device_mapping.id if self.device_mapping else None,
        )


class IntegrationService:
    """Runs the standardize, map, dedup, create pipeline for one webhook."""

    def __init__(self, db: Session, standardizer: PayloadStandardizer | None = None):
        self.db = db
        self.repo = IntegrationRepository(db)
        self.standardizer = standardizer or PayloadStandardizer()
        self.resolver = ClientResolver(db)
        self.device_mappings = DeviceMappingStore(db, resolver=self.resolver, field_map=self.standardizer.field_map)
        self.detector = DuplicateDetector(db)
        self.factory = AlertFactory(db)

    def handle_webhook(
        self,
        provider_name: str,
        raw_payload: Any,
        integration: IntegrationORM,
        received_at: datetime | None = None,
    ) -> WebhookOutcome:
        if provider_name != integration.provider:
            logger.warning(
                f"provider mismatch: webhook={provider_name} integration={integration.id} "
                f"configured={integration.provider}"
            )
        now = received_at or utcnow()
        data = self.standardizer.standardize(integration, raw_payload)

        try:
            mapping = self.device_mappings.upsert_device_mapping(integration, data, seen_at=now)
            duplicate_hash = alert_duplicate_hash(data)
            if self.detector.is_duplicate(integration.id, duplicate_hash, now=now):
                # The mapping refresh persists even when the alert is suppressed.
                self.db.commit()
                logger.debug(f"duplicate alert suppressed integration={integration.id} hash={duplicate_hash[:12]}")
                return WebhookOutcome(
                    status="duplicate",
                    duplicate_hash=duplicate_hash,
                    data=data,
                    device_mapping=mapping,
                )

            alert = self.factory.create_alert(
                integration,
                data,
                mapping,
                duplicate_hash=duplicate_hash,
                created_at=now,
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"webhook persistence failed integration={integration.id}: {exc}")
            raise

        logger.info(
            f"alert created id={alert.id} integration={integration.id} "
            f"severity={alert.severity} device={alert.device_id}"
        )
        return WebhookOutcome(
            status="created",
            duplicate_hash=duplicate_hash,
            data=data,
            alert=alert,
            device_mapping=mapping,
        )

    def preview(self, integration: IntegrationORM, raw_payload: Any) -> WebhookTestResponse:
        """Dry run: standardize and resolve the client without writing."""

        data = self.standardizer.standardize(integration, raw_payload)
        return WebhookTestResponse(
            alert=data,
            resolved_client_id=self.resolver.resolve_client_id(integration, data.client_id),
            duplicate_hash=alert_duplicate_hash(data),
        )

    def health(self, integration: IntegrationORM) -> IntegrationHealth:
        since = utcnow() - timedelta(hours=get_settings().stats_recent_hours)
        return IntegrationHealth(
            integration_id=integration.id,
            provider=integration.provider,
            is_active=integration.is_active,
            status="ok" if integration.is_active else "inactive",
            last_alert_at=self.repo.latest_alert_at(integration.id),
            recent_alerts=self.repo.count_alerts(integration.id, since=since),
        )

    def stats(self, integration: IntegrationORM) -> IntegrationStats:
        now = utcnow()
        last_day = now - timedelta(hours=24)
        last_week = now - timedelta(days=7)
        return IntegrationStats(
            integration_id=integration.id,
            total_alerts=self.repo.count_alerts(integration.id),
            alerts_last_24h=self.repo.count_alerts(integration.id, since=last_day),
            alerts_last_7d=self.repo.count_alerts(integration.id, since=last_week),
            severity_breakdown=self.repo.severity_breakdown(integration.id, since=last_week),
            **self.repo.device_counts(integration.id),
        )
