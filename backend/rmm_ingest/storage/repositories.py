"""Repository utilities."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from rmm_ingest.storage.db_models import AlertORM, ClientORM, DeviceMappingORM, IntegrationORM


class IntegrationRepository:
    """DB operations scoped to integrations and their tenant."""

    def __init__(self, db: Session):
        self.db = db

    def get_integration(self, integration_id: UUID) -> IntegrationORM | None:
        return self.db.get(IntegrationORM, integration_id)

    def get_client_for_company(self, company_id: UUID, client_id: UUID) -> ClientORM | None:
        stmt = select(ClientORM).where(ClientORM.company_id == company_id).where(ClientORM.id == client_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def find_client_by_column(self, company_id: UUID, column: str, value: str) -> ClientORM | None:
        attr = getattr(ClientORM, column)
        stmt = (
            select(ClientORM)
            .where(ClientORM.company_id == company_id)
            .where(attr == value)
            .order_by(ClientORM.created_at)
            .limit(1)
        )
        return self.db.execute(stmt).scalars().first()

    def get_device_mapping(self, integration_id: UUID, external_device_id: str) -> DeviceMappingORM | None:
        stmt = (
            select(DeviceMappingORM)
            .where(DeviceMappingORM.integration_id == integration_id)
            .where(DeviceMappingORM.external_device_id == external_device_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def create_device_mapping(
        self,
        *,
        integration_id: UUID,
        external_device_id: str,
        client_id: UUID,
        device_name: str,
        sync_metadata: dict,
        seen_at: datetime,
    ) -> DeviceMappingORM:
        row = DeviceMappingORM(
            integration_id=integration_id,
            external_device_id=external_device_id,
            client_id=client_id,
            device_name=device_name,
            is_active=True,
            sync_metadata=sync_metadata,
            last_seen_at=seen_at,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def refresh_device_mapping(
        self,
        mapping: DeviceMappingORM,
        *,
        client_id: UUID,
        device_name: str,
        sync_metadata: dict,
        seen_at: datetime,
    ) -> DeviceMappingORM:
        mapping.client_id = client_id
        mapping.device_name = device_name
        mapping.is_active = True
        # JSON columns only track reassignment.
        mapping.sync_metadata = {**(mapping.sync_metadata or {}), **sync_metadata}
        mapping.last_seen_at = seen_at
        self.db.flush()
        return mapping

    def create_alert(self, **fields) -> AlertORM:
        row = AlertORM(**fields)
        self.db.add(row)
        self.db.flush()
        return row

    def find_alert_by_hash(self, integration_id: UUID, duplicate_hash: str, since: datetime) -> AlertORM | None:
        stmt = (
            select(AlertORM)
            .where(AlertORM.integration_id == integration_id)
            .where(AlertORM.duplicate_hash == duplicate_hash)
            .where(AlertORM.created_at >= since)
            .order_by(desc(AlertORM.created_at))
            .limit(1)
        )
        return self.db.execute(stmt).scalars().first()

    def list_alerts(self, integration_id: UUID) -> list[AlertORM]:
        stmt = select(AlertORM).where(AlertORM.integration_id == integration_id).order_by(desc(AlertORM.created_at))
        return list(self.db.execute(stmt).scalars())

    def latest_alert_at(self, integration_id: UUID) -> datetime | None:
        stmt = select(func.max(AlertORM.created_at)).where(AlertORM.integration_id == integration_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def count_alerts(self, integration_id: UUID, since: datetime | None = None) -> int:
        stmt = select(func.count()).select_from(AlertORM).where(AlertORM.integration_id == integration_id)
        if since is not None:
            stmt = stmt.where(AlertORM.created_at >= since)
        return int(self.db.execute(stmt).scalar_one())

    def severity_breakdown(self, integration_id: UUID, since: datetime) -> dict[str, int]:
        rows = self.db.execute(
            select(AlertORM.severity, func.count())
            .where(AlertORM.integration_id == integration_id)
            .where(AlertORM.created_at >= since)
            .group_by(AlertORM.severity)
        ).all()
        return {severity: int(count) for severity, count in rows}

    def device_counts(self, integration_id: UUID) -> dict[str, int]:
        base = select(func.count()).select_from(DeviceMappingORM).where(DeviceMappingORM.integration_id == integration_id)
        active = base.where(DeviceMappingORM.is_active.is_(True))
        mapped = base.where(DeviceMappingORM.asset_id.is_not(None))
        return {
            "total_devices": int(self.db.execute(base).scalar_one()),
            "active_devices": int(self.db.execute(active).scalar_one()),
            "mapped_devices": int(self.db.execute(mapped).scalar_one()),
        }
