"""Near-duplicate suppression."""

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from rmm_ingest.config import get_settings
from rmm_ingest.domain.models import CanonicalAlertData
from rmm_ingest.storage.repositories import IntegrationRepository
from rmm_ingest.utils.hashing import duplicate_hash_for
from rmm_ingest.utils.time_windows import trailing, utcnow


def alert_duplicate_hash(data: CanonicalAlertData) -> str:
    return duplicate_hash_for(data.device_id, data.alert_type, data.message, data.severity.value)


class DuplicateDetector:
    """Looks for an alert with the same fingerprint inside the trailing window.

    The check is a plain read: two truly concurrent identical deliveries can
    both pass it. Content repeating after the window closes is a new alert.
    """

    def __init__(self, db: Session, window_minutes: int | None = None):
        self.repo = IntegrationRepository(db)
        self.window_minutes = window_minutes if window_minutes is not None else get_settings().duplicate_window_minutes

    def is_duplicate(self, integration_id: UUID, duplicate_hash: str, now: datetime | None = None) -> bool:
        since, _ = trailing(now or utcnow(), self.window_minutes)
        return self.repo.find_alert_by_hash(integration_id, duplicate_hash, since) is not None
