"""Payload standardization into the canonical alert shape.

Standardization never fails: every canonical field resolves through the
integration override, the provider's built-in key and the generic fallback
key, in that order, and anything still missing gets a default. Dropping an
alert over one bad field is worse than storing a best-effort normalization.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from dateutil.parser import ParserError
from dateutil.parser import parse as parse_datetime

from rmm_ingest.config import get_settings
from rmm_ingest.domain.models import CanonicalAlertData
from rmm_ingest.services.field_maps import ProviderFieldMap, get_field_map
from rmm_ingest.storage.db_models import IntegrationORM
from rmm_ingest.utils.time_windows import as_utc

_EPOCH_MILLIS_THRESHOLD = 1e12
# Matches the String(255) columns on alerts and device_mappings.
_MAX_TEXT_LENGTH = 255


def _as_text(value: Any, max_length: int | None = None) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    if max_length is not None:
        text = text[:max_length].rstrip()
    return text or None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse ISO/free-form strings and unix epochs; None when unparseable."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, (int, float)):
        try:
            seconds = value / 1000 if value > _EPOCH_MILLIS_THRESHOLD else value
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    text = _as_text(value)
    if text is None:
        return None
    if text.isascii() and text.isdigit():
        return parse_timestamp(int(text))
    try:
        return as_utc(parse_datetime(text))
    except (ParserError, OverflowError, ValueError):
        return None


def generate_alert_id() -> str:
    return f"{get_settings().generated_alert_id_prefix}{uuid4().hex}"


class PayloadStandardizer:
    """Transforms provider payloads into CanonicalAlertData."""

    def __init__(self, field_map: ProviderFieldMap | None = None) -> None:
        self.field_map = field_map or get_field_map()

    def standardize(self, integration: IntegrationORM, raw_payload: Any) -> CanonicalAlertData:
        payload = raw_payload if isinstance(raw_payload, dict) else {}
        provider = integration.provider
        overrides = integration.field_mappings if isinstance(integration.field_mappings, dict) else None

        def field(name: str) -> Any:
            return self.field_map.resolve(payload, provider, name, overrides)

        defaults = CanonicalAlertData.model_fields
        return CanonicalAlertData(
            device_id=_as_text(field("device_id"), _MAX_TEXT_LENGTH),
            device_name=_as_text(field("device_name"), _MAX_TEXT_LENGTH) or defaults["device_name"].default,
            client_id=_as_text(field("client_id")),
            alert_id=_as_text(field("alert_id"), _MAX_TEXT_LENGTH) or generate_alert_id(),
            alert_type=_as_text(field("alert_type"), _MAX_TEXT_LENGTH) or defaults["alert_type"].default,
            severity=self.field_map.translate_severity(provider, field("severity")),
            message=_as_text(field("message")) or defaults["message"].default,
            raw_payload=payload,
            timestamp=parse_timestamp(field("timestamp")),
        )


def standardize(integration: IntegrationORM, raw_payload: Any) -> CanonicalAlertData:
    """Standardize with the default provider tables."""

    return PayloadStandardizer().standardize(integration, raw_payload)
