from datetime import datetime, timezone
from uuid import uuid4

from conftest import load_fixture

from rmm_ingest.domain.models import Severity
from rmm_ingest.services.standardizer import parse_timestamp, standardize
from rmm_ingest.storage.db_models import IntegrationORM


def _integration(provider: str, field_mappings: dict | None = None) -> IntegrationORM:
    return IntegrationORM(id=uuid4(), company_id=uuid4(), provider=provider, name="test", field_mappings=field_mappings)


def test_connectwise_payload_standardizes_every_field() -> None:
    payload = load_fixture("connectwise_alert.json")
    data = standardize(_integration("connectwise"), payload)

    assert data.device_id == "1042"
    assert data.device_name == "ACME-DC01"
    assert data.client_id == "4412"
    assert data.alert_id == "CW-99871"
    assert data.alert_type == "Disk Space"
    assert data.message == "Disk C: below 5% free space"
    assert data.severity == Severity.urgent
    assert data.timestamp == datetime(2026, 2, 6, 11, 59, tzinfo=timezone.utc)
    assert data.raw_payload == payload


def test_datto_payload_standardizes_every_field() -> None:
    payload = load_fixture("datto_alert.json")
    data = standardize(_integration("datto"), payload)

    assert data.device_id == "8f2d6c1e-3b7a-4d5e-9c0f-1a2b3c4d5e6f"
    assert data.device_name == "ACME-WS14"
    assert data.client_id == "Acme Corp"
    assert data.alert_id == "dt-a1b2c3"
    assert data.alert_type == "critical"
    assert data.message == "Antivirus definitions out of date"
    assert data.severity == Severity.urgent
    assert data.timestamp == datetime(2026, 2, 6, 11, 59, tzinfo=timezone.utc)


def test_ninja_payload_standardizes_every_field() -> None:
    payload = load_fixture("ninja_alert.json")
    data = standardize(_integration("ninja"), payload)

    assert data.device_id == "5521"
    assert data.device_name == "ACME-LAPTOP-07"
    assert data.client_id == "88"
    assert data.alert_id == "n-7f3a"
    assert data.alert_type == "Minor"
    assert data.message == "CPU usage above 90% for 15 minutes"
    assert data.severity == Severity.normal
    assert data.timestamp == datetime(2026, 2, 6, 11, 59, tzinfo=timezone.utc)


def test_incomplete_payload_is_fully_defaulted() -> None:
    data = standardize(_integration("connectwise"), {"unrelated": "value"})

    assert data.device_id is None
    assert data.client_id is None
    assert data.device_name == "Unknown Device"
    assert data.severity == Severity.normal
    assert data.message == "RMM Alert"
    assert data.alert_type == "RMM Alert"
    assert data.alert_id.startswith("rmm_")
    assert len(data.alert_id) > len("rmm_")
    assert data.timestamp is None


def test_generated_alert_ids_are_unique() -> None:
    integration = _integration("datto")
    first = standardize(integration, {})
    second = standardize(integration, {})
    assert first.alert_id != second.alert_id


def test_non_dict_payload_never_raises() -> None:
    data = standardize(_integration("ninja"), ["not", "a", "map"])
    assert data.raw_payload == {}
    assert data.device_name == "Unknown Device"


def test_unknown_severity_never_propagates() -> None:
    data = standardize(_integration("connectwise"), {"Severity": "Apocalyptic"})
    assert data.severity == Severity.normal


def test_severity_lookup_is_case_insensitive() -> None:
    integration = _integration("connectwise")
    assert standardize(integration, {"Severity": "CRITICAL"}).severity == Severity.urgent
    assert standardize(integration, {"Severity": "critical"}).severity == Severity.urgent
    assert standardize(integration, {"Severity": " Warning "}).severity == Severity.normal


def test_custom_field_mappings_take_precedence_over_provider_keys() -> None:
    mappings = {
        "device_id": "agent_guid",
        "device_name": "hostname",
        "client_id": "tenant",
        "alert_id": "event_ref",
        "alert_type": "category",
        "message": "summary",
        "severity": "level",
        "timestamp": "raised",
    }
    payload = {
        **load_fixture("connectwise_alert.json"),
        "agent_guid": "guid-1",
        "hostname": "override-host",
        "tenant": "tenant-9",
        "event_ref": "evt-1",
        "category": "Backup",
        "summary": "Backup job failed",
        "level": "low",
        "raised": "2026-03-01T08:00:00+00:00",
    }
    data = standardize(_integration("connectwise", mappings), payload)

    assert data.device_id == "guid-1"
    assert data.device_name == "override-host"
    assert data.client_id == "tenant-9"
    assert data.alert_id == "evt-1"
    assert data.alert_type == "Backup"
    assert data.message == "Backup job failed"
    assert data.severity == Severity.low
    assert data.timestamp == datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)


def test_missing_override_key_falls_through_to_provider_key() -> None:
    payload = load_fixture("connectwise_alert.json")
    data = standardize(_integration("connectwise", {"device_id": "not_present", "message": ""}), payload)
    assert data.device_id == "1042"
    assert data.message == "Disk C: below 5% free space"


def test_blank_provider_value_falls_through_to_generic_key() -> None:
    data = standardize(_integration("ninja"), {"deviceName": "  ", "device_name": "fallback-host"})
    assert data.device_name == "fallback-host"


def test_generic_provider_reads_fallback_keys() -> None:
    payload = {
        "device_id": "dev-1",
        "client_id": "Acme Corp",
        "alert_id": "g-1",
        "message": "Service stopped",
        "severity": "high",
        "timestamp": "2026-02-06T11:59:00Z",
    }
    data = standardize(_integration("generic"), payload)
    assert data.device_id == "dev-1"
    assert data.client_id == "Acme Corp"
    assert data.alert_id == "g-1"
    assert data.severity == Severity.high
    assert data.timestamp is not None


def test_override_supports_dotted_paths_into_nested_objects() -> None:
    payload = {"device": {"id": "nested-7", "name": "nested-host"}, "alert": {"text": "Nested message"}}
    mappings = {"device_id": "device.id", "device_name": "device.name", "message": "alert.text"}
    data = standardize(_integration("generic", mappings), payload)
    assert data.device_id == "nested-7"
    assert data.device_name == "nested-host"
    assert data.message == "Nested message"


def test_unknown_provider_uses_generic_tables() -> None:
    data = standardize(_integration("kaseya"), {"device_id": "k-1", "severity": "critical"})
    assert data.device_id == "k-1"
    assert data.severity == Severity.urgent


def test_parse_timestamp_variants() -> None:
    expected = datetime(2026, 2, 6, 11, 59, tzinfo=timezone.utc)
    assert parse_timestamp(1770379140) == expected
    assert parse_timestamp(1770379140000) == expected
    assert parse_timestamp("1770379140") == expected
    assert parse_timestamp("2026-02-06T11:59:00Z") == expected
    assert parse_timestamp("not a date") is None
    assert parse_timestamp({"nested": True}) is None
    assert parse_timestamp(None) is None
    assert parse_timestamp(10**400) is None
    assert parse_timestamp(float("inf")) is None
    assert parse_timestamp("²") is None


def test_out_of_range_timestamps_never_raise() -> None:
    assert standardize(_integration("ninja"), {"createdAt": 10**400}).timestamp is None
    assert standardize(_integration("generic"), {"timestamp": "²"}).timestamp is None


def test_long_identifiers_are_clamped_to_column_length() -> None:
    payload = {
        "ComputerID": "d" * 300,
        "ComputerName": "x" * 300,
        "AlertID": "a" * 300,
        "AlertType": "t" * 300,
        "AlertMessage": "m" * 1000,
    }
    data = standardize(_integration("connectwise"), payload)

    assert data.device_id == "d" * 255
    assert data.device_name == "x" * 255
    assert data.alert_id == "a" * 255
    assert data.alert_type == "t" * 255
    assert len(data.message) == 1000
