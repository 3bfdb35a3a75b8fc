"""Hashing helpers."""

import hashlib
import json


def stable_hash(value: str) -> str:
    """Compute deterministic sha256 hash for string."""

    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def duplicate_hash_for(
    device_id: str | None,
    alert_type: str,
    message: str,
    severity: str,
) -> str:
    """Build deterministic content fingerprint from selected alert fields."""

    payload = {
        "device_id": device_id or "",
        "alert_type": alert_type,
        "message": message,
        "severity": severity,
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return stable_hash(canonical)
