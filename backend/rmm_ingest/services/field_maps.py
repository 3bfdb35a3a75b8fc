"""Provider field maps and severity vocabularies."""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from rmm_ingest.config import get_settings, package_root
from rmm_ingest.domain.models import Severity

CANONICAL_FIELDS = (
    "device_id",
    "device_name",
    "client_id",
    "alert_id",
    "alert_type",
    "message",
    "severity",
    "timestamp",
)
FALLBACK_PROVIDER = "generic"


class UnknownProviderError(ValueError):
    """Raised when a provider has no entry in the field map tables."""


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def lookup_value(payload: dict[str, Any], key: str) -> Any:
    """Read `key` from payload; dotted keys reach into nested objects."""

    if key in payload:
        return payload[key]
    if "." not in key:
        return None
    current: Any = payload
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


class ProviderFieldMap:
    """Data-driven provider tables loaded from YAML."""

    def __init__(self, path: Path | None = None) -> None:
        if path is None:
            path = package_root() / get_settings().field_maps_path
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        self._fallback: dict[str, str] = data.get("fallback_keys", {})
        self._providers: dict[str, dict] = data.get("providers", {})

    def providers(self) -> list[str]:
        return list(self._providers)

    def describe(self, provider: str) -> dict[str, str]:
        entry = self._entry(provider)
        return {"name": entry.get("name", provider), "description": entry.get("description", "")}

    def provider_fields(self, provider: str) -> dict[str, str]:
        """Built-in keys for a provider, unknown providers get the generic set."""

        entry = self._providers.get(provider) or self._providers.get(FALLBACK_PROVIDER, {})
        return dict(entry.get("fields") or {})

    def severity_table(self, provider: str) -> dict[str, Severity]:
        entry = self._providers.get(provider) or self._providers.get(FALLBACK_PROVIDER, {})
        return {str(k).lower(): Severity(v) for k, v in (entry.get("severity") or {}).items()}

    def default_field_mappings(self, provider: str) -> dict[str, str]:
        """Effective built-in mapping: provider keys layered over fallback keys."""

        self._entry(provider)
        return {**self._fallback, **self.provider_fields(provider)}

    def key_chain(self, provider: str, field: str, overrides: dict[str, str] | None = None) -> list[str]:
        """Keys tried for `field`: integration override, provider key, fallback key."""

        chain: list[str] = []
        override = (overrides or {}).get(field)
        if isinstance(override, str) and override.strip():
            chain.append(override.strip())
        provider_key = self.provider_fields(provider).get(field)
        if provider_key and provider_key not in chain:
            chain.append(provider_key)
        fallback_key = self._fallback.get(field)
        if fallback_key and fallback_key not in chain:
            chain.append(fallback_key)
        return chain

    def resolve(
        self,
        payload: dict[str, Any],
        provider: str,
        field: str,
        overrides: dict[str, str] | None = None,
    ) -> Any:
        for key in self.key_chain(provider, field, overrides):
            value = lookup_value(payload, key)
            if not _is_blank(value):
                return value
        return None

    def translate_severity(self, provider: str, raw: Any) -> Severity:
        if _is_blank(raw):
            return Severity.normal
        return self.severity_table(provider).get(str(raw).strip().lower(), Severity.normal)

    def source_keys(self, provider: str, overrides: dict[str, str] | None = None) -> set[str]:
        """Top-level payload keys consumed by canonical fields."""

        keys: set[str] = set()
        for field in CANONICAL_FIELDS:
            for key in self.key_chain(provider, field, overrides):
                keys.add(key.split(".", 1)[0])
        return keys

    def suggest_field_mappings(self, payload: dict[str, Any]) -> tuple[dict[str, str], list[str]]:
        """Match payload keys against every known provider key, case-insensitively."""

        known: dict[str, str] = {}
        for entry in self._providers.values():
            for field, key in (entry.get("fields") or {}).items():
                known.setdefault(key.lower(), field)
        for field, key in self._fallback.items():
            known.setdefault(key.lower(), field)

        suggestions: dict[str, str] = {}
        unmatched: list[str] = []
        for key in payload:
            field = known.get(str(key).lower())
            if field is None or field in suggestions:
                unmatched.append(str(key))
                continue
            suggestions[field] = str(key)
        return suggestions, unmatched

    def _entry(self, provider: str) -> dict:
        entry = self._providers.get(provider)
        if entry is None:
            raise UnknownProviderError(f"unknown provider: {provider}")
        return entry


@lru_cache
def get_field_map() -> ProviderFieldMap:
    """Cached field map accessor."""

    return ProviderFieldMap()
