"""Tenant-scoped client identifier resolution."""

from uuid import UUID

from sqlalchemy.orm import Session

from rmm_ingest.storage.db_models import IntegrationORM
from rmm_ingest.storage.repositories import IntegrationRepository

# Exact-match columns tried after the internal id, in order.
_LOOKUP_COLUMNS = ("name", "company_name", "rmm_id")


def _as_uuid(value: str) -> UUID | None:
    try:
        return UUID(value)
    except ValueError:
        return None


class ClientResolver:
    """Map a raw RMM organization identifier to an internal client id."""

    def __init__(self, db: Session):
        self.repo = IntegrationRepository(db)

    def resolve_client_id(self, integration: IntegrationORM, raw_identifier: str | None) -> UUID | None:
        """Return the client id within the integration's tenant, or None if unresolvable."""

        identifier = (raw_identifier or "").strip()
        if not identifier:
            return None
        company_id = integration.company_id

        candidate = _as_uuid(identifier)
        if candidate is not None:
            client = self.repo.get_client_for_company(company_id, candidate)
            if client is not None:
                return client.id

        for column in _LOOKUP_COLUMNS:
            client = self.repo.find_client_by_column(company_id, column, identifier)
            if client is not None:
                return client.id
        return None
