"""FastAPI routes."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rmm_ingest.domain.models import (
    IntegrationHealth,
    IntegrationStats,
    MappingSuggestion,
    ProviderDefaults,
    ProviderInfo,
    WebhookIngestResponse,
    WebhookTestResponse,
)
from rmm_ingest.services.field_maps import UnknownProviderError, get_field_map
from rmm_ingest.services.ingestion import IntegrationService
from rmm_ingest.storage.database import get_db
from rmm_ingest.storage.db_models import IntegrationORM
from rmm_ingest.storage.repositories import IntegrationRepository

router = APIRouter(prefix="/v1")


def _load_integration(db: Session, integration_id: UUID) -> IntegrationORM:
    integration = IntegrationRepository(db).get_integration(integration_id)
    if integration is None:
        raise HTTPException(status_code=404, detail="integration not found")
    return integration


def _webhook_integration(db: Session, provider: str, integration_id: UUID) -> IntegrationORM:
    if provider not in get_field_map().providers():
        raise HTTPException(status_code=400, detail=f"unknown provider: {provider}")
    integration = _load_integration(db, integration_id)
    if integration.provider != provider:
        raise HTTPException(status_code=400, detail=f"integration is configured for {integration.provider}")
    return integration


@router.post("/webhooks/{provider}/{integration_id}", response_model=WebhookIngestResponse)
def post_webhook(
    provider: str,
    integration_id: UUID,
    response: Response,
    payload: Any = Body(...),
    db: Session = Depends(get_db),
):
    integration = _webhook_integration(db, provider, integration_id)
    if not integration.is_active:
        raise HTTPException(status_code=403, detail="integration is inactive")
    try:
        outcome = IntegrationService(db).handle_webhook(provider, payload, integration)
    except SQLAlchemyError as exc:
        # Providers retry on any non-success status.
        raise HTTPException(status_code=503, detail="alert could not be stored") from exc
    response.status_code = status.HTTP_201_CREATED if outcome.created else status.HTTP_200_OK
    return outcome.to_response()


@router.get("/webhooks/{provider}/{integration_id}/health", response_model=IntegrationHealth)
def webhook_health(provider: str, integration_id: UUID, db: Session = Depends(get_db)):
    integration = _webhook_integration(db, provider, integration_id)
    return IntegrationService(db).health(integration)


@router.post("/webhooks/{provider}/{integration_id}/test", response_model=WebhookTestResponse)
def run_webhook_test(
    provider: str,
    integration_id: UUID,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    integration = _webhook_integration(db, provider, integration_id)
    logger.info(f"webhook test payload received integration={integration.id}")
    return IntegrationService(db).preview(integration, payload)


@router.post("/webhooks/generic/{integration_id}/suggest-mappings", response_model=MappingSuggestion)
def suggest_mappings(
    integration_id: UUID,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    _webhook_integration(db, "generic", integration_id)
    field_mappings, unmatched = get_field_map().suggest_field_mappings(payload)
    return MappingSuggestion(field_mappings=field_mappings, unmatched_keys=unmatched)


@router.get("/providers", response_model=list[ProviderInfo])
def list_providers():
    field_map = get_field_map()
    return [ProviderInfo(provider=p, **field_map.describe(p)) for p in field_map.providers()]


@router.get("/providers/{provider}/defaults", response_model=ProviderDefaults)
def provider_defaults(provider: str):
    field_map = get_field_map()
    try:
        mappings = field_map.default_field_mappings(provider)
    except UnknownProviderError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ProviderDefaults(
        provider=provider,
        field_mappings=mappings,
        severity_map=field_map.severity_table(provider),
    )


@router.get("/integrations/{integration_id}/stats", response_model=IntegrationStats)
def integration_stats(integration_id: UUID, db: Session = Depends(get_db)):
    integration = _load_integration(db, integration_id)
    return IntegrationService(db).stats(integration)
