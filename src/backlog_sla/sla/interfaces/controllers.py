"""
SLA Controllers (API Routes)
=============================

FastAPI routes for overdue classification, analysis, alerts and export.

Controllers are thin - they convert DTOs and delegate to application
services. The reference time is resolved here, never inside the engine.
"""

from datetime import datetime, timezone
from typing import AsyncGenerator, List, Optional

from fastapi import APIRouter, Depends, Request

from backlog_sla.config import Settings, get_settings
from backlog_sla.shared.infrastructure.logging import get_logger
from backlog_sla.sla.application import (
    AlertRequest,
    AlertResponse,
    AnalysisResponse,
    ClassificationResponse,
    ExportResponse,
    IAlertDispatcher,
    IAlertingConfigProvider,
    SLAAnalysisService,
    TicketBatchRequest,
)
from backlog_sla.sla.domain import SourceProfile, Ticket, get_profile
from backlog_sla.sla.infrastructure import WebhookAlertDispatcher, YAMLAlertingConfigProvider

logger = get_logger(__name__)
router = APIRouter(prefix="/sla", tags=["SLA Monitoring"])


# ========== Example payloads for Swagger ==========

TICKET_BATCH_EXAMPLE = {
    "now": "2024-01-15T10:00:00Z",
    "tickets": [
        {
            "id": "CASE-001",
            "created_at": "2024-01-15T00:00:00Z",
            "last_activity_at": "2024-01-15T00:00:00Z",
            "status": "Open",
            "severity": "S1",
            "owner": "Alice",
            "client": "ACME"
        }
    ]
}


# ========== Dependencies ==========

def get_app_settings(request: Request) -> Settings:
    """Settings of the running application."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_alerting_config_provider(
    request: Request,
    settings: Settings = Depends(get_app_settings)
) -> IAlertingConfigProvider:
    """Alerting config provider, created on first use when the lifespan did not."""
    provider = getattr(request.app.state, "alerting_config_provider", None)
    if provider is None:
        provider = YAMLAlertingConfigProvider(
            settings.alerting_config_path,
            default_send_threshold=settings.alert_send_threshold,
        )
        request.app.state.alerting_config_provider = provider
    return provider


async def get_alert_dispatcher(
    request: Request,
    settings: Settings = Depends(get_app_settings)
) -> AsyncGenerator[IAlertDispatcher, None]:
    """
    Alert dispatcher for the current request.

    The lifespan dispatcher is shared and closed on shutdown. Without it, a
    request-scoped dispatcher is created and closed once the request is done.
    """
    dispatcher = getattr(request.app.state, "alert_dispatcher", None)
    if dispatcher is not None:
        yield dispatcher
        return

    dispatcher = WebhookAlertDispatcher(
        settings.alert_webhook_url,
        timeout_seconds=settings.alert_timeout_seconds,
    )
    try:
        yield dispatcher
    finally:
        await dispatcher.close()


def get_sla_service(
    config_provider: IAlertingConfigProvider = Depends(get_alerting_config_provider),
    settings: Settings = Depends(get_app_settings)
) -> SLAAnalysisService:
    """Get SLA analysis service instance."""
    return SLAAnalysisService(config_provider, settings)


def resolve_now(now: Optional[datetime]) -> datetime:
    """Reference time of a request; defaults to the current UTC time."""
    return now if now is not None else datetime.now(timezone.utc)


def _to_domain(request: TicketBatchRequest, profile: SourceProfile) -> List[Ticket]:
    return [dto.to_domain(profile.source) for dto in request.tickets]


# ========== Route Handlers ==========

@router.post(
    "/{source}/classify",
    response_model=ClassificationResponse,
    summary="Classify tickets against the SLA ladder",
    description="""
    Classify every ticket of a batch as none, warning, critical, severe or
    stagnant.

    **Sources**: `clarify`, `jira`, `itsm-change`, `itsm-incident`

    Tickets with missing or unreadable timestamps are reported as not overdue.
    """,
    responses={404: {"description": "Unknown ticket source"}}
)
async def classify_tickets(
    source: str,
    request: TicketBatchRequest,
    service: SLAAnalysisService = Depends(get_sla_service)
):
    profile = get_profile(source)
    now = resolve_now(request.now)
    classified = service.classify(_to_domain(request, profile), now)

    return ClassificationResponse(
        source=profile.source.value,
        now=now,
        total=len(classified),
        tickets=[item.to_dict() for item in classified],
    )


@router.post(
    "/{source}/analysis",
    response_model=AnalysisResponse,
    summary="Analyze a ticket batch",
    description="""
    Aggregate a batch into overdue counts, severity/priority/type/status
    breakdowns, owner workloads and team performance metrics.
    """,
    responses={404: {"description": "Unknown ticket source"}}
)
async def analyze_tickets(
    source: str,
    request: TicketBatchRequest,
    service: SLAAnalysisService = Depends(get_sla_service)
):
    profile = get_profile(source)
    analysis = service.analyze(_to_domain(request, profile), resolve_now(request.now), profile.source)
    return AnalysisResponse.model_validate(analysis.to_dict())


@router.post(
    "/{source}/alerts",
    response_model=AlertResponse,
    summary="Build an overdue alert",
    description="""
    Collect the overdue tickets of a batch into an alert for the source's
    recipients. With `dispatch=true` the alert is posted to the configured
    webhook when it reaches the send threshold.
    """,
    responses={
        404: {"description": "Unknown ticket source"},
        422: {"description": "No valid recipient for an alert that must be sent"},
    }
)
async def build_alert(
    source: str,
    request: AlertRequest,
    service: SLAAnalysisService = Depends(get_sla_service),
    dispatcher: IAlertDispatcher = Depends(get_alert_dispatcher)
):
    profile = get_profile(source)
    alert = service.build_overdue_alert(
        _to_domain(request, profile),
        resolve_now(request.now),
        profile.source,
        recipients=request.recipients,
        file_name=request.file_name,
    )

    dispatched = False
    if request.dispatch:
        dispatched = await service.dispatch_alert(alert, dispatcher)

    return AlertResponse(
        source=alert.source.value,
        source_label=alert.source_label,
        file_name=alert.file_name,
        recipients=alert.recipients,
        invalid_recipients=alert.invalid_recipients,
        overdue_count=alert.overdue_count,
        critical_count=alert.critical_count,
        should_send=alert.should_send,
        message=alert.message,
        dispatched=dispatched,
        overdue_tickets=[item.to_dict() for item in alert.overdue_tickets],
    )


@router.post(
    "/{source}/export",
    response_model=ExportResponse,
    summary="Build spreadsheet export rows",
    responses={404: {"description": "Unknown ticket source"}}
)
async def export_tickets(
    source: str,
    request: TicketBatchRequest,
    service: SLAAnalysisService = Depends(get_sla_service)
):
    profile = get_profile(source)
    rows = service.export_rows(_to_domain(request, profile), resolve_now(request.now))
    return ExportResponse(source=profile.source.value, total=len(rows), rows=rows)
