"""
Client Analytics Controllers (API Routes)
==========================================

FastAPI routes for cross-source client risk and global dashboard analytics.
"""

from fastapi import APIRouter, Depends

from backlog_sla.config import Settings
from backlog_sla.clients.application import (
    ClientAnalyticsListResponse,
    ClientAnalyticsRequest,
    ClientAnalyticsService,
    GlobalAnalyticsRequest,
    GlobalAnalyticsResponse,
)
from backlog_sla.shared.infrastructure.logging import get_logger
from backlog_sla.sla.interfaces.controllers import get_app_settings

logger = get_logger(__name__)
router = APIRouter(prefix="/clients", tags=["Client Analytics"])


# ========== Dependencies ==========

def get_client_service(settings: Settings = Depends(get_app_settings)) -> ClientAnalyticsService:
    """Get client analytics service instance."""
    return ClientAnalyticsService(settings)


# ========== Route Handlers ==========

@router.post(
    "/analytics",
    response_model=ClientAnalyticsListResponse,
    summary="Aggregate tickets by client",
    description="""
    Group tickets of every source by client name (case-insensitive).

    **Risk score**: share of incident tickets (case-management and ITSM
    incidents), in percent, capped at 100.

    Also returns the busiest clients and the clients above the risk threshold.
    """
)
async def client_analytics(
    request: ClientAnalyticsRequest,
    service: ClientAnalyticsService = Depends(get_client_service)
):
    tickets = [dto.to_domain() for dto in request.tickets]
    views = service.client_analytics(tickets)

    return ClientAnalyticsListResponse(
        total_clients=len(views["clients"]),
        clients=[client.to_dict() for client in views["clients"]],
        top_clients=[client.to_dict() for client in views["top_clients"]],
        risk_clients=[client.to_dict() for client in views["risk_clients"]],
    )


@router.post(
    "/global",
    response_model=GlobalAnalyticsResponse,
    summary="Global dashboard analytics",
    description="""
    Totals, per-source and per-month volumes, status/priority breakdowns and
    client views over a filtered mixed-source batch.
    """
)
async def global_analytics(
    request: GlobalAnalyticsRequest,
    service: ClientAnalyticsService = Depends(get_client_service)
):
    tickets = [dto.to_domain() for dto in request.tickets]
    result = service.global_analytics(tickets, request.filters.to_domain())
    return GlobalAnalyticsResponse.model_validate(result.to_dict())
