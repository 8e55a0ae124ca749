"""
Clients Application Layer
==========================

Client aggregation services and their DTOs.
"""

from backlog_sla.clients.application.services import (
    AnalyticsFilters,
    ClientAnalyticsService,
    aggregate_clients,
    calculate_global_analytics,
    merge_client_analytics,
    risk_clients,
    top_clients,
)
from backlog_sla.clients.application.dto import (
    SourcedTicketDTO,
    AnalyticsFiltersDTO,
    ClientAnalyticsRequest,
    GlobalAnalyticsRequest,
    ClientAnalyticsResponse,
    ClientAnalyticsListResponse,
    GlobalAnalyticsResponse,
)

__all__ = [
    # Services
    "AnalyticsFilters",
    "ClientAnalyticsService",
    "aggregate_clients",
    "calculate_global_analytics",
    "merge_client_analytics",
    "risk_clients",
    "top_clients",
    # DTOs
    "SourcedTicketDTO",
    "AnalyticsFiltersDTO",
    "ClientAnalyticsRequest",
    "GlobalAnalyticsRequest",
    "ClientAnalyticsResponse",
    "ClientAnalyticsListResponse",
    "GlobalAnalyticsResponse",
]
