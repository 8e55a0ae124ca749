"""
Client Analytics DTOs
======================

Request/response models for the cross-source client analytics endpoints.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from backlog_sla.config import TicketSource
from backlog_sla.clients.application.services import AnalyticsFilters
from backlog_sla.sla.application.dto import TicketDTO, parse_timestamp
from backlog_sla.sla.domain import Ticket

SourceStr = Literal["clarify", "jira", "itsm-change", "itsm-incident"]


# ========== Request DTOs ==========

class SourcedTicketDTO(TicketDTO):
    """Ticket of a mixed-source batch; carries its own source tag."""
    source: SourceStr = Field(..., description="Origin system of the ticket")

    def to_domain(self, source: Optional[TicketSource] = None) -> Ticket:
        return super().to_domain(source or TicketSource(self.source))


class AnalyticsFiltersDTO(BaseModel):
    """Filters of the global dashboard."""
    date_start: Optional[datetime] = Field(None, description="Earliest creation timestamp")
    date_end: Optional[datetime] = Field(None, description="Latest creation timestamp")
    sources: List[SourceStr] = Field(default_factory=list)
    clients: List[str] = Field(default_factory=list)
    search: str = Field(default="", description="Substring of ticket id or client name")

    @field_validator("date_start", "date_end", mode="before")
    @classmethod
    def lenient_timestamp(cls, v):
        return parse_timestamp(v)

    def to_domain(self) -> AnalyticsFilters:
        return AnalyticsFilters(
            date_start=self.date_start,
            date_end=self.date_end,
            sources=tuple(TicketSource(source) for source in self.sources),
            clients=tuple(self.clients),
            search=self.search,
        )


class ClientAnalyticsRequest(BaseModel):
    """Request model for client analytics."""
    tickets: List[SourcedTicketDTO] = Field(default_factory=list)


class GlobalAnalyticsRequest(ClientAnalyticsRequest):
    """Request model for global analytics."""
    filters: AnalyticsFiltersDTO = Field(default_factory=AnalyticsFiltersDTO)


# ========== Response DTOs ==========

class ClientAnalyticsResponse(BaseModel):
    """Counts and risk score of one client."""
    name: str
    total_tickets: int
    incidents: int
    changes: int
    by_source: Dict[str, int]
    last_activity: Optional[datetime] = None
    risk_score: float = Field(..., ge=0, le=100)


class ClientAnalyticsListResponse(BaseModel):
    """Client analytics with derived views."""
    total_clients: int
    clients: List[ClientAnalyticsResponse]
    top_clients: List[ClientAnalyticsResponse]
    risk_clients: List[ClientAnalyticsResponse]


class ActivePeriodResponse(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None


class MonthlyVolumeResponse(BaseModel):
    month: str = Field(..., description="Calendar month, YYYY-MM")
    total: int
    incidents: int
    changes: int
    by_source: Dict[str, int]


class PerformanceMetricsResponse(BaseModel):
    incident_rate: float
    change_rate: float
    avg_tickets_per_client: float


class GlobalAnalyticsResponse(BaseModel):
    """Response model for dashboard-wide analytics."""
    total_tickets: int
    total_incidents: int
    total_changes: int
    total_clients: int
    active_period: ActivePeriodResponse
    by_source: Dict[str, int]
    by_month: List[MonthlyVolumeResponse]
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    client_analytics: List[ClientAnalyticsResponse]
    top_clients: List[ClientAnalyticsResponse]
    risk_clients: List[ClientAnalyticsResponse]
    performance_metrics: PerformanceMetricsResponse
