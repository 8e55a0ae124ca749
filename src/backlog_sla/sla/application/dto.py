"""
SLA Application DTOs
=====================

Data Transfer Objects for SLA API layer.

These Pydantic models handle serialization/deserialization for API requests
and responses. Ticket timestamps are parsed leniently: anything that cannot
be read as a date becomes None so the ticket degrades to "not overdue"
instead of failing the whole batch.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from backlog_sla.config import TicketSource
from backlog_sla.sla.domain import Ticket


# ========== Type Aliases for Literals ==========
OverdueLevelStr = Literal["none", "warning", "critical", "severe", "stagnant"]
SLAStatusStr = Literal["overdue", "on_time"]

# Day-first layouts produced by the ticketing exports
TIMESTAMP_FORMATS = (
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
    "%d-%m-%Y %H:%M:%S",
    "%d-%m-%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Read a timestamp from an export cell.

    Accepts datetimes, dates, ISO-8601 strings (with a trailing ``Z``) and
    the day-first layouts above. Returns None for anything else.
    """
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass

    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


# ========== Request DTOs ==========

class TicketDTO(BaseModel):
    """DTO for one normalized ticket as produced by the ingestion layer."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(..., description="Ticket identifier in the source system")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    last_activity_at: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("last_activity_at", "updated_at"),
        description="Last activity timestamp"
    )
    closed_at: Optional[datetime] = Field(None, description="Close timestamp")
    status: str = Field(default="", description="Raw status label")
    severity: Optional[str] = Field(None, description="Severity (case-management)")
    priority: Optional[str] = Field(None, description="Raw priority label")
    type: Optional[str] = Field(None, description="Raw issue type")
    owner: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("owner", "assignee"),
        description="Owner or assignee"
    )
    client: str = Field(
        default="",
        validation_alias=AliasChoices("client", "company"),
        description="Client / company name"
    )
    reporter: Optional[str] = None
    region: Optional[str] = None
    key: Optional[str] = Field(None, description="Issue key (e.g. PROJ-123), when distinct from id")

    @field_validator("created_at", "last_activity_at", "closed_at", mode="before")
    @classmethod
    def lenient_timestamp(cls, v: Any) -> Optional[datetime]:
        """Unreadable timestamps become None."""
        return parse_timestamp(v)

    @field_validator("status", "client", mode="before")
    @classmethod
    def blank_for_none(cls, v: Any) -> Any:
        return "" if v is None else v

    def to_domain(self, source: TicketSource) -> Ticket:
        """Convert to domain entity."""
        return Ticket(
            id=self.id,
            source=TicketSource(source),
            created_at=self.created_at,
            last_activity_at=self.last_activity_at,
            closed_at=self.closed_at,
            status=self.status,
            severity=self.severity,
            priority=self.priority,
            type=self.type,
            owner=self.owner,
            client=self.client,
            reporter=self.reporter,
            region=self.region,
            key=self.key,
        )


class TicketBatchRequest(BaseModel):
    """Request model carrying a ticket batch of a single source."""
    tickets: List[TicketDTO] = Field(default_factory=list, description="Tickets to evaluate")
    now: Optional[datetime] = Field(
        None,
        description="Reference time; defaults to the current UTC time"
    )


class AlertRequest(TicketBatchRequest):
    """Request model for building (and optionally dispatching) an alert."""
    recipients: Optional[List[str]] = Field(
        None,
        description="Overrides the configured recipients of the source"
    )
    file_name: Optional[str] = Field(None, description="Name of the uploaded export")
    dispatch: bool = Field(default=False, description="Send the alert to the webhook")


# ========== Response DTOs ==========

class OverdueInfoResponse(BaseModel):
    """Classification result of one ticket."""
    is_overdue: bool
    level: OverdueLevelStr
    hours_overdue: int
    days_overdue: int


class ClassifiedTicketResponse(BaseModel):
    """Ticket with its classification."""
    id: str
    source: str
    status: str
    severity: Optional[str] = None
    priority: Optional[str] = None
    type: Optional[str] = None
    owner: Optional[str] = None
    client: str = ""
    created_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None
    overdue: OverdueInfoResponse


class ClassificationResponse(BaseModel):
    """Response model for batch classification."""
    source: str
    now: datetime
    total: int
    tickets: List[ClassifiedTicketResponse]


class BucketResponse(BaseModel):
    """Counts of one breakdown bucket."""
    total: int
    overdue: int


class OwnerWorkloadResponse(BucketResponse):
    """Workload of one owner."""
    sla_compliance: float = Field(..., description="On-time share of the owner's tickets, in %")


class OverdueOwnerResponse(BaseModel):
    owner: str
    count: int


class TeamPerformanceResponse(BaseModel):
    """Team-level SLA metrics."""
    total_workload: int
    average_age_hours: int
    sla_compliance: int
    top_performer: str
    most_overdue: str


class AnalysisResponse(BaseModel):
    """Response model for the SLA analysis of a batch."""
    total: int
    overdue: int
    on_time: int
    overdue_rate: float = Field(..., description="Percentage of overdue tickets")
    by_severity: Dict[str, BucketResponse]
    by_priority: Dict[str, BucketResponse]
    by_type: Dict[str, BucketResponse]
    by_status: Dict[str, int]
    severity_levels: Dict[str, int]
    owner_workload: Dict[str, OwnerWorkloadResponse]
    top_overdue_owners: List[OverdueOwnerResponse]
    critical_overdue: int
    high_priority_type_overdue: int
    team_performance: TeamPerformanceResponse


class AlertResponse(BaseModel):
    """Response model for an overdue alert."""
    source: str
    source_label: str
    file_name: Optional[str] = None
    recipients: List[str]
    invalid_recipients: List[str] = Field(default_factory=list)
    overdue_count: int
    critical_count: int
    should_send: bool
    message: str
    dispatched: bool = Field(default=False, description="Whether the webhook accepted the alert")
    overdue_tickets: List[ClassifiedTicketResponse] = Field(default_factory=list)


class ExportRowResponse(BaseModel):
    """One flat spreadsheet row."""
    id: str
    source: str
    status: str
    severity: Optional[str] = None
    priority: Optional[str] = None
    normalized_priority: str
    type: Optional[str] = None
    normalized_type: str
    owner: Optional[str] = None
    client: str = ""
    created_at: Optional[str] = None
    last_activity_at: Optional[str] = None
    closed_at: Optional[str] = None
    hours_since_created: Optional[int] = None
    hours_since_updated: Optional[int] = None
    hours_overdue: int
    days_overdue: int
    overdue_level: OverdueLevelStr
    sla_status: SLAStatusStr
    is_high_priority_type: bool
    is_critical: bool


class ExportResponse(BaseModel):
    """Response model for export rows."""
    source: str
    total: int
    rows: List[ExportRowResponse]
