"""
SLA Domain Entities
====================

Pure Python domain entities for overdue classification and analysis.

Tickets are immutable records handed over by the ingestion layer. The
workload and analysis structures are accumulators built fresh for every
aggregation call.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from backlog_sla.config import HISTOGRAM_LEVELS, OverdueLevel, TicketSource
from backlog_sla.sla.domain.value_objects import OverdueInfo


@dataclass(frozen=True)
class Ticket:
    """
    Normalized, source-agnostic support ticket.

    Timestamps may be missing or invalid; the classifier degrades to "not
    overdue" for such tickets instead of rejecting them, so no validation
    happens here.
    """

    id: str
    source: TicketSource
    created_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    status: str = ""
    severity: Optional[str] = None
    priority: Optional[str] = None
    type: Optional[str] = None
    owner: Optional[str] = None
    client: str = ""
    reporter: Optional[str] = None
    region: Optional[str] = None
    key: Optional[str] = None


@dataclass(frozen=True)
class ClassifiedTicket:
    """A ticket together with its classification at a reference time."""

    ticket: Ticket
    overdue: OverdueInfo

    def to_dict(self) -> dict:
        ticket = self.ticket
        return {
            "id": ticket.id,
            "source": ticket.source.value,
            "status": ticket.status,
            "severity": ticket.severity,
            "priority": ticket.priority,
            "type": ticket.type,
            "owner": ticket.owner,
            "client": ticket.client,
            "created_at": ticket.created_at.isoformat() if isinstance(ticket.created_at, datetime) else None,
            "last_activity_at": (
                ticket.last_activity_at.isoformat() if isinstance(ticket.last_activity_at, datetime) else None
            ),
            "overdue": self.overdue.to_dict(),
        }


@dataclass
class BucketCount:
    """Total and overdue counts for one breakdown bucket."""

    total: int = 0
    overdue: int = 0

    def add(self, is_overdue: bool) -> None:
        self.total += 1
        if is_overdue:
            self.overdue += 1

    def to_dict(self) -> dict:
        return {"total": self.total, "overdue": self.overdue}


@dataclass
class OwnerWorkload(BucketCount):
    """
    Workload of one owner/assignee.

    ``sla_compliance`` is the on-time share of the owner's tickets; an owner
    with no tickets is fully compliant.
    """

    @property
    def overdue_ratio(self) -> float:
        if self.total == 0:
            return 0.0
        return self.overdue / self.total

    @property
    def sla_compliance(self) -> float:
        if self.total == 0:
            return 1.0
        return (self.total - self.overdue) / self.total

    def merge(self, other: "OwnerWorkload") -> "OwnerWorkload":
        """Combine two partial workloads of the same owner."""
        return OwnerWorkload(total=self.total + other.total, overdue=self.overdue + other.overdue)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "overdue": self.overdue,
            "sla_compliance": round(self.sla_compliance * 100, 2),
        }


@dataclass
class TeamPerformance:
    """Team-level SLA metrics derived from the owner workloads."""

    total_workload: int = 0
    average_age_hours: int = 0
    sla_compliance: int = 100
    top_performer: str = ""
    most_overdue: str = ""

    def to_dict(self) -> dict:
        return {
            "total_workload": self.total_workload,
            "average_age_hours": self.average_age_hours,
            "sla_compliance": self.sla_compliance,
            "top_performer": self.top_performer,
            "most_overdue": self.most_overdue,
        }


def _empty_histogram() -> Dict[OverdueLevel, int]:
    return {level: 0 for level in HISTOGRAM_LEVELS}


@dataclass
class SLAAnalysis:
    """Aggregated SLA analysis of one ticket batch."""

    total: int = 0
    overdue: int = 0
    on_time: int = 0
    by_severity: Dict[str, BucketCount] = field(default_factory=dict)
    by_priority: Dict[str, BucketCount] = field(default_factory=dict)
    by_type: Dict[str, BucketCount] = field(default_factory=dict)
    by_status: Dict[str, int] = field(default_factory=dict)
    severity_levels: Dict[OverdueLevel, int] = field(default_factory=_empty_histogram)
    owner_workload: Dict[str, OwnerWorkload] = field(default_factory=dict)
    top_overdue_owners: List[Dict[str, Any]] = field(default_factory=list)
    critical_overdue: int = 0
    high_priority_type_overdue: int = 0
    team_performance: TeamPerformance = field(default_factory=TeamPerformance)

    @property
    def overdue_rate(self) -> float:
        """Percentage of overdue tickets in the batch."""
        if self.total == 0:
            return 0.0
        return round(self.overdue / self.total * 100, 2)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "overdue": self.overdue,
            "on_time": self.on_time,
            "overdue_rate": self.overdue_rate,
            "by_severity": {key: bucket.to_dict() for key, bucket in self.by_severity.items()},
            "by_priority": {key: bucket.to_dict() for key, bucket in self.by_priority.items()},
            "by_type": {key: bucket.to_dict() for key, bucket in self.by_type.items()},
            "by_status": dict(self.by_status),
            "severity_levels": {level.value: count for level, count in self.severity_levels.items()},
            "owner_workload": {owner: load.to_dict() for owner, load in self.owner_workload.items()},
            "top_overdue_owners": list(self.top_overdue_owners),
            "critical_overdue": self.critical_overdue,
            "high_priority_type_overdue": self.high_priority_type_overdue,
            "team_performance": self.team_performance.to_dict(),
        }


@dataclass
class OverdueAlert:
    """
    Overdue-ticket alert handed to the email-composition collaborator.

    ``should_send`` is False when the batch holds fewer overdue tickets than
    the configured threshold; the alert is still returned so callers can
    report why nothing was sent.
    """

    source: TicketSource
    source_label: str
    recipients: List[str]
    overdue_tickets: List[ClassifiedTicket]
    critical_count: int
    send_threshold: int
    file_name: Optional[str] = None
    invalid_recipients: List[str] = field(default_factory=list)

    @property
    def overdue_count(self) -> int:
        return len(self.overdue_tickets)

    @property
    def should_send(self) -> bool:
        return self.overdue_count >= self.send_threshold

    @property
    def message(self) -> str:
        if not self.should_send:
            return (
                f"No alert sent - only {self.overdue_count} overdue {self.source_label} tickets "
                f"(threshold: {self.send_threshold})"
            )
        return f"{self.overdue_count} overdue {self.source_label} tickets ({self.critical_count} critical)"

    def to_payload(self) -> dict:
        """JSON body posted to the alert webhook."""
        return {
            "source": self.source.value,
            "source_label": self.source_label,
            "file_name": self.file_name,
            "recipients": list(self.recipients),
            "overdue_count": self.overdue_count,
            "critical_count": self.critical_count,
            "overdue_tickets": [item.to_dict() for item in self.overdue_tickets],
        }
