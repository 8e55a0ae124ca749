"""
Client Analytics Entities
==========================

Cross-source accumulators keyed by client identity.

Unlike the SLA analysis, these do not depend on the overdue classifier: a
client's risk is read from its incident/change mix alone.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from backlog_sla.config import INCIDENT_SOURCES, CHANGE_SOURCES, TicketSource
from backlog_sla.sla.domain import OverdueCalculator, Ticket
from backlog_sla.sla.domain.normalizers import client_key

MAX_RISK_SCORE = 100.0


def _later(first: Optional[datetime], second: Optional[datetime]) -> Optional[datetime]:
    if first is None:
        return second
    if second is None:
        return first
    return max(first, second)


@dataclass
class ClientAnalytics:
    """
    Per-client ticket counts and risk score.

    ``risk_score`` is the share of incident tickets, in percent, capped at
    100. It is recomputed after every fold and merge.

    ``key`` is the grouping identity; it defaults to the cleaned ``name``
    and is empty for tickets without a client.
    """

    name: str
    key: Optional[str] = None
    total_tickets: int = 0
    incidents: int = 0
    changes: int = 0
    by_source: Dict[str, int] = field(
        default_factory=lambda: {source.value: 0 for source in TicketSource}
    )
    last_activity: Optional[datetime] = None
    risk_score: float = 0.0

    def __post_init__(self):
        if self.key is None:
            self.key = client_key(self.name)

    def recompute_risk(self) -> None:
        self.risk_score = min(MAX_RISK_SCORE, self.incidents / max(self.total_tickets, 1) * 100)

    def fold(self, ticket: Ticket) -> None:
        """Count one ticket."""
        source = TicketSource(ticket.source)
        self.total_tickets += 1
        self.by_source[source.value] += 1
        if source in INCIDENT_SOURCES:
            self.incidents += 1
        elif source in CHANGE_SOURCES:
            self.changes += 1

        self.last_activity = _later(self.last_activity, OverdueCalculator.as_utc(ticket.created_at))
        self.recompute_risk()

    def merge(self, other: "ClientAnalytics") -> "ClientAnalytics":
        """Combine two partial accumulators of the same client."""
        merged = ClientAnalytics(
            name=self.name,
            key=self.key,
            total_tickets=self.total_tickets + other.total_tickets,
            incidents=self.incidents + other.incidents,
            changes=self.changes + other.changes,
            by_source={
                source: self.by_source.get(source, 0) + other.by_source.get(source, 0)
                for source in {**self.by_source, **other.by_source}
            },
            last_activity=_later(self.last_activity, other.last_activity),
        )
        merged.recompute_risk()
        return merged

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "total_tickets": self.total_tickets,
            "incidents": self.incidents,
            "changes": self.changes,
            "by_source": dict(self.by_source),
            "last_activity": self.last_activity.isoformat() if self.last_activity else None,
            "risk_score": round(self.risk_score, 2),
        }


@dataclass
class MonthlyVolume:
    """Ticket volume of one calendar month (``YYYY-MM``)."""

    month: str
    total: int = 0
    incidents: int = 0
    changes: int = 0
    by_source: Dict[str, int] = field(
        default_factory=lambda: {source.value: 0 for source in TicketSource}
    )

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "total": self.total,
            "incidents": self.incidents,
            "changes": self.changes,
            "by_source": dict(self.by_source),
        }


@dataclass
class GlobalAnalytics:
    """Dashboard-wide analytics across every source."""

    total_tickets: int = 0
    total_incidents: int = 0
    total_changes: int = 0
    total_clients: int = 0
    active_period_start: Optional[datetime] = None
    active_period_end: Optional[datetime] = None
    by_source: Dict[str, int] = field(default_factory=dict)
    by_month: List[MonthlyVolume] = field(default_factory=list)
    by_status: Dict[str, int] = field(default_factory=dict)
    by_priority: Dict[str, int] = field(default_factory=dict)
    client_analytics: List[ClientAnalytics] = field(default_factory=list)
    top_clients: List[ClientAnalytics] = field(default_factory=list)
    risk_clients: List[ClientAnalytics] = field(default_factory=list)

    @property
    def incident_rate(self) -> float:
        return self.total_incidents / self.total_tickets * 100 if self.total_tickets else 0.0

    @property
    def change_rate(self) -> float:
        return self.total_changes / self.total_tickets * 100 if self.total_tickets else 0.0

    @property
    def avg_tickets_per_client(self) -> float:
        return self.total_tickets / self.total_clients if self.total_clients else 0.0

    def to_dict(self) -> dict:
        return {
            "total_tickets": self.total_tickets,
            "total_incidents": self.total_incidents,
            "total_changes": self.total_changes,
            "total_clients": self.total_clients,
            "active_period": {
                "start": self.active_period_start.isoformat() if self.active_period_start else None,
                "end": self.active_period_end.isoformat() if self.active_period_end else None,
            },
            "by_source": dict(self.by_source),
            "by_month": [month.to_dict() for month in self.by_month],
            "by_status": dict(self.by_status),
            "by_priority": dict(self.by_priority),
            "client_analytics": [client.to_dict() for client in self.client_analytics],
            "top_clients": [client.to_dict() for client in self.top_clients],
            "risk_clients": [client.to_dict() for client in self.risk_clients],
            "performance_metrics": {
                "incident_rate": round(self.incident_rate, 2),
                "change_rate": round(self.change_rate, 2),
                "avg_tickets_per_client": round(self.avg_tickets_per_client, 2),
            },
        }
