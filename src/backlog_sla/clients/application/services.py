"""
Client Analytics Services
==========================

Folds tickets from every source by client identity and derives the
dashboard-wide analytics.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from backlog_sla.config import CHANGE_SOURCES, INCIDENT_SOURCES, Settings, TicketSource, get_settings
from backlog_sla.clients.domain import ClientAnalytics, GlobalAnalytics, MonthlyVolume
from backlog_sla.shared.infrastructure.logging import get_logger, log_latency
from backlog_sla.sla.domain import OverdueCalculator, Ticket
from backlog_sla.sla.domain.normalizers import UNKNOWN_CLIENT, client_key

logger = get_logger(__name__)

DEFAULT_TOP_CLIENTS = 15
DEFAULT_RISK_THRESHOLD = 70.0
DEFAULT_RISK_CLIENTS = 5

# Sources whose raw status/priority labels feed the global breakdowns
LABELLED_SOURCES = frozenset({TicketSource.CASE_MANAGEMENT, TicketSource.ISSUE_TRACKER})


def _by_total(analytics: Iterable[ClientAnalytics]) -> List[ClientAnalytics]:
    # sorted() is stable, so ties keep first-seen order
    return sorted(analytics, key=lambda client: client.total_tickets, reverse=True)


def aggregate_clients(tickets: Iterable[Ticket]) -> List[ClientAnalytics]:
    """
    Group tickets of all sources by case-insensitive client name.

    The display name is the first raw spelling seen for the client.

    Returns:
        ClientAnalytics sorted by total tickets, descending
    """
    clients: Dict[str, ClientAnalytics] = {}
    for ticket in tickets:
        key = client_key(ticket.client)
        analytics = clients.get(key)
        if analytics is None:
            analytics = ClientAnalytics(
                name=(ticket.client or "").strip() or UNKNOWN_CLIENT,
                key=key,
            )
            clients[key] = analytics
        analytics.fold(ticket)
    return _by_total(clients.values())


def merge_client_analytics(*partitions: Iterable[ClientAnalytics]) -> List[ClientAnalytics]:
    """Merge client analytics computed on separate ticket partitions."""
    merged: Dict[str, ClientAnalytics] = {}
    for partition in partitions:
        for analytics in partition:
            existing = merged.get(analytics.key) or ClientAnalytics(name=analytics.name, key=analytics.key)
            merged[analytics.key] = existing.merge(analytics)
    return _by_total(merged.values())


def top_clients(analytics: Sequence[ClientAnalytics], limit: int = DEFAULT_TOP_CLIENTS) -> List[ClientAnalytics]:
    """Busiest clients; ``analytics`` must already be sorted by total."""
    return list(analytics[:limit])


def risk_clients(
    analytics: Sequence[ClientAnalytics],
    threshold: float = DEFAULT_RISK_THRESHOLD,
    limit: int = DEFAULT_RISK_CLIENTS
) -> List[ClientAnalytics]:
    """Clients whose risk score is strictly above ``threshold``."""
    return [client for client in analytics if client.risk_score > threshold][:limit]


@dataclass(frozen=True)
class AnalyticsFilters:
    """
    Filters of the global dashboard.

    Tickets without a creation timestamp are never excluded by the date
    range. Client names match case-insensitively; ``search`` is a
    case-insensitive substring of the ticket id, issue key or client name.
    """
    date_start: Optional[datetime] = None
    date_end: Optional[datetime] = None
    sources: Sequence[TicketSource] = ()
    clients: Sequence[str] = ()
    search: str = ""

    def matches(self, ticket: Ticket) -> bool:
        created_at = OverdueCalculator.as_utc(ticket.created_at)
        start = OverdueCalculator.as_utc(self.date_start)
        end = OverdueCalculator.as_utc(self.date_end)

        if created_at is not None:
            if start is not None and created_at < start:
                return False
            if end is not None and created_at > end:
                return False

        if self.sources and TicketSource(ticket.source) not in {TicketSource(s) for s in self.sources}:
            return False

        if self.clients and client_key(ticket.client) not in {client_key(c) for c in self.clients}:
            return False

        needle = self.search.strip().lower()
        if needle:
            return any(needle in (value or "").lower() for value in (ticket.id, ticket.key, ticket.client))

        return True


def _label(raw: Optional[str]) -> str:
    return (raw or "").strip() or "unknown"


def calculate_global_analytics(
    tickets: Iterable[Ticket],
    filters: Optional[AnalyticsFilters] = None,
    top_limit: int = DEFAULT_TOP_CLIENTS,
    risk_threshold: float = DEFAULT_RISK_THRESHOLD,
    risk_limit: int = DEFAULT_RISK_CLIENTS
) -> GlobalAnalytics:
    """
    Compute dashboard-wide analytics over the filtered tickets.

    Args:
        tickets: Tickets of any mix of sources
        filters: Optional dashboard filters
        top_limit: Size of the top-clients view
        risk_threshold: Risk score above which a client is at risk
        risk_limit: Size of the risk-clients view

    Returns:
        GlobalAnalytics of the filtered batch
    """
    filters = filters or AnalyticsFilters()
    selected = [ticket for ticket in tickets if filters.matches(ticket)]

    result = GlobalAnalytics(
        total_tickets=len(selected),
        by_source={source.value: 0 for source in TicketSource},
    )
    months: Dict[str, MonthlyVolume] = {}

    for ticket in selected:
        source = TicketSource(ticket.source)
        is_incident = source in INCIDENT_SOURCES
        result.by_source[source.value] += 1
        if is_incident:
            result.total_incidents += 1
        elif source in CHANGE_SOURCES:
            result.total_changes += 1

        created_at = OverdueCalculator.as_utc(ticket.created_at)
        if created_at is not None:
            if result.active_period_start is None or created_at < result.active_period_start:
                result.active_period_start = created_at
            if result.active_period_end is None or created_at > result.active_period_end:
                result.active_period_end = created_at

            month_key = created_at.strftime("%Y-%m")
            month = months.setdefault(month_key, MonthlyVolume(month=month_key))
            month.total += 1
            month.by_source[source.value] += 1
            if is_incident:
                month.incidents += 1
            else:
                month.changes += 1

        if source in LABELLED_SOURCES:
            status = _label(ticket.status)
            priority = _label(ticket.priority)
            result.by_status[status] = result.by_status.get(status, 0) + 1
            result.by_priority[priority] = result.by_priority.get(priority, 0) + 1

    result.by_month = [months[key] for key in sorted(months)]
    result.client_analytics = aggregate_clients(selected)
    result.total_clients = len(result.client_analytics)
    result.top_clients = top_clients(result.client_analytics, top_limit)
    result.risk_clients = risk_clients(result.client_analytics, risk_threshold, risk_limit)
    return result


class ClientAnalyticsService:
    """Service wrapping client aggregation with the configured view sizes."""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()

    def client_analytics(self, tickets: Sequence[Ticket]) -> Dict[str, List[ClientAnalytics]]:
        """Client analytics plus the top and risk views."""
        with log_latency(logger, "client_analytics", ticket_count=len(tickets)):
            clients = aggregate_clients(tickets)

        return {
            "clients": clients,
            "top_clients": top_clients(clients, self._settings.top_clients_limit),
            "risk_clients": risk_clients(
                clients,
                self._settings.risk_score_threshold,
                self._settings.risk_clients_limit,
            ),
        }

    def global_analytics(
        self,
        tickets: Sequence[Ticket],
        filters: Optional[AnalyticsFilters] = None
    ) -> GlobalAnalytics:
        """Dashboard-wide analytics."""
        with log_latency(logger, "global_analytics", ticket_count=len(tickets)):
            result = calculate_global_analytics(
                tickets,
                filters,
                top_limit=self._settings.top_clients_limit,
                risk_threshold=self._settings.risk_score_threshold,
                risk_limit=self._settings.risk_clients_limit,
            )

        logger.info(
            "Global analytics computed",
            extra={
                "total_tickets": result.total_tickets,
                "total_clients": result.total_clients,
                "risk_clients": len(result.risk_clients),
            }
        )
        return result
