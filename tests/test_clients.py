"""
Unit tests for the client risk aggregator and global analytics
"""
from datetime import datetime, timezone

import pytest

from backlog_sla.config import TicketSource
from backlog_sla.clients.application import (
    AnalyticsFilters,
    aggregate_clients,
    calculate_global_analytics,
    merge_client_analytics,
    risk_clients,
    top_clients,
)
from backlog_sla.sla.domain import Ticket


def ticket(source, client, created=None, **fields):
    fields.setdefault("id", f"{source.value}-{client}-{created}")
    return Ticket(source=source, client=client, created_at=created, **fields)


def day(month, dom):
    return datetime(2024, month, dom, tzinfo=timezone.utc)


@pytest.fixture
def mixed_batch():
    return [
        ticket(TicketSource.CASE_MANAGEMENT, "ACME", day(1, 1), status="Ouvert", priority="Haute"),
        ticket(TicketSource.ISSUE_TRACKER, "acme", day(1, 5), status="To Do", priority="High"),
        ticket(TicketSource.ITSM_INCIDENT, " Acme ", day(2, 3)),
        ticket(TicketSource.ISSUE_TRACKER, "Globex", day(2, 10), status="Done", priority="High"),
        ticket(TicketSource.ITSM_CHANGE, "Initech", None),
    ]


class TestAggregateClients:
    """Test per-client folding"""

    def test_groups_case_insensitively(self, mixed_batch):
        clients = aggregate_clients(mixed_batch)
        acme = clients[0]
        assert acme.name == "ACME"
        assert acme.total_tickets == 3
        assert acme.incidents == 2
        assert acme.changes == 1
        assert acme.by_source == {"clarify": 1, "jira": 1, "itsm-change": 0, "itsm-incident": 1}
        assert acme.last_activity == day(2, 3)
        assert acme.risk_score == pytest.approx(200 / 3)

    def test_sorted_by_total_with_stable_ties(self, mixed_batch):
        names = [client.name for client in aggregate_clients(mixed_batch)]
        assert names == ["ACME", "Globex", "Initech"]

    def test_missing_creation_keeps_last_activity_empty(self, mixed_batch):
        initech = aggregate_clients(mixed_batch)[2]
        assert initech.last_activity is None
        assert initech.risk_score == 0

    def test_blank_client(self):
        clients = aggregate_clients([ticket(TicketSource.CASE_MANAGEMENT, "")])
        assert clients[0].name == "unknown"

    def test_blank_client_kept_apart_from_client_named_unknown(self):
        clients = aggregate_clients([
            ticket(TicketSource.CASE_MANAGEMENT, "Unknown"),
            ticket(TicketSource.ITSM_INCIDENT, "Unknown"),
            ticket(TicketSource.ITSM_CHANGE, "  "),
        ])
        assert [(client.name, client.total_tickets) for client in clients] == [("Unknown", 2), ("unknown", 1)]
        assert [client.key for client in clients] == ["unknown", ""]

    def test_risk_score_bounds(self, mixed_batch):
        for client in aggregate_clients(mixed_batch):
            assert 0 <= client.risk_score <= 100

    def test_all_incidents_is_full_risk(self):
        tickets = [
            ticket(TicketSource.CASE_MANAGEMENT, "Umbrella"),
            ticket(TicketSource.ITSM_INCIDENT, "UMBRELLA"),
        ]
        assert aggregate_clients(tickets)[0].risk_score == 100

    def test_empty(self):
        assert aggregate_clients([]) == []


class TestDerivedViews:
    """Test top and risk client views"""

    def test_risk_threshold_is_strict(self):
        tickets = (
            [ticket(TicketSource.CASE_MANAGEMENT, "Edge")] * 7
            + [ticket(TicketSource.ISSUE_TRACKER, "Edge")] * 3
            + [ticket(TicketSource.ITSM_INCIDENT, "Risky")] * 2
        )
        clients = aggregate_clients(tickets)
        assert clients[0].risk_score == pytest.approx(70)
        assert [client.name for client in risk_clients(clients)] == ["Risky"]

    def test_view_limits(self):
        tickets = [ticket(TicketSource.CASE_MANAGEMENT, f"client-{i}") for i in range(20)]
        clients = aggregate_clients(tickets)
        assert len(top_clients(clients)) == 15
        assert len(risk_clients(clients)) == 5
        assert len(top_clients(clients, limit=3)) == 3


class TestMerge:
    """Partition-and-merge gives the same result as one pass"""

    def test_merge_partitions(self, mixed_batch):
        whole = aggregate_clients(mixed_batch)
        merged = merge_client_analytics(
            aggregate_clients(mixed_batch[:2]),
            aggregate_clients(mixed_batch[2:]),
        )
        assert [client.to_dict() for client in merged] == [client.to_dict() for client in whole]

    def test_merge_keeps_blank_client_apart(self):
        merged = merge_client_analytics(
            aggregate_clients([ticket(TicketSource.CASE_MANAGEMENT, "")]),
            aggregate_clients([ticket(TicketSource.ITSM_CHANGE, "UNKNOWN")]),
            aggregate_clients([ticket(TicketSource.ITSM_INCIDENT, None)]),
        )
        assert sorted((client.key, client.total_tickets) for client in merged) == [("", 2), ("unknown", 1)]


class TestGlobalAnalytics:
    """Test dashboard-wide analytics"""

    def test_totals_and_breakdowns(self, mixed_batch):
        result = calculate_global_analytics(mixed_batch)
        assert result.total_tickets == 5
        assert result.total_incidents == 2
        assert result.total_changes == 3
        assert result.total_clients == 3
        assert result.by_source == {"clarify": 1, "jira": 2, "itsm-change": 1, "itsm-incident": 1}
        assert result.by_status == {"Ouvert": 1, "To Do": 1, "Done": 1}
        assert result.by_priority == {"Haute": 1, "High": 2}
        assert result.active_period_start == day(1, 1)
        assert result.active_period_end == day(2, 10)

    def test_by_month(self, mixed_batch):
        months = calculate_global_analytics(mixed_batch).by_month
        assert [month.month for month in months] == ["2024-01", "2024-02"]
        assert months[0].total == 2
        assert months[0].incidents == 1
        assert months[0].changes == 1
        assert months[1].by_source["itsm-incident"] == 1

    def test_performance_metrics(self, mixed_batch):
        metrics = calculate_global_analytics(mixed_batch).to_dict()["performance_metrics"]
        assert metrics == {"incident_rate": 40.0, "change_rate": 60.0, "avg_tickets_per_client": 1.67}

    def test_source_filter(self, mixed_batch):
        filters = AnalyticsFilters(sources=(TicketSource.ISSUE_TRACKER,))
        result = calculate_global_analytics(mixed_batch, filters)
        assert result.total_tickets == 2
        assert result.total_incidents == 0

    def test_date_filter_keeps_undated_tickets(self, mixed_batch):
        filters = AnalyticsFilters(date_start=day(2, 1))
        result = calculate_global_analytics(mixed_batch, filters)
        assert result.total_tickets == 3
        assert {client.name for client in result.client_analytics} == {"Acme", "Globex", "Initech"}

    def test_client_and_search_filters(self, mixed_batch):
        assert calculate_global_analytics(mixed_batch, AnalyticsFilters(clients=("ACME",))).total_tickets == 3
        assert calculate_global_analytics(mixed_batch, AnalyticsFilters(search="glob")).total_tickets == 1

    def test_search_matches_issue_key(self):
        tickets = [
            ticket(TicketSource.ISSUE_TRACKER, "Globex", id="10042", key="OPS-42"),
            ticket(TicketSource.ISSUE_TRACKER, "Globex", id="10043", key="OPS-43"),
        ]
        result = calculate_global_analytics(tickets, AnalyticsFilters(search="ops-42"))
        assert result.total_tickets == 1

    def test_empty(self):
        result = calculate_global_analytics([])
        assert result.total_tickets == 0
        assert result.to_dict()["performance_metrics"]["incident_rate"] == 0.0
        assert result.active_period_start is None
