"""
Unit tests for the SLA analysis aggregator and export rows
"""
import copy

import pytest

from backlog_sla.config import OverdueLevel, TicketSource
from backlog_sla.sla.application import analyze, build_export_rows, classify_batch
from backlog_sla.sla.domain import OwnerWorkload


@pytest.fixture
def case_batch(make_ticket):
    """Four case-management tickets with mixed outcomes"""
    return [
        # S1, 10h old -> CRITICAL
        make_ticket(created_hours_ago=10, updated_hours_ago=1, severity="1", status="Ouvert", owner="Alice"),
        # S2, 1h old -> on time
        make_ticket(created_hours_ago=1, severity="S2", status="Open", owner="Alice"),
        # closed -> on time regardless of age
        make_ticket(created_hours_ago=100, severity="S3", status="Fermé", owner="Bob"),
        # no severity, 20h old -> default ladder WARNING
        make_ticket(created_hours_ago=20, severity=None, status="", owner=""),
    ]


class TestAnalyzeTotals:
    """Test counts and histogram"""

    def test_totals(self, case_batch, now):
        analysis = analyze(case_batch, now, source=TicketSource.CASE_MANAGEMENT)
        assert analysis.total == 4
        assert analysis.overdue == 2
        assert analysis.on_time == 2
        assert analysis.overdue_rate == 50.0

    def test_level_histogram(self, case_batch, now):
        analysis = analyze(case_batch, now)
        assert analysis.severity_levels == {
            OverdueLevel.SEVERE: 0,
            OverdueLevel.CRITICAL: 1,
            OverdueLevel.WARNING: 1,
            OverdueLevel.STAGNANT: 0,
        }

    @pytest.mark.parametrize("size", [0, 1, 7, 50])
    def test_overdue_plus_on_time_is_total(self, make_ticket, now, size):
        tickets = [
            make_ticket(
                list(TicketSource)[i % 4],
                created_hours_ago=i * 13,
                updated_hours_ago=i * 5,
                severity=str(i % 4),
                priority="P1" if i % 2 else "High",
                type="Bug" if i % 3 else "Task",
                owner=f"owner-{i % 3}",
            )
            for i in range(size)
        ]
        analysis = analyze(tickets, now)
        assert analysis.overdue + analysis.on_time == analysis.total == size


class TestBreakdowns:
    """Test per-bucket breakdowns"""

    def test_severity_buckets(self, case_batch, now):
        analysis = analyze(case_batch, now, source=TicketSource.CASE_MANAGEMENT)
        assert analysis.by_severity["S1"].to_dict() == {"total": 1, "overdue": 1}
        assert analysis.by_severity["S2"].to_dict() == {"total": 1, "overdue": 0}
        assert analysis.by_severity["S3"].to_dict() == {"total": 1, "overdue": 0}

    def test_buckets_overlap(self, case_batch, now):
        """Every ticket also lands in a priority bucket"""
        analysis = analyze(case_batch, now)
        assert analysis.by_priority["medium"].to_dict() == {"total": 4, "overdue": 2}
        assert analysis.by_priority["highest"].total == 0

    def test_status_counts(self, case_batch, now):
        analysis = analyze(case_batch, now)
        assert analysis.by_status == {"open": 2, "closed": 1, "unknown": 1}

    def test_critical_overdue(self, case_batch, now):
        assert analyze(case_batch, now).critical_overdue == 1

    def test_issue_tracker_type_buckets(self, make_ticket, now):
        tickets = [
            make_ticket(TicketSource.ISSUE_TRACKER, created_hours_ago=30, type="Bug", priority="Medium"),
            make_ticket(TicketSource.ISSUE_TRACKER, created_hours_ago=30, type="Task", priority="Medium"),
            make_ticket(TicketSource.ISSUE_TRACKER, created_hours_ago=30, type="Sub-task", priority="Highest"),
        ]
        analysis = analyze(tickets, now)
        assert analysis.by_type["bug"].to_dict() == {"total": 1, "overdue": 1}
        assert analysis.by_type["task"].to_dict() == {"total": 1, "overdue": 0}
        assert analysis.by_type["subtask"].to_dict() == {"total": 1, "overdue": 1}
        assert analysis.high_priority_type_overdue == 1
        assert analysis.critical_overdue == 1

    def test_itsm_buckets(self, make_ticket, now):
        tickets = [
            make_ticket(TicketSource.ITSM_INCIDENT, created_hours_ago=3, priority="P1"),
            make_ticket(TicketSource.ITSM_CHANGE, created_hours_ago=3, priority="P1"),
        ]
        analysis = analyze(tickets, now)
        assert analysis.by_priority["P1"].to_dict() == {"total": 2, "overdue": 1}
        assert analysis.by_type["incident"].to_dict() == {"total": 1, "overdue": 1}
        assert analysis.by_type["change"].to_dict() == {"total": 1, "overdue": 0}

    def test_empty_batch_returns_zero_structures(self, now):
        analysis = analyze([], now, source=TicketSource.ISSUE_TRACKER)
        assert analysis.total == 0
        assert set(analysis.by_priority) == {"highest", "critical", "high", "medium", "low"}
        assert all(bucket.total == 0 for bucket in analysis.by_type.values())
        assert analysis.team_performance.sla_compliance == 100
        assert analysis.team_performance.average_age_hours == 0
        assert analysis.team_performance.top_performer == ""
        assert analysis.top_overdue_owners == []


class TestOwnerWorkload:
    """Test owner workloads and team performance"""

    def test_workloads(self, case_batch, now):
        analysis = analyze(case_batch, now)
        assert analysis.owner_workload["Alice"].to_dict() == {"total": 2, "overdue": 1, "sla_compliance": 50.0}
        assert analysis.owner_workload["Bob"].to_dict() == {"total": 1, "overdue": 0, "sla_compliance": 100.0}
        assert analysis.owner_workload["Unassigned"].overdue == 1

    def test_team_performance(self, case_batch, now):
        performance = analyze(case_batch, now).team_performance
        assert performance.total_workload == 4
        assert performance.sla_compliance == 50
        # (10 + 1 + 100 + 20) / 4 = 32.75
        assert performance.average_age_hours == 33
        assert performance.top_performer == "Bob"
        assert performance.most_overdue == "Unassigned"

    def test_average_age_skips_missing_creation(self, make_ticket, now):
        tickets = [
            make_ticket(created_hours_ago=10),
            make_ticket(created_hours_ago=10, created_at=None),
        ]
        assert analyze(tickets, now).team_performance.average_age_hours == 10

    def test_ties_keep_first_seen_owner(self, make_ticket, now):
        """Equal overdue ratios: the first owner in the batch wins both titles"""
        tickets = [
            make_ticket(created_hours_ago=20, severity="S1", owner="Zed"),
            make_ticket(created_hours_ago=1, severity="S1", owner="Zed"),
            make_ticket(created_hours_ago=20, severity="S1", owner="Amy"),
            make_ticket(created_hours_ago=1, severity="S1", owner="Amy"),
        ]
        performance = analyze(tickets, now).team_performance
        assert performance.top_performer == "Zed"
        assert performance.most_overdue == "Zed"

    def test_top_overdue_owners_stable(self, case_batch, now):
        analysis = analyze(case_batch, now)
        assert analysis.top_overdue_owners == [
            {"owner": "Alice", "count": 1},
            {"owner": "Unassigned", "count": 1},
        ]

    def test_top_overdue_owners_limit(self, make_ticket, now):
        tickets = [
            make_ticket(created_hours_ago=20, severity="S1", owner=f"owner-{i}")
            for i in range(8)
        ]
        assert len(analyze(tickets, now, top_owners_limit=3).top_overdue_owners) == 3

    def test_roster_is_seeded(self, case_batch, now):
        """Roster members appear with zero counts and do not affect the titles"""
        analysis = analyze(case_batch, now, roster=["Zoe"])
        assert analysis.owner_workload["Zoe"].to_dict() == {"total": 0, "overdue": 0, "sla_compliance": 100.0}
        assert analysis.team_performance.top_performer == "Bob"

    def test_owner_aliases(self, make_ticket, now):
        tickets = [make_ticket(created_hours_ago=1, owner="12345")]
        analysis = analyze(tickets, now, owner_aliases={"12345": "Alice Martin"})
        assert "Alice Martin" in analysis.owner_workload

    def test_workload_merge(self):
        merged = OwnerWorkload(total=3, overdue=1).merge(OwnerWorkload(total=2, overdue=2))
        assert (merged.total, merged.overdue) == (5, 3)
        assert merged.overdue_ratio == pytest.approx(0.6)


class TestIdempotence:
    """Aggregation has no hidden state"""

    def test_same_output_twice(self, case_batch, now):
        first = analyze(case_batch, now).to_dict()
        second = analyze(case_batch, now).to_dict()
        assert first == second

    def test_input_not_mutated(self, case_batch, now):
        snapshot = copy.deepcopy(case_batch)
        analyze(case_batch, now)
        classify_batch(case_batch, now)
        assert case_batch == snapshot

    def test_partition_and_merge(self, case_batch, now):
        """Owner workloads of two halves add up to the whole"""
        whole = analyze(case_batch, now).owner_workload
        left = analyze(case_batch[:2], now).owner_workload
        right = analyze(case_batch[2:], now).owner_workload
        for owner, workload in whole.items():
            combined = left.get(owner, OwnerWorkload()).merge(right.get(owner, OwnerWorkload()))
            assert combined == workload


class TestExportRows:
    """Test spreadsheet export rows"""

    def test_row_fields(self, make_ticket, now):
        ticket = make_ticket(
            TicketSource.ISSUE_TRACKER,
            created_hours_ago=30,
            updated_hours_ago=29,
            id="PROJ-42",
            type="Bug",
            priority="Moyenne",
            owner="Alice",
            client="ACME",
        )
        row = build_export_rows([ticket], now)[0]
        assert row["id"] == "PROJ-42"
        assert row["source"] == "jira"
        assert row["normalized_priority"] == "medium"
        assert row["normalized_type"] == "bug"
        assert row["hours_since_created"] == 30
        assert row["hours_since_updated"] == 29
        assert row["overdue_level"] == "warning"
        assert row["sla_status"] == "overdue"
        assert row["is_high_priority_type"] is True
        assert row["is_critical"] is False
        assert row["created_at"] == ticket.created_at.isoformat()

    def test_missing_timestamps(self, make_ticket, now):
        ticket = make_ticket(created_hours_ago=5, created_at=None)
        row = build_export_rows([ticket], now)[0]
        assert row["hours_since_created"] is None
        assert row["created_at"] is None
        assert row["sla_status"] == "on_time"
        assert row["is_high_priority_type"] is False
