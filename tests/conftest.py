"""
pytest configuration and shared fixtures
"""
from datetime import datetime, timedelta, timezone

import pytest

from backlog_sla.config import TicketSource
from backlog_sla.sla.domain import Ticket

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def hours_ago(hours: float) -> datetime:
    return NOW - timedelta(hours=hours)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time shared by the classification tests"""
    return NOW


@pytest.fixture
def make_ticket():
    """
    Factory for tickets aged relative to ``NOW``.

    ``updated_hours_ago`` defaults to ``created_hours_ago`` (never touched).
    """
    counter = {"value": 0}

    def _make(
        source=TicketSource.CASE_MANAGEMENT,
        created_hours_ago=0,
        updated_hours_ago=None,
        **fields
    ) -> Ticket:
        counter["value"] += 1
        if updated_hours_ago is None:
            updated_hours_ago = created_hours_ago
        fields.setdefault("id", f"T-{counter['value']}")
        fields.setdefault("status", "Open")
        return Ticket(
            source=source,
            created_at=fields.pop("created_at", hours_ago(created_hours_ago)),
            last_activity_at=fields.pop("last_activity_at", hours_ago(updated_hours_ago)),
            **fields
        )

    return _make
