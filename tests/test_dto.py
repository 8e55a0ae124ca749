"""
Tests for request DTO parsing
"""
from datetime import date, datetime, timezone

import pytest

from backlog_sla.config import TicketSource
from backlog_sla.sla.application import TicketDTO, parse_timestamp


class TestParseTimestamp:
    """Test lenient timestamp parsing"""

    @pytest.mark.parametrize("raw,expected", [
        ("2024-01-15T10:00:00Z", datetime(2024, 1, 15, 10, tzinfo=timezone.utc)),
        ("2024-01-15 10:00:00", datetime(2024, 1, 15, 10)),
        ("15/01/2024 10:00:00", datetime(2024, 1, 15, 10)),
        ("15/01/2024 10:00", datetime(2024, 1, 15, 10)),
        ("15/01/2024", datetime(2024, 1, 15)),
        (date(2024, 1, 15), datetime(2024, 1, 15)),
    ])
    def test_supported_layouts(self, raw, expected):
        assert parse_timestamp(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "yesterday", "31/02/2024", 45000, []])
    def test_unreadable_values(self, raw):
        assert parse_timestamp(raw) is None


class TestTicketDTO:
    """Test ticket DTO conversion"""

    def test_aliases_and_defaults(self):
        dto = TicketDTO.model_validate({
            "id": 17,
            "updated_at": "2024-01-15T10:00:00Z",
            "assignee": "alice",
            "company": "ACME",
            "status": None,
        })
        ticket = dto.to_domain(TicketSource.ISSUE_TRACKER)
        assert ticket.id == "17"
        assert ticket.source == TicketSource.ISSUE_TRACKER
        assert ticket.created_at is None
        assert ticket.last_activity_at == datetime(2024, 1, 15, 10, tzinfo=timezone.utc)
        assert ticket.owner == "alice"
        assert ticket.client == "ACME"
        assert ticket.status == ""

    def test_invalid_timestamp_becomes_none(self):
        dto = TicketDTO(id="X", created_at="n/a")
        assert dto.created_at is None

    def test_issue_key_carried_to_domain(self):
        dto = TicketDTO.model_validate({"id": 10042, "key": "OPS-42"})
        assert dto.to_domain(TicketSource.ISSUE_TRACKER).key == "OPS-42"
