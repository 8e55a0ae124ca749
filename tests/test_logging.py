"""
Tests for structured logging
"""
import json
import logging

from backlog_sla.shared.infrastructure.logging import CustomJsonFormatter, log_latency, redact_email


def format_record(**extra) -> dict:
    formatter = CustomJsonFormatter(fmt="%(name)s %(levelname)s %(message)s")
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "Overdue alert sent", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(formatter.format(record))


class TestRedaction:
    """Recipient addresses never reach the logs in clear"""

    def test_redact_email(self):
        assert redact_email("to alice@example.com") == "to ***@example.com"

    def test_recipients_list_redacted(self):
        data = format_record(recipients=["alice@example.com", "bob@example.org"])
        assert data["recipients"] == ["***@example.com", "***@example.org"]

    def test_string_fields_redacted(self):
        data = format_record(error="rejected for carol@example.com")
        assert data["error"] == "rejected for ***@example.com"


class TestFormatter:
    """Test the added JSON fields"""

    def test_context_fields(self):
        data = format_record(correlation_id="abc", environment="staging")
        assert data["correlation_id"] == "abc"
        assert data["environment"] == "staging"
        assert data["timestamp"]
        assert data["message"] == "Overdue alert sent"

    def test_log_latency(self, caplog):
        logger = logging.getLogger("backlog_sla.tests")
        with caplog.at_level(logging.INFO, logger="backlog_sla.tests"):
            with log_latency(logger, "sla_analysis", ticket_count=3):
                pass
        record = caplog.records[-1]
        assert record.operation == "sla_analysis"
        assert record.ticket_count == 3
        assert record.latency_ms >= 0
