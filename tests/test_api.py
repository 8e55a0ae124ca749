"""
Tests for the HTTP interface
"""
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from backlog_sla.config import Settings
from backlog_sla.main import create_app
from backlog_sla.sla.interfaces.controllers import get_alert_dispatcher

NOW = "2024-01-15T12:00:00Z"


@pytest.fixture
def client(tmp_path):
    config_path = tmp_path / "alerting.yaml"
    config_path.write_text(
        "recipients:\n"
        "  clarify:\n"
        "    - support@example.com\n"
        "owner_aliases:\n"
        "  '12345': Alice Martin\n",
        encoding="utf-8",
    )
    settings = Settings(alerting_config_path=config_path, alert_webhook_url=None)
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def case_ticket(**fields):
    ticket = {
        "id": "CASE-1",
        "created_at": "2024-01-15T02:00:00Z",
        "last_activity_at": "2024-01-15T11:00:00Z",
        "status": "Ouvert",
        "severity": "1",
        "owner": "12345",
        "client": "ACME",
    }
    ticket.update(fields)
    return ticket


class TestHealth:
    """Test service endpoints"""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["alerting_config"] == "loaded"
        assert data["checks"]["alert_webhook"] == "not_configured"

    def test_root_lists_sources(self, client):
        data = client.get("/").json()
        assert data["sources"] == ["clarify", "jira", "itsm-change", "itsm-incident"]

    def test_correlation_id_header(self, client):
        response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"


class TestClassifyEndpoint:
    """Test POST /sla/{source}/classify"""

    def test_classify(self, client):
        response = client.post("/sla/clarify/classify", json={"now": NOW, "tickets": [case_ticket()]})
        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "clarify"
        assert data["total"] == 1
        assert data["tickets"][0]["overdue"] == {
            "is_overdue": True,
            "level": "critical",
            "hours_overdue": 10,
            "days_overdue": 0,
        }

    def test_unknown_source(self, client):
        response = client.post("/sla/zendesk/classify", json={"tickets": []})
        assert response.status_code == 404
        assert "zendesk" in response.json()["detail"]

    def test_unreadable_timestamp_degrades(self, client):
        ticket = case_ticket(created_at="not a date")
        response = client.post("/sla/clarify/classify", json={"now": NOW, "tickets": [ticket]})
        assert response.status_code == 200
        assert response.json()["tickets"][0]["overdue"]["level"] == "none"

    def test_day_first_timestamps_and_aliases(self, client):
        ticket = {
            "id": 4242,
            "created_at": "14/01/2024 12:00:00",
            "updated_at": "14/01/2024 12:00:00",
            "type": "Bug",
            "priority": "Medium",
            "assignee": "bob",
            "status": "To Do",
        }
        response = client.post("/sla/jira/classify", json={"now": NOW, "tickets": [ticket]})
        assert response.status_code == 200
        item = response.json()["tickets"][0]
        assert item["id"] == "4242"
        assert item["owner"] == "bob"
        assert item["overdue"]["level"] == "warning"


class TestAnalysisEndpoint:
    """Test POST /sla/{source}/analysis"""

    def test_analysis(self, client):
        tickets = [
            case_ticket(),
            case_ticket(id="CASE-2", severity="3", owner="bob", created_at="2024-01-15T11:00:00Z"),
        ]
        response = client.post("/sla/clarify/analysis", json={"now": NOW, "tickets": tickets})
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["overdue"] == 1
        assert data["on_time"] == 1
        assert data["severity_levels"]["critical"] == 1
        assert data["critical_overdue"] == 1
        assert data["owner_workload"]["Alice Martin"]["overdue"] == 1
        assert data["team_performance"]["most_overdue"] == "Alice Martin"
        assert data["team_performance"]["top_performer"] == "bob"

    def test_empty_batch(self, client):
        response = client.post("/sla/itsm-change/analysis", json={"tickets": []})
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 0
        assert set(data["by_priority"]) == {"P1", "P2", "P3"}
        assert data["team_performance"]["sla_compliance"] == 100


class TestAlertEndpoint:
    """Test POST /sla/{source}/alerts"""

    def test_alert_uses_configured_recipients(self, client):
        response = client.post("/sla/clarify/alerts", json={"now": NOW, "tickets": [case_ticket()]})
        assert response.status_code == 200
        data = response.json()
        assert data["recipients"] == ["support@example.com"]
        assert data["should_send"] is True
        assert data["dispatched"] is False
        assert data["overdue_count"] == 1

    def test_dispatch_without_webhook(self, client):
        response = client.post(
            "/sla/clarify/alerts",
            json={"now": NOW, "tickets": [case_ticket()], "dispatch": True},
        )
        assert response.status_code == 200
        assert response.json()["dispatched"] is False

    def test_invalid_recipients(self, client):
        response = client.post(
            "/sla/clarify/alerts",
            json={"now": NOW, "tickets": [case_ticket()], "recipients": ["nope"]},
        )
        assert response.status_code == 422
        assert response.json()["details"]["invalid_recipients"] == ["nope"]


class TestAlertDispatcherDependency:
    """Test the dispatcher lifecycle outside the application lifespan"""

    @pytest.mark.asyncio
    async def test_request_scoped_dispatcher_is_closed(self):
        request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace()))
        settings = Settings(alert_webhook_url="https://mail.example.com/alerts")
        dependency = get_alert_dispatcher(request, settings)

        dispatcher = await dependency.__anext__()
        http_client = await dispatcher._get_client()
        with pytest.raises(StopAsyncIteration):
            await dependency.__anext__()

        assert http_client.is_closed
        assert not hasattr(request.app.state, "alert_dispatcher")

    @pytest.mark.asyncio
    async def test_lifespan_dispatcher_is_shared(self):
        class RecordingDispatcher:
            closed = False

            async def close(self):
                self.closed = True

        shared = RecordingDispatcher()
        request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(alert_dispatcher=shared)))
        dependency = get_alert_dispatcher(request, Settings())

        assert await dependency.__anext__() is shared
        with pytest.raises(StopAsyncIteration):
            await dependency.__anext__()
        assert not shared.closed

    def test_dispatch_without_lifespan(self, tmp_path):
        settings = Settings(alerting_config_path=tmp_path / "absent.yaml", alert_webhook_url=None)
        app = create_app(settings)
        response = TestClient(app).post(
            "/sla/clarify/alerts",
            json={"now": NOW, "tickets": [case_ticket()], "recipients": ["ops@example.com"], "dispatch": True},
        )
        assert response.status_code == 200
        assert response.json()["dispatched"] is False
        assert not hasattr(app.state, "alert_dispatcher")


class TestExportEndpoint:
    """Test POST /sla/{source}/export"""

    def test_export(self, client):
        response = client.post("/sla/clarify/export", json={"now": NOW, "tickets": [case_ticket()]})
        assert response.status_code == 200
        row = response.json()["rows"][0]
        assert row["sla_status"] == "overdue"
        assert row["overdue_level"] == "critical"
        assert row["hours_since_created"] == 10
        assert row["is_critical"] is True


class TestClientEndpoints:
    """Test the client analytics endpoints"""

    @pytest.fixture
    def tickets(self):
        return [
            {"id": "1", "source": "clarify", "client": "ACME", "created_at": "2024-01-02T00:00:00Z"},
            {"id": "2", "source": "itsm-incident", "client": "acme", "created_at": "2024-01-03T00:00:00Z"},
            {"id": "3", "source": "jira", "client": "Globex", "created_at": "2024-02-01T00:00:00Z",
             "status": "Done", "priority": "High"},
        ]

    def test_client_analytics(self, client, tickets):
        response = client.post("/clients/analytics", json={"tickets": tickets})
        assert response.status_code == 200
        data = response.json()
        assert data["total_clients"] == 2
        assert data["clients"][0]["name"] == "ACME"
        assert data["clients"][0]["risk_score"] == 100
        assert [c["name"] for c in data["risk_clients"]] == ["ACME"]

    def test_global_analytics(self, client, tickets):
        response = client.post(
            "/clients/global",
            json={"tickets": tickets, "filters": {"sources": ["clarify", "jira"]}},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total_tickets"] == 2
        assert data["by_month"][0]["month"] == "2024-01"
        assert data["by_status"] == {"unknown": 1, "Done": 1}
        assert data["performance_metrics"]["incident_rate"] == 50.0

    def test_unknown_ticket_source_rejected(self, client):
        response = client.post("/clients/analytics", json={"tickets": [{"id": "1", "source": "zendesk"}]})
        assert response.status_code == 422
