"""
SLA Infrastructure Layer
=========================

Concrete implementations of the application collaborator interfaces:
- YAMLAlertingConfigProvider: alerting configuration from YAML
- WebhookAlertDispatcher: overdue alerts over HTTP with a circuit breaker
"""

from backlog_sla.sla.infrastructure.config_provider import (
    YAMLAlertingConfigProvider,
    StaticAlertingConfigProvider,
)
from backlog_sla.sla.infrastructure.external import (
    CircuitBreaker,
    CircuitState,
    WebhookAlertDispatcher,
)

__all__ = [
    "YAMLAlertingConfigProvider",
    "StaticAlertingConfigProvider",
    "CircuitBreaker",
    "CircuitState",
    "WebhookAlertDispatcher",
]
