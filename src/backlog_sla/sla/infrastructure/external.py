"""
Alert Webhook Integration
==========================

Delivers overdue alerts to the email-composition service over HTTP, with:
- Circuit breaker to prevent cascade failures
- Exponential backoff retry
- Timeout handling
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import httpx

from backlog_sla.shared.infrastructure.logging import get_logger
from backlog_sla.sla.application.services import IAlertDispatcher
from backlog_sla.sla.domain import OverdueAlert

logger = get_logger(__name__)


class CircuitState:
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker for the alert webhook.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: After N failures, reject all requests for M seconds
    - HALF_OPEN: After timeout, allow one test request
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None

    @property
    def state(self) -> str:
        """Get current circuit state."""
        if self._state == CircuitState.OPEN and self._last_failure_time is not None:
            if self._clock() - self._last_failure_time >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
        return self._state

    def allow_request(self) -> bool:
        """Check if request should be allowed."""
        return self.state in (CircuitState.CLOSED, CircuitState.HALF_OPEN)

    def record_success(self) -> None:
        """Record successful request."""
        self._failure_count = 0
        self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        """Record failed request."""
        self._failure_count += 1
        self._last_failure_time = self._clock()

        if self._failure_count >= self.failure_threshold or self._state == CircuitState.HALF_OPEN:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker opened",
                extra={
                    "failure_count": self._failure_count,
                    "recovery_timeout": self.recovery_timeout
                }
            )


class WebhookAlertDispatcher(IAlertDispatcher):
    """
    Posts overdue alerts as JSON to the configured webhook.

    Never raises on delivery problems: an unconfigured webhook, an open
    circuit or exhausted retries all log and return False.
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        circuit_breaker: Optional[CircuitBreaker] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self._webhook_url = webhook_url
        self._timeout_seconds = timeout_seconds
        self._max_retries = max_retries
        self._circuit_breaker = circuit_breaker or CircuitBreaker()
        self._http_client = http_client
        self._sleep = sleep

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout_seconds)
        return self._http_client

    async def send(self, alert: OverdueAlert) -> bool:
        """
        Send an alert to the webhook.

        Returns:
            True if the webhook answered with a 2xx status, False otherwise
        """
        source = alert.source.value
        if not self._webhook_url:
            logger.warning(
                "Alert webhook URL not configured, skipping alert",
                extra={"source": source, "overdue_count": alert.overdue_count}
            )
            return False

        if not self._circuit_breaker.allow_request():
            logger.warning(
                "Circuit breaker open, skipping alert",
                extra={"source": source}
            )
            return False

        payload = alert.to_payload()

        for attempt in range(self._max_retries):
            try:
                client = await self._get_client()
                response = await client.post(self._webhook_url, json=payload)

                if response.is_success:
                    self._circuit_breaker.record_success()
                    logger.info(
                        "Overdue alert sent",
                        extra={
                            "source": source,
                            "overdue_count": alert.overdue_count,
                            "recipients": alert.recipients,
                        }
                    )
                    return True

                logger.warning(
                    "Alert webhook returned non-success status",
                    extra={"status_code": response.status_code, "attempt": attempt + 1}
                )
            except httpx.HTTPError as e:
                logger.error(
                    "Alert delivery failed",
                    extra={"error": str(e), "attempt": attempt + 1, "source": source}
                )

            if attempt < self._max_retries - 1:
                await self._sleep(2 ** attempt)

        self._circuit_breaker.record_failure()
        return False

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
