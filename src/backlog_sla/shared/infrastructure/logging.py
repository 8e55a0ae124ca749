"""
Structured Logging
==================

JSON-structured logging with correlation ID tracking.

Provides:
- Structured JSON logs (parseable by log aggregators)
- Correlation ID for request tracing
- Redaction of alert recipient addresses
- Timing of aggregation calls

Usage:
    from backlog_sla.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Batch analyzed", extra={"source": "jira", "ticket_count": 120})
"""

import logging
import re
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

from pythonjsonlogger import jsonlogger

_EMAIL_PATTERN = re.compile(r"[^\s@,;\"']+@[^\s@,;\"']+")


def redact_email(value: str) -> str:
    """Mask the local part of every email address in ``value``."""
    return _EMAIL_PATTERN.sub(lambda m: "***@" + m.group(0).split("@", 1)[1], value)


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter adding timestamp, correlation_id and environment.

    Recipient lists and any string field holding an email address are
    redacted before the record is emitted.
    """

    def add_fields(
        self,
        log_data: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_data, record, message_dict)

        if not log_data.get("timestamp"):
            log_data["timestamp"] = datetime.now(timezone.utc).isoformat()

        if hasattr(record, "correlation_id"):
            log_data["correlation_id"] = record.correlation_id
        elif "correlation_id" in message_dict:
            log_data["correlation_id"] = message_dict["correlation_id"]

        log_data["environment"] = getattr(record, "environment", "unknown")

        for key, value in list(log_data.items()):
            if key == "recipients" and isinstance(value, (list, tuple)):
                log_data[key] = [redact_email(str(item)) for item in value]
            elif isinstance(value, str) and "@" in value:
                log_data[key] = redact_email(value)


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
) -> None:
    """
    Configure structured JSON logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: Environment name for log context
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))
    handler.setFormatter(
        CustomJsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )

    def _inject_environment(record: logging.LogRecord) -> bool:
        record.environment = environment
        return True

    handler.addFilter(_inject_environment)
    root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


@contextmanager
def log_latency(logger: logging.Logger, operation: str, **extra_context: Any) -> Iterator[None]:
    """
    Context manager for measuring and logging operation latency.

    Usage:
        with log_latency(logger, "sla_analysis", source="jira", ticket_count=42):
            analysis = analyze(tickets, now)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{operation} completed",
            extra={
                "operation": operation,
                "latency_ms": round(latency_ms, 2),
                **extra_context,
            },
        )
