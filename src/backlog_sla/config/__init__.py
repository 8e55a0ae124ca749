"""
Configuration Module
====================

Application settings and shared enumerations, using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="backlog-sla", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root logging level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Alerting ==========
    alerting_config_path: Path = Field(
        default=Path("alerting.yaml"),
        description="Path to the alerting YAML file (recipients, owner aliases, roster)"
    )
    alert_webhook_url: Optional[str] = Field(
        default=None,
        description="Endpoint of the email-composition service that receives overdue alerts"
    )
    alert_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for alert webhook calls",
        ge=0.1,
        le=30
    )
    alert_send_threshold: int = Field(
        default=1,
        description="Minimum number of overdue tickets before an alert is sent",
        ge=1
    )

    # ========== Analytics ==========
    top_clients_limit: int = Field(default=15, description="Size of the top-clients view", ge=1)
    risk_clients_limit: int = Field(default=5, description="Size of the risk-clients view", ge=1)
    risk_score_threshold: float = Field(
        default=70.0,
        description="Risk score above which a client is listed as at risk",
        ge=0,
        le=100
    )
    top_overdue_owners_limit: int = Field(
        default=5,
        description="Number of owners listed in the top-overdue ranking",
        ge=1
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class TicketSource(str, Enum):
    """Ticketing systems the dashboard ingests exports from."""
    CASE_MANAGEMENT = "clarify"
    ISSUE_TRACKER = "jira"
    ITSM_CHANGE = "itsm-change"
    ITSM_INCIDENT = "itsm-incident"


class OverdueLevel(str, Enum):
    """Escalation levels produced by the overdue classifier."""
    NONE = "none"
    WARNING = "warning"
    CRITICAL = "critical"
    SEVERE = "severe"
    STAGNANT = "stagnant"


class CanonicalStatus(str, Enum):
    """Source-independent ticket statuses."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    IN_REVIEW = "in_review"
    RESOLVED = "resolved"
    CLOSED = "closed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class CanonicalPriority(str, Enum):
    """Priorities used by the issue tracker and case-management thresholds."""
    HIGHEST = "highest"
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CanonicalType(str, Enum):
    """Issue tracker ticket types."""
    BUG = "bug"
    STORY = "story"
    EPIC = "epic"
    TASK = "task"
    SUBTASK = "subtask"
    OTHER = "other"


class SLAStatus(str, Enum):
    """SLA column of the export rows."""
    OVERDUE = "overdue"
    ON_TIME = "on_time"


# ========== Lists for validation ==========

VALID_SOURCES = [source.value for source in TicketSource]
INCIDENT_SOURCES = frozenset({TicketSource.CASE_MANAGEMENT, TicketSource.ITSM_INCIDENT})
CHANGE_SOURCES = frozenset({TicketSource.ISSUE_TRACKER, TicketSource.ITSM_CHANGE})

# Ladder order, lowest first. STAGNANT is reported on its own branch.
LADDER_LEVELS = [
    OverdueLevel.NONE, OverdueLevel.WARNING,
    OverdueLevel.CRITICAL, OverdueLevel.SEVERE
]
HISTOGRAM_LEVELS = [
    OverdueLevel.SEVERE, OverdueLevel.CRITICAL,
    OverdueLevel.WARNING, OverdueLevel.STAGNANT
]
