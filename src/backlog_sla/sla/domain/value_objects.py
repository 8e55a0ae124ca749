"""
SLA Value Objects
==================

Immutable value objects for the SLA domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared between calls.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Hashable, List, Mapping

from pydantic import BaseModel, Field, field_validator

from backlog_sla.config import VALID_SOURCES, OverdueLevel, TicketSource


@dataclass(frozen=True)
class ThresholdEntry:
    """
    Escalation boundaries for one classification key, in hours.

    A ticket is WARNING once its age reaches ``warning``, CRITICAL at
    ``critical`` and SEVERE at ``severe``.
    """
    warning: int
    critical: int
    severe: int

    def __post_init__(self):
        if not (0 <= self.warning <= self.critical <= self.severe):
            raise ValueError(
                f"thresholds must be ordered warning <= critical <= severe, got {self}"
            )

    def to_dict(self) -> dict:
        return {"warning": self.warning, "critical": self.critical, "severe": self.severe}


@dataclass(frozen=True)
class ThresholdCatalog:
    """
    Read-only table mapping classification keys to threshold entries.

    Unknown or missing keys resolve to ``default``.
    """
    name: str
    entries: Mapping[Hashable, ThresholdEntry]
    default: ThresholdEntry

    def __post_init__(self):
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def lookup(self, key: Any) -> ThresholdEntry:
        """Get the thresholds for ``key``, or the default entry."""
        if key is None:
            return self.default
        try:
            return self.entries.get(key, self.default)
        except TypeError:
            # unhashable key
            return self.default

    def __contains__(self, key: Any) -> bool:
        try:
            return key in self.entries
        except TypeError:
            return False

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class OverdueInfo:
    """
    Classification result for one ticket at a given reference time.

    Derived on every query and never persisted. ``level`` is NONE exactly
    when the ticket is not overdue, in which case hours and days are zero.
    """
    is_overdue: bool
    level: OverdueLevel
    hours_overdue: int = 0
    days_overdue: int = 0

    def __post_init__(self):
        if self.is_overdue == (self.level == OverdueLevel.NONE):
            raise ValueError("level must be NONE exactly when the ticket is not overdue")
        if not self.is_overdue and (self.hours_overdue or self.days_overdue):
            raise ValueError("a ticket that is not overdue has no overdue duration")

    @classmethod
    def none(cls) -> "OverdueInfo":
        """Result for tickets that are on time, closed or unclassifiable."""
        return cls(is_overdue=False, level=OverdueLevel.NONE)

    def to_dict(self) -> dict:
        return {
            "is_overdue": self.is_overdue,
            "level": self.level.value,
            "hours_overdue": self.hours_overdue,
            "days_overdue": self.days_overdue,
        }


NOT_OVERDUE = OverdueInfo.none()


class AlertingConfig(BaseModel):
    """
    Alerting configuration loaded from YAML.

    Recipients are configured per source; owner aliases map ticketing-system
    identifiers (e.g. employee ids) to display names, and the roster lists
    the team members that always appear in workload breakdowns.
    """
    send_threshold: int = Field(
        default=1,
        ge=1,
        description="Minimum number of overdue tickets before an alert is sent"
    )
    recipients: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Alert recipients by source tag"
    )
    owner_aliases: Dict[str, str] = Field(
        default_factory=dict,
        description="Owner identifier to display name"
    )
    team_roster: List[str] = Field(
        default_factory=list,
        description="Team members seeded into owner workloads"
    )

    @field_validator("recipients")
    @classmethod
    def validate_recipients(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        """Reject unknown source tags and make sure every source has a list."""
        unknown = set(v) - set(VALID_SOURCES)
        if unknown:
            raise ValueError(f"unknown sources in recipients: {sorted(unknown)}")
        for source in VALID_SOURCES:
            v.setdefault(source, [])
        return v

    def recipients_for(self, source: TicketSource) -> List[str]:
        """Get the configured recipients of a source's alerts."""
        return list(self.recipients.get(TicketSource(source).value, []))
