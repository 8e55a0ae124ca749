"""
Threshold Catalogs
==================

Static SLA tables and source profiles.

Every ticketing source is described by a ``SourceProfile``: its threshold
catalog, stagnation boundary, closed-status set and the functions deriving a
classification key and breakdown buckets from a ticket. The classifier is
parameterized by the profile, so supporting a new source means adding a
profile, not a code path.

All boundaries are in hours. The tables are part of the alerting contract
and must not change without agreement from the support teams.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, FrozenSet, Hashable, Mapping, Optional, Tuple

from backlog_sla.config import CanonicalPriority, CanonicalType, TicketSource
from backlog_sla.core import UnknownSourceException
from backlog_sla.sla.domain.entities import Ticket
from backlog_sla.sla.domain.normalizers import (
    normalize_itsm_priority,
    normalize_priority,
    normalize_severity,
    normalize_type,
)
from backlog_sla.sla.domain.value_objects import ThresholdCatalog, ThresholdEntry

# ========== Case-management (Clarify) ==========

CASE_MANAGEMENT_CATALOG = ThresholdCatalog(
    name="case-management",
    entries={
        "S1": ThresholdEntry(warning=2, critical=6, severe=12),
        "S2": ThresholdEntry(warning=4, critical=12, severe=24),
        "S3": ThresholdEntry(warning=8, critical=24, severe=48),
    },
    default=ThresholdEntry(warning=12, critical=48, severe=96),
)
CASE_MANAGEMENT_STAGNATION_HOURS = 24
CASE_MANAGEMENT_CLOSED_STATUSES = frozenset({
    "fermé", "closed", "clot", "résolu", "resolved", "terminé", "completed",
    "clos", "annulé", "cancelled", "rejected", "rejeté",
})

# ========== Issue tracker (Jira) ==========

HIGH_PRIORITY_TYPES = frozenset({"bug", "incident", "story", "epic"})
HIGH_PRIORITY_CLASS = "high_priority_type"
REGULAR_CLASS = "regular_type"

_REGULAR_MEDIUM = ThresholdEntry(warning=48, critical=120, severe=240)

ISSUE_TRACKER_CATALOG = ThresholdCatalog(
    name="issue-tracker",
    entries={
        (HIGH_PRIORITY_CLASS, CanonicalPriority.HIGHEST): ThresholdEntry(warning=4, critical=12, severe=24),
        (HIGH_PRIORITY_CLASS, CanonicalPriority.CRITICAL): ThresholdEntry(warning=4, critical=12, severe=24),
        (HIGH_PRIORITY_CLASS, CanonicalPriority.HIGH): ThresholdEntry(warning=12, critical=24, severe=72),
        (HIGH_PRIORITY_CLASS, CanonicalPriority.MEDIUM): ThresholdEntry(warning=24, critical=72, severe=168),
        (HIGH_PRIORITY_CLASS, CanonicalPriority.LOW): ThresholdEntry(warning=72, critical=168, severe=336),
        (REGULAR_CLASS, CanonicalPriority.HIGHEST): ThresholdEntry(warning=8, critical=24, severe=48),
        (REGULAR_CLASS, CanonicalPriority.CRITICAL): ThresholdEntry(warning=8, critical=24, severe=48),
        (REGULAR_CLASS, CanonicalPriority.HIGH): ThresholdEntry(warning=24, critical=48, severe=120),
        (REGULAR_CLASS, CanonicalPriority.MEDIUM): _REGULAR_MEDIUM,
        (REGULAR_CLASS, CanonicalPriority.LOW): ThresholdEntry(warning=120, critical=240, severe=480),
    },
    default=_REGULAR_MEDIUM,
)
ISSUE_TRACKER_STAGNATION_HOURS = 72
ISSUE_TRACKER_CLOSED_STATUSES = frozenset({
    "fermé", "closed", "résolu", "resolved", "terminé", "done", "completed",
    "clos", "annulé", "cancelled", "rejected", "rejeté", "delivered", "déployé",
    "testing", "test", "review", "code review", "peer review", "deployed",
    "live", "production", "released", "shipped", "verified", "accepted",
})

# ========== ITSM (changes and incidents) ==========

ITSM_INCIDENT_CATALOG = ThresholdCatalog(
    name="itsm-incident",
    entries={
        "P1": ThresholdEntry(warning=2, critical=4, severe=8),
        "P2": ThresholdEntry(warning=8, critical=24, severe=48),
        "P3": ThresholdEntry(warning=24, critical=72, severe=168),
    },
    default=ThresholdEntry(warning=48, critical=168, severe=336),
)
ITSM_CHANGE_CATALOG = ThresholdCatalog(
    name="itsm-change",
    entries={
        "P1": ThresholdEntry(warning=8, critical=24, severe=72),
        "P2": ThresholdEntry(warning=24, critical=72, severe=168),
        "P3": ThresholdEntry(warning=72, critical=168, severe=336),
    },
    default=ThresholdEntry(warning=168, critical=336, severe=720),
)
ITSM_STAGNATION_HOURS = 48
ITSM_CLOSED_STATUSES = frozenset({
    "fermé", "closed", "résolu", "resolved", "terminé", "completed",
    "clos", "annulé", "cancelled", "rejected", "rejeté", "en attente de fermeture",
    "waiting for closure", "implementation completed", "implémentation terminée",
})

# ========== Breakdown buckets ==========

SEVERITY_BUCKETS: Tuple[str, ...] = ("S1", "S2", "S3")
PRIORITY_BUCKETS: Tuple[str, ...] = tuple(priority.value for priority in CanonicalPriority)
ITSM_PRIORITY_BUCKETS: Tuple[str, ...] = ("P1", "P2", "P3")
TYPE_BUCKETS: Tuple[str, ...] = tuple(kind.value for kind in CanonicalType)
ITSM_INCIDENT_TYPE = "incident"
ITSM_CHANGE_TYPE = "change"


# ========== Source profiles ==========

KeyFunction = Callable[[Ticket], Optional[Hashable]]
BucketFunction = Callable[[Ticket], Optional[str]]


def _none(ticket: Ticket) -> Optional[str]:
    return None


def _priority_bucket(ticket: Ticket) -> Optional[str]:
    return normalize_priority(ticket.priority).value


def _itsm_priority_bucket(ticket: Ticket) -> Optional[str]:
    return normalize_itsm_priority(ticket.priority)


def _severity_bucket(ticket: Ticket) -> Optional[str]:
    return normalize_severity(ticket.severity)


def _issue_type_bucket(ticket: Ticket) -> Optional[str]:
    return normalize_type(ticket.type).value


def is_high_priority_type(ticket: Ticket) -> bool:
    """Bugs, incidents, stories and epics get the stricter issue-tracker ladder."""
    return normalize_type(ticket.type).value in HIGH_PRIORITY_TYPES


def _issue_tracker_key(ticket: Ticket) -> Tuple[str, CanonicalPriority]:
    type_class = HIGH_PRIORITY_CLASS if is_high_priority_type(ticket) else REGULAR_CLASS
    return type_class, normalize_priority(ticket.priority)


def _is_critical_issue(ticket: Ticket) -> bool:
    return normalize_priority(ticket.priority) in (CanonicalPriority.HIGHEST, CanonicalPriority.CRITICAL)


@dataclass(frozen=True, eq=False)
class SourceProfile:
    """
    Everything the classifier and aggregator need to know about a source.

    ``key`` derives the catalog key from a ticket. ``is_critical`` flags the
    tickets counted as top-priority escalations (S1, P1, highest/critical).
    The bucket functions place a ticket into the severity, priority and type
    breakdowns; ``None`` means the ticket has no bucket in that breakdown.
    """

    source: TicketSource
    label: str
    catalog: ThresholdCatalog
    stagnation_hours: int
    closed_statuses: FrozenSet[str]
    key: KeyFunction
    is_critical: Callable[[Ticket], bool]
    severity_bucket: BucketFunction = _none
    priority_bucket: BucketFunction = _none
    type_bucket: BucketFunction = _none
    severity_buckets: Tuple[str, ...] = ()
    priority_buckets: Tuple[str, ...] = ()
    type_buckets: Tuple[str, ...] = ()
    tracks_high_priority_types: bool = False

    def thresholds_for(self, ticket: Ticket) -> ThresholdEntry:
        """Resolve the ticket's thresholds, falling back to the catalog default."""
        return self.catalog.lookup(self.key(ticket))


CASE_MANAGEMENT_PROFILE = SourceProfile(
    source=TicketSource.CASE_MANAGEMENT,
    label="Clarify (case management)",
    catalog=CASE_MANAGEMENT_CATALOG,
    stagnation_hours=CASE_MANAGEMENT_STAGNATION_HOURS,
    closed_statuses=CASE_MANAGEMENT_CLOSED_STATUSES,
    key=lambda ticket: normalize_severity(ticket.severity),
    is_critical=lambda ticket: normalize_severity(ticket.severity) == "S1",
    severity_bucket=_severity_bucket,
    priority_bucket=_priority_bucket,
    severity_buckets=SEVERITY_BUCKETS,
    priority_buckets=PRIORITY_BUCKETS,
)

ISSUE_TRACKER_PROFILE = SourceProfile(
    source=TicketSource.ISSUE_TRACKER,
    label="Jira (issue tracker)",
    catalog=ISSUE_TRACKER_CATALOG,
    stagnation_hours=ISSUE_TRACKER_STAGNATION_HOURS,
    closed_statuses=ISSUE_TRACKER_CLOSED_STATUSES,
    key=_issue_tracker_key,
    is_critical=_is_critical_issue,
    priority_bucket=_priority_bucket,
    type_bucket=_issue_type_bucket,
    priority_buckets=PRIORITY_BUCKETS,
    type_buckets=TYPE_BUCKETS,
    tracks_high_priority_types=True,
)

ITSM_INCIDENT_PROFILE = SourceProfile(
    source=TicketSource.ITSM_INCIDENT,
    label="ITSM incidents",
    catalog=ITSM_INCIDENT_CATALOG,
    stagnation_hours=ITSM_STAGNATION_HOURS,
    closed_statuses=ITSM_CLOSED_STATUSES,
    key=lambda ticket: normalize_itsm_priority(ticket.priority),
    is_critical=lambda ticket: normalize_itsm_priority(ticket.priority) == "P1",
    priority_bucket=_itsm_priority_bucket,
    type_bucket=lambda ticket: ITSM_INCIDENT_TYPE,
    priority_buckets=ITSM_PRIORITY_BUCKETS,
    type_buckets=(ITSM_INCIDENT_TYPE,),
)

ITSM_CHANGE_PROFILE = SourceProfile(
    source=TicketSource.ITSM_CHANGE,
    label="ITSM change requests",
    catalog=ITSM_CHANGE_CATALOG,
    stagnation_hours=ITSM_STAGNATION_HOURS,
    closed_statuses=ITSM_CLOSED_STATUSES,
    key=lambda ticket: normalize_itsm_priority(ticket.priority),
    is_critical=lambda ticket: normalize_itsm_priority(ticket.priority) == "P1",
    priority_bucket=_itsm_priority_bucket,
    type_bucket=lambda ticket: ITSM_CHANGE_TYPE,
    priority_buckets=ITSM_PRIORITY_BUCKETS,
    type_buckets=(ITSM_CHANGE_TYPE,),
)

SOURCE_PROFILES: Mapping[TicketSource, SourceProfile] = MappingProxyType({
    profile.source: profile
    for profile in (
        CASE_MANAGEMENT_PROFILE,
        ISSUE_TRACKER_PROFILE,
        ITSM_INCIDENT_PROFILE,
        ITSM_CHANGE_PROFILE,
    )
})


def get_profile(source) -> SourceProfile:
    """
    Resolve the profile of a source tag.

    Accepts a ``TicketSource`` or its string value.

    Raises:
        UnknownSourceException: if the tag is not a registered source
    """
    try:
        return SOURCE_PROFILES[TicketSource(source)]
    except (ValueError, KeyError):
        raise UnknownSourceException(str(getattr(source, "value", source))) from None
