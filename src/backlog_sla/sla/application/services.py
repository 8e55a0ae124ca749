"""
SLA Application Services
=========================

Application services orchestrate the domain classifier and coordinate with
the alerting configuration and dispatcher.

The aggregation functions are pure: they build fresh accumulators on every
call and never mutate the tickets they are given.
"""

import math
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from backlog_sla.config import Settings, SLAStatus, TicketSource, get_settings
from backlog_sla.core import ValidationException
from backlog_sla.shared.infrastructure.logging import get_logger, log_latency
from backlog_sla.sla.domain import (
    AlertingConfig,
    BucketCount,
    ClassifiedTicket,
    OverdueAlert,
    OverdueCalculator,
    OwnerWorkload,
    SLAAnalysis,
    SourceProfile,
    TeamPerformance,
    Ticket,
    get_profile,
)
from backlog_sla.sla.domain.catalogs import is_high_priority_type
from backlog_sla.sla.domain.normalizers import (
    normalize_owner,
    normalize_priority,
    normalize_status,
    normalize_type,
)

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


# ========== Collaborator Interfaces (Dependency Inversion) ==========

class IAlertingConfigProvider(ABC):
    """Interface for alerting configuration access."""

    @abstractmethod
    def get_config(self) -> AlertingConfig:
        """Get current alerting configuration."""


class IAlertDispatcher(ABC):
    """Interface for the collaborator delivering overdue alerts."""

    @abstractmethod
    async def send(self, alert: OverdueAlert) -> bool:
        """Deliver an alert. Returns True when it was accepted."""


# ========== Classification & Aggregation ==========

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def classify_batch(tickets: Iterable[Ticket], now: datetime) -> List[ClassifiedTicket]:
    """Classify every ticket of a batch with its own source profile."""
    return [
        ClassifiedTicket(ticket, OverdueCalculator.classify(ticket, now, get_profile(ticket.source)))
        for ticket in tickets
    ]


def _seed_buckets(analysis: SLAAnalysis, profile: SourceProfile) -> None:
    for key in profile.severity_buckets:
        analysis.by_severity.setdefault(key, BucketCount())
    for key in profile.priority_buckets:
        analysis.by_priority.setdefault(key, BucketCount())
    for key in profile.type_buckets:
        analysis.by_type.setdefault(key, BucketCount())


def _team_performance(
    analysis: SLAAnalysis,
    total_age_hours: int,
    aged_tickets: int
) -> TeamPerformance:
    """
    Derive team metrics from the owner workloads.

    Owners are scanned in insertion order with strict comparisons, so on
    equal overdue ratios the first owner seen keeps the title.
    """
    performance = TeamPerformance(
        total_workload=analysis.total,
        average_age_hours=_round_half_up(total_age_hours / aged_tickets) if aged_tickets else 0,
        sla_compliance=_round_half_up(analysis.on_time / analysis.total * 100) if analysis.total else 100,
    )

    best_ratio = math.inf
    worst_ratio = -1.0
    for owner, workload in analysis.owner_workload.items():
        if workload.total == 0:
            continue
        ratio = workload.overdue_ratio
        if ratio < best_ratio:
            best_ratio = ratio
            performance.top_performer = owner
        if ratio > worst_ratio:
            worst_ratio = ratio
            performance.most_overdue = owner

    return performance


def analyze(
    tickets: Sequence[Ticket],
    now: datetime,
    source: Optional[TicketSource] = None,
    roster: Iterable[str] = (),
    owner_aliases: Optional[Mapping[str, str]] = None,
    top_owners_limit: int = 5
) -> SLAAnalysis:
    """
    Fold a ticket batch into an SLA analysis.

    Each ticket is classified once and counted in every bucket it belongs
    to (severity, priority, type, status and owner at the same time).

    Args:
        tickets: Normalized tickets, any mix of sources
        now: Reference time for classification and ticket age
        source: Source whose breakdown buckets are always present
        roster: Team members listed in the owner workload even without tickets
        owner_aliases: Owner identifier to display name
        top_owners_limit: Size of the top-overdue owners ranking

    Returns:
        SLAAnalysis for the batch
    """
    analysis = SLAAnalysis(total=len(tickets))
    seeded = set()
    if source is not None:
        profile = get_profile(source)
        _seed_buckets(analysis, profile)
        seeded.add(profile.source)

    for name in roster:
        analysis.owner_workload.setdefault(name, OwnerWorkload())

    reference = OverdueCalculator.as_utc(now)
    total_age_hours = 0
    aged_tickets = 0

    for ticket in tickets:
        profile = get_profile(ticket.source)
        if profile.source not in seeded:
            _seed_buckets(analysis, profile)
            seeded.add(profile.source)

        overdue = OverdueCalculator.classify(ticket, now, profile)
        is_overdue = overdue.is_overdue

        if is_overdue:
            analysis.overdue += 1
            analysis.severity_levels[overdue.level] += 1
        else:
            analysis.on_time += 1

        created_at = OverdueCalculator.as_utc(ticket.created_at)
        if created_at is not None and reference is not None:
            total_age_hours += OverdueCalculator.elapsed_hours(reference, created_at)
            aged_tickets += 1

        for bucket_of, buckets in (
            (profile.severity_bucket, analysis.by_severity),
            (profile.priority_bucket, analysis.by_priority),
            (profile.type_bucket, analysis.by_type),
        ):
            key = bucket_of(ticket)
            if key is not None:
                buckets.setdefault(key, BucketCount()).add(is_overdue)

        status = normalize_status(ticket.status).value
        analysis.by_status[status] = analysis.by_status.get(status, 0) + 1

        if is_overdue and profile.is_critical(ticket):
            analysis.critical_overdue += 1
        if is_overdue and profile.tracks_high_priority_types and is_high_priority_type(ticket):
            analysis.high_priority_type_overdue += 1

        owner = normalize_owner(ticket.owner, owner_aliases)
        analysis.owner_workload.setdefault(owner, OwnerWorkload()).add(is_overdue)

    ranked = sorted(
        (item for item in analysis.owner_workload.items() if item[1].overdue > 0),
        key=lambda item: item[1].overdue,
        reverse=True,
    )
    analysis.top_overdue_owners = [
        {"owner": owner, "count": workload.overdue}
        for owner, workload in ranked[:top_owners_limit]
    ]
    analysis.team_performance = _team_performance(analysis, total_age_hours, aged_tickets)

    return analysis


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if isinstance(value, datetime) else None


def build_export_rows(tickets: Iterable[Ticket], now: datetime) -> List[Dict[str, object]]:
    """
    Flatten classified tickets into rows for the spreadsheet exporter.

    Hours since creation/update are None when the timestamp is unusable.
    """
    reference = OverdueCalculator.as_utc(now)
    rows = []
    for item in classify_batch(tickets, now):
        ticket = item.ticket
        profile = get_profile(ticket.source)
        created_at = OverdueCalculator.as_utc(ticket.created_at)
        updated_at = OverdueCalculator.as_utc(ticket.last_activity_at)

        rows.append({
            "id": ticket.id,
            "source": ticket.source.value,
            "status": ticket.status,
            "severity": ticket.severity,
            "priority": ticket.priority,
            "normalized_priority": normalize_priority(ticket.priority).value,
            "type": ticket.type,
            "normalized_type": normalize_type(ticket.type).value,
            "owner": ticket.owner,
            "client": ticket.client,
            "created_at": _isoformat(ticket.created_at),
            "last_activity_at": _isoformat(ticket.last_activity_at),
            "closed_at": _isoformat(ticket.closed_at),
            "hours_since_created": (
                OverdueCalculator.elapsed_hours(reference, created_at)
                if created_at is not None and reference is not None else None
            ),
            "hours_since_updated": (
                OverdueCalculator.elapsed_hours(reference, updated_at)
                if updated_at is not None and reference is not None else None
            ),
            "hours_overdue": item.overdue.hours_overdue,
            "days_overdue": item.overdue.days_overdue,
            "overdue_level": item.overdue.level.value,
            "sla_status": (SLAStatus.OVERDUE if item.overdue.is_overdue else SLAStatus.ON_TIME).value,
            "is_high_priority_type": profile.tracks_high_priority_types and is_high_priority_type(ticket),
            "is_critical": profile.is_critical(ticket),
        })
    return rows


# ========== Recipients ==========

def validate_email(email: str) -> bool:
    """Loose email syntax check used for alert recipients."""
    return bool(EMAIL_PATTERN.match(email))


def validate_emails(emails: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Split recipients into (valid, invalid), trimming whitespace."""
    valid: List[str] = []
    invalid: List[str] = []
    for email in emails:
        trimmed = email.strip()
        if validate_email(trimmed):
            valid.append(trimmed)
        else:
            invalid.append(trimmed)
    return valid, invalid


# ========== Application Services ==========

class SLAAnalysisService:
    """
    Service for overdue classification, analysis, export and alerting.

    Reads the alerting configuration (recipients, owner aliases, roster)
    from its provider; the classification itself needs no configuration.
    """

    def __init__(
        self,
        config_provider: IAlertingConfigProvider,
        settings: Optional[Settings] = None
    ):
        self._config_provider = config_provider
        self._settings = settings or get_settings()

    def classify(self, tickets: Sequence[Ticket], now: datetime) -> List[ClassifiedTicket]:
        """Classify a batch of tickets."""
        return classify_batch(tickets, now)

    def analyze(
        self,
        tickets: Sequence[Ticket],
        now: datetime,
        source: Optional[TicketSource] = None
    ) -> SLAAnalysis:
        """Analyze a batch with the configured roster and owner aliases."""
        config = self._config_provider.get_config()
        with log_latency(
            logger, "sla_analysis",
            source=getattr(source, "value", source), ticket_count=len(tickets)
        ):
            analysis = analyze(
                tickets,
                now,
                source=source,
                roster=config.team_roster,
                owner_aliases=config.owner_aliases,
                top_owners_limit=self._settings.top_overdue_owners_limit,
            )

        logger.info(
            "SLA analysis computed",
            extra={
                "source": getattr(source, "value", source),
                "total": analysis.total,
                "overdue": analysis.overdue,
                "critical_overdue": analysis.critical_overdue,
            }
        )
        return analysis

    def export_rows(self, tickets: Sequence[Ticket], now: datetime) -> List[Dict[str, object]]:
        """Build spreadsheet export rows."""
        return build_export_rows(tickets, now)

    def build_overdue_alert(
        self,
        tickets: Sequence[Ticket],
        now: datetime,
        source: TicketSource,
        recipients: Optional[List[str]] = None,
        file_name: Optional[str] = None
    ) -> OverdueAlert:
        """
        Collect the overdue tickets of a source into an alert.

        Args:
            tickets: Batch of the given source; other sources are ignored
            now: Reference time
            source: Source the alert is about
            recipients: Overrides the configured recipients when given
            file_name: Name of the uploaded export, quoted in the alert

        Raises:
            ValidationException: if the alert must be sent but no recipient is valid
        """
        profile = get_profile(source)
        config = self._config_provider.get_config()

        own_tickets = [ticket for ticket in tickets if ticket.source == profile.source]
        skipped = len(tickets) - len(own_tickets)
        if skipped:
            logger.warning(
                "Ignoring tickets from other sources in alert batch",
                extra={"source": profile.source.value, "skipped": skipped}
            )

        overdue = [item for item in classify_batch(own_tickets, now) if item.overdue.is_overdue]
        candidates = recipients if recipients is not None else config.recipients_for(profile.source)
        valid, invalid = validate_emails(candidates)

        alert = OverdueAlert(
            source=profile.source,
            source_label=profile.label,
            recipients=valid,
            overdue_tickets=overdue,
            critical_count=sum(1 for item in overdue if profile.is_critical(item.ticket)),
            send_threshold=config.send_threshold,
            file_name=file_name,
            invalid_recipients=invalid,
        )

        if alert.should_send and not valid:
            raise ValidationException(
                "No valid alert recipients",
                {"source": profile.source.value, "invalid_recipients": invalid}
            )

        logger.info(
            "Overdue alert built",
            extra={
                "source": profile.source.value,
                "overdue_count": alert.overdue_count,
                "critical_count": alert.critical_count,
                "should_send": alert.should_send,
                "recipients": alert.recipients,
            }
        )
        return alert

    async def dispatch_alert(self, alert: OverdueAlert, dispatcher: IAlertDispatcher) -> bool:
        """Hand an alert to the dispatcher when it reaches the send threshold."""
        if not alert.should_send:
            logger.info(alert.message, extra={"source": alert.source.value})
            return False
        return await dispatcher.send(alert)
