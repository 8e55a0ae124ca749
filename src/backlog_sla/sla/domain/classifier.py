"""
Overdue Classifier
==================

Pure functions deciding whether a ticket breaches its SLA ladder.

The reference time is always passed in by the caller; nothing here reads
the clock, so the same ticket and ``now`` always give the same result.
"""

import math
from datetime import datetime, timezone
from typing import Any, Optional

from backlog_sla.config import OverdueLevel
from backlog_sla.sla.domain.catalogs import SourceProfile, get_profile
from backlog_sla.sla.domain.entities import Ticket
from backlog_sla.sla.domain.normalizers import is_closed
from backlog_sla.sla.domain.value_objects import NOT_OVERDUE, OverdueInfo

SECONDS_PER_HOUR = 3600
HOURS_PER_DAY = 24


class OverdueCalculator:
    """
    Stateless SLA calculations.

    All overdue logic lives here; every source is handled through its
    ``SourceProfile``.
    """

    @staticmethod
    def as_utc(value: Any) -> Optional[datetime]:
        """
        Coerce a timestamp to an aware UTC datetime.

        Naive datetimes are taken to be UTC. Anything that is not a datetime
        is invalid and yields None.
        """
        if not isinstance(value, datetime):
            return None
        if value.tzinfo is None or value.utcoffset() is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @staticmethod
    def elapsed_hours(later: datetime, earlier: datetime) -> int:
        """Whole hours between two timestamps (floor)."""
        return math.floor((later - earlier).total_seconds() / SECONDS_PER_HOUR)

    @staticmethod
    def elapsed_days(later: datetime, earlier: datetime) -> int:
        """Whole days between two timestamps (floor)."""
        return math.floor((later - earlier).total_seconds() / (SECONDS_PER_HOUR * HOURS_PER_DAY))

    @staticmethod
    def classify(ticket: Ticket, now: datetime, profile: SourceProfile) -> OverdueInfo:
        """
        Classify a ticket against its source's SLA ladder.

        Closed tickets and tickets with missing timestamps are never overdue.
        A ticket whose creation-to-update gap exceeds the stagnation boundary
        is STAGNANT only when it has not reached the warning boundary; past
        that, the time ladder wins.

        Args:
            ticket: Normalized ticket
            now: Reference time of the evaluation
            profile: Source profile holding thresholds and closed statuses

        Returns:
            OverdueInfo for the ticket at ``now``
        """
        created_at = OverdueCalculator.as_utc(ticket.created_at)
        updated_at = OverdueCalculator.as_utc(ticket.last_activity_at)
        reference = OverdueCalculator.as_utc(now)
        if created_at is None or updated_at is None or reference is None:
            return NOT_OVERDUE

        if is_closed(ticket.status, profile.closed_statuses):
            return NOT_OVERDUE

        hours_since_created = OverdueCalculator.elapsed_hours(reference, created_at)
        hours_since_updated = OverdueCalculator.elapsed_hours(reference, updated_at)
        days_since_created = OverdueCalculator.elapsed_days(reference, created_at)
        days_since_updated = OverdueCalculator.elapsed_days(reference, updated_at)
        update_gap_hours = OverdueCalculator.elapsed_hours(updated_at, created_at)

        max_hours = max(hours_since_created, hours_since_updated)
        max_days = max(days_since_created, days_since_updated)

        is_stagnant = update_gap_hours > profile.stagnation_hours
        thresholds = profile.thresholds_for(ticket)
        is_overdue_by_time = max_hours >= thresholds.warning

        if not (is_overdue_by_time or is_stagnant):
            return NOT_OVERDUE

        if is_stagnant and not is_overdue_by_time:
            return OverdueInfo(
                is_overdue=True,
                level=OverdueLevel.STAGNANT,
                hours_overdue=update_gap_hours,
                days_overdue=update_gap_hours // HOURS_PER_DAY,
            )

        if max_hours >= thresholds.severe:
            level = OverdueLevel.SEVERE
        elif max_hours >= thresholds.critical:
            level = OverdueLevel.CRITICAL
        else:
            level = OverdueLevel.WARNING

        return OverdueInfo(
            is_overdue=True,
            level=level,
            hours_overdue=max_hours,
            days_overdue=max_days,
        )


def classify(
    ticket: Ticket,
    now: datetime,
    profile: Optional[SourceProfile] = None
) -> OverdueInfo:
    """Classify a ticket, resolving the profile from its source when not given."""
    return OverdueCalculator.classify(ticket, now, profile or get_profile(ticket.source))
