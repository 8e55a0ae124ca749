"""
Status Normalizer
=================

Pure string-to-enum mappings for the free-text, bilingual (English and
French) values found in the ticketing exports.

Unknown priorities fall back to ``medium`` and unknown types to ``other`` so
that unrecognised input still receives a (lenient) threshold.
"""

import unicodedata
from typing import Dict, Iterable, Mapping, Optional, Tuple

from backlog_sla.config import CanonicalPriority, CanonicalStatus, CanonicalType

UNASSIGNED_OWNER = "Unassigned"
UNKNOWN_CLIENT = "unknown"

PRIORITY_MAPPINGS: Dict[CanonicalPriority, Tuple[str, ...]] = {
    CanonicalPriority.HIGHEST: ("highest", "très haute", "très élevée", "blocker", "bloquant"),
    CanonicalPriority.CRITICAL: ("critical", "critique", "urgent"),
    CanonicalPriority.HIGH: ("high", "haute", "élevée", "major", "majeur"),
    CanonicalPriority.MEDIUM: ("medium", "moyenne", "normal", "normale", "minor", "mineur"),
    CanonicalPriority.LOW: ("low", "basse", "faible", "trivial", "triviale"),
}

# Checked in order; sub-task must be tested before task since it contains it.
TYPE_KEYWORDS: Tuple[Tuple[CanonicalType, Tuple[str, ...]], ...] = (
    (CanonicalType.BUG, ("bug", "défaut", "bogue")),
    (CanonicalType.STORY, ("story", "histoire")),
    (CanonicalType.EPIC, ("epic", "épique")),
    (CanonicalType.SUBTASK, ("sub-task", "subtask", "sous-tâche")),
    (CanonicalType.TASK, ("task", "tâche")),
    (CanonicalType.BUG, ("incident",)),
)

STATUS_MAPPINGS: Dict[CanonicalStatus, Tuple[str, ...]] = {
    CanonicalStatus.OPEN: (
        "open", "ouvert", "new", "nouveau", "to do", "todo", "à faire", "backlog",
        "assigned", "assigné", "reopened", "réouvert",
    ),
    CanonicalStatus.IN_PROGRESS: (
        "in progress", "en cours", "en cours de traitement", "work in progress",
        "implementation in progress", "implémentation en cours", "scheduled", "planifié",
    ),
    CanonicalStatus.PENDING: (
        "pending", "en attente", "waiting", "on hold", "suspendu", "waiting for customer",
        "en attente client", "waiting for closure", "en attente de fermeture",
    ),
    CanonicalStatus.IN_REVIEW: (
        "review", "code review", "peer review", "testing", "test", "in review",
        "en revue", "verified", "accepted",
    ),
    CanonicalStatus.RESOLVED: (
        "resolved", "résolu", "done", "terminé", "completed", "implementation completed",
        "implémentation terminée", "delivered", "déployé", "deployed", "live",
        "production", "released", "shipped",
    ),
    CanonicalStatus.CLOSED: ("closed", "fermé", "clos", "clot"),
    CanonicalStatus.CANCELLED: ("cancelled", "canceled", "annulé", "rejected", "rejeté"),
}

_PRIORITY_LOOKUP: Dict[str, CanonicalPriority] = {
    token: priority
    for priority, tokens in PRIORITY_MAPPINGS.items()
    for token in tokens
}
_STATUS_LOOKUP: Dict[str, CanonicalStatus] = {
    token: status
    for status, tokens in STATUS_MAPPINGS.items()
    for token in tokens
}


def _clean(raw: Optional[str]) -> str:
    if raw is None:
        return ""
    # exports mix composed and decomposed accents ("é" vs "e" + U+0301)
    return unicodedata.normalize("NFC", str(raw)).strip().lower()


def normalize_status(raw: Optional[str]) -> CanonicalStatus:
    """Map a raw status string to its canonical status."""
    return _STATUS_LOOKUP.get(_clean(raw), CanonicalStatus.UNKNOWN)


def is_closed(raw: Optional[str], closed_statuses: Iterable[str]) -> bool:
    """
    Check whether a raw status belongs to a source's closed-status set.

    Matching is exact on the trimmed, lower-cased value; each source keeps
    its own set (an issue tracker "review" counts as closed, a case does not).
    """
    cleaned = _clean(raw)
    if not cleaned:
        return False
    return cleaned in closed_statuses


def normalize_priority(raw: Optional[str]) -> CanonicalPriority:
    """Map a raw priority to a canonical priority, defaulting to medium."""
    return _PRIORITY_LOOKUP.get(_clean(raw), CanonicalPriority.MEDIUM)


def normalize_type(raw: Optional[str]) -> CanonicalType:
    """Map a raw issue type to a canonical type, defaulting to other."""
    cleaned = _clean(raw)
    for canonical, keywords in TYPE_KEYWORDS:
        if any(keyword in cleaned for keyword in keywords):
            return canonical
    return CanonicalType.OTHER


def _ranked_key(raw: Optional[str], prefix: str, ranks: Tuple[str, ...]) -> Optional[str]:
    cleaned = _clean(raw).replace(" ", "")
    if cleaned.startswith(prefix):
        cleaned = cleaned[len(prefix):]
    # "2-high" / "2 - élevée" style exports keep the rank as first character
    rank = cleaned[:1]
    if rank in ranks and (len(cleaned) == 1 or not cleaned[1].isdigit()):
        return f"{prefix.upper()}{rank}"
    return None


def normalize_severity(raw: Optional[str]) -> Optional[str]:
    """Map a case-management severity ("1", "S1", "s2") to S1..S3, else None."""
    return _ranked_key(raw, "s", ("1", "2", "3"))


def normalize_itsm_priority(raw: Optional[str]) -> Optional[str]:
    """Map an ITSM priority ("P1", "p2", "3") to P1..P3, else None."""
    return _ranked_key(raw, "p", ("1", "2", "3"))


def normalize_owner(raw: Optional[str], aliases: Optional[Mapping[str, str]] = None) -> str:
    """Resolve an owner identity to its display name."""
    owner = str(raw).strip() if raw is not None else ""
    if not owner:
        return UNASSIGNED_OWNER
    if aliases:
        return aliases.get(owner, owner)
    return owner


def client_key(raw: Optional[str]) -> str:
    """
    Case-insensitive grouping key for a client/organization name.

    Blank names map to the empty key, which stays apart from a real client
    called "Unknown"; ``UNKNOWN_CLIENT`` is only their display name.
    """
    return _clean(raw)
