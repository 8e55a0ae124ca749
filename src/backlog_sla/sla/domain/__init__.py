"""
SLA Domain Layer
================

Domain layer for the overdue classification module.

Contains:
- Entities: Ticket, ClassifiedTicket and the analysis accumulators
- Value Objects: ThresholdEntry, ThresholdCatalog, OverdueInfo
- Catalogs: per-source threshold tables and SourceProfile
- Normalizers: bilingual status/priority/type mappings
- Classifier: OverdueCalculator

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from backlog_sla.sla.domain.entities import (
    Ticket,
    ClassifiedTicket,
    BucketCount,
    OwnerWorkload,
    TeamPerformance,
    SLAAnalysis,
    OverdueAlert,
)
from backlog_sla.sla.domain.value_objects import (
    ThresholdEntry,
    ThresholdCatalog,
    OverdueInfo,
    AlertingConfig,
)
from backlog_sla.sla.domain.catalogs import (
    SourceProfile,
    SOURCE_PROFILES,
    get_profile,
)
from backlog_sla.sla.domain.classifier import OverdueCalculator, classify

__all__ = [
    # Entities
    "Ticket",
    "ClassifiedTicket",
    "BucketCount",
    "OwnerWorkload",
    "TeamPerformance",
    "SLAAnalysis",
    "OverdueAlert",
    # Value Objects
    "ThresholdEntry",
    "ThresholdCatalog",
    "OverdueInfo",
    "AlertingConfig",
    # Catalogs & Services
    "SourceProfile",
    "SOURCE_PROFILES",
    "get_profile",
    "OverdueCalculator",
    "classify",
]
