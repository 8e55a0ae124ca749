"""
Clients Domain Layer
====================

Cross-source client accumulators: ClientAnalytics, MonthlyVolume and
GlobalAnalytics.
"""

from backlog_sla.clients.domain.entities import (
    ClientAnalytics,
    GlobalAnalytics,
    MonthlyVolume,
    MAX_RISK_SCORE,
)

__all__ = [
    "ClientAnalytics",
    "GlobalAnalytics",
    "MonthlyVolume",
    "MAX_RISK_SCORE",
]
