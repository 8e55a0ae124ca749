"""
SLA Interfaces Layer
=====================

API controllers for the overdue classification module.
"""

from backlog_sla.sla.interfaces.controllers import router

__all__ = ["router"]
