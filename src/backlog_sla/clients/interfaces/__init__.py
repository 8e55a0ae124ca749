"""
Clients Interfaces Layer
=========================

API controllers for client analytics.
"""

from backlog_sla.clients.interfaces.controllers import router

__all__ = ["router"]
