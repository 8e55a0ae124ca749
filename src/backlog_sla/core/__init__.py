"""
Core Module
============

Shared core abstractions used across the bounded contexts.
"""

from backlog_sla.core.exceptions import (
    ApplicationException,
    ValidationException,
    ResourceNotFoundException,
    UnknownSourceException,
    ConfigurationException,
)

__all__ = [
    "ApplicationException",
    "ValidationException",
    "ResourceNotFoundException",
    "UnknownSourceException",
    "ConfigurationException",
]
