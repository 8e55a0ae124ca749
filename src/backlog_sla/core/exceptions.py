"""
Core Exceptions
================

Custom exceptions raised at the application boundaries.

The classification engine itself never raises on ticket content: malformed
timestamps and unknown keys degrade to conservative results. These
exceptions cover configuration and request validation.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationException(ApplicationException):
    """Exception for validation errors."""

    status_code = 422


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    status_code = 404

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class UnknownSourceException(ResourceNotFoundException):
    """Raised when a ticket source tag has no registered profile."""

    def __init__(self, source: str):
        super().__init__("Ticket source", source, {"source": source})


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""
