"""
SLA Application Layer
======================

Application layer for the overdue classification module.

Contains:
- Services: classification, analysis, export rows and alert building
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and collaborator interfaces,
but not on concrete infrastructure implementations.
"""

from backlog_sla.sla.application.dto import (
    TicketDTO,
    TicketBatchRequest,
    AlertRequest,
    OverdueInfoResponse,
    ClassifiedTicketResponse,
    ClassificationResponse,
    BucketResponse,
    OwnerWorkloadResponse,
    TeamPerformanceResponse,
    AnalysisResponse,
    AlertResponse,
    ExportRowResponse,
    ExportResponse,
    parse_timestamp,
)
from backlog_sla.sla.application.services import (
    SLAAnalysisService,
    IAlertingConfigProvider,
    IAlertDispatcher,
    analyze,
    classify_batch,
    build_export_rows,
    validate_email,
    validate_emails,
)

__all__ = [
    # DTOs
    "TicketDTO",
    "TicketBatchRequest",
    "AlertRequest",
    "OverdueInfoResponse",
    "ClassifiedTicketResponse",
    "ClassificationResponse",
    "BucketResponse",
    "OwnerWorkloadResponse",
    "TeamPerformanceResponse",
    "AnalysisResponse",
    "AlertResponse",
    "ExportRowResponse",
    "ExportResponse",
    "parse_timestamp",
    # Services
    "SLAAnalysisService",
    "analyze",
    "classify_batch",
    "build_export_rows",
    "validate_email",
    "validate_emails",
    # Collaborator Interfaces
    "IAlertingConfigProvider",
    "IAlertDispatcher",
]
