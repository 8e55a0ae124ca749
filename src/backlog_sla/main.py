"""
Backlog SLA - Main Application
===============================

SLA overdue classification and analytics engine for support backlogs.

Modules:
- SLA Overdue: Classify tickets against source-specific SLA ladders,
  analyze backlogs, build alerts and export rows
- Client Analytics: Cross-source client risk and dashboard analytics

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects, catalogs and the classifier
- Infrastructure: YAML alerting config, alert webhook
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from backlog_sla.config import VALID_SOURCES, Settings, get_settings
from backlog_sla.core import ApplicationException

# SLA Module
from backlog_sla.sla.infrastructure import WebhookAlertDispatcher, YAMLAlertingConfigProvider
from backlog_sla.sla.interfaces import router as sla_router

# Clients Module
from backlog_sla.clients.interfaces import router as clients_router

# Shared
from backlog_sla.shared.api import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from backlog_sla.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Load alerting configuration
    3. Create the alert webhook dispatcher

    SHUTDOWN:
    1. Close the alert webhook client
    """
    settings: Settings = app.state.settings

    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Backlog SLA service", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Loading alerting configuration")
    config_provider = YAMLAlertingConfigProvider(
        settings.alerting_config_path,
        default_send_threshold=settings.alert_send_threshold,
    )
    config_provider.get_config()
    app.state.alerting_config_provider = config_provider

    dispatcher = WebhookAlertDispatcher(
        settings.alert_webhook_url,
        timeout_seconds=settings.alert_timeout_seconds,
    )
    app.state.alert_dispatcher = dispatcher
    if not settings.alert_webhook_url:
        logger.info("Alert webhook not configured - alerts will be built but not sent")

    logger.info("Backlog SLA service started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Backlog SLA service")
    await dispatcher.close()
    logger.info("Backlog SLA service shutdown complete")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Backlog SLA API",
        description="""
    ## Support Backlog SLA Analytics

    Classifies tickets from four ticketing sources against tiered,
    source-specific SLA ladders and rolls the results up into owner, team
    and client analytics.

    **Sources:** `clarify` (case management), `jira` (issue tracker),
    `itsm-change`, `itsm-incident`

    **Overdue levels:** `warning`, `critical`, `severe`, plus `stagnant` for
    tickets whose creation-to-update gap exceeds the source's stagnation
    boundary.
    """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.settings = settings

    # === CORS Middleware ===
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # === Custom Middleware ===
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # === Include Module Routers ===
    app.include_router(sla_router)
    app.include_router(clients_router)

    # === Health Check Endpoint ===

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Health check endpoint for load balancers and orchestrators.

        Reports whether the alerting configuration is loaded and whether the
        alert webhook is configured.
        """
        provider = getattr(request.app.state, "alerting_config_provider", None)
        checks = {
            "alerting_config": "loaded" if provider is not None else "not_loaded",
            "alert_webhook": "configured" if settings.alert_webhook_url else "not_configured",
        }
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
            "checks": checks
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "architecture": "Clean Architecture / Modular Monolith",
            "docs": "/docs",
            "health": "/health",
            "sources": VALID_SOURCES,
            "modules": {
                "sla": {
                    "prefix": "/sla",
                    "endpoints": [
                        "POST /sla/{source}/classify - Classify ticket batch",
                        "POST /sla/{source}/analysis - Analyze ticket batch",
                        "POST /sla/{source}/alerts - Build (and send) overdue alert",
                        "POST /sla/{source}/export - Build export rows"
                    ]
                },
                "clients": {
                    "prefix": "/clients",
                    "endpoints": [
                        "POST /clients/analytics - Client risk analytics",
                        "POST /clients/global - Global dashboard analytics"
                    ]
                }
            }
        }

    return app


app = create_app()


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "backlog_sla.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.environment == "development",
        log_level=_settings.log_level.lower()
    )
