"""Application entry point: the lead intake HTTP service.

Configures:
- **structlog** with JSON rendering (production) or colored console (development),
  forwarding ERROR events to Sentry when a DSN is set
- **Credential manager** and **Vertex AI client** for company research
- **Enrichment pipeline** over the SQLite research cache
- **Notification dispatcher** on the Resend API
- **Website chat** on the same Vertex AI client, grounded on a RAG corpus
- **FastAPI** routes for leads, contact, chat, health, readiness, and metrics
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from leadflow.auth.credentials import CredentialManager, ServiceAccountKey
from leadflow.chat.routes import router as chat_router
from leadflow.chat.service import ChatService
from leadflow.config import Settings, get_settings, validate_credentials
from leadflow.email.client import ResendClient
from leadflow.email.dispatcher import NotificationDispatcher
from leadflow.enrichment.cache import ResearchCache, init_cache_db
from leadflow.enrichment.pipeline import EnrichmentPipeline
from leadflow.enrichment.researcher import CompanyResearcher
from leadflow.health import register_health_routes
from leadflow.leads.routes import router as leads_router
from leadflow.leads.service import LeadService
from leadflow.leads.store import LeadStore, init_leads_table
from leadflow.llm.client import VertexClient, VertexConfig
from leadflow.observability.metrics import setup_metrics
from leadflow.observability.middleware import RequestIdMiddleware
from leadflow.observability.sentry import get_sentry_processor, init_sentry
from leadflow.resilience.backoff import NOTIFICATION_POLICY, PROVIDER_POLICY

logger = structlog.get_logger()


def configure_logging(production: bool = False, service_name: str = "leadflow") -> None:
    """Configure structlog for production (JSON) or development (console).

    Production mode (*production=True*): JSON rendering at INFO level.
    Development mode: colored console rendering at DEBUG level.

    Args:
        production: Enable production mode if ``True``.
        service_name: Bound as ``service`` on every log entry.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        get_sentry_processor(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=service_name)


def _build_vertex_client(
    settings: Settings, http_client: httpx.AsyncClient
) -> tuple[CredentialManager | None, VertexClient | None]:
    info = settings.service_account_info()
    if not info or not settings.vertex_project_id:
        logger.info("Service account or project not configured, model calls disabled")
        return None, None

    try:
        key = ServiceAccountKey.from_json(info)
        credentials = CredentialManager(
            key,
            http_client,
            refresh_margin=timedelta(seconds=settings.credential_refresh_margin_seconds),
        )
    except (ValidationError, ValueError):
        logger.error("Invalid service account key, model calls disabled", exc_info=True)
        return None, None

    policy = PROVIDER_POLICY
    if settings.retry_jitter_seconds:
        policy = policy.with_jitter(settings.retry_jitter_seconds)

    client = VertexClient(
        VertexConfig(
            project_id=settings.vertex_project_id,
            location=settings.vertex_location,
            model=settings.vertex_model,
            rag_corpus_id=settings.vertex_rag_corpus_id or None,
        ),
        credentials,
        http_client,
        policy=policy,
    )
    logger.info(
        "Model calls enabled",
        model=settings.vertex_model,
        rag_enabled=bool(settings.vertex_rag_corpus_id),
    )
    return credentials, client


def initialize_services(settings: Settings | None = None) -> dict[str, Any]:
    """Set up all shared services for the application.

    Opens the service database (research cache and leads), creates the
    shared HTTP client, the credential manager and researcher (when a
    service-account key is configured), the enrichment pipeline, the Resend
    dispatcher, the lead service, and the chat service.

    Args:
        settings: Application settings.  If ``None``, ``get_settings()`` is used.

    Returns:
        A dict of initialized service instances keyed by name.
    """
    if settings is None:
        settings = get_settings()

    services: dict[str, Any] = {"_settings": settings}

    # a. SQLite: research cache and leads share one connection and its lock
    db_path = settings.cache_db_path
    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    db_conn = init_cache_db(db_path)
    init_leads_table(db_conn)
    services["db_conn"] = db_conn
    db_lock = threading.Lock()
    services["db_lock"] = db_lock

    # b. One HTTP client for the token endpoint, Vertex AI, and Resend
    http_client = httpx.AsyncClient(timeout=httpx.Timeout(30.0))
    services["http_client"] = http_client

    # c. Credential manager, model client, and researcher (optional)
    credentials, vertex_client = _build_vertex_client(settings, http_client)
    researcher = CompanyResearcher(vertex_client) if vertex_client is not None else None
    services["credentials"] = credentials
    services["vertex_client"] = vertex_client
    services["researcher"] = researcher

    # d. Enrichment pipeline
    pipeline = EnrichmentPipeline(
        ResearchCache(db_conn, lock=db_lock),
        researcher,
        provider_ttl=timedelta(days=settings.research_ttl_days),
        default_ttl=timedelta(days=settings.default_research_ttl_days),
        personal_domains=settings.personal_email_domains,
    )
    services["pipeline"] = pipeline

    # e. Notifications
    notification_policy = NOTIFICATION_POLICY
    if settings.retry_jitter_seconds:
        notification_policy = notification_policy.with_jitter(settings.retry_jitter_seconds)
    dispatcher = NotificationDispatcher(
        ResendClient(settings.resend_api_key, http_client),
        default_sender=settings.notification_from,
        policy=notification_policy,
    )
    services["dispatcher"] = dispatcher

    # f. Lead service
    services["lead_service"] = LeadService(
        pipeline,
        dispatcher,
        LeadStore(db_conn, lock=db_lock),
        notification_to=settings.notification_to,
        lead_sender=settings.lead_notification_from or None,
        contact_sender=settings.notification_from,
    )

    # g. Website chat
    services["chat_service"] = ChatService(vertex_client)

    logger.info("Services initialized", research_enabled=researcher is not None)
    return services


async def close_services(services: dict[str, Any]) -> None:
    """Close the shared HTTP client and the database connection."""
    http_client: httpx.AsyncClient | None = services.get("http_client")
    if http_client is not None:
        await http_client.aclose()

    db_conn: sqlite3.Connection | None = services.get("db_conn")
    if db_conn is not None:
        db_conn.close()
        logger.info("Database connection closed")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Log startup and release shared resources on shutdown."""
    logger.info("FastAPI application starting")
    yield
    await close_services(app.state.services)


def create_app(services: dict[str, Any]) -> FastAPI:
    """Create the FastAPI app with lifespan, lead and chat routes, health, and metrics.

    Args:
        services: The initialized services dict from ``initialize_services``.

    Returns:
        The configured FastAPI application.
    """
    settings: Settings = services.get("_settings") or get_settings()

    fastapi_app = FastAPI(title="Leadflow", lifespan=lifespan)
    fastapi_app.state.services = services
    fastapi_app.state.settings = settings
    fastapi_app.add_middleware(RequestIdMiddleware, service_name=settings.service_name)
    fastapi_app.include_router(leads_router)
    fastapi_app.include_router(chat_router)
    register_health_routes(fastapi_app)
    setup_metrics(fastapi_app)
    return fastapi_app


async def main() -> None:
    """Main entry point.

    1. Configure logging and Sentry
    2. Validate credentials
    3. Initialize services and create the FastAPI app
    4. Serve with uvicorn
    """
    settings = get_settings()
    configure_logging(production=settings.production, service_name=settings.service_name)
    init_sentry(
        settings.sentry_dsn,
        environment="production" if settings.production else "development",
    )
    logger.info("Application starting")

    validate_credentials(settings)

    services = initialize_services(settings)
    fastapi_app = create_app(services)

    config = uvicorn.Config(
        fastapi_app,
        host="0.0.0.0",
        port=settings.port,
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
