"""
Application Wiring
==================
Builds the FastAPI application and its collaborators.

Run with:
    uvicorn --factory otp_verification.app:create_app
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine
import structlog

from otp_verification import __version__
from otp_verification.api import create_auth_router, install_error_handlers
from otp_verification.audit import AuditLogger
from otp_verification.config import Settings, get_settings, insecure_defaults
from otp_verification.database import close_engine, create_async_engine, create_session_factory, init_models
from otp_verification.health import create_health_router
from otp_verification.logging_config import setup_logging
from otp_verification.maintenance import ExpiredOtpSweeper
from otp_verification.notifications import HttpEmailSink, LoggingEmailSink, NotificationSink
from otp_verification.password import PasswordVerifier, build_hasher
from otp_verification.service import AuthOrchestrator
from otp_verification.session import SessionIssuer
from otp_verification.stores import SqlAuditStore, SqlCredentialStore, SqlOtpStore

logger = structlog.get_logger(__name__)


def build_notifier(settings: Settings) -> NotificationSink:
    """HTTP email sink when an API key is configured, logging sink otherwise."""
    if settings.email_api_key:
        return HttpEmailSink(
            api_url=settings.email_api_url,
            api_key=settings.email_api_key,
            sender_email=settings.email_from,
            sender_name=settings.email_from_name,
            otp_expiry_minutes=settings.otp_ttl_minutes,
            timeout=settings.email_timeout_seconds,
            max_attempts=settings.email_max_attempts,
        )
    logger.warning("EMAIL_API_KEY not set, codes will only be logged")
    return LoggingEmailSink(otp_expiry_minutes=settings.otp_ttl_minutes)


def build_app(
    orchestrator: AuthOrchestrator,
    service_name: str = "otp-verification",
    engine: Optional[AsyncEngine] = None,
    sweeper: Optional[ExpiredOtpSweeper] = None,
    create_tables: bool = False,
    audit_store: Optional[SqlAuditStore] = None,
) -> FastAPI:
    """
    Assemble the FastAPI app around an existing orchestrator.

    The lifespan resumes the audit chain from ``audit_store``, initializes
    the notification sink and sweeper on startup and tears them (and the
    engine) down on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if engine is not None and create_tables:
            await init_models(engine)
        if audit_store is not None:
            head = await audit_store.latest_hash()
            orchestrator.audit.set_previous_hash(head)
            logger.info("Audit chain resumed", head=head[:16] if head else None)
        await orchestrator.notifier.initialize()
        if sweeper is not None:
            sweeper.start()
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.shutdown()
            await orchestrator.notifier.close()
            await close_engine(engine)

    app = FastAPI(title=service_name, version=__version__, lifespan=lifespan)
    install_error_handlers(app)
    app.include_router(create_auth_router(orchestrator))
    app.include_router(create_health_router(service_name, version=__version__, engine=engine))
    app.state.orchestrator = orchestrator
    return app


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Production application factory."""
    settings = settings or get_settings()
    setup_logging(settings.service_name, level=settings.log_level, json_output=settings.log_json)
    for name in insecure_defaults(settings):
        logger.warning("Insecure default setting in use", setting=name)

    engine = create_async_engine(settings.database_url)
    session_factory = create_session_factory(engine)
    audit_store = SqlAuditStore(session_factory)

    orchestrator = AuthOrchestrator(
        users=SqlCredentialStore(session_factory),
        otps=SqlOtpStore(session_factory),
        notifier=build_notifier(settings),
        sessions=SessionIssuer(settings.session_secret, ttl_seconds=settings.session_ttl_minutes * 60),
        passwords=PasswordVerifier(build_hasher(
            time_cost=settings.password_time_cost,
            memory_cost=settings.password_memory_cost,
            parallelism=settings.password_parallelism,
        )),
        audit=AuditLogger(settings.service_name, sink=audit_store.append),
        config=settings.otp_config(),
    )
    sweeper = ExpiredOtpSweeper(orchestrator, interval_minutes=settings.sweep_interval_minutes)

    return build_app(
        orchestrator,
        service_name=settings.service_name,
        engine=engine,
        sweeper=sweeper,
        create_tables=True,
        audit_store=audit_store,
    )
