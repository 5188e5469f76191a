from contextlib import asynccontextmanager

import asyncpg
import httpx
from fastapi import FastAPI

from fireguardian.api.responses import register_exception_handlers
from fireguardian.api.routes import metrics, ping, tickets
from fireguardian.core.config import get_settings
from fireguardian.core.logging import configure_logging, init_tracer, shutdown_tracer
from fireguardian.notifications import (
    DialogSmsGateway,
    NotificationDispatcher,
    NotificationLogRepository,
    NotificationOrchestrator,
    SmtpEmailGateway,
)
from fireguardian.tickets.repository import TicketRepository
from fireguardian.tickets.service import TicketLifecycleService


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.logger = logger
    app.state.tracer_provider = tracer_provider
    app.state.ticket_service = None
    pool: asyncpg.Pool | None = None
    http_client = httpx.AsyncClient()
    dispatcher: NotificationDispatcher | None = None
    try:
        pool = await asyncpg.create_pool(
            dsn=settings.postgres_dsn,
            min_size=settings.postgres_pool_min_size,
            max_size=settings.postgres_pool_max_size,
        )
        log_repository = NotificationLogRepository(pool, default_daily_limit=settings.sms_daily_limit)
        await log_repository.ensure_schema()
        ticket_repository = TicketRepository(pool)
        orchestrator = NotificationOrchestrator(
            ticket_repository,
            email_gateway=SmtpEmailGateway.from_settings(settings),
            sms_gateway=DialogSmsGateway.from_settings(
                settings, http_client, log_writer=log_repository, policy=log_repository
            ),
            log_writer=log_repository,
            frontend_url=settings.frontend_url,
        )
        dispatcher = NotificationDispatcher(orchestrator)
        app.state.ticket_service = TicketLifecycleService(ticket_repository, dispatcher=dispatcher)
    except Exception:  # pragma: no cover - service initialisation best effort
        logger.exception("Ticket service unavailable; database initialisation failed")
        app.state.ticket_service = None
        if pool is not None:
            await pool.close()
            pool = None
    try:
        yield
    finally:
        if dispatcher is not None:
            await dispatcher.close()
        await http_client.aclose()
        if pool is not None:
            await pool.close()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    register_exception_handlers(app)
    app.include_router(ping.router)
    app.include_router(metrics.router)
    app.include_router(tickets.router)
    return app


app = create_app()
