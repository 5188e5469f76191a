"""Logging and tracing setup for the ticket and notification services.

Ticket mutations log through ``fireguardian.tickets``; background delivery logs
through ``fireguardian.notifications`` and can be tuned separately, since SMTP
and SMS chatter is much noisier than the request path.
"""

from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from fireguardian.core.config import Settings

TICKETS_LOGGER = "fireguardian.tickets"
NOTIFICATIONS_LOGGER = "fireguardian.notifications"
SERVICE_NAMESPACE = "fireguardian"

# Third-party clients that log every request at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncpg")


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def logging_config(settings: Settings) -> dict[str, Any]:
    """Return the ``dictConfig`` mapping for the API process."""

    level = _level(settings.log_level)
    loggers: dict[str, dict[str, Any]] = {
        TICKETS_LOGGER: {"level": level},
        NOTIFICATIONS_LOGGER: {"level": _level(settings.notification_log_level)},
    }
    loggers.update({name: {"level": logging.WARNING} for name in _QUIET_LOGGERS})
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": settings.log_format}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            }
        },
        "loggers": loggers,
        "root": {"handlers": ["console"], "level": level},
    }


def configure_logging(settings: Settings) -> logging.Logger:
    dictConfig(logging_config(settings))
    return logging.getLogger(SERVICE_NAMESPACE)


def _otlp_headers(raw: str | None) -> dict[str, str]:
    pairs = (item.split("=", 1) for item in (raw or "").split(",") if "=" in item)
    return {key.strip(): value.strip() for key, value in pairs}


def build_tracer_provider(settings: Settings) -> TracerProvider:
    """Create a provider whose resource identifies this service and deployment.

    Ticket operations and notification jobs emit spans named ``tickets.*`` and
    ``notifications.*`` under this resource.
    """

    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.namespace": SERVICE_NAMESPACE,
            "deployment.environment": settings.environment,
        }
    )
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(
        **({"endpoint": settings.otel_exporter_otlp_endpoint} if settings.otel_exporter_otlp_endpoint else {}),
        headers=_otlp_headers(settings.otel_exporter_otlp_headers) or None,
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


def init_tracer(settings: Settings) -> TracerProvider | None:
    if not settings.otel_enabled:
        return None
    provider = build_tracer_provider(settings)
    trace.set_tracer_provider(provider)
    return provider


def shutdown_tracer(provider: TracerProvider | None) -> None:
    if provider is not None:
        provider.shutdown()
