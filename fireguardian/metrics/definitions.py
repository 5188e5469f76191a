"""Metric definitions used across the application."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MetricDefinition:
    """Describe a metric that should exist in the registry."""

    name: str
    metric_type: str
    description: str
    label_names: tuple[str, ...] = ()


TICKET_OPERATIONS = "ticket_operations_total"
NOTIFICATION_JOBS = "notification_jobs_total"
NOTIFICATION_ATTEMPTS = "notification_attempts_total"
NOTIFICATION_FAILURES = "notification_failures_total"
NOTIFICATION_JOB_DURATION = "notification_job_duration_seconds"

DEFAULT_METRIC_DEFINITIONS: tuple[MetricDefinition, ...] = (
    MetricDefinition(
        name=TICKET_OPERATIONS,
        metric_type="counter",
        description="Ticket lifecycle operations by outcome.",
        label_names=("operation", "outcome"),
    ),
    MetricDefinition(
        name=NOTIFICATION_JOBS,
        metric_type="counter",
        description="Notification jobs submitted for background delivery.",
        label_names=("event",),
    ),
    MetricDefinition(
        name=NOTIFICATION_ATTEMPTS,
        metric_type="counter",
        description="Email and SMS delivery attempts by outcome.",
        label_names=("channel", "event", "outcome"),
    ),
    MetricDefinition(
        name=NOTIFICATION_FAILURES,
        metric_type="counter",
        description="Notification steps that raised and were discarded.",
        label_names=("stage",),
    ),
    MetricDefinition(
        name=NOTIFICATION_JOB_DURATION,
        metric_type="distribution",
        description="Wall time of a notification job in seconds.",
        label_names=("event",),
    ),
)
