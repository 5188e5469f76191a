import pytest
from fastapi.testclient import TestClient

from fireguardian.main import create_app
from fireguardian.metrics import MetricsRegistry, PrometheusExporter, metrics_registry, register_default_metrics
from fireguardian.metrics.definitions import NOTIFICATION_ATTEMPTS, NOTIFICATION_JOB_DURATION, TICKET_OPERATIONS


def test_counter_tracks_values_per_label_set(metrics):
    counter = metrics.counter(TICKET_OPERATIONS)

    counter.inc(labels={"operation": "create", "outcome": "success"})
    counter.inc(2, labels={"operation": "create", "outcome": "success"})
    counter.inc(labels={"operation": "create", "outcome": "rejected"})

    assert counter.value({"operation": "create", "outcome": "success"}) == 3
    assert counter.value({"operation": "create", "outcome": "rejected"}) == 1
    assert counter.value({"operation": "close", "outcome": "success"}) == 0


def test_counter_rejects_unknown_labels(metrics):
    counter = metrics.counter(NOTIFICATION_ATTEMPTS)

    with pytest.raises(ValueError):
        counter.inc(labels={"channel": "email"})
    with pytest.raises(ValueError):
        counter.inc(-1, labels={"channel": "email", "event": "created", "outcome": "sent"})


def test_registry_refuses_type_mismatch(metrics):
    with pytest.raises(TypeError):
        metrics.distribution(TICKET_OPERATIONS)


def test_timed_records_distribution(metrics):
    with metrics.timed(NOTIFICATION_JOB_DURATION, labels={"event": "created"}):
        pass

    snapshot = metrics.distribution(NOTIFICATION_JOB_DURATION).snapshot()
    assert snapshot[("created",)]["count"] == 1.0


def test_exporter_renders_prometheus_text():
    registry = register_default_metrics(MetricsRegistry())
    registry.counter(NOTIFICATION_ATTEMPTS).inc(labels={"channel": "sms", "event": "high_priority_alert", "outcome": "sent"})

    payload = PrometheusExporter(registry).build_payload()

    assert f"# TYPE {NOTIFICATION_ATTEMPTS} counter" in payload
    assert 'notification_attempts_total{channel="sms",event="high_priority_alert",outcome="sent"} 1.0' in payload
    assert f"# TYPE {NOTIFICATION_JOB_DURATION} summary" in payload


def test_metrics_route_serves_registry():
    metrics_registry.counter(TICKET_OPERATIONS).inc(labels={"operation": "close", "outcome": "success"})
    client = TestClient(create_app())

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert 'ticket_operations_total{operation="close",outcome="success"}' in response.text


def test_ping_is_public():
    client = TestClient(create_app())

    assert client.get("/ping").json() == {"status": "ok"}
