"""
Metrics instrumentation tests.
"""

from types import SimpleNamespace

import pytest
from prometheus_client import REGISTRY
from starlette.requests import Request

from hvac_crm.core.metrics import _normalise_path, record_external_api_retry


def _get_metric_value(metric: str, labels: dict) -> float:
    value = REGISTRY.get_sample_value(metric, labels)
    return value or 0.0


@pytest.mark.asyncio
async def test_http_metrics_and_request_id(api_client):
    labels = {"method": "GET", "path": "/api/v1/health/liveness", "status": "200"}
    before = _get_metric_value("app_http_requests_total", labels)

    response = await api_client.get("/api/v1/health/liveness")

    after = _get_metric_value("app_http_requests_total", labels)
    assert after == pytest.approx(before + 1)
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_is_echoed(api_client):
    response = await api_client.get(
        "/api/v1/health/liveness", headers={"X-Request-ID": "dispatch-abc"}
    )
    assert response.headers["X-Request-ID"] == "dispatch-abc"


@pytest.mark.asyncio
async def test_http_error_metrics_use_route_template(api_client):
    labels = {"method": "GET", "path": "/api/v1/bookings/{request_id}", "status": "404"}
    total_before = _get_metric_value("app_http_requests_total", labels)
    errors_before = _get_metric_value("app_http_request_errors_total", labels)

    response = await api_client.get("/api/v1/bookings/9999")

    assert response.status_code == 404
    assert _get_metric_value("app_http_requests_total", labels) == pytest.approx(total_before + 1)
    assert _get_metric_value("app_http_request_errors_total", labels) == pytest.approx(
        errors_before + 1
    )


@pytest.mark.asyncio
async def test_domain_counters_follow_dispatch_activity(api_client, seed):
    tech = await seed.technician()
    booking = await seed.request()
    assignments_before = _get_metric_value("app_technician_assignments_total", {})
    completed_before = _get_metric_value(
        "app_status_transitions_total", {"status": "completed"}
    )

    await api_client.put(
        f"/api/v1/dispatch/bookings/{booking.request_id}/assign",
        json={"tech_id": tech.tech_id, "scheduled_date": "2026-03-10", "scheduled_time": "09:00:00"},
    )
    await api_client.put(
        f"/api/v1/dispatch/bookings/{booking.request_id}/status", json={"status": "completed"}
    )

    assert _get_metric_value("app_technician_assignments_total", {}) == pytest.approx(
        assignments_before + 1
    )
    assert _get_metric_value(
        "app_status_transitions_total", {"status": "completed"}
    ) == pytest.approx(completed_before + 1)


@pytest.mark.asyncio
async def test_metrics_endpoint_exposes_counters(api_client):
    response = await api_client.get("/metrics/")
    assert response.status_code == 200
    assert "app_bookings_created_total" in response.text


def test_external_api_retry_metric():
    labels = {"service": "test-service"}
    before = _get_metric_value("app_external_api_retries_total", labels)
    record_external_api_retry("test-service")
    assert _get_metric_value("app_external_api_retries_total", labels) == pytest.approx(before + 1)


def _request(path: str, route=None) -> Request:
    scope = {"type": "http", "method": "GET", "path": path, "query_string": b"", "headers": []}
    if route is not None:
        scope["route"] = route
    return Request(scope)


def test_path_label_restores_router_prefix():
    relative = SimpleNamespace(path_format="/{request_id}")
    full = SimpleNamespace(path_format="/api/v1/bookings/{request_id}")
    collection = SimpleNamespace(path_format="")

    assert _normalise_path(_request("/api/v1/bookings/42", relative)) == "/api/v1/bookings/{request_id}"
    assert _normalise_path(_request("/api/v1/bookings/42", full)) == "/api/v1/bookings/{request_id}"
    assert _normalise_path(_request("/api/v1/bookings", collection)) == "/api/v1/bookings"
    assert _normalise_path(_request("/no/such/route")) == "/no/such/route"
