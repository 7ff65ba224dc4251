"""
Metrics instrumentation tests.
"""

import pytest
from prometheus_client import REGISTRY

from fastapi import Response

from servicedesk.core.metrics import record_pdf_rendered, route_template
from servicedesk.main import app
from tests.factories import order_payload


@app.get("/__test-error")
async def trigger_error():
    return Response(status_code=500)


def _get_metric_value(metric: str, labels: dict = None) -> float:
    value = REGISTRY.get_sample_value(metric, labels or {})
    return value or 0.0


@pytest.mark.asyncio
async def test_http_metrics_and_request_id(api_client):
    labels = {"method": "GET", "path": "/api/health/liveness", "status": "200"}
    before = _get_metric_value("app_http_requests_total", labels)

    response = await api_client.get("/api/health/liveness")

    after = _get_metric_value("app_http_requests_total", labels)
    assert after == pytest.approx(before + 1)
    assert "X-Request-ID" in response.headers
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_is_propagated(api_client):
    response = await api_client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_route_template_used_as_path_label(api_client):
    labels = {"method": "GET", "path": "/api/ordens-servico/{ordem_id}", "status": "404"}
    before = _get_metric_value("app_http_requests_total", labels)

    await api_client.get("/api/ordens-servico/4242")

    after = _get_metric_value("app_http_requests_total", labels)
    assert after == pytest.approx(before + 1)


@pytest.mark.parametrize(
    "path, template, expected",
    [
        ("/api/health/liveness", "/liveness", "/api/health/liveness"),
        ("/api/health/liveness", "/api/health/liveness", "/api/health/liveness"),
        ("/api/ordens-servico/4242", "/{ordem_id}", "/api/ordens-servico/{ordem_id}"),
        ("/api/ordens-servico/pdf/7", "/pdf/{ordem_id}", "/api/ordens-servico/pdf/{ordem_id}"),
        ("/", "/", "/"),
    ],
)
def test_route_template_restores_router_prefix(path, template, expected):
    assert route_template(path, template) == expected


@pytest.mark.asyncio
async def test_nested_route_labels_do_not_collide(api_client):
    labels = {"method": "GET", "path": "/api/ordens-servico/numero/{numero}", "status": "404"}
    before = _get_metric_value("app_http_requests_total", labels)

    await api_client.get("/api/ordens-servico/numero/9999")

    after = _get_metric_value("app_http_requests_total", labels)
    assert after == pytest.approx(before + 1)


@pytest.mark.asyncio
async def test_http_error_metrics(api_client):
    total_labels = {"method": "GET", "path": "/__test-error", "status": "500"}
    error_labels = total_labels.copy()

    total_before = _get_metric_value("app_http_requests_total", total_labels)
    errors_before = _get_metric_value("app_http_request_errors_total", error_labels)

    response = await api_client.get("/__test-error")

    total_after = _get_metric_value("app_http_requests_total", total_labels)
    errors_after = _get_metric_value("app_http_request_errors_total", error_labels)

    assert response.status_code == 500
    assert total_after == pytest.approx(total_before + 1)
    assert errors_after == pytest.approx(errors_before + 1)


@pytest.mark.asyncio
async def test_created_orders_metric(api_client):
    before = _get_metric_value("app_service_orders_created_total")

    response = await api_client.post("/api/ordens-servico", json=order_payload())

    assert response.status_code == 201
    assert _get_metric_value("app_service_orders_created_total") == pytest.approx(before + 1)


def test_pdf_documents_metric():
    before = _get_metric_value("app_pdf_documents_total", {"kind": "order"})
    record_pdf_rendered("order")
    after = _get_metric_value("app_pdf_documents_total", {"kind": "order"})
    assert after == pytest.approx(before + 1)
