"""Tests for structured logging configuration."""

import json
import logging

import pytest

from servicedesk.core.logging import (
    RequestContextFilter,
    request_context,
    setup_logging,
)


def _record(msg: str = "message") -> logging.LogRecord:
    return logging.LogRecord(
        name="servicedesk.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_request_context_filter_defaults_outside_requests():
    record = _record()
    assert RequestContextFilter().filter(record) is True
    assert (record.request_id, record.http_method, record.http_path) == ("-", "-", "-")


def test_request_context_filter_injects_fields():
    record = _record()
    token = request_context.set(
        {"request_id": "req-123", "method": "PUT", "path": "/api/ordens-servico/1"}
    )
    try:
        assert RequestContextFilter().filter(record) is True
        assert record.request_id == "req-123"
        assert record.http_method == "PUT"
        assert record.http_path == "/api/ordens-servico/1"
    finally:
        request_context.reset(token)


def test_setup_logging_emits_json_with_request_fields():
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level

    try:
        setup_logging("debug")
        assert root_logger.level == logging.DEBUG
        handler = root_logger.handlers[0]

        record = _record("Created service order numero_os=1027")
        for filter_ in handler.filters:
            filter_.filter(record)
        payload = json.loads(handler.format(record))

        assert payload["message"] == "Created service order numero_os=1027"
        assert payload["level"] == "INFO"
        assert payload["name"] == "servicedesk.test"
        assert payload["request_id"] == "-"
        assert "timestamp" in payload
        assert logging.getLogger("uvicorn.access").propagate is True
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("aiosqlite").level == logging.WARNING
    finally:
        root_logger.handlers = original_handlers
        root_logger.setLevel(original_level)


@pytest.mark.asyncio
async def test_request_context_is_cleared_after_request(api_client):
    response = await api_client.get("/health", headers={"X-Request-ID": "req-xyz"})
    assert response.headers["X-Request-ID"] == "req-xyz"
    assert request_context.get() is None


@pytest.mark.asyncio
async def test_request_id_generated_when_absent(api_client):
    response = await api_client.get("/health")
    request_id = response.headers["X-Request-ID"]
    assert len(request_id) == 32
    int(request_id, 16)
