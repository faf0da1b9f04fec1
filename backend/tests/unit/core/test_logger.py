"""Unit tests for the logging utility."""

from __future__ import annotations

import json
import logging

import pytest
from pvz_auth.core.logger import JSONFormatter, configure_logging, ensure_request_id


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logging_sets_level(restore_root_logger) -> None:
    """``configure_logging`` should set the root logger level."""

    # Act
    configure_logging("DEBUG")

    # Assert
    assert restore_root_logger.level == logging.DEBUG
    assert len(restore_root_logger.handlers) == 1


def test_json_formatter_includes_extra_keys() -> None:
    record = logging.LogRecord(
        "pvz_auth.test", logging.WARNING, __file__, 1, "rejected %s", ("x",), None
    )
    record.op = "auth.refresh_tokens"
    record.kind = "WRONG_CREDENTIALS"
    record.request_id = "req-42"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "rejected x"
    assert payload["level"] == "WARNING"
    assert payload["request_id"] == "req-42"
    assert payload["op"] == "auth.refresh_tokens"
    assert payload["kind"] == "WRONG_CREDENTIALS"
    assert "elapsed_ms" not in payload


def test_request_id_is_taken_from_header_and_echoed(app, client) -> None:
    response = client.get("/api/v1/healthz", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"

    with app.test_request_context(headers={"X-Correlation-ID": "corr-9"}):
        assert ensure_request_id() == "corr-9"
        assert ensure_request_id() == "corr-9"


def test_request_id_is_generated_when_missing(client) -> None:
    first = client.get("/api/v1/healthz").headers["X-Request-ID"]
    second = client.get("/api/v1/healthz").headers["X-Request-ID"]
    assert first and second and first != second
