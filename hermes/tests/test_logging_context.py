"""Tests for structured logging and request_id propagation."""

import json
import logging

from fastapi.testclient import TestClient

from hermes.core.logging import (
    JsonFormatter,
    PrettyFormatter,
    RequestIdFilter,
    latency_bucket_ms,
    log_event,
    request_id_ctx_var,
)
from hermes.main import app


def test_request_id_in_response_and_logs(caplog):
    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger="hermes"):
        response = client.get("/healthz")
    rid = response.headers.get("x-request-id")
    assert rid
    records = [r for r in caplog.records if getattr(r, "request_id", None) == rid]
    assert records, "Expected logs to contain request_id from response"
    assert any(r.getMessage() == "request.complete" for r in records)


def test_request_id_in_error_response():
    client = TestClient(app)
    response = client.get("/api/subscription/nothing-here")
    rid = response.headers.get("x-request-id")
    assert response.status_code == 404
    assert rid
    payload = response.json()
    assert payload["error"]["code"] == "not_found"
    assert payload["error"]["request_id"] == rid


def test_denials_are_logged_with_structured_fields(caplog):
    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger="hermes"):
        client.get(
            "/api/subscription/tools",
            params={"action": "check", "toolName": "tarot_reader"},
            headers={"X-User-Id": "log-user"},
        )
    denials = [r for r in caplog.records if r.getMessage() == "[tool_access] DENIED"]
    assert denials
    assert denials[0].tool_name == "tarot_reader"
    assert denials[0].upgrade_required == "ADEPT"
    assert denials[0].stage == "tier"


def _record(msg="hello", **extra):
    record = logging.LogRecord("hermes.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extras_and_request_id():
    token = request_id_ctx_var.set("rid-json")
    try:
        record = _record(user_id="u1", tool_name="ritual_generator")
        RequestIdFilter().filter(record)
        payload = json.loads(JsonFormatter().format(record))
    finally:
        request_id_ctx_var.reset(token)

    assert payload["request_id"] == "rid-json"
    assert payload["message"] == "hello"
    assert payload["user_id"] == "u1"
    assert payload["tool_name"] == "ritual_generator"


def test_pretty_formatter_is_single_line():
    line = PrettyFormatter().format(_record(request_id="rid-1", tier="SEEKER"))
    assert "[rid=rid-1]" in line
    assert "tier=SEEKER" in line
    assert "\n" not in line


def test_latency_buckets():
    assert latency_bucket_ms(None) == "unknown"
    assert latency_bucket_ms(5) != latency_bucket_ms(5000)


def test_log_event_attaches_user_and_event_type(caplog):
    with caplog.at_level(logging.INFO, logger="hermes"):
        log_event("info", "subscription_tools.request", user_id="u1", event_type="check")

    record = [r for r in caplog.records if r.getMessage() == "subscription_tools.request"][-1]
    assert record.user_id == "u1"
    assert record.event_type == "check"
