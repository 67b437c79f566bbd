import logging

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from hermes.core.logging import get_request_id
from hermes.core.middleware.request_id import RequestIdMiddleware


def _make_app():
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/")
    async def root(request: Request):
        return {
            "request_id": getattr(request.state, "request_id", None),
            "context_request_id": get_request_id(),
        }

    return app


def test_generates_request_id_when_missing():
    client = TestClient(_make_app())

    resp = client.get("/")
    assert resp.status_code == 200
    rid_header = resp.headers.get("x-request-id")
    body = resp.json()

    assert rid_header
    assert body["request_id"] == rid_header
    assert body["context_request_id"] == rid_header


def test_echoes_provided_request_id():
    client = TestClient(_make_app())

    provided = "test-rid-123"
    resp = client.get("/", headers={"X-Request-Id": provided})

    assert resp.status_code == 200
    assert resp.headers.get("x-request-id") == provided
    assert resp.json()["request_id"] == provided


def test_context_is_cleared_after_request():
    client = TestClient(_make_app())
    client.get("/", headers={"X-Request-Id": "short-lived"})
    assert get_request_id() is None


def test_malformed_request_id_is_replaced():
    client = TestClient(_make_app())

    resp = client.get("/", headers={"X-Request-Id": "not a valid id!"})

    rid = resp.headers.get("x-request-id")
    assert rid != "not a valid id!"
    assert resp.json()["request_id"] == rid


def test_completion_log_carries_authenticated_user(caplog):
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/me")
    async def me(request: Request):
        request.state.user_id = "seeker-7"
        return {}

    with caplog.at_level(logging.INFO, logger="hermes"):
        TestClient(app).get("/me")

    done = [r for r in caplog.records if r.getMessage() == "request.complete"]
    assert done
    assert done[-1].user_id == "seeker-7"
    assert done[-1].status == 200
