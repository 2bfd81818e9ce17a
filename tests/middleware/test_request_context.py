"""Tests for the request context middleware.

Verifies that every response gets:
- An X-Request-ID header (generated or echoed from the request)
- Request timing logged
- Only well-formed client IDs are trusted
"""

from __future__ import annotations

import logging
import uuid

from fastapi.testclient import TestClient

from coursetrack.middleware.request_context import (
    current_request_id,
    resolve_request_id,
)


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    """When no X-Request-ID header is sent, one is generated."""
    resp = client.get("/health")
    req_id = resp.headers.get("x-request-id")
    assert req_id is not None
    # Should be a valid UUID
    uuid.UUID(req_id)  # raises ValueError if invalid


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    """When the client sends X-Request-ID, the same value is echoed back."""
    custom_id = "my-custom-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": custom_id})
    assert resp.headers.get("x-request-id") == custom_id


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    """Even error responses (401, 404) get an X-Request-ID header."""
    resp = client.get("/v1/enrollments")  # no auth token, 401
    assert resp.headers.get("x-request-id") is not None


def test_request_summary_logged_with_context(client: TestClient, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="coursetrack.middleware.request_context"):
        client.get("/health", headers={"X-Request-ID": "trace-42"})

    summary = [r for r in caplog.records if r.getMessage().startswith("GET /health")]
    assert summary
    record = summary[-1]
    assert record.request_id == "trace-42"
    assert record.status_code == 200
    assert "-> 200" in record.getMessage()


def test_malformed_request_id_replaced(client: TestClient) -> None:
    """Client IDs with unsafe characters or excessive length are not trusted."""
    for bad in ("has spaces", "x" * 129, "a/b"):
        resp = client.get("/health", headers={"X-Request-ID": bad})
        echoed = resp.headers.get("x-request-id")
        assert echoed != bad
        uuid.UUID(echoed)


def test_resolve_request_id() -> None:
    assert resolve_request_id("trace-42") == "trace-42"
    assert resolve_request_id("svc.a:7") == "svc.a:7"
    uuid.UUID(resolve_request_id(None))
    uuid.UUID(resolve_request_id(""))


def test_no_request_id_outside_a_request() -> None:
    assert current_request_id() is None
