"""Tests for the ASGI trace ID middleware.

Tests verify:
- Trace ID extraction from request headers
- Trace ID generation when missing
- Trace ID on error responses
- Context cleanup after requests
"""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from libs.common.logging.context import (
    TRACE_ID_HEADER,
    clear_trace_id,
    get_or_create_trace_id,
    get_trace_id,
)
from libs.common.logging.middleware import ASGITraceIDMiddleware, add_trace_id_middleware


@pytest.fixture()
def app() -> FastAPI:
    """Create a test FastAPI application."""
    app = FastAPI()

    @app.get("/test")
    async def test_endpoint() -> dict:
        return {"trace_id": get_trace_id()}

    @app.get("/missing")
    async def missing_endpoint() -> dict:
        raise HTTPException(status_code=404, detail={"message": "Order not found"})

    return app


class TestASGITraceIDMiddleware:
    """Test suite for ASGITraceIDMiddleware."""

    def test_extracts_trace_id_from_header(self, app: FastAPI) -> None:
        app.add_middleware(ASGITraceIDMiddleware)
        client = TestClient(app)

        response = client.get("/test", headers={TRACE_ID_HEADER: "test-trace-123"})

        assert response.status_code == 200
        assert response.json()["trace_id"] == "test-trace-123"
        assert response.headers[TRACE_ID_HEADER] == "test-trace-123"

    def test_generates_trace_id_when_missing(self, app: FastAPI) -> None:
        app.add_middleware(ASGITraceIDMiddleware)
        client = TestClient(app)

        response = client.get("/test")

        trace_id = response.json()["trace_id"]
        assert trace_id is not None
        assert len(trace_id) == 36  # UUID format
        assert response.headers[TRACE_ID_HEADER] == trace_id

    def test_error_response_carries_trace_id(self, app: FastAPI) -> None:
        app.add_middleware(ASGITraceIDMiddleware)
        client = TestClient(app)

        response = client.get("/missing", headers={TRACE_ID_HEADER: "trace-404"})

        assert response.status_code == 404
        assert response.headers[TRACE_ID_HEADER] == "trace-404"

    def test_each_request_gets_its_own_trace_id(self, app: FastAPI) -> None:
        app.add_middleware(ASGITraceIDMiddleware)
        client = TestClient(app)

        first = client.get("/test").json()["trace_id"]
        second = client.get("/test").json()["trace_id"]

        assert first != second

    def test_clears_trace_id_after_request(self, app: FastAPI) -> None:
        app.add_middleware(ASGITraceIDMiddleware)
        client = TestClient(app)
        clear_trace_id()

        client.get("/test", headers={TRACE_ID_HEADER: "test-789"})

        assert get_trace_id() is None

    def test_add_trace_id_middleware_helper(self, app: FastAPI) -> None:
        add_trace_id_middleware(app)
        client = TestClient(app)

        response = client.get("/test", headers={TRACE_ID_HEADER: "helper-1"})

        assert response.headers[TRACE_ID_HEADER] == "helper-1"


def test_get_or_create_trace_id_binds_new_id() -> None:
    clear_trace_id()
    try:
        trace_id = get_or_create_trace_id()
        assert get_trace_id() == trace_id
        assert get_or_create_trace_id() == trace_id
    finally:
        clear_trace_id()
