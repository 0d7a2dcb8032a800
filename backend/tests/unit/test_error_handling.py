"""
Unit tests for the error handling middleware.
"""

import httpx
import pytest
from fastapi import FastAPI

from lms.middleware.error_handling import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ServiceError,
    UnauthorizedError,
    ValidationError,
    setup_error_handling,
)


def _app(exc: Exception, debug: bool = False) -> FastAPI:
    app = FastAPI()
    setup_error_handling(app, debug=debug)

    @app.get("/boom")
    async def boom():
        raise exc

    return app


async def _get(app: FastAPI) -> httpx.Response:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get("/boom")


class TestServiceErrors:
    """Tests for mapping service errors onto responses."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc,status,code",
        [
            (ValidationError("bad"), 422, "validation_error"),
            (NotFoundError("missing"), 404, "not_found"),
            (UnauthorizedError("who?"), 401, "unauthorized"),
            (AuthorizationError("no"), 403, "forbidden"),
            (ConflictError("stale"), 409, "conflict"),
            (PersistenceError("down"), 503, "persistence_error"),
        ],
    )
    async def test_status_and_code(self, exc, status, code):
        response = await _get(_app(exc))

        assert response.status_code == status
        body = response.json()
        assert body["error"] == code
        assert body["message"] == exc.message
        assert len(body["error_id"]) == 8
        assert "timestamp" in body

    @pytest.mark.asyncio
    async def test_details_hidden_unless_debug(self):
        exc = NotFoundError("missing", details={"item_id": 3})

        hidden = await _get(_app(exc, debug=False))
        shown = await _get(_app(exc, debug=True))

        assert hidden.json()["details"] is None
        assert shown.json()["details"] == {"item_id": 3}

    def test_overrides(self):
        exc = ServiceError("x", status_code=418, error_code="teapot")
        assert exc.status_code == 418
        assert exc.error_code == "teapot"


class TestUnexpectedErrors:
    @pytest.mark.asyncio
    async def test_sanitized_500(self):
        response = await _get(_app(RuntimeError("secret internals")))

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal_server_error"
        assert "secret internals" not in response.text
