"""
Unit tests for request dependencies (caller identity, API key).
"""

import pytest
from fastapi import HTTPException

from lms.config import settings
from lms.dependencies import get_current_student, verify_api_key
from lms.middleware.error_handling import AuthorizationError, UnauthorizedError


class TestGetCurrentStudent:
    @pytest.mark.asyncio
    async def test_student_header(self):
        assert await get_current_student(" alice ", "student") == "alice"

    @pytest.mark.asyncio
    async def test_role_optional(self):
        assert await get_current_student("alice", None) == "alice"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("student_id", [None, "", "   "])
    async def test_missing_identity(self, student_id):
        with pytest.raises(UnauthorizedError):
            await get_current_student(student_id, "student")

    @pytest.mark.asyncio
    async def test_non_student_role(self):
        with pytest.raises(AuthorizationError):
            await get_current_student("t-1", "teacher")


class TestVerifyAPIKey:
    @pytest.mark.asyncio
    async def test_disabled_when_unset(self, monkeypatch):
        monkeypatch.setattr(settings, "API_KEY", "")
        assert await verify_api_key(None) == "dev-mode"

    @pytest.mark.asyncio
    async def test_valid_key(self, monkeypatch):
        monkeypatch.setattr(settings, "API_KEY", "secret")
        assert await verify_api_key("secret") == "secret"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", [None, "wrong"])
    async def test_invalid_key(self, monkeypatch, key):
        monkeypatch.setattr(settings, "API_KEY", "secret")
        with pytest.raises(HTTPException) as exc_info:
            await verify_api_key(key)
        assert exc_info.value.status_code == 401
