"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across unit and integration tests.
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from dotenv import load_dotenv

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file from project root BEFORE any fixtures run
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

# Settings are read once at import time, so the test configuration has to be
# in place before anything imports lms.
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")
os.environ["API_KEY"] = ""
os.environ["DEBUG"] = "true"


# ============================================================================
# Environment Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """
    Set up test environment variables before any tests run.

    This ensures tests run with predictable configuration, overriding
    any values from .env files to ensure test isolation.
    """
    original_env = os.environ.copy()

    os.environ.update(
        {
            "LOG_LEVEL": "DEBUG",
            "POSTGRES_USER": os.environ.get("POSTGRES_TEST_USER", "testuser"),
            "POSTGRES_PASSWORD": os.environ.get("POSTGRES_TEST_PASSWORD", "testpass"),
            "POSTGRES_DB": os.environ.get("POSTGRES_TEST_DB", "testdb"),
        }
    )

    yield

    os.environ.clear()
    os.environ.update(original_env)


# ============================================================================
# Time
# ============================================================================


@pytest.fixture
def now() -> datetime:
    """A fixed reference time (mid-day UTC, so day boundaries are unambiguous)."""
    return datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Sample Module Content
# ============================================================================


@pytest.fixture
def sample_module_data() -> dict[str, Any]:
    """
    A module exercising every content source the extractor reads.

    Raw shape as stored by the authoring service (camelCase keys).
    """
    return {
        "id": "mod-1",
        "courseId": "course-1",
        "title": "Photosynthesis",
        "isInteractive": True,
        "contentBlocks": [
            {"id": "t1", "order": 0, "type": "text", "content": "Plants make food."},
            {
                "id": "b1",
                "order": 1,
                "type": "interaction",
                "interaction": {
                    "type": "mcq",
                    "question": "Where does photosynthesis happen?",
                    "options": [
                        {"id": "o1", "text": "Mitochondria", "isCorrect": False},
                        {"id": "o2", "text": "Chloroplast", "isCorrect": True},
                    ],
                },
            },
            {
                "id": "b2",
                "order": 2,
                "type": "interaction",
                "conceptKey": "light-reaction-inputs",
                "interaction": {
                    "type": "fill_blank",
                    "text": "Light reactions use {{water}} and {{light}}.",
                    "blanks": [
                        {"id": "x", "correctAnswer": "water"},
                        {"id": "y", "correctAnswer": "light"},
                    ],
                },
            },
            {
                "id": "b3",
                "order": 3,
                "type": "interaction",
                "interaction": {
                    "type": "reflection",
                    "prompt": "Why do leaves change colour?",
                    "rubric": "Mentions chlorophyll breakdown",
                },
            },
            {
                "id": "b4",
                "order": 4,
                "type": "interaction",
                "interaction": {"type": "reveal", "content": "Fun fact"},
            },
        ],
        "aiGeneratedContent": {
            "summary": "How plants turn light into sugar.",
            "keyPoints": ["Chlorophyll absorbs light", "Oxygen is a by-product"],
            "examples": [],
            "practiceQuestions": [
                {"question": "What gas do plants absorb?", "answer": "Carbon dioxide"},
            ],
        },
    }


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_db_session() -> MagicMock:
    """
    Create a mock database session for unit testing.
    """
    mock = MagicMock()
    mock.execute = AsyncMock()
    mock.flush = AsyncMock()
    mock.get = AsyncMock(return_value=None)
    mock.commit = AsyncMock()
    mock.rollback = AsyncMock()
    mock.close = AsyncMock()
    return mock
