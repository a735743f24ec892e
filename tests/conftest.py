"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any app import so settings pick them up
and no developer .env file is loaded.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

# Set default env vars that all tests might need
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("GEMINI_MODEL", "gemini-2.0-flash")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import json  # noqa: E402
from typing import Any  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402


SAMPLE_RECORD: dict[str, Any] = {
    "beschreibung": "Flüssiges Wachs aus den Samen des Jojobastrauchs.",
    "einsatzkonzentration": "1-100%",
    "lagerung": "Kühl & trocken",
    "einarbeitungsphase": "Fettphase",
    "hauttyp": ["Alle Hauttypen", "Trockene Haut"],
    "wirkung": "Rückfettend, pflegend, zieht schnell ein.",
    "kategorie": ["Öl", "Basis"],
}


@pytest.fixture
def sample_record() -> dict[str, Any]:
    """A valid ingredient record using the wire (German) keys."""
    return json.loads(json.dumps(SAMPLE_RECORD))


@pytest.fixture
def stub_llm(sample_record: dict[str, Any]) -> MagicMock:
    """LLM client stub replying with a fenced JSON record."""
    llm = MagicMock()
    llm.generate_text = AsyncMock(
        return_value=f"```json\n{json.dumps(sample_record, ensure_ascii=False)}\n```"
    )
    return llm


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Give every test a fresh per-client budget."""
    from app.core import rate_limit as rate_limit_module

    rate_limit_module.get_rate_limiter().reset()
