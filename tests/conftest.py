"""Shared pytest fixtures."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("API_KEY", "test-key")
os.environ.setdefault("BASE_URL", "https://llm.test/api/v1/chat/completions")
os.environ.setdefault("SITE_TITLE", "Medical Assistant")
os.environ.setdefault("ENVIRONMENT", "test")

from app.main import create_app  # noqa: E402


@pytest.fixture(autouse=True)
def configure_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure required environment variables are present during tests."""

    monkeypatch.setenv("API_KEY", "test-key")
    monkeypatch.setenv("BASE_URL", "https://llm.test/api/v1/chat/completions")
    monkeypatch.setenv("SITE_TITLE", "Medical Assistant")
    monkeypatch.setenv("ENVIRONMENT", "test")


@pytest.fixture
def app():
    return create_app()
