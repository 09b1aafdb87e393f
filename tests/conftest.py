"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests, so the
environment below is in place before settings are first imported.
"""

import os

import pytest

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-3.5-turbo")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("LOG_LEVEL", "WARNING")


class FakeClock:
    """Deterministic millisecond clock for limiter tests."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
