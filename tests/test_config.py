"""Tests for environment-driven configuration."""

import pytest

from app.core.config import LLMSettings, RateLimitSettings
from app.core.rate_limit import build_rate_limiter


@pytest.fixture(autouse=True)
def _clean_rate_limit_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "RATE_LIMIT_REQUESTS_PER_MINUTE",
        "RATE_LIMIT_REQUESTS_PER_HOUR",
        "RATE_LIMIT_REQUESTS_PER_DAY",
    ):
        monkeypatch.delenv(name, raising=False)


def test_chat_defaults_when_unset() -> None:
    cfg = RateLimitSettings()

    assert cfg.requests_per_minute == 15
    assert cfg.requests_per_hour == 250
    assert cfg.requests_per_day == 500
    assert cfg.client_id_header == "X-Forwarded-For"
    assert cfg.anonymous_client_id == "anonymous"


def test_reads_overrides_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_REQUESTS_PER_MINUTE", "30")
    monkeypatch.setenv("RATE_LIMIT_REQUESTS_PER_HOUR", " 400 ")
    monkeypatch.setenv("RATE_LIMIT_REQUESTS_PER_DAY", "1e3")

    cfg = RateLimitSettings()

    assert cfg.requests_per_minute == 30
    assert cfg.requests_per_hour == 400
    assert cfg.requests_per_day == 1000


@pytest.mark.parametrize("raw", ["", "   ", "abc", "NaN", "inf", "-inf", "0", "-5", "2.5"])
def test_invalid_minute_quota_falls_back_to_default(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("RATE_LIMIT_REQUESTS_PER_MINUTE", raw)

    cfg = RateLimitSettings()

    assert cfg.requests_per_minute == 15


def test_limiter_built_from_invalid_env_uses_default_cap(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_REQUESTS_PER_MINUTE", "not-a-number")

    limiter = build_rate_limiter(RateLimitSettings())

    assert limiter.config.requests_per_minute == 15


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 15),
        (True, 15),
        ("12", 12),
        (12, 12),
        (12.0, 12),
        ("12.0", 12),
        ("twelve", 15),
        (float("nan"), 15),
        (0, 15),
    ],
)
def test_quota_values_passed_directly(raw, expected: int) -> None:
    assert RateLimitSettings(requests_per_minute=raw).requests_per_minute == expected


def test_llm_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LLM_MODEL", raising=False)
    monkeypatch.delenv("LLM_ORGANIZATION", raising=False)

    cfg = LLMSettings()

    assert cfg.provider == "openai"
    assert cfg.model == "gpt-3.5-turbo"
    assert cfg.temperature == 0.7
    assert cfg.max_tokens == 1000
    assert cfg.organization is None
