from __future__ import annotations

import pytest

from assistant_api.app.config import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    settings = Settings(_env_file=None)

    assert settings.database_path == "./data/assistant.db"
    assert settings.llm_model == "gpt-3.5-turbo"
    assert settings.llm_timeout_s is None
    assert settings.simulation_min_delay_ms == 500
    assert settings.simulation_max_delay_ms == 1500
    assert settings.port == 3000
    assert settings.simulation_mode() is True


def test_prefixed_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASSISTANT_DATABASE_PATH", "/tmp/custom.db")
    monkeypatch.setenv("ASSISTANT_LLM_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("ASSISTANT_PORT", "8080")
    monkeypatch.setenv("ASSISTANT_CORS_ORIGINS", '["http://localhost:3001"]')

    settings = Settings(_env_file=None)

    assert settings.database_path == "/tmp/custom.db"
    assert settings.llm_model == "gpt-4o-mini"
    assert settings.port == 8080
    assert settings.cors_origins == ["http://localhost:3001"]


def test_api_key_falls_back_to_unprefixed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ASSISTANT_OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "  sk-plain  ")

    settings = Settings(_env_file=None)

    assert settings.resolved_openai_api_key() == "sk-plain"
    assert settings.simulation_mode() is False


def test_prefixed_api_key_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASSISTANT_OPENAI_API_KEY", "sk-prefixed")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-plain")

    assert Settings(_env_file=None).resolved_openai_api_key() == "sk-prefixed"
