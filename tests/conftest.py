from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from assistant_api.app.config import Settings
from assistant_api.app.models import InteractionLog, utc_timestamp
from assistant_api.app.processor import SimulatedTaskProcessor
from assistant_api.app.storage import SqliteInteractionLogStore

BASE_TIME = datetime(2026, 10, 19, 10, 0, tzinfo=UTC)


class FakeCompletionClient:
    """Test-only completion client that records prompts and returns canned text."""

    def __init__(self, text: str = "Generated answer", model: str = "fake-model") -> None:
        self.text = text
        self.model = model
        self.calls: list[dict[str, str]] = []

    def complete(self, *, system_prompt: str, user_prompt: str) -> str:
        self.calls.append({"system_prompt": system_prompt, "user_prompt": user_prompt})
        return self.text


class FailingCompletionClient:
    """Test-only completion client that always raises."""

    def __init__(self, exc: Exception, model: str = "fake-model") -> None:
        self.exc = exc
        self.model = model

    def complete(self, *, system_prompt: str, user_prompt: str) -> str:
        raise self.exc


@pytest.fixture
def fake_completion_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def failing_completion_client() -> FailingCompletionClient:
    return FailingCompletionClient(RuntimeError("Rate limit exceeded"))


@pytest.fixture
def database_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "assistant.db"


@pytest.fixture
def settings(database_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return Settings(
        _env_file=None,
        database_path=str(database_path),
        openai_api_key="",
        simulation_min_delay_ms=0,
        simulation_max_delay_ms=0,
    )


@pytest.fixture
def store(database_path: Path) -> Iterator[SqliteInteractionLogStore]:
    log_store = SqliteInteractionLogStore(database_path)
    yield log_store
    log_store.close()


@pytest.fixture
def instant_processor() -> SimulatedTaskProcessor:
    return SimulatedTaskProcessor(min_delay_ms=0, max_delay_ms=0, sleep=lambda _seconds: None)


@pytest.fixture
def make_log() -> Callable[..., InteractionLog]:
    counter = itertools.count(1)

    def _make(**overrides: Any) -> InteractionLog:
        index = next(counter)
        values: dict[str, Any] = {
            "id": f"log-{index}",
            "task": f"task number {index}",
            "response": f"response number {index}",
            "status": "success",
            "timestamp": utc_timestamp(BASE_TIME + timedelta(seconds=index)),
            "processing_time": 100,
            "metadata": {"priority": "medium"},
        }
        values.update(overrides)
        return InteractionLog(**values)

    return _make


@pytest.fixture
def client(
    settings: Settings,
    store: SqliteInteractionLogStore,
    instant_processor: SimulatedTaskProcessor,
) -> Iterator[TestClient]:
    from assistant_api.main import create_app

    app = create_app(settings_override=settings, store=store, processor=instant_processor)
    with TestClient(app) as test_client:
        yield test_client
