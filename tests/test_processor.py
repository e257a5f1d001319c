from __future__ import annotations

import random
from urllib import error

import pytest

from assistant_api.app.config import Settings
from assistant_api.app.llm import OpenAIChatCompletionsClient
from assistant_api.app.models import TaskRequest
from assistant_api.app.processor import (
    LiveTaskProcessor,
    SimulatedTaskProcessor,
    build_task_processor,
)


def test_live_processor_success(fake_completion_client) -> None:
    processor = LiveTaskProcessor(fake_completion_client)

    result = processor.process(TaskRequest(task="analyze leads", context="Q4 sales data"))

    assert result.status == "success"
    assert result.response == "Generated answer"
    assert result.task == "analyze leads"
    assert result.processing_time >= 0
    assert result.timestamp.endswith("Z")
    assert result.metadata == {
        "priority": "medium",
        "context": "Q4 sales data",
        "model": "fake-model",
    }
    assert len(fake_completion_client.calls) == 1
    call = fake_completion_client.calls[0]
    assert call["system_prompt"].startswith("You are a data analysis assistant.")
    assert call["user_prompt"] == "Task: analyze leads\n\nContext: Q4 sales data"


def test_live_processor_absorbs_backend_failure(failing_completion_client) -> None:
    processor = LiveTaskProcessor(failing_completion_client)

    result = processor.process(TaskRequest(task="summarize calls", priority="high"))

    assert result.status == "error"
    assert result.response == "Error processing task: Rate limit exceeded"
    assert result.metadata["error"] == "Rate limit exceeded"
    assert result.metadata["priority"] == "high"
    assert "model" not in result.metadata


@pytest.mark.parametrize(
    "exc",
    [
        error.URLError("connection refused"),
        ValueError("OpenAI response did not contain choices"),
        TimeoutError(),
    ],
)
def test_live_processor_never_raises(exc: Exception) -> None:
    class Broken:
        model = "broken"

        def complete(self, *, system_prompt: str, user_prompt: str) -> str:
            raise exc

    result = LiveTaskProcessor(Broken()).process(TaskRequest(task="hello"))

    assert result.status == "error"
    assert result.response.startswith("Error processing task: ")
    assert result.metadata["error"]


def test_simulated_analyze_leads_returns_lead_report() -> None:
    sleeps: list[float] = []
    processor = SimulatedTaskProcessor(sleep=sleeps.append)

    result = processor.process(TaskRequest(task="analyze leads"))

    assert result.status == "success"
    assert "Lead Analysis Report" in result.response
    assert result.metadata == {"priority": "medium", "simulated": True}
    assert "context" not in result.metadata
    assert len(sleeps) == 1
    assert 0.5 <= sleeps[0] < 1.5


@pytest.mark.parametrize(
    ("task", "marker"),
    [
        ("Please summarize calls from Monday", "Call Summary Report"),
        ("UPDATE CLIENT REPORT", "Client Report Update"),
    ],
)
def test_simulated_canned_reports(instant_processor, task: str, marker: str) -> None:
    result = instant_processor.process(TaskRequest(task=task))
    assert result.status == "success"
    assert marker in result.response


def test_simulated_unknown_task_embeds_text(instant_processor) -> None:
    result = instant_processor.process(
        TaskRequest(task="xyz123", context="pipeline review", priority="low")
    )

    assert result.status == "success"
    assert "xyz123" in result.response
    assert "**Priority**: low" in result.response
    assert "**Context**: pipeline review" in result.response
    assert result.metadata["simulated"] is True


def test_simulated_unknown_task_without_context(instant_processor) -> None:
    result = instant_processor.process(TaskRequest(task="xyz123"))

    assert "**Priority**: medium" in result.response
    assert "Context" not in result.response


def test_simulated_delay_draws_stay_in_range() -> None:
    processor = SimulatedTaskProcessor(rng=random.Random(1234), sleep=lambda _s: None)
    draws = [processor.draw_delay_ms() for _ in range(500)]

    assert all(500 <= value < 1500 for value in draws)
    assert max(draws) - min(draws) > 500


def test_simulated_processing_time_includes_delay(monkeypatch: pytest.MonkeyPatch) -> None:
    clock = iter([10.0, 11.25])
    monkeypatch.setattr(
        "assistant_api.app.processor.time.perf_counter", lambda: next(clock, 11.25)
    )
    processor = SimulatedTaskProcessor(sleep=lambda _s: None)

    result = processor.process(TaskRequest(task="analyze leads"))

    assert result.processing_time == 1250


def test_simulated_rejects_inverted_delay_range() -> None:
    with pytest.raises(ValueError):
        SimulatedTaskProcessor(min_delay_ms=900, max_delay_ms=100)


def test_ids_are_unique_across_calls(instant_processor, fake_completion_client) -> None:
    live = LiveTaskProcessor(fake_completion_client)
    ids = {instant_processor.process(TaskRequest(task="xyz")).id for _ in range(50)}
    ids |= {live.process(TaskRequest(task="xyz")).id for _ in range(50)}
    assert len(ids) == 100


def test_build_task_processor_without_key_is_simulated(settings: Settings) -> None:
    processor = build_task_processor(settings)
    assert isinstance(processor, SimulatedTaskProcessor)
    assert processor.min_delay_ms == 0


def test_build_task_processor_with_client_is_live(
    settings: Settings, fake_completion_client
) -> None:
    processor = build_task_processor(settings, completion_client=fake_completion_client)
    assert isinstance(processor, LiveTaskProcessor)
    assert processor.model == "fake-model"


def test_build_task_processor_with_api_key_uses_openai_client(settings: Settings) -> None:
    keyed = settings.model_copy(update={"openai_api_key": "sk-test", "llm_model": "gpt-4o-mini"})

    processor = build_task_processor(keyed)

    assert isinstance(processor, LiveTaskProcessor)
    assert isinstance(processor.client, OpenAIChatCompletionsClient)
    assert processor.model == "gpt-4o-mini"
