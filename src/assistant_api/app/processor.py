"""Task processors: turn a TaskRequest into a TaskResponse.

Two strategies share one contract, ``process(request) -> TaskResponse``:
1) LiveTaskProcessor: one chat-completions call per task.
2) SimulatedTaskProcessor: canned reports after an artificial delay.

The strategy is picked once at startup by ``build_task_processor``. Neither
strategy raises for generation problems; a failed generation comes back as a
``status="error"`` response that is still logged and returned to the caller.
"""

from __future__ import annotations

import logging
import random
import time
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

from .config import Settings
from .llm import CompletionClient, build_completion_client
from .models import TaskRequest, TaskResponse, utc_timestamp
from .prompts import build_user_prompt, select_prompt_rule
from .simulation import canned_response_for, generic_acknowledgement

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = "medium"


class TaskProcessor(Protocol):
    def process(self, request: TaskRequest) -> TaskResponse: ...


def _elapsed_ms(started: float) -> int:
    return max(int((time.perf_counter() - started) * 1000), 0)


def _base_metadata(request: TaskRequest) -> dict[str, Any]:
    metadata: dict[str, Any] = {"priority": request.priority or DEFAULT_PRIORITY}
    if request.context is not None:
        metadata["context"] = request.context
    return metadata


class LiveTaskProcessor:
    """Delegates generation to a chat-completions backend."""

    def __init__(self, client: CompletionClient, *, model: str | None = None) -> None:
        self.client = client
        self.model = model or getattr(client, "model", "unknown")

    def process(self, request: TaskRequest) -> TaskResponse:
        started = time.perf_counter()
        task_id = str(uuid.uuid4())
        rule = select_prompt_rule(request.task)
        logger.info(
            "task_process event=start task_id=%s mode=live prompt_rule=%s", task_id, rule.name
        )
        try:
            text = self.client.complete(
                system_prompt=rule.instruction,
                user_prompt=build_user_prompt(request),
            )
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or exc.__class__.__name__
            logger.warning(
                "task_process event=generation_failed task_id=%s reason=%s", task_id, message
            )
            metadata = _base_metadata(request)
            metadata["error"] = message
            return TaskResponse(
                id=task_id,
                task=request.task,
                response=f"Error processing task: {message}",
                status="error",
                timestamp=utc_timestamp(),
                processing_time=_elapsed_ms(started),
                metadata=metadata,
            )

        metadata = _base_metadata(request)
        metadata["model"] = self.model
        return TaskResponse(
            id=task_id,
            task=request.task,
            response=text,
            status="success",
            timestamp=utc_timestamp(),
            processing_time=_elapsed_ms(started),
            metadata=metadata,
        )


class SimulatedTaskProcessor:
    """Deterministic stand-in used when no API key is configured."""

    def __init__(
        self,
        *,
        min_delay_ms: int = 500,
        max_delay_ms: int = 1500,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
    ) -> None:
        if min_delay_ms < 0 or max_delay_ms < min_delay_ms:
            raise ValueError("delay range must satisfy 0 <= min_delay_ms <= max_delay_ms")
        self.min_delay_ms = min_delay_ms
        self.max_delay_ms = max_delay_ms
        self._sleep = sleep
        self._rng = rng or random.Random()

    def draw_delay_ms(self) -> float:
        """Uniform draw from [min_delay_ms, max_delay_ms)."""
        span = self.max_delay_ms - self.min_delay_ms
        return self.min_delay_ms + self._rng.random() * span

    def process(self, request: TaskRequest) -> TaskResponse:
        started = time.perf_counter()
        task_id = str(uuid.uuid4())
        delay_ms = self.draw_delay_ms()
        logger.info(
            "task_process event=start task_id=%s mode=simulated delay_ms=%.0f", task_id, delay_ms
        )
        self._sleep(delay_ms / 1000)

        priority = request.priority or DEFAULT_PRIORITY
        response = canned_response_for(request.task)
        if response is None:
            response = generic_acknowledgement(
                request.task,
                priority=priority,
                context=request.context,
                now=datetime.now(),
            )

        metadata = _base_metadata(request)
        metadata["simulated"] = True
        return TaskResponse(
            id=task_id,
            task=request.task,
            response=response,
            status="success",
            timestamp=utc_timestamp(),
            processing_time=_elapsed_ms(started),
            metadata=metadata,
        )


def build_task_processor(
    settings: Settings,
    *,
    completion_client: CompletionClient | None = None,
) -> TaskProcessor:
    """Pick the strategy once: live when a client/API key exists, simulated otherwise."""
    client = completion_client or build_completion_client(settings)
    if client is not None:
        logger.info("task_processor event=selected mode=live model=%s", client.model)
        return LiveTaskProcessor(client, model=client.model)

    logger.warning(
        "task_processor event=selected mode=simulated reason=no_openai_api_key "
        "hint='set ASSISTANT_OPENAI_API_KEY or OPENAI_API_KEY for live responses'"
    )
    return SimulatedTaskProcessor(
        min_delay_ms=settings.simulation_min_delay_ms,
        max_delay_ms=max(settings.simulation_max_delay_ms, settings.simulation_min_delay_ms),
    )
