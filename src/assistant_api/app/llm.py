from __future__ import annotations

import json
import logging
from typing import Any, Protocol
from urllib import error, request

from .config import Settings

logger = logging.getLogger(__name__)

EMPTY_COMPLETION_TEXT = "No response generated"


class CompletionClient(Protocol):
    """Interface for plain-text chat completions."""

    model: str

    def complete(self, *, system_prompt: str, user_prompt: str) -> str: ...


class OpenAIChatCompletionsClient:
    """Small OpenAI client using the chat completions REST API.

    One attempt per call. Failures propagate to the caller.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        base_url: str = "https://api.openai.com/v1",
        max_tokens: int = 500,
        temperature: float = 0.7,
        timeout_s: float | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout_s = timeout_s

    def complete(self, *, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        response_json = self._request(payload)
        return self._extract_content(response_json)

    def _request(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/chat/completions"
        logger.debug("llm event=request model=%s url=%s", self.model, url)
        req = request.Request(
            url=url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        try:
            if self.timeout_s is None:
                response = request.urlopen(req)
            else:
                response = request.urlopen(req, timeout=self.timeout_s)
            with response:
                body = response.read().decode("utf-8")
        except error.HTTPError as exc:
            raw_error = exc.read().decode("utf-8", errors="replace")
            raise error.HTTPError(
                exc.url,
                exc.code,
                f"OpenAI API request failed: {raw_error}",
                exc.headers,
                exc.fp,
            ) from exc
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ValueError("OpenAI response was not valid JSON") from exc
        if not isinstance(parsed, dict):
            raise ValueError("OpenAI response was not a JSON object")
        return parsed

    @staticmethod
    def _extract_content(response_json: dict[str, Any]) -> str:
        choices = response_json.get("choices")
        if not isinstance(choices, list):
            raise ValueError("OpenAI response did not contain choices")
        if not choices:
            return EMPTY_COMPLETION_TEXT

        message = choices[0].get("message") or {}
        content = message.get("content")
        if isinstance(content, str):
            return content or EMPTY_COMPLETION_TEXT
        if isinstance(content, list):
            text_segments: list[str] = []
            for item in content:
                if isinstance(item, dict):
                    text = item.get("text")
                    if isinstance(text, str):
                        text_segments.append(text)
            merged = "".join(text_segments).strip()
            return merged or EMPTY_COMPLETION_TEXT
        if content is None:
            return EMPTY_COMPLETION_TEXT
        raise ValueError("OpenAI response content could not be parsed as text")


def build_completion_client(settings: Settings) -> CompletionClient | None:
    api_key = settings.resolved_openai_api_key()
    if not api_key:
        return None
    return OpenAIChatCompletionsClient(
        api_key=api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
        timeout_s=settings.llm_timeout_s,
    )
