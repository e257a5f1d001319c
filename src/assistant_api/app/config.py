"""Application settings."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Settings(BaseSettings):
    """Runtime settings loaded from ASSISTANT_* environment variables."""

    app_name: str = "assistant-api"
    app_version: str = "1.0.0"
    database_path: str = "./data/assistant.db"
    openai_api_key: str = ""
    llm_model: str = "gpt-3.5-turbo"
    llm_base_url: str = "https://api.openai.com/v1"
    llm_max_tokens: int = Field(default=500, ge=1)
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    # None leaves the timeout to the transport default.
    llm_timeout_s: float | None = Field(default=None, gt=0)
    simulation_min_delay_ms: int = Field(default=500, ge=0)
    simulation_max_delay_ms: int = Field(default=1500, ge=0)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    model_config = SettingsConfigDict(
        env_prefix="ASSISTANT_",
        extra="ignore",
        env_file=(PROJECT_ROOT / ".env", PROJECT_ROOT / ".env.local"),
        env_file_encoding="utf-8",
    )

    def resolved_openai_api_key(self) -> str:
        return (self.openai_api_key or os.getenv("OPENAI_API_KEY", "")).strip()

    def simulation_mode(self) -> bool:
        return not self.resolved_openai_api_key()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
