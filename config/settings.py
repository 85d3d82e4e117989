"""Application settings and configuration management."""
from __future__ import annotations

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    STATE_DB_PATH: str = Field(default="data/interview_state.db")
    LLM_CONFIG_PATH: str = Field(default="app_config.json")

    TIMER_TICK_SECONDS: float = Field(default=1.0, gt=0.0)
    QUESTION_RETRY_LIMIT: int = Field(default=2, ge=0)
    QUESTION_RETRY_DELAY_SECONDS: float = Field(default=1.5, ge=0.0)

    INTERVIEW_ROLE: str = "Full Stack (React/Node.js) Developer"
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
