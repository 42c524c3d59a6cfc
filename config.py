"""
Configuration settings for the Carson triage engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Language Model Gateway
    # ========================================
    llm_base_url: str = Field(
        default="http://localhost:11434/v1",
        description="Base URL of an OpenAI-compatible chat completions API",
    )
    llm_api_key: str | None = Field(
        default=None,
        description="Bearer token for the model API (None for local servers)",
    )
    llm_model: str = Field(
        default="llama3.1",
        description="Model name sent with every completion request",
    )
    llm_temperature: float = Field(
        default=0.2,
        description="Sampling temperature for grading and gap analysis",
    )
    llm_timeout_seconds: float = Field(
        default=30.0,
        description="Per-call timeout before falling back to heuristics",
    )

    # ========================================
    # Tutoring Policy
    # ========================================
    retention_probability: float = Field(
        default=0.7,
        description="Chance of asking a retention question on an eligible subtopic",
    )
    retention_interval: int = Field(
        default=3,
        description="Retention questions are considered every N subtopics",
    )
    confusion_window_turns: int = Field(
        default=6,
        description="How many recent turns count as recent confusion for gap ranking",
    )
    random_seed: int | None = Field(
        default=None,
        description="Seed for phrase-bank selection (None for nondeterministic)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def has_remote_model(self) -> bool:
        """Check if a model endpoint is configured."""
        return bool(self.llm_base_url)

    def get_gateway_config(self) -> dict[str, object]:
        """Get model gateway configuration as a dictionary."""
        return {
            "base_url": self.llm_base_url,
            "model": self.llm_model,
            "temperature": self.llm_temperature,
            "timeout_seconds": self.llm_timeout_seconds,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
