"""
Application configuration.
Values come from the environment (and an optional .env file) and are collected
into a single Settings object that services receive at construction time.
"""

import os
from functools import lru_cache
from typing import Annotated, Optional, Tuple

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_DATABASE_URL = "sqlite:///./dsaplanner.db"

DEFAULT_LINK_DOMAINS = (
    "leetcode.com",
    "geeksforgeeks.org",
    "codeforces.com",
    "hackerrank.com",
    "interviewbit.com",
    "codingninjas.com",
    "naukri.com",
    "takeuforward.org",
    "neetcode.io",
    "lintcode.com",
)


class Settings(BaseSettings):
    """Runtime configuration for the planner."""

    # Completion API credentials (never hardcoded)
    groq_api_key: Optional[str] = Field(None, alias="GROQ_API_KEY")
    gemini_api_key: Optional[str] = Field(None, alias="GEMINI_API_KEY")
    openrouter_api_key: Optional[str] = Field(None, alias="OPENROUTER_API_KEY")

    groq_model: str = Field("llama-3.3-70b-versatile", alias="GROQ_MODEL")
    gemini_model: str = Field("gemini-2.0-flash", alias="GEMINI_MODEL")
    llm_timeout_seconds: int = Field(60, alias="LLM_TIMEOUT_SECONDS")

    database_url: str = Field(DEFAULT_DATABASE_URL, alias="DATABASE_URL")

    # Classification batching (external rate limits cap batches at 25)
    batch_size: int = Field(20, alias="CLASSIFICATION_BATCH_SIZE")
    batch_concurrency: int = Field(1, alias="CLASSIFICATION_CONCURRENCY")

    # Ingestion
    max_problems: int = Field(5000, alias="MAX_PROBLEMS")
    max_sheets: int = Field(10, alias="MAX_SHEETS")
    strict_rows: bool = Field(False, alias="STRICT_ROWS")
    placeholder_names: bool = Field(False, alias="PLACEHOLDER_NAMES")

    # Classification result filtering
    drop_invalid_problems: bool = Field(False, alias="DROP_INVALID_PROBLEMS")
    allowed_link_domains: Annotated[Tuple[str, ...], NoDecode] = Field(
        DEFAULT_LINK_DOMAINS,
        alias="ALLOWED_LINK_DOMAINS",
    )

    default_topic_days: int = Field(3, alias="DEFAULT_TOPIC_DAYS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    @field_validator("allowed_link_domains", mode="before")
    @classmethod
    def _split_domains(cls, value):
        # Comma-separated in the environment
        if isinstance(value, str):
            value = [item for item in value.split(",") if item.strip()]
        domains = tuple(str(item).strip().lower() for item in value)
        return domains or DEFAULT_LINK_DOMAINS

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def has_llm_credentials(self) -> bool:
        return bool(self.groq_api_key or self.gemini_api_key or self.openrouter_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid planner configuration: {exc}") from exc
