"""
Configuration settings for deutsch-meister.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from deutsch_meister.models import MAX_WORD_COUNT, MIN_WORD_COUNT


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Generation Endpoint (Gemini)
    # ========================================
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Generative AI (Gemini) API key",
    )
    ai_model: str = Field(
        default="gemini-2.5-flash",
        description="Model used for every generation call",
    )
    ai_temperature: float | None = Field(
        default=None,
        description="Sampling temperature (None keeps the model default)",
    )

    # ========================================
    # Exercise Defaults
    # ========================================
    default_level: Literal["A2", "B1", "B2", "C1"] = Field(
        default="A2",
        description="CEFR level preselected for a new story",
    )
    default_word_count: int = Field(
        default=150,
        description="Approximate story length preselected for a new story",
    )
    min_word_count: int = Field(
        default=MIN_WORD_COUNT,
        ge=MIN_WORD_COUNT,
        description="Smallest story length offered (never below the entity limit)",
    )
    max_word_count: int = Field(
        default=MAX_WORD_COUNT,
        le=MAX_WORD_COUNT,
        description="Largest story length offered (never above the entity limit)",
    )
    word_count_step: int = Field(
        default=50,
        gt=0,
        description="Granularity of the story length selector",
    )
    quiz_question_count: int = Field(
        default=5,
        description="Questions generated per comprehension quiz",
    )
    strict_sentence_alignment: bool = Field(
        default=True,
        description="Reject sentence translations whose segmentation disagrees with the local splitter",
    )

    # ========================================
    # Word Selection
    # ========================================
    max_selection_chars: int = Field(
        default=50,
        description="Selections must be shorter than this to be looked up",
    )
    max_selection_words: int = Field(
        default=5,
        description="Selections with more words than this are ignored",
    )

    # ========================================
    # Persistence
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".deutsch_meister",
        description="Directory of the local key/value store",
    )
    export_filename: str = Field(
        default="deutsch-meister-favoriler.txt",
        description="File written by the saved-text export",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )

    @model_validator(mode="after")
    def _check_word_counts(self) -> "Settings":
        if self.min_word_count > self.max_word_count:
            raise ValueError("min_word_count must not exceed max_word_count")
        if not self.is_valid_word_count(self.default_word_count):
            raise ValueError(
                f"default_word_count must be one of {self.min_word_count}..{self.max_word_count} "
                f"in steps of {self.word_count_step}"
            )
        return self

    def word_count_choices(self) -> list[int]:
        """Story lengths offered to the learner, shortest first."""
        return list(range(self.min_word_count, self.max_word_count + 1, self.word_count_step))

    def is_valid_word_count(self, words: int) -> bool:
        return (
            self.min_word_count <= words <= self.max_word_count
            and (words - self.min_word_count) % self.word_count_step == 0
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
