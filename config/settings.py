#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Settings - Centralized configuration management

Values come from keyword arguments, environment variables and the
project's .env file, in that order of precedence.
"""

from pathlib import Path
from typing import Literal, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from config.constants import (
    BATCH_UPLOAD_HARD_CAP_MB,
    BATCH_POLL_INTERVAL_SECONDS,
    CAPTION_MAX_TOKENS,
    DEFAULT_CHUNK_BUDGET_MB,
    DEFAULT_VISION_MODEL,
    IMAGES_DIR,
    MIB,
    OUTPUT_DIR,
    PROMPT_FILE,
    RATE_LIMIT_PER_MINUTE,
    REQUEST_TIMEOUT_SECONDS,
    SYNC_MAX_ATTEMPTS,
    TEMP_DIR,
)
from core.errors import ConfigurationError
from core.models import CaptionOptions


# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Allow extra fields from .env that aren't defined in model
    )

    # ========== API ==========
    openai_api_key: str = ""
    openai_base_url: Optional[str] = None
    request_timeout_seconds: float = Field(default=REQUEST_TIMEOUT_SECONDS, gt=0)

    # ========== Model & Output ==========
    model: str = DEFAULT_VISION_MODEL
    fidelity: Literal["low", "high", "auto"] = "low"
    output_ext: Literal["txt", "caption"] = "txt"
    max_tokens: int = Field(default=CAPTION_MAX_TOKENS, gt=0)

    # ========== Rate Limiting & Retries ==========
    rate_limit_per_minute: int = Field(default=RATE_LIMIT_PER_MINUTE, gt=0)
    max_attempts: int = Field(default=SYNC_MAX_ATTEMPTS, ge=1)

    # ========== Batch ==========
    poll_interval_seconds: float = Field(default=BATCH_POLL_INTERVAL_SECONDS, gt=0)
    chunk_budget_mb: float = Field(default=DEFAULT_CHUNK_BUDGET_MB, gt=0, le=BATCH_UPLOAD_HARD_CAP_MB)

    # ========== Directories ==========
    images_dir: Path = Path(IMAGES_DIR)
    output_dir: Path = Path(OUTPUT_DIR)
    prompt_file: Path = Path(PROMPT_FILE)
    temp_dir: Path = Path(TEMP_DIR)

    @property
    def chunk_budget_bytes(self) -> float:
        return self.chunk_budget_mb * MIB

    def ensure_directories(self):
        """Create the output and temp folders"""
        for dir_path in [self.output_dir, self.temp_dir]:
            dir_path.mkdir(exist_ok=True, parents=True)

    def get_api_key(self) -> str:
        if not self.openai_api_key or not self.openai_api_key.strip():
            raise ConfigurationError(
                "OPENAI_API_KEY is not set. Please set this environment variable and try again."
            )
        return self.openai_api_key

    def caption_options(
        self,
        prompt: str,
        file_ext: Optional[str] = None,
        fidelity: Optional[str] = None,
    ) -> CaptionOptions:
        """Explicit per-run options handed to the pipelines"""
        return CaptionOptions(
            prompt=prompt,
            model=self.model,
            fidelity=fidelity or self.fidelity,
            output_dir=self.output_dir,
            file_ext=file_ext or self.output_ext,
            max_tokens=self.max_tokens,
        )
