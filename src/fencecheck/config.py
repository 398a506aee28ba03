"""Environment-based configuration."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Reads from .env file and environment variables."""

    # Classification service (Ollama-compatible)
    ollama_base_url: str = "http://localhost:11434"
    # Recommended: codellama:7b/13b, qwen2.5-coder:7b, deepseek-coder:6.7b
    ollama_model: str = "codellama:7b"
    ollama_timeout_seconds: float = 60.0
    classifier_sample_chars: int = 800
    classifier_failure_threshold: int = 3

    # Scheduling
    concurrency: int = 10

    # Validation cache
    cache_dir: Path = Path(".cache/fencecheck")
    validation_cache_file: str = "markdown-validation-cache.json"
    cache_enabled: bool = True

    # Accept declared languages the classifier cannot detect
    lenient_languages: bool = False

    # Logging
    log_level: str = "INFO"

    @field_validator("concurrency", "classifier_failure_threshold")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be at least 1")
        return v

    @field_validator("classifier_sample_chars")
    @classmethod
    def _sample_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(
                "classifier_sample_chars must be at least 1"
            )
        return v

    @field_validator("ollama_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        stripped = v.rstrip("/")
        if not stripped.startswith(("http://", "https://")):
            raise ValueError(
                "ollama_base_url must be an http(s) URL"
            )
        return stripped

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            logger.warning("Unknown LOG_LEVEL %r, using INFO", v)
            return "INFO"
        return level

    @property
    def validation_cache_path(self) -> Path:
        """Full path of the persisted validation cache."""
        return self.cache_dir / self.validation_cache_file

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "",
        "extra": "ignore",
    }
