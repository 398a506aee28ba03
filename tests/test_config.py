"""Tests for Settings validators and defaults."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from fencecheck.config import Settings


def _settings(**kwargs: object) -> Settings:
    return Settings(_env_file=None, **kwargs)  # type: ignore[call-arg]


class TestDefaults:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OLLAMA_BASE_URL", raising=False)
        s = _settings()
        assert s.ollama_base_url == "http://localhost:11434"
        assert s.ollama_model == "codellama:7b"
        assert s.concurrency == 10
        assert s.classifier_sample_chars == 800
        assert s.classifier_failure_threshold == 3
        assert s.cache_enabled is True
        assert s.lenient_languages is False

    def test_cache_path(self) -> None:
        s = _settings(cache_dir=Path("/tmp/c"))
        assert s.validation_cache_path == Path(
            "/tmp/c/markdown-validation-cache.json"
        )


class TestEnvironment:
    def test_concurrency_from_env(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CONCURRENCY", "3")
        assert _settings().concurrency == 3

    def test_model_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OLLAMA_MODEL", "deepseek-coder:6.7b")
        assert _settings().ollama_model == "deepseek-coder:6.7b"

    def test_lenient_languages_from_env(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LENIENT_LANGUAGES", "true")
        assert _settings().lenient_languages is True


class TestValidators:
    @pytest.mark.parametrize("value", [0, -2])
    def test_concurrency_must_be_positive(self, value: int) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            _settings(concurrency=value)

    def test_failure_threshold_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            _settings(classifier_failure_threshold=0)

    def test_sample_size(self) -> None:
        with pytest.raises(ValueError, match="classifier_sample_chars"):
            _settings(classifier_sample_chars=0)

    def test_base_url_trailing_slash_stripped(self) -> None:
        s = _settings(ollama_base_url="http://gpu-box:11434/")
        assert s.ollama_base_url == "http://gpu-box:11434"

    def test_base_url_requires_http(self) -> None:
        with pytest.raises(ValueError, match="http"):
            _settings(ollama_base_url="gpu-box:11434")

    def test_log_level_normalised(self) -> None:
        assert _settings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_warns(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="fencecheck.config"):
            s = _settings(log_level="chatty")
        assert s.log_level == "INFO"
        assert "Unknown LOG_LEVEL" in caplog.text
