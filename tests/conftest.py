"""Shared test fixtures: isolated settings and markdown files."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from typing import TypeAlias

# Tests never talk to a real classification service.
os.environ["OLLAMA_BASE_URL"] = "http://ollama.test"
os.environ.pop("CONCURRENCY", None)
os.environ.pop("OLLAMA_MODEL", None)
os.environ.pop("LENIENT_LANGUAGES", None)

import pytest  # noqa: E402

from fencecheck.config import Settings  # noqa: E402

WriteMarkdown: TypeAlias = Callable[[str, str], Path]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with the validation cache under ``tmp_path``."""
    return Settings(
        _env_file=None,  # pyright: ignore[reportCallIssue]
        cache_dir=tmp_path / ".cache",
        concurrency=4,
    )


@pytest.fixture
def write_md(tmp_path: Path) -> WriteMarkdown:
    """Write a markdown file under ``tmp_path`` and return its path."""

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
