"""Tests for block validation and the compatibility table."""

from __future__ import annotations

from pathlib import Path
from typing import Any, cast

import pytest

from fencecheck.cache import ClassificationCache
from fencecheck.classification.engine import LanguageClassifier
from fencecheck.constants import IssueType, Language
from fencecheck.models import CodeBlock
from fencecheck.validator import (
    COMPATIBILITY_RULES,
    is_compatible,
    normalize_language,
    validate_block,
)


class StubClassifier:
    """Always detects the same language and counts calls."""

    def __init__(self, language: Language) -> None:
        self.language = language
        self.calls = 0

    async def classify(self, content: str) -> Language:
        self.calls += 1
        return self.language


def _stub(language: Language) -> Any:
    return cast(Any, StubClassifier(language))


def _block(language: str | None, content: str) -> CodeBlock:
    return CodeBlock(
        file=Path("README.md"),
        start_line=4,
        end_line=6,
        start_line_number=5,
        end_line_number=7,
        content=content,
        specified_language=language,
    )


def _heuristic() -> LanguageClassifier:
    return LanguageClassifier(ClassificationCache())


class TestNormalize:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("sh", "bash"),
            ("Shell", "bash"),
            ("JS", "javascript"),
            ("tsx", "typescript"),
            ("md", "markdown"),
            ("txt", "text"),
            ("python", "python"),
            ("", None),
            (None, None),
        ],
    )
    def test_aliases(self, raw: str | None, expected: str | None) -> None:
        assert normalize_language(raw) == expected


class TestValidateBlock:
    @pytest.mark.asyncio
    async def test_matching_language(self) -> None:
        issue = await validate_block(_block("bash", "echo hi"), _heuristic())
        assert issue is None

    @pytest.mark.asyncio
    async def test_json_declared_as_bash(self) -> None:
        issue = await validate_block(
            _block("bash", '{ "a": 1 }'), _heuristic()
        )
        assert issue is not None
        assert issue.type == IssueType.INCORRECT_LANGUAGE
        assert issue.specified_language == "bash"
        assert issue.detected_language == "json"
        assert (issue.line, issue.end_line) == (5, 7)
        assert issue.start_line_index == 4

    @pytest.mark.asyncio
    async def test_alias_matches_canonical(self) -> None:
        assert (
            await validate_block(_block("sh", "ls -la"), _heuristic())
            is None
        )
        assert (
            await validate_block(_block("JS", "const a = 1;"), _heuristic())
            is None
        )

    @pytest.mark.asyncio
    async def test_issue_keeps_declared_spelling(self) -> None:
        issue = await validate_block(
            _block("sh", "ls"), _stub(Language.JSON)
        )
        assert issue is not None
        assert issue.specified_language == "sh"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tag", ["jsx", "tsx", "TSX"])
    async def test_jsx_tsx_always_valid(self, tag: str) -> None:
        stub = StubClassifier(Language.BASH)
        issue = await validate_block(_block(tag, "npm i"), cast(Any, stub))
        assert issue is None
        assert stub.calls == 0

    @pytest.mark.asyncio
    async def test_empty_content_is_valid(self) -> None:
        stub = StubClassifier(Language.BASH)
        issue = await validate_block(_block("json", "  \n"), cast(Any, stub))
        assert issue is None
        assert stub.calls == 0

    @pytest.mark.asyncio
    async def test_missing_language_not_validated_here(self) -> None:
        assert await validate_block(_block(None, "ls"), _heuristic()) is None

    @pytest.mark.asyncio
    async def test_unknown_language_compared(self) -> None:
        issue = await validate_block(
            _block("python", "echo hi\nnpm install"), _heuristic()
        )
        assert issue is not None
        assert issue.specified_language == "python"
        assert issue.detected_language == "bash"

    @pytest.mark.asyncio
    async def test_unknown_language_accepted_when_lenient(self) -> None:
        stub = StubClassifier(Language.BASH)
        issue = await validate_block(
            _block("python", "echo hi\nnpm install"),
            cast(Any, stub),
            lenient_languages=True,
        )
        assert issue is None
        assert stub.calls == 0

    @pytest.mark.asyncio
    async def test_compatible_pair_is_valid(self) -> None:
        issue = await validate_block(
            _block("javascript", "const a: number = 1;"),
            _stub(Language.TYPESCRIPT),
        )
        assert issue is None


class TestCompatibilityTable:
    def test_nine_rules(self) -> None:
        assert len(COMPATIBILITY_RULES) == 9

    @pytest.mark.parametrize(
        ("declared", "detected", "content"),
        [
            ("bash", "text", "# install deps\n# then build"),
            ("markdown", "text", "see [docs](https://x.dev)"),
            ("javascript", "text", "// nothing here yet"),
            ("typescript", "text", "/* placeholder */"),
            ("typescript", "bash", "import { x } from 'y';"),
            ("javascript", "bash", "module.exports = plugin;"),
            ("text", "bash", "anything at all"),
            ("typescript", "bash", "client.connect()"),
            ("javascript", "typescript", "anything"),
            ("markdown", "bash", "anything"),
            ("markdown", "text", "anything"),
        ],
    )
    def test_accepted(self, declared: str, detected: str, content: str) -> None:
        assert is_compatible(declared, detected, content) is True

    @pytest.mark.parametrize(
        ("declared", "detected", "content"),
        [
            ("bash", "text", "plain words"),
            ("typescript", "javascript", "const a = 1;"),
            ("bash", "json", '{"a": 1}'),
            ("json", "bash", "npm install"),
            ("javascript", "text", "hello there"),
        ],
    )
    def test_rejected(self, declared: str, detected: str, content: str) -> None:
        assert is_compatible(declared, detected, content) is False
