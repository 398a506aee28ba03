"""Compare a block's declared language with the detected one."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from fencecheck.classification.engine import LanguageClassifier
from fencecheck.classification.heuristics import BADGE, HEADING, LINK
from fencecheck.constants import (
    ALWAYS_VALID_TAGS,
    LANGUAGE_ALIASES,
    VALID_LANGUAGES,
    Language,
)
from fencecheck.models import CodeBlock, LanguageIssue

ES_MODULE_SYNTAX = re.compile(
    r"^\s*import\s+|^\s*export\s+(default\s+)?|from\s+['\"][^'\"]+['\"]",
    re.MULTILINE,
)
COMMONJS_SYNTAX = re.compile(r"module\.exports\s*=|require\s*\(")
JS_LIKE_SYNTAX = re.compile(
    r"\{[\s\S]*\}"
    r"|function\s+\w+"
    r"|\b(const|let|var)\s+\w+"
    r"|=>\s*\{"
    r"|\w+\.\w+\("
)


def normalize_language(language: str | None) -> str | None:
    """Lowercase and map common aliases (``sh`` → ``bash``, …)."""
    if not language:
        return None
    normalized = language.strip().lower()
    return LANGUAGE_ALIASES.get(normalized, normalized)


def _non_empty_lines(content: str) -> list[str]:
    return [ln.strip() for ln in content.split("\n") if ln.strip()]


def _hash_comments_only(content: str) -> bool:
    lines = _non_empty_lines(content)
    return bool(lines) and all(ln.startswith("#") for ln in lines)


def _slash_comments_only(content: str) -> bool:
    lines = _non_empty_lines(content)
    return bool(lines) and all(
        ln.startswith(("//", "/*", "*")) or ln.endswith("*/")
        for ln in lines
    )


def _markdown_markup(content: str) -> bool:
    return bool(
        BADGE.search(content)
        or LINK.search(content)
        or HEADING.match(content.strip())
    )


def _always(_content: str) -> bool:
    return True


_SCRIPT = frozenset({Language.JAVASCRIPT, Language.TYPESCRIPT})


@dataclass(frozen=True)
class CompatibilityRule:
    """A declared/detected pair accepted despite differing."""

    name: str
    declared: frozenset[str]
    detected: frozenset[str]
    predicate: Callable[[str], bool]

    def accepts(self, declared: str, detected: str, content: str) -> bool:
        return (
            declared in self.declared
            and detected in self.detected
            and self.predicate(content)
        )


COMPATIBILITY_RULES: tuple[CompatibilityRule, ...] = (
    CompatibilityRule(
        "bash-comments",
        frozenset({Language.BASH}),
        frozenset({Language.TEXT}),
        _hash_comments_only,
    ),
    CompatibilityRule(
        "markdown-markup",
        frozenset({Language.MARKDOWN}),
        frozenset({Language.TEXT}),
        _markdown_markup,
    ),
    CompatibilityRule(
        "script-comments",
        _SCRIPT,
        frozenset({Language.TEXT}),
        _slash_comments_only,
    ),
    CompatibilityRule(
        "script-es-modules",
        _SCRIPT,
        frozenset({Language.BASH}),
        lambda c: bool(ES_MODULE_SYNTAX.search(c)),
    ),
    CompatibilityRule(
        "javascript-commonjs",
        frozenset({Language.JAVASCRIPT}),
        frozenset({Language.BASH}),
        lambda c: bool(COMMONJS_SYNTAX.search(c)),
    ),
    CompatibilityRule(
        "text-shows-commands",
        frozenset({Language.TEXT}),
        frozenset({Language.BASH}),
        _always,
    ),
    CompatibilityRule(
        "script-js-syntax",
        _SCRIPT,
        frozenset({Language.BASH}),
        lambda c: bool(JS_LIKE_SYNTAX.search(c)),
    ),
    CompatibilityRule(
        "javascript-with-ts-hints",
        frozenset({Language.JAVASCRIPT}),
        frozenset({Language.TYPESCRIPT}),
        _always,
    ),
    CompatibilityRule(
        "simple-markdown",
        frozenset({Language.MARKDOWN}),
        frozenset({Language.TEXT, Language.BASH}),
        _always,
    ),
)


def is_compatible(declared: str, detected: str, content: str) -> bool:
    """True when a compatibility rule accepts the pair."""
    return any(
        rule.accepts(declared, detected, content)
        for rule in COMPATIBILITY_RULES
    )


async def validate_block(
    block: CodeBlock,
    classifier: LanguageClassifier,
    *,
    lenient_languages: bool = False,
) -> LanguageIssue | None:
    """Return a :class:`LanguageIssue` when *block* is mislabelled.

    Blocks without a declared language are reported by the scanner
    and are not validated here. A declared language the classifier
    cannot detect (``python``, ``yaml``) is compared like any other
    unless *lenient_languages* is set.
    """
    if block.specified_language is None:
        return None
    if not block.content.strip():
        return None

    tag = block.specified_language.strip().lower()
    if tag in ALWAYS_VALID_TAGS:
        return None
    declared = normalize_language(block.specified_language)
    if declared is None:
        return None
    if lenient_languages and declared not in VALID_LANGUAGES:
        return None

    detected = await classifier.classify(block.content)
    if declared == detected:
        return None
    if is_compatible(declared, detected, block.content):
        return None

    return LanguageIssue(
        file=block.file,
        line=block.start_line_number,
        end_line=block.end_line_number,
        specified_language=block.specified_language,
        detected_language=detected.value,
        content=block.content,
        start_line_index=block.start_line,
    )
