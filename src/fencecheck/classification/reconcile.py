"""Merge the heuristic and external guesses into one language.

The override table records disagreement patterns observed between the
two signal sources. It is evaluated top-down, first match wins; when
no row matches, the external answer stands. Changes to these rows are
product decisions, not bug fixes.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from fencecheck.classification.heuristics import has_config_factory, has_jsx
from fencecheck.classification.prose import (
    MARKDOWN_LINK,
    line_count,
    reads_as_issue_text,
    reads_as_prose,
)
from fencecheck.constants import (
    PROSE_MIN_LINES,
    SHORT_SNIPPET_CHARS,
    Language,
)


def _always(_content: str) -> bool:
    return True


def _short(content: str) -> bool:
    return len(content) < SHORT_SNIPPET_CHARS


def _config_or_jsx(content: str) -> bool:
    return has_config_factory(content) or has_jsx(content)


def _issue_text_or_plain_lines(content: str) -> bool:
    if reads_as_issue_text(content):
        return True
    return line_count(content) > PROSE_MIN_LINES and not (
        MARKDOWN_LINK.search(content)
    )


@dataclass(frozen=True)
class OverrideRule:
    """Row of the reconciliation table: (heuristic, external, when) → result."""

    name: str
    heuristic: Language
    externals: frozenset[Language]
    predicate: Callable[[str], bool]
    result: Language

    def matches(
        self, heuristic: Language, external: Language, content: str
    ) -> bool:
        return (
            heuristic == self.heuristic
            and external in self.externals
            and self.predicate(content)
        )


OVERRIDE_RULES: tuple[OverrideRule, ...] = (
    OverrideRule(
        "shell-over-text",
        Language.BASH,
        frozenset({Language.TEXT}),
        _always,
        Language.BASH,
    ),
    OverrideRule(
        "json-over-shell",
        Language.JSON,
        frozenset({Language.BASH}),
        _always,
        Language.JSON,
    ),
    OverrideRule(
        "short-javascript-over-text",
        Language.JAVASCRIPT,
        frozenset({Language.TEXT}),
        _short,
        Language.JAVASCRIPT,
    ),
    OverrideRule(
        "typescript-config-or-jsx",
        Language.TYPESCRIPT,
        frozenset({Language.JAVASCRIPT}),
        _config_or_jsx,
        Language.TYPESCRIPT,
    ),
    OverrideRule(
        "prose-over-code",
        Language.TEXT,
        frozenset({Language.TYPESCRIPT, Language.JAVASCRIPT}),
        reads_as_prose,
        Language.TEXT,
    ),
    OverrideRule(
        "markdown-over-text",
        Language.MARKDOWN,
        frozenset({Language.TEXT}),
        _always,
        Language.MARKDOWN,
    ),
    OverrideRule(
        "prose-over-markdown",
        Language.TEXT,
        frozenset({Language.MARKDOWN}),
        _issue_text_or_plain_lines,
        Language.TEXT,
    ),
)


def reconcile(
    heuristic: Language,
    external: Language | None,
    content: str,
) -> Language:
    """Return the authoritative language for *content*."""
    if external is None:
        return heuristic
    for rule in OVERRIDE_RULES:
        if rule.matches(heuristic, external, content):
            return rule.result
    return external
