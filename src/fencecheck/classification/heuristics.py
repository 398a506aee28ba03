"""Deterministic, rule-based language detection.

The rules form an ordered table of ``(predicate, language)`` pairs
evaluated top-down; the first match wins. This classifier performs no
I/O and is the fallback of record whenever the external classifier is
unavailable, disabled, or answers with something unusable.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass

from fencecheck.classification.prose import (
    reads_as_issue_text,
    reads_as_prose,
)
from fencecheck.constants import SHORT_SNIPPET_CHARS, Language

# ── Shell ────────────────────────────────────────────────

_SHELL_COMMANDS = (
    "npm|pnpm|npx|yarn|git|gh|cd|ls|mkdir|echo|curl|wget|cat|grep|"
    "sed|awk|find|chmod|chown|sudo|docker|kubectl|node|python"
)
TREE_GLYPHS = re.compile(r"[├└│]")
HEREDOC = re.compile(r"<<-?\s*['\"]?(EOF|EOT)\b", re.IGNORECASE)
SHEBANG = re.compile(r"#!/(usr/)?bin/")
COMMAND_SUBSTITUTION = re.compile(r"\$\((?!['\"])")
TEMPLATE_INTERPOLATION = re.compile(r"`[^`]*\$\{")
LINE_CONTINUATION = re.compile(r"[ \t]\\$", re.MULTILINE)
ENV_EXPORT = re.compile(r"^export\s+[A-Z_][A-Z0-9_]*=", re.MULTILINE)
LEADING_COMMAND = re.compile(rf"^(\$|(?:{_SHELL_COMMANDS}))\s")
SUBCOMMAND = re.compile(
    r"^(gh|git|npm|pnpm|npx|yarn|curl|wget|cd|ls|mkdir|echo|cat|grep|"
    r"sed|awk|find|chmod|chown|sudo|docker|kubectl)\s+"
    r"(issue|list|create|add|install|run|exec|build|test|syncpack|"
    r"outdated|audit|check|fix)\b",
    re.IGNORECASE | re.MULTILINE,
)
CLI_FLAGS = re.compile(
    r"^(?!(?:import|export|const|let|var|function|class|return|if|"
    r"for|while|type|interface)\b)"
    r"[a-z][\w.-]*(?:[ \t]+[^\s-]\S*)*[ \t]+--?[a-zA-Z][\w-]*",
    re.MULTILINE,
)

# ── JSON ─────────────────────────────────────────────────

MANIFEST_KEY = re.compile(
    r'"(scripts|dependencies|devDependencies|peerDependencies)"\s*:'
)

# ── JavaScript / TypeScript ──────────────────────────────

CONFIG_FACTORY = re.compile(
    r"defineConfig|createCommitlintConfig|tsup|vitest/config|vite\.config"
)
MODULE_SYNTAX_START = re.compile(r"^(import|export)\b", re.MULTILINE)
JSX_MARKERS = re.compile(
    r"<[A-Z]\w*[^>]*>|</[A-Z]\w*>|\bclassName\b|\bonClick\b"
)
TYPE_SYNTAX = re.compile(
    r":\s*(string|number|boolean|any|void|object|unknown|never|"
    r"Array|Promise|Record|Map|Set)\b"
    r"|\binterface\s+\w+"
    r"|\btype\s+\w+\s*="
    r"|\benum\s+\w+"
    r"|\bas\s+(const|string|number|boolean)\b"
    r"|\b(import|export)\s+type\b"
    r"|\b[A-Z]\w*<\w+(\[\])?(,\s*\w+(\[\])?)*>"
)
TS_FILENAME_COMMENT = re.compile(r"//.*\.(ts|tsx|mts|cts)\b")
JS_FILENAME_COMMENT = re.compile(r"//.*\.(js|jsx|mjs|cjs)\b")
CODE_KEYWORD_START = re.compile(
    r"^(import|export|const|let|var|function|class)\b", re.MULTILINE
)
CONFIG_MENTION = re.compile(r"tsconfig|vitest-config|tsup")

# ── Markdown ─────────────────────────────────────────────

BADGE = re.compile(r"\[!\[[^\]]*\]\([^)]*\)\]\([^)]*\)")
LINK = re.compile(r"\[[^\]]+\]\([^)]+\)")
HEADING = re.compile(r"^#{1,6}\s+")
BOLD = re.compile(r"\*\*[^*\n]+\*\*")
ITALIC = re.compile(r"(?<![*\w])\*[^*\s][^*\n]*\*(?!\*)")
BULLET_LIST = re.compile(r"^\*[ \t]+\S")
INLINE_CODE = re.compile(r"`[^`]+`")
BRACKETS = re.compile(r"\[[^\]]*\]")
CODE_DECLARATION_START = re.compile(
    r"^(import|export|const|let|var|function|interface|type|enum)\b"
)
DESCRIPTIVE_PATTERNS = (
    re.compile(r"##\s+[A-Z]"),
    re.compile(r"\*\*[A-Z][^:]*:\*\*"),
    re.compile(r"^-\s+[A-Z]", re.MULTILINE),
)
ANALYSIS_WORDS = re.compile(r"Analyzing|Checked|Suggested|Category")


@dataclass(frozen=True)
class HeuristicRule:
    """One row of the heuristic decision table."""

    name: str
    predicate: Callable[[str], bool]
    language: Language


def parses_as_json(content: str) -> bool:
    stripped = content.strip()
    if not stripped.startswith(("{", "[")):
        return False
    try:
        json.loads(stripped)
    except ValueError:
        return False
    return True


def has_shell_signals(content: str) -> bool:
    """Syntax that is (nearly) unique to shell scripts and commands."""
    if parses_as_json(content):
        return False
    first_line = content.split("\n", 1)[0]
    return bool(
        HEREDOC.search(content)
        or SHEBANG.search(content)
        or COMMAND_SUBSTITUTION.search(content)
        or (
            "${" in content
            and not TEMPLATE_INTERPOLATION.search(content)
        )
        or LINE_CONTINUATION.search(content)
        or ENV_EXPORT.search(content)
        or LEADING_COMMAND.match(first_line)
        or SUBCOMMAND.search(content)
        or CLI_FLAGS.search(content)
    )


def looks_like_json(content: str) -> bool:
    if parses_as_json(content):
        return True
    return bool(MANIFEST_KEY.search(content)) and "{" in content


def has_config_factory(content: str) -> bool:
    """A config-factory call together with ES module syntax."""
    return bool(
        CONFIG_FACTORY.search(content)
        and MODULE_SYNTAX_START.search(content)
    )


def has_jsx(content: str) -> bool:
    return bool(JSX_MARKERS.search(content))


def has_typescript_markers(content: str) -> bool:
    return bool(
        has_config_factory(content)
        or has_jsx(content)
        or TYPE_SYNTAX.search(content)
    )


def is_comment_only(content: str) -> bool:
    """Every non-empty line is a ``//`` comment or inside ``/* */``.

    A ``*``-prefixed line only counts as a continuation of an open
    block comment, so markdown bullets and bold text never qualify.
    """
    lines = [ln.strip() for ln in content.split("\n") if ln.strip()]
    if not lines:
        return False
    in_block = False
    for ln in lines:
        if in_block:
            in_block = not ln.endswith("*/")
        elif ln.startswith("/*"):
            in_block = not ln.endswith("*/")
        elif not ln.startswith("//"):
            return False
    return True


def has_javascript_markers(content: str) -> bool:
    return bool(
        "require(" in content
        or "module.exports" in content
        or CODE_KEYWORD_START.search(content)
        or (len(content) < SHORT_SNIPPET_CHARS and is_comment_only(content))
    )


def _prose_mentioning_code(content: str) -> bool:
    if not reads_as_prose(content):
        return False
    return bool(
        has_typescript_markers(content)
        or has_javascript_markers(content)
        or CONFIG_MENTION.search(content)
    )


def _first_line_names(pattern: re.Pattern[str]) -> Callable[[str], bool]:
    def _check(content: str) -> bool:
        return bool(pattern.search(content.split("\n", 1)[0]))

    return _check


def _descriptive_text(content: str) -> bool:
    if reads_as_issue_text(content):
        return True
    count = sum(len(p.findall(content)) for p in DESCRIPTIVE_PATTERNS)
    return count >= 3 and bool(ANALYSIS_WORDS.search(content))


def _markdown_syntax(content: str) -> bool:
    if CODE_DECLARATION_START.match(content):
        return False
    return bool(
        BADGE.search(content)
        or LINK.search(content)
        or HEADING.match(content)
        or BOLD.search(content)
        or ITALIC.search(content)
        or BULLET_LIST.match(content)
        or (INLINE_CODE.search(content) and BRACKETS.search(content))
    )


HEURISTIC_RULES: tuple[HeuristicRule, ...] = (
    HeuristicRule(
        "directory-tree",
        lambda c: bool(TREE_GLYPHS.search(c)),
        Language.TEXT,
    ),
    HeuristicRule("shell", has_shell_signals, Language.BASH),
    HeuristicRule("json", looks_like_json, Language.JSON),
    HeuristicRule(
        "prose-mentioning-code", _prose_mentioning_code, Language.TEXT
    ),
    HeuristicRule(
        "typescript-by-filename",
        _first_line_names(TS_FILENAME_COMMENT),
        Language.TYPESCRIPT,
    ),
    HeuristicRule(
        "javascript-by-filename",
        _first_line_names(JS_FILENAME_COMMENT),
        Language.JAVASCRIPT,
    ),
    HeuristicRule(
        "typescript", has_typescript_markers, Language.TYPESCRIPT
    ),
    HeuristicRule(
        "javascript", has_javascript_markers, Language.JAVASCRIPT
    ),
    HeuristicRule("descriptive-text", _descriptive_text, Language.TEXT),
    HeuristicRule("markdown", _markdown_syntax, Language.MARKDOWN),
)


def match_rule(content: str) -> HeuristicRule | None:
    """Return the first rule whose predicate accepts *content*."""
    trimmed = content.strip()
    for rule in HEURISTIC_RULES:
        if rule.predicate(trimmed):
            return rule
    return None


def classify_heuristic(content: str) -> Language:
    """Guess the language of a code block from syntactic signals."""
    rule = match_rule(content)
    return rule.language if rule else Language.TEXT
