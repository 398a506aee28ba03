"""Shared constants: single source of truth for cross-module values.

All magic strings and numbers that appear in 2+ files belong here.
StrEnum members are str-compatible, so downstream code (JSON cache
files, console output, fence rewriting) works unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class Language(StrEnum):
    """Languages the classification pipeline can detect."""

    BASH = "bash"
    JSON = "json"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    MARKDOWN = "markdown"
    TEXT = "text"


class IssueType(StrEnum):
    """Kinds of problems reported for a fenced code block."""

    MISSING_LANGUAGE = "missing-language"
    INCORRECT_LANGUAGE = "incorrect-language"
    UNCLOSED_BLOCK = "unclosed-block"
    MALFORMED_FENCE = "malformed-fence"


class UnitOutcome(StrEnum):
    """Outcome of one scheduled unit of work."""

    COMPLETED = "completed"
    FAILED = "failed"


VALID_LANGUAGES: frozenset[str] = frozenset(lang.value for lang in Language)

ISSUE_LABELS: dict[str, str] = {
    IssueType.MISSING_LANGUAGE: "Missing language",
    IssueType.INCORRECT_LANGUAGE: "Incorrect language",
    IssueType.UNCLOSED_BLOCK: "Unclosed block",
    IssueType.MALFORMED_FENCE: "Malformed fence",
}

# Declared-language aliases → canonical name
LANGUAGE_ALIASES: dict[str, str] = {
    "sh": "bash",
    "shell": "bash",
    "zsh": "bash",
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "mts": "typescript",
    "cts": "typescript",
    "md": "markdown",
    "txt": "text",
    "plaintext": "text",
    "plain": "text",
}

# Declared tags trusted as-is for syntax highlighting
ALWAYS_VALID_TAGS = frozenset({"jsx", "tsx"})

# ── Fences ───────────────────────────────────────────────

FENCE = "```"
QUAD_FENCE = "````"

# ── Classification ───────────────────────────────────────

SHORT_SNIPPET_CHARS = 100
PROSE_MIN_LINES = 3

# ── Ollama ───────────────────────────────────────────────

OLLAMA_GENERATE_PATH = "/api/generate"
OLLAMA_TAGS_PATH = "/api/tags"
OLLAMA_TEMPERATURE = 0.0
OLLAMA_NUM_PREDICT = 15
OLLAMA_TOP_P = 0.9

# ── Circuit Breaker Configuration ────────────────────────

# Open for the rest of the run once tripped
CB_CLASSIFIER_RECOVERY_TIMEOUT = 3600

# ── Discovery ────────────────────────────────────────────

GIT_LS_FILES_TIMEOUT = 30
EXCLUDED_PATH_PARTS = frozenset({"node_modules"})

# ── Misc ─────────────────────────────────────────────────

PROGRESS_CLEAR_WIDTH = 50
ERROR_TRUNCATION_CHARS = 200
