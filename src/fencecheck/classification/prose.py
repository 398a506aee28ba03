"""Predicates that recognise descriptive text mentioning code.

Shared by the heuristic rules and the reconciler so that keyword
mentions inside prose never register as code.
"""

from __future__ import annotations

import re

from fencecheck.constants import PROSE_MIN_LINES

DESCRIPTIVE_PREFIX = re.compile(
    r"^(Issue|Description|Labels|Created|This|Add|Generate|Reads|"
    r"Corresponding|Analyzing|Checked|Suggested|Category|Motivation|"
    r"Proposed|Estimated|Create this)(?=[\s:])"
)
LABEL_LINE = re.compile(r"^[A-Z][^:\n]*:\s")
CODE_PUNCTUATION = re.compile(r"[{}();=]")
ISSUE_NUMBER = re.compile(r"Issue\s+#\d+")
SLASH_COMMAND = re.compile(r"(?:^|\s)/[a-z][\w-]*", re.MULTILINE)
SUGGESTED_HEADING = re.compile(r"^##\s+Suggested")
MARKDOWN_LINK = re.compile(r"\[[^\]]*\]\([^)]*\)")


def line_count(content: str) -> int:
    return len(content.strip().split("\n"))


def starts_descriptive(content: str) -> bool:
    return bool(DESCRIPTIVE_PREFIX.match(content.strip()))


def capitalised_label_line(content: str) -> bool:
    return bool(LABEL_LINE.match(content.strip()))


def lacks_code_punctuation(content: str) -> bool:
    return not CODE_PUNCTUATION.search(content)


def reads_as_prose(content: str) -> bool:
    """Descriptive sentences rather than code."""
    if starts_descriptive(content):
        return True
    if not lacks_code_punctuation(content):
        return False
    return capitalised_label_line(content) or (
        line_count(content) > PROSE_MIN_LINES
    )


def reads_as_issue_text(content: str) -> bool:
    """Structured issue/report text, e.g. generated by a slash command."""
    stripped = content.strip()
    return bool(
        starts_descriptive(stripped)
        or capitalised_label_line(stripped)
        or ISSUE_NUMBER.search(stripped)
        or SLASH_COMMAND.search(stripped)
        or SUGGESTED_HEADING.match(stripped)
        or ("[Yes/No]" in stripped and "Create this" in stripped)
    )
