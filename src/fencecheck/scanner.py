"""Scan markdown text for fenced code blocks and structural defects."""

from __future__ import annotations

import re
from enum import Enum, auto
from pathlib import Path

from fencecheck.constants import FENCE, QUAD_FENCE, IssueType
from fencecheck.models import (
    CodeBlock,
    Document,
    ScanResult,
    StructuralIssue,
)

# Language token right after the opening backticks
_LANG_TOKEN = re.compile(r"^```\s*(\w[\w.+#-]*)")


class _State(Enum):
    OUTSIDE = auto()
    IN_TRIPLE = auto()


def fence_language(stripped: str) -> str | None:
    """Return the language token of an opening fence line, if any."""
    match = _LANG_TOKEN.match(stripped)
    return match.group(1) if match else None


def is_fence_line(stripped: str) -> bool:
    """True for a plain or tagged triple-backtick fence line."""
    return stripped.startswith(FENCE) and not stripped.startswith(
        QUAD_FENCE
    )


def scan_document(document: Document) -> ScanResult:
    """Split *document* into code blocks and structural issues.

    Quadruple-backtick regions hold literal examples and are skipped
    entirely; their parity flips independently of the triple-fence
    state. A block left open at end of file is reported as
    ``unclosed-block`` and not returned as a :class:`CodeBlock`.
    """
    return scan_text(document.path, document.text)


def scan_text(file: Path, text: str) -> ScanResult:
    """Scan raw *text* belonging to *file*."""
    lines = text.split("\n")
    result = ScanResult()

    state = _State.OUTSIDE
    in_quad = False
    start = -1
    language: str | None = None
    content: list[str] = []

    for idx, line in enumerate(lines):
        stripped = line.strip()

        if stripped.startswith(QUAD_FENCE):
            in_quad = not in_quad
            continue
        if in_quad:
            continue

        fence = is_fence_line(stripped)

        if state is _State.OUTSIDE:
            if fence:
                state = _State.IN_TRIPLE
                start = idx
                language = fence_language(stripped)
                content = []
            elif FENCE in stripped:
                result.structural_issues.append(
                    StructuralIssue(
                        type=IssueType.MALFORMED_FENCE,
                        file=file,
                        line=idx + 1,
                        message="Code fence not at start of line",
                    )
                )
            continue

        if not fence:
            content.append(line)
            continue

        body = "\n".join(content)
        if language is None:
            result.structural_issues.append(
                StructuralIssue(
                    type=IssueType.MISSING_LANGUAGE,
                    file=file,
                    line=start + 1,
                    end_line=idx + 1,
                    content=body,
                    start_line_index=start,
                )
            )
        result.blocks.append(
            CodeBlock(
                file=file,
                start_line=start,
                end_line=idx,
                start_line_number=start + 1,
                end_line_number=idx + 1,
                content=body,
                specified_language=language,
            )
        )
        state = _State.OUTSIDE
        start = -1
        language = None
        content = []

    if state is _State.IN_TRIPLE:
        # A trailing newline leaves an empty final element
        last_line = len(lines) - 1 if lines[-1] == "" else len(lines)
        result.structural_issues.append(
            StructuralIssue(
                type=IssueType.UNCLOSED_BLOCK,
                file=file,
                line=start + 1,
                end_line=last_line,
                content="\n".join(content),
                message="Code block not closed",
                start_line_index=start,
            )
        )

    return result
