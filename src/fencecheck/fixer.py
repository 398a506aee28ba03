"""Rewrite opening fence lines with corrected language tags."""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from fencecheck.models import FileFix
from fencecheck.resilience.errors import FixError
from fencecheck.scanner import is_fence_line

logger = logging.getLogger(__name__)

# indent, backtick run, optional language token, remainder, line ending
_OPENING_FENCE = re.compile(
    r"^(?P<indent>[ \t]*)(?P<ticks>```)[ \t]*(?P<lang>\w[\w.+#-]*)?"
    r"(?P<rest>.*?)(?P<eol>\r?)$"
)


@dataclass(frozen=True)
class FenceFix:
    """Set the language of the fence opening at ``line_index``."""

    file: Path
    line_index: int
    language: str


def plan_fixes(fixes: Iterable[FenceFix]) -> dict[Path, list[FenceFix]]:
    """Group fixes by file, ordered bottom-to-top within each file."""
    grouped: dict[Path, list[FenceFix]] = defaultdict(list)
    for fix in fixes:
        grouped[fix.file].append(fix)
    return {
        file: sorted(items, key=lambda f: f.line_index, reverse=True)
        for file, items in grouped.items()
    }


def rewrite_fence(line: str, language: str) -> str:
    """Return *line* with its language token replaced by *language*.

    Indentation, attributes after the language token and a trailing
    ``\\r`` are preserved.
    """
    match = _OPENING_FENCE.match(line)
    if match is None:
        msg = f"not an opening fence: {line!r}"
        raise FixError(msg)
    rest = match.group("rest")
    if rest and not rest[0].isspace():
        rest = " " + rest
    return (
        f"{match.group('indent')}{match.group('ticks')}{language}"
        f"{rest.rstrip()}{match.group('eol')}"
    )


def apply_fixes_to_text(
    text: str, fixes: Iterable[FenceFix]
) -> tuple[str, int, int]:
    """Apply *fixes* to *text*; return (new_text, fixed, skipped).

    Edits run in descending line order so an edit never shifts the
    line numbers of those still pending.
    """
    lines = text.split("\n")
    fixed = 0
    skipped = 0
    for fix in sorted(fixes, key=lambda f: f.line_index, reverse=True):
        if not 0 <= fix.line_index < len(lines) or not is_fence_line(
            lines[fix.line_index].strip()
        ):
            logger.warning(
                "event=fix_skipped file=%s line=%d reason=not_a_fence",
                fix.file,
                fix.line_index + 1,
            )
            skipped += 1
            continue
        lines[fix.line_index] = rewrite_fence(
            lines[fix.line_index], fix.language
        )
        fixed += 1
    return "\n".join(lines), fixed, skipped


def apply_fixes(path: Path, fixes: list[FenceFix]) -> FileFix:
    """Rewrite the fence lines of one file in place."""
    try:
        text = path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"cannot read {path}: {exc}"
        raise FixError(msg) from exc

    new_text, fixed, skipped = apply_fixes_to_text(text, fixes)
    if fixed:
        try:
            path.write_bytes(new_text.encode("utf-8"))
        except OSError as exc:
            msg = f"cannot write {path}: {exc}"
            raise FixError(msg) from exc
    logger.info(
        "event=file_fixed file=%s fixed=%d skipped=%d",
        path,
        fixed,
        skipped,
    )
    return FileFix(file=path, fixed=fixed, skipped=skipped)
