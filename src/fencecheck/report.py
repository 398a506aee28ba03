"""Console text for issues and run summaries."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from fencecheck.constants import ERROR_TRUNCATION_CHARS, ISSUE_LABELS, IssueType
from fencecheck.models import (
    CacheStats,
    FileFailure,
    FileFix,
    Issue,
    LanguageIssue,
    ValidationReport,
)


def format_issue(issue: Issue) -> str:
    """One issue as an indented line (two for language mismatches)."""
    text = f"  ✗ Line {issue.line}: {ISSUE_LABELS[issue.type]}"
    if issue.end_line is not None and issue.end_line != issue.line:
        text += f" (ends at line {issue.end_line})"
    message = getattr(issue, "message", None)
    if message:
        text += f" - {message}"
    if isinstance(issue, LanguageIssue) and (
        issue.type == IssueType.INCORRECT_LANGUAGE
    ):
        text += (
            f"\n     Specified: {issue.specified_language}, "
            f"Detected: {issue.detected_language}"
        )
    return text


def group_by_file(issues: Iterable[Issue]) -> dict[Path, list[Issue]]:
    """Group issues by file, keeping first-seen file order."""
    grouped: dict[Path, list[Issue]] = {}
    for issue in issues:
        grouped.setdefault(issue.file, []).append(issue)
    return grouped


def format_structural_section(issues: Sequence[Issue]) -> list[str]:
    if not issues:
        return []
    lines = [f"⚠ Found {len(issues)} structural issue(s):", ""]
    for file, file_issues in group_by_file(issues).items():
        lines.append(str(file))
        lines.extend(format_issue(i) for i in file_issues)
        lines.append("")
    return lines


def format_cache_line(label: str, stats: CacheStats) -> str | None:
    if stats.total == 0:
        return None
    return (
        f"{label}: {stats.hits}/{stats.total} hits "
        f"({stats.hit_rate:.1f}% hit rate)"
    )


def format_performance(report: ValidationReport) -> list[str]:
    lines = [
        f"Performance: Validated {report.blocks_found} blocks in "
        f"{report.duration_seconds:.2f}s ({report.concurrency} concurrent)"
    ]
    for label, stats in (
        ("Classification Cache", report.classification_cache),
        ("Validation Cache", report.validation_cache),
    ):
        line = format_cache_line(label, stats)
        if line is not None:
            lines.append(line)
    return lines


def format_failure(failure: FileFailure) -> str:
    error = failure.error
    if len(error) > ERROR_TRUNCATION_CHARS:
        error = error[:ERROR_TRUNCATION_CHARS] + "..."
    return f"  ✗ {failure.file}: {failure.operation} failed - {error}"


def format_summary(report: ValidationReport) -> str:
    if report.total_issues == 0 and not report.failures:
        return "✓ No issues found! All code blocks are valid."
    parts = [
        f"Summary: Found {report.total_issues} issue(s) in "
        f"{len(report.files_with_issues)} file(s)"
    ]
    if report.failures:
        parts.append(f"{len(report.failures)} file(s) could not be processed")
    return ", ".join(parts)


def format_fix(fix: FileFix, position: int, total: int) -> str:
    text = f"  [{position}/{total}] Fixing {fix.file}... ✓ {fix.fixed} blocks"
    if fix.skipped:
        text += f" ({fix.skipped} skipped)"
    return text


def format_fix_summary(report: ValidationReport) -> str:
    return (
        f"✓ Fixed {report.total_fixed} code blocks "
        f"in {len(report.fixes)} files"
    )
