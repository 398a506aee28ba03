"""Pydantic models for the validation data flow."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field

from fencecheck.constants import IssueType


class Document(BaseModel):
    """A markdown file and its raw text."""

    model_config = ConfigDict(frozen=True)

    path: Path
    text: str


class CodeBlock(BaseModel):
    """A closed fenced region found by the scanner.

    ``start_line``/``end_line`` are 0-based indexes of the opening and
    closing fence lines; the ``*_number`` fields are 1-based for display.
    """

    model_config = ConfigDict(frozen=True)

    file: Path
    start_line: int
    end_line: int
    start_line_number: int
    end_line_number: int
    content: str
    specified_language: str | None = None


class StructuralIssue(BaseModel):
    """A parse-level defect, independent of classification."""

    type: IssueType
    file: Path
    line: int
    end_line: int | None = None
    content: str | None = None
    message: str | None = None
    start_line_index: int | None = None


class LanguageIssue(BaseModel):
    """A declared language that disagrees with the detected one."""

    type: IssueType = IssueType.INCORRECT_LANGUAGE
    file: Path
    line: int
    end_line: int
    specified_language: str
    detected_language: str
    content: str
    start_line_index: int


Issue: TypeAlias = StructuralIssue | LanguageIssue


class ScanResult(BaseModel):
    """Output of the fence scanner for one document."""

    structural_issues: list[StructuralIssue] = Field(
        default_factory=lambda: list[StructuralIssue]()
    )
    blocks: list[CodeBlock] = Field(
        default_factory=lambda: list[CodeBlock]()
    )


class FileFailure(BaseModel):
    """An I/O failure that stopped processing of one document."""

    file: Path
    operation: Literal["read", "write", "validate"]
    error: str


class FileFix(BaseModel):
    """Result of rewriting fence lines in one file."""

    file: Path
    fixed: int = 0
    skipped: int = 0


class CacheStats(BaseModel):
    """Hit/miss counters for one cache."""

    hits: int = 0
    misses: int = 0

    @property
    def total(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Hit percentage, 0.0 when the cache was never consulted."""
        if self.total == 0:
            return 0.0
        return self.hits / self.total * 100


class ValidationReport(BaseModel):
    """Aggregate result of one validation run."""

    files_scanned: int = 0
    blocks_found: int = 0
    structural_issues: list[StructuralIssue] = Field(
        default_factory=lambda: list[StructuralIssue]()
    )
    language_issues: list[LanguageIssue] = Field(
        default_factory=lambda: list[LanguageIssue]()
    )
    failures: list[FileFailure] = Field(
        default_factory=lambda: list[FileFailure]()
    )
    fixes: list[FileFix] = Field(
        default_factory=lambda: list[FileFix]()
    )
    fix_mode: bool = False
    external_classifier_used: bool = False
    concurrency: int = 1
    duration_seconds: float = 0.0
    classification_cache: CacheStats = Field(default_factory=CacheStats)
    validation_cache: CacheStats = Field(default_factory=CacheStats)

    @property
    def issues(self) -> list[Issue]:
        return [*self.structural_issues, *self.language_issues]

    @property
    def total_issues(self) -> int:
        return len(self.structural_issues) + len(self.language_issues)

    @property
    def files_with_issues(self) -> set[Path]:
        return {issue.file for issue in self.issues}

    @property
    def fixable_issues(self) -> int:
        """Issues the fix writer knows how to correct."""
        return len(self.language_issues) + sum(
            1
            for i in self.structural_issues
            if i.type == IssueType.MISSING_LANGUAGE
        )

    @property
    def total_fixed(self) -> int:
        return sum(f.fixed for f in self.fixes)

    @property
    def exit_code(self) -> int:
        """0 when nothing is left to do, 1 otherwise."""
        if self.failures:
            return 1
        if self.total_issues == 0:
            return 0
        if not self.fix_mode:
            return 1
        unfixable = self.total_issues - self.fixable_issues
        if unfixable or self.total_fixed < self.fixable_issues:
            return 1
        return 0
