"""Run orchestration: scan, classify, validate, report and fix."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from fencecheck.cache import ClassificationCache, ValidationCache
from fencecheck.classification.engine import (
    ExternalClassifier,
    LanguageClassifier,
)
from fencecheck.classification.ollama import OllamaClassifier
from fencecheck.config import Settings
from fencecheck.constants import IssueType, Language
from fencecheck.fixer import FenceFix, apply_fixes, plan_fixes
from fencecheck.models import (
    CodeBlock,
    Document,
    FileFailure,
    LanguageIssue,
    ValidationReport,
)
from fencecheck.pipeline import BoundedScheduler, OutputChannel
from fencecheck.report import (
    format_failure,
    format_fix,
    format_fix_summary,
    format_issue,
    format_performance,
    format_structural_section,
    format_summary,
)
from fencecheck.resilience.errors import FixError, classify_error
from fencecheck.scanner import scan_document
from fencecheck.validator import validate_block

logger = logging.getLogger(__name__)


@dataclass
class BlockOutcome:
    """What validating one block produced."""

    block: CodeBlock
    issue: LanguageIssue | None = None
    fix_language: str | None = None


@dataclass
class RunContext:
    """Shared state for one validation run.

    Units write only to ``processed`` and ``displayed_files``; both are
    touched between awaits on the single event loop.
    """

    settings: Settings
    channel: OutputChannel
    classifier: LanguageClassifier
    validation_cache: ValidationCache
    fix: bool = False
    total_blocks: int = 0
    processed: int = 0
    displayed_files: set[Path] = field(default_factory=lambda: set[Path]())

    def show_issue(self, issue: LanguageIssue) -> None:
        if issue.file not in self.displayed_files:
            self.displayed_files.add(issue.file)
            self.channel.emit(str(issue.file))
        self.channel.emit(format_issue(issue))

    def tick(self) -> None:
        self.processed += 1
        self.channel.progress(
            f"  [{self.processed}/{self.total_blocks}] Validating blocks..."
        )


async def _select_external(
    settings: Settings,
    channel: OutputChannel,
    *,
    skip_external: bool,
    model: str | None,
    external: ExternalClassifier | None,
) -> tuple[ExternalClassifier | None, OllamaClassifier | None]:
    """Return (classifier to use, classifier this run must close)."""
    if skip_external:
        channel.emit("⚠ Classifier check skipped (heuristic detection only)")
        return None, None
    if external is not None:
        return external, None

    ollama = OllamaClassifier(settings, model=model)
    if await ollama.probe():
        channel.emit(f"✓ Ollama is running ({ollama.model})")
        return ollama, ollama

    logger.warning(
        "event=classifier_unavailable url=%s mode=heuristic_only",
        settings.ollama_base_url,
    )
    channel.emit(
        "⚠ Ollama is not running. Will use heuristic detection only."
    )
    await ollama.aclose()
    return None, None


def _read_documents(
    paths: Sequence[Path], report: ValidationReport
) -> list[Document]:
    documents: list[Document] = []
    for path in paths:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(
                "event=file_read_failed file=%s error_class=%s error=%s",
                path,
                classify_error(exc).value,
                exc,
            )
            report.failures.append(
                FileFailure(file=path, operation="read", error=str(exc))
            )
            continue
        documents.append(Document(path=path, text=text))
    return documents


async def _validate_unit(
    ctx: RunContext, block: CodeBlock, _idx: int
) -> BlockOutcome:
    try:
        if block.specified_language is None:
            # Already reported by the scanner; only the fix needs a language.
            if not ctx.fix:
                return BlockOutcome(block)
            if not block.content.strip():
                return BlockOutcome(block, fix_language=Language.TEXT.value)
            language = await ctx.classifier.classify(block.content)
            return BlockOutcome(block, fix_language=language.value)

        if ctx.validation_cache.is_valid(block):
            return BlockOutcome(block)

        issue = await validate_block(
            block,
            ctx.classifier,
            lenient_languages=ctx.settings.lenient_languages,
        )
        if issue is None:
            ctx.validation_cache.mark_valid(block)
            return BlockOutcome(block)

        ctx.show_issue(issue)
        return BlockOutcome(
            block, issue=issue, fix_language=issue.detected_language
        )
    finally:
        ctx.tick()


def _collect_fixes(
    report: ValidationReport, outcomes: Sequence[BlockOutcome]
) -> list[FenceFix]:
    missing = {
        (issue.file, issue.start_line_index)
        for issue in report.structural_issues
        if issue.type == IssueType.MISSING_LANGUAGE
    }
    fixes: list[FenceFix] = []
    for outcome in outcomes:
        block = outcome.block
        if outcome.fix_language is None:
            continue
        if outcome.issue is not None or (
            (block.file, block.start_line) in missing
        ):
            fixes.append(
                FenceFix(
                    file=block.file,
                    line_index=block.start_line,
                    language=outcome.fix_language,
                )
            )
    return fixes


def _apply_all(
    fixes: list[FenceFix],
    report: ValidationReport,
    channel: OutputChannel,
) -> None:
    planned = plan_fixes(fixes)
    for position, (file, file_fixes) in enumerate(planned.items(), 1):
        try:
            result = apply_fixes(file, file_fixes)
        except FixError as exc:
            logger.error("event=fix_failed file=%s error=%s", file, exc)
            failure = FileFailure(file=file, operation="write", error=str(exc))
            report.failures.append(failure)
            channel.emit(format_failure(failure))
            continue
        report.fixes.append(result)
        channel.emit(format_fix(result, position, len(planned)))


async def run_validation(
    paths: Sequence[Path],
    settings: Settings,
    *,
    fix: bool = False,
    skip_external: bool = False,
    model: str | None = None,
    external: ExternalClassifier | None = None,
    stream: TextIO | None = None,
) -> ValidationReport:
    """Validate every fenced block in *paths* and optionally fix them.

    Per-file problems never abort the run; they are recorded on the
    returned :class:`ValidationReport`, whose ``exit_code`` is the
    process exit status.
    """
    report = ValidationReport(
        fix_mode=fix, concurrency=settings.concurrency
    )
    channel = OutputChannel(stream)
    owned: OllamaClassifier | None = None

    async with channel:
        channel.emit("Markdown code block validator")
        if fix:
            channel.emit("   Mode: fix")
        channel.emit(f"   Model: {model or settings.ollama_model}")
        channel.emit(f"   Concurrency: {settings.concurrency}")
        channel.emit()

        try:
            chosen, owned = await _select_external(
                settings,
                channel,
                skip_external=skip_external,
                model=model,
                external=external,
            )
            classification_cache = ClassificationCache()
            classifier = LanguageClassifier(classification_cache, chosen)
            report.external_classifier_used = classifier.uses_external

            validation_cache = ValidationCache(
                settings.validation_cache_path,
                enabled=settings.cache_enabled,
            )
            validation_cache.load()

            documents = _read_documents(paths, report)
            report.files_scanned = len(documents)
            blocks: list[CodeBlock] = []
            for document in documents:
                scan = scan_document(document)
                report.structural_issues.extend(scan.structural_issues)
                blocks.extend(scan.blocks)
            report.blocks_found = len(blocks)
            logger.info(
                "event=scan_complete files=%d blocks=%d structural=%d",
                report.files_scanned,
                report.blocks_found,
                len(report.structural_issues),
            )

            channel.emit(f"  Found {len(blocks)} code block(s) to validate")
            channel.emit()
            for line in format_structural_section(report.structural_issues):
                channel.emit(line)

            ctx = RunContext(
                settings=settings,
                channel=channel,
                classifier=classifier,
                validation_cache=validation_cache,
                fix=fix,
                total_blocks=len(blocks),
            )

            async def worker(block: CodeBlock, idx: int) -> BlockOutcome:
                return await _validate_unit(ctx, block, idx)

            scheduler = BoundedScheduler(settings.concurrency)
            start = time.monotonic()
            results = await scheduler.run(blocks, worker)
            report.duration_seconds = time.monotonic() - start

            outcomes: list[BlockOutcome] = []
            for result in results:
                if result.ok and result.output is not None:
                    outcomes.append(result.output)
                    if result.output.issue is not None:
                        report.language_issues.append(result.output.issue)
                    continue
                block = blocks[result.index]
                report.failures.append(
                    FileFailure(
                        file=block.file,
                        operation="validate",
                        error=str(result.error),
                    )
                )

            report.classification_cache = classification_cache.stats
            report.validation_cache = validation_cache.stats
            channel.emit()
            for line in format_performance(report):
                channel.emit(line)
            validation_cache.save()

            if report.failures:
                channel.emit()
                for failure in report.failures:
                    channel.emit(format_failure(failure))
            channel.emit()
            channel.emit(format_summary(report))

            if report.total_issues and fix:
                channel.emit()
                channel.emit("Fixing code blocks...")
                _apply_all(_collect_fixes(report, outcomes), report, channel)
                channel.emit(format_fix_summary(report))
            elif report.total_issues:
                channel.emit("⚠ Run with --fix to automatically fix issues")
        finally:
            if owned is not None:
                await owned.aclose()

    logger.info(
        "event=run_complete issues=%d failures=%d fixed=%d exit_code=%d",
        report.total_issues,
        len(report.failures),
        report.total_fixed,
        report.exit_code,
    )
    return report
