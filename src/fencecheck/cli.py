"""CLI entry point: ``fencecheck [paths...]``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from fencecheck import __version__
from fencecheck.config import Settings
from fencecheck.discovery import discover_markdown_files
from fencecheck.logging_config import setup_logging
from fencecheck.resilience.errors import DiscoveryError
from fencecheck.service import run_validation

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"fencecheck {__version__}")
        return

    setup_logging()
    try:
        settings = Settings()
    except ValidationError as exc:
        print(f"Error: invalid settings\n{exc}", file=sys.stderr)
        sys.exit(1)

    if args.no_cache:
        settings.cache_enabled = False
    setup_logging("DEBUG" if args.verbose else settings.log_level, force=True)

    paths = [Path(p) for p in args.paths]
    if not paths:
        try:
            paths = asyncio.run(discover_markdown_files())
        except DiscoveryError as exc:
            logger.error("event=discovery_failed error=%s", exc)
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        print(f"Found {len(paths)} markdown files\n")

    report = asyncio.run(
        run_validation(
            paths,
            settings,
            fix=args.fix,
            skip_external=args.skip_ollama,
            model=args.model,
        )
    )
    sys.exit(report.exit_code)


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="fencecheck",
        description=(
            "Validate and fix language tags on fenced code blocks "
            "in markdown files."
        ),
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help=(
            "Markdown files to check "
            "(default: every *.md tracked by git)"
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--fix",
        "-f",
        action="store_true",
        help="Rewrite missing and incorrect language tags in place",
    )
    parser.add_argument(
        "--skip-ollama",
        "-s",
        action="store_true",
        help="Use heuristic detection only",
    )
    parser.add_argument(
        "--model",
        "-m",
        default=None,
        help=(
            "Classifier model "
            "(default: OLLAMA_MODEL or codellama:7b)"
        ),
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Ignore and do not update the validation cache",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser
