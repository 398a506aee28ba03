"""Find tracked markdown files with ``git ls-files``."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from fencecheck.constants import EXCLUDED_PATH_PARTS, GIT_LS_FILES_TIMEOUT
from fencecheck.resilience.errors import DiscoveryError

logger = logging.getLogger(__name__)


def _is_excluded(path: Path) -> bool:
    return any(part in EXCLUDED_PATH_PARTS for part in path.parts)


async def discover_markdown_files(
    root: Path | None = None,
    *,
    timeout: float = GIT_LS_FILES_TIMEOUT,
) -> list[Path]:
    """List ``*.md`` files tracked by git under *root*.

    Paths are returned relative to *root* (git's own output) with
    anything under ``node_modules`` removed.
    """
    cwd = root or Path.cwd()
    try:
        proc = await asyncio.create_subprocess_exec(
            "git",
            "ls-files",
            "*.md",
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        msg = "git executable not found"
        raise DiscoveryError(msg) from exc

    try:
        stdout, stderr = await asyncio.wait_for(
            proc.communicate(), timeout=timeout
        )
    except TimeoutError as exc:
        proc.kill()
        await proc.wait()
        msg = f"git ls-files timed out after {timeout}s"
        raise DiscoveryError(msg) from exc

    if proc.returncode != 0:
        detail = stderr.decode(errors="replace").strip()
        msg = f"git ls-files failed ({proc.returncode}): {detail}"
        raise DiscoveryError(msg)

    files = [
        Path(line)
        for line in stdout.decode().splitlines()
        if line.strip()
    ]
    kept = [f for f in files if not _is_excluded(f)]
    logger.info(
        "event=files_discovered root=%s found=%d excluded=%d",
        cwd,
        len(kept),
        len(files) - len(kept),
    )
    return kept
