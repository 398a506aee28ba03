"""Classification and validation caches.

Both caches are explicit objects created once per run by the
orchestrator and passed to the components that need them.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path

from fencecheck.constants import Language
from fencecheck.models import CacheStats, CodeBlock

logger = logging.getLogger(__name__)


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode()).hexdigest()


def block_cache_key(block: CodeBlock) -> str:
    """Key for a block's validation outcome.

    Any change to file, position, declared language or content yields
    a different key, which is the only invalidation rule.
    """
    payload = (
        f"{block.file.as_posix()}:{block.start_line_number}"
        f":{block.specified_language}:{block.content}"
    )
    return hashlib.sha256(payload.encode()).hexdigest()


class ClassificationCache:
    """In-memory content hash → detected language, for one run."""

    def __init__(self) -> None:
        self._entries: dict[str, Language] = {}
        self.stats = CacheStats()

    def get(self, content: str) -> Language | None:
        language = self._entries.get(content_hash(content))
        if language is None:
            self.stats.misses += 1
        else:
            self.stats.hits += 1
        return language

    def put(self, content: str, language: Language) -> None:
        self._entries[content_hash(content)] = language

    def __len__(self) -> int:
        return len(self._entries)


class ValidationCache:
    """Persisted set of blocks that previously validated cleanly.

    Stored as a JSON object mapping each key to ``null``. Load and save
    failures never abort a run: a bad file reads as empty and a failed
    write only costs speed on the next run.
    """

    def __init__(self, path: Path | None, *, enabled: bool = True) -> None:
        self._path = path
        self._enabled = enabled and path is not None
        self._keys: set[str] = set()
        self._dirty = False
        self.stats = CacheStats()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def load(self) -> None:
        if not self._enabled or self._path is None:
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, ValueError) as exc:
            logger.debug(
                "event=validation_cache_unreadable path=%s error=%s",
                self._path,
                exc,
            )
            return
        if not isinstance(data, dict):
            logger.debug(
                "event=validation_cache_ignored path=%s reason=not_object",
                self._path,
            )
            return
        self._keys = {key for key in data if isinstance(key, str)}
        self._dirty = False
        logger.debug(
            "event=validation_cache_loaded entries=%d", len(self._keys)
        )

    def is_valid(self, block: CodeBlock) -> bool:
        """True when *block* validated cleanly on a previous run."""
        if not self._enabled:
            return False
        if block_cache_key(block) in self._keys:
            self.stats.hits += 1
            return True
        self.stats.misses += 1
        return False

    def mark_valid(self, block: CodeBlock) -> None:
        if not self._enabled:
            return
        self._keys.add(block_cache_key(block))
        self._dirty = True

    def save(self) -> None:
        if not self._enabled or not self._dirty or self._path is None:
            return
        payload = dict.fromkeys(sorted(self._keys))
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(payload, indent=2), encoding="utf-8"
            )
        except OSError as exc:
            logger.warning(
                "event=validation_cache_save_failed path=%s error=%s",
                self._path,
                exc,
            )
            return
        self._dirty = False

    def __len__(self) -> int:
        return len(self._keys)
