"""Two-tier classification: heuristic guess reconciled with the service."""

from __future__ import annotations

import logging
from typing import Protocol

from fencecheck.cache import ClassificationCache
from fencecheck.classification.heuristics import classify_heuristic
from fencecheck.classification.reconcile import reconcile
from fencecheck.constants import Language

logger = logging.getLogger(__name__)


class ExternalClassifier(Protocol):
    """Anything that can suggest a language; ``None`` means unavailable."""

    async def classify(self, content: str) -> Language | None: ...


class LanguageClassifier:
    """Detect a block's language, memoised by content.

    With no external classifier this is heuristic-only mode. Concurrent
    callers may classify identical content twice before the first
    result lands in the cache; both produce the same value.
    """

    def __init__(
        self,
        cache: ClassificationCache,
        external: ExternalClassifier | None = None,
    ) -> None:
        self._cache = cache
        self._external = external

    @property
    def uses_external(self) -> bool:
        return self._external is not None

    async def classify(self, content: str) -> Language:
        cached = self._cache.get(content)
        if cached is not None:
            return cached

        heuristic = classify_heuristic(content)
        external = (
            await self._external.classify(content)
            if self._external is not None
            else None
        )
        language = reconcile(heuristic, external, content)
        if external is not None and language != external:
            logger.debug(
                "event=classification_overridden heuristic=%s "
                "external=%s final=%s",
                heuristic,
                external,
                language,
            )
        self._cache.put(content, language)
        return language
