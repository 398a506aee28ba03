"""Language classification through a local Ollama inference service."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from circuitbreaker import CircuitBreaker  # pyright: ignore[reportUnknownVariableType]

from fencecheck.config import Settings
from fencecheck.constants import (
    CB_CLASSIFIER_RECOVERY_TIMEOUT,
    OLLAMA_GENERATE_PATH,
    OLLAMA_NUM_PREDICT,
    OLLAMA_TAGS_PATH,
    OLLAMA_TEMPERATURE,
    OLLAMA_TOP_P,
    VALID_LANGUAGES,
    Language,
)
from fencecheck.resilience.errors import classify_error

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """\
Classify this code block's language. Return ONLY one word: \
bash, json, javascript, typescript, text, or markdown.

Guidelines:
- Shell commands/syntax (git, npm, pipes, etc.) -> bash
- Valid JSON structure -> json
- Type annotations (x: string, interface, etc.) -> typescript
- JavaScript without types -> javascript
- Markdown formatting (links, headers, bold) -> markdown
- Plain text, output, or descriptions -> text

Examples:
"npm install" -> bash
"const x: string = 'hi';" -> typescript
"const x = 'hi';" -> javascript
"{{ 'name': 'test' }}" -> json
"[link](url)" -> markdown
"Error: not found" -> text

Code block:
```
{sample}
```

Language:"""


def build_prompt(content: str, sample_chars: int) -> str:
    """Embed a bounded prefix of *content* in the classification prompt."""
    return PROMPT_TEMPLATE.format(sample=content[:sample_chars])


def parse_language(raw: str) -> Language | None:
    """Reduce a model response to a known language, or None."""
    words = raw.strip().lower().split("\n", 1)[0].split()
    if not words:
        return None
    word = words[0].strip("`'\".,:")
    if word == "sh":
        word = Language.BASH
    if word not in VALID_LANGUAGES:
        return None
    return Language(word)


def _is_transport_failure(
    thrown_type: type, thrown_value: BaseException
) -> bool:
    """Return True for failures that say the service is unhealthy.

    The circuitbreaker library calls this with (thrown_type, thrown_value).
    A malformed body from a healthy server is not counted.
    """
    return issubclass(thrown_type, httpx.HTTPError)


class OllamaClassifier:
    """Adapter to an Ollama-compatible ``/api/generate`` endpoint.

    ``classify`` never raises: network errors, non-200 responses and
    unusable answers all yield ``None`` so the caller falls back to the
    heuristic. There are no retries. After ``failure_threshold``
    consecutive transport failures the breaker opens and the service is
    not called again for the rest of the run.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        model: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self.model = model or settings.ollama_model
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.ollama_base_url,
            timeout=settings.ollama_timeout_seconds,
        )
        self._breaker = CircuitBreaker(  # pyright: ignore[reportUnknownMemberType]
            failure_threshold=settings.classifier_failure_threshold,
            recovery_timeout=CB_CLASSIFIER_RECOVERY_TIMEOUT,
            expected_exception=_is_transport_failure,
            name=f"ollama_{self.model}",
        )
        self._disabled_logged = False
        self.calls = 0
        self.failures = 0

    @property
    def disabled(self) -> bool:
        """True once the breaker has opened for this run."""
        return bool(self._breaker.opened)  # pyright: ignore[reportUnknownMemberType]

    async def probe(self) -> bool:
        """Liveness check against the tags endpoint."""
        try:
            response = await self._client.get(OLLAMA_TAGS_PATH)
        except httpx.HTTPError as exc:
            logger.debug(
                "event=ollama_probe_failed class=%s error=%s",
                classify_error(exc).value,
                exc,
            )
            return False
        return response.status_code == httpx.codes.OK

    async def classify(self, content: str) -> Language | None:
        """Ask the service for the language of *content*."""
        if self.disabled:
            self._log_disabled()
            return None

        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": build_prompt(
                content, self._settings.classifier_sample_chars
            ),
            "stream": False,
            "options": {
                "temperature": OLLAMA_TEMPERATURE,
                "num_predict": OLLAMA_NUM_PREDICT,
                "top_p": OLLAMA_TOP_P,
            },
        }
        self.calls += 1
        try:
            with self._breaker:  # pyright: ignore[reportUnknownMemberType]
                response = await self._client.post(
                    OLLAMA_GENERATE_PATH, json=payload
                )
                response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self.failures += 1
            logger.debug(
                "event=ollama_classify_failed class=%s error=%s",
                classify_error(exc).value,
                exc,
            )
            if self.disabled:
                self._log_disabled()
            return None

        raw = data.get("response") if isinstance(data, dict) else None
        if not isinstance(raw, str):
            logger.debug("event=ollama_bad_payload payload=%r", data)
            return None
        language = parse_language(raw)
        if language is None:
            logger.debug("event=ollama_unrecognised answer=%r", raw)
        return language

    def _log_disabled(self) -> None:
        if self._disabled_logged:
            return
        self._disabled_logged = True
        logger.warning(
            "event=ollama_disabled model=%s failures=%d "
            "fallback=heuristic",
            self.model,
            self.failures,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
