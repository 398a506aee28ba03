"""Tests for the Ollama adapter and its circuit breaker."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import TypeAlias

import httpx
import pytest

from fencecheck.classification.ollama import (
    OllamaClassifier,
    build_prompt,
    parse_language,
)
from fencecheck.config import Settings
from fencecheck.constants import Language

Handler: TypeAlias = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url="http://ollama.test",
        transport=httpx.MockTransport(handler),
    )


def _answer(text: str) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"response": text})

    return handler


def _refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class TestParseLanguage:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("bash", Language.BASH),
            ("  TypeScript\n", Language.TYPESCRIPT),
            ("json.", Language.JSON),
            ("`markdown`", Language.MARKDOWN),
            ("sh", Language.BASH),
            ("javascript because it uses const", Language.JAVASCRIPT),
        ],
    )
    def test_known_answers(self, raw: str, expected: Language) -> None:
        assert parse_language(raw) == expected

    @pytest.mark.parametrize("raw", ["", "python", "I think it is bash"])
    def test_unusable_answers(self, raw: str) -> None:
        assert parse_language(raw) is None


class TestPrompt:
    def test_sample_is_truncated(self) -> None:
        prompt = build_prompt("x" * 2000, 800)
        assert "x" * 800 in prompt
        assert "x" * 801 not in prompt

    def test_prompt_lists_vocabulary(self) -> None:
        prompt = build_prompt("ls", 800)
        assert "bash, json, javascript, typescript, text, or markdown" in (
            prompt
        )


class TestClassify:
    @pytest.mark.asyncio
    async def test_success(self, settings: Settings) -> None:
        seen: list[dict[str, object]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"response": "bash"})

        classifier = OllamaClassifier(
            settings, model="qwen2.5-coder:7b", client=_client(handler)
        )
        assert await classifier.classify("npm install") == Language.BASH
        assert classifier.calls == 1

        body = seen[0]
        assert body["model"] == "qwen2.5-coder:7b"
        assert body["stream"] is False
        assert body["options"] == {
            "temperature": 0.0,
            "num_predict": 15,
            "top_p": 0.9,
        }

    @pytest.mark.asyncio
    async def test_unrecognised_answer(self, settings: Settings) -> None:
        classifier = OllamaClassifier(
            settings, client=_client(_answer("python"))
        )
        assert await classifier.classify("print(1)") is None
        assert classifier.failures == 0

    @pytest.mark.asyncio
    async def test_server_error_returns_none(
        self, settings: Settings
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        classifier = OllamaClassifier(settings, client=_client(handler))
        assert await classifier.classify("ls") is None
        assert classifier.failures == 1

    @pytest.mark.asyncio
    async def test_malformed_body_returns_none(
        self, settings: Settings
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="not json")

        classifier = OllamaClassifier(settings, client=_client(handler))
        assert await classifier.classify("ls") is None
        assert classifier.disabled is False

    @pytest.mark.asyncio
    async def test_connect_error_returns_none(
        self, settings: Settings
    ) -> None:
        classifier = OllamaClassifier(settings, client=_client(_refuse))
        assert await classifier.classify("ls") is None


class TestCircuitBreaker:
    @pytest.mark.asyncio
    async def test_opens_after_threshold(
        self, settings: Settings, caplog: pytest.LogCaptureFixture
    ) -> None:
        classifier = OllamaClassifier(settings, client=_client(_refuse))
        with caplog.at_level(
            logging.WARNING, logger="fencecheck.classification.ollama"
        ):
            for _ in range(settings.classifier_failure_threshold):
                assert await classifier.classify("ls") is None
            assert classifier.disabled is True

            for _ in range(5):
                assert await classifier.classify("ls") is None

        # No calls once open, one warning for the whole run.
        assert classifier.calls == settings.classifier_failure_threshold
        warnings = [
            r for r in caplog.records if "event=ollama_disabled" in r.message
        ]
        assert len(warnings) == 1

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(
        self, settings: Settings
    ) -> None:
        outcomes = iter([False, False, True, False, False])

        def handler(request: httpx.Request) -> httpx.Response:
            if next(outcomes):
                return httpx.Response(200, json={"response": "bash"})
            raise httpx.ConnectError("refused", request=request)

        classifier = OllamaClassifier(settings, client=_client(handler))
        for _ in range(5):
            await classifier.classify("ls")
        assert classifier.disabled is False


class TestProbe:
    @pytest.mark.asyncio
    async def test_running(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": []})

        classifier = OllamaClassifier(settings, client=_client(handler))
        assert await classifier.probe() is True

    @pytest.mark.asyncio
    async def test_not_running(self, settings: Settings) -> None:
        classifier = OllamaClassifier(settings, client=_client(_refuse))
        assert await classifier.probe() is False

    @pytest.mark.asyncio
    async def test_non_200(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        classifier = OllamaClassifier(settings, client=_client(handler))
        assert await classifier.probe() is False
