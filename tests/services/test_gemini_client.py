from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from examsense_api.services.analysis.clients import (
    GeminiClientError,
    GeminiGenerativeClient,
    GeminiInlineDataPart,
    GeminiMessage,
    GeminiTextPart,
    GenerationConfig,
)
from examsense_api.services.analysis.composer import ANALYSIS_RESPONSE_SCHEMA
from examsense_api.services.analysis.errors import RemoteError


def _build_response(payload: dict[str, Any]) -> httpx.Response:
    return httpx.Response(200, json=payload)


def _candidate(parts: list[dict[str, Any]], finish_reason: str = "STOP") -> dict[str, Any]:
    return {"candidates": [{"content": {"parts": parts}, "finishReason": finish_reason}]}


def _message() -> GeminiMessage:
    return GeminiMessage(role="user", parts=[GeminiTextPart("Analyse this.")])


@pytest.mark.asyncio
async def test_generate_text_sends_instruction_parts_and_config() -> None:
    captured: dict[str, Any] = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["api_key"] = request.headers.get("x-goog-api-key")
        captured["body"] = json.loads(request.content.decode("utf-8"))
        return _build_response(_candidate([{"text": '{"ok": true}'}]))

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://example.com"
    ) as async_client:
        client = GeminiGenerativeClient(api_key="secret", model="test", http_client=async_client)
        message = GeminiMessage(
            role="user",
            parts=[
                GeminiTextPart("Explain this."),
                GeminiInlineDataPart(mime_type="application/pdf", data="cGRm"),
                GeminiInlineDataPart(mime_type="image/png", data="cG5n"),
            ],
        )
        result = await client.generate_text(
            system_instruction="system prompt",
            messages=[message],
            response_schema={"type": "object"},
            generation_config=GenerationConfig(temperature=0.3, max_output_tokens=2048),
        )

    assert result == '{"ok": true}'
    assert captured["path"] == "/models/test:generateContent"
    assert captured["api_key"] == "secret"
    body = captured["body"]
    assert body["system_instruction"]["parts"][0]["text"] == "system prompt"
    parts = body["contents"][0]["parts"]
    assert parts[0] == {"text": "Explain this."}
    assert parts[1] == {"inlineData": {"mimeType": "application/pdf", "data": "cGRm"}}
    assert parts[2] == {"inlineData": {"mimeType": "image/png", "data": "cG5n"}}
    config = body["generationConfig"]
    assert config["temperature"] == 0.3
    assert config["maxOutputTokens"] == 2048
    assert config["responseMimeType"] == "application/json"
    assert config["responseJsonSchema"] == {"type": "object"}


@pytest.mark.asyncio
async def test_generate_text_accepts_prefixed_models() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/models/prefixed:generateContent"
        return _build_response(_candidate([{"text": "{}"}]))

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://example.com"
    ) as async_client:
        client = GeminiGenerativeClient(
            api_key="secret", model="models/prefixed", http_client=async_client
        )
        assert await client.generate_text(system_instruction="s", messages=[_message()]) == "{}"


@pytest.mark.asyncio
async def test_generate_text_joins_text_parts_and_skips_thoughts() -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        return _build_response(
            _candidate(
                [
                    {"text": "thinking about entropy", "thought": True},
                    {"text": '{"syllabus": '},
                    {"text": "[]}"},
                ]
            )
        )

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://example.com"
    ) as async_client:
        client = GeminiGenerativeClient(api_key="secret", model="test", http_client=async_client)
        result = await client.generate_text(system_instruction="s", messages=[_message()])

    assert result == '{"syllabus": []}'


@pytest.mark.asyncio
async def test_generate_text_returns_empty_string_for_empty_candidate() -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        return _build_response(_candidate([]))

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://example.com"
    ) as async_client:
        client = GeminiGenerativeClient(api_key="secret", model="test", http_client=async_client)
        result = await client.generate_text(system_instruction="s", messages=[_message()])

    assert result == ""


@pytest.mark.asyncio
@pytest.mark.parametrize("finish_reason", ["SAFETY", "MAX_TOKENS", "RECITATION"])
async def test_generate_text_returns_partial_text_on_unsuccessful_finish(
    finish_reason: str,
) -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        return _build_response(
            _candidate([{"text": '{"syllabus": [{"title": "Unit'}], finish_reason=finish_reason)
        )

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://example.com"
    ) as async_client:
        client = GeminiGenerativeClient(api_key="secret", model="test", http_client=async_client)
        result = await client.generate_text(system_instruction="s", messages=[_message()])

    assert result == '{"syllabus": [{"title": "Unit'


@pytest.mark.asyncio
async def test_generate_text_raises_when_prompt_blocked() -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        return _build_response({"promptFeedback": {"blockReason": "SAFETY"}})

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://example.com"
    ) as async_client:
        client = GeminiGenerativeClient(api_key="secret", model="test", http_client=async_client)
        with pytest.raises(GeminiClientError, match="blocked"):
            await client.generate_text(system_instruction="s", messages=[_message()])


@pytest.mark.asyncio
async def test_generate_text_returns_empty_string_without_candidates() -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        return _build_response({"candidates": []})

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://example.com"
    ) as async_client:
        client = GeminiGenerativeClient(api_key="secret", model="test", http_client=async_client)
        result = await client.generate_text(system_instruction="s", messages=[_message()])

    assert result == ""


@pytest.mark.asyncio
async def test_generate_text_summarises_http_errors() -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            429,
            json={"error": {"status": "RESOURCE_EXHAUSTED", "message": "Quota exceeded"}},
        )

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://example.com"
    ) as async_client:
        client = GeminiGenerativeClient(api_key="secret", model="test", http_client=async_client)
        with pytest.raises(RemoteError) as exc_info:
            await client.generate_text(system_instruction="s", messages=[_message()])

    message = str(exc_info.value)
    assert "429" in message
    assert "RESOURCE_EXHAUSTED: Quota exceeded" in message


@pytest.mark.asyncio
async def test_generate_text_wraps_timeouts() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://example.com"
    ) as async_client:
        client = GeminiGenerativeClient(api_key="secret", model="test", http_client=async_client)
        with pytest.raises(GeminiClientError, match="timed out"):
            await client.generate_text(system_instruction="s", messages=[_message()])


@pytest.mark.asyncio
async def test_generate_text_wraps_transport_errors() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://example.com"
    ) as async_client:
        client = GeminiGenerativeClient(api_key="secret", model="test", http_client=async_client)
        with pytest.raises(GeminiClientError, match="connection refused"):
            await client.generate_text(system_instruction="s", messages=[_message()])


def _has_key(node: Any, target: str) -> bool:
    if isinstance(node, dict):
        if target in node:
            return True
        return any(_has_key(value, target) for value in node.values())
    if isinstance(node, list):
        return any(_has_key(item, target) for item in node)
    return False


@pytest.mark.asyncio
async def test_generate_text_inlines_analysis_schema_references() -> None:
    captured: dict[str, Any] = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content.decode("utf-8"))
        captured["schema"] = body["generationConfig"]["responseJsonSchema"]
        return _build_response(_candidate([{"text": "{}"}]))

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://example.com"
    ) as async_client:
        client = GeminiGenerativeClient(api_key="secret", model="test", http_client=async_client)
        await client.generate_text(
            system_instruction="s",
            messages=[_message()],
            response_schema=ANALYSIS_RESPONSE_SCHEMA,
        )

    schema = captured["schema"]
    assert not _has_key(schema, "$ref")
    assert not _has_key(schema, "$defs")
    topic = schema["properties"]["syllabus"]["items"]["properties"]["topics"]["items"]
    assert topic["properties"]["priority"]["enum"] == ["High", "Medium", "Low"]
    assert "Numerical/Derivation" in topic["properties"]["depth"]["enum"]


def test_client_requires_api_key() -> None:
    with pytest.raises(ValueError):
        GeminiGenerativeClient(api_key="", model="test")
