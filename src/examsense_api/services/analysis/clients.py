"""Gemini client abstractions used by the exam analysis pipeline."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence, TypeAlias, Union, cast

import httpx

from examsense_api.services.analysis.errors import RemoteError

logger = logging.getLogger(__name__)

JSONPrimitive: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]

DEFAULT_GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"
SUCCESSFUL_FINISH_REASONS = frozenset({"STOP", "FINISH"})
_DEFS_PREFIX = "#/$defs/"


class GeminiClientError(RemoteError):
    """Raised when Gemini cannot be reached or refuses to answer."""


@dataclass(frozen=True, slots=True)
class GeminiTextPart:
    """Plain text content part."""

    text: str


@dataclass(frozen=True, slots=True)
class GeminiInlineDataPart:
    """Inline base64 encoded payload part."""

    mime_type: str
    data: str


GeminiContentPart = Union[GeminiTextPart, GeminiInlineDataPart]


@dataclass(frozen=True, slots=True)
class GeminiMessage:
    role: str
    parts: Sequence[GeminiContentPart]


@dataclass(frozen=True, slots=True)
class GenerationConfig:
    """Sampling options forwarded as Gemini's ``generationConfig``."""

    temperature: float | None = None
    max_output_tokens: int | None = None
    response_mime_type: str | None = "application/json"

    def as_payload(self) -> JSONObject:
        payload: JSONObject = {}
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.max_output_tokens is not None:
            payload["maxOutputTokens"] = self.max_output_tokens
        if self.response_mime_type:
            payload["responseMimeType"] = self.response_mime_type
        return payload


class GenerativeClient(Protocol):
    """The slice of Gemini behaviour the analysis service depends on."""

    @property
    def default_model(self) -> str: ...

    async def generate_text(
        self,
        *,
        system_instruction: str,
        messages: Sequence[GeminiMessage],
        response_schema: Mapping[str, JSONValue] | None = None,
        generation_config: GenerationConfig | None = None,
        model: str | None = None,
    ) -> str: ...

    async def aclose(self) -> None: ...


class GeminiGenerativeClient:
    """Async client for the Gemini ``generateContent`` REST endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        endpoint: str = DEFAULT_GEMINI_ENDPOINT,
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("A Gemini API key is required.")
        self._api_key = api_key
        self._model = model
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=endpoint,
            timeout=httpx.Timeout(timeout),
            headers={"Content-Type": "application/json"},
        )

    @property
    def default_model(self) -> str:
        return self._model

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def generate_text(
        self,
        *,
        system_instruction: str,
        messages: Sequence[GeminiMessage],
        response_schema: Mapping[str, JSONValue] | None = None,
        generation_config: GenerationConfig | None = None,
        model: str | None = None,
    ) -> str:
        """Send one generation request and return the text of the first candidate.

        The text may be empty (no candidate, no text parts) or partial (an
        abnormal finish reason such as ``MAX_TOKENS``); interpreting it is left
        to the decoder.

        Raises:
            GeminiClientError: On transport failures, non-2xx statuses or
                blocked prompts.
        """
        target_model = model or self._model
        body = build_request_body(
            system_instruction=system_instruction,
            messages=messages,
            response_schema=response_schema,
            generation_config=generation_config,
        )
        response = await self._post(model_path(target_model), body, model=target_model)
        envelope = _parse_envelope(response)
        text, finish_reason = _candidate_text(envelope)
        logger.debug(
            "Gemini answered",
            extra={
                "model": target_model,
                "finish_reason": finish_reason,
                "characters": len(text),
                "usage": envelope.get("usageMetadata"),
            },
        )
        return text

    async def _post(self, url: str, body: JSONObject, *, model: str) -> httpx.Response:
        try:
            response = await self._client.post(
                url, headers={"x-goog-api-key": self._api_key}, json=body
            )
        except httpx.TimeoutException as exc:
            logger.error("Gemini request timed out", extra={"model": model, "error": str(exc)})
            raise GeminiClientError("Gemini request timed out.") from exc
        except httpx.HTTPError as exc:
            logger.error(
                "Gemini request could not be sent", extra={"model": model, "error": str(exc)}
            )
            raise GeminiClientError(f"Gemini request failed: {exc}") from exc

        if response.is_error:
            summary = summarize_error_body(response)
            logger.error(
                "Gemini rejected the request",
                extra={
                    "status_code": response.status_code,
                    "model": model,
                    "error_summary": summary,
                    "request_id": response.headers.get("x-request-id"),
                },
            )
            raise GeminiClientError(
                f"Gemini request failed ({response.status_code}): {summary}"
            )
        return response


def model_path(model: str) -> str:
    """Return the ``generateContent`` path for bare or ``models/``-prefixed ids."""
    resource = model if model.startswith("models/") else f"models/{model}"
    return f"/{resource}:generateContent"


def build_request_body(
    *,
    system_instruction: str,
    messages: Sequence[GeminiMessage],
    response_schema: Mapping[str, JSONValue] | None = None,
    generation_config: GenerationConfig | None = None,
) -> JSONObject:
    config = (generation_config or GenerationConfig()).as_payload()
    config.setdefault("responseMimeType", "application/json")
    if response_schema:
        config["responseJsonSchema"] = inline_schema_refs(ensure_json_object(response_schema))

    return ensure_json_object(
        {
            "system_instruction": {"parts": [{"text": system_instruction}]},
            "contents": [
                {"role": message.role, "parts": [_part_payload(part) for part in message.parts]}
                for message in messages
            ],
            "generationConfig": config,
        }
    )


def _part_payload(part: GeminiContentPart) -> JSONObject:
    if isinstance(part, GeminiTextPart):
        return {"text": part.text}
    if isinstance(part, GeminiInlineDataPart):
        return {"inlineData": {"mimeType": part.mime_type, "data": part.data}}
    raise GeminiClientError(f"Unsupported part type: {type(part)!r}")


def _parse_envelope(response: httpx.Response) -> dict[str, Any]:
    try:
        envelope = response.json()
    except ValueError as exc:
        raise GeminiClientError("Gemini returned a non-JSON envelope.") from exc
    if not isinstance(envelope, dict):
        raise GeminiClientError("Gemini returned an unexpected envelope.")

    feedback = envelope.get("promptFeedback")
    if isinstance(feedback, dict) and feedback.get("blockReason"):
        raise GeminiClientError(f"Gemini blocked the request: {feedback['blockReason']}")
    return envelope


def _candidate_text(envelope: Mapping[str, Any]) -> tuple[str, str | None]:
    """Return whatever text the first candidate carries, plus its finish reason.

    A missing candidate yields an empty string and a truncated candidate yields
    its partial text; the decoder reports both as unusable answers.
    """
    candidates = envelope.get("candidates") or []
    if not candidates:
        logger.warning("Gemini response did not contain any candidates")
        return "", None

    candidate = candidates[0]
    finish_reason = candidate.get("finishReason")
    if finish_reason and finish_reason not in SUCCESSFUL_FINISH_REASONS:
        logger.warning(
            "Gemini did not finish successfully",
            extra={"finish_reason": finish_reason},
        )

    parts = (candidate.get("content") or {}).get("parts") or []
    # Thought summaries are not part of the answer.
    text = "".join(
        part["text"]
        for part in parts
        if isinstance(part.get("text"), str) and not part.get("thought")
    )
    return text, finish_reason


def ensure_json_object(payload: Mapping[str, Any], *, path: str = "root") -> JSONObject:
    """Copy a mapping into plain JSON containers, rejecting non-JSON values."""
    result: JSONObject = {}
    for key, value in payload.items():
        if not isinstance(key, str):
            raise GeminiClientError(f"JSON keys must be strings (found {type(key)!r} at {path})")
        result[key] = _json_value(value, path=f"{path}.{key}")
    return result


def _json_value(value: Any, *, path: str) -> JSONValue:
    if value is None or isinstance(value, (str, int, float, bool)):
        return cast(JSONPrimitive, value)
    if isinstance(value, (list, tuple)):
        return [_json_value(item, path=f"{path}[{index}]") for index, item in enumerate(value)]
    if isinstance(value, Mapping):
        return ensure_json_object(value, path=path)
    raise GeminiClientError(f"Unsupported JSON value at {path}: {type(value)!r}")


def inline_schema_refs(schema: JSONObject) -> JSONObject:
    """Expand local ``$ref`` pointers so Gemini receives a self-contained schema.

    Keys that sit next to a ``$ref`` (such as ``description``) are merged over
    the referenced definition. The ``$defs`` table itself is dropped.
    """
    definitions = schema.get("$defs") or {}
    if not isinstance(definitions, dict):
        raise GeminiClientError("Invalid JSON schema: $defs must be an object.")

    def expand(node: JSONValue, seen: frozenset[str]) -> JSONValue:
        if isinstance(node, list):
            return [expand(item, seen) for item in node]
        if not isinstance(node, dict):
            return node
        expanded = {
            key: expand(value, seen)
            for key, value in node.items()
            if key not in {"$ref", "$defs"}
        }
        if "$ref" not in node:
            return expanded

        reference = node["$ref"]
        if not isinstance(reference, str) or not reference.startswith(_DEFS_PREFIX):
            raise GeminiClientError(f"Unsupported $ref target: {reference!r}")
        name = reference[len(_DEFS_PREFIX):]
        if name not in definitions:
            raise GeminiClientError(f"Missing $defs entry for {reference}")
        if name in seen:
            raise GeminiClientError(f"Circular $ref detected for {reference}")
        target = expand(definitions[name], seen | {name})
        if isinstance(target, dict):
            return {**target, **expanded}
        return target

    return cast(JSONObject, expand(schema, frozenset()))


def summarize_error_body(response: httpx.Response) -> str:
    """Condense a Gemini error body into ``STATUS: message`` form."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or "No response body"

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            status = error.get("status") or error.get("code")
            message = error.get("message")
            pieces = [str(piece) for piece in (status, message) if isinstance(piece, str) and piece]
            return ": ".join(pieces) or "Gemini returned an error"
        if isinstance(body.get("message"), str) and body["message"]:
            return str(body["message"])
    if isinstance(body, list):
        return f"Response contained {len(body)} error item(s)"
    return json.dumps(body)


__all__ = [
    "DEFAULT_GEMINI_ENDPOINT",
    "GeminiClientError",
    "GeminiContentPart",
    "GeminiGenerativeClient",
    "GeminiInlineDataPart",
    "GeminiMessage",
    "GeminiTextPart",
    "GenerationConfig",
    "GenerativeClient",
    "JSONObject",
    "JSONValue",
    "build_request_body",
    "ensure_json_object",
    "inline_schema_refs",
    "model_path",
    "summarize_error_body",
]
