"""Assemble the single multi-part request sent to the reasoning backend."""

from __future__ import annotations

import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from examsense_api.domain.schemas.analysis import ExamAnalysis
from examsense_api.services.analysis.clients import (
    GeminiContentPart,
    GeminiInlineDataPart,
    GeminiMessage,
    GeminiTextPart,
    JSONObject,
    JSONValue,
)
from examsense_api.services.analysis.encoder import Attachment
from examsense_api.services.analysis.prompts import (
    ANALYSIS_INSTRUCTIONS,
    ANALYSIS_SYSTEM_PROMPT,
    EMPTY_TEXT_MARKER,
)

# Generated from the same model the decoder validates against.
ANALYSIS_RESPONSE_SCHEMA_JSON = json.dumps(
    ExamAnalysis.model_json_schema(by_alias=True), indent=2, sort_keys=True
)


def analysis_response_schema() -> JSONObject:
    """Return a fresh, mutable copy of the analysis response schema."""
    return json.loads(ANALYSIS_RESPONSE_SCHEMA_JSON)


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


# Read-only at every level; callers that need to edit it use analysis_response_schema().
ANALYSIS_RESPONSE_SCHEMA: Mapping[str, JSONValue] = _freeze(analysis_response_schema())


@dataclass(frozen=True, slots=True)
class ComposedRequest:
    """Everything the reasoning backend receives for one analysis."""

    system_instruction: str
    instruction: str
    attachments: tuple[Attachment, ...]
    response_schema: Mapping[str, JSONValue]
    syllabus_attachment_count: int = 0
    question_attachment_count: int = 0

    @property
    def parts(self) -> tuple[GeminiContentPart, ...]:
        inline = tuple(
            GeminiInlineDataPart(mime_type=attachment.media_type, data=attachment.payload)
            for attachment in self.attachments
        )
        return (GeminiTextPart(self.instruction), *inline)

    def to_message(self) -> GeminiMessage:
        return GeminiMessage(role="user", parts=self.parts)


def compose(
    syllabus_text: str,
    questions_text: str,
    syllabus_attachments: Sequence[Attachment] = (),
    question_attachments: Sequence[Attachment] = (),
) -> ComposedRequest:
    """Build the instruction block and ordered attachment list for one analysis.

    Both texts are embedded verbatim; an empty text is spelled out with an
    explicit marker rather than dropped. Syllabus attachments come first, then
    question attachments, each group in upload order. Nothing is truncated.
    """
    instruction = render_instruction_block(
        syllabus_text,
        questions_text,
        syllabus_files=len(syllabus_attachments),
        question_files=len(question_attachments),
    )
    return ComposedRequest(
        system_instruction=ANALYSIS_SYSTEM_PROMPT,
        instruction=instruction,
        attachments=(*syllabus_attachments, *question_attachments),
        response_schema=ANALYSIS_RESPONSE_SCHEMA,
        syllabus_attachment_count=len(syllabus_attachments),
        question_attachment_count=len(question_attachments),
    )


def render_instruction_block(
    syllabus_text: str,
    questions_text: str,
    *,
    syllabus_files: int = 0,
    question_files: int = 0,
) -> str:
    lines: list[str] = [ANALYSIS_INSTRUCTIONS, ""]
    lines.append("PASTED SYLLABUS TEXT:")
    lines.append(syllabus_text or EMPTY_TEXT_MARKER)
    lines.append("")
    lines.append("PASTED QUESTIONS TEXT:")
    lines.append(questions_text or EMPTY_TEXT_MARKER)
    lines.append("")
    lines.append("ATTACHED DOCUMENTS:")
    lines.append(_describe_attachments(syllabus_files, question_files))
    lines.append("")
    lines.append("Return a JSON document that matches the following schema:")
    lines.append(f"```json\n{ANALYSIS_RESPONSE_SCHEMA_JSON}\n```")
    return "\n".join(lines)


def _describe_attachments(syllabus_files: int, question_files: int) -> str:
    if not syllabus_files and not question_files:
        return EMPTY_TEXT_MARKER
    return (
        f"The first {syllabus_files} attached file(s) are syllabus material; "
        f"the remaining {question_files} attached file(s) are past exam questions."
    )


__all__ = [
    "ANALYSIS_RESPONSE_SCHEMA",
    "ANALYSIS_RESPONSE_SCHEMA_JSON",
    "ComposedRequest",
    "analysis_response_schema",
    "compose",
    "render_instruction_block",
]
