from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence, cast

import fitz  # type: ignore[import-untyped]

from examsense_api.services.analysis.clients import GeminiMessage, GenerationConfig, JSONValue

THERMODYNAMICS_RESPONSE = (
    '{"syllabus":[{"title":"Unit 1","topics":[{"name":"Entropy","priority":"High",'
    '"depth":"Conceptual","reasoning":"asked twice"}]}],"keyInsights":["Entropy recurs"],'
    '"studyPlan":{"masterNow":["Entropy"],"deepDive":[],"quickRevision":[]}}'
)


def create_pdf_with_text_and_image(
    text: str = "Unit 1: Thermodynamics. Laws of thermodynamics, entropy, Carnot cycle.",
    *,
    width: float = 120.0,
    height: float = 120.0,
) -> bytes:
    document = fitz.open()
    try:
        page = document.new_page()
        page.insert_text((72, 72), text, fontsize=12)
        rect = fitz.Rect(72, 120, 72 + width, 120 + height)
        bbox = fitz.IRect(0, 0, int(width), int(height))
        pixmap = fitz.Pixmap(fitz.csRGB, bbox)
        pixmap.clear_with(0x4444FF)
        page.insert_image(rect, pixmap=pixmap)
        return cast(bytes, document.tobytes())
    finally:
        document.close()


def create_png(width: int = 8, height: int = 8) -> bytes:
    pixmap = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, width, height))
    pixmap.clear_with(0x22AA22)
    return cast(bytes, pixmap.tobytes("png"))


def build_analysis_payload(
    *,
    units: Sequence[Mapping[str, Any]] | None = None,
    key_insights: Sequence[str] = ("Thermodynamics dominates long answers",),
    master_now: Sequence[str] = ("Entropy",),
    deep_dive: Sequence[str] = ("Carnot cycle",),
    quick_revision: Sequence[str] = ("Zeroth law",),
) -> dict[str, Any]:
    if units is None:
        units = [
            {
                "title": "Unit 1: Thermodynamics",
                "topics": [
                    {
                        "name": "Entropy",
                        "priority": "High",
                        "depth": "Conceptual",
                        "reasoning": "Asked in 2019 and 2021.",
                    },
                    {
                        "name": "Carnot cycle",
                        "priority": "Medium",
                        "depth": "Numerical/Derivation",
                        "reasoning": "Efficiency derivation appears every other year.",
                    },
                    {
                        "name": "Zeroth law",
                        "priority": "Low",
                        "depth": "Basic",
                        "reasoning": "Only one short-answer question in five years.",
                    },
                ],
            },
            {
                "title": "Unit 2: Heat Transfer",
                "topics": [
                    {
                        "name": "Fins",
                        "priority": "High",
                        "depth": "Application",
                        "reasoning": "Design problem asked in 2020, 2022 and 2023.",
                    }
                ],
            },
        ]
    return {
        "syllabus": [dict(unit) for unit in units],
        "keyInsights": list(key_insights),
        "studyPlan": {
            "masterNow": list(master_now),
            "deepDive": list(deep_dive),
            "quickRevision": list(quick_revision),
        },
    }


@dataclass(slots=True)
class RecordedCall:
    system_instruction: str
    messages: Sequence[GeminiMessage]
    response_schema: Mapping[str, JSONValue] | None
    generation_config: GenerationConfig | None
    model: str | None


class StubGenerativeClient:
    def __init__(self, responses: list[str | Exception] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[RecordedCall] = []
        self.closed = False
        self._default_model = "models/gemini-stub"

    async def generate_text(
        self,
        *,
        system_instruction: str,
        messages: Sequence[GeminiMessage],
        response_schema: Mapping[str, JSONValue] | None = None,
        generation_config: GenerationConfig | None = None,
        model: str | None = None,
    ) -> str:
        self.calls.append(
            RecordedCall(
                system_instruction=system_instruction,
                messages=messages,
                response_schema=response_schema,
                generation_config=generation_config,
                model=model,
            )
        )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def aclose(self) -> None:
        self.closed = True

    @property
    def default_model(self) -> str:
        return self._default_model


__all__ = [
    "RecordedCall",
    "StubGenerativeClient",
    "THERMODYNAMICS_RESPONSE",
    "build_analysis_payload",
    "create_pdf_with_text_and_image",
    "create_png",
]
