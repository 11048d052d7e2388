from __future__ import annotations

from http import HTTPStatus
from typing import Annotated, AsyncIterator, cast

from fastapi import Depends, Header, HTTPException, Request

from examsense_api.config.settings import Settings, get_settings
from examsense_api.services.analysis import (
    AnalysisConfiguration,
    AnalysisGate,
    ExamAnalysisService,
    GeminiGenerativeClient,
)

SettingsDependency = Annotated[Settings, Depends(get_settings)]


def get_analysis_gate(request: Request) -> AnalysisGate:
    return cast(AnalysisGate, request.app.state.analysis_gate)


def get_session_key(
    request: Request,
    x_session_id: Annotated[str | None, Header()] = None,
) -> str:
    if x_session_id and x_session_id.strip():
        return x_session_id.strip()
    if request.client and request.client.host:
        return request.client.host
    return "anonymous"


async def get_exam_analysis_service(
    settings: SettingsDependency,
    gate: Annotated[AnalysisGate, Depends(get_analysis_gate)],
) -> AsyncIterator[ExamAnalysisService]:
    if not settings.gemini_api_key:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE.value,
            detail="Gemini API is not configured.",
        )

    client = GeminiGenerativeClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        endpoint=settings.gemini_endpoint,
        timeout=settings.gemini_request_timeout_seconds,
    )
    config = AnalysisConfiguration(
        model=settings.gemini_model,
        temperature=settings.analysis_temperature,
        max_output_tokens=settings.analysis_max_output_tokens,
    )
    service = ExamAnalysisService(client=client, gate=gate, config=config)
    try:
        yield service
    finally:
        await client.aclose()


ExamAnalysisServiceDependency = Annotated[ExamAnalysisService, Depends(get_exam_analysis_service)]
SessionKeyDependency = Annotated[str, Depends(get_session_key)]


__all__ = [
    "ExamAnalysisServiceDependency",
    "SessionKeyDependency",
    "SettingsDependency",
    "get_analysis_gate",
    "get_exam_analysis_service",
    "get_session_key",
]
