from __future__ import annotations

from typing import Any

from examsense_api.domain.schemas.analysis import AnalysisSummary, ExamAnalysis
from examsense_api.domain.schemas.base import BaseSchema
from examsense_api.domain.schemas.views import AnalysisView


class ErrorBody(BaseSchema):
    code: int
    message: str
    details: dict[str, Any] | None = None


class ErrorEnvelope(BaseSchema):
    error: ErrorBody


class AnalysisResponse(BaseSchema):
    analysis: ExamAnalysis
    view: AnalysisView
    summary: AnalysisSummary


class HealthStatus(BaseSchema):
    status: str = "ok"
    version: str
    gemini_configured: bool


__all__ = ["AnalysisResponse", "ErrorBody", "ErrorEnvelope", "HealthStatus"]
