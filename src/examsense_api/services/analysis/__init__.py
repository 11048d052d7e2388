from __future__ import annotations

from .clients import GeminiClientError, GeminiGenerativeClient, GenerativeClient
from .composer import (
    ANALYSIS_RESPONSE_SCHEMA,
    ComposedRequest,
    analysis_response_schema,
    compose,
)
from .decoder import decode
from .encoder import Attachment, UploadedDocument, encode, encode_all
from .errors import (
    AnalysisError,
    AnalysisInProgressError,
    DecodeError,
    EmptyResponseError,
    EncodingError,
    InputValidationError,
    MalformedJsonError,
    RemoteError,
    SchemaViolationError,
)
from .gate import AnalysisGate
from .presenter import render
from .prompts import ANALYSIS_SYSTEM_PROMPT
from .service import (
    AnalysisConfiguration,
    AnalysisOutcome,
    AnalysisRequest,
    AnalysisSubmission,
    ExamAnalysisService,
    require_sources,
    validate_submission,
)

__all__ = [
    "ANALYSIS_RESPONSE_SCHEMA",
    "ANALYSIS_SYSTEM_PROMPT",
    "AnalysisConfiguration",
    "AnalysisError",
    "AnalysisGate",
    "AnalysisInProgressError",
    "AnalysisOutcome",
    "AnalysisRequest",
    "AnalysisSubmission",
    "Attachment",
    "ComposedRequest",
    "DecodeError",
    "EmptyResponseError",
    "EncodingError",
    "ExamAnalysisService",
    "GeminiClientError",
    "GeminiGenerativeClient",
    "GenerativeClient",
    "InputValidationError",
    "MalformedJsonError",
    "RemoteError",
    "SchemaViolationError",
    "UploadedDocument",
    "analysis_response_schema",
    "compose",
    "decode",
    "encode",
    "encode_all",
    "render",
    "require_sources",
    "validate_submission",
]
