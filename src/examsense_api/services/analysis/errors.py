"""Failure taxonomy for the exam analysis pipeline."""

from __future__ import annotations

from typing import Sequence

GENERIC_ANALYSIS_FAILURE = (
    "Could not generate analysis. Please ensure your inputs are clear and try again."
)
MISSING_INPUT_MESSAGE = "Please provide both syllabus and past questions to continue."
ANALYSIS_IN_PROGRESS_MESSAGE = (
    "An analysis is already in progress for this session. Wait for it to finish."
)


class AnalysisError(Exception):
    """Base class for every failure raised while producing an analysis."""

    kind = "analysis_error"

    @property
    def user_message(self) -> str:
        return str(self)


class InputValidationError(AnalysisError):
    """Raised when a submission lacks a syllabus source or a question source."""

    kind = "input_validation"

    def __init__(self, message: str = MISSING_INPUT_MESSAGE) -> None:
        super().__init__(message)


class AnalysisInProgressError(AnalysisError):
    """Raised when a session submits while its previous analysis is outstanding."""

    kind = "analysis_in_progress"

    def __init__(self, message: str = ANALYSIS_IN_PROGRESS_MESSAGE) -> None:
        super().__init__(message)


class EncodingError(AnalysisError):
    """Raised when an uploaded document cannot be turned into an attachment."""

    kind = "encoding"

    def __init__(self, message: str, *, filename: str | None = None) -> None:
        super().__init__(message)
        self.filename = filename


class RemoteError(AnalysisError):
    """Raised when the reasoning backend is unreachable or rejects the request."""

    kind = "remote"


class DecodeError(AnalysisError):
    """Raised when the backend answered but the answer is unusable.

    The concrete subclasses are kept apart for diagnostics, but all of them map
    to the same message for the end user since retrying is the only remedy.
    """

    kind = "decode"

    @property
    def user_message(self) -> str:
        return GENERIC_ANALYSIS_FAILURE


class EmptyResponseError(DecodeError):
    kind = "empty_response"

    def __init__(self, message: str = "Empty response from the reasoning backend.") -> None:
        super().__init__(message)


class MalformedJsonError(DecodeError):
    kind = "malformed_json"


class SchemaViolationError(DecodeError):
    kind = "schema_violation"

    def __init__(self, message: str, *, violations: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.violations = tuple(violations)


__all__ = [
    "ANALYSIS_IN_PROGRESS_MESSAGE",
    "AnalysisError",
    "AnalysisInProgressError",
    "DecodeError",
    "EmptyResponseError",
    "EncodingError",
    "GENERIC_ANALYSIS_FAILURE",
    "InputValidationError",
    "MISSING_INPUT_MESSAGE",
    "MalformedJsonError",
    "RemoteError",
    "SchemaViolationError",
]
