"""Strict decoding of the reasoning backend's raw answer into an ExamAnalysis."""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError
from pydantic_core import ErrorDetails

from examsense_api.domain.schemas.analysis import ExamAnalysis
from examsense_api.services.analysis.errors import (
    EmptyResponseError,
    MalformedJsonError,
    SchemaViolationError,
)

logger = logging.getLogger(__name__)


def decode(raw_text: str | None) -> ExamAnalysis:
    """Parse and validate the backend answer, failing fast on any deviation.

    No coercion is attempted: enum casing must match exactly, every required
    field must be present and correctly typed, and no partial result is built.

    Raises:
        EmptyResponseError: If the answer is missing or blank.
        MalformedJsonError: If the answer is not a JSON object.
        SchemaViolationError: If the object does not satisfy the analysis schema.
    """
    if raw_text is None or not raw_text.strip():
        raise EmptyResponseError()

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        logger.warning(
            "Backend answer was not valid JSON",
            extra={"position": exc.pos, "characters": len(raw_text)},
        )
        raise MalformedJsonError(f"Backend answer was not valid JSON: {exc.msg}.") from exc

    if not isinstance(parsed, dict):
        raise MalformedJsonError(
            f"Backend answer must be a JSON object, got {type(parsed).__name__}."
        )

    try:
        analysis = ExamAnalysis.model_validate(parsed)
    except ValidationError as exc:
        violations = [_describe(error) for error in exc.errors()]
        logger.warning(
            "Backend answer violated the analysis schema",
            extra={"violations": violations},
        )
        raise SchemaViolationError(
            f"Backend answer violated the analysis schema ({len(violations)} issue(s)).",
            violations=violations,
        ) from exc

    return analysis


def _describe(error: ErrorDetails) -> str:
    location = ".".join(str(part) for part in error["loc"]) or "root"
    return f"{location}: {error['msg']}"


__all__ = ["decode"]
