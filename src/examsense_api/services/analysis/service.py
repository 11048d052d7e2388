"""High level orchestration of one exam analysis, from upload to view model."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Sequence

from examsense_api.core.logging import analysis_log_context
from examsense_api.domain.schemas.analysis import AnalysisSummary, ExamAnalysis
from examsense_api.domain.schemas.views import AnalysisView
from examsense_api.services.analysis.clients import GenerationConfig, GenerativeClient
from examsense_api.services.analysis.composer import ComposedRequest, compose
from examsense_api.services.analysis.decoder import decode
from examsense_api.services.analysis.encoder import Attachment, UploadedDocument, encode_all
from examsense_api.services.analysis.errors import AnalysisError, InputValidationError
from examsense_api.services.analysis.gate import AnalysisGate
from examsense_api.services.analysis.presenter import render

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AnalysisSubmission:
    """What the student submitted: pasted text plus uploaded files, in upload order."""

    syllabus_text: str = ""
    questions_text: str = ""
    syllabus_files: Sequence[UploadedDocument] = ()
    question_files: Sequence[UploadedDocument] = ()


@dataclass(frozen=True, slots=True)
class AnalysisRequest:
    syllabus_text: str
    questions_text: str
    syllabus_attachments: tuple[Attachment, ...]
    question_attachments: tuple[Attachment, ...]


@dataclass(frozen=True, slots=True)
class AnalysisConfiguration:
    """Static generation settings applied to every analysis."""

    model: str
    temperature: float | None = None
    max_output_tokens: int | None = None


@dataclass(frozen=True, slots=True)
class AnalysisOutcome:
    analysis: ExamAnalysis
    view: AnalysisView
    summary: AnalysisSummary


def require_sources(
    syllabus_text: str,
    questions_text: str,
    *,
    syllabus_file_count: int,
    question_file_count: int,
) -> None:
    """Require at least one syllabus source and one question source.

    Only counts files, so it can run before any upload is read.

    Raises:
        InputValidationError: If either side has neither text nor files.
    """
    has_syllabus = bool(syllabus_text.strip()) or syllabus_file_count > 0
    has_questions = bool(questions_text.strip()) or question_file_count > 0
    if not has_syllabus or not has_questions:
        raise InputValidationError()


def validate_submission(submission: AnalysisSubmission) -> None:
    require_sources(
        submission.syllabus_text,
        submission.questions_text,
        syllabus_file_count=len(submission.syllabus_files),
        question_file_count=len(submission.question_files),
    )


class ExamAnalysisService:
    """Façade that runs validation, encoding, composition, the remote call and decoding."""

    def __init__(
        self,
        *,
        client: GenerativeClient,
        gate: AnalysisGate,
        config: AnalysisConfiguration,
    ) -> None:
        self._client = client
        self._gate = gate
        self._config = config

    @property
    def client(self) -> GenerativeClient:
        return self._client

    async def analyze(
        self,
        submission: AnalysisSubmission,
        *,
        session_key: str = "anonymous",
    ) -> AnalysisOutcome:
        """Produce an analysis for one submission; any failure leaves nothing behind."""
        validate_submission(submission)

        analysis_id = uuid.uuid4().hex
        async with self._gate.hold(session_key):
            with analysis_log_context(analysis_id=analysis_id, session_key=session_key):
                try:
                    return await self._run(submission)
                except AnalysisError as exc:
                    logger.warning(
                        "Exam analysis failed",
                        extra={
                            "analysis_id": analysis_id,
                            "kind": exc.kind,
                            "reason": str(exc),
                            "violations": list(getattr(exc, "violations", ())),
                        },
                    )
                    raise

    async def _run(self, submission: AnalysisSubmission) -> AnalysisOutcome:
        logger.info(
            "Preparing exam analysis",
            extra={
                "syllabus_characters": len(submission.syllabus_text),
                "questions_characters": len(submission.questions_text),
                "syllabus_files": len(submission.syllabus_files),
                "question_files": len(submission.question_files),
            },
        )
        # One joined batch keeps encoding all-or-nothing across both groups.
        attachments = await encode_all(
            (*submission.syllabus_files, *submission.question_files)
        )
        split = len(submission.syllabus_files)
        request = AnalysisRequest(
            syllabus_text=submission.syllabus_text,
            questions_text=submission.questions_text,
            syllabus_attachments=attachments[:split],
            question_attachments=attachments[split:],
        )
        composed = compose(
            request.syllabus_text,
            request.questions_text,
            request.syllabus_attachments,
            request.question_attachments,
        )
        raw_text = await self._invoke(composed)
        analysis = decode(raw_text)
        view = render(analysis)
        summary = AnalysisSummary(
            unit_count=len(analysis.syllabus),
            topic_count=analysis.topic_count,
            syllabus_sources=_source_names(request.syllabus_attachments, prefix="syllabus"),
            question_sources=_source_names(request.question_attachments, prefix="questions"),
            model_used=self._config.model,
        )
        logger.info(
            "Exam analysis completed",
            extra={
                "units": summary.unit_count,
                "topics": summary.topic_count,
                "insights": len(analysis.key_insights),
            },
        )
        return AnalysisOutcome(analysis=analysis, view=view, summary=summary)

    async def _invoke(self, composed: ComposedRequest) -> str:
        logger.debug(
            "Invoking Gemini generate_text",
            extra={
                "model": self._config.model,
                "attachments": len(composed.attachments),
                "instruction_characters": len(composed.instruction),
            },
        )
        return await self._client.generate_text(
            system_instruction=composed.system_instruction,
            messages=[composed.to_message()],
            response_schema=composed.response_schema,
            generation_config=GenerationConfig(
                temperature=self._config.temperature,
                max_output_tokens=self._config.max_output_tokens,
            ),
            model=self._config.model,
        )


def _source_names(attachments: Sequence[Attachment], *, prefix: str) -> list[str]:
    return [
        attachment.filename or f"{prefix}-{index + 1}"
        for index, attachment in enumerate(attachments)
    ]


__all__ = [
    "AnalysisConfiguration",
    "AnalysisOutcome",
    "AnalysisRequest",
    "AnalysisSubmission",
    "ExamAnalysisService",
    "require_sources",
    "validate_submission",
]
