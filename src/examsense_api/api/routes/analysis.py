from __future__ import annotations

from http import HTTPStatus
from typing import Annotated, Any, Sequence

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from examsense_api.api.dependencies import (
    ExamAnalysisServiceDependency,
    SessionKeyDependency,
    SettingsDependency,
)
from examsense_api.domain.schemas.common import AnalysisResponse
from examsense_api.services.analysis import (
    AnalysisSubmission,
    UploadedDocument,
    analysis_response_schema,
    require_sources,
)

router = APIRouter(prefix="/analysis", tags=["Analysis"])


@router.post("", response_model=AnalysisResponse)
async def analyze_exam_material(
    service: ExamAnalysisServiceDependency,
    session_key: SessionKeyDependency,
    settings: SettingsDependency,
    syllabus_files: Annotated[list[UploadFile], File(default_factory=list)],
    question_files: Annotated[list[UploadFile], File(default_factory=list)],
    syllabus_text: Annotated[str, Form(description="Pasted syllabus text.")] = "",
    questions_text: Annotated[str, Form(description="Pasted past exam questions.")] = "",
) -> AnalysisResponse:
    """Analyse a syllabus against past exam questions and return a study-priority breakdown."""
    syllabus_uploads = _selected(syllabus_files)
    question_uploads = _selected(question_files)
    try:
        require_sources(
            syllabus_text,
            questions_text,
            syllabus_file_count=len(syllabus_uploads),
            question_file_count=len(question_uploads),
        )
        syllabus_documents = await _read_uploads(
            syllabus_uploads, max_bytes=settings.analysis_attachment_max_bytes
        )
        question_documents = await _read_uploads(
            question_uploads, max_bytes=settings.analysis_attachment_max_bytes
        )
    finally:
        for upload in (*syllabus_uploads, *question_uploads):
            await upload.close()

    submission = AnalysisSubmission(
        syllabus_text=syllabus_text,
        questions_text=questions_text,
        syllabus_files=syllabus_documents,
        question_files=question_documents,
    )
    outcome = await service.analyze(submission, session_key=session_key)
    return AnalysisResponse(
        analysis=outcome.analysis,
        view=outcome.view,
        summary=outcome.summary,
    )


@router.get("/schema")
async def get_response_schema() -> dict[str, Any]:
    """Return the JSON schema the reasoning backend is instructed to follow."""
    return analysis_response_schema()


def _selected(uploads: Sequence[UploadFile] | None) -> list[UploadFile]:
    # Browsers post an unnamed empty part when no file was picked.
    return [upload for upload in uploads or [] if upload.filename]


async def _read_uploads(
    uploads: Sequence[UploadFile], *, max_bytes: int
) -> tuple[UploadedDocument, ...]:
    documents: list[UploadedDocument] = []
    for upload in uploads:
        if upload.size is not None and upload.size > max_bytes:
            raise _too_large(upload.filename, max_bytes)
        data = await upload.read()
        if len(data) > max_bytes:
            raise _too_large(upload.filename, max_bytes)
        documents.append(
            UploadedDocument(
                filename=upload.filename,
                content_type=upload.content_type,
                payload=data,
            )
        )
    return tuple(documents)


def _too_large(filename: str | None, max_bytes: int) -> HTTPException:
    return HTTPException(
        status_code=HTTPStatus.REQUEST_ENTITY_TOO_LARGE.value,
        detail=f"{filename or 'Uploaded file'} exceeds the {max_bytes} byte upload limit.",
    )


__all__ = ["analyze_exam_material", "get_response_schema", "router"]
