"""Turn uploaded syllabus and question documents into Gemini-ready attachments."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Sequence

import anyio
import fitz  # type: ignore[import-untyped]

from examsense_api.services.analysis.errors import EncodingError

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPES = frozenset(
    {
        "application/pdf",
        "application/x-pdf",
        "application/acrobat",
        "applications/vnd.pdf",
        "text/pdf",
        "text/x-pdf",
    }
)


@dataclass(frozen=True, slots=True)
class UploadedDocument:
    """Raw bytes of a user supplied file as received at the API boundary."""

    filename: str | None
    content_type: str | None
    payload: bytes


@dataclass(frozen=True, slots=True)
class Attachment:
    """Base64 payload paired with the media type the backend must be told about."""

    payload: str
    media_type: str
    filename: str | None = None
    size_bytes: int = 0


def is_supported_media_type(media_type: str | None) -> bool:
    if not media_type:
        return False
    return media_type in PDF_CONTENT_TYPES or media_type.startswith("image/")


def encode(document: UploadedDocument) -> Attachment:
    """Encode a single document, preserving its declared media type verbatim.

    Raises:
        EncodingError: If the payload is not binary data, is empty, has an
            unsupported media type, or claims to be a PDF that cannot be opened.
    """
    label = document.filename or "uploaded file"
    payload = document.payload
    if isinstance(payload, (bytearray, memoryview)):
        payload = bytes(payload)
    if not isinstance(payload, bytes):
        raise EncodingError(
            f"{label} could not be read as binary data.", filename=document.filename
        )
    if not payload:
        raise EncodingError(f"{label} is empty.", filename=document.filename)

    media_type = document.content_type
    if not media_type or not is_supported_media_type(media_type):
        raise EncodingError(
            f"{label} has unsupported content type: {media_type or 'unknown'}. "
            "Upload PDF documents or images.",
            filename=document.filename,
        )

    if media_type in PDF_CONTENT_TYPES:
        _ensure_readable_pdf(payload, label=label, filename=document.filename)

    return Attachment(
        payload=base64.b64encode(payload).decode("ascii"),
        media_type=media_type,
        filename=document.filename,
        size_bytes=len(payload),
    )


async def encode_all(documents: Sequence[UploadedDocument]) -> tuple[Attachment, ...]:
    """Encode documents concurrently; a single failure fails the whole batch."""
    if not documents:
        return ()

    results: list[Attachment | None] = [None] * len(documents)

    async def _encode_into(index: int, document: UploadedDocument) -> None:
        results[index] = await anyio.to_thread.run_sync(encode, document)

    try:
        async with anyio.create_task_group() as group:
            for index, document in enumerate(documents):
                group.start_soon(_encode_into, index, document)
    except BaseExceptionGroup as exc_group:
        failure = _first_encoding_error(exc_group)
        if failure is None:
            raise
        logger.warning(
            "Attachment encoding failed",
            extra={"attachment_filename": failure.filename, "reason": str(failure)},
        )
        raise failure from None

    attachments = tuple(item for item in results if item is not None)
    logger.debug(
        "Encoded attachments",
        extra={
            "count": len(attachments),
            "bytes": sum(item.size_bytes for item in attachments),
        },
    )
    return attachments


def _ensure_readable_pdf(payload: bytes, *, label: str, filename: str | None) -> None:
    try:
        document = fitz.open(stream=payload, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise EncodingError(f"{label} is not a readable PDF document.", filename=filename) from exc
    try:
        if document.page_count < 1:
            raise EncodingError(f"{label} does not contain any pages.", filename=filename)
    finally:
        document.close()


def _first_encoding_error(group: BaseExceptionGroup) -> EncodingError | None:
    for exc in group.exceptions:
        if isinstance(exc, EncodingError):
            return exc
        if isinstance(exc, BaseExceptionGroup):
            nested = _first_encoding_error(exc)
            if nested is not None:
                return nested
    return None


__all__ = [
    "Attachment",
    "PDF_CONTENT_TYPES",
    "UploadedDocument",
    "encode",
    "encode_all",
    "is_supported_media_type",
]
