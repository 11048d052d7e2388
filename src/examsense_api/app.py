from __future__ import annotations

from http import HTTPStatus
from typing import Any, Mapping, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from examsense_api.api import include_api_routes
from examsense_api.config.settings import Settings, get_settings
from examsense_api.core.logging import configure_logging, get_logger
from examsense_api.domain.schemas.common import ErrorBody, ErrorEnvelope
from examsense_api.services.analysis import (
    AnalysisError,
    AnalysisGate,
    AnalysisInProgressError,
    DecodeError,
    EncodingError,
    InputValidationError,
    RemoteError,
)

ANALYSIS_ERROR_STATUS: Mapping[type[AnalysisError], int] = {
    InputValidationError: HTTPStatus.UNPROCESSABLE_ENTITY.value,
    EncodingError: HTTPStatus.BAD_REQUEST.value,
    AnalysisInProgressError: HTTPStatus.CONFLICT.value,
    RemoteError: HTTPStatus.BAD_GATEWAY.value,
    DecodeError: HTTPStatus.BAD_GATEWAY.value,
}

logger = get_logger(__name__)


def analysis_error_status(exc: AnalysisError) -> int:
    for klass in type(exc).__mro__:
        if klass in ANALYSIS_ERROR_STATUS:
            return ANALYSIS_ERROR_STATUS[cast(type[AnalysisError], klass)]
    return HTTPStatus.INTERNAL_SERVER_ERROR.value


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def _error_response(
    status_code: int, message: str, details: dict[str, Any] | None = None
) -> JSONResponse:
    payload = ErrorEnvelope(
        error=ErrorBody(code=status_code, message=message, details=details)
    ).model_dump(mode="json")
    return JSONResponse(status_code=status_code, content=payload)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory for the ExamSense API."""

    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.api_version,
    )
    app.state.analysis_gate = AnalysisGate()

    if settings.environment == "production" and (
        not settings.cors_origins or settings.cors_origins == ["*"]
    ):
        raise RuntimeError("Production deployments must configure explicit CORS origins.")

    if settings.cors_origins:
        from fastapi.middleware.cors import CORSMiddleware

        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    include_api_routes(app)

    @app.exception_handler(AnalysisError)
    async def analysis_exception_handler(request: Request, exc: AnalysisError) -> JSONResponse:
        status_code = analysis_error_status(exc)
        details: dict[str, Any] = {"kind": exc.kind}
        if isinstance(exc, EncodingError) and exc.filename:
            details["filename"] = exc.filename
        logger.info(
            "Analysis request rejected",
            path=request.url.path,
            status_code=status_code,
            kind=exc.kind,
        )
        return _error_response(status_code, exc.user_message, details)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        message = (
            exc.detail
            if isinstance(exc.detail, str)
            else _status_phrase(exc.status_code)
        )
        details = exc.detail if isinstance(exc.detail, dict) else None
        return _error_response(exc.status_code, message, details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error_response(
            HTTPStatus.UNPROCESSABLE_ENTITY.value,
            "Invalid analysis submission.",
            {"errors": [str(error.get("msg")) for error in exc.errors()]},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:  # pragma: no cover
        logger.exception("Unhandled error", path=request.url.path)
        return _error_response(
            HTTPStatus.INTERNAL_SERVER_ERROR.value,
            "Internal Server Error",
            {"reason": str(exc)},
        )

    return app


app = create_app()


__all__ = ["analysis_error_status", "app", "create_app"]
