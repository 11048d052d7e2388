from __future__ import annotations

# ruff: noqa: E402
import os
from collections.abc import AsyncIterator, Callable

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("EXAMSENSE_GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("EXAMSENSE_ENVIRONMENT", "test")

from examsense_api.api.dependencies import get_exam_analysis_service
from examsense_api.app import create_app
from examsense_api.config.settings import Settings, get_settings
from examsense_api.services.analysis import (
    AnalysisConfiguration,
    AnalysisGate,
    ExamAnalysisService,
)
from tests.utils import StubGenerativeClient

get_settings.cache_clear()


@pytest.fixture(scope="session")
def settings() -> Settings:
    return Settings(
        environment="test",
        log_level="INFO",
        gemini_api_key="test-gemini-key",
        gemini_model="models/gemini-test",
        analysis_attachment_max_bytes=512 * 1024,
    )


@pytest.fixture()
def app(settings: Settings) -> FastAPI:
    application = create_app(settings)
    application.dependency_overrides[get_settings] = lambda: settings
    return application


@pytest.fixture()
def stub_client() -> StubGenerativeClient:
    return StubGenerativeClient()


@pytest.fixture()
def install_stub_client(
    app: FastAPI, settings: Settings, stub_client: StubGenerativeClient
) -> Callable[[list[str | Exception]], StubGenerativeClient]:
    """Route analysis requests through a stub Gemini client with queued answers."""

    def _install(responses: list[str | Exception]) -> StubGenerativeClient:
        stub_client.responses.extend(responses)

        async def _service_override(request: Request) -> AsyncIterator[ExamAnalysisService]:
            gate: AnalysisGate = request.app.state.analysis_gate
            yield ExamAnalysisService(
                client=stub_client,
                gate=gate,
                config=AnalysisConfiguration(model=settings.gemini_model),
            )

        app.dependency_overrides[get_exam_analysis_service] = _service_override
        return stub_client

    return _install


@pytest_asyncio.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with (
        LifespanManager(app),
        AsyncClient(transport=transport, base_url="http://test") as async_client,
    ):
        yield async_client
