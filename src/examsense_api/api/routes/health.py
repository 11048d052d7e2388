from __future__ import annotations

from fastapi import APIRouter

from examsense_api.api.dependencies import SettingsDependency
from examsense_api.domain.schemas.common import HealthStatus

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthStatus)
async def health(settings: SettingsDependency) -> HealthStatus:
    return HealthStatus(
        version=settings.api_version,
        gemini_configured=bool(settings.gemini_api_key),
    )


__all__ = ["health", "router"]
