from __future__ import annotations

import sys

import uvicorn
from pydantic import ValidationError

from examsense_api.config.settings import Settings, get_settings


def _run_api(settings: Settings) -> None:
    from fastapi import FastAPI

    from examsense_api.app import app

    reload_enabled = settings.environment == "local"
    app_target: FastAPI | str = "examsense_api.app:app" if reload_enabled else app
    uvicorn.run(
        app_target,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        reload=reload_enabled,
    )


def _bootstrap_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as exc:
        invalid = sorted(
            {".".join(str(part) for part in error["loc"]) for error in exc.errors()}
        )
        print(
            "[main] Invalid configuration. "
            "Check environment variables (prefix EXAMSENSE_) for: "
            f"{', '.join(invalid)}",
            file=sys.stderr,
        )
        raise


def main() -> None:
    try:
        settings = _bootstrap_settings()
    except ValidationError:
        sys.exit(1)

    if not settings.gemini_api_key:
        print(
            "[main] EXAMSENSE_GEMINI_API_KEY is not set; analysis requests will return 503.",
            file=sys.stderr,
        )

    _run_api(settings)


if __name__ == "__main__":
    main()
