from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, cast

import structlog
from structlog.typing import EventDict, FilteringBoundLogger, Processor, WrappedLogger

from examsense_api.config.settings import Settings

_HANDLER_NAME = "examsense"


def _service_name_processor(app_name: str) -> Processor:
    def _add_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", app_name)
        return event_dict

    return _add_service


def _renderer(settings: Settings) -> Processor:
    if settings.log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=settings.environment == "local")


def configure_logging(settings: Settings) -> None:
    """Route structlog and stdlib records through one structlog renderer.

    Service modules log with ``logging.getLogger`` and ``extra=``; those fields
    end up in the rendered event next to the bound analysis context.
    """

    level = logging.getLevelName(settings.log_level)
    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _service_name_processor(settings.app_name),
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*pre_chain, structlog.stdlib.ExtraAdder()],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(settings),
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    # Repeated app factories in one process must not stack handlers.
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Return a structlog logger instance."""

    return cast(FilteringBoundLogger, structlog.get_logger(name))


@contextmanager
def analysis_log_context(*, analysis_id: str, session_key: str) -> Iterator[None]:
    """Bind analysis identifiers to every event emitted inside the block."""

    with structlog.contextvars.bound_contextvars(
        analysis_id=analysis_id,
        session_key=session_key,
    ):
        yield


__all__ = ["analysis_log_context", "configure_logging", "get_logger"]
