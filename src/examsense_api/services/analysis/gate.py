from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from examsense_api.services.analysis.errors import AnalysisInProgressError

logger = logging.getLogger(__name__)


class AnalysisGate:
    """Single-permit gate per session: a second submission is rejected, never queued."""

    def __init__(self) -> None:
        self._in_flight: set[str] = set()

    def is_busy(self, session_key: str) -> bool:
        return session_key in self._in_flight

    @asynccontextmanager
    async def hold(self, session_key: str) -> AsyncIterator[None]:
        # Check-and-add runs without an await in between, so it is atomic on the event loop.
        if session_key in self._in_flight:
            logger.info(
                "Rejected concurrent analysis submission",
                extra={"session_key": session_key},
            )
            raise AnalysisInProgressError()
        self._in_flight.add(session_key)
        try:
            yield
        finally:
            self._in_flight.discard(session_key)


__all__ = ["AnalysisGate"]
