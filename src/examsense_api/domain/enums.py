from __future__ import annotations

from enum import Enum


class Priority(str, Enum):
    """How heavily a topic is weighted by past exam questions."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def label(self) -> str:
        return f"{self.value} Priority"

    @property
    def tone(self) -> str:
        return self.name.lower()


class Depth(str, Enum):
    """Preparation depth a topic demands, from recall up to application."""

    BASIC = "Basic"
    CONCEPTUAL = "Conceptual"
    NUMERICAL = "Numerical/Derivation"
    APPLICATION = "Application"

    @property
    def tone(self) -> str:
        return self.name.lower()


class StudyPlanTier(str, Enum):
    MASTER_NOW = "masterNow"
    DEEP_DIVE = "deepDive"
    QUICK_REVISION = "quickRevision"

    @property
    def heading(self) -> str:
        return _TIER_HEADINGS[self]


_TIER_HEADINGS = {
    StudyPlanTier.MASTER_NOW: "Master Immediately",
    StudyPlanTier.DEEP_DIVE: "Deep Dive Focus",
    StudyPlanTier.QUICK_REVISION: "Quick Revision",
}


__all__ = ["Depth", "Priority", "StudyPlanTier"]
