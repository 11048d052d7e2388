from __future__ import annotations

from pydantic import Field

from examsense_api.domain.enums import Depth, Priority, StudyPlanTier
from examsense_api.domain.schemas.base import BaseSchema


class TopicView(BaseSchema):
    position: int = Field(..., ge=1, description="1-based position of the topic within its unit.")
    name: str
    priority: Priority
    priority_label: str
    priority_tone: str
    depth: Depth
    depth_label: str
    depth_tone: str
    reasoning: str


class UnitView(BaseSchema):
    position: int = Field(..., ge=1)
    title: str
    topics: list[TopicView]


class StudyPlanTierView(BaseSchema):
    tier: StudyPlanTier
    heading: str
    topics: list[str]


class SyllabusSectionView(BaseSchema):
    heading: str
    units: list[UnitView]


class InsightsSectionView(BaseSchema):
    heading: str
    insights: list[str]


class StudyPlanSectionView(BaseSchema):
    heading: str
    tiers: list[StudyPlanTierView]


class AnalysisView(BaseSchema):
    """Navigable projection of an analysis, ready for a dashboard to render."""

    syllabus: SyllabusSectionView
    insights: InsightsSectionView
    study_plan: StudyPlanSectionView
    priority_counts: dict[Priority, int]


__all__ = [
    "AnalysisView",
    "InsightsSectionView",
    "StudyPlanSectionView",
    "StudyPlanTierView",
    "SyllabusSectionView",
    "TopicView",
    "UnitView",
]
