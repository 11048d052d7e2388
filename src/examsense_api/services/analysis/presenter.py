"""Projection of a validated analysis into dashboard-friendly view models."""

from __future__ import annotations

from examsense_api.domain.enums import Priority, StudyPlanTier
from examsense_api.domain.schemas.analysis import ExamAnalysis, SyllabusTopic, SyllabusUnit
from examsense_api.domain.schemas.views import (
    AnalysisView,
    InsightsSectionView,
    StudyPlanSectionView,
    StudyPlanTierView,
    SyllabusSectionView,
    TopicView,
    UnitView,
)

SYLLABUS_HEADING = "Syllabus & Weightage Breakdown"
INSIGHTS_HEADING = "Key Exam Insights"
STUDY_PLAN_HEADING = "High-ROI Study Plan"


def render(analysis: ExamAnalysis) -> AnalysisView:
    """Group the analysis by unit and topic, and by study-plan tier.

    Units, topics, insights and tier entries keep their original order.
    """
    units = [
        _render_unit(position, unit) for position, unit in enumerate(analysis.syllabus, start=1)
    ]
    plan = analysis.study_plan
    tiers = [
        _render_tier(StudyPlanTier.MASTER_NOW, plan.master_now),
        _render_tier(StudyPlanTier.DEEP_DIVE, plan.deep_dive),
        _render_tier(StudyPlanTier.QUICK_REVISION, plan.quick_revision),
    ]
    counts = {priority: 0 for priority in Priority}
    for unit in analysis.syllabus:
        for topic in unit.topics:
            counts[topic.priority] += 1

    return AnalysisView(
        syllabus=SyllabusSectionView(heading=SYLLABUS_HEADING, units=units),
        insights=InsightsSectionView(
            heading=INSIGHTS_HEADING, insights=list(analysis.key_insights)
        ),
        study_plan=StudyPlanSectionView(heading=STUDY_PLAN_HEADING, tiers=tiers),
        priority_counts=counts,
    )


def _render_unit(position: int, unit: SyllabusUnit) -> UnitView:
    return UnitView(
        position=position,
        title=unit.title,
        topics=[_render_topic(index, topic) for index, topic in enumerate(unit.topics, start=1)],
    )


def _render_topic(position: int, topic: SyllabusTopic) -> TopicView:
    return TopicView(
        position=position,
        name=topic.name,
        priority=topic.priority,
        priority_label=topic.priority.label,
        priority_tone=topic.priority.tone,
        depth=topic.depth,
        depth_label=topic.depth.value,
        depth_tone=topic.depth.tone,
        reasoning=topic.reasoning,
    )


def _render_tier(tier: StudyPlanTier, topics: list[str]) -> StudyPlanTierView:
    return StudyPlanTierView(tier=tier, heading=tier.heading, topics=list(topics))


__all__ = ["INSIGHTS_HEADING", "STUDY_PLAN_HEADING", "SYLLABUS_HEADING", "render"]
