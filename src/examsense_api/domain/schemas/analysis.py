from __future__ import annotations

from pydantic import Field

from examsense_api.domain.enums import Depth, Priority
from examsense_api.domain.schemas.base import BaseSchema, CamelSchema


class SyllabusTopic(CamelSchema):
    name: str = Field(..., min_length=1, description="Topic name as it appears in the syllabus.")
    priority: Priority = Field(
        ..., description="Exam weightage inferred from how often the topic is asked."
    )
    depth: Depth = Field(..., description="Preparation depth the past questions demand.")
    reasoning: str = Field(
        ..., description="Short justification citing the question patterns observed."
    )


class SyllabusUnit(CamelSchema):
    title: str = Field(..., min_length=1, description="Unit or chapter heading from the syllabus.")
    topics: list[SyllabusTopic] = Field(
        ..., description="Topics of the unit, most important first."
    )


class StudyPlan(CamelSchema):
    master_now: list[str] = Field(
        ..., description="High-yield topics to master immediately."
    )
    deep_dive: list[str] = Field(
        ..., description="Topics that need in-depth conceptual or numerical work."
    )
    quick_revision: list[str] = Field(
        ..., description="Topics that only need a quick revision pass."
    )


class ExamAnalysis(CamelSchema):
    """Validated study-priority breakdown returned by the reasoning backend."""

    syllabus: list[SyllabusUnit] = Field(
        ..., description="Syllabus units in the order they should be presented."
    )
    key_insights: list[str] = Field(
        ..., description="Observations about recurring exam patterns."
    )
    study_plan: StudyPlan = Field(..., description="Topic names grouped by study strategy.")

    @property
    def topic_count(self) -> int:
        return sum(len(unit.topics) for unit in self.syllabus)


class AnalysisSummary(BaseSchema):
    unit_count: int
    topic_count: int
    syllabus_sources: list[str] = Field(
        default_factory=list,
        description="Names of uploaded syllabus files, in upload order.",
    )
    question_sources: list[str] = Field(
        default_factory=list,
        description="Names of uploaded past-question files, in upload order.",
    )
    model_used: str


__all__ = [
    "AnalysisSummary",
    "ExamAnalysis",
    "StudyPlan",
    "SyllabusTopic",
    "SyllabusUnit",
]
