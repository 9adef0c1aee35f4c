"""Pydantic request/response models for the updateq API.

Request models convert to the frozen contracts in updateq.contracts; response
models are built from them. Size limits keep one request from queueing an
unbounded number of model calls.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from updateq.contracts.activity import (
    AnalysisMode,
    AnalysisResult,
    CategorizedActivity,
    ContentType,
    WeeklySummary,
)
from updateq.contracts.sources import (
    ActivityInput,
    CommitRecord,
    PullRequestRecord,
    SupplementaryContent,
)
from updateq.observability.events import PipelineEvent

MAX_COMMITS = 500
MAX_PULL_REQUESTS = 200
MAX_SUPPLEMENTARY = 20
MAX_TEXT_LENGTH = 50_000
MAX_ACHIEVEMENTS = 100


# =============================================================================
# REQUESTS
# =============================================================================


class CommitIn(BaseModel):
    message: str = Field(..., min_length=1, max_length=MAX_TEXT_LENGTH)
    author: str | None = None
    date: datetime | None = None


class PullRequestIn(BaseModel):
    number: int = Field(..., ge=0)
    title: str = Field(..., max_length=MAX_TEXT_LENGTH)
    body: str | None = Field(None, max_length=MAX_TEXT_LENGTH)
    state: str = "open"
    created_at: datetime | None = None
    merged_at: datetime | None = None


class SupplementaryIn(BaseModel):
    text: str = Field(..., max_length=MAX_TEXT_LENGTH)
    content_type: ContentType = ContentType.PLAIN_TEXT


class AnalyzeRequest(BaseModel):
    """Already-fetched activity for one date range."""

    commits: list[CommitIn] = Field(default_factory=list, max_length=MAX_COMMITS)
    pull_requests: list[PullRequestIn] = Field(default_factory=list, max_length=MAX_PULL_REQUESTS)
    supplementary: list[SupplementaryIn] = Field(default_factory=list, max_length=MAX_SUPPLEMENTARY)
    additional_context: str | None = Field(None, max_length=MAX_TEXT_LENGTH)
    start_date: date | None = None
    end_date: date | None = None
    mode: AnalysisMode | None = None
    include_email: bool = False

    @field_validator("end_date")
    @classmethod
    def validate_range(cls, v: date | None, info: ValidationInfo) -> date | None:
        start = info.data.get("start_date")
        if v is not None and start is not None and v < start:
            raise ValueError("end_date must not be before start_date")
        return v

    def to_activity_input(self) -> ActivityInput:
        return ActivityInput(
            commits=tuple(CommitRecord(c.message, c.author, c.date) for c in self.commits),
            pull_requests=tuple(
                PullRequestRecord(
                    number=pr.number,
                    title=pr.title,
                    body=pr.body,
                    state=pr.state,
                    created_at=pr.created_at,
                    merged_at=pr.merged_at,
                )
                for pr in self.pull_requests
            ),
            supplementary=tuple(
                SupplementaryContent(s.text, s.content_type) for s in self.supplementary
            ),
            additional_context=self.additional_context,
            start_date=self.start_date,
            end_date=self.end_date,
        )


class GenerateEmailRequest(BaseModel):
    achievements: list[str] = Field(..., max_length=MAX_ACHIEVEMENTS)
    start_date: date | None = None
    end_date: date | None = None


# =============================================================================
# RESPONSES
# =============================================================================


class AchievementOut(BaseModel):
    id: str
    text: str
    selected: bool
    source: str


class SummaryOut(BaseModel):
    features: list[str]
    fixes: list[str]
    refactors: list[str]
    highlights: list[str] | None = None
    notes: list[str] | None = None

    @classmethod
    def from_summary(cls, summary: WeeklySummary) -> SummaryOut:
        return cls(
            features=list(summary.features),
            fixes=list(summary.fixes),
            refactors=list(summary.refactors),
            highlights=list(summary.highlights) if summary.highlights is not None else None,
            notes=list(summary.notes) if summary.notes is not None else None,
        )


class ActivityOut(BaseModel):
    category: str
    impact_level: str
    business_description: str
    source_kind: str
    original_text: str
    decider: str

    @classmethod
    def from_activity(cls, activity: CategorizedActivity) -> ActivityOut:
        return cls(
            category=activity.category.value,
            impact_level=activity.impact_level.value,
            business_description=activity.business_description,
            source_kind=activity.source_kind.value,
            original_text=activity.original_text,
            decider=activity.decider.value,
        )


class MetadataOut(BaseModel):
    total_activities: int
    analysis_timestamp: datetime
    confidence_score: int


class AnalyzeResponse(BaseModel):
    mode: AnalysisMode
    achievements: list[AchievementOut]
    summary: SummaryOut | None = None
    activities: list[ActivityOut] | None = None
    metadata: MetadataOut | None = None
    email: str | None = None

    @classmethod
    def from_result(cls, result: AnalysisResult, email: str | None = None) -> AnalyzeResponse:
        response = cls(
            mode=result.mode,
            achievements=[
                AchievementOut(id=a.id, text=a.text, selected=a.selected, source=a.source)
                for a in result.achievements
            ],
            email=email,
        )
        if result.output is not None:
            output = result.output
            response.summary = SummaryOut.from_summary(output.weekly_summary)
            response.activities = [
                ActivityOut.from_activity(a) for a in output.categorized_activities
            ]
            response.metadata = MetadataOut(
                total_activities=output.metadata.total_activities,
                analysis_timestamp=output.metadata.analysis_timestamp,
                confidence_score=output.metadata.confidence_score,
            )
        return response


class GenerateEmailResponse(BaseModel):
    email: str


class EventOut(BaseModel):
    ts: datetime
    stage: str
    outcome: str
    message: str
    counts: dict[str, int]

    @classmethod
    def from_event(cls, event: PipelineEvent) -> EventOut:
        return cls(
            ts=event.ts,
            stage=event.stage,
            outcome=event.outcome.value,
            message=event.message,
            counts=dict(event.counts),
        )


class LogsResponse(BaseModel):
    logs: list[EventOut]
    stats: dict[str, Any]
