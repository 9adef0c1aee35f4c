"""
Type Contracts for updateq

Dataclasses and Protocols shared by classification/, digest/, agent/ and api/.
Contracts import nothing from those packages, so any of them can depend on
contracts without creating a cycle.

Re-exports for convenience:
"""

from updateq.contracts.activity import (
    Achievement,
    ActivityRecord,
    AnalysisMetadata,
    AnalysisMode,
    AnalysisOutput,
    AnalysisResult,
    AnalysisStats,
    CategorizedActivity,
    Category,
    ContentType,
    Decider,
    ImpactLevel,
    SourceKind,
    WeeklySummary,
    WeeklyUpdate,
)
from updateq.contracts.sources import (
    ActivityInput,
    CommitRecord,
    PullRequestRecord,
    SourceControlProvider,
    SupplementaryContent,
    SupplementaryContentProvider,
)

__all__ = [
    "Achievement",
    "ActivityInput",
    "ActivityRecord",
    "AnalysisMetadata",
    "AnalysisMode",
    "AnalysisOutput",
    "AnalysisResult",
    "AnalysisStats",
    "CategorizedActivity",
    "Category",
    "CommitRecord",
    "ContentType",
    "Decider",
    "ImpactLevel",
    "PullRequestRecord",
    "SourceControlProvider",
    "SourceKind",
    "SupplementaryContent",
    "SupplementaryContentProvider",
    "WeeklySummary",
    "WeeklyUpdate",
]
