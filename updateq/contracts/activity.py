"""
Module: activity
Purpose: Domain types flowing through the weekly-update pipeline.
Dependencies: none (leaf module)

Stable import boundary: classification, digest, agent and api all import from
here, so this module imports nothing from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Category(str, Enum):
    """Closed activity taxonomy."""

    FEATURE = "feature"
    FIX = "fix"
    REFACTOR = "refactor"
    DOCS = "docs"
    TEST = "test"
    CHORE = "chore"
    PERFORMANCE = "performance"
    SECURITY = "security"

    @classmethod
    def from_label(cls, label: str | None) -> Category | None:
        """Map a free-text label to a member, or None when it is outside the taxonomy."""
        if not label:
            return None
        try:
            return cls(label.strip().lower())
        except ValueError:
            return None


class ImpactLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SourceKind(str, Enum):
    COMMIT = "commit"
    PULL_REQUEST = "pull_request"
    NOTE = "note"
    MANUAL = "manual"


class ContentType(str, Enum):
    """Declared format of a supplementary text blob."""

    STRUCTURED_NOTES = "structured_notes"
    LIGHTWEIGHT_MARKUP = "lightweight_markup"
    PLAIN_TEXT = "plain_text"


class AnalysisMode(str, Enum):
    DETAILED = "detailed"  # classify + aggregate + highlights, many calls
    OPTIMIZED = "optimized"  # one comprehensive call


class Decider(str, Enum):
    """Which path produced a category."""

    GEMINI = "gemini"
    FALLBACK = "fallback"


# ---------------------------------------------------------------------------
# Per-activity records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActivityRecord:
    """One unit of developer work, created at pipeline entry and never mutated."""

    text: str
    source_kind: SourceKind


@dataclass(frozen=True)
class CategorizedActivity:
    category: Category
    impact_level: ImpactLevel
    business_description: str
    source_kind: SourceKind
    original_text: str
    decider: Decider = Decider.FALLBACK


# ---------------------------------------------------------------------------
# Summary and achievements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WeeklySummary:
    """
    Externally consumed summary of one analysis run.

    Every CategorizedActivity lands in exactly one of features/fixes/refactors.
    highlights and notes are derived independently and may repeat bucket items.
    """

    features: tuple[str, ...] = ()
    fixes: tuple[str, ...] = ()
    refactors: tuple[str, ...] = ()
    highlights: tuple[str, ...] | None = None
    notes: tuple[str, ...] | None = None

    def all_items(self) -> list[str]:
        """Buckets, then highlights, then notes, flattened in that order."""
        items = [*self.features, *self.fixes, *self.refactors]
        items.extend(self.highlights or ())
        items.extend(self.notes or ())
        return items

    def is_empty(self) -> bool:
        return not self.all_items()


@dataclass(frozen=True)
class Achievement:
    """A single line offered to the user for the update email."""

    id: str
    text: str
    selected: bool = True
    source: str = "github"  # "github" | "manual" | "system"


@dataclass(frozen=True)
class AnalysisMetadata:
    total_activities: int
    analysis_timestamp: datetime
    confidence_score: int


@dataclass(frozen=True)
class AnalysisOutput:
    weekly_summary: WeeklySummary
    categorized_activities: tuple[CategorizedActivity, ...]
    metadata: AnalysisMetadata


@dataclass(frozen=True)
class AnalysisStats:
    total_activities: int
    by_category: dict[str, int] = field(default_factory=dict)
    by_source: dict[str, int] = field(default_factory=dict)
    by_impact: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class AnalysisResult:
    """
    What the agent hands back for one request.

    output is None in optimized mode and for empty input; achievements is
    always non-empty.
    """

    achievements: tuple[Achievement, ...]
    mode: AnalysisMode
    output: AnalysisOutput | None = None

    @property
    def texts(self) -> list[str]:
        return [a.text for a in self.achievements]


@dataclass(frozen=True)
class WeeklyUpdate:
    """Email text plus the summary it was rendered from."""

    email: str | None
    result: AnalysisResult
    date_range: str
