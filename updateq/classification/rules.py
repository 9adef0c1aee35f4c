"""
Keyword rule tables for every deterministic fallback.

Each purpose (activity category, impact level, highlight-worthiness, content
extraction) has exactly one table here; stages import from this module instead
of keeping their own keyword lists. All matching is lower-case substring.
"""

from __future__ import annotations

from updateq.contracts.activity import Category, ImpactLevel
from updateq.utils.text import contains_any

# Evaluated top to bottom; first match wins
CATEGORY_RULES: tuple[tuple[Category, tuple[str, ...]], ...] = (
    (Category.FEATURE, ("add", "implement", "create", "new", "feature", "enhance")),
    (Category.FIX, ("fix", "bug", "error", "issue", "resolve", "correct")),
    (Category.REFACTOR, ("refactor", "clean", "improve", "optimize", "restructure", "update")),
    (Category.DOCS, ("doc", "readme", "comment", "documentation")),
    (Category.TEST, ("test", "spec", "unit", "integration")),
    (Category.PERFORMANCE, ("performance", "speed", "cache", "memory")),
    (Category.SECURITY, ("security", "auth", "permission", "vulnerability")),
)
DEFAULT_CATEGORY = Category.CHORE

HIGH_IMPACT_KEYWORDS = ("major", "significant", "breaking", "critical", "important", "milestone")
HIGH_IMPACT_CATEGORIES = frozenset({Category.SECURITY, Category.PERFORMANCE})
MEDIUM_IMPACT_KEYWORDS = ("improve", "enhance", "optimize", "feature")
MEDIUM_IMPACT_CATEGORIES = frozenset({Category.FEATURE, Category.FIX})

HIGHLIGHT_KEYWORDS = (
    "major",
    "significant",
    "critical",
    "important",
    "milestone",
    "launch",
    "release",
    "performance",
    "security",
    "breaking",
)

ACHIEVEMENT_KEYWORDS = (
    "completed",
    "finished",
    "implemented",
    "created",
    "developed",
    "built",
    "delivered",
    "achieved",
    "accomplished",
    "solved",
)
INSIGHT_KEYWORDS = (
    "discovered",
    "found",
    "realized",
    "learned",
    "understood",
    "insight",
    "finding",
    "conclusion",
    "observation",
)
LEARNING_KEYWORDS = (
    "learned",
    "studied",
    "mastered",
    "acquired",
    "gained",
    "skill",
    "knowledge",
    "concept",
    "technique",
    "methodology",
)

# Keyword buckets used when rebuilding a summary from achievement lines
EMAIL_FEATURE_KEYWORDS = ("develop", "implement", "create", "enhance")
EMAIL_FIX_KEYWORDS = ("fix", "resolve", "correct", "debug")
EMAIL_REFACTOR_KEYWORDS = ("refactor", "improve", "optimize", "clean")
HIGHLIGHT_MARKER = "🌟"


def keyword_classify(text: str) -> Category:
    """Deterministic category from CATEGORY_RULES, defaulting to chore."""
    for category, keywords in CATEGORY_RULES:
        if contains_any(text, keywords):
            return category
    return DEFAULT_CATEGORY


def assess_impact(text: str, category: Category) -> ImpactLevel:
    if category in HIGH_IMPACT_CATEGORIES or contains_any(text, HIGH_IMPACT_KEYWORDS):
        return ImpactLevel.HIGH
    if category in MEDIUM_IMPACT_CATEGORIES or contains_any(text, MEDIUM_IMPACT_KEYWORDS):
        return ImpactLevel.MEDIUM
    return ImpactLevel.LOW


def is_highlight(text: str) -> bool:
    return contains_any(text, HIGHLIGHT_KEYWORDS)
