"""
Weekly update email rendering.

One model call turns a WeeklySummary into plain-text email prose. If that call
fails the email is rendered from a fixed template, so an email is always
produced.
"""

from __future__ import annotations

from collections.abc import Sequence

from updateq.classification.rules import (
    EMAIL_FEATURE_KEYWORDS,
    EMAIL_FIX_KEYWORDS,
    EMAIL_REFACTOR_KEYWORDS,
    HIGHLIGHT_MARKER,
)
from updateq.contracts.activity import WeeklySummary
from updateq.llm.errors import GenerationError
from updateq.llm.gateway import ModelGateway
from updateq.llm.prompts import PromptLoader, get_prompt_loader
from updateq.observability.logging import get_logger
from updateq.observability.telemetry import counter
from updateq.utils.text import contains_any

logger = get_logger(__name__)

EMAIL_TEMPLATE = """Subject: Weekly Update - {date_range}

Hi [Manager],

I wanted to share a quick update on my progress {date_range}:

{bullets}

Please let me know if you have any questions or need additional details.

Best regards,
[Your name]"""


def render_template_email(summary: WeeklySummary, date_range: str) -> str:
    """Deterministic email: one bullet per item from summary.all_items()."""
    bullets = "\n".join(f"• {item}" for item in summary.all_items())
    return EMAIL_TEMPLATE.format(date_range=date_range, bullets=bullets)


def summary_from_achievements(texts: Sequence[str]) -> WeeklySummary:
    """
    Rebuild a WeeklySummary from achievement lines by keyword.

    Every line lands in exactly one place, so the template email carries one
    bullet per line. Lines starting with the highlight marker are highlights;
    any other line goes to its first matching bucket (features, fixes,
    refactors) and unmatched lines are features.
    """
    features: list[str] = []
    fixes: list[str] = []
    refactors: list[str] = []
    highlights: list[str] = []

    for text in texts:
        if text.startswith(HIGHLIGHT_MARKER):
            highlights.append(text)
        elif contains_any(text, EMAIL_FEATURE_KEYWORDS):
            features.append(text)
        elif contains_any(text, EMAIL_FIX_KEYWORDS):
            fixes.append(text)
        elif contains_any(text, EMAIL_REFACTOR_KEYWORDS):
            refactors.append(text)
        else:
            features.append(text)

    return WeeklySummary(
        features=tuple(features),
        fixes=tuple(fixes),
        refactors=tuple(refactors),
        highlights=tuple(highlights) or None,
    )


class EmailComposer:
    def __init__(self, gateway: ModelGateway, prompts: PromptLoader | None = None):
        self.gateway = gateway
        self.prompts = prompts or get_prompt_loader()

    def generate_email(self, summary: WeeklySummary, date_range: str) -> str:
        prompt = self.prompts.email_prompt(
            date_range,
            summary.features,
            summary.fixes,
            summary.refactors,
            highlights=summary.highlights,
            notes=summary.notes,
        )
        try:
            email = self.gateway.generate(prompt, stage="email")
        except GenerationError as e:
            logger.warning("Email generation failed, rendering template: %s", e)
            counter("email.fallback")
            return render_template_email(summary, date_range)

        counter("email.gemini_hit")
        return email
