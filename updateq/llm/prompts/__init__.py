"""
Prompt Management Module

Loads the generation prompts from the .txt files in this directory and fills
them with str.format. Values are sanitized before insertion; the templates are
the only place literal braces could appear, so JSON examples in a template
must double them.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from pathlib import Path

from updateq.infrastructure.settings import PROMPTS_DIR

# Phrasings that try to take over the prompt from inside user text
INJECTION_PATTERNS = [
    r"(ignore|disregard|forget)\s+(all\s+)?(previous|above|prior)\s+(instructions?|prompts?)",
    r"new\s+instructions?:",
    r"\b(system|assistant|user)\s*:",
    r"\[INST\]",
    r"\[/INST\]",
    r"<\|im_start\|>",
    r"<\|im_end\|>",
]
INJECTION_REGEX = re.compile("|".join(INJECTION_PATTERNS), re.IGNORECASE)

MAX_ACTIVITY_CHARS = 1000
MAX_CONTENT_CHARS = 20000


def sanitize(text: str | None, max_length: int = MAX_ACTIVITY_CHARS) -> str:
    """Neutralize common prompt-injection phrasing and truncate."""
    if not text:
        return ""
    text = INJECTION_REGEX.sub("[REDACTED]", text)
    return text[:max_length]


def numbered(items: Sequence[str]) -> str:
    """Render items as a 1-based numbered list."""
    return "\n".join(f"{i}. {sanitize(item)}" for i, item in enumerate(items, start=1))


def bulleted(items: Sequence[str], empty_text: str) -> str:
    if not items:
        return empty_text
    return "\n".join(f"- {sanitize(item)}" for item in items)


def json_list(items: Sequence[str] | None) -> str:
    return json.dumps([sanitize(item) for item in items or []], ensure_ascii=False)


class PromptLoader:
    """Load and cache prompt templates from files"""

    def __init__(self, prompts_dir: Path = PROMPTS_DIR):
        self.prompts_dir = prompts_dir
        self._cache: dict[str, str] = {}

    def load_prompt(self, prompt_name: str) -> str:
        """
        Load a prompt template from file.

        Args:
            prompt_name: Name of the prompt file (without .txt extension)

        Returns:
            Prompt template string

        Raises:
            FileNotFoundError: If no template with that name exists
        """
        if prompt_name not in self._cache:
            prompt_path = self.prompts_dir / f"{prompt_name}.txt"

            if not prompt_path.exists():
                raise FileNotFoundError(f"Prompt file not found: {prompt_path}")

            with open(prompt_path, encoding="utf-8") as f:
                self._cache[prompt_name] = f.read()

        return self._cache[prompt_name]

    def render(self, prompt_name: str, **kwargs: str) -> str:
        return self.load_prompt(prompt_name).format(**kwargs)

    def classification_prompt(self, activity: str) -> str:
        return self.render("classify", activity=sanitize(activity))

    def summarization_prompt(self, activities: Sequence[str], category: str) -> str:
        return self.render(
            "summarize_group", category=category, activities=numbered(activities)
        )

    def highlights_prompt(self, activities: Sequence[str]) -> str:
        return self.render("highlights", activities=numbered(activities))

    def extraction_prompt(self, kind: str, content: str) -> str:
        """
        Args:
            kind: "achievements", "insights" or "learnings"
            content: Cleaned supplementary text
        """
        return self.render(
            f"extract_{kind}", content=sanitize(content, max_length=MAX_CONTENT_CHARS)
        )

    def email_prompt(
        self,
        date_range: str,
        features: Sequence[str],
        fixes: Sequence[str],
        refactors: Sequence[str],
        highlights: Sequence[str] | None = None,
        notes: Sequence[str] | None = None,
    ) -> str:
        optional = ""
        if highlights:
            optional += f"Highlights: {json_list(highlights)}\n"
        if notes:
            optional += f"Notes: {json_list(notes)}\n"
        return self.render(
            "weekly_email",
            date_range=date_range,
            features=json_list(features),
            fixes=json_list(fixes),
            refactors=json_list(refactors),
            optional_sections=optional,
        )

    def comprehensive_prompt(
        self,
        commits: Sequence[str],
        pull_requests: Sequence[str],
        supplementary: str | None = None,
        additional_context: str | None = None,
    ) -> str:
        sections = ""
        if supplementary:
            sections += (
                "\n=== RESEARCH & DOCUMENTATION ===\n"
                f"{sanitize(supplementary, max_length=MAX_CONTENT_CHARS)}\n"
            )
        if additional_context:
            sections += (
                "\n=== ADDITIONAL CONTEXT ===\n"
                f"{sanitize(additional_context, max_length=MAX_CONTENT_CHARS)}\n"
            )
        return self.render(
            "comprehensive_analysis",
            commits=bulleted(commits, "No commits found"),
            pull_requests=bulleted(pull_requests, "No pull requests found"),
            supplementary_sections=sections,
        )


# Global instance
_loader = PromptLoader()


def get_prompt_loader() -> PromptLoader:
    return _loader

