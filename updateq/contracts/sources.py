"""
Module: sources
Purpose: Inputs delivered by the external collaborators (source control and
supplementary content providers) and the Protocols they implement.

updateq never fetches anything itself. A caller (the API route, a script, a
test) gathers commits, pull requests and notes and hands them over as one
ActivityInput.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol

from updateq.contracts.activity import ContentType


@dataclass(frozen=True)
class CommitRecord:
    message: str
    author: str | None = None
    date: datetime | None = None


@dataclass(frozen=True)
class PullRequestRecord:
    number: int
    title: str
    body: str | None = None
    state: str = "open"
    created_at: datetime | None = None
    merged_at: datetime | None = None

    def to_text(self) -> str:
        """Render as "PR #<number>: <title>" plus " - <body>" when a body exists."""
        text = f"PR #{self.number}: {self.title}"
        if self.body and self.body.strip():
            text += f" - {self.body.strip()}"
        return text


@dataclass(frozen=True)
class SupplementaryContent:
    text: str
    content_type: ContentType = ContentType.PLAIN_TEXT


@dataclass(frozen=True)
class ActivityInput:
    commits: tuple[CommitRecord, ...] = ()
    pull_requests: tuple[PullRequestRecord, ...] = ()
    supplementary: tuple[SupplementaryContent, ...] = ()
    additional_context: str | None = None
    start_date: date | None = None
    end_date: date | None = None

    def has_supplementary_text(self) -> bool:
        if self.additional_context and self.additional_context.strip():
            return True
        return any(s.text.strip() for s in self.supplementary)

    def is_empty(self) -> bool:
        return not self.commits and not self.pull_requests and not self.has_supplementary_text()

    @classmethod
    def from_providers(
        cls,
        source_control: SourceControlProvider,
        start: date,
        end: date,
        content: SupplementaryContentProvider | None = None,
        additional_context: str | None = None,
    ) -> ActivityInput:
        """Gather one date range from the external providers."""
        return cls(
            commits=tuple(source_control.fetch_commits(start, end)),
            pull_requests=tuple(source_control.fetch_pull_requests(start, end)),
            supplementary=tuple(content.fetch_content()) if content else (),
            additional_context=additional_context,
            start_date=start,
            end_date=end,
        )


class SourceControlProvider(Protocol):
    """Delivers commits and pull requests already filtered to a date range."""

    def fetch_commits(self, start: date, end: date) -> list[CommitRecord]: ...

    def fetch_pull_requests(self, start: date, end: date) -> list[PullRequestRecord]: ...


class SupplementaryContentProvider(Protocol):
    """Delivers raw text blobs tagged with their declared content type."""

    def fetch_content(self) -> list[SupplementaryContent]: ...
