"""
Weekly update agent: activity -> categorized summary -> email text.

Pipeline (detailed mode):
    collect → classify → aggregate → highlights → notes → achievements

Pipeline (optimized mode):
    one comprehensive prompt → 5-12 achievement strings

Every stage owns a deterministic fallback, so a backend that always fails still
yields a non-empty result for non-empty input. Empty input short-circuits to a
single placeholder achievement before any model call. Only ConfigurationError
(raised while constructing the client or the agent) can escape.
"""

from __future__ import annotations

import time
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import UTC, date, datetime

from updateq.classification.classifier import ActivityClassifier
from updateq.classification.extractor import (
    ContentExtractor,
    clean_content,
    convert_to_achievements,
)
from updateq.config import (
    DEFAULT_ANALYSIS_MODE,
    NOTES_ACTIVITY_THRESHOLD,
    OPTIMIZED_MAX_ACHIEVEMENTS,
)
from updateq.contracts.activity import (
    Achievement,
    ActivityRecord,
    AnalysisMetadata,
    AnalysisMode,
    AnalysisOutput,
    AnalysisResult,
    AnalysisStats,
    CategorizedActivity,
    ContentType,
    Decider,
    ImpactLevel,
    SourceKind,
    WeeklySummary,
    WeeklyUpdate,
)
from updateq.contracts.sources import ActivityInput
from updateq.digest.aggregator import ActivityAggregator, build_weekly_summary
from updateq.digest.email_composer import EmailComposer, summary_from_achievements
from updateq.digest.highlights import HighlightExtractor
from updateq.infrastructure.rate_limiter import RateLimiter
from updateq.llm.client import GenerationClient
from updateq.llm.errors import ConfigurationError, GenerationError
from updateq.llm.gateway import ModelGateway
from updateq.llm.parsing import Malformed, parse_string_list
from updateq.llm.prompts import PromptLoader, get_prompt_loader
from updateq.observability.events import (
    EventOutcome,
    EventSink,
    LoggingEventSink,
    PipelineEvent,
)
from updateq.observability.logging import get_logger
from updateq.observability.telemetry import counter, log_event, time_block
from updateq.utils.text import format_date_range

logger = get_logger(__name__)

NO_DATA_ID = "no-data-found"
NO_DATA_TEXT = (
    "No code changes, pull requests, or additional notes were found within the "
    "specified timeframe ({start} to {end}). Consider expanding your date range "
    "or checking if there was any repository activity during this period."
)
NOTES_TEXT = (
    "Analyzed {count} activities across multiple sources including GitHub commits, "
    "pull requests, and documentation."
)
HIGHLIGHT_PREFIX = "🌟 "

SOURCE_WEIGHTS: dict[SourceKind, float] = {
    SourceKind.PULL_REQUEST: 0.8,
    SourceKind.NOTE: 0.7,
    SourceKind.COMMIT: 0.6,
    SourceKind.MANUAL: 0.5,
}


def calculate_confidence_score(activities: Sequence[CategorizedActivity]) -> int:
    """
    Diagnostic score in [0, 100]; nothing branches on it.

    min(10 * n, 60) + 10 per distinct source kind + 5 per high-impact
    activity + the per-source weight of every activity.
    """
    if not activities:
        return 0

    score = float(min(len(activities) * 10, 60))
    score += len({a.source_kind for a in activities}) * 10
    score += sum(5 for a in activities if a.impact_level is ImpactLevel.HIGH)
    score += sum(SOURCE_WEIGHTS.get(a.source_kind, 0.5) for a in activities)
    return max(0, min(round(score), 100))


def get_analysis_stats(output: AnalysisOutput) -> AnalysisStats:
    activities = output.categorized_activities
    return AnalysisStats(
        total_activities=len(activities),
        by_category=dict(Counter(a.category.value for a in activities)),
        by_source=dict(Counter(a.source_kind.value for a in activities)),
        by_impact=dict(Counter(a.impact_level.value for a in activities)),
    )


def _format_day(value: date | None) -> str:
    return value.isoformat() if value else "unspecified"


def _resolve_default_mode(value: AnalysisMode | str) -> AnalysisMode:
    try:
        return AnalysisMode(value)
    except ValueError as e:
        valid = ", ".join(m.value for m in AnalysisMode)
        raise ConfigurationError(
            f"Invalid analysis mode {value!r} (UPDATEQ_ANALYSIS_MODE); expected one of: {valid}"
        ) from e


class WeeklyUpdateAgent:
    """
    Composes classifier, aggregator, highlight and content extraction stages.

    All collaborators are injected; one RateLimiter should be shared by every
    agent in the process.

    Example:
        >>> agent = WeeklyUpdateAgent(GeminiClient(), RateLimiter(), BufferedEventSink())
        >>> update = agent.build_update(activity_input, AnalysisMode.DETAILED)
        >>> print(update.email)
    """

    def __init__(
        self,
        client: GenerationClient,
        rate_limiter: RateLimiter | None = None,
        sink: EventSink | None = None,
        prompts: PromptLoader | None = None,
        condense_groups: bool = False,
        clock: Callable[[], float] = time.time,
        default_mode: AnalysisMode | str | None = None,
    ):
        self.default_mode = _resolve_default_mode(default_mode or DEFAULT_ANALYSIS_MODE)
        self.rate_limiter = rate_limiter or RateLimiter()
        self.sink: EventSink = sink or LoggingEventSink()
        self.prompts = prompts or get_prompt_loader()
        self.gateway = ModelGateway(client, self.rate_limiter)
        self.classifier = ActivityClassifier(self.gateway, self.prompts)
        self.aggregator = ActivityAggregator(self.gateway, self.prompts)
        self.highlighter = HighlightExtractor(self.gateway, self.prompts)
        self.extractor = ContentExtractor(self.gateway, self.prompts)
        self.composer = EmailComposer(self.gateway, self.prompts)
        self.condense_groups = condense_groups
        self._clock = clock

    # ------------------------------------------------------------------
    # Events and ids
    # ------------------------------------------------------------------

    def _emit(
        self,
        stage: str,
        outcome: EventOutcome,
        message: str,
        **counts: int,
    ) -> None:
        self.sink.emit(PipelineEvent(stage=stage, outcome=outcome, message=message, counts=counts))

    def _run_stamp(self) -> int:
        return int(self._clock() * 1000)

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    def collect(self, activity_input: ActivityInput) -> list[ActivityRecord]:
        """
        Turn every source into ActivityRecords: commits, then pull requests,
        then supplementary notes, then additional context.

        Supplementary text goes through the content extractor, so this step
        can make model calls when notes are present.
        """
        records = [
            ActivityRecord(c.message.strip(), SourceKind.COMMIT)
            for c in activity_input.commits
            if c.message and c.message.strip()
        ]
        records.extend(
            ActivityRecord(pr.to_text(), SourceKind.PULL_REQUEST)
            for pr in activity_input.pull_requests
        )

        supplementary = [s for s in activity_input.supplementary if s.text.strip()]
        if supplementary:
            processed = self.extractor.process_many(supplementary)
            records.extend(
                ActivityRecord(line, SourceKind.NOTE) for line in convert_to_achievements(processed)
            )

        context = (activity_input.additional_context or "").strip()
        if context:
            processed = self.extractor.process_content(context, ContentType.PLAIN_TEXT)
            records.extend(
                ActivityRecord(line, SourceKind.MANUAL) for line in convert_to_achievements(processed)
            )

        by_source = Counter(r.source_kind.value for r in records)
        self._emit(
            "collect",
            EventOutcome.INFO,
            f"Collected {len(records)} activities",
            total=len(records),
            **by_source,
        )
        return records

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze(
        self,
        activity_input: ActivityInput,
        mode: AnalysisMode | str | None = None,
    ) -> AnalysisResult:
        """Run one analysis request. Never raises for generation failures."""
        mode = AnalysisMode(mode) if mode else self.default_mode

        if activity_input.is_empty():
            counter("agent.no_data")
            self._emit("analysis", EventOutcome.WARNING, "No activity found in the requested range")
            return self.no_data_result(activity_input, mode)

        self._emit("analysis", EventOutcome.INFO, f"Starting {mode.value} analysis")
        stats = self.rate_limiter.get_usage_stats()
        logger.info(
            "Rate limiter: %d/%d calls used, %d remaining", stats.current, stats.max, stats.remaining
        )

        try:
            with time_block(f"agent.{mode.value}.latency"):
                if mode is AnalysisMode.DETAILED:
                    result = self._analyze_detailed(activity_input)
                else:
                    result = self._analyze_optimized(activity_input)
        except Exception as e:
            # Last line of defence: stage fallbacks already handle GenerationError
            logger.exception("Analysis failed unexpectedly, using basic achievements")
            counter("agent.unexpected_error")
            self._emit("analysis", EventOutcome.ERROR, f"Analysis failed: {type(e).__name__}")
            return AnalysisResult(self.basic_fallback_achievements(activity_input), mode)

        self._emit(
            "analysis",
            EventOutcome.SUCCESS,
            f"Analysis complete with {len(result.achievements)} achievements",
            achievements=len(result.achievements),
        )
        return result

    def no_data_result(self, activity_input: ActivityInput, mode: AnalysisMode) -> AnalysisResult:
        text = NO_DATA_TEXT.format(
            start=_format_day(activity_input.start_date),
            end=_format_day(activity_input.end_date),
        )
        return AnalysisResult((Achievement(NO_DATA_ID, text, True, "system"),), mode)

    def classify_records(self, records: Sequence[ActivityRecord]) -> list[CategorizedActivity]:
        """Classify records in order, batching consecutive records of one source kind."""
        activities: list[CategorizedActivity] = []
        batch: list[str] = []
        batch_kind: SourceKind | None = None
        for record in records:
            if batch_kind is not None and record.source_kind is not batch_kind:
                activities.extend(self.classifier.classify_batch(batch, batch_kind))
                batch = []
            batch_kind = record.source_kind
            batch.append(record.text)
        if batch and batch_kind is not None:
            activities.extend(self.classifier.classify_batch(batch, batch_kind))
        return activities

    def _analyze_detailed(self, activity_input: ActivityInput) -> AnalysisResult:
        records = self.collect(activity_input)
        if not records:
            self._emit("collect", EventOutcome.WARNING, "Sources produced no activities")
            return AnalysisResult(
                self.basic_fallback_achievements(activity_input), AnalysisMode.DETAILED
            )

        activities = self.classify_records(records)
        self._emit(
            "classify",
            EventOutcome.SUCCESS,
            f"Classified {len(activities)} activities",
            total=len(activities),
            fallback=sum(1 for a in activities if a.decider is Decider.FALLBACK),
        )

        if self.condense_groups:
            summary = self.aggregator.condensed_summary(activities)
        else:
            summary = build_weekly_summary(activities)

        highlights = self.highlighter.extract_highlights([a.original_text for a in activities])
        if highlights:
            summary = replace(summary, highlights=tuple(highlights))
        self._emit(
            "highlights", EventOutcome.INFO, f"Selected {len(highlights)} highlights", total=len(highlights)
        )

        if len(activities) > NOTES_ACTIVITY_THRESHOLD:
            notes = (*(summary.notes or ()), NOTES_TEXT.format(count=len(activities)))
            summary = replace(summary, notes=notes)

        output = AnalysisOutput(
            weekly_summary=summary,
            categorized_activities=tuple(activities),
            metadata=AnalysisMetadata(
                total_activities=len(activities),
                analysis_timestamp=datetime.now(UTC),
                confidence_score=calculate_confidence_score(activities),
            ),
        )
        achievements = self.summary_to_achievements(summary)
        log_event(
            "agent.detailed",
            activities=len(activities),
            achievements=len(achievements),
            confidence=output.metadata.confidence_score,
        )
        return AnalysisResult(achievements, AnalysisMode.DETAILED, output)

    def _analyze_optimized(self, activity_input: ActivityInput) -> AnalysisResult:
        commits = [c.message.strip() for c in activity_input.commits if c.message.strip()]
        pull_requests = [pr.to_text() for pr in activity_input.pull_requests]
        supplementary = "\n\n".join(
            clean_content(s.text, s.content_type)
            for s in activity_input.supplementary
            if s.text.strip()
        )
        prompt = self.prompts.comprehensive_prompt(
            commits,
            pull_requests,
            supplementary=supplementary or None,
            additional_context=activity_input.additional_context,
        )

        try:
            raw = self.gateway.generate(prompt, stage="optimized")
        except GenerationError as e:
            logger.warning("Optimized analysis failed, using basic achievements: %s", e)
            counter("agent.optimized.fallback")
            self._emit("optimized", EventOutcome.WARNING, "Model call failed, using basic achievements")
            return AnalysisResult(
                self.basic_fallback_achievements(activity_input), AnalysisMode.OPTIMIZED
            )

        parsed = parse_string_list(raw, max_items=OPTIMIZED_MAX_ACHIEVEMENTS)
        if isinstance(parsed, Malformed) or not parsed.value:
            reason = parsed.reason if isinstance(parsed, Malformed) else "empty list"
            logger.warning("Optimized analysis payload unusable (%s)", reason)
            counter("agent.optimized.malformed")
            self._emit("optimized", EventOutcome.WARNING, f"Unusable model output: {reason}")
            return AnalysisResult(
                self.basic_fallback_achievements(activity_input), AnalysisMode.OPTIMIZED
            )

        stamp = self._run_stamp()
        achievements = tuple(
            Achievement(f"ai-optimized-{stamp}-{i}", text) for i, text in enumerate(parsed.value)
        )
        counter("agent.optimized.gemini_hit")
        self._emit(
            "optimized",
            EventOutcome.SUCCESS,
            f"Parsed {len(achievements)} achievements",
            total=len(achievements),
        )
        return AnalysisResult(achievements, AnalysisMode.OPTIMIZED)

    def basic_fallback_achievements(self, activity_input: ActivityInput) -> tuple[Achievement, ...]:
        """Counted achievements needing no model call; never empty."""
        stamp = self._run_stamp()
        texts: list[str] = []
        if activity_input.commits:
            texts.append(
                f"Completed {len(activity_input.commits)} code commits "
                "with various improvements and updates."
            )
        if activity_input.pull_requests:
            texts.append(
                f"Submitted {len(activity_input.pull_requests)} pull request(s) "
                "for code review and integration."
            )
        if activity_input.has_supplementary_text():
            texts.append(
                "Documented research findings and additional project context for team reference."
            )
        if not texts:
            texts.append("Maintained ongoing development work and project documentation.")
        return tuple(Achievement(f"basic-{stamp}-{i}", text) for i, text in enumerate(texts))

    def summary_to_achievements(self, summary: WeeklySummary) -> tuple[Achievement, ...]:
        """Features, fixes, refactors, highlights (marked), then notes."""
        stamp = self._run_stamp()
        labelled: list[tuple[str, str]] = [
            *(("feature", text) for text in summary.features),
            *(("fix", text) for text in summary.fixes),
            *(("refactor", text) for text in summary.refactors),
            *(("highlight", HIGHLIGHT_PREFIX + text) for text in summary.highlights or ()),
            *(("note", text) for text in summary.notes or ()),
        ]
        return tuple(
            Achievement(f"ai-{kind}-{stamp}-{i}", text) for i, (kind, text) in enumerate(labelled)
        )

    # ------------------------------------------------------------------
    # Email
    # ------------------------------------------------------------------

    def generate_email(self, summary: WeeklySummary, date_range: str) -> str:
        email = self.composer.generate_email(summary, date_range)
        self._emit("email", EventOutcome.SUCCESS, "Email content generated")
        return email

    def generate_email_from_achievements(
        self,
        texts: Sequence[str],
        start: date | str | None = None,
        end: date | str | None = None,
    ) -> str:
        summary = summary_from_achievements(texts)
        return self.generate_email(summary, format_date_range(start, end))

    def build_update(
        self,
        activity_input: ActivityInput,
        mode: AnalysisMode | str | None = None,
    ) -> WeeklyUpdate:
        """
        Analyze, then render the email.

        Empty input gets the placeholder result and no email (no model calls).
        """
        date_range = format_date_range(activity_input.start_date, activity_input.end_date)
        result = self.analyze(activity_input, mode)
        if activity_input.is_empty():
            return WeeklyUpdate(email=None, result=result, date_range=date_range)

        if result.output is not None:
            summary = result.output.weekly_summary
        else:
            summary = summary_from_achievements(result.texts)
        return WeeklyUpdate(
            email=self.generate_email(summary, date_range),
            result=result,
            date_range=date_range,
        )
