"""
Pipeline event sinks for updateq

Pipeline stages never print or log progress directly. They emit a PipelineEvent
(stage name, outcome, message, counts) to whichever EventSink was injected into
the agent, and the sink decides how to surface it.

Sinks:
- LoggingEventSink: one-line JSON through stdlib logging
- BufferedEventSink: last N events in memory (served by GET /api/logs)
- FanoutEventSink: forwards each event to several sinks

Usage:
    from updateq.observability.events import BufferedEventSink, PipelineEvent

    sink = BufferedEventSink()
    sink.emit(PipelineEvent(stage="classify", outcome=EventOutcome.SUCCESS,
                            message="Classified 4 activities", counts={"total": 4}))

Output (LoggingEventSink):
    {"ts":"2026-01-12T09:15:02.113Z","level":"INFO","stage":"classify","outcome":"success","message":"Classified 4 activities","counts":{"total":4}}
"""

from __future__ import annotations

import json
import logging
import threading
from collections import Counter, deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger("updateq.events")

DEFAULT_BUFFER_SIZE = 50


class EventOutcome(str, Enum):
    """Outcome of one pipeline step"""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


# Outcome severity mapping
OUTCOME_SEVERITY = {
    EventOutcome.INFO: logging.INFO,
    EventOutcome.SUCCESS: logging.INFO,
    EventOutcome.WARNING: logging.WARNING,
    EventOutcome.ERROR: logging.ERROR,
}


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class PipelineEvent:
    """One structured observation emitted by a pipeline stage."""

    stage: str
    outcome: EventOutcome
    message: str
    counts: dict[str, int] = field(default_factory=dict)
    ts: datetime = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ts": self.ts.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "stage": self.stage,
            "outcome": self.outcome.value,
            "message": self.message,
            "counts": dict(self.counts),
        }


class EventSink(Protocol):
    """Anything that accepts pipeline events."""

    def emit(self, event: PipelineEvent) -> None: ...


class SafeJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles common non-serializable types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


class LoggingEventSink:
    """Writes each event as one compact JSON line at the outcome's severity."""

    def __init__(self, target: logging.Logger | None = None):
        self._logger = target or logger

    def emit(self, event: PipelineEvent) -> None:
        level = OUTCOME_SEVERITY.get(event.outcome, logging.INFO)
        payload = {"level": logging.getLevelName(level), **event.to_dict()}
        # Keep "ts" first so lines sort chronologically when grepped
        payload = {"ts": payload.pop("ts"), **payload}
        self._logger.log(
            level, json.dumps(payload, cls=SafeJSONEncoder, separators=(",", ":"))
        )


class BufferedEventSink:
    """
    Bounded in-memory history of recent events.

    Oldest events are dropped once max_events is reached. Reads return copies so
    callers can iterate while request threads keep emitting.
    """

    def __init__(self, max_events: int = DEFAULT_BUFFER_SIZE):
        if max_events <= 0:
            raise ValueError("max_events must be positive")
        self._events: deque[PipelineEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()
        self.max_events = max_events

    def emit(self, event: PipelineEvent) -> None:
        with self._lock:
            self._events.append(event)

    def get_events(self) -> list[PipelineEvent]:
        with self._lock:
            return list(self._events)

    def by_outcome(self, outcome: EventOutcome) -> list[PipelineEvent]:
        return [e for e in self.get_events() if e.outcome == outcome]

    def by_stage(self, stage: str) -> list[PipelineEvent]:
        return [e for e in self.get_events() if e.stage == stage]

    def recent(self, count: int = 10) -> list[PipelineEvent]:
        if count <= 0:
            return []
        return self.get_events()[-count:]

    def stats(self) -> dict[str, Any]:
        events = self.get_events()
        by_outcome = Counter(e.outcome.value for e in events)
        return {
            "total": len(events),
            "by_outcome": {o.value: by_outcome.get(o.value, 0) for o in EventOutcome},
            "stages": sorted({e.stage for e in events}),
        }

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


class FanoutEventSink:
    """Forwards every event to each wrapped sink, in order."""

    def __init__(self, sinks: Iterable[EventSink]):
        self._sinks = list(sinks)

    def emit(self, event: PipelineEvent) -> None:
        for sink in self._sinks:
            sink.emit(event)


class NullEventSink:
    """Discards events."""

    def emit(self, event: PipelineEvent) -> None:
        return None
