"""Recent pipeline events, served from the in-memory event buffer."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from updateq.api.dependencies import get_event_buffer
from updateq.api.models import EventOut, LogsResponse
from updateq.observability.events import BufferedEventSink, EventOutcome

router = APIRouter(prefix="/api", tags=["logs"])


@router.get("/logs", response_model=LogsResponse)
def get_logs(
    stage: str | None = None,
    outcome: EventOutcome | None = None,
    limit: int = Query(50, ge=0, le=500),
    buffer: BufferedEventSink = Depends(get_event_buffer),
) -> LogsResponse:
    """
    Filter by stage and/or outcome, then keep the newest `limit` events.
    A limit of 0 returns every buffered event.
    """
    events = buffer.get_events()
    if stage:
        events = [e for e in events if e.stage == stage]
    if outcome:
        events = [e for e in events if e.outcome == outcome]
    if limit > 0:
        events = events[-limit:]
    return LogsResponse(logs=[EventOut.from_event(e) for e in events], stats=buffer.stats())


@router.delete("/logs")
def clear_logs(buffer: BufferedEventSink = Depends(get_event_buffer)) -> dict[str, Any]:
    buffer.clear()
    return {"message": "Logs cleared successfully"}
