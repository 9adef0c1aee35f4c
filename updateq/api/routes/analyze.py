"""Analysis and email endpoints.

Both are plain ``def`` handlers: FastAPI runs them in its threadpool, and the
shared RateLimiter serializes their model calls.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from updateq.agent.orchestrator import WeeklyUpdateAgent
from updateq.api.dependencies import get_agent
from updateq.api.models import (
    AnalyzeRequest,
    AnalyzeResponse,
    GenerateEmailRequest,
    GenerateEmailResponse,
)
from updateq.observability.logging import get_logger
from updateq.observability.telemetry import counter, log_event

router = APIRouter(prefix="/api", tags=["analyze"])
logger = get_logger(__name__)


@router.post("/analyze", response_model=AnalyzeResponse)
def analyze(
    request: AnalyzeRequest,
    agent: WeeklyUpdateAgent = Depends(get_agent),
) -> AnalyzeResponse:
    """Categorize already-fetched activity into achievements (and optionally an email)."""
    activity_input = request.to_activity_input()
    log_event(
        "api.analyze",
        commits=len(activity_input.commits),
        pull_requests=len(activity_input.pull_requests),
        supplementary=len(activity_input.supplementary),
        mode=request.mode.value if request.mode else "default",
    )
    counter("api.analyze.requests")

    if request.include_email:
        update = agent.build_update(activity_input, request.mode)
        return AnalyzeResponse.from_result(update.result, email=update.email)

    result = agent.analyze(activity_input, request.mode)
    return AnalyzeResponse.from_result(result)


@router.post("/generate-email", response_model=GenerateEmailResponse)
def generate_email(
    request: GenerateEmailRequest,
    agent: WeeklyUpdateAgent = Depends(get_agent),
) -> GenerateEmailResponse:
    """Render the update email from the achievement lines the user kept."""
    counter("api.generate_email.requests")
    texts = [t.strip() for t in request.achievements if t.strip()]
    email = agent.generate_email_from_achievements(texts, request.start_date, request.end_date)
    return GenerateEmailResponse(email=email)
