"""FastAPI server for updateq weekly updates"""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from updateq.api.routes.analyze import router as analyze_router
from updateq.api.routes.health import router as health_router
from updateq.api.routes.logs import router as logs_router
from updateq.config import APP_VERSION, LOG_LEVEL
from updateq.infrastructure.env import ConfigurationError
from updateq.infrastructure.settings import is_development
from updateq.observability.logging import configure_logging, get_logger
from updateq.observability.telemetry import counter, log_event

# Load environment variables from .env file
load_dotenv()
configure_logging(LOG_LEVEL)

app = FastAPI(title="updateq API", version=APP_VERSION)

logger = get_logger(__name__)


# Custom validation error handler to prevent information leakage
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Custom validation error handler that prevents leaking internal validation logic.

    Side Effects:
        - Logs detailed validation errors for debugging (path only)
        - Increments validation error counter for monitoring
    """
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    counter("api.validation_errors")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Invalid request format. Please check your request and try again.",
            "error_count": len(exc.errors()),
            # Only expose field names, not validation logic
            "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
        },
    )


@app.exception_handler(ConfigurationError)
async def configuration_exception_handler(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    """Missing credentials: the pipeline cannot run at all, so report 503."""
    logger.critical("Configuration error on %s: %s", request.url.path, exc)
    counter("api.configuration_errors")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Generation service is not configured."},
    )


# CORS - the web UI is served from a separate origin
ALLOWED_ORIGINS = [o for o in os.getenv("UPDATEQ_ALLOWED_ORIGINS", "").split(",") if o]

# Allow localhost in development only
if is_development():
    ALLOWED_ORIGINS.extend(
        [
            "http://localhost:3000",
            "http://localhost:8000",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:8000",
        ]
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)

# Include routers
app.include_router(health_router)
app.include_router(analyze_router)
app.include_router(logs_router)

log_event("api.startup", service="updateq", version=APP_VERSION)


@app.get("/")
def root() -> dict[str, Any]:
    return {
        "service": "updateq API",
        "version": APP_VERSION,
        "status": "running",
        "endpoints": {
            "health": "/health",
            "analyze": "/api/analyze",
            "generate_email": "/api/generate-email",
            "logs": "/api/logs",
        },
    }
