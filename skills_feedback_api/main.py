"""FastAPI application entrypoint for the Skills Feedback API."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from skills_feedback_api import __version__
from skills_feedback_api.config import get_settings
from skills_feedback_api.feedback_generator import FeedbackGenerator
from skills_feedback_api.mistral_client import close_mistral_client, get_mistral_client
from skills_feedback_api.models import (
    ApiResponse,
    ErrorResponse,
    HealthResponse,
    SkillsFeedbackRequest,
)
from skills_feedback_api.observability import generate_trace_id, set_trace_id

settings = get_settings()

logging.basicConfig(format="%(message)s", level=settings.log_level)

# Configure structlog
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Skills Feedback API", version=__version__, port=settings.port)

    try:
        await get_mistral_client()
        logger.info("Mistral client initialized")
    except Exception as e:
        logger.warning("Failed to initialize Mistral client", error=str(e))

    yield

    logger.info("Shutting down Skills Feedback API")
    await close_mistral_client()


app = FastAPI(
    title="Skills Feedback API",
    description="LLM-generated feedback on skills self-assessments",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def trace_id_middleware(request: Request, call_next):
    """Add trace ID to every request for log correlation."""
    trace_id = request.headers.get("X-Trace-ID", generate_trace_id())
    set_trace_id(trace_id)

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(trace_id=trace_id)

    response = await call_next(request)

    response.headers["X-Trace-ID"] = trace_id
    return response


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Unparseable bodies are internal errors, not 422s."""
    logger.error("Malformed request body", path=request.url.path, errors=str(exc.errors()))
    return JSONResponse(status_code=500, content=ErrorResponse().model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Any uncaught error gets the generic 500 body."""
    logger.error(
        "Unhandled error",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=500, content=ErrorResponse().model_dump())


Instrumentator().instrument(app).expose(app)


async def get_feedback_generator() -> FeedbackGenerator:
    """Dependency providing a generator bound to the shared Mistral client."""
    return FeedbackGenerator(await get_mistral_client())


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report that the API is up."""
    return HealthResponse(message="Skills Feedback API is running")


# =============================================================================
# Feedback Endpoints
# =============================================================================


@app.post("/skills-feedback", response_model=ApiResponse, response_model_exclude_none=True)
async def skills_feedback(
    feedback_request: SkillsFeedbackRequest,
    generator: FeedbackGenerator = Depends(get_feedback_generator),
):
    """
    Generate feedback on a skills self-assessment.

    - **skills**: List of `{name, rating}` objects, ratings 1-5
    - **overallComment**: Free-text self-assessment

    Validation and upstream failures return HTTP 200 with `success: false`.
    """
    try:
        return await generator.generate(feedback_request.skills, feedback_request.overall_comment)
    except Exception:
        logger.exception("Unhandled error in skills feedback")
        return JSONResponse(status_code=500, content=ErrorResponse().model_dump())


# =============================================================================
# Entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "skills_feedback_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )
