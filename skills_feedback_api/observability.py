"""Observability utilities: trace IDs, LLM metrics, and payload logging.

This module provides:
- Trace ID generation and propagation via context vars
- Prometheus metrics for LLM calls (tokens, latency, errors) and feedback parsing
- Structured logging helpers for LLM request/response correlation
"""

import secrets
import time
from contextvars import ContextVar
from dataclasses import dataclass

import structlog
from prometheus_client import Counter, Gauge, Histogram

logger = structlog.get_logger()

# =============================================================================
# Trace ID Context
# =============================================================================

trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")


def generate_trace_id() -> str:
    """Generate cryptographically secure trace ID for request tracking."""
    return secrets.token_hex(16)


def get_trace_id() -> str:
    """Get current trace ID from context, or empty string if not set."""
    return trace_id_ctx.get()


def set_trace_id(trace_id: str) -> None:
    """Set trace ID in context."""
    trace_id_ctx.set(trace_id)


# =============================================================================
# Prometheus Metrics
# =============================================================================

llm_requests_total = Counter(
    "llm_requests_total",
    "Total LLM API requests",
    ["model", "status"],
)

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total tokens used in LLM calls",
    ["model", "type"],  # values: prompt, completion, total
)

llm_latency_seconds = Histogram(
    "llm_latency_seconds",
    "LLM response latency in seconds",
    ["model"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)

llm_active_requests = Gauge(
    "llm_active_requests",
    "Currently active LLM requests",
    ["model"],
)

feedback_parse_strategy_total = Counter(
    "feedback_parse_strategy_total",
    "Feedback replies parsed, by fallback strategy",
    ["strategy"],  # values: labels, fragments, defaults
)

feedback_validation_failures_total = Counter(
    "feedback_validation_failures_total",
    "Skills feedback requests rejected by input validation",
)


def record_parse_strategy(strategy: str) -> None:
    """Count which parser strategy produced a result."""
    feedback_parse_strategy_total.labels(strategy=strategy).inc()
    if strategy != "labels":
        logger.warning("Feedback reply did not follow the labeled format", strategy=strategy)


def record_validation_failure(message: str) -> None:
    """Count and log a rejected request."""
    feedback_validation_failures_total.inc()
    logger.info("Skills feedback request rejected", reason=message)


# =============================================================================
# LLM Payload Logging
# =============================================================================


@dataclass
class LLMRequestLog:
    """Structured log data for LLM requests."""

    trace_id: str
    model: str
    system_prompt_chars: int
    prompt_chars: int
    skills_count: int
    timestamp: float = 0.0

    def __post_init__(self) -> None:
        if self.timestamp == 0.0:
            self.timestamp = time.time()


def log_llm_request(
    model: str,
    system_prompt: str,
    prompt: str,
    skills_count: int,
) -> LLMRequestLog:
    """Log an LLM request and start latency tracking.

    Returns LLMRequestLog for correlation with the response.
    """
    log_data = LLMRequestLog(
        trace_id=get_trace_id(),
        model=model,
        system_prompt_chars=len(system_prompt),
        prompt_chars=len(prompt),
        skills_count=skills_count,
    )

    logger.info(
        "llm_request",
        trace_id=log_data.trace_id,
        model=log_data.model,
        system_prompt_chars=log_data.system_prompt_chars,
        prompt_chars=log_data.prompt_chars,
        skills_count=log_data.skills_count,
    )

    llm_active_requests.labels(model=model).inc()
    return log_data


def log_llm_response(
    request_log: LLMRequestLog,
    tokens_prompt: int = 0,
    tokens_completion: int = 0,
    tokens_total: int = 0,
    finish_reason: str = "unknown",
    error: str | None = None,
) -> None:
    """Log an LLM response with metrics and correlation."""
    latency_ms = int((time.time() - request_log.timestamp) * 1000)

    if error:
        logger.error(
            "llm_response",
            trace_id=request_log.trace_id,
            model=request_log.model,
            latency_ms=latency_ms,
            error=error,
        )
        status = "error"
    else:
        logger.info(
            "llm_response",
            trace_id=request_log.trace_id,
            model=request_log.model,
            tokens_prompt=tokens_prompt,
            tokens_completion=tokens_completion,
            tokens_total=tokens_total,
            latency_ms=latency_ms,
            finish_reason=finish_reason,
        )
        status = "success"

    llm_active_requests.labels(model=request_log.model).dec()
    llm_requests_total.labels(model=request_log.model, status=status).inc()

    if tokens_total > 0:
        llm_tokens_total.labels(model=request_log.model, type="prompt").inc(tokens_prompt)
        llm_tokens_total.labels(model=request_log.model, type="completion").inc(tokens_completion)
        llm_tokens_total.labels(model=request_log.model, type="total").inc(tokens_total)

    llm_latency_seconds.labels(model=request_log.model).observe(latency_ms / 1000.0)
