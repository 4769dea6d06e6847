"""Skills feedback generation: validate, prompt, complete, parse."""

from asyncio import CancelledError
from typing import Any

import structlog

from skills_feedback_api.feedback_parser import parse_feedback
from skills_feedback_api.mistral_client import MistralClient, MistralError
from skills_feedback_api.models import ApiResponse, FeedbackResult, Skill
from skills_feedback_api.observability import (
    log_llm_request,
    log_llm_response,
    record_parse_strategy,
    record_validation_failure,
)
from skills_feedback_api.prompt_builder import SYSTEM_PROMPT, build_prompt
from skills_feedback_api.validation import validate_input

logger = structlog.get_logger()

UPSTREAM_ERROR_MESSAGE = "Failed to generate feedback"
UNAVAILABLE_FEEDBACK = "Unable to generate feedback at this time."


def unavailable_feedback() -> FeedbackResult:
    """Feedback returned when the completion call fails: the same sentence in every field."""
    return FeedbackResult(
        top_strengths=UNAVAILABLE_FEEDBACK,
        practical_experience=UNAVAILABLE_FEEDBACK,
        domain_knowledge=UNAVAILABLE_FEEDBACK,
    )


class FeedbackGenerator:
    """Turns a skills self-assessment into three categories of feedback."""

    def __init__(self, client: MistralClient):
        self._client = client

    async def generate(self, skills: Any, overall_comment: Any) -> ApiResponse:
        """Generate feedback for raw request data.

        Validation failures and anything raised by the completion call are
        returned as ``success=False`` responses. Errors from the other stages
        propagate to the caller.
        """
        validation = validate_input(skills, overall_comment)
        if not validation.is_valid:
            record_validation_failure(validation.message)
            return ApiResponse(success=False, error=validation.message)

        parsed_skills = [Skill(name=s["name"], rating=s["rating"]) for s in skills]
        assessment = build_prompt(parsed_skills, overall_comment)

        logger.info(
            "Skills feedback request",
            skills_count=assessment.statistics.total,
            average_rating=assessment.statistics.average_rating,
        )

        request_log = log_llm_request(
            model=self._client.model,
            system_prompt=SYSTEM_PROMPT,
            prompt=assessment.prompt,
            skills_count=len(parsed_skills),
        )

        try:
            response = await self._client.complete(SYSTEM_PROMPT, assessment.prompt)
        except CancelledError:
            log_llm_response(request_log=request_log, error="cancelled_by_client")
            raise
        except Exception as e:
            log_llm_response(request_log=request_log, error=str(e) or type(e).__name__)
            if isinstance(e, MistralError):
                logger.error("Error generating feedback", error=str(e), error_type=type(e).__name__)
            else:
                logger.exception("Unexpected error during completion call")
            return ApiResponse(
                success=False,
                error=UPSTREAM_ERROR_MESSAGE,
                feedback=unavailable_feedback(),
            )

        log_llm_response(
            request_log=request_log,
            tokens_prompt=response.usage.prompt_tokens,
            tokens_completion=response.usage.completion_tokens,
            tokens_total=response.usage.total_tokens,
            finish_reason=response.finish_reason or "stop",
        )

        parsed = parse_feedback(response.content)
        record_parse_strategy(parsed.strategy)

        return ApiResponse(success=True, feedback=parsed.feedback)
