"""Input validation for skills feedback requests.

Checks run in a fixed order and stop at the first failure, so a request with
several problems always reports the same one.
"""

from dataclasses import dataclass
from typing import Any

INVALID_SKILLS_MESSAGE = "Invalid input. Please provide an array of skills."
MISSING_COMMENT_MESSAGE = "Please provide an overall comment about your skills."
INVALID_NAME_MESSAGE = "Each skill must have a valid name."
INVALID_RATING_MESSAGE = "Each skill must have a rating between 1 and 5."

MIN_RATING = 1
MAX_RATING = 5


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a request."""

    is_valid: bool
    message: str | None = None


def _is_number(value: Any) -> bool:
    # bool is an int subclass but not a rating
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_input(skills: Any, overall_comment: Any) -> ValidationResult:
    """Validate raw request data.

    Args:
        skills: Decoded ``skills`` value; must be a non-empty list of
            ``{"name": str, "rating": number}`` objects.
        overall_comment: Decoded ``overallComment`` value; must be a string
            that is non-empty after trimming.

    Returns:
        ``ValidationResult(is_valid=True)`` or a failed result carrying the
        message for the first check that did not pass.
    """
    if not isinstance(skills, list) or not skills:
        return ValidationResult(is_valid=False, message=INVALID_SKILLS_MESSAGE)

    if not isinstance(overall_comment, str) or not overall_comment.strip():
        return ValidationResult(is_valid=False, message=MISSING_COMMENT_MESSAGE)

    for skill in skills:
        if not isinstance(skill, dict):
            return ValidationResult(is_valid=False, message=INVALID_NAME_MESSAGE)

        name = skill.get("name")
        if not isinstance(name, str) or not name:
            return ValidationResult(is_valid=False, message=INVALID_NAME_MESSAGE)

        rating = skill.get("rating")
        if not _is_number(rating) or not MIN_RATING <= rating <= MAX_RATING:
            return ValidationResult(is_valid=False, message=INVALID_RATING_MESSAGE)

    return ValidationResult(is_valid=True)
