"""Pydantic models for API requests and responses."""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with second precision, e.g. 2026-10-19T10:23:00Z."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# Skills Feedback API Models
# =============================================================================


class Skill(BaseModel):
    """A named capability with a 1-5 self-rating."""

    name: str = Field(..., min_length=1, description="Skill name")
    rating: int | float = Field(..., description="Self-rating from 1 to 5, range-checked by validate_input")


class SkillsFeedbackRequest(BaseModel):
    """Request body for the skills feedback endpoint.

    Both fields accept any JSON value. Type and content checks belong to
    ``validate_input``, which reports them as ``success: false`` responses.
    """

    model_config = ConfigDict(populate_by_name=True)

    skills: Any = Field(default=None, description="Ordered list of {name, rating} objects")
    overall_comment: Any = Field(
        default=None,
        alias="overallComment",
        description="Free-text self-assessment comment",
    )


class FeedbackResult(BaseModel):
    """Feedback split into the three fixed categories."""

    model_config = ConfigDict(populate_by_name=True)

    top_strengths: str = Field(..., alias="topStrengths", description="Top strengths")
    practical_experience: str = Field(
        ..., alias="practicalExperience", description="Practical experience"
    )
    domain_knowledge: str = Field(..., alias="domainKnowledge", description="Domain knowledge")


class ApiResponse(BaseModel):
    """Outcome of a skills feedback request (validation and upstream failures included)."""

    success: bool = Field(..., description="Whether feedback was generated")
    feedback: FeedbackResult | None = Field(default=None, description="Generated feedback")
    error: str | None = Field(default=None, description="Error message on failure")


# =============================================================================
# Health / Error Models
# =============================================================================


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: Literal["OK"] = Field(default="OK", description="Service status")
    message: str = Field(..., description="Human-readable status message")
    timestamp: str = Field(default_factory=utc_timestamp, description="UTC timestamp")


class ErrorResponse(BaseModel):
    """Body returned with HTTP 500 on unexpected errors."""

    success: Literal[False] = False
    error: str = Field(default="Internal server error", description="Generic error message")
    timestamp: str = Field(default_factory=utc_timestamp, description="UTC timestamp")
