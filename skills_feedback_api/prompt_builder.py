"""Prompt construction for skills self-assessment feedback."""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from skills_feedback_api.models import Skill

SYSTEM_PROMPT = (
    "You are an expert career coach. Provide concise feedback in exactly 3 categories. "
    "Return plain text without any markdown formatting."
)

HIGH_RATING_THRESHOLD = 4
LOW_RATING_THRESHOLD = 2


@dataclass(frozen=True)
class SkillStatistics:
    """Summary statistics embedded in the prompt."""

    total: int
    average_rating: str  # one decimal place, e.g. "4.0"
    high_performing: int
    needing_development: int


@dataclass(frozen=True)
class AssessmentPrompt:
    """A rendered prompt together with the statistics it was built from."""

    prompt: str
    statistics: SkillStatistics


def format_rating(rating: int | float) -> str:
    """Render a rating without a trailing ``.0`` for whole numbers."""
    if isinstance(rating, float) and rating.is_integer():
        return str(int(rating))
    return str(rating)


def format_skills(skills: Sequence[Skill]) -> str:
    """Render skills as a numbered list, one per line."""
    return "\n".join(
        f"{index}. {skill.name} - Rating: {format_rating(skill.rating)}/5"
        for index, skill in enumerate(skills, start=1)
    )


def format_average(average: float) -> str:
    """Format to one decimal place, rounding halves up (4.25 -> "4.3")."""
    return str(Decimal(average).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def compute_statistics(skills: Sequence[Skill]) -> SkillStatistics:
    """Compute average rating and high/low rating counts."""
    ratings = [skill.rating for skill in skills]
    average = sum(ratings) / len(ratings)
    return SkillStatistics(
        total=len(ratings),
        average_rating=format_average(average),
        high_performing=sum(1 for r in ratings if r >= HIGH_RATING_THRESHOLD),
        needing_development=sum(1 for r in ratings if r <= LOW_RATING_THRESHOLD),
    )


def build_prompt(skills: Sequence[Skill], overall_comment: str) -> AssessmentPrompt:
    """Build the user prompt for a validated assessment.

    The output depends only on the arguments, so identical assessments always
    produce identical prompts.
    """
    skills_text = format_skills(skills)
    stats = compute_statistics(skills)

    prompt = f"""You are an expert career coach and skills development specialist. Analyze the following skills self-assessment and provide feedback in EXACTLY these 3 categories only.

SKILLS ASSESSMENT:
{skills_text}

OVERALL SELF-ASSESSMENT COMMENT:
"{overall_comment}"

STATISTICAL OVERVIEW:
- Total Skills Assessed: {stats.total}
- Average Rating: {stats.average_rating}/5
- High Performing Skills (4-5): {stats.high_performing}
- Skills Needing Development (1-2): {stats.needing_development}

REQUIREMENTS:
Provide feedback in EXACTLY these 3 categories only:

1. Top Strengths: Identify the candidate's highest-rated skills and strongest capabilities based on ratings of 4-5. Focus on what they excel at.

2. Practical Experience: Assess their hands-on experience and real-world application of their skills based on their ratings and overall comment. Focus on verified experience and practical application.

3. Domain Knowledge: Evaluate their theoretical understanding, industry knowledge, and areas for development based on lower-rated skills and overall assessment. Include both existing domain expertise and development areas.

Return ONLY these 3 sections with concise, professional feedback for each. Keep each section to 3-4 sentences maximum. DON'T INCLUDE THE NUMBERS IN BETWEEN THE RESPONSE LIKE 5/5 RATED. Do not include any formatting like ** or headers, just the plain text for each section.
"""

    return AssessmentPrompt(prompt=prompt, statistics=stats)
