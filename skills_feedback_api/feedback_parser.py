"""Extract the three feedback categories from a free-text LLM reply.

Models do not reliably follow the requested format, so parsing walks a
fallback ladder and never fails on formatting alone:

1. ``labels``: scan lines for ``TOP_STRENGTHS:`` style labels.
2. ``fragments``: if no label matched, split the whole text on numbering and
   category keywords and take the first three fragments in order.
3. ``defaults``: if fewer than three fragments exist, use canned sentences.

Any field still empty afterwards gets its canned default.
"""

import re
from dataclasses import dataclass
from enum import Enum
from functools import reduce
from typing import Literal

from skills_feedback_api.models import FeedbackResult

ParseStrategy = Literal["labels", "fragments", "defaults"]


class FeedbackCategory(str, Enum):
    """The three feedback categories, in prompt order."""

    TOP_STRENGTHS = "top_strengths"
    PRACTICAL_EXPERIENCE = "practical_experience"
    DOMAIN_KNOWLEDGE = "domain_knowledge"


CATEGORY_LABELS: dict[FeedbackCategory, tuple[str, ...]] = {
    FeedbackCategory.TOP_STRENGTHS: ("TOP_STRENGTHS:", "TOP STRENGTHS:"),
    FeedbackCategory.PRACTICAL_EXPERIENCE: ("PRACTICAL_EXPERIENCE:", "PRACTICAL EXPERIENCE:"),
    FeedbackCategory.DOMAIN_KNOWLEDGE: ("DOMAIN_KNOWLEDGE:", "DOMAIN KNOWLEDGE:"),
}

DEFAULT_FEEDBACK: dict[FeedbackCategory, str] = {
    FeedbackCategory.TOP_STRENGTHS: "Strong technical skills identified from assessment.",
    FeedbackCategory.PRACTICAL_EXPERIENCE: "Hands-on experience demonstrated through skill ratings.",
    FeedbackCategory.DOMAIN_KNOWLEDGE: "Domain expertise with areas for continued development.",
}

_LABEL_PATTERNS: dict[FeedbackCategory, tuple[re.Pattern[str], ...]] = {
    category: tuple(re.compile(re.escape(label), re.IGNORECASE) for label in labels)
    for category, labels in CATEGORY_LABELS.items()
}

# Matches anywhere in the text, not only at line starts
_FRAGMENT_SPLIT = re.compile(r"[0-9]+\.|TOP|PRACTICAL|DOMAIN", re.IGNORECASE)

SectionMap = dict[FeedbackCategory, str | None]


@dataclass(frozen=True)
class ParsedFeedback:
    """Parsed feedback and the ladder rung that produced it."""

    feedback: FeedbackResult
    strategy: ParseStrategy


def _match_line(line: str) -> tuple[FeedbackCategory, str] | None:
    """Return the first category whose label appears in ``line`` and the stripped text."""
    for category, patterns in _LABEL_PATTERNS.items():
        if any(pattern.search(line) for pattern in patterns):
            text = line
            for pattern in patterns:
                text = pattern.sub("", text, count=1)
            return category, text.strip()
    return None


def _fold_line(sections: SectionMap, line: str) -> SectionMap:
    match = _match_line(line)
    if match is None:
        return sections
    category, text = match
    return {**sections, category: text}


def scan_labeled_sections(feedback_text: str) -> SectionMap:
    """Fold non-blank lines into a category -> text mapping (last match wins)."""
    lines = [line for line in feedback_text.split("\n") if line.strip()]
    initial: SectionMap = {category: None for category in FeedbackCategory}
    return reduce(_fold_line, lines, initial)


def split_fragments(feedback_text: str) -> list[str]:
    """Split on numbering and category keywords, dropping blank fragments."""
    return [
        fragment.strip()
        for fragment in _FRAGMENT_SPLIT.split(feedback_text)
        if fragment.strip()
    ]


def _resolve(sections: SectionMap) -> FeedbackResult:
    return FeedbackResult(
        **{
            category.value: sections.get(category) or DEFAULT_FEEDBACK[category]
            for category in FeedbackCategory
        }
    )


def parse_feedback(feedback_text: str) -> ParsedFeedback:
    """Parse an LLM reply into the three categories, reporting the strategy used."""
    sections = scan_labeled_sections(feedback_text)
    if any(sections.values()):
        return ParsedFeedback(feedback=_resolve(sections), strategy="labels")

    fragments = split_fragments(feedback_text)
    if len(fragments) >= 3:
        # Positional: assumes the reply kept the strengths/experience/knowledge order
        positional: SectionMap = dict(zip(FeedbackCategory, fragments[:3]))
        return ParsedFeedback(feedback=_resolve(positional), strategy="fragments")

    return ParsedFeedback(feedback=_resolve({}), strategy="defaults")


def parse_feedback_response(feedback_text: str) -> FeedbackResult:
    """Parse an LLM reply into a FeedbackResult with every field populated."""
    return parse_feedback(feedback_text).feedback
