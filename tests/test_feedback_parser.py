"""Tests for LLM reply parsing."""

import pytest

from skills_feedback_api.feedback_parser import (
    DEFAULT_FEEDBACK,
    FeedbackCategory,
    parse_feedback,
    parse_feedback_response,
    scan_labeled_sections,
    split_fragments,
)
from skills_feedback_api.models import FeedbackResult

DEFAULT_TOP = "Strong technical skills identified from assessment."
DEFAULT_PRACTICAL = "Hands-on experience demonstrated through skill ratings."
DEFAULT_DOMAIN = "Domain expertise with areas for continued development."


class TestLabeledSections:
    """Tests for label-based extraction."""

    def test_labels_with_blank_lines(self) -> None:
        """Underscore and space label spellings are both recognized."""
        text = "\nTOP_STRENGTHS: A\n\nPRACTICAL EXPERIENCE: B\n\n\nDOMAIN_KNOWLEDGE: C\n"
        result = parse_feedback_response(text)
        assert result == FeedbackResult(
            top_strengths="A", practical_experience="B", domain_knowledge="C"
        )

    def test_labels_any_order(self) -> None:
        """Section order in the reply does not matter."""
        text = "DOMAIN_KNOWLEDGE: C\nTOP_STRENGTHS: A\nPRACTICAL EXPERIENCE: B"
        result = parse_feedback_response(text)
        assert result.top_strengths == "A"
        assert result.practical_experience == "B"
        assert result.domain_knowledge == "C"

    def test_labels_case_insensitive(self) -> None:
        """Labels match regardless of case."""
        text = "top strengths: a\nPractical_Experience: b\ndomain Knowledge: c"
        result = parse_feedback_response(text)
        assert (result.top_strengths, result.practical_experience, result.domain_knowledge) == (
            "a",
            "b",
            "c",
        )

    def test_last_match_wins(self) -> None:
        """A repeated label overwrites the earlier value."""
        text = "TOP_STRENGTHS: first\nPRACTICAL_EXPERIENCE: B\nTOP STRENGTHS: second"
        result = parse_feedback_response(text)
        assert result.top_strengths == "second"
        assert result.practical_experience == "B"

    def test_empty_label_gets_default_for_that_field_only(self) -> None:
        """A label with nothing after the colon falls back for that field alone."""
        text = "TOP_STRENGTHS:\nPRACTICAL_EXPERIENCE: B\nDOMAIN_KNOWLEDGE: C"
        result = parse_feedback_response(text)
        assert result.top_strengths == DEFAULT_TOP
        assert result.practical_experience == "B"
        assert result.domain_knowledge == "C"

    def test_missing_sections_get_defaults(self) -> None:
        """Sections the model skipped get their canned sentence."""
        parsed = parse_feedback("PRACTICAL EXPERIENCE: Ships often.")
        assert parsed.strategy == "labels"
        assert parsed.feedback.top_strengths == DEFAULT_TOP
        assert parsed.feedback.practical_experience == "Ships often."
        assert parsed.feedback.domain_knowledge == DEFAULT_DOMAIN

    def test_first_category_wins_on_shared_line(self) -> None:
        """A line carrying two labels is assigned to the earlier category."""
        sections = scan_labeled_sections("TOP STRENGTHS: a DOMAIN KNOWLEDGE: b")
        assert sections[FeedbackCategory.TOP_STRENGTHS] == "a DOMAIN KNOWLEDGE: b"
        assert sections[FeedbackCategory.DOMAIN_KNOWLEDGE] is None

    def test_scan_is_pure(self) -> None:
        """Scanning returns a fresh mapping with an entry per category."""
        first = scan_labeled_sections("TOP_STRENGTHS: A")
        second = scan_labeled_sections("no labels here")
        assert first[FeedbackCategory.TOP_STRENGTHS] == "A"
        assert second == {category: None for category in FeedbackCategory}

    def test_crlf_line_endings(self) -> None:
        """Windows line endings are handled."""
        text = "TOP_STRENGTHS: A\r\nPRACTICAL_EXPERIENCE: B\r\nDOMAIN_KNOWLEDGE: C\r\n"
        result = parse_feedback_response(text)
        assert result.domain_knowledge == "C"

    @pytest.mark.parametrize("separator", ["\x0b", "\x0c", "\x1c", "\x85", "\u2028", "\u2029"])
    def test_only_newline_separates_lines(self, separator: str) -> None:
        """Other Unicode line breaks stay inside a line."""
        text = f"TOP_STRENGTHS: A{separator}PRACTICAL_EXPERIENCE: B\nDOMAIN_KNOWLEDGE: C"
        result = parse_feedback_response(text)
        assert result.top_strengths == f"A{separator}PRACTICAL_EXPERIENCE: B"
        assert result.practical_experience == DEFAULT_PRACTICAL
        assert result.domain_knowledge == "C"


class TestFragmentFallback:
    """Tests for the positional split fallback."""

    def test_numbered_reply(self) -> None:
        """A numbered reply without labels is split into three sections."""
        text = (
            "1. You excel at Go.\n"
            "2. You have shipped services.\n"
            "3. Learn more SQL theory."
        )
        parsed = parse_feedback(text)
        assert parsed.strategy == "fragments"
        assert parsed.feedback.top_strengths == "You excel at Go."
        assert parsed.feedback.practical_experience == "You have shipped services."
        assert parsed.feedback.domain_knowledge == "Learn more SQL theory."

    def test_positional_assignment_ignores_numbering(self) -> None:
        """Fragments are assigned in text order, whatever their numbers say."""
        text = "3. Knowledge text\n1. Strength text\n2. Experience text"
        result = parse_feedback_response(text)
        assert result.top_strengths == "Knowledge text"
        assert result.practical_experience == "Strength text"
        assert result.domain_knowledge == "Experience text"

    def test_extra_fragments_dropped(self) -> None:
        """Only the first three fragments are used."""
        result = parse_feedback_response("1. a 2. b 3. c 4. d")
        assert result.domain_knowledge == "c"

    def test_non_ascii_digits_do_not_split(self) -> None:
        """Only ASCII digits count as numbering."""
        assert split_fragments("\u0661. a \u0662. b \u0663. c") == ["\u0661. a \u0662. b \u0663. c"]
        parsed = parse_feedback("\u0661. a \u0662. b \u0663. c")
        assert parsed.strategy == "defaults"

    def test_split_on_keywords(self) -> None:
        """Category keywords split the text anywhere, case-insensitively."""
        assert split_fragments("Top: x practical: y Domain: z") == [": x", ": y", ": z"]


class TestDefaults:
    """Tests for the canned fallback sentences."""

    def test_unrecognized_text_gets_defaults(self) -> None:
        """Too few fragments yields all three defaults verbatim."""
        parsed = parse_feedback("Great job overall, keep going.")
        assert parsed.strategy == "defaults"
        assert parsed.feedback.top_strengths == DEFAULT_TOP
        assert parsed.feedback.practical_experience == DEFAULT_PRACTICAL
        assert parsed.feedback.domain_knowledge == DEFAULT_DOMAIN

    def test_empty_text(self) -> None:
        """An empty reply still produces populated feedback."""
        result = parse_feedback_response("")
        assert result.top_strengths == DEFAULT_FEEDBACK[FeedbackCategory.TOP_STRENGTHS]
        assert result.practical_experience == DEFAULT_FEEDBACK[FeedbackCategory.PRACTICAL_EXPERIENCE]
        assert result.domain_knowledge == DEFAULT_FEEDBACK[FeedbackCategory.DOMAIN_KNOWLEDGE]

    def test_only_empty_labels(self) -> None:
        """Labels with no content everywhere fall through to the later rungs."""
        parsed = parse_feedback("TOP_STRENGTHS:")
        assert parsed.strategy == "defaults"
        assert parsed.feedback.top_strengths == DEFAULT_TOP

    def test_two_fragments_not_enough(self) -> None:
        """Two fragments are not split positionally."""
        parsed = parse_feedback("1. only one\n2. and two")
        assert parsed.strategy == "defaults"
        assert parsed.feedback.practical_experience == DEFAULT_PRACTICAL
