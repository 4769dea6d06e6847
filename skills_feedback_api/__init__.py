"""Skills Feedback API: LLM-generated feedback on skill self-assessments."""

__version__ = "1.0.0"
