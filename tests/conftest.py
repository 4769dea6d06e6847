"""Pytest configuration and fixtures."""

import json
import os
from collections.abc import Callable, Iterator

import httpx
import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("MISTRAL_API_KEY", "")
os.environ.setdefault("ENVIRONMENT", "development")
# Canned LLM replies unless a test stubs the transport explicitly
os.environ.setdefault("MOCK_LLM", "true")

from skills_feedback_api.config import Settings  # noqa: E402
from skills_feedback_api.mistral_client import MistralClient  # noqa: E402

LABELED_REPLY = (
    "TOP_STRENGTHS: Deep Go expertise and confident system design.\n"
    "\n"
    "PRACTICAL_EXPERIENCE: Has shipped production services end to end.\n"
    "\n"
    "DOMAIN_KNOWLEDGE: Should invest in relational modelling and SQL tuning."
)

VALID_PAYLOAD = {
    "skills": [{"name": "Go", "rating": 5}, {"name": "SQL", "rating": 2}],
    "overallComment": "solid",
}


def completion_body(content: str, **extra: object) -> dict:
    """Build a chat-completions response body."""
    body = {
        "id": "cmpl-test",
        "model": "mistral-small-latest",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 120, "completion_tokens": 80, "total_tokens": 200},
    }
    body.update(extra)
    return body


@pytest.fixture(autouse=True)
def reset_caches() -> Iterator[None]:
    """Reset cached settings and the global client before each test."""
    from skills_feedback_api.config import get_settings
    from skills_feedback_api.mistral_client import reset_mistral_client

    get_settings.cache_clear()
    reset_mistral_client()
    yield
    get_settings.cache_clear()
    reset_mistral_client()


@pytest.fixture
def live_settings() -> Settings:
    """Settings for a real (non-mock) client with a test key."""
    return Settings(mistral_api_key="test-key", mock_llm=False)


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    """Requests seen by stubbed transports in this test."""
    return []


@pytest.fixture
def stub_client(
    live_settings: Settings, recorded_requests: list[httpx.Request]
) -> Callable[..., MistralClient]:
    """Factory for a MistralClient whose upstream replies with a fixed status/body."""

    def _stub_client(
        status_code: int = 200,
        body: dict | None = None,
        content: str = LABELED_REPLY,
    ) -> MistralClient:
        def handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            payload = body if body is not None else completion_body(content)
            return httpx.Response(status_code, content=json.dumps(payload).encode())

        return MistralClient(live_settings, transport=httpx.MockTransport(handler))

    return _stub_client


@pytest.fixture
def mock_settings(monkeypatch: pytest.MonkeyPatch) -> Callable[..., Settings]:
    """Fixture to set test settings through the environment."""

    def _mock_settings(**kwargs: str) -> Settings:
        for key, value in kwargs.items():
            monkeypatch.setenv(key.upper(), str(value))
        from skills_feedback_api.config import get_settings

        get_settings.cache_clear()
        return get_settings()

    return _mock_settings
