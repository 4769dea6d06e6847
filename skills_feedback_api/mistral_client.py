"""Mistral chat-completion client."""

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from skills_feedback_api.config import Settings, get_settings

logger = structlog.get_logger()

MOCK_FEEDBACK = """TOP_STRENGTHS: This is a mock reply (MOCK_LLM=true). Your highest-rated skills show clear confidence and depth.
PRACTICAL_EXPERIENCE: In production this section would assess hands-on application of your skills.
DOMAIN_KNOWLEDGE: Set MISTRAL_API_KEY to receive real feedback on domain knowledge and development areas."""


class MistralError(Exception):
    """Base exception for Mistral client errors."""

    pass


class MistralAuthError(MistralError):
    """Raised when authentication fails or no API key is configured."""

    pass


class MistralRateLimitError(MistralError):
    """Raised when rate limit is exceeded."""

    pass


class MistralConnectionError(MistralError):
    """Raised when the API cannot be reached."""

    pass


class MistralResponseError(MistralError):
    """Raised when a successful response has no usable completion."""

    pass


@dataclass
class CompletionUsage:
    """Token usage information."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


def _token_count(value: Any) -> int:
    """Usage counts are optional; anything but a non-negative int counts as 0."""
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return 0


@dataclass
class LLMResponse:
    """Non-streaming response from the LLM."""

    content: str
    usage: CompletionUsage = field(default_factory=CompletionUsage)
    finish_reason: str | None = None

    @property
    def tokens_used(self) -> int:
        return self.usage.total_tokens


class MistralClient:
    """Async client for the Mistral chat-completions API."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the Mistral client.

        Args:
            settings: Application settings (API key, model, sampling parameters).
            transport: Optional httpx transport, used by tests to stub the API.
        """
        self._api_key = settings.mistral_api_key
        self._base_url = settings.mistral_base_url
        self._model = settings.llm_model
        self._max_tokens = settings.llm_max_tokens
        self._temperature = settings.llm_temperature
        self._mock = settings.mock_llm
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "MistralClient":
        """Enter async context."""
        await self.connect()
        return self

    async def __aexit__(self, _exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        """Exit async context."""
        await self.close()

    @property
    def model(self) -> str:
        return self._model

    @property
    def is_configured(self) -> bool:
        """Check if the client has an API key."""
        return bool(self._api_key.strip())

    async def connect(self) -> None:
        """Create the HTTP client.

        In mock mode (MOCK_LLM=true), skips creating a real HTTP client since
        all requests are answered with canned feedback.
        """
        if self._mock:
            logger.info("Mistral client in mock mode, skipping HTTP client creation", model=self._model)
            return

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(60.0, connect=10.0),
            transport=self._transport,
        )
        logger.info("Mistral client connected", model=self._model)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Mistral client closed")

    def _build_payload(self, system_prompt: str, user_prompt: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }

    async def complete(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        """Send a single chat completion request.

        Args:
            system_prompt: System instructions for the model.
            user_prompt: The rendered assessment prompt.

        Returns:
            LLM response with the first choice's content and token usage.

        Raises:
            MistralAuthError: On HTTP 401, or no API key while mock mode is off.
            MistralRateLimitError: On HTTP 429.
            MistralConnectionError: If the API cannot be reached.
            MistralResponseError: If the body has no completion text.
            MistralError: On any other non-success status.
        """
        if self._mock:
            logger.info("MOCK_LLM=true: Using mock LLM response")
            return LLMResponse(content=MOCK_FEEDBACK, finish_reason="stop")

        if not self.is_configured:
            error_msg = (
                "Mistral API key not configured with MOCK_LLM=false. "
                "Either set MISTRAL_API_KEY or set MOCK_LLM=true for local development."
            )
            logger.error(error_msg)
            raise MistralAuthError(error_msg)

        if not self._client:
            await self.connect()

        payload = self._build_payload(system_prompt, user_prompt)

        try:
            response = await self._client.post("/chat/completions", json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._handle_http_error(e)
            raise  # _handle_http_error always raises
        except httpx.RequestError as e:
            logger.error("Mistral API unreachable", error=str(e))
            raise MistralConnectionError(f"Connection failed: {e}") from e

        return self._parse_completion(response)

    def _parse_completion(self, response: httpx.Response) -> LLMResponse:
        try:
            data = response.json()
            choice = data["choices"][0]
            content = choice["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("Malformed Mistral response", error=str(e))
            raise MistralResponseError(f"Malformed completion response: {e}") from e

        if not isinstance(content, str):
            raise MistralResponseError("Completion content is not text")

        usage_data = data.get("usage")
        if not isinstance(usage_data, dict):
            usage_data = {}
        usage = CompletionUsage(
            prompt_tokens=_token_count(usage_data.get("prompt_tokens")),
            completion_tokens=_token_count(usage_data.get("completion_tokens")),
            total_tokens=_token_count(usage_data.get("total_tokens")),
        )
        finish_reason = choice.get("finish_reason") if isinstance(choice, dict) else None
        if not isinstance(finish_reason, str):
            finish_reason = None

        logger.info("LLM response received", tokens=usage.total_tokens, finish_reason=finish_reason)
        return LLMResponse(content=content, usage=usage, finish_reason=finish_reason)

    def _handle_http_error(self, error: httpx.HTTPStatusError) -> None:
        """Translate HTTP errors from the Mistral API into client exceptions."""
        status = error.response.status_code
        try:
            body = error.response.json()
            detail = (body.get("error") or {}).get("message") or body.get("message") or str(error)
        except Exception:
            detail = error.response.reason_phrase or str(error)

        logger.error("Mistral API error", status=status, detail=detail)

        if status == 401:
            raise MistralAuthError(f"Authentication failed: {detail}") from error
        elif status == 429:
            raise MistralRateLimitError(f"Rate limit exceeded: {detail}") from error
        else:
            raise MistralError(f"API error ({status}): {detail}") from error


# Global client instance
_mistral_client: MistralClient | None = None


async def get_mistral_client() -> MistralClient:
    """Get or create the global Mistral client instance."""
    global _mistral_client
    if _mistral_client is None:
        _mistral_client = MistralClient(get_settings())
        await _mistral_client.connect()
    return _mistral_client


async def close_mistral_client() -> None:
    """Close the global Mistral client."""
    global _mistral_client
    if _mistral_client:
        await _mistral_client.close()
        _mistral_client = None


def reset_mistral_client() -> None:
    """Reset the global Mistral client (for testing)."""
    global _mistral_client
    _mistral_client = None
