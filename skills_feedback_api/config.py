"""Environment configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Mock control (opt-in feature gate for local development)
    mock_llm: bool = False  # Serve canned LLM replies (don't call Mistral)

    # Mistral configuration
    mistral_api_key: str = ""
    mistral_base_url: str = "https://api.mistral.ai/v1"
    llm_model: str = "mistral-small-latest"
    llm_max_tokens: int = 500
    llm_temperature: float = 0.7

    # Server configuration
    port: int = 3000
    host: str = "0.0.0.0"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    environment: Literal["development", "production"] = "development"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def has_mistral_key(self) -> bool:
        """Check if a Mistral API key is configured."""
        return bool(self.mistral_api_key.strip())


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
