"""Runtime configuration for the Roamly planner backend.

Values come from the process environment; a local ``.env`` file is loaded
first so development keys do not need exporting by hand.
"""

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
        protected_namespaces=(),
    )

    # Model gateway (any OpenAI-compatible chat completions endpoint)
    model_gateway_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_GATEWAY_API_KEY", "OPENAI_API_KEY"),
    )
    model_gateway_base_url: Optional[str] = None
    itinerary_model: str = "gpt-4o-mini"
    details_model: str = "gpt-4o-mini"
    model_timeout_seconds: float = 60.0

    # Geocoding
    mapbox_access_token: Optional[str] = None
    geocode_timeout_seconds: float = 8.0

    # Logging
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
