# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# Environment-driven settings for the assistant: where records and artifacts
# live, which chat model answers, and how hard the orchestrator retries.
#
#   from app.config import settings
#   settings.MAX_FUNCTION_ROUNDS
#
# Values come from the process environment first, then a local .env file.
# Empty variables are ignored so a blank line in .env never clears a default.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the API process. Import the module-level `settings`."""

    # -------------------------------------------------------------------------
    # Supabase Configuration (record store + artifact storage)
    # -------------------------------------------------------------------------

    SUPABASE_URL: str = Field(
        default="",
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        default="",
        description="Supabase service_role key (bypasses RLS)"
    )

    RECORDS_TABLE: str = Field(
        default="erp_records",
        description="Table holding uploaded spreadsheet rows, one row per record"
    )

    ARTIFACT_BUCKET: str = Field(
        default="artifacts",
        description="Storage bucket for generated purchase order files"
    )

    # -------------------------------------------------------------------------
    # OpenAI / Model Configuration
    # -------------------------------------------------------------------------

    OPENAI_API_KEY: str = Field(
        ...,
        description="OpenAI API key for the assistant"
    )

    OPENAI_MODEL: str = Field(
        default="gpt-4o",
        description="Chat model used for the assistant (must support tool calling)"
    )

    MODEL_TEMPERATURE: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for the assistant"
    )

    MODEL_MAX_OUTPUT_TOKENS: int = Field(
        default=8192,
        ge=256,
        description="Upper bound on tokens generated per model call"
    )

    # -------------------------------------------------------------------------
    # Orchestrator Retry Settings
    # -------------------------------------------------------------------------

    PRIMARY_MAX_ATTEMPTS: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for the primary model call when no response object comes back"
    )

    PRIMARY_RETRY_DELAY_SECONDS: float = Field(
        default=1.0,
        ge=0.0,
        description="Fixed delay between primary call attempts"
    )

    FOLLOWUP_MAX_RETRIES: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries of the follow-up call when it comes back empty, on top of the first attempt"
    )

    FOLLOWUP_BASE_DELAY_SECONDS: float = Field(
        default=1.0,
        ge=0.0,
        description="Base delay for exponential backoff on empty follow-up replies"
    )

    MAX_FUNCTION_ROUNDS: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Max nested function-call round trips within one turn"
    )

    MAX_RECORDS_TO_MODEL: int = Field(
        default=200,
        ge=1,
        description="Max records included in a single function response sent to the model"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment; production restricts CORS"
    )

    DEBUG: bool = Field(
        default=False,
        description="Log at DEBUG level, including every function call the model makes"
    )

    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Comma-separated origins allowed to call the API in production"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def supabase_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_KEY)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """Settings are validated once per process; a missing OPENAI_API_KEY fails here."""
    return Settings()


settings = get_settings()
