"""Configuration management for the Patternle puzzle engine."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # API Keys
    openrouter_api_key: Optional[str] = Field(None, validation_alias="OPENROUTER_API_KEY")
    anthropic_api_key: Optional[str] = Field(None, validation_alias="ANTHROPIC_API_KEY")

    # Proposal model configuration
    openrouter_base_url: str = Field("https://openrouter.ai/api/v1", validation_alias="OPENROUTER_BASE_URL")
    proposal_model: str = Field("anthropic/claude-3.5-sonnet", validation_alias="OPENROUTER_MODEL")
    proposal_temperature: float = Field(0.7, validation_alias="PROPOSAL_TEMPERATURE")
    proposal_max_tokens: int = Field(2000, validation_alias="PROPOSAL_MAX_TOKENS")
    app_url: str = Field("http://localhost:3000", validation_alias="NEXT_PUBLIC_APP_URL")

    # Application Settings
    environment: str = Field("development", validation_alias="ENVIRONMENT")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    puzzle_timezone: str = Field("Australia/Melbourne", validation_alias="PUZZLE_TIMEZONE")
    launch_date: str = Field("2024-01-01", validation_alias="LAUNCH_DATE")

    # Pipeline Settings
    max_generation_attempts: int = Field(20, validation_alias="MAX_GENERATION_ATTEMPTS")
    retry_delay_seconds: float = Field(0.0, validation_alias="RETRY_DELAY_SECONDS")
    sequence_length: int = Field(5, validation_alias="SEQUENCE_LENGTH")
    num_sequences: int = Field(5, validation_alias="NUM_SEQUENCES")

    # Ambiguity calibration (changing these changes which puzzles are accepted)
    quadratic_max_error: float = Field(0.5, validation_alias="QUADRATIC_MAX_ERROR")
    quadratic_refit_tolerance: float = Field(0.5, validation_alias="QUADRATIC_REFIT_TOLERANCE")


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
