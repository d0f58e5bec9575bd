"""
Centralized settings configuration using Pydantic BaseSettings.

All environment variables are defined here with types, defaults, and validation.
Pipeline thresholds live here too: they are empirically tuned product
decisions, not constants.

Usage:
    from backend.settings import get_settings, Settings

    settings = get_settings()
    print(settings.semantic_match_threshold)
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Core Environment
    # -------------------------------------------------------------------------
    environment: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level for the CLI",
    )

    # -------------------------------------------------------------------------
    # Supabase Database
    # -------------------------------------------------------------------------
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL",
    )
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key (full access)",
    )
    supabase_anon_key: Optional[str] = Field(
        default=None,
        description="Supabase anonymous key (limited access)",
    )

    @property
    def supabase_key(self) -> Optional[str]:
        """Get the best available Supabase key (service role preferred)."""
        return self.supabase_service_role_key or self.supabase_anon_key

    # -------------------------------------------------------------------------
    # Text Oracle - Anthropic
    # -------------------------------------------------------------------------
    anthropic_api_key: Optional[str] = Field(
        default=None,
        description="Anthropic API key for the text oracle",
    )
    oracle_fast_model: str = Field(
        default="claude-3-5-haiku-20241022",
        description="Model used for classification and exercise metadata",
    )
    oracle_reasoning_model: str = Field(
        default="claude-sonnet-4-5-20250929",
        description="Model used for extraction and repairs",
    )
    oracle_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Per-request timeout for oracle calls",
    )
    oracle_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per oracle call for transient errors",
    )

    # -------------------------------------------------------------------------
    # Embeddings - OpenAI
    # -------------------------------------------------------------------------
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key for embedding generation",
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="OpenAI embedding model name",
    )
    embedding_dimensions: int = Field(
        default=1536,
        gt=0,
        description="Length of every exercise name embedding",
    )

    # -------------------------------------------------------------------------
    # Observability - Helicone / Sentry
    # -------------------------------------------------------------------------
    helicone_enabled: bool = Field(
        default=False,
        description="Proxy AI calls through Helicone",
    )
    helicone_api_key: Optional[str] = Field(
        default=None,
        description="Helicone API key",
    )
    sentry_dsn: Optional[str] = Field(
        default=None,
        description="Sentry DSN for error tracking",
    )

    # -------------------------------------------------------------------------
    # Workout Parser
    # -------------------------------------------------------------------------
    content_confidence_cutoff: float = Field(
        default=0.7,
        ge=0,
        le=1,
        description="Minimum classifier confidence to accept text as a workout",
    )
    fuzzy_match_threshold: float = Field(
        default=0.3,
        ge=0,
        le=1,
        description="Minimum trigram similarity for a fuzzy exercise match",
    )
    fuzzy_search_limit: int = Field(
        default=5,
        ge=1,
        description="Candidates fetched per fuzzy search",
    )
    semantic_match_threshold: float = Field(
        default=0.75,
        ge=0,
        le=1,
        description="Minimum cosine similarity for a semantic exercise match",
    )
    slug_collision_min_similarity: float = Field(
        default=0.5,
        ge=0,
        le=1,
        description=(
            "When a new exercise's slug already exists, the minimum cosine "
            "similarity for the existing row to count as the same exercise"
        ),
    )
    exercise_metadata_enabled: bool = Field(
        default=True,
        description="Ask the oracle for a display name and tags for new exercises",
    )
    syntax_max_iterations: int = Field(
        default=3,
        ge=1,
        description="Repair cap for structural violations",
    )
    semantic_max_iterations: int = Field(
        default=3,
        ge=1,
        description="Repair cap for set-count violations",
    )
    max_workout_text_length: int = Field(
        default=10000,
        ge=1,
        description="Longest workout text accepted",
    )
    max_sets_per_exercise: int = Field(
        default=50,
        ge=1,
        description="Largest set count accepted for one exercise from extraction",
    )
    default_weight_unit: str = Field(
        default="lbs",
        description="Weight unit used when the caller gives none",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is a valid value."""
        valid_environments = {"development", "staging", "production", "test"}
        if v.lower() not in valid_environments:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {valid_environments}"
            )
        return v.lower()

    @field_validator("default_weight_unit")
    @classmethod
    def validate_weight_unit(cls, v: str) -> str:
        """Only lbs and kg are canonical."""
        if v.lower() not in {"lbs", "kg"}:
            raise ValueError(f"Invalid default_weight_unit '{v}'. Must be 'lbs' or 'kg'")
        return v.lower()

    # -------------------------------------------------------------------------
    # Helper Properties
    # -------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    For testing, you can clear the cache with get_settings.cache_clear().

    Returns:
        Settings: Application settings instance
    """
    return Settings()
