"""Unit tests for backend/settings.py"""

import pytest
from pydantic import ValidationError

from backend.settings import Settings, get_settings

PARSER_ENV_VARS = [
    "ENVIRONMENT",
    "LOG_LEVEL",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_ANON_KEY",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "HELICONE_ENABLED",
    "FUZZY_MATCH_THRESHOLD",
    "SEMANTIC_MATCH_THRESHOLD",
    "SYNTAX_MAX_ITERATIONS",
    "DEFAULT_WEIGHT_UNIT",
    "MAX_SETS_PER_EXERCISE",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Clear environment variables to test true defaults."""
    for var in PARSER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.mark.unit
class TestSettingsDefaults:
    """Test that Settings applies correct defaults."""

    def test_environment_default(self, clean_env):
        settings = Settings(_env_file=None)
        assert settings.environment == "development"
        assert settings.is_development

    def test_supabase_fields_default_to_none(self, clean_env):
        settings = Settings(_env_file=None)
        assert settings.supabase_url is None
        assert settings.supabase_key is None

    def test_parser_defaults(self, clean_env):
        """Thresholds and iteration caps have their tuned defaults."""
        settings = Settings(_env_file=None)
        assert settings.content_confidence_cutoff == 0.7
        assert settings.fuzzy_match_threshold == 0.3
        assert settings.semantic_match_threshold == 0.75
        assert settings.syntax_max_iterations == 3
        assert settings.semantic_max_iterations == 3
        assert settings.max_sets_per_exercise == 50
        assert settings.default_weight_unit == "lbs"
        assert settings.embedding_dimensions == 1536
        assert settings.helicone_enabled is False


@pytest.mark.unit
class TestSettingsFromEnvironment:
    """Test that environment variables override defaults."""

    def test_thresholds_from_env(self, clean_env, monkeypatch):
        monkeypatch.setenv("FUZZY_MATCH_THRESHOLD", "0.45")
        monkeypatch.setenv("SEMANTIC_MATCH_THRESHOLD", "0.8")
        monkeypatch.setenv("SYNTAX_MAX_ITERATIONS", "5")

        settings = Settings(_env_file=None)

        assert settings.fuzzy_match_threshold == 0.45
        assert settings.semantic_match_threshold == 0.8
        assert settings.syntax_max_iterations == 5

    def test_service_role_key_preferred(self, clean_env, monkeypatch):
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        assert Settings(_env_file=None).supabase_key == "anon"

        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service")
        assert Settings(_env_file=None).supabase_key == "service"

    def test_environment_case_insensitive(self, clean_env, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "PRODUCTION")
        settings = Settings(_env_file=None)
        assert settings.environment == "production"
        assert settings.is_production


@pytest.mark.unit
class TestSettingsValidation:
    """Test that invalid values are rejected."""

    def test_invalid_environment(self, clean_env):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, environment="moon")

    def test_invalid_weight_unit(self, clean_env):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, default_weight_unit="stone")

    def test_weight_unit_normalized(self, clean_env):
        assert Settings(_env_file=None, default_weight_unit="KG").default_weight_unit == "kg"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("fuzzy_match_threshold", 1.5),
            ("semantic_match_threshold", -0.1),
            ("content_confidence_cutoff", 2),
            ("syntax_max_iterations", 0),
            ("max_sets_per_exercise", 0),
        ],
    )
    def test_out_of_range(self, clean_env, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})


@pytest.mark.unit
class TestGetSettings:
    """Test the cached settings accessor."""

    def test_cached(self, clean_env):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
