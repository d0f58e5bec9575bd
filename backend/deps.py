"""
Dependency providers for the workout parser.

Providers return port types (Protocols) rather than concrete classes so
callers and tests can swap in other implementations.

Architecture:
- Settings, the Supabase client and AI adapters are cached per process
- The exercise catalog is shared per process so it stays warm
- build_parse_workout_use_case wires the pipeline; every collaborator can
  be overridden

Usage:
    from backend.deps import build_parse_workout_use_case

    use_case = build_parse_workout_use_case()
    result = await use_case.execute(text)
"""

from functools import lru_cache
from typing import Optional

from supabase import Client, create_client

from application.ports import EmbeddingService, ExerciseStore, TextOracle, WorkoutRepository
from application.use_cases import ParseWorkoutUseCase
from backend.services.content_validator import ContentValidator
from backend.services.embedding_service import OpenAIEmbeddingService
from backend.services.exercise_catalog import ExerciseCatalog
from backend.services.llm_oracle import AnthropicTextOracle
from backend.services.workout_parser import (
    ExerciseResolver,
    PersistenceFormatter,
    SemanticFixer,
    StructureExtractor,
    SyntaxFixer,
)
from backend.settings import Settings, get_settings
from infrastructure.db import SupabaseExerciseStore, SupabaseWorkoutRepository


# =============================================================================
# Supabase Client Provider
# =============================================================================


@lru_cache
def get_supabase_client() -> Client:
    """
    Get Supabase client instance (cached).

    Raises:
        RuntimeError: If Supabase credentials are not configured
    """
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_key:
        raise RuntimeError(
            "Database not available. Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY."
        )
    return create_client(settings.supabase_url, settings.supabase_key)


# =============================================================================
# Port Providers
# =============================================================================


def get_exercise_store() -> ExerciseStore:
    return SupabaseExerciseStore(get_supabase_client())


def get_workout_repo() -> WorkoutRepository:
    return SupabaseWorkoutRepository(get_supabase_client())


@lru_cache
def get_text_oracle() -> TextOracle:
    return AnthropicTextOracle(settings=get_settings())


@lru_cache
def get_embedding_service() -> EmbeddingService:
    return OpenAIEmbeddingService(settings=get_settings())


@lru_cache
def get_exercise_catalog() -> ExerciseCatalog:
    return ExerciseCatalog(get_exercise_store())


# =============================================================================
# Use Case Wiring
# =============================================================================


def build_parse_workout_use_case(
    settings: Optional[Settings] = None,
    *,
    oracle: Optional[TextOracle] = None,
    embeddings: Optional[EmbeddingService] = None,
    store: Optional[ExerciseStore] = None,
    workout_repo: Optional[WorkoutRepository] = None,
    catalog: Optional[ExerciseCatalog] = None,
) -> ParseWorkoutUseCase:
    """
    Wire the parsing pipeline.

    Args:
        settings: Settings override (defaults to get_settings())
        oracle: Text oracle (defaults to the Anthropic adapter)
        embeddings: Embedding service (defaults to the OpenAI adapter)
        store: Exercise store (defaults to Supabase)
        workout_repo: Workout repository (defaults to Supabase)
        catalog: Exercise catalog (defaults to a per-store catalog)

    Returns:
        ParseWorkoutUseCase ready to execute
    """
    settings = settings or get_settings()
    oracle = oracle or get_text_oracle()
    embeddings = embeddings or get_embedding_service()
    if store is None:
        store = get_exercise_store()
        catalog = catalog or get_exercise_catalog()
    workout_repo = workout_repo or get_workout_repo()
    catalog = catalog or ExerciseCatalog(store)

    resolver = ExerciseResolver(
        store,
        embeddings,
        oracle,
        catalog,
        fuzzy_threshold=settings.fuzzy_match_threshold,
        fuzzy_limit=settings.fuzzy_search_limit,
        semantic_threshold=settings.semantic_match_threshold,
        collision_min_similarity=settings.slug_collision_min_similarity,
        metadata_enabled=settings.exercise_metadata_enabled,
    )

    return ParseWorkoutUseCase(
        content_validator=ContentValidator(oracle),
        extractor=StructureExtractor(oracle, max_sets_per_exercise=settings.max_sets_per_exercise),
        resolver=resolver,
        syntax_fixer=SyntaxFixer(oracle, max_iterations=settings.syntax_max_iterations),
        semantic_fixer=SemanticFixer(oracle, max_iterations=settings.semantic_max_iterations),
        formatter=PersistenceFormatter(store, workout_repo, catalog),
        confidence_cutoff=settings.content_confidence_cutoff,
        max_text_length=settings.max_workout_text_length,
        default_weight_unit=settings.default_weight_unit,
        environment=settings.environment,
    )
