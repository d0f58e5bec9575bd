"""
Unit tests for ExerciseResolver.

Covers the resolution order (exact, fuzzy, semantic, create), idempotent
creation under concurrency, slug collisions and whole-workout resolution.
"""
import asyncio
from unittest.mock import patch

import pytest

from application.exceptions import OracleResponseError, ResolutionFailed
from backend.services.exercise_catalog import ExerciseCatalog
from backend.services.workout_parser.exercise_resolver import (
    METADATA_FEATURE_NAME,
    ExerciseResolver,
    ResolutionMethod,
)
from domain.models import BlockDraft, ExerciseDraft, WorkoutDraft
from tests.fakes import FakeEmbeddingService, exercise_metadata_responder


@pytest.fixture
def resolver(store, embeddings, oracle):
    oracle.set_response(METADATA_FEATURE_NAME, exercise_metadata_responder())
    return ExerciseResolver(store, embeddings, oracle)


@pytest.mark.unit
class TestResolutionOrder:
    """Each strategy is tried in order and the first match wins."""

    @pytest.mark.asyncio
    async def test_exact_slug(self, resolver, store, embeddings):
        """A name whose slug exists resolves without any search."""
        [existing] = store.seed([{"slug": "dumbbell-bench-press", "name": "Dumbbell Bench Press"}])

        resolution = await resolver.resolve("DB Bench Press")

        assert resolution.method is ResolutionMethod.EXACT
        assert resolution.exercise.id == existing.id
        assert store.search_by_name_calls == 0
        assert embeddings.call_count == 0

    @pytest.mark.asyncio
    async def test_fuzzy_match(self, resolver, store, embeddings):
        """A close spelling resolves by trigram similarity."""
        [existing] = store.seed([{"slug": "romanian-deadlift", "name": "Romanian Deadlift"}])

        resolution = await resolver.resolve("Romanian Deadlifts")

        assert resolution.method is ResolutionMethod.FUZZY
        assert resolution.exercise.id == existing.id
        assert resolution.score >= 0.3
        assert embeddings.call_count == 0
        assert store.count() == 1

    @pytest.mark.asyncio
    async def test_fuzzy_threshold_is_configurable(self, store, embeddings, oracle):
        """Below the configured threshold the fuzzy candidate is ignored."""
        oracle.set_response(METADATA_FEATURE_NAME, exercise_metadata_responder())
        store.seed([{"slug": "romanian-deadlift", "name": "Romanian Deadlift"}])
        strict = ExerciseResolver(store, embeddings, oracle, fuzzy_threshold=0.99)

        resolution = await strict.resolve("Romanian Deadlifts")

        assert resolution.method is not ResolutionMethod.FUZZY

    @pytest.mark.asyncio
    async def test_semantic_match(self, resolver, store, embeddings):
        """A differently spelled synonym resolves by embedding similarity."""
        vector = [0.0] * embeddings.dimensions
        vector[0] = 1.0
        [existing] = store.seed(
            [{"slug": "pull-up", "name": "Pull-Up", "embedding": vector}]
        )
        embeddings.set_embedding("chin over bar hang", vector)

        resolution = await resolver.resolve("Chin over bar hang")

        assert resolution.method is ResolutionMethod.SEMANTIC
        assert resolution.exercise.id == existing.id
        assert store.count() == 1

    @pytest.mark.asyncio
    async def test_semantic_search_failure_falls_through(self, resolver, store):
        """An unavailable embedding search does not stop creation."""
        store.fail_embedding_search = True

        resolution = await resolver.resolve("Sled Push")

        assert resolution.method is ResolutionMethod.CREATED
        assert store.count("sled-push") == 1

    @pytest.mark.asyncio
    async def test_creates_new_identity(self, resolver, store, oracle):
        """An unknown name creates a reviewed-later identity with metadata."""
        resolution = await resolver.resolve("box jumps")

        created = resolution.exercise
        assert resolution.method is ResolutionMethod.CREATED
        assert created.slug == "box-jumps"
        assert created.name == "Box Jumps"
        assert created.tags == ["strength", "lower body", "compound"]
        assert created.needs_review is True
        assert created.embedding is not None
        assert len(oracle.calls_for(METADATA_FEATURE_NAME)) == 1

    @pytest.mark.asyncio
    async def test_created_identity_is_reused(self, resolver, store):
        """The second lookup of a created name is an exact match."""
        first = await resolver.resolve("Box Jumps")
        second = await resolver.resolve("box jumps")

        assert second.method is ResolutionMethod.EXACT
        assert second.exercise.id == first.exercise.id
        assert store.count() == 1

    @pytest.mark.asyncio
    async def test_blocking_calls_use_running_loop(self, resolver):
        """Store and embedding calls are scheduled on the running loop."""
        with patch.object(asyncio, "get_event_loop", side_effect=RuntimeError("no current loop")):
            resolution = await resolver.resolve("Box Jumps")

        assert resolution.method is ResolutionMethod.CREATED


@pytest.mark.unit
class TestCreationMetadata:
    """Metadata generation for new identities."""

    @pytest.mark.asyncio
    async def test_bad_metadata_falls_back_to_name(self, store, embeddings, oracle):
        """Unusable metadata still creates the exercise from its name."""
        oracle.set_response(METADATA_FEATURE_NAME, {"name": "Sled Push", "tags": ["one"]})
        resolver = ExerciseResolver(store, embeddings, oracle)

        resolution = await resolver.resolve("Sled Push")

        assert resolution.method is ResolutionMethod.CREATED
        assert resolution.exercise.name == "Sled Push"
        assert resolution.exercise.tags == []

    @pytest.mark.asyncio
    async def test_non_json_metadata_falls_back_to_name(self, store, embeddings, oracle):
        """An undecodable metadata reply is not fatal."""
        oracle.set_response(METADATA_FEATURE_NAME, OracleResponseError("no JSON"))
        resolver = ExerciseResolver(store, embeddings, oracle)

        resolution = await resolver.resolve("Sled Push")

        assert resolution.exercise.name == "Sled Push"

    @pytest.mark.asyncio
    async def test_metadata_disabled(self, store, embeddings, oracle):
        """With metadata disabled the oracle is never asked."""
        resolver = ExerciseResolver(store, embeddings, oracle, metadata_enabled=False)

        resolution = await resolver.resolve("Sled Push")

        assert resolution.exercise.name == "Sled Push"
        assert oracle.call_count == 0

    def test_metadata_requires_oracle(self, store, embeddings):
        """Metadata generation cannot be enabled without an oracle."""
        with pytest.raises(ValueError):
            ExerciseResolver(store, embeddings, oracle=None)

    @pytest.mark.asyncio
    async def test_unusable_name(self, resolver):
        """A name with no usable slug cannot be resolved."""
        with pytest.raises(ResolutionFailed) as exc_info:
            await resolver.resolve("!!!")
        assert exc_info.value.exercise_name == "!!!"

    @pytest.mark.asyncio
    async def test_store_failure_wrapped(self, resolver, store):
        """Unexpected store errors surface as ResolutionFailed."""
        with patch.object(store, "find_by_slug", side_effect=ConnectionError("db down")):
            with pytest.raises(ResolutionFailed) as exc_info:
                await resolver.resolve("Sled Push")
        assert "db down" in exc_info.value.message


@pytest.mark.unit
class TestIdempotentCreation:
    """Concurrent creation of one slug yields one row."""

    @pytest.mark.asyncio
    async def test_concurrent_spellings_share_identity(self, store, embeddings):
        """'Pull-Up', 'pull-up' and 'PULL-UP' at once create exactly one row."""
        resolver = ExerciseResolver(store, embeddings, metadata_enabled=False)

        results = await asyncio.gather(
            resolver.get_or_create_exercise_by_name("Pull-Up"),
            resolver.get_or_create_exercise_by_name("pull-up"),
            resolver.get_or_create_exercise_by_name("PULL-UP"),
        )

        assert len({r.id for r in results}) == 1
        assert store.count("pull-up") == 1
        assert store.count() == 1

    @pytest.mark.asyncio
    async def test_lost_race_returns_winner(self, store, embeddings):
        """When the upsert finds the row already there, that row is returned."""
        resolver = ExerciseResolver(store, embeddings, metadata_enabled=False)
        [winner] = store.seed(
            [{
                "slug": "pull-up",
                "name": "Pull-Up",
                "embedding": embeddings.generate_embedding("Pull-Up"),
            }]
        )

        # The row appears between the exact lookup and the insert.
        with patch.object(store, "find_by_slug", return_value=None), \
                patch.object(store, "search_by_name", return_value=[]), \
                patch.object(store, "search_by_embedding", return_value=[]):
            resolution = await resolver.resolve("pull up")

        assert resolution.exercise.id == winner.id
        assert resolution.method is ResolutionMethod.EXACT
        assert store.count() == 1


@pytest.mark.unit
class TestSlugCollision:
    """Same slug, different meaning."""

    @pytest.fixture
    def small_embeddings(self):
        return FakeEmbeddingService(dimensions=4)

    @pytest.mark.asyncio
    async def test_dissimilar_collision_fails(self, store, small_embeddings):
        """A same-slug row that means something else is not merged into."""
        store.seed([{"slug": "press", "name": "Press", "embedding": [1.0, 0.0, 0.0, 0.0]}])
        small_embeddings.set_embedding("press", [0.0, 1.0, 0.0, 0.0])
        resolver = ExerciseResolver(store, small_embeddings, metadata_enabled=False)

        with patch.object(store, "find_by_slug", return_value=None), \
                patch.object(store, "search_by_name", return_value=[]):
            with pytest.raises(ResolutionFailed) as exc_info:
                await resolver.resolve("Press")

        assert "collides" in exc_info.value.message
        assert store.count() == 1

    @pytest.mark.asyncio
    async def test_similar_collision_reuses_row(self, store, small_embeddings):
        """A same-slug row with a close embedding is reused."""
        [existing] = store.seed(
            [{"slug": "press", "name": "Press", "embedding": [1.0, 0.0, 0.0, 0.0]}]
        )
        small_embeddings.set_embedding("press", [0.9, 0.1, 0.0, 0.0])
        resolver = ExerciseResolver(
            store,
            small_embeddings,
            metadata_enabled=False,
            semantic_threshold=0.999,
        )

        with patch.object(store, "find_by_slug", return_value=None), \
                patch.object(store, "search_by_name", return_value=[]):
            resolution = await resolver.resolve("Press")

        assert resolution.exercise.id == existing.id

    @pytest.mark.asyncio
    async def test_collision_threshold_configurable(self, store, small_embeddings):
        """With a zero minimum any same-slug row is accepted."""
        [existing] = store.seed(
            [{"slug": "press", "name": "Press", "embedding": [1.0, 0.0, 0.0, 0.0]}]
        )
        small_embeddings.set_embedding("press", [0.0, 1.0, 0.0, 0.0])
        resolver = ExerciseResolver(
            store,
            small_embeddings,
            metadata_enabled=False,
            collision_min_similarity=0.0,
        )

        with patch.object(store, "find_by_slug", return_value=None), \
                patch.object(store, "search_by_name", return_value=[]):
            resolution = await resolver.resolve("Press")

        assert resolution.exercise.id == existing.id


@pytest.mark.unit
class TestCatalog:
    """The resolver consults and feeds an injected catalog."""

    @pytest.mark.asyncio
    async def test_catalog_hit_skips_store(self, store, embeddings):
        """A warm catalog answers exact lookups."""
        [existing] = store.seed([{"slug": "back-squat", "name": "Back Squat"}])
        catalog = ExerciseCatalog(store)
        catalog.refresh()
        resolver = ExerciseResolver(store, embeddings, catalog=catalog, metadata_enabled=False)

        with patch.object(store, "find_by_slug", side_effect=AssertionError("store queried")):
            resolution = await resolver.resolve("Back Squat")

        assert resolution.exercise.id == existing.id

    @pytest.mark.asyncio
    async def test_created_identity_cached(self, store, embeddings):
        """New identities are added to the catalog."""
        catalog = ExerciseCatalog(store)
        resolver = ExerciseResolver(store, embeddings, catalog=catalog, metadata_enabled=False)

        resolution = await resolver.resolve("Sled Push")

        assert catalog.get("sled-push") == resolution.exercise


def two_block_draft(*names):
    return WorkoutDraft(
        name="Test",
        blocks=[
            BlockDraft(exercises=[ExerciseDraft(exercise_name=names[0], order_in_block=0)]),
            BlockDraft(
                exercises=[
                    ExerciseDraft(exercise_name=name, order_in_block=i)
                    for i, name in enumerate(names[1:])
                ]
            ),
        ],
    )


@pytest.mark.unit
class TestResolveWorkout:
    """Tests for resolve_workout."""

    @pytest.mark.asyncio
    async def test_every_placeholder_resolved(self, resolver, store):
        """Every exercise gets an id and slug and loses its placeholder."""
        store.seed([{"slug": "back-squat", "name": "Back Squat"}])

        resolved = await resolver.resolve_workout(
            two_block_draft("Glute bridges", "Back Squat", "Box Jumps")
        )

        for exercise in resolved.exercises:
            assert exercise.is_resolved
            assert exercise.exercise_name is None
            assert store.find_by_id(exercise.exercise_id).slug == exercise.exercise_slug
        assert [e.exercise_slug for e in resolved.exercises] == [
            "glute-bridges",
            "back-squat",
            "box-jumps",
        ]

    @pytest.mark.asyncio
    async def test_same_slug_resolved_once(self, resolver, store, oracle):
        """Spellings of one exercise share an identity and one creation."""
        resolved = await resolver.resolve_workout(
            two_block_draft("Pull-Up", "pull-up", "PULL-UP")
        )

        assert len({e.exercise_id for e in resolved.exercises}) == 1
        assert store.count() == 1
        assert len(oracle.calls_for(METADATA_FEATURE_NAME)) == 1

    @pytest.mark.asyncio
    async def test_input_draft_untouched(self, resolver):
        """Resolution returns a new draft."""
        draft = two_block_draft("Sled Push", "Box Jumps")

        await resolver.resolve_workout(draft)

        assert all(e.exercise_id is None for e in draft.exercises)

    @pytest.mark.asyncio
    async def test_failures_aggregated(self, resolver):
        """Every failing placeholder is reported together."""
        draft = two_block_draft("Sled Push", "Box Jumps")

        async def fail_some(name, context=None):
            raise ResolutionFailed(f"nope: {name}", exercise_name=name)

        with patch.object(resolver, "resolve", side_effect=fail_some):
            with pytest.raises(ResolutionFailed) as exc_info:
                await resolver.resolve_workout(draft)

        assert exc_info.value.details == ["nope: Sled Push", "nope: Box Jumps"]

    @pytest.mark.asyncio
    async def test_unusable_name_fails(self, resolver):
        """A placeholder with no usable slug fails the workout."""
        with pytest.raises(ResolutionFailed):
            await resolver.resolve_workout(two_block_draft("???", "Box Jumps"))
