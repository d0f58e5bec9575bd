"""
Exercise resolution: placeholder names to canonical ExerciseIdentity rows.

Resolution order (first match wins):
1. exact slug (catalog, then store)
2. trigram similarity over existing names
3. embedding nearest neighbour
4. create a new identity, optionally with an oracle-generated display
   name and tags, always with an embedding and ``needs_review=True``

Creation is idempotent under concurrency because the store owns slug
uniqueness: the insert is an upsert on the slug, so racing creations for
one slug all get the same row back. Nothing here takes a lock.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from application.exceptions import OracleResponseError, ResolutionFailed
from application.ports import EmbeddingService, ExerciseStore, ModelTier, TextOracle
from backend.core.normalize import normalize_name, slugify
from backend.core.similarity import cosine_similarity
from backend.services.exercise_catalog import ExerciseCatalog
from backend.services.workout_parser.prompts import (
    EXERCISE_METADATA_SYSTEM_PROMPT,
    build_exercise_metadata_message,
)
from domain.models import ExerciseCreate, ExerciseIdentity, WorkoutDraft
from shared.ai_context import AIRequestContext, with_feature

logger = logging.getLogger(__name__)

T = TypeVar("T")

METADATA_FEATURE_NAME = "exercise_metadata"
EMBEDDING_FEATURE_NAME = "exercise_embedding"


class ResolutionMethod(str, Enum):
    """How a placeholder was resolved."""

    EXACT = "exact"
    FUZZY = "fuzzy"
    SEMANTIC = "semantic"
    CREATED = "created"


@dataclass
class Resolution:
    """Resolved identity plus how it was found."""

    exercise: ExerciseIdentity
    method: ResolutionMethod
    score: float = 1.0


class ExerciseMetadata(BaseModel):
    """Display name and tags generated for a new exercise."""

    name: str = Field(..., min_length=1)
    tags: List[str] = Field(..., min_length=3, max_length=6)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: List[str]) -> List[str]:
        tags = []
        for tag in v:
            tag = tag.strip().lower()
            if tag and tag not in tags:
                tags.append(tag)
        return tags


class ExerciseResolver:
    """Maps placeholder exercise names to canonical identities."""

    def __init__(
        self,
        store: ExerciseStore,
        embeddings: EmbeddingService,
        oracle: Optional[TextOracle] = None,
        catalog: Optional[ExerciseCatalog] = None,
        *,
        fuzzy_threshold: float = 0.3,
        fuzzy_limit: int = 5,
        semantic_threshold: float = 0.75,
        collision_min_similarity: float = 0.5,
        metadata_enabled: bool = True,
    ):
        """
        Args:
            store: Exercise identity store (owns slug uniqueness)
            embeddings: Embedding service for semantic search and new rows
            oracle: Text oracle for display name/tags of new exercises
            catalog: Optional slug cache consulted before the store
            fuzzy_threshold: Minimum trigram similarity for a fuzzy match
            fuzzy_limit: Candidates fetched per fuzzy search
            semantic_threshold: Minimum cosine similarity for a semantic match
            collision_min_similarity: Minimum cosine similarity between a new
                name and an existing row with the same slug
            metadata_enabled: Ask the oracle for metadata when creating
        """
        if metadata_enabled and oracle is None:
            raise ValueError("An oracle is required when metadata generation is enabled")
        self._store = store
        self._embeddings = embeddings
        self._oracle = oracle
        self._catalog = catalog
        self._fuzzy_threshold = fuzzy_threshold
        self._fuzzy_limit = fuzzy_limit
        self._semantic_threshold = semantic_threshold
        self._collision_min_similarity = collision_min_similarity
        self._metadata_enabled = metadata_enabled

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking store/embedding call off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: func(*args))

    # -------------------------------------------------------------------------
    # Single name
    # -------------------------------------------------------------------------

    async def get_or_create_exercise_by_name(
        self,
        name: str,
        context: Optional[AIRequestContext] = None,
    ) -> ExerciseIdentity:
        """Resolve ``name`` to an identity, creating one if nothing matches."""
        resolution = await self.resolve(name, context)
        return resolution.exercise

    async def resolve(
        self,
        name: str,
        context: Optional[AIRequestContext] = None,
    ) -> Resolution:
        """
        Resolve ``name`` and report which strategy matched.

        Raises:
            ResolutionFailed: If the name can be neither matched nor created
        """
        slug = slugify(name or "")
        if not slug:
            raise ResolutionFailed(f"Exercise name '{name}' has no usable slug", exercise_name=name)

        try:
            resolution = await self._resolve(name, slug, context)
        except ResolutionFailed:
            raise
        except Exception as e:
            logger.exception(f"Resolution failed for '{name}'")
            raise ResolutionFailed(f"Could not resolve exercise '{name}': {e}", exercise_name=name) from e

        logger.info(
            f"Resolved '{name}' -> {resolution.exercise.slug} "
            f"({resolution.method.value}, score={resolution.score:.2f})"
        )
        return resolution

    async def _resolve(self, name: str, slug: str, context: Optional[AIRequestContext]) -> Resolution:
        # 1. Exact slug
        if self._catalog is not None:
            cached = self._catalog.get(slug)
            if cached is not None:
                return Resolution(cached, ResolutionMethod.EXACT)

        existing = await self._run(self._store.find_by_slug, slug)
        if existing is not None:
            self._remember(existing)
            return Resolution(existing, ResolutionMethod.EXACT)

        normalized = normalize_name(name)

        # 2. Trigram similarity
        candidates = await self._run(self._store.search_by_name, normalized, self._fuzzy_limit)
        best = max(candidates, key=lambda c: c.score, default=None)
        if best is not None and best.score >= self._fuzzy_threshold:
            self._remember(best.exercise)
            return Resolution(best.exercise, ResolutionMethod.FUZZY, best.score)

        # 3. Embedding nearest neighbour
        try:
            query_embedding = await self._run(
                self._embeddings.generate_embedding,
                normalized,
                with_feature(context, EMBEDDING_FEATURE_NAME),
            )
            hits = await self._run(
                self._store.search_by_embedding,
                query_embedding,
                1,
                self._semantic_threshold,
            )
        except Exception as e:
            logger.warning(f"Semantic search failed for '{name}', falling back to creation: {e}")
            hits = []
        if hits and hits[0].score >= self._semantic_threshold:
            self._remember(hits[0].exercise)
            return Resolution(hits[0].exercise, ResolutionMethod.SEMANTIC, hits[0].score)

        # 4. Create
        return await self._create(name, slug, context)

    async def _create(self, name: str, slug: str, context: Optional[AIRequestContext]) -> Resolution:
        display_name = name.strip()
        tags: List[str] = []
        if self._metadata_enabled:
            metadata = await self._generate_metadata(display_name, context)
            if metadata is not None:
                display_name, tags = metadata.name, metadata.tags

        embedding = await self._run(
            self._embeddings.generate_embedding,
            display_name,
            with_feature(context, EMBEDDING_FEATURE_NAME),
        )

        result = await self._run(
            self._store.upsert,
            ExerciseCreate(
                slug=slug,
                name=display_name,
                tags=tags,
                needs_review=True,
                embedding=embedding,
            ),
        )

        if not result.created:
            self._check_collision(name, result.exercise, embedding)
            logger.info(f"Slug '{slug}' was created concurrently; reusing {result.exercise.id}")
            self._remember(result.exercise)
            return Resolution(result.exercise, ResolutionMethod.EXACT)

        logger.info(f"Created exercise '{display_name}' ({slug}) pending review")
        self._remember(result.exercise)
        return Resolution(result.exercise, ResolutionMethod.CREATED)

    def _check_collision(
        self,
        name: str,
        existing: ExerciseIdentity,
        embedding: List[float],
    ) -> None:
        """Refuse to merge a name into a same-slug row that means something else."""
        if not existing.embedding or len(existing.embedding) != len(embedding):
            return
        similarity = cosine_similarity(existing.embedding, embedding)
        if similarity < self._collision_min_similarity:
            raise ResolutionFailed(
                f"Exercise '{name}' collides with existing '{existing.name}' on slug "
                f"'{existing.slug}' (similarity {similarity:.2f})",
                exercise_name=name,
            )

    async def _generate_metadata(
        self,
        name: str,
        context: Optional[AIRequestContext],
    ) -> Optional[ExerciseMetadata]:
        """Oracle-generated display name and tags; None when the reply is unusable."""
        try:
            response = await self._oracle.call(
                EXERCISE_METADATA_SYSTEM_PROMPT,
                build_exercise_metadata_message(name),
                ModelTier.FAST,
                json_mode=True,
                temperature=0.0,
                max_tokens=300,
                context=with_feature(context, METADATA_FEATURE_NAME),
            )
            return ExerciseMetadata.model_validate(response.content)
        except (OracleResponseError, ValidationError) as e:
            logger.warning(f"Unusable metadata for '{name}', creating with name only: {e}")
            return None

    def _remember(self, exercise: ExerciseIdentity) -> None:
        if self._catalog is not None:
            self._catalog.put(exercise)

    # -------------------------------------------------------------------------
    # Whole workout
    # -------------------------------------------------------------------------

    async def resolve_workout(
        self,
        draft: WorkoutDraft,
        context: Optional[AIRequestContext] = None,
    ) -> WorkoutDraft:
        """
        Resolve every placeholder in ``draft``.

        Placeholders are grouped by slug (the first spelling wins) and each
        slug is resolved once, concurrently with the others.

        Raises:
            ResolutionFailed: If any placeholder fails; names every failure
        """
        placeholders: Dict[str, str] = {}
        for exercise in draft.exercises:
            if exercise.is_resolved:
                continue
            name = exercise.exercise_name or ""
            slug = slugify(name)
            if not slug:
                raise ResolutionFailed(f"Exercise name '{name}' has no usable slug", exercise_name=name)
            placeholders.setdefault(slug, name)

        logger.info(f"Resolving {len(placeholders)} distinct exercise placeholder(s)")

        results = await asyncio.gather(
            *(self.resolve(name, context) for name in placeholders.values()),
            return_exceptions=True,
        )

        resolved: Dict[str, ExerciseIdentity] = {}
        failures: List[ResolutionFailed] = []
        for slug, result in zip(placeholders, results):
            if isinstance(result, ResolutionFailed):
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                resolved[slug] = result.exercise

        if failures:
            names = [f.exercise_name for f in failures]
            error = ResolutionFailed(
                f"Could not resolve {len(failures)} exercise(s): {', '.join(map(str, names))}",
                exercise_name=names[0],
            )
            error.details = [f.message for f in failures]
            raise error from failures[0]

        blocks = []
        for block in draft.blocks:
            exercises = []
            for exercise in block.exercises:
                if not exercise.is_resolved:
                    identity = resolved[slugify(exercise.exercise_name or "")]
                    exercise = exercise.model_copy(
                        update={
                            "exercise_id": identity.id,
                            "exercise_slug": identity.slug,
                            "exercise_name": None,
                        }
                    )
                exercises.append(exercise)
            blocks.append(block.model_copy(update={"exercises": exercises}))
        return draft.model_copy(update={"blocks": blocks})
