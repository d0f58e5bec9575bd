"""
Supabase implementation of ExerciseStore.

Tables:
- exercises(id, slug UNIQUE, name, needs_review, name_embedding vector)
- exercise_tags(exercise_id, tag)

Similarity searches go through stored procedures:
- search_exercises_by_name(query, match_count): pg_trgm similarity
- match_exercises(query_embedding, match_threshold, match_count): pgvector cosine
"""
import json
import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from domain.models import ExerciseCreate, ExerciseIdentity, ScoredExercise, UpsertResult

logger = logging.getLogger(__name__)

_SELECT = "id, slug, name, needs_review, name_embedding, exercise_tags(tag)"


def _parse_embedding(value: Any) -> Optional[List[float]]:
    """pgvector columns come back from PostgREST as "[0.1,0.2,...]" strings."""
    if value is None:
        return None
    if isinstance(value, str):
        value = json.loads(value)
    return [float(x) for x in value]


def row_to_exercise(row: Dict[str, Any]) -> ExerciseIdentity:
    """Convert an exercises row (with embedded tags) to an ExerciseIdentity."""
    tags = row.get("tags")
    if tags is None:
        tags = [t["tag"] for t in row.get("exercise_tags") or [] if t.get("tag")]
    return ExerciseIdentity(
        id=str(row["id"]),
        slug=row["slug"],
        name=row["name"],
        tags=list(tags),
        needs_review=bool(row.get("needs_review", False)),
        embedding=_parse_embedding(row.get("name_embedding")),
    )


class SupabaseExerciseStore:
    """
    Supabase implementation of the ExerciseStore protocol.

    Slug uniqueness is enforced by the database; ``upsert`` relies on
    ON CONFLICT (slug) DO NOTHING and re-reads the winning row.
    """

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected, not global)
        """
        self._client = client

    def find_by_slug(self, slug: str) -> Optional[ExerciseIdentity]:
        result = self._client.table("exercises").select(_SELECT).eq("slug", slug).limit(1).execute()
        if result.data:
            return row_to_exercise(result.data[0])
        return None

    def find_by_id(self, exercise_id: str) -> Optional[ExerciseIdentity]:
        result = self._client.table("exercises").select(_SELECT).eq("id", exercise_id).limit(1).execute()
        if result.data:
            return row_to_exercise(result.data[0])
        return None

    def list_all(self, limit: int = 1000) -> List[ExerciseIdentity]:
        result = self._client.table("exercises").select(_SELECT).limit(limit).execute()
        return [row_to_exercise(row) for row in result.data or []]

    def search_by_name(self, query: str, limit: int = 5) -> List[ScoredExercise]:
        """Trigram similarity search using the search_exercises_by_name RPC."""
        result = self._client.rpc(
            "search_exercises_by_name",
            {
                "query": query,
                "match_count": limit,
            },
        ).execute()
        return [
            ScoredExercise(exercise=row_to_exercise(row), score=float(row.get("similarity", 0.0)))
            for row in result.data or []
        ]

    def search_by_embedding(
        self,
        embedding: List[float],
        limit: int = 1,
        threshold: float = 0.75,
    ) -> List[ScoredExercise]:
        """Search exercises by embedding similarity using match_exercises RPC."""
        result = self._client.rpc(
            "match_exercises",
            {
                "query_embedding": embedding,
                "match_threshold": threshold,
                "match_count": limit,
            },
        ).execute()
        return [
            ScoredExercise(exercise=row_to_exercise(row), score=float(row.get("similarity", 0.0)))
            for row in result.data or []
        ]

    def upsert(self, exercise: ExerciseCreate) -> UpsertResult:
        """
        Insert the exercise unless its slug exists, then return the stored row.

        Tags are only written by the caller that actually created the row.
        """
        inserted = (
            self._client.table("exercises")
            .upsert(
                {
                    "slug": exercise.slug,
                    "name": exercise.name,
                    "needs_review": exercise.needs_review,
                    "name_embedding": exercise.embedding,
                },
                on_conflict="slug",
                ignore_duplicates=True,
            )
            .execute()
        )
        created = bool(inserted.data)

        if created and exercise.tags:
            exercise_id = inserted.data[0]["id"]
            self._client.table("exercise_tags").insert(
                [{"exercise_id": exercise_id, "tag": tag} for tag in exercise.tags]
            ).execute()

        stored = self.find_by_slug(exercise.slug)
        if stored is None:
            raise RuntimeError(f"Exercise '{exercise.slug}' missing after upsert")

        if created:
            logger.info(f"Inserted exercise {stored.id} ({exercise.slug})")
        return UpsertResult(exercise=stored, created=created)
