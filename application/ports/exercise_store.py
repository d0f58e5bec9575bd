"""
Exercise Store Interface (Port).

Defines the contract for the canonical exercise identity table.
Implementations may use Supabase, in-memory storage, or other backends.

The store is the only place where identity uniqueness is enforced: the
slug column is unique and ``upsert`` is insert-or-return-existing on slug
conflict, so any number of concurrent creations for one slug collapse to a
single row.
"""

from typing import List, Optional, Protocol

from domain.models import ExerciseCreate, ExerciseIdentity, ScoredExercise, UpsertResult


class ExerciseStore(Protocol):
    """Abstract interface for canonical exercise identities."""

    def find_by_slug(self, slug: str) -> Optional[ExerciseIdentity]:
        """
        Exact lookup by slug.

        Args:
            slug: Canonical slug (e.g., "dumbbell-bench-press")

        Returns:
            ExerciseIdentity or None if not found
        """
        ...

    def find_by_id(self, exercise_id: str) -> Optional[ExerciseIdentity]:
        """
        Lookup by surrogate key.

        Args:
            exercise_id: Exercise id

        Returns:
            ExerciseIdentity or None if not found
        """
        ...

    def list_all(self, limit: int = 1000) -> List[ExerciseIdentity]:
        """
        List identities, used to warm the exercise catalog.

        Args:
            limit: Maximum number of rows to return

        Returns:
            List of identities
        """
        ...

    def search_by_name(self, query: str, limit: int = 5) -> List[ScoredExercise]:
        """
        Trigram similarity search over exercise names.

        Args:
            query: Normalized exercise name
            limit: Maximum candidates to return

        Returns:
            Candidates ordered by descending similarity (0..1)
        """
        ...

    def search_by_embedding(
        self,
        embedding: List[float],
        limit: int = 1,
        threshold: float = 0.75,
    ) -> List[ScoredExercise]:
        """
        Nearest-neighbour search over name embeddings.

        Args:
            embedding: Query vector
            limit: Maximum candidates to return
            threshold: Minimum cosine similarity

        Returns:
            Candidates with cosine similarity >= threshold, closest first
        """
        ...

    def upsert(self, exercise: ExerciseCreate) -> UpsertResult:
        """
        Insert a new identity, or return the existing row on slug conflict.

        Args:
            exercise: Values for the new row

        Returns:
            UpsertResult with the stored identity and whether it was created
        """
        ...
