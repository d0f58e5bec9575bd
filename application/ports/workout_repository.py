"""
Workout Repository Interface (Port).

Defines the contract for persisting a parsed workout graph.
Implementations may use Supabase, in-memory storage, or other backends.
"""

from typing import Protocol

from domain.models import Workout


class WorkoutRepository(Protocol):
    """Abstract interface for workout persistence."""

    def create_workout_atomic(self, workout: Workout) -> Workout:
        """
        Write workout, blocks, exercise instances and sets in one transaction.

        Either every row is written or none is. A constraint violation
        (for example an exercise_id with no matching exercise) rolls the
        whole write back.

        Args:
            workout: Fully keyed workout aggregate

        Returns:
            The persisted workout

        Raises:
            WorkoutCreationError: If the transactional write fails
        """
        ...
