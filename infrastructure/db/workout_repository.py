"""
Supabase implementation of WorkoutRepository.

The workout graph is written by the create_workout_with_blocks stored
procedure so that workout, blocks, exercise instances and sets are inserted
in a single transaction. Foreign keys from exercise_instances.exercise_id to
exercises.id make an unresolved reference roll the whole write back.
"""
import json
import logging
from typing import Any, Dict

from supabase import Client

from application.exceptions import WorkoutCreationError
from domain.models import Workout

logger = logging.getLogger(__name__)


def workout_to_rpc_payload(workout: Workout) -> Dict[str, Any]:
    """Shape a Workout into the nested JSON the stored procedure expects."""
    return {
        "id": workout.id,
        "user_id": workout.owner_id,
        "name": workout.name,
        "notes": workout.notes,
        "date": workout.date.isoformat(),
        "last_modified_time": workout.last_modified_time,
        "blocks": [
            {
                "id": block.id,
                "label": block.label,
                "notes": block.notes,
                "order_in_workout": block.order_in_workout,
                "exercises": [
                    {
                        "id": exercise.id,
                        "exercise_id": exercise.exercise_id,
                        "order_in_block": exercise.order_in_block,
                        "prescription": exercise.prescription,
                        "notes": exercise.notes,
                        "sets": [
                            {
                                "id": s.id,
                                "set_number": s.set_number,
                                "reps": s.reps,
                                "weight": s.weight,
                                "weight_unit": s.weight_unit.value,
                                "duration": s.duration,
                                "rpe": s.rpe,
                                "notes": s.notes,
                            }
                            for s in exercise.sets
                        ],
                    }
                    for exercise in block.exercises
                ],
            }
            for block in workout.blocks
        ],
    }


class SupabaseWorkoutRepository:
    """Supabase implementation of the WorkoutRepository protocol."""

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected, not global)
        """
        self._client = client

    def create_workout_atomic(self, workout: Workout) -> Workout:
        """
        Create a workout with all blocks, exercise instances and sets atomically.

        Uses a PostgreSQL stored procedure to ensure all inserts happen
        in a single transaction. If any insert fails, the entire operation
        is rolled back.

        Args:
            workout: Fully keyed workout aggregate

        Returns:
            The persisted workout

        Raises:
            WorkoutCreationError: If the RPC call fails
        """
        try:
            response = self._client.rpc(
                "create_workout_with_blocks",
                {"p_workout": json.dumps(workout_to_rpc_payload(workout))},
            ).execute()

            if response.data is None:
                raise WorkoutCreationError("RPC returned no data")

            logger.info(f"Created workout {workout.id} via RPC")
            return workout
        except Exception as e:
            if isinstance(e, WorkoutCreationError):
                raise
            raise WorkoutCreationError(f"Atomic workout creation failed: {e}") from e
