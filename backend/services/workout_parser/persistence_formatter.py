"""
Persistence formatter: validated draft to a persisted Workout.

Every exercise reference is turned into a foreign key through the exercise
store, surrogate keys are generated, and the whole graph (workout, blocks,
exercise instances, sets) is written in one transaction. An unresolvable
reference aborts before anything is written; a failed write is rolled back
by the repository.
"""

import asyncio
import logging
import uuid
from datetime import date as Date
from typing import Dict, Optional

from application.exceptions import PersistenceFailed, WorkoutCreationError
from application.ports import ExerciseStore, WorkoutRepository
from backend.services.exercise_catalog import ExerciseCatalog
from domain.models import (
    ExerciseDraft,
    ExerciseIdentity,
    ExerciseInstance,
    SetInstance,
    Workout,
    WorkoutBlock,
    WorkoutDraft,
)

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class PersistenceFormatter:
    """Materializes drafts into durable rows."""

    def __init__(
        self,
        store: ExerciseStore,
        workout_repo: WorkoutRepository,
        catalog: Optional[ExerciseCatalog] = None,
    ):
        self._store = store
        self._workout_repo = workout_repo
        self._catalog = catalog

    async def persist(self, draft: WorkoutDraft, owner_id: Optional[str] = None) -> Workout:
        """
        Write ``draft`` and return the hydrated aggregate.

        Raises:
            PersistenceFailed: If a reference cannot be resolved or the write fails
        """
        loop = asyncio.get_running_loop()
        try:
            identities = await loop.run_in_executor(None, lambda: self._lookup_identities(draft))
        except PersistenceFailed:
            raise
        except Exception as e:
            logger.error(f"Exercise lookup failed before persisting: {e}")
            raise PersistenceFailed(f"Exercise references could not be checked: {e}") from e

        try:
            workout = self.build_workout(draft, identities, owner_id)
        except PersistenceFailed:
            raise
        except (ValueError, TypeError) as e:
            raise PersistenceFailed(f"Workout could not be materialized: {e}") from e

        try:
            saved = await loop.run_in_executor(
                None, lambda: self._workout_repo.create_workout_atomic(workout)
            )
        except WorkoutCreationError as e:
            logger.error(f"Atomic workout creation failed: {e}")
            raise PersistenceFailed(f"Workout could not be saved: {e}") from e
        except Exception as e:
            logger.error(f"Workout repository error: {e}")
            raise PersistenceFailed(f"Workout could not be saved: {e}") from e

        logger.info(
            f"Persisted workout {saved.id}: {len(saved.blocks)} blocks, "
            f"{saved.total_exercises} exercises, {saved.total_sets} sets"
        )
        return saved

    def _lookup_identities(self, draft: WorkoutDraft) -> Dict[str, ExerciseIdentity]:
        """Identity per exercise reference (id or slug), or PersistenceFailed."""
        identities: Dict[str, ExerciseIdentity] = {}
        for exercise in draft.exercises:
            key = self._reference(exercise)
            if key in identities:
                continue
            identity = self._find(exercise)
            if identity is None:
                raise PersistenceFailed(
                    f"Exercise reference '{key}' does not match any exercise"
                )
            identities[key] = identity
        return identities

    @staticmethod
    def _reference(exercise: ExerciseDraft) -> str:
        if exercise.exercise_id:
            return exercise.exercise_id
        if exercise.exercise_slug:
            return exercise.exercise_slug
        raise PersistenceFailed(
            f"Exercise '{exercise.exercise_name or '?'}' was never resolved"
        )

    def _find(self, exercise: ExerciseDraft) -> Optional[ExerciseIdentity]:
        if exercise.exercise_id:
            return self._store.find_by_id(exercise.exercise_id)
        if self._catalog is not None:
            cached = self._catalog.get(exercise.exercise_slug)
            if cached is not None:
                return cached
        return self._store.find_by_slug(exercise.exercise_slug)

    def build_workout(
        self,
        draft: WorkoutDraft,
        identities: Dict[str, ExerciseIdentity],
        owner_id: Optional[str] = None,
    ) -> Workout:
        """Assign surrogate keys and foreign keys to every row of ``draft``."""
        workout_id = _new_id()
        blocks = []
        for block_index, block in enumerate(draft.blocks):
            block_id = _new_id()
            exercises = []
            for exercise in block.exercises:
                identity = identities[self._reference(exercise)]
                instance_id = _new_id()
                exercises.append(
                    ExerciseInstance(
                        id=instance_id,
                        workout_block_id=block_id,
                        exercise_id=identity.id,
                        exercise_slug=identity.slug,
                        order_in_block=exercise.order_in_block,
                        prescription=exercise.prescription,
                        notes=exercise.notes,
                        sets=[
                            SetInstance(
                                id=_new_id(),
                                exercise_instance_id=instance_id,
                                set_number=s.set_number,
                                weight_unit=s.weight_unit,
                                reps=s.reps,
                                weight=s.weight,
                                duration=s.duration,
                                rpe=s.rpe,
                                notes=s.notes,
                            )
                            for s in exercise.sets
                        ],
                    )
                )
            blocks.append(
                WorkoutBlock(
                    id=block_id,
                    workout_id=workout_id,
                    order_in_workout=block_index,
                    label=block.label,
                    notes=block.notes,
                    exercises=exercises,
                )
            )

        return Workout(
            id=workout_id,
            owner_id=owner_id,
            name=draft.name,
            notes=draft.notes,
            date=Date.fromisoformat(draft.date),
            last_modified_time=draft.last_modified_time,
            blocks=blocks,
        )
