"""
Persisted workout aggregate.

A Workout is what the parsing pipeline hands back once the draft has been
written: every row carries its surrogate key and every exercise instance
references an existing ExerciseIdentity.
"""

from datetime import date as Date
from typing import List, Optional

from pydantic import BaseModel, Field

from domain.models.workout_draft import WeightUnit


class SetInstance(BaseModel):
    """A planned set. Performance fields stay null until the set is done."""

    id: str
    exercise_instance_id: str
    set_number: int = Field(..., ge=1)
    weight_unit: WeightUnit = WeightUnit.LBS
    reps: Optional[int] = None
    weight: Optional[float] = None
    duration: Optional[int] = None
    rpe: Optional[float] = Field(default=None, ge=1, le=10)
    notes: Optional[str] = None


class ExerciseInstance(BaseModel):
    """An occurrence of an exercise inside a block."""

    id: str
    workout_block_id: str
    exercise_id: str = Field(..., min_length=1)
    exercise_slug: str = Field(..., min_length=1)
    order_in_block: int = Field(..., ge=0)
    prescription: Optional[str] = None
    notes: Optional[str] = None
    sets: List[SetInstance] = Field(..., min_length=1)


class WorkoutBlock(BaseModel):
    """An ordered group of exercise instances."""

    id: str
    workout_id: str
    order_in_workout: int = Field(..., ge=0)
    label: Optional[str] = None
    notes: Optional[str] = None
    exercises: List[ExerciseInstance] = Field(..., min_length=1)


class Workout(BaseModel):
    """
    Aggregate root for a persisted workout.

    Examples:
        >>> workout.total_sets
        10
        >>> workout.exercise_ids
        {'3f0c...', '8a1d...'}
    """

    id: str
    owner_id: Optional[str] = None
    name: str = Field(..., min_length=1)
    notes: Optional[str] = None
    date: Date
    last_modified_time: str
    blocks: List[WorkoutBlock] = Field(..., min_length=1)

    @property
    def total_exercises(self) -> int:
        return sum(len(block.exercises) for block in self.blocks)

    @property
    def total_sets(self) -> int:
        return sum(
            len(exercise.sets)
            for block in self.blocks
            for exercise in block.exercises
        )

    @property
    def exercise_ids(self) -> set[str]:
        return {
            exercise.exercise_id
            for block in self.blocks
            for exercise in block.exercises
        }
