"""
Domain models for the workout parser.

- WorkoutDraft / BlockDraft / ExerciseDraft / SetDraft: ephemeral values
  passed between parsing stages
- ExerciseIdentity: canonical, shared exercise rows (one per slug)
- Workout: the persisted aggregate returned once a parse succeeds

Usage:
    >>> from domain.models import WorkoutDraft, BlockDraft, ExerciseDraft

    >>> draft = WorkoutDraft(
    ...     name="Lower Body",
    ...     date="2025-11-01",
    ...     blocks=[
    ...         BlockDraft(
    ...             label="Superset A",
    ...             exercises=[ExerciseDraft(exercise_name="Back Squat", num_sets=4)],
    ...         )
    ...     ],
    ... )
    >>> draft.to_payload()["blocks"][0]["exercises"][0]["numSets"]
    4
"""

from domain.models.exercise_identity import (
    ExerciseCreate,
    ExerciseIdentity,
    ScoredExercise,
    UpsertResult,
)
from domain.models.workout import ExerciseInstance, SetInstance, Workout, WorkoutBlock
from domain.models.workout_draft import (
    BlockDraft,
    ExerciseDraft,
    SetDraft,
    WeightUnit,
    WorkoutDraft,
)

__all__ = [
    "BlockDraft",
    "ExerciseCreate",
    "ExerciseDraft",
    "ExerciseIdentity",
    "ExerciseInstance",
    "ScoredExercise",
    "SetDraft",
    "SetInstance",
    "UpsertResult",
    "WeightUnit",
    "Workout",
    "WorkoutBlock",
    "WorkoutDraft",
]
