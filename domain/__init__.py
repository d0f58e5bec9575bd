"""
Domain layer for the workout parser.

Pure models with no knowledge of the text oracle, the exercise store or
any other infrastructure.
"""

from domain.models import (
    ExerciseDraft,
    ExerciseIdentity,
    Workout,
    WorkoutDraft,
)

__all__ = [
    "ExerciseDraft",
    "ExerciseIdentity",
    "Workout",
    "WorkoutDraft",
]
