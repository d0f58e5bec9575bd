"""
Infrastructure Layer for the workout parser.

- db/: Supabase implementations of the exercise store and workout repository
"""

from infrastructure.db import SupabaseExerciseStore, SupabaseWorkoutRepository

__all__ = [
    "SupabaseExerciseStore",
    "SupabaseWorkoutRepository",
]
