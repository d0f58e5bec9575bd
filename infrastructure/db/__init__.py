"""
Infrastructure Database Layer.

Supabase-backed implementations of the ports defined in application.ports.

Usage:
    from supabase import create_client
    from infrastructure.db import SupabaseExerciseStore, SupabaseWorkoutRepository

    client = create_client(url, key)
    store = SupabaseExerciseStore(client)
    workout_repo = SupabaseWorkoutRepository(client)
"""

from infrastructure.db.exercise_store import SupabaseExerciseStore
from infrastructure.db.workout_repository import SupabaseWorkoutRepository

__all__ = [
    "SupabaseExerciseStore",
    "SupabaseWorkoutRepository",
]
