"""
Ports for the workout parser.

Architecture follows the Ports & Adapters (Hexagonal) pattern:
- Ports: Abstract interfaces defined here (what the pipeline needs)
- Adapters: Concrete implementations in infrastructure/ and backend/services/

Usage:
    from application.ports import ExerciseStore, TextOracle

    class ExerciseResolver:
        def __init__(self, store: ExerciseStore, oracle: TextOracle):
            ...
"""

from application.ports.embedding_service import EmbeddingService
from application.ports.exercise_store import ExerciseStore
from application.ports.text_oracle import ModelTier, OracleResponse, TextOracle
from application.ports.workout_repository import WorkoutRepository

__all__ = [
    "EmbeddingService",
    "ExerciseStore",
    "ModelTier",
    "OracleResponse",
    "TextOracle",
    "WorkoutRepository",
]
