"""
Fake port implementations for testing.

In-memory fakes for the exercise store, workout repository, embedding
service and text oracle. They implement the same Protocol interfaces as the
real adapters, so the whole parsing pipeline can run in tests with no
database or network access.

Usage:
    from tests.fakes import FakeExerciseStore, FakeTextOracle

    store = FakeExerciseStore()
    store.seed([{"slug": "back-squat", "name": "Back Squat"}])

    oracle = FakeTextOracle()
    oracle.set_response("workout_validation", {"isWorkout": True, "confidence": 0.95})
"""
from tests.fakes.embedding_service import FakeEmbeddingService
from tests.fakes.exercise_store import FakeExerciseStore, trigram_similarity
from tests.fakes.text_oracle import FakeTextOracle, OracleCall, exercise_metadata_responder
from tests.fakes.workout_repository import FakeWorkoutRepository

__all__ = [
    "FakeEmbeddingService",
    "FakeExerciseStore",
    "FakeTextOracle",
    "FakeWorkoutRepository",
    "OracleCall",
    "exercise_metadata_responder",
    "trigram_similarity",
]
