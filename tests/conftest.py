"""Shared fixtures: in-memory fakes for every port the parser depends on."""
import pytest

from tests.fakes import (
    FakeEmbeddingService,
    FakeExerciseStore,
    FakeTextOracle,
    FakeWorkoutRepository,
)


@pytest.fixture
def store():
    return FakeExerciseStore()


@pytest.fixture
def embeddings():
    return FakeEmbeddingService()


@pytest.fixture
def oracle():
    return FakeTextOracle()


@pytest.fixture
def workout_repo(store):
    return FakeWorkoutRepository(exercise_store=store)
