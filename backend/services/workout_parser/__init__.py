"""
Workout parser stages.

Each stage takes a WorkoutDraft (or raw text) and returns a new value; the
ParseWorkoutUseCase in application.use_cases wires them together.
"""

from backend.services.workout_parser.exercise_resolver import (
    ExerciseResolver,
    Resolution,
    ResolutionMethod,
)
from backend.services.workout_parser.persistence_formatter import PersistenceFormatter
from backend.services.workout_parser.semantic_fixer import SemanticFixer
from backend.services.workout_parser.structure_extractor import StructureExtractor
from backend.services.workout_parser.syntax_fixer import SyntaxFixer

__all__ = [
    "ExerciseResolver",
    "PersistenceFormatter",
    "Resolution",
    "ResolutionMethod",
    "SemanticFixer",
    "StructureExtractor",
    "SyntaxFixer",
]
