"""
Application Use Cases for the workout parser.

Use cases orchestrate stage services and ports; dependencies are injected
via constructors for testability.

Usage:
    from application.use_cases import ParseOptions, ParseWorkoutUseCase

    result = await use_case.execute(text, ParseOptions(date=date(2025, 11, 1)))
"""

from application.use_cases.parse_workout import (
    ParseOptions,
    ParseWorkoutResult,
    ParseWorkoutUseCase,
)

__all__ = [
    "ParseOptions",
    "ParseWorkoutResult",
    "ParseWorkoutUseCase",
]
