"""
Application layer for the workout parser.

- ports/: Abstract interfaces the pipeline depends on
- use_cases/: ParseWorkoutUseCase, the pipeline entrypoint
- exceptions: Failure taxonomy shared with infrastructure
"""
