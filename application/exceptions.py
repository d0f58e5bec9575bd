"""
Application-layer exceptions.

Every terminal condition of a parse is one of the WorkoutParseError
subclasses below. Each carries a ``kind`` so callers can tell bad input
(the user should change the text) from an upstream or internal failure
(the user can retry later). Nothing is ever downgraded to a partial result.

Infrastructure adapters raise the lower-level errors at the bottom of this
module; the pipeline wraps them into the taxonomy.
"""

from enum import Enum
from typing import List, Optional


class FailureKind(str, Enum):
    """Who is at fault for a failed parse."""

    BAD_INPUT = "bad_input"
    UPSTREAM = "upstream"


class WorkoutParseError(Exception):
    """Base class for every terminal parse failure."""

    kind: FailureKind = FailureKind.UPSTREAM

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    @property
    def is_bad_input(self) -> bool:
        return self.kind is FailureKind.BAD_INPUT


class ValidationRejected(WorkoutParseError):
    """Input is not a workout description, or is unsafe to send to the oracle.

    Raised before any extraction, resolution or exercise creation happens,
    so a rejected request has no side effects.
    """

    kind = FailureKind.BAD_INPUT

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        confidence: Optional[float] = None,
    ):
        super().__init__(message, [reason] if reason else None)
        self.reason = reason
        self.confidence = confidence


class ContentValidationFailed(WorkoutParseError):
    """The classifier reply did not have the expected shape."""


class ExtractionFailed(WorkoutParseError):
    """Oracle output could not be turned into a workout draft."""


class ResolutionFailed(WorkoutParseError):
    """A placeholder exercise name could not be matched or created."""

    def __init__(self, message: str, exercise_name: Optional[str] = None):
        super().__init__(message)
        self.exercise_name = exercise_name


class RepairExhausted(WorkoutParseError):
    """A bounded repair loop reached its iteration cap without converging."""

    def __init__(self, message: str, violations: List[str], iterations: int):
        super().__init__(message, violations)
        self.violations = violations
        self.iterations = iterations


class SchemaRepairExhausted(RepairExhausted):
    """Structural violations remained after the last syntax repair."""


class SemanticRepairExhausted(RepairExhausted):
    """Set-count violations remained after the last semantic repair."""


class PersistenceFailed(WorkoutParseError):
    """The workout graph could not be written. Nothing was persisted."""


class WorkoutCreationError(Exception):
    """Error during atomic workout creation.

    Raised by repositories when the transactional insert of a workout with
    its blocks, exercise instances and sets fails. This could be due to
    database errors, constraint violations, or RPC failures.
    """

    pass


class OracleResponseError(Exception):
    """The text oracle returned no usable content (empty, or no JSON object)."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw
