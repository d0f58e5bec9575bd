"""
ParseWorkout Use Case.

Turns a free-text workout description into a persisted Workout:

    sanitize -> validate content -> extract -> expand sets -> resolve
    exercises -> repair syntax -> repair semantics -> persist

Stages run one after another on a single request; only exercise resolution
fans out. Every failure surfaces as a WorkoutParseError subclass, and
rejected input stops before any stage with side effects runs.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date as Date
from typing import Optional, Union

from application.exceptions import (
    ContentValidationFailed,
    ExtractionFailed,
    PersistenceFailed,
    ValidationRejected,
    WorkoutParseError,
)
from backend.core.sanitization import DEFAULT_MAX_LENGTH, sanitize_workout_text
from backend.core.set_expander import expand_workout
from backend.services.content_validator import ContentValidationResult, ContentValidator
from backend.services.workout_parser.exercise_resolver import ExerciseResolver
from backend.services.workout_parser.persistence_formatter import PersistenceFormatter
from backend.services.workout_parser.semantic_fixer import SemanticFixer
from backend.services.workout_parser.structure_extractor import StructureExtractor
from backend.services.workout_parser.syntax_fixer import SyntaxFixer
from domain.models import WeightUnit, Workout
from shared.ai_context import AIRequestContext

logger = logging.getLogger(__name__)


@dataclass
class ParseOptions:
    """
    Caller options for a parse.

    Attributes:
        date: Workout date (defaults to today)
        weight_unit: Unit for every generated set (defaults to lbs)
        owner_id: Opaque owner reference, only used when persisting
    """

    date: Optional[Date] = None
    weight_unit: Optional[Union[WeightUnit, str]] = None
    owner_id: Optional[str] = None


@dataclass
class ParseWorkoutResult:
    """Result of the ParseWorkout use case execution."""

    workout: Workout
    validation: ContentValidationResult
    request_id: str


class ParseWorkoutUseCase:
    """
    Use case for parsing workout text into a persisted workout.

    Dependencies are injected via constructor for testability.

    Usage:
        >>> use_case = ParseWorkoutUseCase(
        ...     content_validator=ContentValidator(oracle),
        ...     extractor=StructureExtractor(oracle),
        ...     resolver=ExerciseResolver(store, embeddings, oracle),
        ...     syntax_fixer=SyntaxFixer(oracle),
        ...     semantic_fixer=SemanticFixer(oracle),
        ...     formatter=PersistenceFormatter(store, workout_repo),
        ... )
        >>> result = await use_case.execute(text, ParseOptions(owner_id="user-123"))
        >>> result.workout.total_sets
        10
    """

    def __init__(
        self,
        content_validator: ContentValidator,
        extractor: StructureExtractor,
        resolver: ExerciseResolver,
        syntax_fixer: SyntaxFixer,
        semantic_fixer: SemanticFixer,
        formatter: PersistenceFormatter,
        *,
        confidence_cutoff: float = 0.7,
        max_text_length: int = DEFAULT_MAX_LENGTH,
        default_weight_unit: Union[WeightUnit, str] = WeightUnit.LBS,
        environment: str = "production",
    ) -> None:
        self._content_validator = content_validator
        self._extractor = extractor
        self._resolver = resolver
        self._syntax_fixer = syntax_fixer
        self._semantic_fixer = semantic_fixer
        self._formatter = formatter
        self._confidence_cutoff = confidence_cutoff
        self._max_text_length = max_text_length
        self._default_weight_unit = WeightUnit(default_weight_unit)
        self._environment = environment

    @property
    def resolver(self) -> ExerciseResolver:
        return self._resolver

    async def execute(
        self,
        text: str,
        options: Optional[ParseOptions] = None,
    ) -> ParseWorkoutResult:
        """
        Run the full pipeline.

        Args:
            text: Free-text workout description
            options: Date, weight unit and owner

        Returns:
            ParseWorkoutResult with the persisted workout

        Raises:
            ValidationRejected: Text is empty, unsafe or not a workout
            WorkoutParseError: Any other terminal stage failure
        """
        options = options or ParseOptions()
        weight_unit = WeightUnit(options.weight_unit or self._default_weight_unit)
        request_id = str(uuid.uuid4())
        context = AIRequestContext(
            user_id=options.owner_id or None,
            feature_name="workout_parse",
            request_id=request_id,
            environment=self._environment,
        )

        sanitize_workout_text(text, self._max_text_length)

        validation = await self._validate(text, context)

        logger.info(f"[{request_id}] Extracting structure")
        try:
            draft = await self._extractor.extract(text, options.date, context)
        except WorkoutParseError:
            raise
        except Exception as e:
            raise ExtractionFailed(f"Extraction failed: {e}") from e

        draft = expand_workout(draft, weight_unit)
        logger.info(f"[{request_id}] Expanded to {draft.total_sets} sets")

        draft = await self._resolver.resolve_workout(draft, context)
        draft = await self._syntax_fixer.fix(text, draft, context)
        draft = await self._semantic_fixer.fix(text, draft, context)

        try:
            workout = await self._formatter.persist(draft, options.owner_id)
        except WorkoutParseError:
            raise
        except Exception as e:
            raise PersistenceFailed(f"Persistence failed: {e}") from e
        logger.info(f"[{request_id}] Parsed workout {workout.id}")
        return ParseWorkoutResult(workout=workout, validation=validation, request_id=request_id)

    async def _validate(self, text: str, context: AIRequestContext) -> ContentValidationResult:
        try:
            validation = await self._content_validator.validate(text, context)
        except WorkoutParseError:
            raise
        except Exception as e:
            raise ContentValidationFailed(f"Content validation failed: {e}") from e

        if not validation.accepts(self._confidence_cutoff):
            logger.warning(
                f"Rejected text: is_workout={validation.is_workout} "
                f"confidence={validation.confidence:.2f} reason={validation.reason}"
            )
            raise ValidationRejected(
                "Text does not look like a workout",
                reason=validation.reason,
                confidence=validation.confidence,
            )
        return validation
