"""
Content Validator Service.

First stage of the workout parser: one fast oracle call decides whether the
text describes a workout at all. Rejected text never reaches extraction,
so it cannot create exercises or any other side effect.
"""

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from application.exceptions import ContentValidationFailed, OracleResponseError
from application.ports import ModelTier, TextOracle
from backend.services.workout_parser.prompts import (
    CONTENT_VALIDATION_SYSTEM_PROMPT,
    build_validation_message,
)
from shared.ai_context import AIRequestContext, with_feature

logger = logging.getLogger(__name__)

FEATURE_NAME = "workout_validation"


class ContentValidationResult(BaseModel):
    """Classifier verdict for a piece of text."""

    model_config = ConfigDict(populate_by_name=True)

    is_workout: bool = Field(..., alias="isWorkout")
    confidence: float = Field(..., ge=0, le=1)
    reason: Optional[str] = None

    def accepts(self, cutoff: float) -> bool:
        """True when the text is a workout with at least ``cutoff`` confidence."""
        return self.is_workout and self.confidence >= cutoff


class ContentValidator:
    """Classifies raw text as workout or not via the text oracle."""

    def __init__(self, oracle: TextOracle):
        self._oracle = oracle

    async def validate(
        self,
        text: str,
        context: Optional[AIRequestContext] = None,
    ) -> ContentValidationResult:
        """
        Classify ``text``.

        Raises:
            ContentValidationFailed: If the oracle reply is not a valid verdict
        """
        ctx = with_feature(context, FEATURE_NAME)
        try:
            response = await self._oracle.call(
                CONTENT_VALIDATION_SYSTEM_PROMPT,
                build_validation_message(text),
                ModelTier.FAST,
                json_mode=True,
                temperature=0.0,
                max_tokens=200,
                context=ctx,
            )
        except OracleResponseError as e:
            raise ContentValidationFailed(f"Content validation reply was not JSON: {e}") from e

        try:
            result = ContentValidationResult.model_validate(response.content)
        except ValidationError as e:
            issues = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            ]
            raise ContentValidationFailed(
                "Content validation reply parsing failed", details=issues
            ) from e

        logger.info(
            f"Content validation: is_workout={result.is_workout} confidence={result.confidence:.2f}"
        )
        return result
