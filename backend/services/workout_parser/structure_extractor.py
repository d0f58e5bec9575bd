"""
Structure extraction: raw workout text to a WorkoutDraft.

The oracle answers in the concise schema (a ``numSets`` count per exercise
rather than a sets array). Whatever it returns, a few rules are enforced
here:

- ``orderInBlock`` comes from array position, never from the oracle
- for "X or Y" the first alternative is kept
- the date is the caller's date (today when none is given), never the
  oracle's; lastModifiedTime is now
- an exercise with more than ``max_sets_per_exercise`` sets is rejected
- missing workout, block and exercise notes become "" (present but empty)
"""

import logging
import re
from datetime import date as Date
from datetime import datetime, timezone
from typing import Any, Optional

from application.exceptions import ExtractionFailed, OracleResponseError
from application.ports import ModelTier, TextOracle
from backend.core.prescription import implied_set_count
from backend.services.workout_parser.prompts import (
    EXTRACTION_SYSTEM_PROMPT,
    build_extraction_message,
)
from domain.models import BlockDraft, ExerciseDraft, WorkoutDraft
from shared.ai_context import AIRequestContext, with_feature

logger = logging.getLogger(__name__)

FEATURE_NAME = "workout_extraction"

DEFAULT_MAX_SETS_PER_EXERCISE = 50

_ALTERNATIVE_SPLIT = re.compile(r"\s+or\s+", re.IGNORECASE)


def first_alternative(name: str) -> str:
    """
    >>> first_alternative("Back Squat or Trap Bar Deadlift")
    'Back Squat'
    """
    return _ALTERNATIVE_SPLIT.split(name.strip(), maxsplit=1)[0].strip()


def _coerce_count(value: Any) -> Optional[int]:
    """Set count from an int or numeric string; None when unusable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float) and value.is_integer() and value >= 0:
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _text_or_empty(value: Any) -> str:
    return value if isinstance(value, str) else ""


class StructureExtractor:
    """Oracle-driven conversion of workout text into a concise draft."""

    def __init__(
        self,
        oracle: TextOracle,
        max_sets_per_exercise: int = DEFAULT_MAX_SETS_PER_EXERCISE,
    ):
        self._oracle = oracle
        self._max_sets_per_exercise = max_sets_per_exercise

    async def extract(
        self,
        text: str,
        workout_date: Optional[Date] = None,
        context: Optional[AIRequestContext] = None,
    ) -> WorkoutDraft:
        """
        Extract a draft from ``text``.

        Exercises come back with ``exercise_name`` and ``num_sets`` set and no
        sets array; SetExpander runs next.

        Raises:
            ExtractionFailed: If the oracle output has no usable blocks or exercises
        """
        try:
            response = await self._oracle.call(
                EXTRACTION_SYSTEM_PROMPT,
                build_extraction_message(text),
                ModelTier.REASONING,
                json_mode=True,
                temperature=0.1,
                max_tokens=8000,
                context=with_feature(context, FEATURE_NAME),
            )
        except OracleResponseError as e:
            raise ExtractionFailed(f"Extraction reply was not JSON: {e}") from e

        draft = self._to_draft(
            response.content,
            workout_date=workout_date,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(
            f"Extracted {len(draft.blocks)} blocks with {len(draft.exercises)} exercises"
        )
        return draft

    def _to_draft(self, content: Any, workout_date: Optional[Date], timestamp: str) -> WorkoutDraft:
        if not isinstance(content, dict):
            raise ExtractionFailed("Extraction reply is not a JSON object")

        raw_blocks = content.get("blocks")
        if not isinstance(raw_blocks, list) or not raw_blocks:
            raise ExtractionFailed("Extraction reply has no blocks")

        blocks = [
            self._to_block(raw_block, index)
            for index, raw_block in enumerate(raw_blocks)
        ]

        name = content.get("name")
        return WorkoutDraft(
            name=name.strip() if isinstance(name, str) else name,
            notes=_text_or_empty(content.get("notes")),
            date=(workout_date or Date.today()).isoformat(),
            last_modified_time=timestamp,
            blocks=blocks,
        )

    def _to_block(self, raw_block: Any, block_index: int) -> BlockDraft:
        if not isinstance(raw_block, dict):
            raise ExtractionFailed(f"Block {block_index} is not an object")

        raw_exercises = raw_block.get("exercises")
        if not isinstance(raw_exercises, list) or not raw_exercises:
            raise ExtractionFailed(f"Block {block_index} has no exercises")

        label = raw_block.get("label")
        return BlockDraft(
            label=label if isinstance(label, str) else None,
            notes=_text_or_empty(raw_block.get("notes")),
            exercises=[
                self._to_exercise(raw_exercise, block_index, position)
                for position, raw_exercise in enumerate(raw_exercises)
            ],
        )

    def _to_exercise(self, raw: Any, block_index: int, position: int) -> ExerciseDraft:
        if not isinstance(raw, dict):
            raise ExtractionFailed(f"Exercise {block_index}.{position} is not an object")

        raw_name = raw.get("exerciseName")
        name = first_alternative(raw_name) if isinstance(raw_name, str) else ""
        if not name:
            raise ExtractionFailed(f"Exercise {block_index}.{position} has no name")

        prescription = raw.get("prescription")
        prescription = prescription.strip() if isinstance(prescription, str) else None

        # Unusable counts fall back to the prescription, then to zero sets,
        # which schema validation reports as an empty sets array.
        num_sets = _coerce_count(raw.get("numSets"))
        if num_sets is None:
            num_sets = implied_set_count(prescription) or 0
        if num_sets > self._max_sets_per_exercise:
            raise ExtractionFailed(
                f"Exercise {block_index}.{position} has {num_sets} sets, "
                f"more than the limit of {self._max_sets_per_exercise}"
            )

        return ExerciseDraft(
            exercise_name=name,
            order_in_block=position,
            prescription=prescription or None,
            notes=_text_or_empty(raw.get("notes")),
            num_sets=num_sets,
        )
