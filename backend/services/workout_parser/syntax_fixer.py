"""
Syntax fixer: repairs structural schema violations via the text oracle.

Works on the camelCase document rather than on draft models, because a
broken draft (a string where a number belongs, "pounds" as a weight unit)
is exactly what has to be repaired. Exercise identifiers are copied back
after every repair; the oracle is never allowed to change them. A reply
that adds, drops or moves exercises between blocks is discarded, since
identifiers could no longer be matched to their exercises.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from application.exceptions import SchemaRepairExhausted
from application.ports import ModelTier, TextOracle
from backend.services.workout_parser.prompts import (
    SYNTAX_REPAIR_SYSTEM_PROMPT,
    build_repair_message,
)
from backend.services.workout_parser.repair_loop import RepairLoop
from backend.services.workout_parser.schema_validator import find_schema_violations
from domain.models import WorkoutDraft
from shared.ai_context import AIRequestContext, with_feature

logger = logging.getLogger(__name__)

FEATURE_NAME = "workout_syntax_repair"

Identifiers = Dict[Tuple[int, int], Tuple[Optional[str], Optional[str]]]


def _block_shape(payload: Any) -> Optional[List[int]]:
    """Exercise count per block, or None when the document has no usable blocks."""
    if not isinstance(payload, dict) or not isinstance(payload.get("blocks"), list):
        return None
    shape = []
    for block in payload["blocks"]:
        if not isinstance(block, dict) or not isinstance(block.get("exercises"), list):
            return None
        shape.append(len(block["exercises"]))
    return shape


def _collect_identifiers(draft: WorkoutDraft) -> Identifiers:
    return {
        (block_index, exercise_index): (exercise.exercise_id, exercise.exercise_slug)
        for block_index, block in enumerate(draft.blocks)
        for exercise_index, exercise in enumerate(block.exercises)
    }


def _restore_identifiers(payload: Any, identifiers: Identifiers) -> Any:
    """Put the original exerciseId/exerciseSlug back at each position."""
    if not isinstance(payload, dict) or not isinstance(payload.get("blocks"), list):
        return payload
    for block_index, block in enumerate(payload["blocks"]):
        if not isinstance(block, dict) or not isinstance(block.get("exercises"), list):
            continue
        for exercise_index, exercise in enumerate(block["exercises"]):
            original = identifiers.get((block_index, exercise_index))
            if original is None or not isinstance(exercise, dict):
                continue
            exercise["exerciseId"], exercise["exerciseSlug"] = original
    return payload


class SyntaxFixer:
    """Bounded schema repair loop."""

    def __init__(self, oracle: TextOracle, max_iterations: int = 3):
        self._oracle = oracle
        self._max_iterations = max_iterations

    async def fix(
        self,
        original_text: str,
        draft: WorkoutDraft,
        context: Optional[AIRequestContext] = None,
    ) -> WorkoutDraft:
        """
        Return a schema-valid copy of ``draft``.

        A draft that is already valid is returned without any oracle call.

        Raises:
            SchemaRepairExhausted: If violations remain after the last repair
        """
        identifiers = _collect_identifiers(draft)
        shape = [len(block.exercises) for block in draft.blocks]
        ctx = with_feature(context, FEATURE_NAME)

        async def repair(payload: Any, violations: Sequence[Any]) -> Any:
            repaired = await self._repair(original_text, payload, violations, ctx)
            if repaired is not payload and _block_shape(repaired) != shape:
                logger.warning(
                    f"Syntax repair changed the block layout to {_block_shape(repaired)} "
                    f"(expected {shape}), keeping previous document"
                )
                return payload
            return _restore_identifiers(repaired, identifiers)

        loop = RepairLoop(
            "SyntaxFixer",
            detect=find_schema_violations,
            repair=repair,
            max_iterations=self._max_iterations,
        )
        outcome = await loop.run(draft.to_payload())

        if not outcome.converged:
            violations = [str(v) for v in outcome.violations]
            raise SchemaRepairExhausted(
                f"Workout still has {len(violations)} schema violation(s) "
                f"after {outcome.iterations} repair(s)",
                violations=violations,
                iterations=outcome.iterations,
            )

        if outcome.iterations:
            logger.info(f"Schema converged after {outcome.iterations} repair(s)")
        return WorkoutDraft.model_validate(outcome.value)

    async def _repair(
        self,
        original_text: str,
        payload: Any,
        violations: Sequence[Any],
        context: AIRequestContext,
    ) -> Any:
        """One oracle repair. An unusable reply leaves the document unchanged."""
        try:
            response = await self._oracle.call(
                SYNTAX_REPAIR_SYSTEM_PROMPT,
                build_repair_message(original_text, payload, violations),
                ModelTier.REASONING,
                json_mode=True,
                temperature=0.0,
                max_tokens=8000,
                context=context,
            )
        except Exception as e:
            # Transient errors were already retried by the oracle; a failed
            # call spends one iteration of the budget.
            logger.warning(f"Syntax repair call failed, keeping previous document: {e}")
            return payload
        return response.content
