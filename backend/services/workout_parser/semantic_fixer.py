"""
Semantic fixer: makes set counts agree with what the text declares.

Two rules are checked:
- an exercise whose own prescription implies a set count ("3 x 8",
  "4 sets", "5 3 1") has exactly that many sets
- otherwise, when the block declares a shared count ("Superset A (3 sets)"),
  every exercise in the block has that many sets

Repairs go through the oracle, but only the sets-array lengths it proposes
are used. The current draft is resized (truncate, or append defaulted sets)
so prescriptions, identifiers and every other field stay exactly as they were.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from application.exceptions import SemanticRepairExhausted
from application.ports import ModelTier, TextOracle
from backend.core.prescription import group_set_count, implied_set_count
from backend.services.workout_parser.prompts import (
    SEMANTIC_REPAIR_SYSTEM_PROMPT,
    build_repair_message,
)
from backend.services.workout_parser.repair_loop import RepairLoop
from domain.models import ExerciseDraft, SetDraft, WeightUnit, WorkoutDraft
from shared.ai_context import AIRequestContext, with_feature

logger = logging.getLogger(__name__)

FEATURE_NAME = "workout_semantic_repair"


@dataclass(frozen=True)
class SemanticViolation:
    """An exercise whose set count disagrees with the declared count."""

    block_index: int
    exercise_index: int
    actual: int
    expected: int
    source: str

    @property
    def path(self) -> str:
        return f"blocks.{self.block_index}.exercises.{self.exercise_index}.sets"

    def __str__(self) -> str:
        return (
            f"{self.path}: has {self.actual} set(s) but the {self.source} "
            f"declares {self.expected}"
        )


def find_semantic_violations(draft: WorkoutDraft) -> List[SemanticViolation]:
    violations = []
    for block_index, block in enumerate(draft.blocks):
        block_count = group_set_count(block.label, block.notes)
        for exercise_index, exercise in enumerate(block.exercises):
            own_count = implied_set_count(exercise.prescription)
            if own_count is not None:
                expected, source = own_count, "prescription"
            elif block_count is not None:
                expected, source = block_count, "block"
            else:
                continue
            if len(exercise.sets) != expected:
                violations.append(
                    SemanticViolation(
                        block_index=block_index,
                        exercise_index=exercise_index,
                        actual=len(exercise.sets),
                        expected=expected,
                        source=source,
                    )
                )
    return violations


def resize_sets(exercise: ExerciseDraft, count: int) -> ExerciseDraft:
    """Truncate or pad ``exercise.sets`` to ``count`` entries."""
    if count < 1 or count == len(exercise.sets):
        return exercise
    if count < len(exercise.sets):
        return exercise.model_copy(update={"sets": exercise.sets[:count]})

    unit = exercise.sets[0].weight_unit if exercise.sets else WeightUnit.LBS.value
    padding = [
        SetDraft(set_number=n, weight_unit=unit, notes="")
        for n in range(len(exercise.sets) + 1, count + 1)
    ]
    return exercise.model_copy(update={"sets": exercise.sets + padding})


def _proposed_set_counts(content: Any) -> dict[tuple[int, int], int]:
    """Sets-array length per (block, exercise) position in an oracle reply."""
    counts: dict[tuple[int, int], int] = {}
    if not isinstance(content, dict) or not isinstance(content.get("blocks"), list):
        return counts
    for block_index, block in enumerate(content["blocks"]):
        if not isinstance(block, dict) or not isinstance(block.get("exercises"), list):
            continue
        for exercise_index, exercise in enumerate(block["exercises"]):
            if isinstance(exercise, dict) and isinstance(exercise.get("sets"), list):
                counts[(block_index, exercise_index)] = len(exercise["sets"])
    return counts


def apply_set_counts(draft: WorkoutDraft, counts: dict[tuple[int, int], int]) -> WorkoutDraft:
    blocks = []
    for block_index, block in enumerate(draft.blocks):
        exercises = [
            resize_sets(exercise, counts[(block_index, exercise_index)])
            if (block_index, exercise_index) in counts
            else exercise
            for exercise_index, exercise in enumerate(block.exercises)
        ]
        blocks.append(block.model_copy(update={"exercises": exercises}))
    return draft.model_copy(update={"blocks": blocks})


class SemanticFixer:
    """Bounded set-count repair loop."""

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
        Return a copy of ``draft`` whose set counts match the declared counts.

        Raises:
            SemanticRepairExhausted: If violations remain after the last repair
        """
        ctx = with_feature(context, FEATURE_NAME)

        async def repair(current: WorkoutDraft, violations: Sequence[Any]) -> WorkoutDraft:
            return await self._repair(original_text, current, violations, ctx)

        loop = RepairLoop(
            "SemanticFixer",
            detect=find_semantic_violations,
            repair=repair,
            max_iterations=self._max_iterations,
        )
        outcome = await loop.run(draft)

        if not outcome.converged:
            violations = [str(v) for v in outcome.violations]
            raise SemanticRepairExhausted(
                f"Workout still has {len(violations)} set-count violation(s) "
                f"after {outcome.iterations} repair(s)",
                violations=violations,
                iterations=outcome.iterations,
            )
        return outcome.value

    async def _repair(
        self,
        original_text: str,
        draft: WorkoutDraft,
        violations: Sequence[Any],
        context: AIRequestContext,
    ) -> WorkoutDraft:
        try:
            response = await self._oracle.call(
                SEMANTIC_REPAIR_SYSTEM_PROMPT,
                build_repair_message(original_text, draft.to_payload(), violations),
                ModelTier.REASONING,
                json_mode=True,
                temperature=0.0,
                max_tokens=8000,
                context=context,
            )
        except Exception as e:
            # Transient errors were already retried by the oracle; a failed
            # call spends one iteration of the budget.
            logger.warning(f"Semantic repair call failed, keeping previous draft: {e}")
            return draft

        counts = _proposed_set_counts(response.content)
        if not counts:
            logger.warning("Semantic repair reply had no sets arrays")
        return apply_set_counts(draft, counts)
