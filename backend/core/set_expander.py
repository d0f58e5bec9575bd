"""
Expansion of concise set counts into explicit set drafts.

Extraction asks the oracle for a set count (``numSets``) per exercise
instead of a full sets array, which keeps oracle output small. This module
turns that count into SetDrafts. It is pure and makes no external calls.
"""

from typing import List

from domain.models import ExerciseDraft, SetDraft, WeightUnit, WorkoutDraft


def expand_sets(count: int, weight_unit: WeightUnit | str = WeightUnit.LBS) -> List[SetDraft]:
    """
    Build ``count`` empty sets numbered 1..count.

    >>> [s.set_number for s in expand_sets(3)]
    [1, 2, 3]
    """
    if count < 0:
        raise ValueError(f"Set count must be >= 0, got {count}")
    unit = WeightUnit(weight_unit).value
    return [
        SetDraft(set_number=n, weight_unit=unit, notes="")
        for n in range(1, count + 1)
    ]


def expand_exercise(
    exercise: ExerciseDraft,
    weight_unit: WeightUnit | str = WeightUnit.LBS,
) -> ExerciseDraft:
    """
    Replace ``num_sets`` with explicit sets.

    An exercise that already has sets, or has no count, is returned as is,
    so calling this twice is a no-op.
    """
    if exercise.sets or exercise.num_sets is None:
        return exercise
    return exercise.model_copy(
        update={
            "sets": expand_sets(exercise.num_sets, weight_unit),
            "num_sets": None,
        }
    )


def expand_workout(
    draft: WorkoutDraft,
    weight_unit: WeightUnit | str = WeightUnit.LBS,
) -> WorkoutDraft:
    """Expand every exercise in the draft."""
    blocks = [
        block.model_copy(
            update={
                "exercises": [
                    expand_exercise(exercise, weight_unit)
                    for exercise in block.exercises
                ]
            }
        )
        for block in draft.blocks
    ]
    return draft.model_copy(update={"blocks": blocks})
