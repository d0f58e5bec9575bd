"""
Draft workout models produced while a workout description is being parsed.

Drafts are ephemeral: every parsing stage takes a draft and returns a new
one (``model_copy``), so no stage mutates a value another stage holds.

Fields are deliberately permissive. The extraction and repair stages work
with whatever the text oracle returns, and it is the schema validator's job
to decide whether a draft is structurally valid. Keys serialize in camelCase
(``setNumber``, ``weightUnit``) because that is the shape exchanged with the
oracle.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WeightUnit(str, Enum):
    """Canonical weight units."""

    LBS = "lbs"
    KG = "kg"


class _DraftModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class SetDraft(_DraftModel):
    """
    A single planned set.

    ``reps``, ``weight`` and ``duration`` are null until the set is
    performed. Null means "not yet performed", which is different from the
    field being absent, so they are always serialized.
    """

    set_number: Any = Field(..., description="1-indexed position within the exercise")
    weight_unit: Any = Field(default=WeightUnit.LBS.value, description="lbs or kg")
    reps: Any = None
    weight: Any = None
    duration: Any = None
    rpe: Any = None
    notes: Any = None


class ExerciseDraft(_DraftModel):
    """
    An exercise within a block.

    Before resolution the exercise carries a placeholder ``exercise_name``
    and, straight out of extraction, a ``num_sets`` scalar instead of a sets
    array. After resolution it carries ``exercise_id``/``exercise_slug``.
    """

    exercise_name: Optional[str] = None
    exercise_id: Optional[str] = None
    exercise_slug: Optional[str] = None
    order_in_block: Any = 0
    prescription: Optional[str] = None
    notes: Any = None
    num_sets: Optional[int] = None
    sets: List[SetDraft] = Field(default_factory=list)

    @property
    def is_resolved(self) -> bool:
        return bool(self.exercise_id)


class BlockDraft(_DraftModel):
    """A group of exercises (straight sets, superset, circuit, warm-up...)."""

    label: Optional[str] = None
    notes: Any = None
    exercises: List[ExerciseDraft] = Field(default_factory=list)


class WorkoutDraft(_DraftModel):
    """Workout as it moves through the parsing pipeline."""

    name: Any = None
    notes: Any = None
    date: Any = None
    last_modified_time: Any = None
    blocks: List[BlockDraft] = Field(default_factory=list)

    @property
    def exercises(self) -> List[ExerciseDraft]:
        """All exercises across blocks, in document order."""
        return [exercise for block in self.blocks for exercise in block.exercises]

    @property
    def total_sets(self) -> int:
        return sum(len(exercise.sets) for exercise in self.exercises)

    def to_payload(self) -> Dict[str, Any]:
        """
        Serialize to the camelCase document exchanged with the oracle.

        Placeholder-only fields (``exerciseName``, ``numSets``) are dropped
        once an exercise has been resolved and expanded.
        """
        payload = self.model_dump(mode="json", by_alias=True)
        for block in payload.get("blocks", []):
            for exercise in block.get("exercises", []):
                if exercise.get("exerciseId"):
                    exercise.pop("exerciseName", None)
                if exercise.get("sets"):
                    exercise.pop("numSets", None)
        return payload
