"""
Structural schema for resolved workout drafts.

Validation is in-process and free, so the syntax repair loop runs it before
every oracle call. Scalars are strict: a numeric string such as "1" for
``setNumber`` is a violation, not something to coerce silently.
"""

from dataclasses import dataclass
from datetime import date as Date
from typing import Any, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


@dataclass(frozen=True)
class SchemaViolation:
    """One structural problem: dotted field path plus message."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


class _SchemaModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SetSchema(_SchemaModel):
    set_number: StrictInt = Field(..., ge=1)
    weight_unit: Literal["lbs", "kg"]
    reps: None
    weight: None
    duration: None
    rpe: Optional[Union[StrictInt, StrictFloat]] = None
    notes: Optional[StrictStr] = None

    @field_validator("rpe")
    @classmethod
    def check_rpe_range(cls, v):
        if v is not None and not 1 <= v <= 10:
            raise ValueError("rpe must be between 1 and 10")
        return v


class ExerciseSchema(_SchemaModel):
    exercise_id: StrictStr = Field(..., min_length=1)
    exercise_slug: Optional[StrictStr] = None
    order_in_block: StrictInt = Field(..., ge=0)
    prescription: Optional[StrictStr] = None
    notes: Optional[StrictStr] = None
    sets: List[SetSchema] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_set_numbers(self) -> "ExerciseSchema":
        numbers = [s.set_number for s in self.sets]
        expected = list(range(1, len(self.sets) + 1))
        if numbers != expected:
            raise ValueError(f"setNumber must run 1..{len(self.sets)} in order, got {numbers}")
        return self


class BlockSchema(_SchemaModel):
    label: Optional[StrictStr] = None
    notes: Optional[StrictStr] = None
    exercises: List[ExerciseSchema] = Field(..., min_length=1)


class WorkoutSchema(_SchemaModel):
    name: StrictStr = Field(..., min_length=1)
    notes: Optional[StrictStr] = None
    date: StrictStr = Field(..., pattern=DATE_PATTERN)
    last_modified_time: StrictStr = Field(..., min_length=1)
    blocks: List[BlockSchema] = Field(..., min_length=1)

    @field_validator("date")
    @classmethod
    def check_calendar_date(cls, v: str) -> str:
        try:
            Date.fromisoformat(v)
        except ValueError:
            raise ValueError(f"'{v}' is not a calendar date") from None
        return v


def _format_path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc)


def find_schema_violations(payload: Any) -> List[SchemaViolation]:
    """
    Check a camelCase workout document against the schema.

    Returns:
        Every violation found; empty when the document is valid
    """
    try:
        WorkoutSchema.model_validate(payload)
    except ValidationError as e:
        return [
            SchemaViolation(path=_format_path(err["loc"]), message=err["msg"])
            for err in e.errors()
        ]
    return []
