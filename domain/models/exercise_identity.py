"""
Canonical exercise identity.

One row per slug. Identities are created lazily the first time a parsed
exercise name resolves to nothing that already exists, and reused forever
after that.
"""

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field


class ExerciseIdentity(BaseModel):
    """A persisted canonical exercise."""

    id: str = Field(..., min_length=1, description="Surrogate key")
    slug: str = Field(..., min_length=1, description="Unique canonical key")
    name: str = Field(..., min_length=1, description="Display name")
    tags: List[str] = Field(default_factory=list)
    needs_review: bool = Field(
        default=False,
        description="True when the row was auto-created during parsing",
    )
    embedding: Optional[List[float]] = Field(
        default=None,
        description="Name embedding used for semantic lookup",
    )


class ExerciseCreate(BaseModel):
    """Values for inserting a new identity; the store assigns the id."""

    slug: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    tags: List[str] = Field(default_factory=list)
    needs_review: bool = True
    embedding: Optional[List[float]] = None


@dataclass
class ScoredExercise:
    """Search hit with its similarity score (0..1, higher is closer)."""

    exercise: ExerciseIdentity
    score: float


@dataclass
class UpsertResult:
    """Outcome of insert-or-return-existing on slug conflict."""

    exercise: ExerciseIdentity
    created: bool
