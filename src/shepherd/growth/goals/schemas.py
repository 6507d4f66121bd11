"""Pydantic schemas for custom goals."""

import math
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..catalog.schemas import ChallengeCategory
from ..db.schemas import DocumentModel, coerce_timestamp, from_iso


class GoalStatus(str, Enum):
    """Status of a goal. Completed is terminal."""

    ACTIVE = "active"
    COMPLETED = "completed"


class GoalCreate(BaseModel):
    """Schema for creating a goal."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category: ChallengeCategory = ChallengeCategory.PERSONAL
    target: float = Field(..., gt=0)
    unit: str = Field("times", max_length=50)
    deadline: Optional[date] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        """Trim surrounding whitespace."""
        return v.strip() if isinstance(v, str) else v

    @field_validator("target", mode="before")
    @classmethod
    def parse_target(cls, v):
        """Parse the target from free text, e.g. "10" or " 2.5 "."""
        if isinstance(v, str):
            v = v.strip()
            try:
                v = float(v)
            except ValueError:
                raise ValueError("target must be a number")
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError("target must be a finite number")
        return v

    @field_validator("unit", mode="before")
    @classmethod
    def default_unit(cls, v):
        """Blank units fall back to "times"."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return "times"
        return v.strip()


class GoalRecord(DocumentModel):
    """A ``userGoals`` document."""

    id: Optional[str] = None
    user_id: str
    title: str = ""
    description: str = ""
    category: str = ChallengeCategory.PERSONAL.value
    target: float = 1.0
    unit: str = "times"
    current_progress: float = 0.0
    deadline: Optional[date] = None
    status: GoalStatus = GoalStatus.ACTIVE
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_validator("created_at", "completed_at", mode="before")
    @classmethod
    def parse_timestamps(cls, v):
        return coerce_timestamp(v)

    @field_validator("deadline", mode="before")
    @classmethod
    def parse_deadline(cls, v):
        """Accept a date, an ISO date or a full timestamp."""
        v = coerce_timestamp(v)
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and len(v) > 10:
            return datetime.fromisoformat(v).date()
        return v

    @field_validator("target", mode="before")
    @classmethod
    def parse_target(cls, v):
        """Unparsable or non-positive targets are treated as 1."""
        try:
            v = float(v)
        except (TypeError, ValueError):
            return 1.0
        return v if v > 0 else 1.0

    @field_validator("current_progress", mode="before")
    @classmethod
    def parse_progress(cls, v):
        try:
            return max(0.0, float(v or 0))
        except (TypeError, ValueError):
            return 0.0

    @field_validator("description", "title", "unit", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @classmethod
    def from_model(cls, goal) -> "GoalRecord":
        """Build from a UserGoal row."""
        return cls(
            id=goal.id,
            user_id=goal.user_id,
            title=goal.title,
            description=goal.description or "",
            category=goal.category,
            target=goal.target,
            unit=goal.unit,
            current_progress=goal.current_progress,
            deadline=date.fromisoformat(goal.deadline) if goal.deadline else None,
            status=GoalStatus(goal.status),
            created_at=from_iso(goal.created_at),
            completed_at=from_iso(goal.completed_at),
        )
