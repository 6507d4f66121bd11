"""Pydantic schemas for challenge enrollments."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from ..catalog.schemas import ChallengeData
from ..db.schemas import DocumentModel, coerce_timestamp, from_iso
from ..progress.schemas import DerivedProgress
from .models import UserChallenge


class EnrollmentStatus(str, Enum):
    """Status of an enrollment. Completed is terminal."""

    ACTIVE = "active"
    COMPLETED = "completed"


class EnrollmentRecord(DocumentModel):
    """A ``userChallenges`` document."""

    id: Optional[str] = None
    user_id: str
    challenge_id: str
    challenge_data: ChallengeData = Field(default_factory=ChallengeData)
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    progress: float = 0.0
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_validator("start_date", "end_date", "created_at", "completed_at", mode="before")
    @classmethod
    def parse_timestamps(cls, v):
        return coerce_timestamp(v)

    @field_validator("challenge_data", mode="before")
    @classmethod
    def default_challenge_data(cls, v):
        return v or {}

    @field_validator("progress", mode="before")
    @classmethod
    def parse_progress(cls, v):
        try:
            return max(0.0, float(v or 0))
        except (TypeError, ValueError):
            return 0.0

    @classmethod
    def from_model(cls, enrollment: UserChallenge) -> "EnrollmentRecord":
        """Build from a UserChallenge row."""
        return cls(
            id=enrollment.id,
            user_id=enrollment.user_id,
            challenge_id=enrollment.challenge_id,
            challenge_data=enrollment.get_challenge_data(),
            status=EnrollmentStatus(enrollment.status),
            start_date=from_iso(enrollment.start_date),
            end_date=from_iso(enrollment.end_date),
            progress=enrollment.progress or 0.0,
            created_at=from_iso(enrollment.created_at),
            completed_at=from_iso(enrollment.completed_at),
        )


@dataclass
class EnrollmentProgress:
    """An enrollment with its freshly derived progress."""

    enrollment: UserChallenge
    progress: DerivedProgress
    newly_completed: bool = False

    @property
    def is_completed(self) -> bool:
        return self.enrollment.status == EnrollmentStatus.COMPLETED.value
