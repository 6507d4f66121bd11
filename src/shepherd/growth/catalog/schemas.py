"""Pydantic schemas for challenge templates."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChallengeCategory(str, Enum):
    """Area of spiritual growth a challenge belongs to."""

    BIBLE = "bible"
    PRAYER = "prayer"
    SERVICE = "service"
    COMMUNITY = "community"
    PERSONAL = "personal"


class Difficulty(str, Enum):
    """Difficulty rating shown in the catalog."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ProgressType(str, Enum):
    """How progress toward a challenge is measured."""

    STREAK = "streak"  # Consecutive qualifying days
    ACCUMULATIVE = "accumulative"  # Running sum of an activity field


CATEGORY_LABELS = {
    ChallengeCategory.BIBLE: "Bible Reading",
    ChallengeCategory.PRAYER: "Prayer",
    ChallengeCategory.SERVICE: "Service",
    ChallengeCategory.COMMUNITY: "Community",
    ChallengeCategory.PERSONAL: "Personal",
}


class ChallengeTemplate(BaseModel):
    """Immutable catalog definition of a joinable challenge."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    category: ChallengeCategory
    difficulty: Difficulty = Difficulty.MEDIUM
    duration_days: Optional[int] = Field(None, ge=1, alias="duration")
    progress_type: ProgressType = Field(ProgressType.STREAK, alias="type")
    target: float = Field(..., gt=0)
    unit: str = "days"
    icon: Optional[str] = None
    color: Optional[str] = None

    @property
    def is_open_ended(self) -> bool:
        """True when the challenge has no fixed duration."""
        return self.duration_days is None

    @property
    def category_label(self) -> str:
        """Human-readable category name."""
        return CATEGORY_LABELS[self.category]


class CatalogFile(BaseModel):
    """On-disk catalog table."""

    version: str = "1"
    templates: list[ChallengeTemplate]

    @field_validator("templates")
    @classmethod
    def unique_ids(cls, v):
        """Validate template ids are unique."""
        seen = set()
        for template in v:
            if template.id in seen:
                raise ValueError(f"duplicate template id: {template.id}")
            seen.add(template.id)
        return v


DEFAULT_STREAK_TARGET = 30
DEFAULT_ACCUMULATIVE_TARGET = 10


class ChallengeData(BaseModel):
    """Snapshot of a template frozen into an enrollment at join time.

    Field names follow the stored ``challengeData`` map. Older records may
    lack fields; those fall back to defaults here instead of at call sites.
    """

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    description: str = ""
    category: str = ChallengeCategory.PERSONAL.value
    difficulty: Optional[str] = None
    duration: Optional[int] = None
    type: ProgressType = ProgressType.STREAK
    target: Optional[float] = None
    unit: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, v):
        """Treat a missing progress type as streak."""
        return v or ProgressType.STREAK.value

    @field_validator("target", mode="before")
    @classmethod
    def parse_target(cls, v):
        """Parse numeric strings; non-positive or unparsable targets become None."""
        if v is None or v == "":
            return None
        try:
            v = float(v)
        except (TypeError, ValueError):
            return None
        return v if v > 0 else None

    @property
    def effective_target(self) -> float:
        """Target with the per-type default applied."""
        if self.target:
            return self.target
        if self.type == ProgressType.ACCUMULATIVE:
            return float(DEFAULT_ACCUMULATIVE_TARGET)
        return float(DEFAULT_STREAK_TARGET)

    @classmethod
    def from_template(cls, template: ChallengeTemplate) -> "ChallengeData":
        """Freeze a template's fields."""
        return cls(
            title=template.title,
            description=template.description,
            category=template.category.value,
            difficulty=template.difficulty.value,
            duration=template.duration_days,
            type=template.progress_type,
            target=template.target,
            unit=template.unit,
        )
