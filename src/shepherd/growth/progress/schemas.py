"""Pydantic schemas for derived progress."""

from enum import Enum

from pydantic import BaseModel, Field


class ProgressStatus(str, Enum):
    """Whether a progress value could be computed."""

    OK = "ok"
    UNSUPPORTED = "unsupported"  # No rule for this category/unit


class ProgressParams(BaseModel):
    """Inputs identifying which metric to compute."""

    category: str
    unit: str = ""
    target: float = Field(..., gt=0)


class DerivedProgress(BaseModel):
    """Progress computed on read; never persisted."""

    current: float = Field(0, ge=0)
    target: float = Field(0, ge=0)
    percentage: float = Field(0, ge=0, le=100)
    unit: str = ""
    status: ProgressStatus = ProgressStatus.OK

    @property
    def is_complete(self) -> bool:
        """True once the target is reached."""
        return self.status == ProgressStatus.OK and self.percentage >= 100

    @property
    def is_supported(self) -> bool:
        return self.status == ProgressStatus.OK

    @property
    def remaining(self) -> float:
        """Amount left to reach the target."""
        return max(0.0, self.target - self.current)

    @property
    def display(self) -> str:
        """Short "current / target unit" label."""
        return f"{_fmt(self.current)} / {_fmt(self.target)} {self.unit}".rstrip()


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"
