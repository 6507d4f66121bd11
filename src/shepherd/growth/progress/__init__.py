"""Progress computation for challenges and goals."""

from .engine import ProgressEngine, accumulate, clamp_percentage, streak_length
from .schemas import DerivedProgress, ProgressParams, ProgressStatus

__all__ = [
    "ProgressEngine",
    "accumulate",
    "clamp_percentage",
    "streak_length",
    "DerivedProgress",
    "ProgressParams",
    "ProgressStatus",
]
