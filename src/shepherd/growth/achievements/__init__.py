"""Achievement ledger module."""

from .ledger import (
    CHALLENGE_COMPLETED,
    GOAL_COMPLETED,
    AchievementLedger,
    challenge_achievement_id,
)
from .models import UserAchievement

__all__ = [
    "AchievementLedger",
    "UserAchievement",
    "CHALLENGE_COMPLETED",
    "GOAL_COMPLETED",
    "challenge_achievement_id",
]
