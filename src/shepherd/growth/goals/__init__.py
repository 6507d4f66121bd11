"""Custom goals module.

Provides functionality for:
- Creating freeform goals (title, target, unit, optional deadline)
- Self-reported progress updates with transactional completion
- Awarding the goal_completed achievement
"""

from .manager import GoalManager
from .models import UserGoal
from .schemas import GoalCreate, GoalRecord, GoalStatus

__all__ = [
    "GoalManager",
    "UserGoal",
    "GoalCreate",
    "GoalRecord",
    "GoalStatus",
]
