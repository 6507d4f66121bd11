"""Challenge enrollment module.

Provides functionality for:
- Joining catalog challenges (frozen template snapshot)
- Active, completed and available views
- Progress evaluation with automatic completion and achievement awards
"""

from .manager import ChallengeManager, share_message
from .models import UserChallenge
from .schemas import EnrollmentProgress, EnrollmentRecord, EnrollmentStatus

__all__ = [
    "ChallengeManager",
    "share_message",
    "UserChallenge",
    "EnrollmentProgress",
    "EnrollmentRecord",
    "EnrollmentStatus",
]
