"""SQLAlchemy base shared by every growth table.

Each feature package declares its own tables against ``Base``:
- challenges: user_challenges
- goals: user_goals
- achievements: user_achievements
- activity: prayer_entries, volunteer_applications, reading_plan_days
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()
