"""Achievement ledger: an append-only set of achievement ids per user."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ..db.models import generate_uuid, utc_now_iso
from ..db.sqlite import Database, get_db
from ..errors import ValidationError, require_user
from .models import UserAchievement

logger = logging.getLogger(__name__)

GOAL_COMPLETED = "goal_completed"
CHALLENGE_COMPLETED = "challenge_completed"


def challenge_achievement_id(challenge_id: str) -> str:
    """Achievement id for finishing a specific catalog challenge."""
    return f"challenge:{challenge_id}"


class AchievementLedger:
    """Awards and lists user achievements."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize ledger.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def award(
        self,
        user_id: Optional[str],
        achievement_id: str,
        session: Optional[Session] = None,
    ) -> bool:
        """Add an achievement to the user's set.

        Uses a single insert that is ignored on the (user, achievement)
        unique key, so concurrent awards of the same id leave one row.

        Args:
            user_id: Recipient
            achievement_id: Identifier to add
            session: Existing session to join, if any

        Returns:
            True if the id was newly added, False if already present
        """
        user_id = require_user(user_id)
        if not isinstance(achievement_id, str) or not achievement_id.strip():
            raise ValidationError("Achievement id is required", field="achievement_id")

        stmt = (
            sqlite_insert(UserAchievement)
            .values(
                id=generate_uuid(),
                user_id=user_id,
                achievement_id=achievement_id,
                awarded_at=utc_now_iso(),
            )
            .on_conflict_do_nothing(index_elements=["user_id", "achievement_id"])
        )

        def _award(s: Session) -> bool:
            result = s.execute(stmt)
            return result.rowcount == 1

        if session is not None:
            added = _award(session)
        else:
            with self.db.get_session() as s:
                added = _award(s)
                s.commit()

        if added:
            logger.info("Awarded achievement %s to user %s", achievement_id, user_id)
        return added

    def list_achievements(self, user_id: Optional[str]) -> list[str]:
        """Achievement ids in the order they were unlocked."""
        user_id = require_user(user_id)
        with self.db.get_session() as session:
            stmt = (
                select(UserAchievement.achievement_id)
                .where(UserAchievement.user_id == user_id)
                .order_by(UserAchievement.awarded_at, UserAchievement.achievement_id)
            )
            return list(session.execute(stmt).scalars().all())

    def as_set(self, user_id: Optional[str]) -> set[str]:
        """The user's achievement set."""
        return set(self.list_achievements(user_id))

    def has(self, user_id: Optional[str], achievement_id: str) -> bool:
        """Check whether the user holds an achievement."""
        user_id = require_user(user_id)
        with self.db.get_session() as session:
            stmt = select(UserAchievement.id).where(
                UserAchievement.user_id == user_id,
                UserAchievement.achievement_id == achievement_id,
            )
            return session.execute(stmt).first() is not None
