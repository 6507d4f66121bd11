"""SQLAlchemy model for the achievement ledger.

Tables:
- user_achievements: One row per (user, achievement id)
"""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid, utc_now_iso


class UserAchievement(Base):
    """An achievement unlocked by a user."""

    __tablename__ = "user_achievements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    achievement_id: Mapped[str] = mapped_column(String(100), nullable=False)
    awarded_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso)

    # Set semantics: an id appears once per user
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
    )

    def __repr__(self) -> str:
        return f"<UserAchievement(user_id={self.user_id}, achievement_id='{self.achievement_id}')>"
