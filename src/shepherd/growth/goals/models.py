"""SQLAlchemy model for custom goals.

Tables:
- user_goals: Freeform goals with self-reported progress
"""

from typing import Optional

from sqlalchemy import Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid, utc_now_iso


class UserGoal(Base):
    """UserGoal model - a user's own goal, independent of the catalog."""

    __tablename__ = "user_goals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String(20), default="personal")

    # Target and self-reported progress
    target: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(50), default="times")
    current_progress: Mapped[float] = mapped_column(Float, default=0.0)

    # Display only; never enforced
    deadline: Mapped[Optional[str]] = mapped_column(String(10))  # ISO date

    # active or completed
    status: Mapped[str] = mapped_column(String(20), default="active", index=True)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso, index=True)
    updated_at: Mapped[str] = mapped_column(
        String(32), default=utc_now_iso, onupdate=utc_now_iso
    )
    completed_at: Mapped[Optional[str]] = mapped_column(String(32))

    def __repr__(self) -> str:
        return f"<UserGoal(id={self.id}, title='{self.title}', {self.current_progress}/{self.target})>"

    @property
    def is_complete(self) -> bool:
        """Check if the goal has been completed."""
        return self.status == "completed"
