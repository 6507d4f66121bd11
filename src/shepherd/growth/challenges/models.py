"""SQLAlchemy model for challenge enrollments.

Tables:
- user_challenges: A user's enrollment in a catalog challenge
"""

import json
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..catalog.schemas import ChallengeData
from ..db.models import Base, generate_uuid, utc_now_iso
from ..db.schemas import from_iso


class UserChallenge(Base):
    """UserChallenge model - links a user to a frozen challenge snapshot."""

    __tablename__ = "user_challenges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    challenge_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    # Template fields frozen at join time (JSON)
    challenge_data: Mapped[str] = mapped_column(Text, nullable=False, default="{}")

    # active or completed
    status: Mapped[str] = mapped_column(String(20), default="active", index=True)

    # Period; end_date is None for open-ended challenges
    start_date: Mapped[str] = mapped_column(String(32), default=utc_now_iso)
    end_date: Mapped[Optional[str]] = mapped_column(String(32))

    # Value recorded when the enrollment completed
    progress: Mapped[float] = mapped_column(Float, default=0.0)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso, index=True)
    completed_at: Mapped[Optional[str]] = mapped_column(String(32))

    def __repr__(self) -> str:
        return f"<UserChallenge(id={self.id}, challenge_id='{self.challenge_id}', status={self.status})>"

    def get_challenge_data(self) -> ChallengeData:
        """Get the frozen template fields, with defaults for missing ones."""
        raw = json.loads(self.challenge_data) if self.challenge_data else {}
        return ChallengeData.model_validate(raw or {})

    def set_challenge_data(self, data: ChallengeData) -> None:
        """Store the frozen template fields."""
        self.challenge_data = json.dumps(data.model_dump(mode="json"))

    @property
    def title(self) -> str:
        return self.get_challenge_data().title or self.challenge_id

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def days_remaining(self) -> Optional[int]:
        """Days left until end_date, or None for open-ended challenges."""
        end = from_iso(self.end_date)
        if end is None:
            return None
        delta = end - datetime.now(timezone.utc)
        return max(0, delta.days)
