"""SQLAlchemy models for activity records read by the progress engine.

Tables:
- prayer_entries: Prayer journal entries (streak source for prayer)
- volunteer_applications: Volunteer sign-ups with approved hours
- reading_plan_days: Completed days of a Bible reading plan
"""

from typing import Optional

from sqlalchemy import Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid, utc_now_iso


class PrayerEntry(Base):
    """A prayer journal entry."""

    __tablename__ = "prayer_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), default="")
    body: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso, index=True)

    def __repr__(self) -> str:
        return f"<PrayerEntry(id={self.id}, user_id={self.user_id}, created_at={self.created_at})>"


class VolunteerApplication(Base):
    """A volunteer application; approved ones carry completed hours."""

    __tablename__ = "volunteer_applications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    opportunity: Mapped[str] = mapped_column(String(200), default="")

    # pending, approved, rejected
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)
    hours_completed: Mapped[Optional[float]] = mapped_column(Float, default=0.0)

    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso)

    def __repr__(self) -> str:
        return (
            f"<VolunteerApplication(id={self.id}, status={self.status}, "
            f"hours={self.hours_completed})>"
        )


class ReadingPlanDay(Base):
    """A completed day of a reading plan."""

    __tablename__ = "reading_plan_days"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    plan_id: Mapped[str] = mapped_column(String(100), nullable=False)
    day: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso, index=True)

    # A plan day is completed once
    __table_args__ = (
        UniqueConstraint("user_id", "plan_id", "day", name="uq_reading_plan_day"),
    )

    def __repr__(self) -> str:
        return f"<ReadingPlanDay(plan_id={self.plan_id}, day={self.day})>"
