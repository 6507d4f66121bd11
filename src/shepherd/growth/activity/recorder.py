"""Write helpers for activity records.

The progress engine only reads these collections; the recorder exists so the
CLI and tests can populate them the way the prayer journal and volunteer
screens do.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select

from ..db.schemas import to_iso
from ..db.sqlite import Database, get_db
from ..errors import ValidationError, require_user
from .models import PrayerEntry, ReadingPlanDay, VolunteerApplication


class ActivityRecorder:
    """Records prayer, volunteer and reading activity."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()

    def log_prayer(
        self,
        user_id: Optional[str],
        title: str = "",
        body: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> PrayerEntry:
        """Add a prayer journal entry."""
        user_id = require_user(user_id)
        with self.db.get_session() as session:
            entry = PrayerEntry(user_id=user_id, title=title, body=body)
            if created_at is not None:
                entry.created_at = to_iso(created_at)
            session.add(entry)
            session.commit()
            session.refresh(entry)
            session.expunge(entry)
            return entry

    def record_volunteer_hours(
        self,
        user_id: Optional[str],
        hours: float,
        opportunity: str = "",
        status: str = "approved",
    ) -> VolunteerApplication:
        """Add a volunteer application with completed hours."""
        user_id = require_user(user_id)
        if hours < 0:
            raise ValidationError("Hours must not be negative", field="hours")
        with self.db.get_session() as session:
            application = VolunteerApplication(
                user_id=user_id,
                opportunity=opportunity,
                status=status,
                hours_completed=float(hours),
            )
            session.add(application)
            session.commit()
            session.refresh(application)
            session.expunge(application)
            return application

    def set_application_status(self, application_id: str, status: str) -> Optional[VolunteerApplication]:
        """Change an application's status (pending, approved, rejected)."""
        with self.db.get_session() as session:
            application = session.execute(
                select(VolunteerApplication).where(VolunteerApplication.id == application_id)
            ).scalar_one_or_none()
            if not application:
                return None
            application.status = status
            session.commit()
            session.refresh(application)
            session.expunge(application)
            return application

    def complete_reading_day(
        self,
        user_id: Optional[str],
        plan_id: str,
        day: int,
        completed_at: Optional[datetime] = None,
    ) -> ReadingPlanDay:
        """Mark a reading-plan day complete. Repeat calls return the first record."""
        user_id = require_user(user_id)
        with self.db.get_session() as session:
            existing = session.execute(
                select(ReadingPlanDay).where(
                    ReadingPlanDay.user_id == user_id,
                    ReadingPlanDay.plan_id == plan_id,
                    ReadingPlanDay.day == day,
                )
            ).scalar_one_or_none()
            if existing:
                session.expunge(existing)
                return existing

            record = ReadingPlanDay(user_id=user_id, plan_id=plan_id, day=day)
            if completed_at is not None:
                record.completed_at = to_iso(completed_at)
            session.add(record)
            session.commit()
            session.refresh(record)
            session.expunge(record)
            return record
