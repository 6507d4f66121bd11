"""Read-only queries over activity records.

These are the raw inputs to progress calculations. Timestamps are stored in
UTC and bucketed into calendar days in the configured local timezone.
"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional

from sqlalchemy import select

from ..db.schemas import from_iso
from ..db.sqlite import Database, get_db
from .models import PrayerEntry, ReadingPlanDay, VolunteerApplication

APPROVED = "approved"


class ActivitySource:
    """Queries activity collections for one store."""

    def __init__(
        self,
        db: Optional[Database] = None,
        lookback_days: int = 400,
        tz: Optional[tzinfo] = None,
    ):
        """Initialize activity source.

        Args:
            db: Database instance
            lookback_days: How far back day-based queries look
            tz: Timezone for calendar days (default: system local time)
        """
        self.db = db or get_db()
        self.lookback_days = lookback_days
        self.tz = tz

    def local_date(self, timestamp: str) -> date:
        """Calendar day of a stored timestamp."""
        parsed = from_iso(timestamp)
        return parsed.astimezone(self.tz).date()

    def _since(self) -> str:
        cutoff = datetime.now(timezone.utc) - timedelta(days=self.lookback_days + 1)
        return cutoff.isoformat()

    def prayer_days(self, user_id: str) -> set[date]:
        """Days with at least one prayer entry.

        Args:
            user_id: Owner of the entries

        Returns:
            Set of calendar days
        """
        with self.db.get_session() as session:
            stmt = (
                select(PrayerEntry.created_at)
                .where(
                    PrayerEntry.user_id == user_id,
                    PrayerEntry.created_at >= self._since(),
                )
                .order_by(PrayerEntry.created_at.desc())
            )
            stamps = session.execute(stmt).scalars().all()
        return {self.local_date(s) for s in stamps if s}

    def bible_reading_days(self, user_id: str) -> set[date]:
        """Days on which at least one reading-plan day was completed."""
        with self.db.get_session() as session:
            stmt = select(ReadingPlanDay.completed_at).where(
                ReadingPlanDay.user_id == user_id,
                ReadingPlanDay.completed_at >= self._since(),
            )
            stamps = session.execute(stmt).scalars().all()
        return {self.local_date(s) for s in stamps if s}

    def approved_volunteer_hours(self, user_id: str) -> list[float]:
        """Completed hours of each approved volunteer application.

        Missing hour values count as zero.
        """
        with self.db.get_session() as session:
            stmt = select(VolunteerApplication.hours_completed).where(
                VolunteerApplication.user_id == user_id,
                VolunteerApplication.status == APPROVED,
            )
            hours = session.execute(stmt).scalars().all()
        return [max(0.0, float(h or 0)) for h in hours]
