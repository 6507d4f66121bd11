"""Challenge manager: enrollment store queries and lifecycle transitions."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from sqlalchemy import select

from ..achievements.ledger import (
    CHALLENGE_COMPLETED,
    AchievementLedger,
    challenge_achievement_id,
)
from ..activity.source import ActivitySource
from ..catalog.catalog import ChallengeCatalog
from ..catalog.schemas import ChallengeData, ChallengeTemplate
from ..db.models import utc_now_iso
from ..db.sqlite import Database, get_db, select_with_fallback
from ..errors import QueryFailure, ValidationError, require_user
from ..progress.engine import ProgressEngine
from ..progress.schemas import DerivedProgress
from .models import UserChallenge
from .schemas import EnrollmentProgress, EnrollmentStatus

logger = logging.getLogger(__name__)


def share_message(title: Optional[str], progress: DerivedProgress) -> str:
    """Text used when a user shares their challenge progress."""
    percentage = round(progress.percentage)
    return (
        f"I'm {percentage}% complete with the {title or 'challenge'}! "
        "Join me in this spiritual journey!"
    )


class ChallengeManager:
    """Manages challenge enrollments and their completion."""

    def __init__(
        self,
        db: Optional[Database] = None,
        catalog: Optional[ChallengeCatalog] = None,
        engine: Optional[ProgressEngine] = None,
        ledger: Optional[AchievementLedger] = None,
        progress_workers: int = 1,
    ):
        """Initialize challenge manager.

        Args:
            db: Database instance
            catalog: Challenge catalog (default: packaged templates)
            engine: Progress engine (default: built-in rules on this database)
            ledger: Achievement ledger
            progress_workers: Threads used by evaluate_all
        """
        self.db = db or get_db()
        self.catalog = catalog or ChallengeCatalog.default()
        self.engine = engine or ProgressEngine(ActivitySource(self.db))
        self.ledger = ledger or AchievementLedger(self.db)
        self.progress_workers = max(1, progress_workers)
        self.degraded_queries: list[QueryFailure] = []

    # -------------------------------------------------------------------------
    # Joining
    # -------------------------------------------------------------------------

    def join(
        self,
        user_id: Optional[str],
        template: Union[ChallengeTemplate, str],
    ) -> UserChallenge:
        """Enroll a user in a challenge.

        Availability is not re-checked here; callers offer only templates
        from ``available_challenges``.

        Args:
            user_id: User joining
            template: Template or template id

        Returns:
            Created enrollment

        Raises:
            NotAuthenticated: No user session
            ValidationError: Unknown template id
        """
        user_id = require_user(user_id)

        if isinstance(template, str):
            found = self.catalog.get(template)
            if found is None:
                raise ValidationError(f"Unknown challenge: {template}", field="challenge_id")
            template = found

        start = datetime.now(timezone.utc)
        end = start + timedelta(days=template.duration_days) if template.duration_days else None

        with self.db.get_session() as session:
            enrollment = UserChallenge(
                user_id=user_id,
                challenge_id=template.id,
                status=EnrollmentStatus.ACTIVE.value,
                start_date=start.isoformat(),
                end_date=end.isoformat() if end else None,
                progress=0.0,
                created_at=start.isoformat(),
            )
            enrollment.set_challenge_data(ChallengeData.from_template(template))

            session.add(enrollment)
            session.commit()
            session.refresh(enrollment)
            session.expunge(enrollment)

        logger.info("User %s joined challenge %s", user_id, template.id)
        return enrollment

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_enrollment(
        self,
        enrollment_id: str,
        user_id: Optional[str] = None,
    ) -> Optional[UserChallenge]:
        """Get an enrollment by ID.

        Args:
            enrollment_id: Enrollment ID
            user_id: If given, only return it when this user owns it

        Returns:
            UserChallenge or None
        """
        with self.db.get_session() as session:
            stmt = select(UserChallenge).where(UserChallenge.id == enrollment_id)
            if user_id is not None:
                stmt = stmt.where(UserChallenge.user_id == user_id)
            enrollment = session.execute(stmt).scalar_one_or_none()
            if enrollment:
                session.expunge(enrollment)
            return enrollment

    def list_enrollments(self, user_id: Optional[str]) -> list[UserChallenge]:
        """All of a user's enrollments, active and completed."""
        user_id = require_user(user_id)
        with self.db.get_session() as session:
            stmt = (
                select(UserChallenge)
                .where(UserChallenge.user_id == user_id)
                .order_by(UserChallenge.created_at.desc())
            )
            enrollments = session.execute(stmt).scalars().all()
            for e in enrollments:
                session.expunge(e)
            return list(enrollments)

    def enrolled_challenge_ids(self, user_id: Optional[str]) -> set[str]:
        """Template ids the user has ever joined."""
        user_id = require_user(user_id)
        with self.db.get_session() as session:
            stmt = select(UserChallenge.challenge_id).where(UserChallenge.user_id == user_id)
            return set(session.execute(stmt).scalars().all())

    def available_challenges(self, user_id: Optional[str]) -> list[ChallengeTemplate]:
        """Catalog templates the user has not joined yet."""
        return self.catalog.available_for(user_id, self.enrolled_challenge_ids(user_id))

    def _list_by_status(
        self,
        user_id: str,
        status: EnrollmentStatus,
        sort_field: str,
    ) -> list[UserChallenge]:
        primary = select(UserChallenge).where(
            UserChallenge.user_id == user_id,
            UserChallenge.status == status.value,
        )
        fallback = select(UserChallenge).where(UserChallenge.user_id == user_id)

        with self.db.get_session() as session:
            enrollments = select_with_fallback(
                session,
                primary,
                fallback,
                label=f"userChallenges by userId and status={status.value}",
                keep=lambda e: e.status == status.value,
                on_degraded=self.degraded_queries.append,
            )
            for e in enrollments:
                session.expunge(e)

        enrollments.sort(key=lambda e: getattr(e, sort_field) or "", reverse=True)
        return enrollments

    def list_active(self, user_id: Optional[str]) -> list[UserChallenge]:
        """Active enrollments, most recently joined first."""
        user_id = require_user(user_id)
        return self._list_by_status(user_id, EnrollmentStatus.ACTIVE, "start_date")

    def list_completed(self, user_id: Optional[str]) -> list[UserChallenge]:
        """Completed enrollments, most recently completed first."""
        user_id = require_user(user_id)
        return self._list_by_status(user_id, EnrollmentStatus.COMPLETED, "completed_at")

    # -------------------------------------------------------------------------
    # Progress and Lifecycle
    # -------------------------------------------------------------------------

    def get_progress(self, enrollment: UserChallenge) -> DerivedProgress:
        """Derived progress for an enrollment, without side effects."""
        return self.engine.challenge_progress(enrollment.get_challenge_data(), enrollment.user_id)

    def evaluate(self, enrollment: UserChallenge) -> EnrollmentProgress:
        """Compute progress and complete the enrollment once it reaches 100%.

        Args:
            enrollment: Enrollment to evaluate

        Returns:
            EnrollmentProgress with the current enrollment state
        """
        progress = self.get_progress(enrollment)
        return self._apply(enrollment, progress)

    def evaluate_all(self, user_id: Optional[str]) -> list[EnrollmentProgress]:
        """Evaluate every active enrollment of a user.

        Progress reads run concurrently when more than one worker is
        configured and the database is file-backed. Completions are applied
        afterwards, one at a time.
        """
        active = self.list_active(user_id)

        if self.progress_workers > 1 and len(active) > 1 and not self.db.is_memory:
            with ThreadPoolExecutor(max_workers=self.progress_workers) as pool:
                progresses = list(pool.map(self.get_progress, active))
        else:
            progresses = [self.get_progress(e) for e in active]

        return [self._apply(e, p) for e, p in zip(active, progresses)]

    def _apply(self, enrollment: UserChallenge, progress: DerivedProgress) -> EnrollmentProgress:
        newly_completed = False
        if progress.is_complete and enrollment.is_active:
            newly_completed = self._transition_to_completed(enrollment, progress.current)
            refreshed = self.get_enrollment(enrollment.id)
            if refreshed is not None:
                enrollment = refreshed
        return EnrollmentProgress(
            enrollment=enrollment,
            progress=progress,
            newly_completed=newly_completed,
        )

    def complete(
        self,
        enrollment_id: str,
        user_id: Optional[str],
    ) -> Optional[UserChallenge]:
        """Explicitly complete an enrollment.

        Used for challenges whose progress cannot be derived from activity
        records. Completing an already completed enrollment is a no-op.

        Returns:
            The enrollment, or None if the user has no such enrollment
        """
        user_id = require_user(user_id)
        enrollment = self.get_enrollment(enrollment_id, user_id=user_id)
        if enrollment is None:
            return None
        if enrollment.is_active:
            progress = self.get_progress(enrollment)
            self._transition_to_completed(enrollment, progress.current)
        return self.get_enrollment(enrollment_id)

    def _transition_to_completed(self, enrollment: UserChallenge, value: float) -> bool:
        """Flip active -> completed and award achievements.

        The update is conditional on the row still being active, so only the
        caller that performs the transition awards.
        """
        challenges = UserChallenge.__table__
        stmt = (
            challenges.update()
            .where(
                challenges.c.id == enrollment.id,
                challenges.c.status == EnrollmentStatus.ACTIVE.value,
            )
            .values(
                status=EnrollmentStatus.COMPLETED.value,
                completed_at=utc_now_iso(),
                progress=value,
            )
        )

        with self.db.get_session() as session:
            result = session.execute(stmt)
            if result.rowcount != 1:
                return False

            self.ledger.award(enrollment.user_id, CHALLENGE_COMPLETED, session=session)
            self.ledger.award(
                enrollment.user_id,
                challenge_achievement_id(enrollment.challenge_id),
                session=session,
            )
            session.commit()

        logger.info(
            "Enrollment %s completed challenge %s", enrollment.id, enrollment.challenge_id
        )
        return True
