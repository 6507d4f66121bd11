"""Goal manager for custom goal operations."""

import logging
import math
from datetime import date
from typing import Optional, Union

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import and_, case, func, select

from ..achievements.ledger import GOAL_COMPLETED, AchievementLedger
from ..catalog.schemas import ChallengeCategory
from ..db.models import utc_now_iso
from ..db.sqlite import Database, get_db, select_with_fallback
from ..errors import QueryFailure, ValidationError, require_user
from ..progress.engine import ProgressEngine
from ..progress.schemas import DerivedProgress
from .models import UserGoal
from .schemas import GoalCreate, GoalStatus

logger = logging.getLogger(__name__)


def _parse_amount(value: Union[str, int, float], field: str) -> float:
    """Parse a user-entered number."""
    try:
        amount = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    if not math.isfinite(amount):
        raise ValidationError(f"{field} must be a finite number", field=field)
    return amount


class GoalManager:
    """Manages custom goals and their completion."""

    def __init__(
        self,
        db: Optional[Database] = None,
        ledger: Optional[AchievementLedger] = None,
    ):
        """Initialize goal manager.

        Args:
            db: Database instance
            ledger: Achievement ledger (default: one on the same database)
        """
        self.db = db or get_db()
        self.ledger = ledger or AchievementLedger(self.db)
        self.degraded_queries: list[QueryFailure] = []

    def create_goal(
        self,
        user_id: Optional[str],
        title: str,
        *,
        target: Union[str, int, float],
        description: str = "",
        category: Union[ChallengeCategory, str] = ChallengeCategory.PERSONAL,
        unit: str = "times",
        deadline: Optional[date] = None,
    ) -> UserGoal:
        """Create a new goal.

        Args:
            user_id: Owner
            title: Goal title, required
            target: Positive number, or text that parses to one
            description: Optional description
            category: Challenge category
            unit: Unit label
            deadline: Optional display-only deadline

        Returns:
            Created goal

        Raises:
            NotAuthenticated: No user session
            ValidationError: Empty title or non-positive target
        """
        user_id = require_user(user_id)

        try:
            data = GoalCreate(
                title=title,
                description=description or "",
                category=category,
                target=target,
                unit=unit,
                deadline=deadline,
            )
        except SchemaValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else None
            raise ValidationError(f"Invalid {field or 'goal'}: {first['msg']}", field=field) from e

        with self.db.get_session() as session:
            goal = UserGoal(
                user_id=user_id,
                title=data.title,
                description=data.description,
                category=data.category.value,
                target=data.target,
                unit=data.unit,
                current_progress=0.0,
                deadline=data.deadline.isoformat() if data.deadline else None,
                status=GoalStatus.ACTIVE.value,
            )
            session.add(goal)
            session.commit()
            session.refresh(goal)
            session.expunge(goal)

        logger.info("Created goal %s for user %s", goal.id, user_id)
        return goal

    def get_goal(self, goal_id: str, user_id: Optional[str] = None) -> Optional[UserGoal]:
        """Get a goal by ID.

        Args:
            goal_id: Goal ID
            user_id: If given, only return the goal when this user owns it

        Returns:
            UserGoal or None
        """
        with self.db.get_session() as session:
            stmt = select(UserGoal).where(UserGoal.id == goal_id)
            if user_id is not None:
                stmt = stmt.where(UserGoal.user_id == user_id)
            goal = session.execute(stmt).scalar_one_or_none()
            if goal:
                session.expunge(goal)
            return goal

    def list_goals(
        self,
        user_id: Optional[str],
        status: Optional[GoalStatus] = None,
    ) -> list[UserGoal]:
        """List a user's goals, newest first.

        Args:
            user_id: Owner
            status: Filter by status

        Returns:
            List of goals
        """
        user_id = require_user(user_id)
        status_value = GoalStatus(status).value if status else None

        primary = select(UserGoal).where(UserGoal.user_id == user_id)
        if status_value:
            primary = primary.where(UserGoal.status == status_value)
        primary = primary.order_by(UserGoal.created_at.desc())

        fallback = select(UserGoal).where(UserGoal.user_id == user_id)

        with self.db.get_session() as session:
            goals = select_with_fallback(
                session,
                primary,
                fallback,
                label="userGoals by userId ordered by createdAt",
                keep=(lambda g: g.status == status_value) if status_value else None,
                sort_key=lambda g: g.created_at or "",
                reverse=True,
                on_degraded=self.degraded_queries.append,
            )
            for goal in goals:
                session.expunge(goal)
            return goals

    def update_goal_progress(
        self,
        user_id: Optional[str],
        goal_id: str,
        value: Union[str, int, float],
    ) -> Optional[UserGoal]:
        """Set a goal's progress, completing it when the target is reached.

        Progress, status and completion time are written by one conditional
        update, so the completion check always sees the value just written.
        A completed goal stays completed even if progress is lowered.

        Args:
            user_id: Owner
            goal_id: Goal ID
            value: New progress value

        Returns:
            Updated goal, or None if the user has no such goal
        """
        user_id = require_user(user_id)
        amount = _parse_amount(value, "progress")
        if amount < 0:
            raise ValidationError("progress must not be negative", field="progress")

        return self._write_progress(user_id, goal_id, amount)

    def increment_goal_progress(
        self,
        user_id: Optional[str],
        goal_id: str,
        delta: Union[str, int, float],
    ) -> Optional[UserGoal]:
        """Atomically add to a goal's progress. Progress never drops below zero."""
        user_id = require_user(user_id)
        amount = _parse_amount(delta, "delta")
        goals = UserGoal.__table__
        new_value = func.max(goals.c.current_progress + amount, 0.0)
        return self._write_progress(user_id, goal_id, new_value)

    def _write_progress(self, user_id: str, goal_id: str, new_value) -> Optional[UserGoal]:
        goals = UserGoal.__table__
        now = utc_now_iso()
        reached = new_value >= goals.c.target

        stmt = (
            goals.update()
            .where(goals.c.id == goal_id, goals.c.user_id == user_id)
            .values(
                current_progress=new_value,
                updated_at=now,
                status=case(
                    (reached, GoalStatus.COMPLETED.value),
                    else_=goals.c.status,
                ),
                completed_at=case(
                    (
                        and_(reached, goals.c.status == GoalStatus.ACTIVE.value),
                        now,
                    ),
                    else_=goals.c.completed_at,
                ),
            )
            .returning(goals.c.current_progress, goals.c.target, goals.c.status)
        )

        with self.db.get_session() as session:
            row = session.execute(stmt).first()
            if row is None:
                return None

            if row.current_progress >= row.target:
                self.ledger.award(user_id, GOAL_COMPLETED, session=session)
                logger.info("Goal %s reached its target", goal_id)

            session.commit()

        return self.get_goal(goal_id)

    def goal_progress(self, goal: UserGoal) -> DerivedProgress:
        """Derived progress for a goal."""
        return ProgressEngine.goal_progress(goal)

    def list_goals_with_progress(
        self,
        user_id: Optional[str],
    ) -> list[tuple[UserGoal, DerivedProgress]]:
        """Goals paired with their derived progress."""
        return [(goal, self.goal_progress(goal)) for goal in self.list_goals(user_id)]
