"""Progress engine.

Derives ``{current, target, percentage}`` for enrollments and goals. All
computations are reads: the engine never writes to the store.

Two kinds of metric exist:

- streak: consecutive calendar days with qualifying activity, ending today
  or yesterday
- accumulative: the sum of a numeric field over qualifying records

Rules are looked up by ``(kind, category, unit)``. A rule registered with
``unit=None`` applies to every unit of its category. A metric with no rule
yields an explicit ``unsupported`` result rather than a silent zero.
"""

import logging
from datetime import date, timedelta
from typing import Callable, Iterable, Optional, Union

from ..activity.source import ActivitySource
from ..catalog.schemas import ChallengeCategory, ChallengeData, ProgressType
from .schemas import DerivedProgress, ProgressParams, ProgressStatus

logger = logging.getLogger(__name__)

StreakRule = Callable[[str], Iterable[date]]
AccumulativeRule = Callable[[str], Iterable[float]]
Rule = Union[StreakRule, AccumulativeRule]

RuleKey = tuple[str, str, Optional[str]]


def _key(value) -> Optional[str]:
    """Plain-string form of an enum or string key."""
    if value is None:
        return None
    return str(getattr(value, "value", value))


def clamp_percentage(current: float, target: float) -> float:
    """``min(current / target, 1) * 100`` bounded to [0, 100]."""
    if target <= 0:
        return 0.0
    return max(0.0, min(current / target, 1.0) * 100)


def streak_length(active_days: Iterable[date], today: date) -> int:
    """Length of the unbroken run of active days ending today or yesterday.

    Walks backward one day at a time from today (or from yesterday when
    today has no activity yet) and stops at the first gap.

    Args:
        active_days: Days with at least one qualifying record
        today: The current calendar day

    Returns:
        Number of consecutive days
    """
    days = set(active_days)
    cursor = today if today in days else today - timedelta(days=1)

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def accumulate(values: Iterable[float]) -> float:
    """Sum of non-negative record values."""
    return float(sum(max(0.0, float(v or 0)) for v in values))


class ProgressEngine:
    """Computes derived progress from activity records."""

    def __init__(
        self,
        source: Optional[ActivitySource] = None,
        clock: Callable[[], date] = date.today,
        register_defaults: bool = True,
    ):
        """Initialize progress engine.

        Args:
            source: Activity source adapter
            clock: Returns the current calendar day
            register_defaults: Register the built-in prayer, bible and
                service rules
        """
        self.source = source
        self.clock = clock
        self._rules: dict[RuleKey, Rule] = {}

        if register_defaults and source is not None:
            self.register(ProgressType.STREAK, ChallengeCategory.PRAYER, None, source.prayer_days)
            self.register(
                ProgressType.STREAK, ChallengeCategory.BIBLE, None, source.bible_reading_days
            )
            self.register(
                ProgressType.ACCUMULATIVE,
                ChallengeCategory.SERVICE,
                "hours",
                source.approved_volunteer_hours,
            )

    # -------------------------------------------------------------------------
    # Rule Registry
    # -------------------------------------------------------------------------

    def register(
        self,
        kind: ProgressType,
        category: Union[ChallengeCategory, str],
        unit: Optional[str],
        rule: Rule,
    ) -> None:
        """Register the data rule for a metric.

        Args:
            kind: streak or accumulative
            category: Challenge category
            unit: Unit label, or None to match any unit
            rule: Callable taking a user id. Streak rules return active
                days; accumulative rules return record values.
        """
        self._rules[(_key(kind), _key(category), unit)] = rule

    def resolve(
        self,
        kind: ProgressType,
        category: Union[ChallengeCategory, str],
        unit: Optional[str],
    ) -> Optional[Rule]:
        """Find the rule for a metric, preferring an exact unit match."""
        kind_key, category_key = _key(kind), _key(category)
        rule = self._rules.get((kind_key, category_key, unit or None))
        if rule is None:
            rule = self._rules.get((kind_key, category_key, None))
        return rule

    def supports(self, kind: ProgressType, category: str, unit: Optional[str]) -> bool:
        return self.resolve(kind, category, unit) is not None

    # -------------------------------------------------------------------------
    # Computation
    # -------------------------------------------------------------------------

    def compute_progress(
        self,
        kind: ProgressType,
        params: ProgressParams,
        user_id: str,
    ) -> DerivedProgress:
        """Compute progress for one metric.

        Args:
            kind: streak or accumulative
            params: Category, unit and target
            user_id: Whose activity to read

        Returns:
            DerivedProgress, with status ``unsupported`` when no rule exists
        """
        rule = self.resolve(kind, params.category, params.unit)
        if rule is None:
            logger.warning(
                "No progress rule for %s/%s/%s; reporting unsupported metric",
                _key(kind),
                params.category,
                params.unit or "-",
            )
            return DerivedProgress(
                current=0,
                target=params.target,
                percentage=0,
                unit=params.unit,
                status=ProgressStatus.UNSUPPORTED,
            )

        if ProgressType(kind) == ProgressType.STREAK:
            current = float(streak_length(rule(user_id), self.clock()))
        else:
            current = accumulate(rule(user_id))

        return DerivedProgress(
            current=current,
            target=params.target,
            percentage=clamp_percentage(current, params.target),
            unit=params.unit,
        )

    def challenge_progress(self, data: ChallengeData, user_id: str) -> DerivedProgress:
        """Progress for an enrollment's frozen challenge data."""
        params = ProgressParams(
            category=data.category,
            unit=data.unit,
            target=data.effective_target,
        )
        return self.compute_progress(data.type, params, user_id)

    @staticmethod
    def goal_progress(goal) -> DerivedProgress:
        """Progress of a custom goal from its self-reported value.

        A missing or non-positive target is treated as 1.
        """
        try:
            target = float(goal.target or 0)
        except (TypeError, ValueError):
            target = 0.0
        if target <= 0:
            target = 1.0
        current = max(0.0, float(goal.current_progress or 0))
        return DerivedProgress(
            current=current,
            target=target,
            percentage=clamp_percentage(current, target),
            unit=goal.unit or "",
        )
