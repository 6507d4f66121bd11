"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the growth engine, including
in-memory databases, managers wired to a fixed calendar day, and helpers
for seeding activity records.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Generator

import pytest

from shepherd.growth.achievements import AchievementLedger
from shepherd.growth.activity import ActivityRecorder, ActivitySource
from shepherd.growth.catalog import ChallengeCatalog
from shepherd.growth.challenges import ChallengeManager
from shepherd.growth.config import reset_config
from shepherd.growth.db.sqlite import Database, reset_db
from shepherd.growth.goals import GoalManager
from shepherd.growth.progress import ProgressEngine

USER_ID = "user-1"
OTHER_USER_ID = "user-2"

# Activity is stored at noon UTC so day bucketing is stable
TODAY = datetime.now(timezone.utc).date()


def at_noon(day: date) -> datetime:
    """Noon UTC on a calendar day."""
    return datetime.combine(day, time(12, 0), tzinfo=timezone.utc)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def db() -> Generator[Database, None, None]:
    """Create an in-memory database for testing."""
    reset_db()
    reset_config()

    database = Database(":memory:")
    database.create_tables()
    yield database

    reset_db()


# ============================================================================
# Engine and Manager Fixtures
# ============================================================================


@pytest.fixture
def user_id() -> str:
    return USER_ID


@pytest.fixture
def today() -> date:
    """The calendar day the test engine treats as today."""
    return TODAY


@pytest.fixture
def catalog() -> ChallengeCatalog:
    """The packaged challenge catalog."""
    return ChallengeCatalog.default()


@pytest.fixture
def source(db: Database) -> ActivitySource:
    """Activity source bucketing days in UTC."""
    return ActivitySource(db, tz=timezone.utc)


@pytest.fixture
def engine(source: ActivitySource) -> ProgressEngine:
    """Progress engine with the clock pinned to TODAY."""
    return ProgressEngine(source, clock=lambda: TODAY)


@pytest.fixture
def ledger(db: Database) -> AchievementLedger:
    return AchievementLedger(db)


@pytest.fixture
def recorder(db: Database) -> ActivityRecorder:
    return ActivityRecorder(db)


@pytest.fixture
def goal_manager(db: Database, ledger: AchievementLedger) -> GoalManager:
    return GoalManager(db, ledger=ledger)


@pytest.fixture
def challenge_manager(
    db: Database,
    catalog: ChallengeCatalog,
    engine: ProgressEngine,
    ledger: AchievementLedger,
) -> ChallengeManager:
    return ChallengeManager(db, catalog=catalog, engine=engine, ledger=ledger)


# ============================================================================
# Activity Seeding Fixtures
# ============================================================================


@pytest.fixture
def pray_on(recorder: ActivityRecorder) -> Callable[..., None]:
    """Record one prayer entry on each of the given days-ago offsets."""

    def _pray_on(*days_ago: int, user: str = USER_ID) -> None:
        for offset in days_ago:
            recorder.log_prayer(
                user,
                title=f"Day -{offset}",
                created_at=at_noon(TODAY - timedelta(days=offset)),
            )

    return _pray_on


@pytest.fixture
def read_on(recorder: ActivityRecorder) -> Callable[..., None]:
    """Complete one reading-plan day on each of the given days-ago offsets."""

    def _read_on(*days_ago: int, user: str = USER_ID, plan: str = "bible-in-a-year") -> None:
        for i, offset in enumerate(days_ago, start=1):
            recorder.complete_reading_day(
                user,
                plan,
                i,
                completed_at=at_noon(TODAY - timedelta(days=offset)),
            )

    return _read_on


# ============================================================================
# CLI Testing Fixtures
# ============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner
    return CliRunner()


@pytest.fixture
def cli_app():
    """Get the CLI app for testing."""
    from shepherd.growth.cli import app
    return app
