"""SQLite database operations.

Handles database connection, session management, and the indexed-query
fallback used by the enrollment and goal stores.
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Generator, Optional

from sqlalchemy import Select, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..errors import QueryFailure
from .models import Base

logger = logging.getLogger(__name__)


class Database:
    """Database connection and session manager."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses
                     SHEPHERD_DB_PATH env var or default location.
        """
        if db_path is None:
            db_path = os.environ.get(
                "SHEPHERD_DB_PATH",
                str(Path.home() / ".shepherd" / "growth.db"),
            )

        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # All sessions must share the single in-memory connection
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False},
            )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    @property
    def is_memory(self) -> bool:
        """True for a ``:memory:`` database."""
        return self._is_memory

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        # Import feature models to register them with Base
        from ..achievements.models import UserAchievement  # noqa: F401
        from ..activity.models import (  # noqa: F401
            PrayerEntry,
            ReadingPlanDay,
            VolunteerApplication,
        )
        from ..challenges.models import UserChallenge  # noqa: F401
        from ..goals.models import UserGoal  # noqa: F401

        Base.metadata.create_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def select_with_fallback(
    session: Session,
    primary: Select,
    fallback: Select,
    *,
    label: str,
    keep: Optional[Callable[[Any], bool]] = None,
    sort_key: Optional[Callable[[Any], Any]] = None,
    reverse: bool = False,
    on_degraded: Optional[Callable[[QueryFailure], None]] = None,
) -> list:
    """Run an indexed query, degrading to an unindexed one on failure.

    The primary statement carries the filter/sort clauses that need a
    composite index. If it fails, the failure is logged as a recovered
    ``QueryFailure``, the fallback statement runs instead, and ``keep`` and
    ``sort_key`` are applied in memory.

    Args:
        session: Open session
        primary: Statement with the full filter and ordering
        fallback: Broader statement without the indexed clauses
        label: Name used in logs
        keep: In-memory filter applied to fallback rows
        sort_key: In-memory sort key applied to fallback rows
        reverse: Sort descending
        on_degraded: Called with the recovered failure

    Returns:
        List of ORM rows
    """
    try:
        return list(session.execute(primary).scalars().all())
    except SQLAlchemyError as exc:
        failure = QueryFailure(label, exc)
        logger.warning("%s; falling back to unindexed query", failure)
        session.rollback()
        if on_degraded is not None:
            on_degraded(failure)

    rows = list(session.execute(fallback).scalars().all())
    if keep is not None:
        rows = [row for row in rows if keep(row)]
    if sort_key is not None:
        rows.sort(key=sort_key, reverse=reverse)
    return rows


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    _db = None
