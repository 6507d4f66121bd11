"""Document-shape export and import.

Converts the growth tables to and from the store's collection layout
(``userChallenges``, ``userGoals``, ``users/{id}.achievements``) so data can
move between this store and the hosted document database.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import select

from ..achievements.ledger import AchievementLedger
from ..challenges.models import UserChallenge
from ..challenges.schemas import EnrollmentRecord
from ..db.schemas import to_iso
from ..db.sqlite import Database, get_db
from ..errors import require_user
from ..goals.models import UserGoal
from ..goals.schemas import GoalRecord

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0"


@dataclass
class DocumentExportResult:
    """Result of a document export."""

    success: bool
    file_path: Optional[Path] = None
    challenges_exported: int = 0
    goals_exported: int = 0
    achievements_exported: int = 0
    error: Optional[str] = None


@dataclass
class DocumentImportResult:
    """Result of a document import."""

    challenges_imported: int = 0
    goals_imported: int = 0
    achievements_imported: int = 0
    skipped: list[str] = field(default_factory=list)


class DocumentExporter:
    """Exports one user's growth data in document shape."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()
        self.ledger = AchievementLedger(self.db)

    def export_user_documents(self, user_id: Optional[str]) -> dict[str, Any]:
        """Collections keyed by document id.

        Returns:
            ``{"userChallenges": {...}, "userGoals": {...},
            "users": {user_id: {"achievements": [...]}}}``
        """
        user_id = require_user(user_id)
        with self.db.get_session() as session:
            enrollments = session.execute(
                select(UserChallenge)
                .where(UserChallenge.user_id == user_id)
                .order_by(UserChallenge.created_at)
            ).scalars().all()
            goals = session.execute(
                select(UserGoal)
                .where(UserGoal.user_id == user_id)
                .order_by(UserGoal.created_at)
            ).scalars().all()

            challenge_docs = {
                e.id: EnrollmentRecord.from_model(e).to_document() for e in enrollments
            }
            goal_docs = {g.id: GoalRecord.from_model(g).to_document() for g in goals}

        return {
            "version": FORMAT_VERSION,
            "userChallenges": challenge_docs,
            "userGoals": goal_docs,
            "users": {user_id: {"achievements": self.ledger.list_achievements(user_id)}},
        }

    def export_to_file(
        self,
        user_id: Optional[str],
        output_path: Path,
        pretty: bool = True,
    ) -> DocumentExportResult:
        """Write a user's documents to a JSON file."""
        try:
            data = self.export_user_documents(user_id)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2 if pretty else None, ensure_ascii=False)
        except OSError as e:
            logger.error("Document export to %s failed: %s", output_path, e)
            return DocumentExportResult(success=False, error=str(e))

        achievements = sum(len(u["achievements"]) for u in data["users"].values())
        return DocumentExportResult(
            success=True,
            file_path=output_path,
            challenges_exported=len(data["userChallenges"]),
            goals_exported=len(data["userGoals"]),
            achievements_exported=achievements,
        )


class DocumentImporter:
    """Loads document-shape data into the growth tables.

    Every document is validated against its record schema; missing legacy
    fields take their defaults and invalid documents are skipped and
    reported. Documents whose id already exists are left untouched.
    """

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()
        self.ledger = AchievementLedger(self.db)

    def import_documents(self, data: dict[str, Any]) -> DocumentImportResult:
        result = DocumentImportResult()

        with self.db.get_session() as session:
            for doc_id, doc in (data.get("userChallenges") or {}).items():
                try:
                    record = EnrollmentRecord.model_validate({**doc, "id": doc_id})
                except SchemaValidationError as e:
                    logger.warning("Skipping userChallenges/%s: %s", doc_id, e)
                    result.skipped.append(f"userChallenges/{doc_id}")
                    continue
                if session.get(UserChallenge, doc_id) is not None:
                    continue
                enrollment = UserChallenge(
                    id=doc_id,
                    user_id=record.user_id,
                    challenge_id=record.challenge_id,
                    status=record.status.value,
                    end_date=to_iso(record.end_date),
                    progress=record.progress,
                    completed_at=to_iso(record.completed_at),
                )
                start = record.start_date or record.created_at
                if start:
                    enrollment.start_date = to_iso(start)
                if record.created_at:
                    enrollment.created_at = to_iso(record.created_at)
                enrollment.set_challenge_data(record.challenge_data)
                session.add(enrollment)
                result.challenges_imported += 1

            for doc_id, doc in (data.get("userGoals") or {}).items():
                try:
                    record = GoalRecord.model_validate({**doc, "id": doc_id})
                except SchemaValidationError as e:
                    logger.warning("Skipping userGoals/%s: %s", doc_id, e)
                    result.skipped.append(f"userGoals/{doc_id}")
                    continue
                if session.get(UserGoal, doc_id) is not None:
                    continue
                goal = UserGoal(
                    id=doc_id,
                    user_id=record.user_id,
                    title=record.title,
                    description=record.description,
                    category=record.category,
                    target=record.target,
                    unit=record.unit,
                    current_progress=record.current_progress,
                    deadline=record.deadline.isoformat() if record.deadline else None,
                    status=record.status.value,
                    completed_at=to_iso(record.completed_at),
                )
                if record.created_at:
                    goal.created_at = to_iso(record.created_at)
                session.add(goal)
                result.goals_imported += 1

            session.flush()

            for user_id, user_doc in (data.get("users") or {}).items():
                achievements = (user_doc or {}).get("achievements") or []
                for i, achievement_id in enumerate(achievements):
                    if not isinstance(achievement_id, str) or not achievement_id.strip():
                        logger.warning("Skipping achievement %r for user %s", achievement_id, user_id)
                        result.skipped.append(f"users/{user_id}/achievements[{i}]")
                        continue
                    if self.ledger.award(user_id, achievement_id, session=session):
                        result.achievements_imported += 1

            session.commit()

        logger.info(
            "Imported %d challenges, %d goals, %d achievements (%d skipped)",
            result.challenges_imported,
            result.goals_imported,
            result.achievements_imported,
            len(result.skipped),
        )
        return result

    def import_file(self, path: Path) -> DocumentImportResult:
        """Import documents from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            return self.import_documents(json.load(f))
