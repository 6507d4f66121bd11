"""Tests for document export and import."""

import json

import pytest

from shepherd.growth.achievements import AchievementLedger, GOAL_COMPLETED
from shepherd.growth.challenges import ChallengeManager, EnrollmentRecord, EnrollmentStatus
from shepherd.growth.db.sqlite import Database
from shepherd.growth.errors import NotAuthenticated
from shepherd.growth.export import DocumentExporter, DocumentImporter
from shepherd.growth.goals import GoalManager, GoalRecord


@pytest.fixture
def populated(db, challenge_manager, goal_manager, user_id):
    """A user with one enrollment, two goals and an achievement."""
    enrollment = challenge_manager.join(user_id, "prayer-7")
    done = goal_manager.create_goal(user_id, "Read Mark", target=16, unit="chapters")
    goal_manager.update_goal_progress(user_id, done.id, 16)
    open_goal = goal_manager.create_goal(user_id, "Visit", target=4)
    return {"enrollment": enrollment, "done": done, "open": open_goal}


@pytest.fixture
def target_db():
    database = Database(":memory:")
    database.create_tables()
    return database


class TestExport:
    """Tests for DocumentExporter."""

    def test_document_shape(self, db, populated, user_id):
        data = DocumentExporter(db).export_user_documents(user_id)

        assert data["version"] == "1.0"
        doc = data["userChallenges"][populated["enrollment"].id]
        assert doc["userId"] == user_id
        assert doc["challengeId"] == "prayer-7"
        assert doc["challengeData"]["target"] == 7
        assert doc["status"] == "active"
        assert "id" not in doc

        goal_doc = data["userGoals"][populated["done"].id]
        assert goal_doc["currentProgress"] == 16
        assert goal_doc["status"] == "completed"
        assert goal_doc["completedAt"] is not None

        assert data["users"][user_id]["achievements"] == [GOAL_COMPLETED]

    def test_only_own_documents(self, db, populated, goal_manager):
        goal_manager.create_goal("someone-else", "Theirs", target=1)
        data = DocumentExporter(db).export_user_documents("someone-else")
        assert len(data["userGoals"]) == 1
        assert data["userChallenges"] == {}

    def test_requires_user(self, db):
        with pytest.raises(NotAuthenticated):
            DocumentExporter(db).export_user_documents(None)

    def test_export_to_file(self, db, populated, user_id, tmp_path):
        path = tmp_path / "out" / "growth.json"
        result = DocumentExporter(db).export_to_file(user_id, path)

        assert result.success
        assert result.challenges_exported == 1
        assert result.goals_exported == 2
        assert result.achievements_exported == 1
        assert json.loads(path.read_text())["version"] == "1.0"


class TestImport:
    """Tests for DocumentImporter."""

    def test_import_exported_documents(self, db, populated, user_id, target_db):
        data = DocumentExporter(db).export_user_documents(user_id)

        result = DocumentImporter(target_db).import_documents(data)
        assert result.challenges_imported == 1
        assert result.goals_imported == 2
        assert result.achievements_imported == 1

        goals = GoalManager(target_db).list_goals(user_id)
        assert {g.title for g in goals} == {"Read Mark", "Visit"}
        [active] = ChallengeManager(target_db).list_active(user_id)
        assert active.get_challenge_data().target == 7
        assert AchievementLedger(target_db).has(user_id, GOAL_COMPLETED)

    def test_import_is_idempotent(self, db, populated, user_id, target_db):
        data = DocumentExporter(db).export_user_documents(user_id)
        importer = DocumentImporter(target_db)
        importer.import_documents(data)

        again = importer.import_documents(data)
        assert again.challenges_imported == 0
        assert again.goals_imported == 0
        assert again.achievements_imported == 0

    def test_legacy_documents_use_defaults(self, target_db):
        """Test documents missing fields load with defaults."""
        data = {
            "userChallenges": {
                "c1": {
                    "userId": "u1",
                    "challengeId": "bible-30",
                    "startDate": {"seconds": 1704067200, "nanoseconds": 0},
                },
            },
            "userGoals": {
                "g1": {"userId": "u1", "title": "Old goal", "target": "abc"},
            },
        }

        result = DocumentImporter(target_db).import_documents(data)
        assert result.challenges_imported == 1
        assert result.goals_imported == 1

        goal = GoalManager(target_db).get_goal("g1")
        assert goal.target == 1
        assert goal.unit == "times"
        assert goal.status == "active"

        enrollment = ChallengeManager(target_db).get_enrollment("c1")
        assert enrollment.start_date.startswith("2024-01-01")
        assert enrollment.get_challenge_data().effective_target == 30

    def test_invalid_documents_skipped(self, target_db):
        data = {
            "userChallenges": {"bad": {"challengeId": "x"}},
            "userGoals": {"bad-goal": {"title": "no owner"}},
        }
        result = DocumentImporter(target_db).import_documents(data)
        assert result.skipped == ["userChallenges/bad", "userGoals/bad-goal"]

    @pytest.mark.parametrize("bad_id", ["", "   ", 5, None])
    def test_bad_achievement_skipped(self, target_db, bad_id):
        """Test one malformed achievement does not abort the import."""
        data = {
            "userGoals": {"g1": {"userId": "u", "title": "Kept", "target": 2}},
            "users": {"u": {"achievements": ["ok", bad_id]}},
        }

        result = DocumentImporter(target_db).import_documents(data)
        assert result.goals_imported == 1
        assert result.achievements_imported == 1
        assert result.skipped == ["users/u/achievements[1]"]

        assert [g.title for g in GoalManager(target_db).list_goals("u")] == ["Kept"]
        assert AchievementLedger(target_db).list_achievements("u") == ["ok"]

    def test_mixed_offsets_sort_by_instant(self, target_db):
        data = {
            "userGoals": {
                "old": {"userId": "u", "title": "old", "target": 1,
                        "createdAt": "2024-01-02T00:30:00+00:00"},
                "new": {"userId": "u", "title": "new", "target": 1,
                        "createdAt": "2024-01-01T20:00:00-05:00"},
            },
        }
        DocumentImporter(target_db).import_documents(data)

        goals = GoalManager(target_db).list_goals("u")
        assert [g.id for g in goals] == ["new", "old"]
        assert goals[0].created_at == "2024-01-02T01:00:00+00:00"

    def test_import_file(self, db, populated, user_id, tmp_path, target_db):
        path = tmp_path / "growth.json"
        DocumentExporter(db).export_to_file(user_id, path)

        result = DocumentImporter(target_db).import_file(path)
        assert result.goals_imported == 2


class TestRecords:
    """Tests for document record schemas."""

    def test_enrollment_record_accepts_snake_case(self):
        record = EnrollmentRecord(user_id="u", challenge_id="prayer-7", status="completed")
        assert record.status == EnrollmentStatus.COMPLETED
        assert record.to_document()["challengeId"] == "prayer-7"

    def test_goal_record_clamps_progress(self):
        record = GoalRecord.model_validate({"userId": "u", "currentProgress": -3, "target": 0})
        assert record.current_progress == 0
        assert record.target == 1
