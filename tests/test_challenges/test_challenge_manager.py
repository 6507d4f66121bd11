"""Tests for ChallengeManager."""

import logging
from datetime import timedelta

import pytest
from sqlalchemy import text

from shepherd.growth.achievements import CHALLENGE_COMPLETED
from shepherd.growth.catalog import ChallengeCatalog
from shepherd.growth.challenges import (
    ChallengeManager,
    EnrollmentStatus,
    share_message,
)
from shepherd.growth.errors import NotAuthenticated, ValidationError
from shepherd.growth.progress import DerivedProgress, ProgressStatus


def _short_catalog() -> ChallengeCatalog:
    """Catalog with a two-day prayer streak and a three-hour service target."""
    return ChallengeCatalog.from_dict(
        {
            "version": "test",
            "templates": [
                {
                    "id": "prayer-2",
                    "title": "Two Days of Prayer",
                    "category": "prayer",
                    "duration": 2,
                    "type": "streak",
                    "target": 2,
                    "unit": "days",
                },
                {
                    "id": "service-3",
                    "title": "Three Hours of Service",
                    "category": "service",
                    "type": "accumulative",
                    "target": 3,
                    "unit": "hours",
                },
            ],
        }
    )


@pytest.fixture
def short_manager(db, engine, ledger):
    return ChallengeManager(db, catalog=_short_catalog(), engine=engine, ledger=ledger)


class TestJoin:
    """Tests for joining challenges."""

    def test_join_by_id(self, challenge_manager, user_id):
        enrollment = challenge_manager.join(user_id, "prayer-7")

        assert enrollment.id is not None
        assert enrollment.user_id == user_id
        assert enrollment.challenge_id == "prayer-7"
        assert enrollment.status == EnrollmentStatus.ACTIVE.value
        assert enrollment.progress == 0
        assert enrollment.completed_at is None

        data = enrollment.get_challenge_data()
        assert data.title == "7-Day Prayer Streak"
        assert data.category == "prayer"
        assert data.target == 7

    def test_end_date_from_duration(self, challenge_manager, user_id):
        from shepherd.growth.db import from_iso

        enrollment = challenge_manager.join(user_id, "bible-30")
        start = from_iso(enrollment.start_date)
        end = from_iso(enrollment.end_date)
        assert end - start == timedelta(days=30)
        assert enrollment.days_remaining in (29, 30)

    def test_join_template_object(self, challenge_manager, catalog, user_id):
        enrollment = challenge_manager.join(user_id, catalog.get("service-10"))
        assert enrollment.challenge_id == "service-10"

    def test_open_ended_template(self, short_manager, user_id):
        enrollment = short_manager.join(user_id, "service-3")
        assert enrollment.end_date is None
        assert enrollment.days_remaining is None

    def test_unknown_template(self, challenge_manager, user_id):
        with pytest.raises(ValidationError):
            challenge_manager.join(user_id, "not-a-challenge")

    def test_requires_user(self, challenge_manager):
        with pytest.raises(NotAuthenticated):
            challenge_manager.join(None, "prayer-7")
        assert challenge_manager.list_enrollments("anyone") == []

    def test_snapshot_survives_catalog_change(self, db, engine, user_id):
        """Test enrollments keep the template fields they joined with."""
        ChallengeManager(db, catalog=_short_catalog(), engine=engine).join(user_id, "prayer-2")

        manager = ChallengeManager(db, catalog=ChallengeCatalog([]), engine=engine)
        [enrollment] = manager.list_active(user_id)
        assert enrollment.get_challenge_data().target == 2
        assert enrollment.title == "Two Days of Prayer"


class TestQueries:
    """Tests for enrollment views."""

    def test_available_excludes_joined(self, challenge_manager, catalog, user_id):
        """Test a joined challenge is not offered again."""
        challenge_manager.join(user_id, "prayer-7")

        available = challenge_manager.available_challenges(user_id)
        assert "prayer-7" not in {t.id for t in available}
        assert len(available) == len(catalog) - 1

    def test_available_excludes_completed(self, challenge_manager, user_id):
        enrollment = challenge_manager.join(user_id, "scripture-10")
        challenge_manager.complete(enrollment.id, user_id)

        available = {t.id for t in challenge_manager.available_challenges(user_id)}
        assert "scripture-10" not in available

    def test_available_is_per_user(self, challenge_manager, catalog, user_id):
        challenge_manager.join("someone-else", "prayer-7")
        assert len(challenge_manager.available_challenges(user_id)) == len(catalog)

    def test_list_active_newest_first(self, challenge_manager, user_id):
        first = challenge_manager.join(user_id, "prayer-7")
        second = challenge_manager.join(user_id, "bible-30")

        active = challenge_manager.list_active(user_id)
        assert [e.id for e in active] == [second.id, first.id]

    def test_list_completed(self, challenge_manager, user_id):
        a = challenge_manager.join(user_id, "scripture-10")
        challenge_manager.join(user_id, "prayer-7")
        challenge_manager.complete(a.id, user_id)

        completed = challenge_manager.list_completed(user_id)
        assert [e.id for e in completed] == [a.id]
        assert [e.challenge_id for e in challenge_manager.list_active(user_id)] == ["prayer-7"]

    def test_get_enrollment_checks_owner(self, challenge_manager, user_id):
        enrollment = challenge_manager.join(user_id, "prayer-7")
        assert challenge_manager.get_enrollment(enrollment.id, user_id=user_id) is not None
        assert challenge_manager.get_enrollment(enrollment.id, user_id="someone-else") is None

    def test_status_query_fallback(self, challenge_manager, user_id, monkeypatch, caplog):
        """Test a failing status query is recovered and recorded."""
        enrollment = challenge_manager.join(user_id, "prayer-7")
        challenge_manager.join(user_id, "scripture-10")
        challenge_manager.complete(enrollment.id, user_id)

        from shepherd.growth.challenges import manager as challenge_module

        real_select = challenge_module.select
        calls = []

        def broken_first_select(*args, **kwargs):
            calls.append(args)
            stmt = real_select(*args, **kwargs)
            if len(calls) == 1:
                return stmt.where(text("no_such_column = 1"))
            return stmt

        monkeypatch.setattr(challenge_module, "select", broken_first_select)

        with caplog.at_level(logging.WARNING):
            completed = challenge_manager.list_completed(user_id)

        assert [e.id for e in completed] == [enrollment.id]
        [failure] = challenge_manager.degraded_queries
        assert failure.label == "userChallenges by userId and status=completed"
        assert "falling back" in caplog.text


class TestEvaluate:
    """Tests for progress evaluation and automatic completion."""

    def test_progress_without_completion(self, challenge_manager, pray_on, ledger, user_id):
        pray_on(0, 1, 2)
        enrollment = challenge_manager.join(user_id, "prayer-7")

        result = challenge_manager.evaluate(enrollment)
        assert result.progress.current == 3
        assert result.progress.percentage == pytest.approx(3 / 7 * 100)
        assert not result.newly_completed
        assert not result.is_completed
        assert ledger.list_achievements(user_id) == []

    def test_reaching_target_completes(self, short_manager, pray_on, ledger, user_id):
        """Test an enrollment at 100% completes and awards both achievements."""
        pray_on(0, 1)
        enrollment = short_manager.join(user_id, "prayer-2")

        result = short_manager.evaluate(enrollment)
        assert result.newly_completed
        assert result.is_completed
        assert result.enrollment.completed_at is not None
        assert result.enrollment.progress == 2
        assert ledger.as_set(user_id) == {CHALLENGE_COMPLETED, "challenge:prayer-2"}

    def test_completion_happens_once(self, short_manager, recorder, ledger, user_id):
        recorder.record_volunteer_hours(user_id, 5)
        enrollment = short_manager.join(user_id, "service-3")

        first = short_manager.evaluate(enrollment)
        second = short_manager.evaluate(enrollment)

        assert first.newly_completed
        assert not second.newly_completed
        assert ledger.list_achievements(user_id).count(CHALLENGE_COMPLETED) == 1

    def test_completed_stays_completed(self, short_manager, pray_on, user_id):
        pray_on(0, 1)
        enrollment = short_manager.join(user_id, "prayer-2")
        short_manager.evaluate(enrollment)

        stored = short_manager.get_enrollment(enrollment.id)
        later = short_manager.evaluate(stored)
        assert later.is_completed

    def test_unsupported_metric(self, challenge_manager, user_id):
        enrollment = challenge_manager.join(user_id, "scripture-10")

        result = challenge_manager.evaluate(enrollment)
        assert result.progress.status == ProgressStatus.UNSUPPORTED
        assert not result.is_completed

    def test_evaluate_all(self, short_manager, pray_on, ledger, user_id):
        pray_on(0, 1)
        short_manager.join(user_id, "prayer-2")
        short_manager.join(user_id, "service-3")

        results = short_manager.evaluate_all(user_id)
        by_id = {r.enrollment.challenge_id: r for r in results}

        assert by_id["prayer-2"].newly_completed
        assert by_id["service-3"].progress.current == 0
        assert not by_id["service-3"].is_completed
        assert [e.challenge_id for e in short_manager.list_completed(user_id)] == ["prayer-2"]

    def test_evaluate_all_with_workers(self, tmp_path, engine, user_id):
        """Test threaded progress reads on a file database."""
        from shepherd.growth.activity import ActivityRecorder, ActivitySource
        from shepherd.growth.db.sqlite import Database
        from shepherd.growth.progress import ProgressEngine

        file_db = Database(str(tmp_path / "growth.db"))
        file_db.create_tables()
        source = ActivitySource(file_db, tz=engine.source.tz)
        manager = ChallengeManager(
            file_db,
            catalog=_short_catalog(),
            engine=ProgressEngine(source, clock=engine.clock),
            progress_workers=4,
        )
        ActivityRecorder(file_db).record_volunteer_hours(user_id, 3)
        manager.join(user_id, "prayer-2")
        manager.join(user_id, "service-3")

        results = manager.evaluate_all(user_id)
        assert len(results) == 2
        assert {r.enrollment.challenge_id for r in results if r.is_completed} == {"service-3"}


class TestExplicitComplete:
    """Tests for explicit completion."""

    def test_complete(self, challenge_manager, ledger, user_id):
        enrollment = challenge_manager.join(user_id, "scripture-10")

        completed = challenge_manager.complete(enrollment.id, user_id)
        assert completed.status == EnrollmentStatus.COMPLETED.value
        assert completed.completed_at is not None
        assert ledger.has(user_id, "challenge:scripture-10")

    def test_complete_twice_is_noop(self, challenge_manager, ledger, user_id):
        enrollment = challenge_manager.join(user_id, "scripture-10")
        first = challenge_manager.complete(enrollment.id, user_id)
        second = challenge_manager.complete(enrollment.id, user_id)

        assert second.completed_at == first.completed_at
        assert ledger.list_achievements(user_id).count(CHALLENGE_COMPLETED) == 1

    def test_complete_other_users_enrollment(self, challenge_manager, user_id):
        enrollment = challenge_manager.join("someone-else", "prayer-7")
        assert challenge_manager.complete(enrollment.id, user_id) is None
        assert challenge_manager.get_enrollment(enrollment.id).is_active


class TestShareMessage:
    """Tests for the share text."""

    def test_message(self):
        progress = DerivedProgress(current=3, target=7, percentage=42.857, unit="days")
        assert share_message("7-Day Prayer Challenge", progress) == (
            "I'm 43% complete with the 7-Day Prayer Challenge! "
            "Join me in this spiritual journey!"
        )

    def test_missing_title(self):
        progress = DerivedProgress(current=0, target=7, percentage=0)
        assert "with the challenge!" in share_message(None, progress)
