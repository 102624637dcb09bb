"""
Tests for pattern persistence using in-memory SQLite.
"""

import pytest
from datetime import timedelta

from sqlalchemy.exc import IntegrityError

from app.core.engine import MutationEngine
from app.database import (
    PatternRepository,
    ScamPatternRecord,
    check_database_health,
    create_db_engine,
    create_session_factory,
    create_tables,
    drop_tables,
)
from config.test_settings import test_settings
from tests.conftest import FIXED_NOW, fixed_clock, make_pattern


class TestPatternRepository:
    """Saving and reloading patterns."""

    def setup_method(self):
        self.db_engine = create_db_engine("sqlite://")
        create_tables(self.db_engine)
        self.session_factory = create_session_factory(self.db_engine)
        self.repository = PatternRepository(self.session_factory)

    def teardown_method(self):
        drop_tables(self.db_engine)
        self.db_engine.dispose()

    def test_save_and_load_round_trip(self):
        pattern = make_pattern("p1", [0.1, 0.25, 1.0], category="KYC Update")
        pattern.location = "Pune"
        pattern.risk_score = 0.4

        self.repository.save(pattern)
        loaded = self.repository.load_recent()

        assert len(loaded) == 1
        restored = loaded[0]
        assert restored.id == "p1"
        assert restored.category == "KYC Update"
        assert restored.features == pytest.approx((0.1, 0.25, 1.0))
        assert restored.location == "Pune"
        assert restored.risk_score == pytest.approx(0.4)
        assert restored.created_at == FIXED_NOW
        assert restored.created_at.tzinfo is not None

    def test_load_recent_returns_newest_oldest_first(self):
        for index in range(5):
            self.repository.save(make_pattern(f"p{index}", [1.0], created_at=FIXED_NOW - timedelta(days=5 - index)))

        loaded = self.repository.load_recent(limit=3)

        assert [pattern.id for pattern in loaded] == ["p2", "p3", "p4"]
        assert self.repository.count() == 5

    def test_duplicate_id_raises(self):
        self.repository.save(make_pattern("dup", [1.0]))

        with pytest.raises(IntegrityError):
            self.repository.save(make_pattern("dup", [1.0]))

        # Session rolled back; repository still usable
        self.repository.save(make_pattern("other", [1.0]))
        assert self.repository.count() == 2

    def test_record_table_name(self):
        assert ScamPatternRecord.__tablename__ == "scam_patterns"

    def test_health_check(self):
        assert check_database_health(self.db_engine) is True


class TestEnginePersistence:
    """Engine writes through to the database and warm-starts from it."""

    def setup_method(self):
        self.db_engine = create_db_engine("sqlite://")
        create_tables(self.db_engine)
        self.repository = PatternRepository(create_session_factory(self.db_engine))

    def teardown_method(self):
        self.db_engine.dispose()

    def test_restart_restores_store(self):
        first = MutationEngine.from_settings(test_settings.mutation, repository=self.repository, clock=fixed_clock)
        analyzed = [first.analyze(f"Your bank account {index} is blocked, call 9876543210") for index in range(4)]

        restarted = MutationEngine.from_settings(test_settings.mutation, repository=self.repository, clock=fixed_clock)
        loaded = restarted.warm_start()

        assert loaded == 4
        assert {pattern.id for pattern in restarted.all_patterns()} == {pattern.id for pattern in analyzed}
        assert restarted.get_pattern(analyzed[0].id).features == pytest.approx(analyzed[0].features)
