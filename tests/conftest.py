"""
Pytest configuration and fixtures for testing.
"""

import pytest
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Sequence

from fastapi.testclient import TestClient

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "test"

from config.test_settings import test_settings
from app.core.engine import MutationEngine
from app.core.models import ScamPattern
from app.core.pattern_store import PatternStore
from app.main import create_app

# A Wednesday afternoon
FIXED_NOW = datetime(2024, 6, 12, 15, 30, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


def make_pattern(
    pattern_id: str,
    features: Sequence[float],
    category: str = "Bank Fraud",
    script: str = "Your bank account is blocked, share OTP immediately",
    created_at: Optional[datetime] = None,
) -> ScamPattern:
    """Build a pattern directly, bypassing extraction."""
    return ScamPattern(
        id=pattern_id,
        category=category,
        script=script,
        features=tuple(float(value) for value in features),
        created_at=created_at or FIXED_NOW,
    )


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def store():
    return PatternStore(capacity=test_settings.mutation.store_capacity, clock=fixed_clock)


@pytest.fixture
def engine(store):
    """Engine with the deterministic test configuration and a fixed clock."""
    return MutationEngine.from_settings(test_settings.mutation, store=store, clock=fixed_clock)


@pytest.fixture
def client(engine):
    """Test client whose application uses the ``engine`` fixture."""
    app = create_app(test_settings)
    app.state.engine = engine

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def days_ago():
    def _days_ago(days: float) -> datetime:
        return FIXED_NOW - timedelta(days=days)
    return _days_ago
