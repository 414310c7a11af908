"""Pytest fixtures for goalfit tests."""

from __future__ import annotations

import tempfile
from datetime import date
from pathlib import Path

import pytest

import goalfit.config.settings as settings_module
from goalfit.config.settings import Settings
from goalfit.db.connection import DatabaseConnection, set_db
from goalfit.profiles.records import ProfileRecord


@pytest.fixture(autouse=True)
def default_settings():
    """Run every test against default settings, not ~/.goalfit/config.yaml."""
    settings_module._settings = Settings()
    yield settings_module._settings
    settings_module._settings = None


@pytest.fixture
def temp_db():
    """Create a temporary database with schema."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    db = DatabaseConnection(db_path)
    db.initialize_schema()

    yield db

    # Cleanup
    db_path.unlink(missing_ok=True)


@pytest.fixture
def global_db(temp_db):
    """Point get_db() at the temporary database for the duration of a test."""
    set_db(temp_db)
    yield temp_db
    set_db(None)


@pytest.fixture
def sample_profile() -> ProfileRecord:
    """A complete weight-loss profile: 90 kg to 80 kg in 70 days."""
    return ProfileRecord(
        user_id=1,
        weight=90.0,
        start_weight=90.0,
        height=180.0,
        age=30,
        gender="male",
        activity_level="moderate",
        goal="lose",
        target_weight=80.0,
        target_date=date(2024, 3, 11),
        goal_type="weight",
        macro_strategy="warrior",
    )
