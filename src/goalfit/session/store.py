"""Record store used by the profile orchestrator."""

from __future__ import annotations

from typing import Optional, Protocol

from goalfit.db.connection import DatabaseConnection
from goalfit.db.queries import DailyGoalsQueries, MeasurementQueries, ProfileQueries
from goalfit.profiles.records import DailyGoalsRecord, ProfileRecord
from goalfit.tracking.models import Metric


class RecordStore(Protocol):
    """Get/put access to profile and daily-goals records.

    Implementations may define these as plain methods (run in a worker
    thread by the orchestrator) or as ``async def`` coroutines.
    """

    def load_profile(self, user_id: int) -> Optional[ProfileRecord]:
        ...

    def load_current_body_fat(self, user_id: int) -> Optional[float]:
        ...

    def save_profile(self, record: ProfileRecord) -> None:
        ...

    def upsert_daily_goals(self, record: DailyGoalsRecord) -> None:
        ...


class SQLiteRecordStore:
    """RecordStore backed by the local SQLite database."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def load_profile(self, user_id: int) -> Optional[ProfileRecord]:
        with self.db.get_connection() as conn:
            return ProfileQueries.get_profile(conn, user_id)

    def load_current_body_fat(self, user_id: int) -> Optional[float]:
        with self.db.get_connection() as conn:
            return MeasurementQueries.get_feed(conn, user_id).get(Metric.BODY_FAT).latest

    def save_profile(self, record: ProfileRecord) -> None:
        with self.db.get_connection() as conn:
            ProfileQueries.save_profile(conn, record)

    def upsert_daily_goals(self, record: DailyGoalsRecord) -> None:
        with self.db.get_connection() as conn:
            DailyGoalsQueries.upsert(conn, record)
