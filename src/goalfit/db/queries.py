"""Database queries for profiles, daily goals and measurements."""

from __future__ import annotations

import sqlite3
from datetime import date, datetime
from typing import Optional

from goalfit.profiles.records import DERIVED_FIELDS, USER_FIELDS, DailyGoalsRecord, ProfileRecord
from goalfit.tracking.models import (
    BodyMeasurementEntry,
    MeasurementFeed,
    Metric,
    MetricReading,
    WeightEntry,
)

PROFILE_COLUMNS = ("user_id",) + USER_FIELDS + DERIVED_FIELDS + ("updated_at",)

# Start values are write-once: the stored value wins over anything newer
START_COLUMNS = (
    "start_weight",
    "start_body_fat_percentage",
    "start_muscle_percentage",
    "start_belly_cm",
)

DAILY_GOALS_COLUMNS = (
    "user_id",
    "goal_date",
    "calories",
    "protein",
    "carbs",
    "fats",
    "protein_percentage",
    "carbs_percentage",
    "fats_percentage",
    "bmr",
    "tdee",
    "calorie_deficit",
    "weight_difference_kg",
    "weeks_to_goal",
    "days_to_goal",
    "weekly_calorie_deficit",
    "total_calories_needed",
    "weekly_fat_loss_g",
    "is_gaining_weight",
    "goal_type",
    "is_realistic_goal",
    "warning_message",
)


def _to_db(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


class ProfileQueries:
    """Database queries for user profiles."""

    @staticmethod
    def get_profile(conn: sqlite3.Connection, user_id: int) -> Optional[ProfileRecord]:
        """Get a user's profile, or None if it doesn't exist."""
        row = conn.execute(
            f"SELECT {', '.join(PROFILE_COLUMNS)} FROM profiles WHERE user_id = ?",
            (user_id,),
        ).fetchone()

        if row is None:
            return None

        data = dict(row)
        if data["target_date"]:
            data["target_date"] = date.fromisoformat(data["target_date"])
        if data["updated_at"]:
            data["updated_at"] = datetime.fromisoformat(data["updated_at"])
        return ProfileRecord(**data)

    @staticmethod
    def save_profile(conn: sqlite3.Connection, record: ProfileRecord) -> None:
        """Insert or update a profile.

        Start values already stored are kept even if ``record`` differs.
        """
        columns = PROFILE_COLUMNS
        placeholders = ", ".join("?" for _ in columns)
        assignments = ", ".join(
            f"{col} = COALESCE(profiles.{col}, excluded.{col})"
            if col in START_COLUMNS
            else f"{col} = excluded.{col}"
            for col in columns
            if col != "user_id"
        )
        conn.execute(
            f"""
            INSERT INTO profiles ({', '.join(columns)})
            VALUES ({placeholders})
            ON CONFLICT(user_id) DO UPDATE SET {assignments}
            """,
            tuple(_to_db(getattr(record, col)) for col in columns),
        )
        conn.commit()

    @staticmethod
    def pin_start_values(
        conn: sqlite3.Connection,
        user_id: int,
        starts: dict[str, float],
    ) -> None:
        """Fill in start values that are still empty. Existing ones never change."""
        starts = {k: v for k, v in starts.items() if k in START_COLUMNS and v is not None}
        if not starts:
            return
        assignments = ", ".join(f"{col} = COALESCE({col}, ?)" for col in starts)
        conn.execute(
            f"UPDATE profiles SET {assignments} WHERE user_id = ?",
            (*starts.values(), user_id),
        )
        conn.commit()


class DailyGoalsQueries:
    """Database queries for daily goal snapshots."""

    @staticmethod
    def upsert(conn: sqlite3.Connection, record: DailyGoalsRecord) -> None:
        """Insert today's goals or replace the existing row for that day."""
        columns = DAILY_GOALS_COLUMNS
        assignments = ", ".join(
            f"{col} = excluded.{col}" for col in columns if col not in ("user_id", "goal_date")
        )
        conn.execute(
            f"""
            INSERT INTO daily_goals ({', '.join(columns)})
            VALUES ({', '.join('?' for _ in columns)})
            ON CONFLICT(user_id, goal_date) DO UPDATE SET {assignments},
                updated_at = CURRENT_TIMESTAMP
            """,
            tuple(_to_db(getattr(record, col)) for col in columns),
        )
        conn.commit()

    @staticmethod
    def get_for_date(
        conn: sqlite3.Connection, user_id: int, goal_date: date
    ) -> Optional[DailyGoalsRecord]:
        """Get the goals row for one day."""
        row = conn.execute(
            f"""
            SELECT {', '.join(DAILY_GOALS_COLUMNS)} FROM daily_goals
            WHERE user_id = ? AND goal_date = ?
            """,
            (user_id, goal_date.isoformat()),
        ).fetchone()

        if row is None:
            return None

        data = dict(row)
        data["goal_date"] = date.fromisoformat(data["goal_date"])
        data["is_gaining_weight"] = bool(data["is_gaining_weight"])
        data["is_realistic_goal"] = bool(data["is_realistic_goal"])
        return DailyGoalsRecord(**data)


class MeasurementQueries:
    """Database queries for weigh-ins and tape measurements."""

    @staticmethod
    def add_weight(conn: sqlite3.Connection, entry: WeightEntry) -> WeightEntry:
        """Add a weigh-in. An existing entry for the same date is replaced."""
        cursor = conn.execute(
            """
            INSERT OR REPLACE INTO weight_log
                (user_id, weight_kg, body_fat_percentage, muscle_percentage, measured_at, notes)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                entry.user_id,
                entry.weight_kg,
                entry.body_fat_percentage,
                entry.muscle_percentage,
                entry.measured_at.isoformat(),
                entry.notes,
            ),
        )
        conn.commit()
        entry.log_id = cursor.lastrowid
        return entry

    @staticmethod
    def add_body_measurement(
        conn: sqlite3.Connection, entry: BodyMeasurementEntry
    ) -> BodyMeasurementEntry:
        """Add a tape measurement. An existing entry for the same date is replaced."""
        cursor = conn.execute(
            """
            INSERT OR REPLACE INTO body_measurements (user_id, belly_cm, measured_at, notes)
            VALUES (?, ?, ?, ?)
            """,
            (entry.user_id, entry.belly_cm, entry.measured_at.isoformat(), entry.notes),
        )
        conn.commit()
        entry.log_id = cursor.lastrowid
        return entry

    @staticmethod
    def get_weight_history(
        conn: sqlite3.Connection,
        user_id: int,
        days: Optional[int] = None,
    ) -> list[WeightEntry]:
        """
        Get weigh-ins for a user in chronological order.

        Args:
            user_id: User ID
            days: If set, return only the last N entries
        """
        query = """
            SELECT log_id, user_id, weight_kg, measured_at,
                   body_fat_percentage, muscle_percentage, notes
            FROM weight_log
            WHERE user_id = ?
            ORDER BY measured_at DESC
        """
        params: list = [user_id]
        if days:
            query += " LIMIT ?"
            params.append(days)

        rows = conn.execute(query, params).fetchall()

        return [
            WeightEntry(
                log_id=row["log_id"],
                user_id=row["user_id"],
                weight_kg=row["weight_kg"],
                measured_at=date.fromisoformat(row["measured_at"]),
                body_fat_percentage=row["body_fat_percentage"],
                muscle_percentage=row["muscle_percentage"],
                notes=row["notes"],
            )
            for row in reversed(rows)  # Return in chronological order
        ]

    @staticmethod
    def _first_and_latest(
        conn: sqlite3.Connection, table: str, column: str, user_id: int
    ) -> MetricReading:
        # table/column come from the fixed mapping in get_feed, never from input
        reading = MetricReading()
        for order, attr in (("ASC", "first"), ("DESC", "latest")):
            row = conn.execute(
                f"""
                SELECT {column} FROM {table}
                WHERE user_id = ? AND {column} IS NOT NULL
                ORDER BY measured_at {order} LIMIT 1
                """,
                (user_id,),
            ).fetchone()
            if row is not None:
                setattr(reading, attr, row[0])
        return reading

    @staticmethod
    def get_feed(conn: sqlite3.Connection, user_id: int) -> MeasurementFeed:
        """Earliest and latest reading for every tracked metric."""
        sources = {
            Metric.WEIGHT: ("weight_log", "weight_kg"),
            Metric.BODY_FAT: ("weight_log", "body_fat_percentage"),
            Metric.MUSCLE: ("weight_log", "muscle_percentage"),
            Metric.BELLY: ("body_measurements", "belly_cm"),
        }
        return MeasurementFeed(
            readings={
                metric: MeasurementQueries._first_and_latest(conn, table, column, user_id)
                for metric, (table, column) in sources.items()
            }
        )
