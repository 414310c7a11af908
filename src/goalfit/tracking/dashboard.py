"""Load the progress dashboard for a user."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Optional

from goalfit.db.queries import MeasurementQueries, ProfileQueries
from goalfit.tracking.models import Metric
from goalfit.tracking.progress import START_FIELDS, DashboardProgress, summarize_progress


def load_dashboard(
    conn: sqlite3.Connection,
    user_id: int,
    today: Optional[date] = None,
) -> Optional[DashboardProgress]:
    """Read measurements, pin first-seen start values, and summarize progress.

    Start values are fixed the first time a measurement exists for a metric,
    so later edits to the measurement history cannot move them.

    Returns:
        DashboardProgress, or None if the user has no profile
    """
    profile = ProfileQueries.get_profile(conn, user_id)
    if profile is None:
        return None

    feed = MeasurementQueries.get_feed(conn, user_id)

    unpinned = {
        START_FIELDS[metric]: feed.get(metric).first
        for metric in Metric
        if getattr(profile, START_FIELDS[metric]) is None and feed.get(metric).first is not None
    }
    if unpinned:
        ProfileQueries.pin_start_values(conn, user_id, unpinned)
        profile = ProfileQueries.get_profile(conn, user_id)

    return summarize_progress(feed, profile, today)
