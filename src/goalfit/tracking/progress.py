"""Transformation progress towards weight, body-fat, muscle and belly goals.

Progress is the signed fraction of the start→target distance covered:

    (current - start) / (target - start) * 100, clamped to [0, 100]

The sign cancels out for both reduction goals (target below start) and
gain goals (target above start), so one formula serves every metric.
Moving away from the target reads as 0, overshooting reads as 100.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from goalfit.profiles.energy import bmi_category, calculate_bmi
from goalfit.profiles.goal_solver import days_until
from goalfit.profiles.records import ProfileRecord
from goalfit.tracking.models import MeasurementFeed, Metric

# Profile fields holding explicit start overrides and targets per metric
START_FIELDS = {
    Metric.WEIGHT: "start_weight",
    Metric.BODY_FAT: "start_body_fat_percentage",
    Metric.MUSCLE: "start_muscle_percentage",
    Metric.BELLY: "start_belly_cm",
}
TARGET_FIELDS = {
    Metric.WEIGHT: "target_weight",
    Metric.BODY_FAT: "target_body_fat_percentage",
    Metric.MUSCLE: "target_muscle_percentage",
    Metric.BELLY: "target_belly_cm",
}

# Without an explicit belly target, aim for a 10% reduction from start
DEFAULT_BELLY_TARGET_RATIO = 0.9


def percent_complete(
    start: Optional[float],
    current: Optional[float],
    target: Optional[float],
) -> float:
    """Percent of the way from start to target, in [0, 100].

    A zero-width goal (start == target) has no progress to make and returns 0.
    Missing values also return 0.
    """
    if start is None or current is None or target is None:
        return 0.0
    distance = target - start
    if distance == 0:
        return 0.0
    progress = (current - start) / distance * 100
    return max(0.0, min(100.0, progress))


@dataclass
class ProgressSnapshot:
    """Progress on one metric."""

    metric: Metric
    start_value: float
    current_value: float
    target_value: float
    percent_complete: float

    @property
    def remaining(self) -> float:
        """Absolute distance still to cover (0 once the target is passed)."""
        if self.percent_complete >= 100:
            return 0.0
        return abs(self.target_value - self.current_value)


def build_snapshot(
    metric: Metric,
    start: Optional[float],
    current: Optional[float],
    target: Optional[float],
) -> Optional[ProgressSnapshot]:
    """Snapshot for one metric, or None if any of the three values is missing."""
    if start is None or current is None or target is None:
        return None
    return ProgressSnapshot(
        metric=metric,
        start_value=start,
        current_value=current,
        target_value=target,
        percent_complete=percent_complete(start, current, target),
    )


def resolve_start(metric: Metric, feed: MeasurementFeed, profile: ProfileRecord) -> Optional[float]:
    """Start value: the profile override if set, else the first measurement."""
    override = getattr(profile, START_FIELDS[metric])
    if override is not None:
        return override
    return feed.get(metric).first


def resolve_current(metric: Metric, feed: MeasurementFeed, profile: ProfileRecord) -> Optional[float]:
    """Current value: the latest measurement (profile weight as a fallback)."""
    latest = feed.get(metric).latest
    if latest is None and metric == Metric.WEIGHT:
        return profile.weight
    return latest


def resolve_target(
    metric: Metric,
    profile: ProfileRecord,
    start: Optional[float],
) -> Optional[float]:
    target = getattr(profile, TARGET_FIELDS[metric])
    if target is None and metric == Metric.BELLY and start is not None:
        return round(start * DEFAULT_BELLY_TARGET_RATIO, 1)
    return target


def calculate_progress(
    feed: MeasurementFeed,
    profile: ProfileRecord,
) -> dict[Metric, ProgressSnapshot]:
    """Progress snapshots for every metric that has start, current and target."""
    snapshots = {}
    for metric in Metric:
        start = resolve_start(metric, feed, profile)
        current = resolve_current(metric, feed, profile)
        target = resolve_target(metric, profile, start)
        snapshot = build_snapshot(metric, start, current, target)
        if snapshot is not None:
            snapshots[metric] = snapshot
    return snapshots


@dataclass
class DashboardProgress:
    """Everything the progress dashboard shows."""

    snapshots: dict[Metric, ProgressSnapshot] = field(default_factory=dict)
    days_remaining: Optional[int] = None
    current_bmi: Optional[float] = None
    target_bmi: Optional[float] = None
    current_bmi_category: Optional[str] = None
    target_bmi_category: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "metrics": {
                metric.value: {
                    "start": snap.start_value,
                    "current": snap.current_value,
                    "target": snap.target_value,
                    "percent_complete": round(snap.percent_complete, 1),
                    "remaining": round(snap.remaining, 1),
                }
                for metric, snap in self.snapshots.items()
            },
            "days_remaining": self.days_remaining,
            "bmi": {
                "current": round(self.current_bmi, 1) if self.current_bmi is not None else None,
                "target": round(self.target_bmi, 1) if self.target_bmi is not None else None,
                "current_category": self.current_bmi_category,
                "target_category": self.target_bmi_category,
            },
        }


def summarize_progress(
    feed: MeasurementFeed,
    profile: ProfileRecord,
    today: Optional[date] = None,
) -> DashboardProgress:
    """Metric snapshots plus days remaining and BMI context."""
    snapshots = calculate_progress(feed, profile)

    days_remaining = None
    if profile.target_date is not None:
        days_remaining = days_until(profile.target_date, today)

    current_weight = resolve_current(Metric.WEIGHT, feed, profile)
    current_bmi = calculate_bmi(current_weight, profile.height)
    target_bmi = calculate_bmi(profile.target_weight, profile.height)

    return DashboardProgress(
        snapshots=snapshots,
        days_remaining=days_remaining,
        current_bmi=current_bmi,
        target_bmi=target_bmi,
        current_bmi_category=bmi_category(current_bmi),
        target_bmi_category=bmi_category(target_bmi),
    )
