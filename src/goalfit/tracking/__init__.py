"""Measurement tracking and transformation progress.

Key components:
- Weigh-in and tape-measurement models
- Percent-of-goal progress per metric (weight, body fat, muscle, belly)
- Dashboard summary with days remaining and BMI context
"""

from goalfit.tracking.models import (
    BodyMeasurementEntry,
    MeasurementFeed,
    Metric,
    MetricReading,
    WeightEntry,
)
from goalfit.tracking.progress import (
    DashboardProgress,
    ProgressSnapshot,
    calculate_progress,
    percent_complete,
)

__all__ = [
    "BodyMeasurementEntry",
    "DashboardProgress",
    "MeasurementFeed",
    "Metric",
    "MetricReading",
    "ProgressSnapshot",
    "WeightEntry",
    "calculate_progress",
    "percent_complete",
]
