"""Data models for body measurements and progress tracking."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class Metric(Enum):
    """Tracked transformation metrics."""
    WEIGHT = "weight"        # reduction (or gain, if the target is higher)
    BODY_FAT = "body_fat"    # reduction
    MUSCLE = "muscle"        # gain
    BELLY = "belly"          # reduction (waist/belly circumference)


@dataclass
class WeightEntry:
    """A single weigh-in, optionally with smart-scale body composition."""

    log_id: Optional[int]
    user_id: int
    weight_kg: float
    measured_at: date
    body_fat_percentage: Optional[float] = None
    muscle_percentage: Optional[float] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.weight_kg) or self.weight_kg <= 0:
            raise ValueError(f"weight_kg must be a positive number, got {self.weight_kg}")
        for name in ("body_fat_percentage", "muscle_percentage"):
            value = getattr(self, name)
            if value is not None and not 0 <= value <= 100:
                raise ValueError(f"{name} must be between 0 and 100, got {value}")


@dataclass
class BodyMeasurementEntry:
    """A tape measurement of waist/belly circumference."""

    log_id: Optional[int]
    user_id: int
    measured_at: date
    belly_cm: float
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.belly_cm) or self.belly_cm <= 0:
            raise ValueError(f"belly_cm must be a positive number, got {self.belly_cm}")


@dataclass
class MetricReading:
    """Earliest and most recent recorded value of one metric."""

    first: Optional[float] = None
    latest: Optional[float] = None


@dataclass
class MeasurementFeed:
    """Earliest and latest readings for every tracked metric."""

    readings: dict[Metric, MetricReading] = field(default_factory=dict)

    def get(self, metric: Metric) -> MetricReading:
        return self.readings.get(metric, MetricReading())
