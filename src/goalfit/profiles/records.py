"""Records exchanged with the record store.

``ProfileRecord`` mirrors a user's profile row: user-entered fields plus the
engine-owned derived fields (bmr, tdee, targets and percentages).
``DailyGoalsRecord`` is the per-day snapshot of targets and goal stats.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from datetime import date, datetime
from typing import Any, Optional

# Fields the user edits directly
USER_FIELDS = (
    "weight",
    "start_weight",
    "height",
    "age",
    "gender",
    "activity_level",
    "goal",
    "target_weight",
    "target_date",
    "goal_type",
    "target_body_fat_percentage",
    "macro_strategy",
    "start_body_fat_percentage",
    "start_muscle_percentage",
    "target_muscle_percentage",
    "start_belly_cm",
    "target_belly_cm",
)

# Fields written only by the engine
DERIVED_FIELDS = (
    "bmr",
    "tdee",
    "daily_calorie_target",
    "protein_target_g",
    "carbs_target_g",
    "fats_target_g",
    "calorie_deficit",
    "protein_percentage",
    "carbs_percentage",
    "fats_percentage",
)


def finite_or_none(value: Any) -> Any:
    """Replace NaN/inf floats with None so they never reach storage."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


@dataclass
class ProfileRecord:
    """A user's persisted profile."""

    user_id: int
    weight: Optional[float] = None
    start_weight: Optional[float] = None
    height: Optional[float] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    activity_level: Optional[str] = None
    goal: Optional[str] = None
    target_weight: Optional[float] = None
    target_date: Optional[date] = None
    goal_type: Optional[str] = None
    target_body_fat_percentage: Optional[float] = None
    macro_strategy: Optional[str] = None
    start_body_fat_percentage: Optional[float] = None
    start_muscle_percentage: Optional[float] = None
    target_muscle_percentage: Optional[float] = None
    start_belly_cm: Optional[float] = None
    target_belly_cm: Optional[float] = None
    bmr: Optional[int] = None
    tdee: Optional[int] = None
    daily_calorie_target: Optional[int] = None
    protein_target_g: Optional[int] = None
    carbs_target_g: Optional[int] = None
    fats_target_g: Optional[int] = None
    calorie_deficit: Optional[int] = None
    protein_percentage: Optional[float] = None
    carbs_percentage: Optional[float] = None
    fats_percentage: Optional[float] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        for f in fields(self):
            setattr(self, f.name, finite_or_none(getattr(self, f.name)))

    def user_values(self) -> dict[str, Any]:
        """Return only the user-entered fields."""
        return {name: getattr(self, name) for name in USER_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping with dates as ISO strings."""
        data = asdict(self)
        if self.target_date is not None:
            data["target_date"] = self.target_date.isoformat()
        if self.updated_at is not None:
            data["updated_at"] = self.updated_at.isoformat()
        return data


@dataclass
class DailyGoalsRecord:
    """Targets and goal stats for one user on one calendar day."""

    user_id: int
    goal_date: date
    calories: int
    protein: int
    carbs: int
    fats: int
    protein_percentage: float
    carbs_percentage: float
    fats_percentage: float
    bmr: Optional[int] = None
    tdee: Optional[int] = None
    calorie_deficit: Optional[int] = None
    weight_difference_kg: Optional[float] = None
    weeks_to_goal: Optional[float] = None
    days_to_goal: Optional[int] = None
    weekly_calorie_deficit: Optional[int] = None
    total_calories_needed: Optional[float] = None
    weekly_fat_loss_g: Optional[float] = None
    is_gaining_weight: bool = False
    goal_type: Optional[str] = None
    is_realistic_goal: bool = True
    warning_message: Optional[str] = None

    def __post_init__(self) -> None:
        for f in fields(self):
            setattr(self, f.name, finite_or_none(getattr(self, f.name)))

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping with the date as an ISO string."""
        data = asdict(self)
        data["goal_date"] = self.goal_date.isoformat()
        return data
