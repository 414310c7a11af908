"""Deficit/surplus solving against a target date.

Converts a weight delta into an energy budget using a fixed energy density
for body tissue (``EnergyConfig.kcal_per_kg``, 7700 kcal/kg by default) and
spreads it over the days left until the target date.
"""

from __future__ import annotations

import calendar
import math
from datetime import date
from typing import Optional, Union

from goalfit.config import get_settings
from goalfit.config.settings import EnergyConfig
from goalfit.profiles.models import (
    DeficitPlan,
    GoalDirection,
    ProtocolTempo,
    Sex,
    coerce_enum,
)
from goalfit.utils.logger import setup_logger

logger = setup_logger(__name__)

# Months until the target date for each protocol tempo
TEMPO_MONTHS = {
    ProtocolTempo.SUSTAINABLE: 12,
    ProtocolTempo.STANDARD: 6,
    ProtocolTempo.AGGRESSIVE: 4,
}

DIRECTION_SIGN = {
    GoalDirection.LOSE: -1,
    GoalDirection.MAINTAIN: 0,
    GoalDirection.GAIN: 1,
}


def _usable_weight(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def days_until(target_date: date, today: Optional[date] = None) -> int:
    """Whole days from today to target_date (negative if in the past)."""
    if today is None:
        today = date.today()
    return (target_date - today).days


def solve_deficit(
    current_weight_kg: Optional[float],
    target_weight_kg: Optional[float],
    target_date: Optional[date],
    today: Optional[date] = None,
    kcal_per_kg: Optional[float] = None,
) -> Optional[DeficitPlan]:
    """Calculate the daily energy delta needed to hit target weight on time.

    Args:
        current_weight_kg: Current body weight
        target_weight_kg: Goal body weight
        target_date: Date the goal should be reached
        today: Reference date (default: today)
        kcal_per_kg: Energy per kg of tissue (default from settings)

    Returns:
        DeficitPlan, or None if a weight is missing, non-positive or not
        finite, or the target date is not in the future
    """
    if not (_usable_weight(current_weight_kg) and _usable_weight(target_weight_kg)):
        return None
    if target_date is None:
        return None

    days_remaining = days_until(target_date, today)
    if days_remaining <= 0:
        return None

    if kcal_per_kg is None:
        kcal_per_kg = get_settings().energy.kcal_per_kg

    weight_difference = abs(current_weight_kg - target_weight_kg)
    total_kcal = weight_difference * kcal_per_kg
    daily = round(total_kcal / days_remaining)
    weekly = daily * 7

    return DeficitPlan(
        daily_kcal_delta=daily,
        weekly_kcal_delta=weekly,
        total_kcal_needed=total_kcal,
        days_to_goal=days_remaining,
        weeks_to_goal=round(days_remaining / 7, 1),
        is_gaining=target_weight_kg > current_weight_kg,
        weight_difference_kg=round(weight_difference, 2),
        weekly_fat_loss_g=round(weekly / kcal_per_kg * 1000, 1),
    )


def infer_goal(
    current_weight_kg: float,
    target_weight_kg: float,
    tolerance_kg: Optional[float] = None,
) -> GoalDirection:
    """Classify a weight change as lose/maintain/gain."""
    if tolerance_kg is None:
        tolerance_kg = get_settings().energy.maintain_tolerance_kg
    delta = target_weight_kg - current_weight_kg
    if delta < -tolerance_kg:
        return GoalDirection.LOSE
    if delta > tolerance_kg:
        return GoalDirection.GAIN
    return GoalDirection.MAINTAIN


def resolve_direction(
    goal: Union[GoalDirection, str, None],
    plan: Optional[DeficitPlan],
) -> GoalDirection:
    """Decide which way the energy delta applies.

    When a plan exists its ``is_gaining`` flag wins over the stored goal, so
    a stale "lose" goal can never turn a surplus into a deficit.
    """
    declared = coerce_enum(GoalDirection, goal, "goal")
    if plan is None:
        return declared or GoalDirection.MAINTAIN

    if plan.total_kcal_needed == 0:
        implied = GoalDirection.MAINTAIN
    elif plan.is_gaining:
        implied = GoalDirection.GAIN
    else:
        implied = GoalDirection.LOSE

    if declared is not None and declared != implied:
        logger.warning(
            "Declared goal '%s' disagrees with target weight direction '%s'; using '%s'",
            declared.value,
            implied.value,
            implied.value,
        )
    return implied


def calculate_target_calories(
    tdee: Optional[float],
    goal: Union[GoalDirection, str, None],
    daily_delta: Optional[float],
) -> Optional[int]:
    """Daily calorie target: TDEE shifted by the delta in the goal's direction.

    Only the magnitude of ``daily_delta`` is used; ``goal`` supplies the sign.
    """
    if tdee is None:
        return None
    direction = coerce_enum(GoalDirection, goal, "goal") or GoalDirection.MAINTAIN
    magnitude = abs(daily_delta) if daily_delta is not None else 0
    return round(tdee + DIRECTION_SIGN[direction] * magnitude)


def calorie_floor_warning(
    target_calories: Optional[int],
    sex: Union[Sex, str, None],
    config: Optional[EnergyConfig] = None,
) -> Optional[str]:
    """Warn when a calorie target drops below the safe minimum for the sex."""
    sex_enum = coerce_enum(Sex, sex, "sex")
    if target_calories is None or sex_enum is None:
        return None
    if config is None:
        config = get_settings().energy

    min_safe = config.min_calories_male if sex_enum == Sex.MALE else config.min_calories_female
    if target_calories < min_safe:
        return f"calorie target {target_calories} kcal is below the safe minimum of {min_safe} kcal"
    return None


def _add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def target_date_for_tempo(
    tempo: Union[ProtocolTempo, str],
    today: Optional[date] = None,
) -> date:
    """Target date implied by a protocol tempo preset."""
    tempo_enum = coerce_enum(ProtocolTempo, tempo, "tempo")
    if tempo_enum is None:
        raise ValueError("tempo is required")
    if today is None:
        today = date.today()
    return _add_months(today, TEMPO_MONTHS[tempo_enum])
