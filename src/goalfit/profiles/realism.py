"""Goal realism (feasibility) scoring.

The score is the minimum of several independent component scores, each of
which can only improve as the timeframe grows and can only worsen as the
requested change grows:

- weekly weight change as a percentage of body weight
- weekly body-fat change in percentage points (when both values are known)
- a cap for timeframes shorter than ``min_weeks``
- a cap when the implied daily deficit/surplus is unsustainable

Taking the minimum keeps the overall score monotone in both directions.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

import numpy as np

from goalfit.config import get_settings
from goalfit.config.settings import RealismConfig
from goalfit.profiles.goal_solver import days_until
from goalfit.profiles.models import RealismScore
from goalfit.profiles.records import finite_or_none

# Reason labels in priority order (first present wins as the headline label)
REASON_MISSING_DATA = "missing weight or target date"
REASON_DATE_PASSED = "target date is not in the future"
REASON_TOO_SHORT = "timeframe under 2 weeks"
REASON_UNSUSTAINABLE_DEFICIT = "daily deficit is unsustainable"
REASON_UNSUSTAINABLE_SURPLUS = "daily surplus is unsustainable"
REASON_FAST_LOSS = "weekly weight loss exceeds 1% of body weight"
REASON_FAST_GAIN = "weekly weight gain exceeds 0.5% of body weight"
REASON_FAST_BODY_FAT = "body-fat change is faster than is sustainable"

REASON_PRIORITY = [
    REASON_MISSING_DATA,
    REASON_DATE_PASSED,
    REASON_TOO_SHORT,
    REASON_UNSUSTAINABLE_DEFICIT,
    REASON_UNSUSTAINABLE_SURPLUS,
    REASON_FAST_LOSS,
    REASON_FAST_GAIN,
    REASON_FAST_BODY_FAT,
]

# (minimum score, label), checked top-down
SCORE_LABELS = [
    (80, "moderate/sustainable"),
    (60, "ambitious"),
    (40, "challenging"),
    (0, "too aggressive"),
]


def realism_label(score: int) -> str:
    """Human-readable category for a realism score."""
    for threshold, label in SCORE_LABELS:
        if score >= threshold:
            return label
    return SCORE_LABELS[-1][1]


def is_realistic(score: int, config: Optional[RealismConfig] = None) -> bool:
    """Whether a score counts as a realistic goal."""
    if config is None:
        config = get_settings().realism
    return score >= config.realistic_threshold


def _curve_score(rate: float, curve: list[tuple[float, float]]) -> float:
    xs = [x for x, _ in curve]
    ys = [y for _, y in curve]
    return float(np.interp(rate, xs, ys))


def assess_goal(
    current_weight: Optional[float],
    target_weight: Optional[float],
    target_date: Optional[date],
    current_body_fat: Optional[float] = None,
    target_body_fat: Optional[float] = None,
    today: Optional[date] = None,
    config: Optional[RealismConfig] = None,
    kcal_per_kg: Optional[float] = None,
) -> RealismScore:
    """Score how achievable a goal is and explain the main limiting factor.

    Args:
        current_weight: Current body weight (kg)
        target_weight: Goal weight (kg); may be None for body-fat-only goals
        target_date: Goal deadline
        current_body_fat: Current body fat %
        target_body_fat: Goal body fat %
        today: Reference date (default: today)
        config: Realism policy (default from settings)
        kcal_per_kg: Energy per kg of tissue (default from settings)

    Returns:
        RealismScore with score in [0, 100]
    """
    settings = get_settings()
    if config is None:
        config = settings.realism
    if kcal_per_kg is None:
        kcal_per_kg = settings.energy.kcal_per_kg

    # NaN and inf are treated as missing values
    current_weight = finite_or_none(current_weight)
    target_weight = finite_or_none(target_weight)
    current_body_fat = finite_or_none(current_body_fat)
    target_body_fat = finite_or_none(target_body_fat)

    has_body_fat = current_body_fat is not None and target_body_fat is not None
    has_weight = target_weight is not None

    if (
        current_weight is None
        or current_weight <= 0
        or target_date is None
        or not (has_weight or has_body_fat)
    ):
        return RealismScore(score=0, label=REASON_MISSING_DATA, reasons=[REASON_MISSING_DATA])

    weight_delta = abs(target_weight - current_weight) if has_weight else 0.0
    body_fat_delta = abs(target_body_fat - current_body_fat) if has_body_fat else 0.0
    weight_nontrivial = weight_delta > config.trivial_delta_kg
    body_fat_nontrivial = body_fat_delta > config.trivial_delta_body_fat

    if not (weight_nontrivial or body_fat_nontrivial):
        return RealismScore(score=100, label=realism_label(100), reasons=[])

    days = days_until(target_date, today)
    if days <= 0:
        return RealismScore(score=0, label=REASON_DATE_PASSED, reasons=[REASON_DATE_PASSED])

    weeks = days / 7
    components: list[float] = [100.0]
    reasons: list[str] = []

    if weeks < config.min_weeks:
        components.append(float(config.short_timeframe_cap))
        reasons.append(REASON_TOO_SHORT)

    if weight_nontrivial:
        gaining = target_weight > current_weight
        weekly_rate_pct = weight_delta / current_weight / weeks * 100
        curve = config.gain_rate_curve if gaining else config.loss_rate_curve
        rate_score = _curve_score(weekly_rate_pct, curve)
        components.append(rate_score)
        if rate_score < 80:
            reasons.append(REASON_FAST_GAIN if gaining else REASON_FAST_LOSS)

        daily_kcal = weight_delta * kcal_per_kg / days
        limit = config.max_daily_surplus if gaining else config.max_daily_deficit
        if daily_kcal > limit:
            components.append(float(config.unsustainable_cap))
            reasons.append(
                REASON_UNSUSTAINABLE_SURPLUS if gaining else REASON_UNSUSTAINABLE_DEFICIT
            )

    if body_fat_nontrivial:
        body_fat_rate = body_fat_delta / weeks
        body_fat_score = _curve_score(body_fat_rate, config.body_fat_rate_curve)
        components.append(body_fat_score)
        if body_fat_score < 80:
            reasons.append(REASON_FAST_BODY_FAT)

    score = int(round(max(0.0, min(100.0, min(components)))))
    reasons.sort(key=REASON_PRIORITY.index)
    label = reasons[0] if reasons else realism_label(score)
    return RealismScore(score=score, label=label, reasons=reasons)


def score_goal(
    current_weight: Optional[float],
    target_weight: Optional[float],
    target_date: Optional[date],
    current_body_fat: Optional[float] = None,
    target_body_fat: Optional[float] = None,
    today: Optional[date] = None,
    config: Optional[RealismConfig] = None,
) -> int:
    """Realism score in [0, 100]; 0 when weight or date is missing."""
    return assess_goal(
        current_weight,
        target_weight,
        target_date,
        current_body_fat=current_body_fat,
        target_body_fat=target_body_fat,
        today=today,
        config=config,
    ).score
