"""Energy expenditure model.

Calculates BMR (Basal Metabolic Rate) and TDEE (Total Daily Energy
Expenditure) from body metrics and an activity level.

Uses Mifflin-St Jeor equation for BMR as it's widely validated for
calculating resting metabolic rate.
"""

from __future__ import annotations

import math
from typing import Optional, Union

from goalfit.profiles.models import (
    ActivityLevel,
    AnthropometricProfile,
    EnergyResult,
    Sex,
    coerce_enum,
)

# Activity level multipliers (Harris-Benedict activity factors)
ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

# Mifflin-St Jeor sex constants
SEX_CONSTANTS = {
    Sex.MALE: 5.0,
    Sex.FEMALE: -161.0,
}


def _positive(value: Optional[float]) -> bool:
    # NaN and inf count as missing
    return value is not None and math.isfinite(value) and value > 0


def calculate_bmr(
    weight_kg: Optional[float],
    height_cm: Optional[float],
    age_years: Optional[int],
    sex: Union[Sex, str, None],
) -> Optional[float]:
    """Calculate Basal Metabolic Rate using Mifflin-St Jeor equation.

    Args:
        weight_kg: Weight in kilograms
        height_cm: Height in centimeters
        age_years: Age in years
        sex: Biological sex

    Returns:
        BMR in kcal/day, or None if any input is missing, non-positive
        or not finite

    Raises:
        InvalidDomainValue: If sex is not a known value
    """
    sex_enum = coerce_enum(Sex, sex, "sex")
    if sex_enum is None:
        return None
    if not (_positive(weight_kg) and _positive(height_cm) and _positive(age_years)):
        return None

    return (
        (10 * weight_kg) + (6.25 * height_cm) - (5 * age_years) + SEX_CONSTANTS[sex_enum]
    )


def calculate_tdee(
    bmr: Optional[float],
    activity_level: Union[ActivityLevel, str, None],
) -> Optional[float]:
    """Calculate Total Daily Energy Expenditure.

    Args:
        bmr: Basal Metabolic Rate
        activity_level: Activity level

    Returns:
        TDEE in kcal/day, or None if bmr or activity level is missing

    Raises:
        InvalidDomainValue: If activity_level is not a known value
    """
    activity_enum = coerce_enum(ActivityLevel, activity_level, "activity_level")
    if bmr is None or activity_enum is None:
        return None
    return bmr * ACTIVITY_MULTIPLIERS[activity_enum]


def estimate_energy(profile: AnthropometricProfile) -> EnergyResult:
    """Run BMR and TDEE for a profile."""
    bmr = calculate_bmr(
        profile.weight_kg, profile.height_cm, profile.age_years, profile.sex
    )
    tdee = calculate_tdee(bmr, profile.activity_level)
    return EnergyResult(bmr_kcal=bmr, tdee_kcal=tdee)


def calculate_bmi(weight_kg: Optional[float], height_cm: Optional[float]) -> Optional[float]:
    """Body mass index, or None when weight or height is missing."""
    if not (_positive(weight_kg) and _positive(height_cm)):
        return None
    height_m = height_cm / 100
    return weight_kg / (height_m * height_m)


def bmi_category(bmi: Optional[float]) -> Optional[str]:
    """WHO adult BMI category."""
    if bmi is None:
        return None
    if bmi < 18.5:
        return "underweight"
    if bmi < 25:
        return "normal"
    if bmi < 30:
        return "overweight"
    return "obese"

