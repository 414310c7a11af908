"""Energy, goal, macro and realism calculators.

Every calculator here is a pure function: no I/O, no shared state. Missing
inputs give None (or a zero score) instead of raising; unknown enum values
raise InvalidDomainValue.
"""

from goalfit.profiles.energy import calculate_bmr, calculate_tdee, estimate_energy
from goalfit.profiles.goal_solver import calculate_target_calories, solve_deficit
from goalfit.profiles.macros import allocate_macros, normalize_intensity
from goalfit.profiles.models import (
    ActivityLevel,
    AnthropometricProfile,
    DeficitPlan,
    EnergyResult,
    GoalDirection,
    GoalSpec,
    GoalType,
    MacroIntensity,
    MacroPlan,
    RealismScore,
    Sex,
)
from goalfit.profiles.planner import ProfileInputs, ProfilePlan, build_plan
from goalfit.profiles.realism import assess_goal, realism_label, score_goal

__all__ = [
    "ActivityLevel",
    "AnthropometricProfile",
    "DeficitPlan",
    "EnergyResult",
    "GoalDirection",
    "GoalSpec",
    "GoalType",
    "MacroIntensity",
    "MacroPlan",
    "ProfileInputs",
    "ProfilePlan",
    "RealismScore",
    "Sex",
    "allocate_macros",
    "assess_goal",
    "build_plan",
    "calculate_bmr",
    "calculate_target_calories",
    "calculate_tdee",
    "estimate_energy",
    "normalize_intensity",
    "realism_label",
    "score_goal",
    "solve_deficit",
]
