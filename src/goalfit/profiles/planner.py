"""Profile planning pipeline.

Runs the calculators in data-dependency order for one set of profile
inputs:

    EnergyModel -> GoalSolver -> MacroAllocator -> FeasibilityScorer

Everything here is pure. Persisting the result and reacting to edits is
the session orchestrator's job.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from datetime import date
from typing import Any, Optional

from goalfit.config import get_settings
from goalfit.config.settings import Settings
from goalfit.errors import InvalidDomainValue, NonFiniteValue
from goalfit.profiles.energy import estimate_energy
from goalfit.profiles.goal_solver import (
    calculate_target_calories,
    calorie_floor_warning,
    resolve_direction,
    solve_deficit,
)
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
    coerce_enum,
)
from goalfit.profiles.realism import assess_goal, is_realistic
from goalfit.profiles.records import USER_FIELDS, DailyGoalsRecord, ProfileRecord

DEFAULT_INTENSITY = MacroIntensity.WARRIOR

ANTHROPOMETRIC_FIELDS = ("weight", "height", "age", "gender", "activity_level")

NUMERIC_FIELDS = (
    "weight",
    "start_weight",
    "height",
    "age",
    "target_weight",
    "target_body_fat_percentage",
    "start_body_fat_percentage",
    "start_muscle_percentage",
    "target_muscle_percentage",
    "start_belly_cm",
    "target_belly_cm",
    "current_body_fat_percentage",
)


@dataclass
class ProfileInputs:
    """User-entered profile fields (the editable form state)."""

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
    # Latest measured body fat; read from the measurement feed, never persisted
    current_body_fat_percentage: Optional[float] = None

    @classmethod
    def from_record(
        cls,
        record: ProfileRecord,
        current_body_fat_percentage: Optional[float] = None,
    ) -> "ProfileInputs":
        return cls(
            **record.user_values(),
            current_body_fat_percentage=current_body_fat_percentage,
        )

    def with_changes(self, **changes: Any) -> "ProfileInputs":
        """Return a copy with ``changes`` applied after validating them.

        Raises:
            InvalidDomainValue: For unknown field names or enum values
            NonFiniteValue: For NaN or infinite numbers
        """
        known = {f.name for f in fields(self)}
        for name in changes:
            if name not in known:
                raise InvalidDomainValue("field", name, sorted(known))
        updated = replace(self, **changes)
        updated.validate()
        return updated

    def validate(self) -> None:
        """Reject non-finite numbers and normalize enum fields to canonical strings.

        Raises:
            InvalidDomainValue: If an enum field holds an unknown value
            NonFiniteValue: If a numeric field holds NaN or infinity
        """
        for name in NUMERIC_FIELDS:
            value = getattr(self, name)
            if isinstance(value, float) and not math.isfinite(value):
                raise NonFiniteValue(name, value)
        for name, enum_cls in (
            ("gender", Sex),
            ("activity_level", ActivityLevel),
            ("goal", GoalDirection),
            ("goal_type", GoalType),
        ):
            member = coerce_enum(enum_cls, getattr(self, name), name)
            setattr(self, name, member.value if member is not None else None)
        if self.macro_strategy:
            self.macro_strategy = normalize_intensity(self.macro_strategy).value


def missing_fields(inputs: ProfileInputs) -> list[str]:
    """Required fields that are still empty, in form order."""
    missing = [name for name in ANTHROPOMETRIC_FIELDS if getattr(inputs, name) in (None, "")]
    goal_spec = GoalSpec(
        goal_type=inputs.goal_type,
        start_weight_kg=inputs.start_weight,
        target_weight_kg=inputs.target_weight,
        target_body_fat_pct=inputs.target_body_fat_percentage,
        target_date=inputs.target_date,
    )
    missing.extend(goal_spec.missing_fields())
    return missing


@dataclass
class ProfilePlan:
    """Everything computed for one set of profile inputs."""

    inputs: ProfileInputs
    energy: EnergyResult
    deficit: Optional[DeficitPlan]
    direction: GoalDirection
    target_calories: Optional[int]
    macros: Optional[MacroPlan]
    realism: RealismScore
    is_realistic: bool
    missing: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.macros is not None and not self.missing

    def to_profile_record(self, user_id: int) -> ProfileRecord:
        """Profile record with user fields and freshly derived fields."""
        macros = self.macros
        return ProfileRecord(
            user_id=user_id,
            **{name: getattr(self.inputs, name) for name in USER_FIELDS},
            bmr=_round_or_none(self.energy.bmr_kcal),
            tdee=_round_or_none(self.energy.tdee_kcal),
            daily_calorie_target=self.target_calories,
            protein_target_g=macros.protein_g if macros else None,
            carbs_target_g=macros.carb_g if macros else None,
            fats_target_g=macros.fat_g if macros else None,
            calorie_deficit=self.deficit.daily_kcal_delta if self.deficit else None,
            protein_percentage=macros.protein_pct if macros else None,
            carbs_percentage=macros.carb_pct if macros else None,
            fats_percentage=macros.fat_pct if macros else None,
        )

    def to_daily_goals(self, user_id: int, goal_date: date) -> Optional[DailyGoalsRecord]:
        """Daily goals snapshot, or None until macro targets exist."""
        macros = self.macros
        if macros is None:
            return None
        deficit = self.deficit
        return DailyGoalsRecord(
            user_id=user_id,
            goal_date=goal_date,
            calories=macros.target_calories,
            protein=macros.protein_g,
            carbs=macros.carb_g,
            fats=macros.fat_g,
            protein_percentage=macros.protein_pct,
            carbs_percentage=macros.carb_pct,
            fats_percentage=macros.fat_pct,
            bmr=_round_or_none(self.energy.bmr_kcal),
            tdee=_round_or_none(self.energy.tdee_kcal),
            calorie_deficit=deficit.daily_kcal_delta if deficit else None,
            weight_difference_kg=deficit.weight_difference_kg if deficit else None,
            weeks_to_goal=deficit.weeks_to_goal if deficit else None,
            days_to_goal=deficit.days_to_goal if deficit else None,
            weekly_calorie_deficit=deficit.weekly_kcal_delta if deficit else None,
            total_calories_needed=deficit.total_kcal_needed if deficit else None,
            weekly_fat_loss_g=deficit.weekly_fat_loss_g if deficit else None,
            is_gaining_weight=deficit.is_gaining if deficit else False,
            goal_type=self.inputs.goal_type,
            is_realistic_goal=self.is_realistic,
            warning_message=None if self.is_realistic else self.realism.label,
        )


def _round_or_none(value: Optional[float]) -> Optional[int]:
    return round(value) if value is not None else None


def build_plan(
    inputs: ProfileInputs,
    today: Optional[date] = None,
    settings: Optional[Settings] = None,
) -> ProfilePlan:
    """Compute energy, deficit, macros and realism for profile inputs.

    Incomplete inputs produce a partial plan (None for whatever cannot be
    computed) rather than an error.

    Raises:
        InvalidDomainValue: If an enum-valued input is unknown
    """
    if settings is None:
        settings = get_settings()
    if today is None:
        today = date.today()

    profile = AnthropometricProfile(
        weight_kg=inputs.weight,
        height_cm=inputs.height,
        age_years=inputs.age,
        sex=inputs.gender,
        activity_level=inputs.activity_level,
    )
    energy = estimate_energy(profile)

    deficit = solve_deficit(
        inputs.weight,
        inputs.target_weight,
        inputs.target_date,
        today=today,
        kcal_per_kg=settings.energy.kcal_per_kg,
    )
    direction = resolve_direction(inputs.goal, deficit)
    target_calories = calculate_target_calories(
        energy.tdee_kcal,
        direction,
        deficit.daily_kcal_delta if deficit else 0,
    )

    intensity = normalize_intensity(inputs.macro_strategy or DEFAULT_INTENSITY)
    macros = allocate_macros(intensity, inputs.weight, target_calories, settings.macros)

    realism = assess_goal(
        inputs.weight,
        inputs.target_weight,
        inputs.target_date,
        current_body_fat=inputs.current_body_fat_percentage,
        target_body_fat=inputs.target_body_fat_percentage,
        today=today,
        config=settings.realism,
        kcal_per_kg=settings.energy.kcal_per_kg,
    )

    warnings: list[str] = list(macros.warnings) if macros else []
    floor_warning = calorie_floor_warning(target_calories, profile.sex, settings.energy)
    if floor_warning:
        warnings.append(floor_warning)

    return ProfilePlan(
        inputs=inputs,
        energy=energy,
        deficit=deficit,
        direction=direction,
        target_calories=target_calories,
        macros=macros,
        realism=realism,
        is_realistic=is_realistic(realism.score, settings.realism),
        missing=missing_fields(inputs),
        warnings=warnings,
    )
