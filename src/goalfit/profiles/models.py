"""Value types for the nutrition and goal calculators."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Type, TypeVar, Union

from goalfit.errors import InvalidDomainValue


class Sex(Enum):
    """Biological sex for BMR calculation."""
    MALE = "male"
    FEMALE = "female"


class ActivityLevel(Enum):
    """Activity level multipliers for TDEE calculation."""
    SEDENTARY = "sedentary"          # Little or no exercise
    LIGHT = "light"                  # Light exercise 1-3 days/week
    MODERATE = "moderate"            # Moderate exercise 3-5 days/week
    ACTIVE = "active"                # Hard exercise 6-7 days/week
    VERY_ACTIVE = "very_active"      # Very hard exercise, physical job


class GoalDirection(Enum):
    """Declared direction of the weight goal."""
    LOSE = "lose"
    MAINTAIN = "maintain"
    GAIN = "gain"


class GoalType(Enum):
    """Which body metric the goal is expressed in."""
    WEIGHT = "weight"
    BODY_FAT = "body_fat"
    BOTH = "both"


class MacroIntensity(Enum):
    """Protein-anchor intensity tiers, in increasing order of protein."""
    ROOKIE = "rookie"
    WARRIOR = "warrior"
    ELITE = "elite"


class ProtocolTempo(Enum):
    """Preset goal timeframes."""
    SUSTAINABLE = "sustainable"      # 12 months
    STANDARD = "standard"            # 6 months
    AGGRESSIVE = "aggressive"        # 4 months


E = TypeVar("E", bound=Enum)


def coerce_enum(
    enum_cls: Type[E],
    value: Union[E, str, None],
    field_name: str,
) -> Optional[E]:
    """Convert a string (or enum member) to ``enum_cls``.

    ``None`` and empty strings mean "not provided" and return None. Any
    other unknown value raises InvalidDomainValue.
    """
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if not normalized:
            return None
        try:
            return enum_cls(normalized)
        except ValueError:
            pass
    raise InvalidDomainValue(field_name, value, [m.value for m in enum_cls])


@dataclass
class AnthropometricProfile:
    """Body stats used by the energy model. Any field may still be unset."""

    weight_kg: Optional[float] = None
    height_cm: Optional[float] = None
    age_years: Optional[int] = None
    sex: Optional[Sex] = None
    activity_level: Optional[ActivityLevel] = None

    def __post_init__(self) -> None:
        self.sex = coerce_enum(Sex, self.sex, "sex")
        self.activity_level = coerce_enum(
            ActivityLevel, self.activity_level, "activity_level"
        )

    @property
    def is_complete(self) -> bool:
        """True when every field is set and numeric fields are positive."""
        numeric = (self.weight_kg, self.height_cm, self.age_years)
        return (
            all(v is not None and v > 0 for v in numeric)
            and self.sex is not None
            and self.activity_level is not None
        )


@dataclass
class GoalSpec:
    """A weight and/or body-fat goal with a deadline."""

    goal_type: GoalType = GoalType.WEIGHT
    start_weight_kg: Optional[float] = None
    target_weight_kg: Optional[float] = None
    target_body_fat_pct: Optional[float] = None
    target_date: Optional[date] = None

    def __post_init__(self) -> None:
        self.goal_type = coerce_enum(GoalType, self.goal_type, "goal_type") or GoalType.WEIGHT

    def missing_fields(self) -> list[str]:
        """Return goal fields required by ``goal_type`` that are not set."""
        missing = []
        if self.goal_type in (GoalType.WEIGHT, GoalType.BOTH) and self.target_weight_kg is None:
            missing.append("target_weight")
        if (
            self.goal_type in (GoalType.BODY_FAT, GoalType.BOTH)
            and self.target_body_fat_pct is None
        ):
            missing.append("target_body_fat_percentage")
        if self.target_date is None:
            missing.append("target_date")
        return missing


@dataclass
class EnergyResult:
    """BMR and TDEE in kcal/day; None when inputs are incomplete."""

    bmr_kcal: Optional[float] = None
    tdee_kcal: Optional[float] = None


@dataclass
class DeficitPlan:
    """Energy budget needed to move from current to target weight by a date.

    ``daily_kcal_delta`` is a magnitude. Direction is carried only by
    ``is_gaining``.
    """

    daily_kcal_delta: int
    weekly_kcal_delta: int
    total_kcal_needed: float
    days_to_goal: int
    weeks_to_goal: float
    is_gaining: bool
    weight_difference_kg: float
    weekly_fat_loss_g: float


@dataclass
class MacroPlan:
    """Daily macro targets. Grams are authoritative; percentages are derived."""

    intensity: MacroIntensity
    target_calories: int
    protein_g: int
    carb_g: int
    fat_g: int
    protein_pct: float
    carb_pct: float
    fat_pct: float
    warnings: list[str] = field(default_factory=list)

    @property
    def total_calories(self) -> int:
        """Energy implied by the gram targets."""
        return self.protein_g * 4 + self.carb_g * 4 + self.fat_g * 9


@dataclass
class RealismScore:
    """Feasibility of a goal on a 0-100 scale."""

    score: int
    label: str
    reasons: list[str] = field(default_factory=list)
