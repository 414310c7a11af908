"""Tests for deficit solving and calorie targets."""

from __future__ import annotations

import logging
from datetime import date, timedelta

import pytest

from goalfit.errors import InvalidDomainValue
from goalfit.profiles.goal_solver import (
    calculate_target_calories,
    calorie_floor_warning,
    infer_goal,
    resolve_direction,
    solve_deficit,
    target_date_for_tempo,
)
from goalfit.profiles.models import GoalDirection, ProtocolTempo

TODAY = date(2024, 1, 1)


class TestSolveDeficit:
    """Tests for solve_deficit."""

    def test_reference_loss(self):
        """90 kg to 80 kg over 70 days."""
        plan = solve_deficit(90, 80, TODAY + timedelta(days=70), today=TODAY)
        assert plan.total_kcal_needed == pytest.approx(77000)
        assert plan.daily_kcal_delta == 1100
        assert plan.weekly_kcal_delta == 7700
        assert plan.days_to_goal == 70
        assert plan.weeks_to_goal == 10.0
        assert plan.is_gaining is False
        assert plan.weight_difference_kg == 10
        assert plan.weekly_fat_loss_g == 1000.0

    def test_gain_sets_flag_and_positive_magnitude(self):
        plan = solve_deficit(70, 75, TODAY + timedelta(days=140), today=TODAY)
        assert plan.is_gaining is True
        assert plan.daily_kcal_delta == 275
        assert plan.weekly_kcal_delta == 275 * 7

    def test_equal_weights_give_zero_delta(self):
        plan = solve_deficit(80, 80, TODAY + timedelta(days=30), today=TODAY)
        assert plan.total_kcal_needed == 0
        assert plan.daily_kcal_delta == 0
        assert plan.is_gaining is False

    @pytest.mark.parametrize("offset", [0, -1, -30])
    def test_date_not_in_future_returns_none(self, offset):
        """Today or past target dates never divide by zero."""
        assert solve_deficit(90, 80, TODAY + timedelta(days=offset), today=TODAY) is None

    @pytest.mark.parametrize(
        "current,target,target_date",
        [
            (None, 80, TODAY + timedelta(days=10)),
            (90, None, TODAY + timedelta(days=10)),
            (90, 80, None),
            (float("nan"), 80, TODAY + timedelta(days=70)),
            (90, float("inf"), TODAY + timedelta(days=70)),
            (float("-inf"), 80, TODAY + timedelta(days=70)),
        ],
    )
    def test_missing_input_returns_none(self, current, target, target_date):
        assert solve_deficit(current, target, target_date, today=TODAY) is None

    def test_custom_energy_density(self):
        plan = solve_deficit(90, 80, TODAY + timedelta(days=70), today=TODAY, kcal_per_kg=7000)
        assert plan.daily_kcal_delta == 1000

    def test_more_days_means_smaller_daily_delta(self):
        short = solve_deficit(90, 80, TODAY + timedelta(days=70), today=TODAY)
        long = solve_deficit(90, 80, TODAY + timedelta(days=140), today=TODAY)
        assert long.daily_kcal_delta < short.daily_kcal_delta


class TestTargetCalories:
    """Tests for calculate_target_calories."""

    def test_lose_subtracts(self):
        assert calculate_target_calories(2759, "lose", 500) == 2259

    def test_gain_adds(self):
        assert calculate_target_calories(2759, GoalDirection.GAIN, 300) == 3059

    def test_maintain_ignores_delta(self):
        assert calculate_target_calories(2759, "maintain", 500) == 2759

    def test_only_magnitude_of_delta_is_used(self):
        assert calculate_target_calories(2000, "lose", -500) == 1500

    def test_missing_tdee(self):
        assert calculate_target_calories(None, "lose", 500) is None

    def test_unknown_goal_raises(self):
        with pytest.raises(InvalidDomainValue):
            calculate_target_calories(2000, "bulk", 500)


class TestDirection:
    """Tests for goal inference and direction resolution."""

    @pytest.mark.parametrize(
        "current,target,expected",
        [
            (90, 80, GoalDirection.LOSE),
            (70, 75, GoalDirection.GAIN),
            (80, 80.5, GoalDirection.MAINTAIN),
            (80, 79.2, GoalDirection.MAINTAIN),
        ],
    )
    def test_infer_goal(self, current, target, expected):
        assert infer_goal(current, target) == expected

    def test_plan_direction_overrides_stale_goal(self, caplog):
        """A stored 'lose' goal never turns a surplus into a deficit."""
        plan = solve_deficit(70, 75, TODAY + timedelta(days=140), today=TODAY)
        with caplog.at_level(logging.WARNING, logger="goalfit.profiles.goal_solver"):
            direction = resolve_direction("lose", plan)
        assert direction == GoalDirection.GAIN
        assert "disagrees" in caplog.text

    def test_zero_delta_plan_is_maintain(self):
        plan = solve_deficit(80, 80, TODAY + timedelta(days=30), today=TODAY)
        assert resolve_direction("lose", plan) == GoalDirection.MAINTAIN

    def test_declared_goal_used_without_plan(self):
        assert resolve_direction("gain", None) == GoalDirection.GAIN
        assert resolve_direction(None, None) == GoalDirection.MAINTAIN


class TestCalorieFloor:
    """Tests for the minimum safe calorie warning."""

    def test_below_male_floor(self):
        assert "1500" in calorie_floor_warning(1400, "male")

    def test_female_floor_is_lower(self):
        assert calorie_floor_warning(1400, "female") is None
        assert calorie_floor_warning(1100, "female") is not None

    def test_missing_values(self):
        assert calorie_floor_warning(None, "male") is None
        assert calorie_floor_warning(1000, None) is None


class TestTempo:
    """Tests for protocol tempo presets."""

    @pytest.mark.parametrize(
        "tempo,expected",
        [
            (ProtocolTempo.SUSTAINABLE, date(2025, 1, 1)),
            ("standard", date(2024, 7, 1)),
            ("aggressive", date(2024, 5, 1)),
        ],
    )
    def test_target_dates(self, tempo, expected):
        assert target_date_for_tempo(tempo, today=TODAY) == expected

    def test_month_end_is_clamped(self):
        assert target_date_for_tempo("aggressive", today=date(2023, 10, 31)) == date(2024, 2, 29)

    def test_unknown_tempo_raises(self):
        with pytest.raises(InvalidDomainValue):
            target_date_for_tempo("turbo", today=TODAY)
