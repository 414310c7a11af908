"""Tests for protein-anchor macro allocation."""

from __future__ import annotations

import logging
from datetime import date

import pytest

from goalfit.db.queries import ProfileQueries
from goalfit.errors import InvalidDomainValue
from goalfit.profiles.macros import (
    LEGACY_STRATEGY_MAP,
    PROTEIN_CLAMP_WARNING,
    allocate_macros,
    normalize_intensity,
)
from goalfit.profiles.models import MacroIntensity
from goalfit.profiles.planner import ProfileInputs, build_plan

TODAY = date(2024, 1, 1)


class TestNormalizeIntensity:
    """Tests for tier normalization and legacy migration."""

    @pytest.mark.parametrize("tier", list(MacroIntensity))
    def test_canonical_values_map_to_themselves(self, tier):
        assert normalize_intensity(tier.value) == tier
        assert normalize_intensity(tier) == tier

    @pytest.mark.parametrize(
        "legacy,expected",
        [
            ("high_protein", MacroIntensity.WARRIOR),
            ("high_carb", MacroIntensity.ROOKIE),
            ("low_carb", MacroIntensity.ELITE),
        ],
    )
    def test_legacy_values(self, legacy, expected):
        assert normalize_intensity(legacy) == expected

    def test_every_accepted_value_maps_to_a_tier(self):
        """Mapping is total over tiers plus legacy names, and idempotent."""
        values = [m.value for m in MacroIntensity] + list(LEGACY_STRATEGY_MAP)
        for value in values:
            tier = normalize_intensity(value)
            assert isinstance(tier, MacroIntensity)
            assert normalize_intensity(tier.value) == tier

    def test_legacy_migration_is_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="goalfit.profiles.macros"):
            normalize_intensity("high_protein")
        assert "high_protein" in caplog.text

    @pytest.mark.parametrize("value", ["keto", "", None, 3])
    def test_unknown_values_raise(self, value, caplog):
        with caplog.at_level(logging.ERROR, logger="goalfit.profiles.macros"):
            with pytest.raises(InvalidDomainValue) as exc_info:
                normalize_intensity(value)
        assert exc_info.value.field == "macro_strategy"
        assert "Unmapped" in caplog.text


class TestAllocateMacros:
    """Tests for allocate_macros."""

    def test_warrior_reference(self):
        """80 kg warrior on 2259 kcal."""
        plan = allocate_macros("warrior", 80, 2259)
        assert plan.intensity == MacroIntensity.WARRIOR
        assert plan.protein_g == 160
        assert plan.fat_g == 81
        assert plan.carb_g == 222
        assert plan.warnings == []

    def test_protein_anchor_per_tier(self):
        rookie = allocate_macros("rookie", 70, 2500)
        warrior = allocate_macros("warrior", 70, 2500)
        elite = allocate_macros("elite", 70, 2500)
        assert (rookie.protein_g, warrior.protein_g, elite.protein_g) == (84, 140, 175)

    def test_legacy_strategy_accepted(self):
        assert allocate_macros("high_protein", 80, 2400).intensity == MacroIntensity.WARRIOR

    @pytest.mark.parametrize("tier", list(MacroIntensity))
    @pytest.mark.parametrize("weight", [45, 62.5, 80, 104, 150])
    @pytest.mark.parametrize("calories", [1200, 1650, 2259, 2875, 3900])
    def test_energy_identity(self, tier, weight, calories):
        """Gram totals stay within 2 kcal of target; percentages sum to ~100."""
        plan = allocate_macros(tier, weight, calories)
        assert abs(plan.total_calories - calories) <= 2
        assert abs(plan.protein_pct + plan.carb_pct + plan.fat_pct - 100) <= 1
        assert min(plan.protein_g, plan.carb_g, plan.fat_g) >= 0

    def test_protein_clamped_when_it_exceeds_calories(self):
        """150 kg elite wants 1500 kcal of protein on a 1200 kcal target."""
        plan = allocate_macros("elite", 150, 1200)
        assert plan.protein_g == 270
        assert PROTEIN_CLAMP_WARNING in plan.warnings
        assert abs(plan.total_calories - 1200) <= 2

    def test_percentages_derive_from_grams(self):
        plan = allocate_macros("rookie", 70, 2000)
        assert plan.protein_pct == pytest.approx(plan.protein_g * 4 / 2000 * 100, abs=0.05)
        assert plan.fat_pct == pytest.approx(plan.fat_g * 9 / 2000 * 100, abs=0.05)

    @pytest.mark.parametrize(
        "weight,calories",
        [(None, 2000), (80, None), (0, 2000), (80, 0), (80, -100), (float("nan"), 2000), (80, float("inf"))],
    )
    def test_missing_inputs_return_none(self, weight, calories):
        assert allocate_macros("warrior", weight, calories) is None

    def test_unknown_intensity_raises_even_with_missing_inputs(self):
        with pytest.raises(InvalidDomainValue):
            allocate_macros("keto", None, None)


class TestStoredTargets:
    """Tests that stored macro targets reproduce after a reload."""

    def test_same_inputs_give_equal_plans(self):
        assert allocate_macros("elite", 72.4, 2150) == allocate_macros("elite", 72.4, 2150)
        assert allocate_macros("rookie", 45, 1200) == allocate_macros("high_carb", 45, 1200)

    @pytest.mark.parametrize("strategy", ["rookie", "warrior", "elite", "low_carb"])
    def test_reload_and_reallocate_gives_same_grams(self, temp_db, sample_profile, strategy):
        inputs = ProfileInputs.from_record(sample_profile).with_changes(macro_strategy=strategy)
        plan = build_plan(inputs, today=TODAY)

        with temp_db.get_connection() as conn:
            ProfileQueries.save_profile(conn, plan.to_profile_record(1))
            stored = ProfileQueries.get_profile(conn, 1)

        grams = (plan.macros.protein_g, plan.macros.carb_g, plan.macros.fat_g)
        assert (stored.protein_target_g, stored.carbs_target_g, stored.fats_target_g) == grams

        reloaded = build_plan(ProfileInputs.from_record(stored), today=TODAY)
        assert reloaded.macros == plan.macros

        reallocated = allocate_macros(stored.macro_strategy, stored.weight, stored.daily_calorie_target)
        assert (reallocated.protein_g, reallocated.carb_g, reallocated.fat_g) == grams
