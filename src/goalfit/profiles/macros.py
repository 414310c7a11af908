"""Protein-anchor macro allocation.

Protein is set first from body weight (grams per kg for the chosen
intensity tier). The calories left over are split between carbohydrate and
fat using the tier's carb share. Grams are the source of truth; the
percentage split is always derived from them.
"""

from __future__ import annotations

import math
from typing import Optional, Union

from goalfit.config import get_settings
from goalfit.config.settings import MacroConfig
from goalfit.errors import InvalidDomainValue
from goalfit.profiles.models import MacroIntensity, MacroPlan
from goalfit.utils.logger import setup_logger

logger = setup_logger(__name__)

KCAL_PER_G_PROTEIN = 4
KCAL_PER_G_CARB = 4
KCAL_PER_G_FAT = 9

# Strategy names used before the tier rename. Existing profiles still carry
# these, so the mapping must stay stable.
LEGACY_STRATEGY_MAP = {
    "high_protein": MacroIntensity.WARRIOR,
    "high_carb": MacroIntensity.ROOKIE,
    "low_carb": MacroIntensity.ELITE,
}

PROTEIN_CLAMP_WARNING = "protein target exceeds available calories; reduced"


def normalize_intensity(value: Union[MacroIntensity, str, None]) -> MacroIntensity:
    """Map a stored macro strategy onto an intensity tier.

    Canonical tier names map to themselves. Legacy strategy names go through
    ``LEGACY_STRATEGY_MAP``.

    Raises:
        InvalidDomainValue: For any value that is neither a tier nor a known
            legacy strategy
    """
    if isinstance(value, MacroIntensity):
        return value

    allowed = [m.value for m in MacroIntensity] + list(LEGACY_STRATEGY_MAP)
    if not isinstance(value, str):
        logger.error("Unmapped macro strategy %r", value)
        raise InvalidDomainValue("macro_strategy", value, allowed)

    key = value.strip().lower()
    try:
        return MacroIntensity(key)
    except ValueError:
        pass

    if key in LEGACY_STRATEGY_MAP:
        intensity = LEGACY_STRATEGY_MAP[key]
        logger.info("Migrated legacy macro strategy '%s' to '%s'", key, intensity.value)
        return intensity

    logger.error("Unmapped macro strategy %r", value)
    raise InvalidDomainValue("macro_strategy", value, allowed)


def _percent(kcal: float, target_calories: float) -> float:
    return round(kcal / target_calories * 100, 1)


def allocate_macros(
    intensity: Union[MacroIntensity, str],
    body_weight_kg: Optional[float],
    target_calories: Optional[float],
    config: Optional[MacroConfig] = None,
) -> Optional[MacroPlan]:
    """Split target calories into protein, carbohydrate and fat grams.

    Args:
        intensity: Intensity tier or legacy strategy name
        body_weight_kg: Body weight the protein anchor is applied to
        target_calories: Daily calorie target
        config: Macro tables (default from settings)

    Returns:
        MacroPlan, or None if weight or calories are missing, non-positive
        or not finite

    Raises:
        InvalidDomainValue: If intensity cannot be mapped to a tier
    """
    tier = normalize_intensity(intensity)
    if body_weight_kg is None or target_calories is None:
        return None
    if not (math.isfinite(body_weight_kg) and math.isfinite(target_calories)):
        return None
    if body_weight_kg <= 0 or target_calories <= 0:
        return None

    if config is None:
        config = get_settings().macros

    target_calories = round(target_calories)
    warnings: list[str] = []

    protein_g = round(body_weight_kg * config.protein_anchors[tier.value])
    protein_kcal = protein_g * KCAL_PER_G_PROTEIN
    if protein_kcal > target_calories:
        protein_g = math.floor(target_calories * config.protein_clamp_ratio / KCAL_PER_G_PROTEIN)
        protein_kcal = protein_g * KCAL_PER_G_PROTEIN
        warnings.append(PROTEIN_CLAMP_WARNING)
        logger.info(
            "Protein anchor for %s exceeds %d kcal; clamped to %dg",
            tier.value,
            target_calories,
            protein_g,
        )

    remainder_kcal = target_calories - protein_kcal
    fat_share = 1.0 - config.carb_share[tier.value]

    # Carbs absorb the fat rounding error so the gram totals stay within
    # 2 kcal of the target.
    fat_g = max(0, round(remainder_kcal * fat_share / KCAL_PER_G_FAT))
    carb_g = max(0, round((remainder_kcal - fat_g * KCAL_PER_G_FAT) / KCAL_PER_G_CARB))

    return MacroPlan(
        intensity=tier,
        target_calories=target_calories,
        protein_g=protein_g,
        carb_g=carb_g,
        fat_g=fat_g,
        protein_pct=_percent(protein_kcal, target_calories),
        carb_pct=_percent(carb_g * KCAL_PER_G_CARB, target_calories),
        fat_pct=_percent(fat_g * KCAL_PER_G_FAT, target_calories),
        warnings=warnings,
    )
