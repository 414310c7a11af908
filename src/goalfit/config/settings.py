"""Application settings and configuration management.

All policy constants used by the calculators (tissue energy density, macro
tier tables, realism penalty curves) live here so they can be tuned from
``config.yaml`` instead of being scattered across call sites.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".goalfit"


def _default_db_path() -> Path:
    """Return the default database path."""
    return _default_config_dir() / "goalfit.db"


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: Path = field(default_factory=_default_db_path)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"


@dataclass
class EnergyConfig:
    """Energy balance constants."""

    # ~7700 kcal per kg of body-fat-equivalent tissue (approximation)
    kcal_per_kg: float = 7700.0
    # Weight deltas within this band count as "maintain"
    maintain_tolerance_kg: float = 1.0
    min_calories_male: int = 1500
    min_calories_female: int = 1200


@dataclass
class MacroConfig:
    """Protein-anchor macro allocation tables, keyed by intensity tier."""

    # Grams of protein per kg body weight
    protein_anchors: dict[str, float] = field(
        default_factory=lambda: {"rookie": 1.2, "warrior": 2.0, "elite": 2.5}
    )
    # Share of the non-protein calories that goes to carbohydrate; fat gets the rest
    carb_share: dict[str, float] = field(
        default_factory=lambda: {"rookie": 0.60, "warrior": 0.55, "elite": 0.40}
    )
    # Protein is capped at this share of target calories when the anchor overshoots
    protein_clamp_ratio: float = 0.9


@dataclass
class RealismConfig:
    """Penalty curves and thresholds for the goal realism score.

    Curves are (x, score) breakpoints interpolated linearly; x is the weekly
    rate of change. Scores are flat outside the first and last breakpoints.
    """

    # % of body weight per week
    loss_rate_curve: list[tuple[float, float]] = field(
        default_factory=lambda: [(0.5, 100.0), (1.0, 80.0), (1.5, 40.0), (2.5, 0.0)]
    )
    gain_rate_curve: list[tuple[float, float]] = field(
        default_factory=lambda: [(0.25, 100.0), (0.5, 80.0), (1.0, 40.0), (1.5, 0.0)]
    )
    # Body-fat percentage points per week
    body_fat_rate_curve: list[tuple[float, float]] = field(
        default_factory=lambda: [(0.25, 100.0), (0.5, 80.0), (1.0, 40.0), (1.5, 0.0)]
    )
    min_weeks: float = 2.0
    short_timeframe_cap: int = 10
    max_daily_deficit: float = 1000.0
    max_daily_surplus: float = 800.0
    unsustainable_cap: int = 35
    trivial_delta_kg: float = 0.5
    trivial_delta_body_fat: float = 0.5
    realistic_threshold: int = 60


@dataclass
class SessionConfig:
    """Profile editing session behaviour."""

    debounce_seconds: float = 1.0
    max_save_retries: int = 3


def _parse_curve(raw: list) -> list[tuple[float, float]]:
    """Parse ``[[x, y], ...]`` from YAML into sorted float pairs."""
    points = [(float(x), float(y)) for x, y in raw]
    return sorted(points)


@dataclass
class Settings:
    """Main application settings."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    energy: EnergyConfig = field(default_factory=EnergyConfig)
    macros: MacroConfig = field(default_factory=MacroConfig)
    realism: RealismConfig = field(default_factory=RealismConfig)
    session: SessionConfig = field(default_factory=SessionConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses ~/.goalfit/config.yaml

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Build settings from a parsed config mapping, keeping defaults for absent keys."""
        settings = cls()

        if "database" in data:
            db_data = data["database"] or {}
            if "path" in db_data:
                settings.database.path = Path(db_data["path"]).expanduser()

        if "logging" in data:
            log_data = data["logging"] or {}
            if "level" in log_data:
                settings.logging.level = str(log_data["level"]).upper()

        if "energy" in data:
            energy_data = data["energy"] or {}
            if "kcal_per_kg" in energy_data:
                settings.energy.kcal_per_kg = float(energy_data["kcal_per_kg"])
            if "maintain_tolerance_kg" in energy_data:
                settings.energy.maintain_tolerance_kg = float(
                    energy_data["maintain_tolerance_kg"]
                )
            if "min_calories_male" in energy_data:
                settings.energy.min_calories_male = int(energy_data["min_calories_male"])
            if "min_calories_female" in energy_data:
                settings.energy.min_calories_female = int(
                    energy_data["min_calories_female"]
                )

        if "macros" in data:
            macro_data = data["macros"] or {}
            if "protein_anchors" in macro_data:
                settings.macros.protein_anchors.update(
                    {str(k): float(v) for k, v in macro_data["protein_anchors"].items()}
                )
            if "carb_share" in macro_data:
                settings.macros.carb_share.update(
                    {str(k): float(v) for k, v in macro_data["carb_share"].items()}
                )
            if "protein_clamp_ratio" in macro_data:
                settings.macros.protein_clamp_ratio = float(
                    macro_data["protein_clamp_ratio"]
                )

        if "realism" in data:
            realism_data = data["realism"] or {}
            for curve in ("loss_rate_curve", "gain_rate_curve", "body_fat_rate_curve"):
                if curve in realism_data:
                    setattr(settings.realism, curve, _parse_curve(realism_data[curve]))
            for key in (
                "min_weeks",
                "max_daily_deficit",
                "max_daily_surplus",
                "trivial_delta_kg",
                "trivial_delta_body_fat",
            ):
                if key in realism_data:
                    setattr(settings.realism, key, float(realism_data[key]))
            for key in ("short_timeframe_cap", "unsustainable_cap", "realistic_threshold"):
                if key in realism_data:
                    setattr(settings.realism, key, int(realism_data[key]))

        if "session" in data:
            session_data = data["session"] or {}
            if "debounce_seconds" in session_data:
                settings.session.debounce_seconds = float(session_data["debounce_seconds"])
            if "max_save_retries" in session_data:
                settings.session.max_save_retries = int(session_data["max_save_retries"])

        return settings

    def to_dict(self) -> dict:
        """Serialize settings to a plain mapping (the YAML layout)."""
        return {
            "database": {
                "path": str(self.database.path),
            },
            "logging": {
                "level": self.logging.level,
            },
            "energy": {
                "kcal_per_kg": self.energy.kcal_per_kg,
                "maintain_tolerance_kg": self.energy.maintain_tolerance_kg,
                "min_calories_male": self.energy.min_calories_male,
                "min_calories_female": self.energy.min_calories_female,
            },
            "macros": {
                "protein_anchors": dict(self.macros.protein_anchors),
                "carb_share": dict(self.macros.carb_share),
                "protein_clamp_ratio": self.macros.protein_clamp_ratio,
            },
            "realism": {
                "loss_rate_curve": [list(p) for p in self.realism.loss_rate_curve],
                "gain_rate_curve": [list(p) for p in self.realism.gain_rate_curve],
                "body_fat_rate_curve": [list(p) for p in self.realism.body_fat_rate_curve],
                "min_weeks": self.realism.min_weeks,
                "short_timeframe_cap": self.realism.short_timeframe_cap,
                "max_daily_deficit": self.realism.max_daily_deficit,
                "max_daily_surplus": self.realism.max_daily_surplus,
                "unsustainable_cap": self.realism.unsustainable_cap,
                "trivial_delta_kg": self.realism.trivial_delta_kg,
                "trivial_delta_body_fat": self.realism.trivial_delta_body_fat,
                "realistic_threshold": self.realism.realistic_threshold,
            },
            "session": {
                "debounce_seconds": self.session.debounce_seconds,
                "max_save_retries": self.session.max_save_retries,
            },
        }

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses ~/.goalfit/config.yaml
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings(config_path: Optional[Path] = None) -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load(config_path)
    return _settings
