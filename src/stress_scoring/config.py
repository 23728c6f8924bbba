# config.py

"""
Scoring constants for the stress platform.

Weights, tier thresholds, decay horizons and forecast drivers are kept here as
named constants so every scorer (and the test suite) reads the same values.
"""

from typing import Dict, Final, Tuple

# Tier thresholds (inclusive lower bounds)
CRITICAL_THRESHOLD: Final[float] = 75.0
HIGH_THRESHOLD: Final[float] = 50.0
MODERATE_THRESHOLD: Final[float] = 25.0

STRESS_LEVELS: Final[Tuple[str, ...]] = ("Low", "Moderate", "High", "Critical")

SCORE_MIN: Final[float] = 0.0
SCORE_MAX: Final[float] = 100.0

# Composite weighting used when all three sub-scores are available
METRICS_WEIGHTS: Final[Dict[str, float]] = {
    "disaster": 0.4,
    "energy": 0.4,
    "migration": 0.2,
}
METRICS_TOP_STRESSED_THRESHOLD: Final[float] = 70.0

# Weighting for the nightlight county path (no migration data)
COUNTY_ENERGY_WEIGHTS: Final[Dict[str, float]] = {
    "disaster": 0.6,
    "energy": 0.4,
    "migration": 0.0,
}
COUNTY_ENERGY_TOP_STRESSED_THRESHOLD: Final[float] = CRITICAL_THRESHOLD

# Disaster scorer
DISASTER_DECAY_YEARS: Final[float] = 10.0
DAYS_PER_YEAR: Final[float] = 365.0
DISASTER_FREQUENCY_SATURATION: Final[float] = 10.0
DISASTER_FREQUENCY_POINTS: Final[float] = 60.0
DISASTER_DIVERSITY_SATURATION: Final[float] = 5.0
DISASTER_DIVERSITY_POINTS: Final[float] = 40.0
DISASTER_COUNT_POINTS: Final[float] = 5.0
DISASTER_TYPE_POINTS: Final[float] = 10.0

# Energy scorer
PEAK_RATIO_MULTIPLIER: Final[float] = 50.0
PEAK_RATIO_MAX_POINTS: Final[float] = 40.0
BURDEN_MULTIPLIER: Final[float] = 5.0
BURDEN_MAX_POINTS: Final[float] = 60.0
NIGHTLIGHT_INTENSITY_MULTIPLIER: Final[float] = 100.0
NIGHTLIGHT_PERCENTILE_MULTIPLIER: Final[float] = 0.5

# Migration scorer (-10% net outflow saturates the score)
MIGRATION_RATE_MULTIPLIER: Final[float] = 10.0

# Storm intensity
STORM_DAMAGE_SATURATION_USD: Final[float] = 10_000_000.0
STORM_DAMAGE_POINTS: Final[float] = 50.0
STORM_CASUALTY_SATURATION: Final[float] = 100.0
STORM_CASUALTY_POINTS: Final[float] = 30.0
STORM_FREQUENCY_SATURATION: Final[float] = 50.0
STORM_FREQUENCY_POINTS: Final[float] = 20.0

# Forecast projector
SUMMER_MONTHS: Final[Tuple[int, ...]] = (6, 7, 8, 9, 10)
WINTER_MONTHS: Final[Tuple[int, ...]] = (12, 1, 2)
SUMMER_ADJUSTMENT: Final[float] = 12.0
WINTER_ADJUSTMENT: Final[float] = 9.0
SHOULDER_ADJUSTMENT: Final[float] = 5.0
TREND_BASE_YEAR: Final[int] = 2020
TREND_PER_YEAR: Final[float] = 1.5
DISASTER_MOMENTUM_PER_EVENT: Final[float] = 0.8
DISASTER_MOMENTUM_MAX: Final[float] = 10.0

# Choropleth legend bands (lower bound, color), highest first
LEGEND_BANDS: Final[Tuple[Tuple[float, str], ...]] = (
    (80.0, "#991b1b"),
    (60.0, "#dc2626"),
    (40.0, "#f97316"),
    (20.0, "#93c5fd"),
    (0.0, "#1d4ed8"),
)
NO_DATA_COLOR: Final[str] = "#cccccc"
