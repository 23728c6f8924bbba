"""
Stress Scoring Module

Calculate disaster, energy and migration stress scores, composite stress
levels and forward projections.
"""

from .records import (
    DemandSample,
    DisasterRecord,
    EnergyBurdenRecord,
    ForecastSnapshot,
    MigrationFlow,
    RegionScoreSnapshot,
    StressInputError,
)
from .stress_scorer import StressScorer
from .tiering import stress_level, legend_color
from .forecast import project_forecast, project_score, forecast_series
from .aggregator import RegionStressAggregator, summarize, top_stressed, filter_by_stress_level

__all__ = [
    "DemandSample",
    "DisasterRecord",
    "EnergyBurdenRecord",
    "ForecastSnapshot",
    "MigrationFlow",
    "RegionScoreSnapshot",
    "StressInputError",
    "StressScorer",
    "stress_level",
    "legend_color",
    "project_forecast",
    "project_score",
    "forecast_series",
    "RegionStressAggregator",
    "summarize",
    "top_stressed",
    "filter_by_stress_level",
]
