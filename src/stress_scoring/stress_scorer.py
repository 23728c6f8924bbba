"""
Stress Scoring Module

Calculates disaster, energy and migration stress scores for a region and
combines them into a composite score with a stress level.
"""

import pandas as pd
import numpy as np
from typing import Dict, Iterable, Optional, Sequence
from datetime import datetime, timezone
import logging

from .config import (
    BURDEN_MAX_POINTS,
    BURDEN_MULTIPLIER,
    DAYS_PER_YEAR,
    DISASTER_COUNT_POINTS,
    DISASTER_DECAY_YEARS,
    DISASTER_DIVERSITY_POINTS,
    DISASTER_DIVERSITY_SATURATION,
    DISASTER_FREQUENCY_POINTS,
    DISASTER_FREQUENCY_SATURATION,
    DISASTER_TYPE_POINTS,
    METRICS_TOP_STRESSED_THRESHOLD,
    METRICS_WEIGHTS,
    MIGRATION_RATE_MULTIPLIER,
    NIGHTLIGHT_INTENSITY_MULTIPLIER,
    NIGHTLIGHT_PERCENTILE_MULTIPLIER,
    PEAK_RATIO_MAX_POINTS,
    PEAK_RATIO_MULTIPLIER,
    SCORE_MAX,
    STORM_CASUALTY_POINTS,
    STORM_CASUALTY_SATURATION,
    STORM_DAMAGE_POINTS,
    STORM_DAMAGE_SATURATION_USD,
    STORM_FREQUENCY_POINTS,
    STORM_FREQUENCY_SATURATION,
)
from .records import (
    DemandSample,
    DisasterRecord,
    EnergyBurdenRecord,
    RegionScoreSnapshot,
    StressInputError,
    require_finite,
    require_non_negative,
    require_score,
)
from .tiering import clamp_score, is_top_stressed, stress_level

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SUB_SCORES = ("disaster", "energy", "migration")


def _as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so aware and naive inputs compare"""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class StressScorer:
    """Calculate stress sub-scores and the composite stress score"""

    # Default weights for each sub-score (must sum to 1.0)
    DEFAULT_WEIGHTS = METRICS_WEIGHTS
    DEFAULT_TOP_STRESSED_THRESHOLD = METRICS_TOP_STRESSED_THRESHOLD

    def __init__(
        self,
        weights: Optional[Dict[str, float]] = None,
        top_stressed_threshold: Optional[float] = None
    ):
        """
        Initialize stress scorer

        Args:
            weights: Custom weights for "disaster", "energy" and "migration".
                If None, uses defaults. Missing keys weigh 0.
            top_stressed_threshold: Composite score at or above which a region
                is flagged as top stressed. If None, uses the default (70).
        """
        weights = dict(weights) if weights is not None else dict(self.DEFAULT_WEIGHTS)

        unknown = set(weights) - set(SUB_SCORES)
        if unknown:
            raise StressInputError(f"Unknown weight keys: {sorted(unknown)}")
        for key, value in weights.items():
            require_non_negative(value, f"weight '{key}'")

        total_weight = sum(weights.values())
        if total_weight <= 0:
            raise StressInputError("At least one weight must be positive")

        # Validate weights sum to 1.0
        if not np.isclose(total_weight, 1.0):
            logger.warning(f"Weights sum to {total_weight:.2f}, normalizing to 1.0")
            weights = {k: v / total_weight for k, v in weights.items()}

        self.weights = {key: float(weights.get(key, 0.0)) for key in SUB_SCORES}

        if top_stressed_threshold is None:
            top_stressed_threshold = self.DEFAULT_TOP_STRESSED_THRESHOLD
        self.top_stressed_threshold = require_score(
            top_stressed_threshold, "top_stressed_threshold"
        )

    def calculate_disaster_stress(
        self,
        disasters: Iterable[DisasterRecord],
        as_of: Optional[datetime] = None
    ) -> float:
        """
        Calculate disaster stress score (0-100) for a region

        Based on:
        - Recency-weighted declaration frequency (linear decay to zero at 10 years)
        - Diversity of incident types

        ``declared_at`` may be a datetime or an ISO-8601 string. Records without
        a usable date count as declared at ``as_of``.

        Returns:
            Stress score 0-100 (higher = more stress)
        """
        disasters = list(disasters)
        if not disasters:
            return 0.0

        now = _as_utc(as_of) if as_of is not None else datetime.now(timezone.utc)

        weighted_count = 0.0
        undated = 0
        for record in disasters:
            declared = pd.to_datetime(record.declared_at, errors="coerce", utc=True)
            if declared is None or pd.isna(declared):
                undated += 1
                weighted_count += 1.0
                continue
            years_ago = (now - declared.to_pydatetime()).total_seconds() / (DAYS_PER_YEAR * 86400)
            weight = 1 - years_ago / DISASTER_DECAY_YEARS
            weighted_count += min(1.0, max(0.0, weight))

        if undated:
            logger.warning(f"{undated} disaster record(s) without declaration date, treated as current")

        unique_types = len({record.incident_type for record in disasters})

        # Normalize factors
        frequency_score = min(weighted_count / DISASTER_FREQUENCY_SATURATION, 1.0) * DISASTER_FREQUENCY_POINTS
        diversity_score = min(unique_types / DISASTER_DIVERSITY_SATURATION, 1.0) * DISASTER_DIVERSITY_POINTS

        return frequency_score + diversity_score

    def calculate_disaster_stress_from_counts(
        self,
        disaster_count: int,
        unique_type_count: int
    ) -> float:
        """
        Calculate disaster stress score from counts only

        Used for sources without per-record dates (county nightlight path).
        """
        disaster_count = require_non_negative(disaster_count, "disaster_count")
        unique_type_count = require_non_negative(unique_type_count, "unique_type_count")
        if unique_type_count > disaster_count:
            raise StressInputError("unique_type_count cannot exceed disaster_count")

        score = disaster_count * DISASTER_COUNT_POINTS + unique_type_count * DISASTER_TYPE_POINTS
        return min(score, SCORE_MAX)

    @staticmethod
    def calculate_peak_demand(samples: Sequence[DemandSample]) -> Dict[str, float]:
        """
        Peak and average demand over a set of samples

        Returns:
            Dictionary with peak, peak_hour and average (all 0 for no samples)
        """
        if not samples:
            return {"peak": 0.0, "peak_hour": 0, "average": 0.0}

        demand = np.array([
            require_non_negative(s.demand_mw, "demand_mw") for s in samples
        ])
        peak_index = int(demand.argmax())

        return {
            "peak": float(demand[peak_index]),
            "peak_hour": samples[peak_index].hour,
            "average": float(demand.mean()),
        }

    def calculate_energy_stress(
        self,
        samples: Sequence[DemandSample],
        burden: Optional[EnergyBurdenRecord] = None
    ) -> float:
        """
        Calculate energy stress score (0-100) from demand pattern and cost burden

        Based on:
        - Peak-to-average demand ratio (grid stress), up to 40 points
        - Energy burden as % of income (cost stress), up to 60 points

        Returns:
            Stress score 0-100 (higher = more stress)
        """
        ratio_score = 0.0
        if samples:
            demand = self.calculate_peak_demand(list(samples))
            average = demand["average"]
            peak_ratio = demand["peak"] / average if average > 0 else 1.0
            ratio_score = clamp_score(
                (peak_ratio - 1) * PEAK_RATIO_MULTIPLIER, 0.0, PEAK_RATIO_MAX_POINTS
            )

        burden_score = 0.0
        if burden is not None:
            burden_pct = require_non_negative(
                burden.total_energy_burden_pct, "total_energy_burden_pct"
            )
            burden_score = clamp_score(burden_pct * BURDEN_MULTIPLIER, 0.0, BURDEN_MAX_POINTS)

        return ratio_score + burden_score

    def calculate_nightlight_energy_stress(self, avg_intensity: float, percentile: float) -> float:
        """Energy stress from nighttime light intensity (0-1) and its percentile (0-100)"""
        avg_intensity = require_non_negative(avg_intensity, "avg_intensity")
        percentile = require_non_negative(percentile, "percentile")

        score = (
            avg_intensity * NIGHTLIGHT_INTENSITY_MULTIPLIER
            + percentile * NIGHTLIGHT_PERCENTILE_MULTIPLIER
        )
        return min(score, SCORE_MAX)

    def calculate_migration_stress(self, net_migration: float, total_population: float) -> float:
        """
        Calculate migration stress score (0-100)

        Only net outflow contributes: -5% scores 50, -10% or worse scores 100.
        """
        net_migration = require_finite(net_migration, "net_migration")
        total_population = require_non_negative(total_population, "total_population")

        if total_population == 0:
            return 0.0

        migration_rate = net_migration * 100.0 / total_population
        if migration_rate >= 0:
            return 0.0

        return min(abs(migration_rate) * MIGRATION_RATE_MULTIPLIER, SCORE_MAX)

    def calculate_storm_intensity(self, storm_df: pd.DataFrame) -> float:
        """
        Calculate storm intensity score (0-100) from storm events

        Based on:
        - Property and crop damage (up to 50 points, saturating at $10M)
        - Deaths and injuries (up to 30 points, saturating at 100)
        - Event count (up to 20 points, saturating at 50)
        """
        if storm_df is None or storm_df.empty:
            return 0.0

        total_damage = float(storm_df["damage_property"].sum() + storm_df["damage_crops"].sum())
        total_casualties = float(storm_df["deaths"].sum() + storm_df["injuries"].sum())
        event_count = len(storm_df)

        damage_score = min(total_damage / STORM_DAMAGE_SATURATION_USD, 1.0) * STORM_DAMAGE_POINTS
        casualty_score = min(total_casualties / STORM_CASUALTY_SATURATION, 1.0) * STORM_CASUALTY_POINTS
        frequency_score = min(event_count / STORM_FREQUENCY_SATURATION, 1.0) * STORM_FREQUENCY_POINTS

        return damage_score + casualty_score + frequency_score

    def calculate_composite_stress(
        self,
        region_key: str,
        disaster_score: Optional[float] = None,
        energy_score: Optional[float] = None,
        migration_score: Optional[float] = None,
        missing_sources: Sequence[str] = ()
    ) -> RegionScoreSnapshot:
        """
        Combine sub-scores into the composite stress snapshot

        Sub-scores passed as None are unknown: they count as 0 and are
        listed in ``missing_sources``.

        Returns:
            RegionScoreSnapshot with composite score, level and top-stressed flag
        """
        scores = {
            "disaster": disaster_score,
            "energy": energy_score,
            "migration": migration_score,
        }

        missing = list(missing_sources)
        for name, value in scores.items():
            if value is None:
                scores[name] = 0.0
                if name not in missing:
                    missing.append(name)
            else:
                scores[name] = require_score(value, f"{name}_score")

        # Calculate weighted composite score
        composite = clamp_score(sum(
            self.weights[name] * score
            for name, score in scores.items()
        ))

        return RegionScoreSnapshot(
            region_key=region_key,
            disaster_stress_score=scores["disaster"],
            energy_stress_score=scores["energy"],
            migration_stress_score=scores["migration"],
            overall_stress_score=composite,
            stress_level=stress_level(composite),
            is_top_stressed=is_top_stressed(composite, self.top_stressed_threshold),
            missing_sources=tuple(missing),
        )

    def score_region(
        self,
        region_key: str,
        disasters: Optional[Sequence[DisasterRecord]] = None,
        demand: Optional[Sequence[DemandSample]] = None,
        burden: Optional[EnergyBurdenRecord] = None,
        net_migration: Optional[float] = None,
        total_population: Optional[float] = None,
        as_of: Optional[datetime] = None
    ) -> RegionScoreSnapshot:
        """
        Score one region end to end from its raw records

        ``None`` for disasters, demand (together with burden) or migration
        marks that input as unknown; an empty list is a confirmed zero.
        """
        disaster_score = None
        if disasters is not None:
            disaster_score = self.calculate_disaster_stress(disasters, as_of=as_of)

        energy_score = None
        if demand is not None or burden is not None:
            energy_score = self.calculate_energy_stress(demand or [], burden)

        migration_score = None
        if net_migration is not None and total_population is not None:
            migration_score = self.calculate_migration_stress(net_migration, total_population)

        return self.calculate_composite_stress(
            region_key,
            disaster_score=disaster_score,
            energy_score=energy_score,
            migration_score=migration_score,
        )
