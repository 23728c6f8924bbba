"""
Region Stress Aggregator

Pulls normalized frames from a data source, groups them by region and runs
every region through the stress scorer.
"""

import pandas as pd
import numpy as np
from typing import Dict, List, Optional
from datetime import datetime
import logging

from .records import (
    DemandSample,
    DisasterRecord,
    EnergyBurdenRecord,
    RegionScoreSnapshot,
    StressInputError,
)
from .stress_scorer import StressScorer
from .config import STRESS_LEVELS

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SNAPSHOT_COLUMNS = [
    "region_key",
    "disaster_stress_score",
    "energy_stress_score",
    "migration_stress_score",
    "overall_stress_score",
    "stress_level",
    "is_top_stressed",
    "missing_sources",
]


def _state_of(region_key: str) -> str:
    return region_key.split("-", 1)[0]


def _count(row: Optional[pd.Series], name: str) -> int:
    if row is None or name not in row.index or pd.isna(row[name]):
        return 0
    return int(row[name])


def disaster_records(df: pd.DataFrame) -> List[DisasterRecord]:
    """Convert a disasters frame (region_key, incident_type, declared_at) to records"""
    records = []
    for row in df.itertuples(index=False):
        declared = pd.to_datetime(getattr(row, "declared_at", None), errors="coerce", utc=True)
        records.append(DisasterRecord(
            region_key=row.region_key,
            incident_type=row.incident_type,
            declared_at=None if pd.isna(declared) else declared.to_pydatetime(),
        ))
    return records


def demand_samples(df: pd.DataFrame) -> List[DemandSample]:
    samples = []
    for row in df.itertuples(index=False):
        samples.append(DemandSample(
            region_key=row.region_key,
            timestamp=pd.Timestamp(row.timestamp).to_pydatetime(),
            demand_mw=float(row.demand_mw),
            hour=int(getattr(row, "hour", 0)),
        ))
    return samples


def burden_record(row: pd.Series) -> EnergyBurdenRecord:
    return EnergyBurdenRecord(
        region_key=row["region_key"],
        cooling_cost_usd=float(row["cooling_cost_usd"]),
        heating_cost_usd=float(row["heating_cost_usd"]),
        total_energy_burden_pct=float(row["total_energy_burden_pct"]),
    )


class RegionStressAggregator:
    """Score every region a data source knows about"""

    def __init__(self, source, scorer: Optional[StressScorer] = None):
        """
        Args:
            source: Object implementing the DataSource interface
                (get_disasters, get_demand, get_energy_burden, get_migration,
                get_storm_events). Each returns a DataFrame, or None when the
                data is unavailable.
            scorer: StressScorer to use. If None, uses default weights.
        """
        self.source = source
        self.scorer = scorer if scorer is not None else StressScorer()

    def fetch(self, state: Optional[str] = None, year: Optional[int] = None) -> Dict[str, Optional[pd.DataFrame]]:
        """Fetch all input frames for a state/year"""
        return {
            "disasters": self.source.get_disasters(state=state, year=year),
            "demand": self.source.get_demand(state=state),
            "burden": self.source.get_energy_burden(state=state, year=year),
            "migration": self.source.get_migration(state=state, year=year),
            "storms": self.source.get_storm_events(state=state, year=year),
        }

    def build_metrics_frame(
        self,
        state: Optional[str] = None,
        year: Optional[int] = None,
        as_of: Optional[datetime] = None
    ) -> pd.DataFrame:
        """
        Score all regions and return one row per region

        Returns:
            DataFrame with snapshot fields plus context columns, sorted by
            overall_stress_score descending
        """
        frames = self.fetch(state=state, year=year)
        return self.score_frames(frames, as_of=as_of)

    def score_frames(self, frames: Dict[str, Optional[pd.DataFrame]], as_of: Optional[datetime] = None) -> pd.DataFrame:
        disasters = frames.get("disasters")
        demand = frames.get("demand")
        burden = frames.get("burden")
        migration = frames.get("migration")
        storms = frames.get("storms")

        unavailable = [name for name, df in frames.items() if df is None]
        if unavailable:
            logger.warning(f"No data available from: {', '.join(unavailable)}")

        # Get unique regions (and their states) from all data sources
        regions = set()
        region_states: Dict[str, str] = {}
        for df in (disasters, burden, migration, storms):
            if df is not None and not df.empty:
                regions.update(df["region_key"].astype(str))
                if "state" in df.columns:
                    for key, region_state in zip(df["region_key"].astype(str), df["state"]):
                        region_states.setdefault(key, str(region_state))

        if not regions:
            logger.info("No regions found in any data source")
            return pd.DataFrame(columns=SNAPSHOT_COLUMNS)

        disasters_by_region = self._group(disasters)
        storms_by_region = self._group(storms)
        demand_by_state = self._group(demand, key="state")
        burden_by_region = burden.set_index("region_key") if burden is not None and not burden.empty else None
        migration_by_region = migration.set_index("region_key") if migration is not None and not migration.empty else None

        rows = []
        for region_key in sorted(regions):
            region_disasters = None
            if disasters is not None:
                region_df = disasters_by_region.get(region_key)
                region_disasters = disaster_records(region_df) if region_df is not None else []

            region_state = region_states.get(region_key, _state_of(region_key))
            region_demand = demand_by_state.get(region_state)
            samples = demand_samples(region_demand) if region_demand is not None else None

            burden_row = None
            if burden_by_region is not None and region_key in burden_by_region.index:
                burden_row = burden_by_region.loc[region_key]
                if isinstance(burden_row, pd.DataFrame):
                    burden_row = burden_row.iloc[0]
                burden_row = burden_row.copy()
                burden_row["region_key"] = region_key

            net_migration = population = None
            migration_row = None
            if migration_by_region is not None and region_key in migration_by_region.index:
                migration_row = migration_by_region.loc[region_key]
                if isinstance(migration_row, pd.DataFrame):
                    migration_row = migration_row.iloc[0]
                net_migration = migration_row["net_migration"]
                population = migration_row["population"]

            try:
                snapshot = self.scorer.score_region(
                    region_key,
                    disasters=region_disasters,
                    demand=samples,
                    burden=burden_record(burden_row) if burden_row is not None else None,
                    net_migration=net_migration,
                    total_population=population,
                    as_of=as_of,
                )
            except StressInputError as e:
                logger.error(f"Invalid input for region {region_key}: {e}")
                raise

            peak = self.scorer.calculate_peak_demand(samples or [])
            region_storms = storms_by_region.get(region_key)

            row = snapshot.to_dict()
            row.update({
                "state": region_state,
                "storm_events_count": 0 if region_storms is None else len(region_storms),
                "total_storm_damage": 0.0 if region_storms is None else float(
                    region_storms["damage_property"].sum() + region_storms["damage_crops"].sum()
                ),
                "storm_intensity_score": self.scorer.calculate_storm_intensity(region_storms),
                "disaster_declarations_count": len(region_disasters or []),
                "energy_demand_peak": peak["peak"],
                "energy_demand_average": peak["average"],
                "cooling_costs": float(burden_row["cooling_cost_usd"]) if burden_row is not None else 0.0,
                "heating_costs": float(burden_row["heating_cost_usd"]) if burden_row is not None else 0.0,
                "total_energy_burden": float(burden_row["total_energy_burden_pct"]) if burden_row is not None else 0.0,
                "in_migration": _count(migration_row, "in_migration"),
                "out_migration": _count(migration_row, "out_migration"),
                "net_migration": int(net_migration) if net_migration is not None else 0,
                "latitude": self._coordinate(burden_row, "latitude"),
                "longitude": self._coordinate(burden_row, "longitude"),
            })
            rows.append(row)

        df = pd.DataFrame(rows)
        df = df.sort_values("overall_stress_score", ascending=False, kind="mergesort").reset_index(drop=True)
        logger.info(f"Scored {len(df)} regions")
        return df

    def score_regions(
        self,
        state: Optional[str] = None,
        year: Optional[int] = None,
        as_of: Optional[datetime] = None
    ) -> List[RegionScoreSnapshot]:
        """Score all regions and return snapshots, highest stress first"""
        df = self.build_metrics_frame(state=state, year=year, as_of=as_of)
        return frame_to_snapshots(df)

    @staticmethod
    def _group(df: Optional[pd.DataFrame], key: str = "region_key") -> Dict[str, pd.DataFrame]:
        if df is None or df.empty:
            return {}
        return {str(k): group for k, group in df.groupby(key)}

    @staticmethod
    def _coordinate(row: Optional[pd.Series], name: str) -> float:
        if row is None or name not in row.index:
            return np.nan
        return float(row[name])


def frame_to_snapshots(df: pd.DataFrame) -> List[RegionScoreSnapshot]:
    snapshots = []
    for record in df.to_dict(orient="records"):
        snapshots.append(RegionScoreSnapshot(
            region_key=record["region_key"],
            disaster_stress_score=float(record["disaster_stress_score"]),
            energy_stress_score=float(record["energy_stress_score"]),
            migration_stress_score=float(record["migration_stress_score"]),
            overall_stress_score=float(record["overall_stress_score"]),
            stress_level=record["stress_level"],
            is_top_stressed=bool(record["is_top_stressed"]),
            missing_sources=tuple(record["missing_sources"]),
        ))
    return snapshots


def top_stressed(snapshots: List[RegionScoreSnapshot], limit: int = 50) -> List[RegionScoreSnapshot]:
    """Top-stressed regions, highest composite first"""
    flagged = [s for s in snapshots if s.is_top_stressed]
    return sorted(flagged, key=lambda s: s.overall_stress_score, reverse=True)[:limit]


def filter_by_stress_level(snapshots: List[RegionScoreSnapshot], level: str) -> List[RegionScoreSnapshot]:
    if level not in STRESS_LEVELS:
        raise StressInputError(f"Unknown stress level '{level}', expected one of {STRESS_LEVELS}")
    return [s for s in snapshots if s.stress_level == level]


def summarize(df: pd.DataFrame) -> Optional[Dict]:
    """
    Summary statistics over a metrics frame

    Returns:
        Dictionary of totals and averages, or None for an empty frame
    """
    if df is None or df.empty:
        return None

    level_counts = df["stress_level"].value_counts()
    summary = {
        "total_areas": int(len(df)),
        "average_stress_score": float(df["overall_stress_score"].mean()),
        "stress_levels": {level: int(level_counts.get(level, 0)) for level in STRESS_LEVELS},
        "top_stressed_areas": int(df["is_top_stressed"].sum()),
    }
    if "storm_events_count" in df.columns:
        summary["total_storm_events"] = int(df["storm_events_count"].sum())
    if "disaster_declarations_count" in df.columns:
        summary["total_disasters"] = int(df["disaster_declarations_count"].sum())
    if "total_energy_burden" in df.columns:
        summary["average_energy_burden"] = float(df["total_energy_burden"].mean())
    return summary
