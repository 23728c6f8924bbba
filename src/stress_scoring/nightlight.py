"""
County nightlight scoring

Scores counties from nighttime-light energy data and FEMA declaration counts.
No per-record dates or migration figures exist on this path, so disaster
stress uses the count formula and the composite uses the county weighting.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import COUNTY_ENERGY_TOP_STRESSED_THRESHOLD, COUNTY_ENERGY_WEIGHTS
from .stress_scorer import StressScorer


def county_energy_scorer() -> StressScorer:
    """StressScorer configured with the county nightlight weighting"""
    return StressScorer(
        weights=COUNTY_ENERGY_WEIGHTS,
        top_stressed_threshold=COUNTY_ENERGY_TOP_STRESSED_THRESHOLD,
    )


def ring_centroid(ring: Sequence[Sequence[float]]) -> Tuple[float, float]:
    """
    Average of a polygon ring's vertices

    Returns:
        (longitude, latitude)
    """
    coords = np.asarray(ring, dtype=float)
    if coords.size == 0:
        return (np.nan, np.nan)
    return (float(coords[:, 0].mean()), float(coords[:, 1].mean()))


def geometry_centroid(geometry: Optional[Dict]) -> Tuple[float, float]:
    """Centroid for GeoJSON Point, Polygon or MultiPolygon (first polygon's outer ring)"""
    if not geometry:
        return (np.nan, np.nan)

    geom_type = geometry.get("type")
    coordinates = geometry.get("coordinates") or []
    if geom_type == "Point":
        return (float(coordinates[0]), float(coordinates[1]))
    if geom_type == "Polygon" and coordinates:
        return ring_centroid(coordinates[0])
    if geom_type == "MultiPolygon" and coordinates and coordinates[0]:
        return ring_centroid(coordinates[0][0])
    return (np.nan, np.nan)


def score_counties(
    counties_df: pd.DataFrame,
    disasters_df: Optional[pd.DataFrame],
    scorer: Optional[StressScorer] = None
) -> pd.DataFrame:
    """
    Enrich county energy rows with disaster information and stress scores

    Args:
        counties_df: One row per county with fips, name, state, avg_intensity,
            percentile (plus optional context columns)
        disasters_df: Declarations with region_key (county FIPS), incident_type
            and declared_at. None when declarations are unavailable.
        scorer: Defaults to :func:`county_energy_scorer`

    Returns:
        DataFrame sorted by overall_stress_score descending
    """
    scorer = scorer if scorer is not None else county_energy_scorer()

    grouped = {}
    if disasters_df is not None and not disasters_df.empty:
        grouped = {str(k): g for k, g in disasters_df.groupby("region_key")}

    rows: List[Dict] = []
    for county in counties_df.to_dict(orient="records"):
        fips = str(county["fips"])
        county_disasters = grouped.get(fips)

        disaster_count = 0 if county_disasters is None else len(county_disasters)
        disaster_types = [] if county_disasters is None else sorted(county_disasters["incident_type"].unique())

        most_recent = None
        if county_disasters is not None and "declared_at" in county_disasters.columns:
            dates = pd.to_datetime(county_disasters["declared_at"], errors="coerce", utc=True)
            if dates.notna().any():
                latest = county_disasters.loc[dates.idxmax()]
                most_recent = {"incident_type": latest["incident_type"], "declared_at": dates.max().isoformat()}

        disaster_score = None
        if disasters_df is not None:
            disaster_score = scorer.calculate_disaster_stress_from_counts(disaster_count, len(disaster_types))
        energy_score = scorer.calculate_nightlight_energy_stress(county["avg_intensity"], county["percentile"])

        # Migration is never available on this path
        snapshot = scorer.calculate_composite_stress(
            fips,
            disaster_score=disaster_score,
            energy_score=energy_score,
            migration_score=0.0,
        )

        row = dict(county)
        row.update(snapshot.to_dict())
        row.update({
            "disaster_count": disaster_count,
            "disaster_types": disaster_types,
            "most_recent_disaster": most_recent,
        })
        rows.append(row)

    df = pd.DataFrame(rows)
    if df.empty:
        return df
    return df.sort_values("overall_stress_score", ascending=False, kind="mergesort").reset_index(drop=True)
