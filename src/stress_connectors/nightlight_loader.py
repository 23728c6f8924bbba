"""
Nighttime Light Data Loader

Loads the static nighttime-light extracts: city light points and county
energy polygons, both GeoJSON FeatureCollections.
"""

import json
import logging
import os
from typing import Dict

import pandas as pd

from stress_scoring.nightlight import geometry_centroid

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

COUNTY_COLUMN_MAPPING = {
    "avgIntensity": "avg_intensity",
    "citiesCount": "cities_count",
    "totalPopulation": "total_population",
    "totalEnergyMW": "total_energy_mw",
    "percentileCategory": "percentile_category",
}

NIGHTLIGHT_COLUMN_MAPPING = {
    "energyMW": "energy_mw",
}


def _read_collection(path: str) -> Dict:
    if not os.path.exists(path):
        raise FileNotFoundError(f"GeoJSON file not found at {path}")
    with open(path, "r", encoding="utf-8") as f:
        collection = json.load(f)
    if collection.get("type") != "FeatureCollection":
        raise ValueError(f"{path} is not a GeoJSON FeatureCollection")
    return collection


def load_county_energy(path: str) -> pd.DataFrame:
    """
    Load county energy polygons

    Returns:
        One row per county with fips, name, state, avg_intensity, percentile,
        total_energy_mw, total_population, longitude/latitude (ring centroid)
        and the raw geometry
    """
    collection = _read_collection(path)

    rows = []
    for feature in collection.get("features", []):
        props = dict(feature.get("properties") or {})
        lon, lat = geometry_centroid(feature.get("geometry"))
        props.update({"longitude": lon, "latitude": lat, "geometry": feature.get("geometry")})
        rows.append(props)

    df = pd.DataFrame(rows).rename(columns=COUNTY_COLUMN_MAPPING)
    if "fips" in df.columns:
        df["fips"] = df["fips"].astype(str).str.zfill(5)
    logger.info(f"Loaded {len(df)} counties from {path}")
    return df


def load_nightlight_points(path: str) -> pd.DataFrame:
    """Load city-level nighttime light points (name, state, intensity, population, energy_mw)"""
    collection = _read_collection(path)

    rows = []
    for feature in collection.get("features", []):
        props = dict(feature.get("properties") or {})
        lon, lat = geometry_centroid(feature.get("geometry"))
        props.update({"longitude": lon, "latitude": lat})
        rows.append(props)

    df = pd.DataFrame(rows).rename(columns=NIGHTLIGHT_COLUMN_MAPPING)
    logger.info(f"Loaded {len(df)} nightlight locations from {path}")
    return df


def nightlight_stats(df: pd.DataFrame) -> Dict:
    if df.empty:
        return {"total_locations": 0}
    return {
        "total_locations": int(len(df)),
        "avg_intensity": float(df["intensity"].mean()),
        "max_intensity": float(df["intensity"].max()),
        "min_intensity": float(df["intensity"].min()),
        "total_energy_mw": float(df["energy_mw"].sum()),
        "avg_energy_mw": float(df["energy_mw"].mean()),
    }


def top_energy_locations(df: pd.DataFrame, limit: int = 50) -> pd.DataFrame:
    return df.sort_values("energy_mw", ascending=False).head(limit)
