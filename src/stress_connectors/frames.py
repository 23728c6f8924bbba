"""
Frame helpers

Filters and roll-ups over the normalized disaster, demand, migration and
storm frames produced by data sources.
"""

from typing import Dict, Iterable, Optional

import pandas as pd

from stress_scoring.records import MigrationFlow


def filter_disasters_by_year_range(df: pd.DataFrame, start_year: int, end_year: int) -> pd.DataFrame:
    years = pd.to_datetime(df["declared_at"], errors="coerce", utc=True).dt.year
    return df[(years >= start_year) & (years <= end_year)]


def filter_disasters_by_type(df: pd.DataFrame, incident_type: str) -> pd.DataFrame:
    """Case-insensitive substring match on incident_type"""
    mask = df["incident_type"].str.lower().str.contains(incident_type.lower(), regex=False, na=False)
    return df[mask]


def major_disasters(df: pd.DataFrame) -> pd.DataFrame:
    return df[df["declaration_type"] == "DR"]


def disaster_frequency(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per-region declaration count, incident types and most recent declaration

    Returns:
        DataFrame indexed by region_key with count, types, most_recent_type
        and most_recent_date
    """
    if df.empty:
        return pd.DataFrame(columns=["count", "types", "most_recent_type", "most_recent_date"])

    dated = df.assign(declared_at=pd.to_datetime(df["declared_at"], errors="coerce", utc=True))
    latest = dated.sort_values("declared_at").groupby("region_key").tail(1).set_index("region_key")

    grouped = dated.groupby("region_key")
    out = pd.DataFrame({
        "count": grouped.size(),
        "types": grouped["incident_type"].agg(lambda s: sorted(set(s))),
    })
    out["most_recent_type"] = latest["incident_type"]
    out["most_recent_date"] = latest["declared_at"]
    return out


def disaster_stats(df: pd.DataFrame) -> Dict:
    """Totals by incident type, state and declaration type"""
    by_declaration = df["declaration_type"].value_counts() if not df.empty else pd.Series(dtype=int)
    return {
        "total": int(len(df)),
        "by_type": {k: int(v) for k, v in df["incident_type"].value_counts().items()},
        "by_state": {k: int(v) for k, v in df["state"].value_counts().items()},
        "by_declaration_type": {t: int(by_declaration.get(t, 0)) for t in ("DR", "EM", "FM")},
    }


def aggregate_demand_by_period(df: pd.DataFrame, period: str) -> pd.Series:
    """
    Average demand per hourly/daily/weekly/monthly bucket

    Weeks start on Sunday.
    """
    timestamps = pd.to_datetime(df["timestamp"])
    if period == "hourly":
        keys = timestamps.dt.strftime("%Y-%m-%d %H:00")
    elif period == "daily":
        keys = timestamps.dt.strftime("%Y-%m-%d")
    elif period == "weekly":
        days_since_sunday = (timestamps.dt.dayofweek + 1) % 7
        keys = (timestamps.dt.normalize() - pd.to_timedelta(days_since_sunday, unit="D")).dt.strftime("%Y-%m-%d")
    elif period == "monthly":
        keys = timestamps.dt.strftime("%Y-%m")
    else:
        raise ValueError(f"Unknown period '{period}', expected hourly, daily, weekly or monthly")

    return df["demand_mw"].groupby(keys.values).mean()


def flows_to_frame(flows: Iterable[MigrationFlow]) -> pd.DataFrame:
    """Flow records as a frame; states are taken from the "ST-County" key prefix"""
    rows = [{
        "origin_region_key": f.origin_region_key,
        "destination_region_key": f.destination_region_key,
        "origin_state": f.origin_region_key.split("-", 1)[0],
        "destination_state": f.destination_region_key.split("-", 1)[0],
        "year": f.year,
        "persons": f.net_persons,
    } for f in flows]
    return pd.DataFrame(rows, columns=[
        "origin_region_key", "destination_region_key", "origin_state",
        "destination_state", "year", "persons",
    ])


def aggregate_migration_by_state(flows_df: pd.DataFrame) -> pd.DataFrame:
    """
    State-level migration totals from county flows

    Args:
        flows_df: origin_state, destination_state, persons and optional aggregated_income

    Returns:
        DataFrame indexed by state with in_migration, out_migration,
        net_migration and total_income
    """
    outflow = flows_df.groupby("origin_state")["persons"].sum()
    inflow = flows_df.groupby("destination_state")["persons"].sum()
    if "aggregated_income" in flows_df.columns:
        income = flows_df.groupby("destination_state")["aggregated_income"].sum()
    else:
        income = pd.Series(dtype=float)

    states = outflow.index.union(inflow.index)
    out = pd.DataFrame(index=states.rename("state"))
    out["in_migration"] = inflow.reindex(states, fill_value=0)
    out["out_migration"] = outflow.reindex(states, fill_value=0)
    out["net_migration"] = out["in_migration"] - out["out_migration"]
    out["total_income"] = income.reindex(states, fill_value=0.0)
    return out


def storm_events_in_bounds(
    df: pd.DataFrame,
    north: float,
    south: float,
    east: float,
    west: float
) -> pd.DataFrame:
    return df[
        (df["latitude"] >= south) & (df["latitude"] <= north)
        & (df["longitude"] >= west) & (df["longitude"] <= east)
    ]


def storm_totals_by_region(df: Optional[pd.DataFrame]) -> pd.DataFrame:
    """Event count and total property + crop damage per region"""
    if df is None or df.empty:
        return pd.DataFrame(columns=["count", "total_damage"])
    damage = df["damage_property"] + df["damage_crops"]
    grouped = df.assign(total_damage=damage).groupby("region_key")
    return pd.DataFrame({"count": grouped.size(), "total_damage": grouped["total_damage"].sum()})
