"""
FastAPI REST API for the Energy & Disaster Stress Platform

Provides RESTful endpoints for stress scoring, forecasts and map data.
"""

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import List, Optional, Dict
from dataclasses import asdict
from datetime import date, datetime
import logging
import os

import pandas as pd

from stress_connectors import LiveDataSource, MockDataSource, TTLCache
from stress_connectors.frames import (
    aggregate_demand_by_period,
    aggregate_migration_by_state,
    disaster_frequency,
    disaster_stats,
    filter_disasters_by_type,
    filter_disasters_by_year_range,
    flows_to_frame,
    major_disasters,
    storm_events_in_bounds,
    storm_totals_by_region,
)
from stress_connectors.nightlight_loader import (
    load_county_energy,
    load_nightlight_points,
    nightlight_stats,
    top_energy_locations,
)
from stress_scoring import (
    DemandSample,
    DisasterRecord,
    EnergyBurdenRecord,
    RegionStressAggregator,
    StressInputError,
    StressScorer,
    filter_by_stress_level,
    forecast_series,
    project_forecast,
    summarize,
    top_stressed,
)
from stress_scoring.aggregator import frame_to_snapshots
from stress_scoring.config import (
    COUNTY_ENERGY_TOP_STRESSED_THRESHOLD,
    COUNTY_ENERGY_WEIGHTS,
    METRICS_TOP_STRESSED_THRESHOLD,
    METRICS_WEIGHTS,
)
from stress_scoring.layers import LAYERS, metrics_to_geojson
from stress_scoring.migration import calculate_net_migration, top_destinations, top_origins
from stress_scoring.nightlight import score_counties
from stress_scoring.tiering import legend_entries

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Energy & Disaster Stress API",
    description="Disaster, energy and migration stress scores for U.S. regions",
    version="1.0.0"
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

WEIGHTINGS = {
    "metrics": (METRICS_WEIGHTS, METRICS_TOP_STRESSED_THRESHOLD),
    "county_energy": (COUNTY_ENERGY_WEIGHTS, COUNTY_ENERGY_TOP_STRESSED_THRESHOLD),
}

DEFAULT_COUNTY_ENERGY_PATH = "data/county_energy.geojson"
DEFAULT_NIGHTLIGHT_PATH = "data/nightlights.geojson"


def build_source():
    """Pick the data source from STRESS_DATA_SOURCE (mock or live)"""
    kind = os.getenv("STRESS_DATA_SOURCE", "mock").lower()
    if kind == "live":
        ttl = float(os.getenv("STRESS_CACHE_TTL_SECONDS", 24 * 60 * 60))
        logger.info(f"Using live data source (cache TTL {ttl:.0f}s)")
        return LiveDataSource(cache=TTLCache(ttl_seconds=ttl))
    if kind != "mock":
        logger.warning(f"Unknown STRESS_DATA_SOURCE '{kind}', falling back to mock data")
    return MockDataSource(seed=int(os.getenv("STRESS_MOCK_SEED", 42)))


# Initialize scorer and aggregator
scorer = StressScorer()
aggregator = RegionStressAggregator(build_source(), scorer)


# Pydantic models
class DisasterInput(BaseModel):
    incident_type: str = Field(..., min_length=1)
    declared_at: Optional[datetime] = Field(None, description="Declaration date; missing counts as current")


class DemandInput(BaseModel):
    timestamp: datetime
    demand_mw: float = Field(..., ge=0)
    hour: int = Field(0, ge=0, le=23)


class BurdenInput(BaseModel):
    cooling_cost_usd: float = Field(0, ge=0)
    heating_cost_usd: float = Field(0, ge=0)
    total_energy_burden_pct: float = Field(..., ge=0)


class RegionInput(BaseModel):
    region_key: str = Field(..., min_length=1)
    disasters: Optional[List[DisasterInput]] = None
    demand: Optional[List[DemandInput]] = None
    burden: Optional[BurdenInput] = None
    net_migration: Optional[int] = None
    population: Optional[float] = Field(None, ge=0)
    as_of: Optional[datetime] = None
    weighting: str = Field("metrics", pattern="^(metrics|county_energy)$")


class RegionScoreResponse(BaseModel):
    region_key: str
    disaster_stress_score: float
    energy_stress_score: float
    migration_stress_score: float
    overall_stress_score: float
    stress_level: str
    is_top_stressed: bool
    missing_sources: List[str]


class ForecastInput(BaseModel):
    region_key: str = "region"
    base_score: float = Field(..., ge=0, le=100)
    as_of: date
    disaster_count: int = Field(0, ge=0)
    periods: int = Field(1, ge=1, le=120)


class ForecastPoint(BaseModel):
    as_of_date: date
    forecast_score: float
    forecast_level: str


class ForecastResponse(BaseModel):
    region_key: str
    forecast: List[ForecastPoint]


def _records(df: pd.DataFrame) -> List[Dict]:
    """Frame rows as JSON-safe dicts; NaN becomes None and geometry is dropped"""
    df = df.drop(columns=["geometry"], errors="ignore")
    return df.astype(object).where(df.notna(), None).to_dict(orient="records")


def _score_response(snapshot) -> RegionScoreResponse:
    return RegionScoreResponse(
        region_key=snapshot.region_key,
        disaster_stress_score=round(snapshot.disaster_stress_score, 1),
        energy_stress_score=round(snapshot.energy_stress_score, 1),
        migration_stress_score=round(snapshot.migration_stress_score, 1),
        overall_stress_score=round(snapshot.overall_stress_score, 1),
        stress_level=snapshot.stress_level,
        is_top_stressed=snapshot.is_top_stressed,
        missing_sources=list(snapshot.missing_sources),
    )


# API Endpoints

@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "message": "Energy & Disaster Stress API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/health",
            "region_score": "/api/v1/stress/region",
            "forecast": "/api/v1/stress/forecast",
            "regions": "/api/v1/stress/regions",
            "summary": "/api/v1/stress/summary",
            "geojson": "/api/v1/stress/geojson",
            "counties": "/api/v1/stress/counties",
            "disasters": "/api/v1/data/disasters",
            "demand": "/api/v1/data/demand",
            "storms": "/api/v1/data/storms",
            "migration": "/api/v1/data/migration",
            "nightlights": "/api/v1/data/nightlights",
            "layers": "/api/v1/layers"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "data_source": type(aggregator.source).__name__
    }


@app.post("/api/v1/stress/region", response_model=RegionScoreResponse)
async def score_region(region: RegionInput):
    """
    Score one region from raw records

    Omitted inputs are reported in missing_sources; empty lists are confirmed zeros.
    """
    try:
        weights, threshold = WEIGHTINGS[region.weighting]
        region_scorer = StressScorer(weights=weights, top_stressed_threshold=threshold)

        disasters = None
        if region.disasters is not None:
            disasters = [
                DisasterRecord(region.region_key, d.incident_type, d.declared_at)
                for d in region.disasters
            ]

        demand = None
        if region.demand is not None:
            demand = [
                DemandSample(region.region_key, d.timestamp, d.demand_mw, d.hour)
                for d in region.demand
            ]

        burden = None
        if region.burden is not None:
            burden = EnergyBurdenRecord(
                region.region_key,
                region.burden.cooling_cost_usd,
                region.burden.heating_cost_usd,
                region.burden.total_energy_burden_pct,
            )

        snapshot = region_scorer.score_region(
            region.region_key,
            disasters=disasters,
            demand=demand,
            burden=burden,
            net_migration=region.net_migration,
            total_population=region.population,
            as_of=region.as_of,
        )
        return _score_response(snapshot)

    except StressInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error scoring region: {str(e)}")


@app.post("/api/v1/stress/forecast", response_model=ForecastResponse)
async def forecast(request: ForecastInput):
    """Project a composite score forward month by month from as_of"""
    try:
        if request.periods == 1:
            snapshot = project_forecast(
                request.region_key, request.base_score, request.as_of, request.disaster_count
            )
            points = [ForecastPoint(
                as_of_date=snapshot.as_of_date,
                forecast_score=round(snapshot.forecast_score, 1),
                forecast_level=snapshot.forecast_level,
            )]
        else:
            series = forecast_series(
                request.base_score, request.as_of, periods=request.periods,
                disaster_count=request.disaster_count
            )
            points = [
                ForecastPoint(
                    as_of_date=row["date"].date(),
                    forecast_score=round(row["forecast_score"], 1),
                    forecast_level=row["forecast_level"],
                )
                for row in series.to_dict(orient="records")
            ]
        return ForecastResponse(region_key=request.region_key, forecast=points)

    except StressInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error projecting forecast: {str(e)}")


@app.get("/api/v1/stress/regions", response_model=List[RegionScoreResponse])
async def list_regions(
    state: Optional[str] = Query(None, pattern="^[A-Z]{2}$"),
    year: Optional[int] = Query(None, ge=1953, le=2100),
    level: Optional[str] = Query(None, pattern="^(Low|Moderate|High|Critical)$"),
    top_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=5000)
):
    """Scored regions, highest stress first"""
    try:
        snapshots = aggregator.score_regions(state=state, year=year)
        if top_only:
            snapshots = top_stressed(snapshots, limit=limit)
        if level:
            snapshots = filter_by_stress_level(snapshots, level)
        return [_score_response(s) for s in snapshots[:limit]]
    except StressInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/v1/stress/summary")
async def stress_summary(
    state: Optional[str] = Query(None, pattern="^[A-Z]{2}$"),
    year: Optional[int] = Query(None, ge=1953, le=2100)
):
    """Summary statistics across scored regions"""
    try:
        frames = aggregator.fetch(state=state, year=year)
        df = aggregator.score_frames(frames)
        summary = summarize(df)
        if summary is None:
            raise HTTPException(status_code=404, detail="No regions found")

        disasters = frames["disasters"]
        if disasters is not None:
            summary["disaster_stats"] = disaster_stats(disasters)
            frequency = disaster_frequency(disasters).sort_values("count", ascending=False, kind="mergesort")
            summary["most_frequent_disaster_regions"] = _records(frequency.head(5).reset_index())

        highest = [_score_response(s) for s in frame_to_snapshots(df.head(5))]
        return {**summary, "highest_stress_regions": highest, "timestamp": datetime.now()}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/v1/stress/geojson")
async def stress_geojson(
    state: Optional[str] = Query(None, pattern="^[A-Z]{2}$"),
    year: Optional[int] = Query(None, ge=1953, le=2100)
):
    """Scored regions as a GeoJSON FeatureCollection"""
    try:
        df = aggregator.build_metrics_frame(state=state, year=year)
        return metrics_to_geojson(df)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/v1/stress/counties")
async def county_stress(
    state: Optional[str] = Query(None, pattern="^[A-Z]{2}$"),
    top_only: bool = Query(False),
    limit: int = Query(100, ge=1, le=5000)
):
    """
    County stress from the nightlight energy extract and disaster declarations

    The extract path comes from STRESS_COUNTY_ENERGY_PATH.
    """
    path = os.getenv("STRESS_COUNTY_ENERGY_PATH", DEFAULT_COUNTY_ENERGY_PATH)
    try:
        counties = load_county_energy(path)
        if state:
            counties = counties[counties["state"] == state]

        df = score_counties(counties, aggregator.source.get_disasters(state=state))
        if top_only and not df.empty:
            df = df[df["is_top_stressed"]]

        return {"count": len(df), "counties": _records(df.head(limit))}
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/v1/data/nightlights")
async def get_nightlights(limit: int = Query(50, ge=1, le=5000)):
    """Brightest city light points from the STRESS_NIGHTLIGHT_PATH extract"""
    path = os.getenv("STRESS_NIGHTLIGHT_PATH", DEFAULT_NIGHTLIGHT_PATH)
    try:
        df = load_nightlight_points(path)
        return {
            "stats": nightlight_stats(df),
            "locations": _records(top_energy_locations(df, limit=limit))
        }
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/v1/data/disasters")
async def get_disasters(
    state: Optional[str] = Query(None, pattern="^[A-Z]{2}$"),
    year: Optional[int] = Query(None, ge=1953, le=2100),
    start_year: Optional[int] = Query(None, ge=1953, le=2100),
    end_year: Optional[int] = Query(None, ge=1953, le=2100),
    incident_type: Optional[str] = None,
    major_only: bool = Query(False),
    limit: int = Query(100, ge=1, le=5000)
):
    """Raw disaster declarations with filters and totals"""
    try:
        df = aggregator.source.get_disasters(state=state, year=year)
        if df is None:
            raise HTTPException(status_code=404, detail="No disaster data available")

        if start_year is not None or end_year is not None:
            df = filter_disasters_by_year_range(df, start_year or 1953, end_year or 2100)
        if incident_type:
            df = filter_disasters_by_type(df, incident_type)
        if major_only:
            df = major_disasters(df)

        return {
            "count": len(df),
            "stats": disaster_stats(df),
            "disasters": _records(df.head(limit))
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/v1/data/demand")
async def get_demand(
    state: Optional[str] = Query(None, pattern="^[A-Z]{2}$"),
    period: str = Query("monthly", pattern="^(hourly|daily|weekly|monthly)$")
):
    """Average electricity demand per period"""
    try:
        df = aggregator.source.get_demand(state=state)
        if df is None or df.empty:
            raise HTTPException(status_code=404, detail="No demand data available")

        averages = aggregate_demand_by_period(df, period)
        return {
            "period": period,
            "count": len(averages),
            "demand": [{"period": key, "avg_demand_mw": float(value)} for key, value in averages.items()]
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/v1/data/storms")
async def get_storms(
    state: Optional[str] = Query(None, pattern="^[A-Z]{2}$"),
    year: Optional[int] = Query(None, ge=1950, le=2100),
    north: Optional[float] = Query(None, ge=-90, le=90),
    south: Optional[float] = Query(None, ge=-90, le=90),
    east: Optional[float] = Query(None, ge=-180, le=180),
    west: Optional[float] = Query(None, ge=-180, le=180),
    limit: int = Query(100, ge=1, le=5000)
):
    """Storm events, optionally inside a bounding box, with per-region totals"""
    bounds = [north, south, east, west]
    if any(b is not None for b in bounds) and not all(b is not None for b in bounds):
        raise HTTPException(status_code=422, detail="Bounding box needs north, south, east and west")

    try:
        df = aggregator.source.get_storm_events(state=state, year=year)
        if df is None:
            raise HTTPException(status_code=404, detail="No storm data available")
        if north is not None:
            df = storm_events_in_bounds(df, north=north, south=south, east=east, west=west)

        totals = storm_totals_by_region(df).sort_values("total_damage", ascending=False)
        return {
            "count": len(df),
            "totals": _records(totals.reset_index().head(limit)),
            "storms": _records(df.head(limit))
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


def _migration_flows(state: Optional[str], year: Optional[int]):
    get_flows = getattr(aggregator.source, "get_migration_flows", None)
    if get_flows is None:
        raise HTTPException(status_code=404, detail="Migration flows are not available from this data source")
    return get_flows(state=state, year=year)


@app.get("/api/v1/data/migration")
async def get_migration(
    state: Optional[str] = Query(None, pattern="^[A-Z]{2}$"),
    year: Optional[int] = Query(None, ge=1990, le=2100),
    limit: int = Query(100, ge=1, le=5000)
):
    """County-to-county flows and state-level totals"""
    try:
        df = flows_to_frame(_migration_flows(state, year))
        by_state = aggregate_migration_by_state(df).sort_values("net_migration", ascending=False)
        return {
            "count": len(df),
            "by_state": _records(by_state.reset_index()),
            "flows": _records(df.sort_values("persons", ascending=False).head(limit))
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/v1/data/migration/{region_key}")
async def get_region_migration(
    region_key: str,
    year: Optional[int] = Query(None, ge=1990, le=2100),
    limit: int = Query(10, ge=1, le=100)
):
    """Net migration and the largest flows into and out of one region"""
    try:
        flows = _migration_flows(None, year)
        return {
            "region_key": region_key,
            **calculate_net_migration(region_key, flows),
            "top_destinations": [asdict(f) for f in top_destinations(region_key, flows, limit=limit)],
            "top_origins": [asdict(f) for f in top_origins(region_key, flows, limit=limit)]
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/v1/layers")
async def list_layers() -> Dict:
    """Map layer catalog and legend"""
    return {
        "layers": [layer.to_dict() for layer in LAYERS.values()],
        "legend": [{"label": label, "color": color} for label, color in legend_entries()]
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
