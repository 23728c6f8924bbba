from datetime import datetime, timezone

import pandas as pd
import pytest

from stress_scoring import DemandSample, DisasterRecord, EnergyBurdenRecord, StressScorer

AS_OF = datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def scorer():
    return StressScorer()


@pytest.fixture
def five_disasters():
    """Five declarations on the scoring date, three distinct incident types"""
    types = ["Hurricane", "Flood", "Fire", "Flood", "Hurricane"]
    return [DisasterRecord("TX-County 1", t, AS_OF) for t in types]


@pytest.fixture
def peaky_demand():
    """Peak-to-average ratio of 2, saturating the grid component"""
    return [
        DemandSample("TX", datetime(2024, 5, 1, 3), 0.0, hour=3),
        DemandSample("TX", datetime(2024, 5, 1, 16), 200.0, hour=16),
    ]


@pytest.fixture
def burden():
    return EnergyBurdenRecord("TX-County 1", 900.0, 700.0, 8.0)


@pytest.fixture
def region_frames():
    """Frames for one fully-populated region whose composite is 73.6"""
    disasters = pd.DataFrame({
        "region_key": ["TX-County 1"] * 5,
        "state": ["TX"] * 5,
        "incident_type": ["Hurricane", "Flood", "Fire", "Flood", "Hurricane"],
        "declared_at": [pd.Timestamp(AS_OF)] * 5,
        "declaration_type": ["DR"] * 5,
        "disaster_number": [f"DR-{i}" for i in range(5)],
    })
    demand = pd.DataFrame({
        "region_key": ["TX", "TX"],
        "state": ["TX", "TX"],
        "timestamp": pd.to_datetime(["2024-05-01 03:00", "2024-05-01 16:00"]),
        "hour": [3, 16],
        "demand_mw": [0.0, 200.0],
    })
    burden = pd.DataFrame({
        "region_key": ["TX-County 1"],
        "state": ["TX"],
        "year": [2024],
        "cooling_cost_usd": [900.0],
        "heating_cost_usd": [700.0],
        "total_energy_burden_pct": [8.0],
        "latitude": [29.76],
        "longitude": [-95.37],
    })
    migration = pd.DataFrame({
        "region_key": ["TX-County 1"],
        "state": ["TX"],
        "in_migration": [1000],
        "out_migration": [3000],
        "net_migration": [-2000],
        "population": [20000],
    })
    return {
        "disasters": disasters,
        "demand": demand,
        "burden": burden,
        "migration": migration,
        "storms": None,
    }
