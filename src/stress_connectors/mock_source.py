"""
Mock Data Source

Deterministic synthetic data for demos and tests. Generators mirror the
shapes of the live feeds: FEMA declarations, EIA demand, LEAD-style energy
burden, IRS/Census county migration and NOAA storm events.
"""

import zlib
import logging
from typing import List, Optional

import numpy as np
import pandas as pd

from stress_scoring.migration import net_migration_by_region
from stress_scoring.records import MigrationFlow

from .base import (
    BURDEN_COLUMNS,
    DEMAND_COLUMNS,
    DISASTER_COLUMNS,
    MIGRATION_COLUMNS,
    STORM_COLUMNS,
    DataSource,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class MockDataSource(DataSource):
    """Seeded random generator implementing the DataSource interface"""

    STATES = ["TX", "FL", "CA", "NY", "LA", "OK", "KS", "NE", "AL", "MS"]

    INCIDENT_TYPES = [
        "Hurricane", "Severe Storm", "Flood", "Fire", "Tornado",
        "Winter Storm", "Drought", "Earthquake", "Coastal Storm",
    ]
    DECLARATION_TYPES = ["DR", "EM", "FM"]
    STORM_TYPES = ["Hurricane", "Tornado", "Flood", "Winter Storm", "Hail", "Heat", "Cold", "Wildfire"]

    # Counties per state are numbered 1..MAX_COUNTIES so every feed shares keys
    MAX_COUNTIES = 50

    def __init__(
        self,
        seed: int = 42,
        disaster_count: int = 300,
        storm_count: int = 500,
        migration_flow_count: int = 1000,
        demand_year: int = 2024,
        hourly: bool = False
    ):
        """
        Initialize mock source

        Args:
            seed: Base seed; the same seed always yields the same frames
            disaster_count: Declarations generated per call
            storm_count: Storm events generated per call
            migration_flow_count: County-to-county flows generated per call
            demand_year: Calendar year covered by demand samples
            hourly: Generate 24 demand samples per day instead of one
        """
        self.seed = seed
        self.disaster_count = disaster_count
        self.storm_count = storm_count
        self.migration_flow_count = migration_flow_count
        self.demand_year = demand_year
        self.hourly = hourly

    def _rng(self, kind: str, state: Optional[str], year: Optional[int]) -> np.random.Generator:
        salt = zlib.crc32(f"{kind}:{state}:{year}".encode())
        return np.random.default_rng([self.seed, salt])

    def _states(self, state: Optional[str]) -> List[str]:
        return [state] if state else self.STATES

    @staticmethod
    def _region_key(state: str, county_number: int) -> str:
        return f"{state}-County {county_number}"

    def _county_counts(self, state: Optional[str], year: Optional[int]) -> dict:
        """Number of counties per state, 20-50 as in the LEAD extract"""
        rng = self._rng("counties", state, year)
        return {s: int(rng.integers(20, self.MAX_COUNTIES + 1)) for s in self._states(state)}

    def get_disasters(self, state: Optional[str] = None, year: Optional[int] = None) -> pd.DataFrame:
        rng = self._rng("disasters", state, year)
        n = self.disaster_count
        states = self._states(state)

        state_col = rng.choice(states, size=n)
        years = np.full(n, year) if year else rng.integers(2020, 2025, size=n)
        months = rng.integers(1, 13, size=n)
        days = rng.integers(1, 29, size=n)
        counties = rng.integers(1, self.MAX_COUNTIES + 1, size=n)

        df = pd.DataFrame({
            "region_key": [self._region_key(s, c) for s, c in zip(state_col, counties)],
            "state": state_col,
            "incident_type": rng.choice(self.INCIDENT_TYPES, size=n),
            "declared_at": pd.to_datetime(
                pd.DataFrame({"year": years, "month": months, "day": days})
            ).dt.tz_localize("UTC"),
            "declaration_type": rng.choice(self.DECLARATION_TYPES, size=n),
            "disaster_number": [f"DR-{4000 + i}" for i in range(n)],
        })
        logger.info(f"Generated {len(df)} mock disaster declarations")
        return df[DISASTER_COLUMNS]

    def get_demand(self, state: Optional[str] = None) -> pd.DataFrame:
        frames = []
        for s in self._states(state):
            rng = self._rng("demand", s, self.demand_year)
            dates = pd.date_range(f"{self.demand_year}-01-01", periods=365, freq="D")
            hours = np.arange(24) if self.hourly else np.array([0])

            index = pd.MultiIndex.from_product([dates, hours], names=["date", "hour"]).to_frame(index=False)
            month = index["date"].dt.month.to_numpy()
            hour = index["hour"].to_numpy()

            is_summer = (month >= 6) & (month <= 9)
            is_winter = (month <= 3) | (month >= 11)
            seasonal = np.where(is_summer, 1.3, np.where(is_winter, 1.2, 1.0))
            # Peak hours 2-6 PM
            hour_multiplier = np.where((hour >= 14) & (hour <= 18), 1.4, 1.0)
            base = 5000 + rng.random(len(index)) * 2000

            frames.append(pd.DataFrame({
                "region_key": s,
                "state": s,
                "timestamp": index["date"] + pd.to_timedelta(index["hour"], unit="h"),
                "hour": hour,
                "demand_mw": base * hour_multiplier * seasonal,
            }))

        df = pd.concat(frames, ignore_index=True)
        return df[DEMAND_COLUMNS]

    def get_energy_burden(self, state: Optional[str] = None, year: Optional[int] = None) -> pd.DataFrame:
        rng = self._rng("burden", state, year)
        rows = []
        for s, count in self._county_counts(state, year).items():
            for i in range(1, count + 1):
                cooling = 500 + rng.random() * 1500
                heating = 400 + rng.random() * 1200
                income = 45000 + rng.random() * 55000
                rows.append({
                    "region_key": self._region_key(s, i),
                    "state": s,
                    "year": year or self.demand_year,
                    "cooling_cost_usd": cooling,
                    "heating_cost_usd": heating,
                    "total_energy_burden_pct": (cooling + heating) / income * 100,
                    "latitude": 25 + rng.random() * 24,
                    "longitude": -125 + rng.random() * 58,
                })
        return pd.DataFrame(rows, columns=BURDEN_COLUMNS)

    def get_migration_flows(self, state: Optional[str] = None, year: Optional[int] = None) -> List[MigrationFlow]:
        rng = self._rng("flows", state, year)
        # Destinations may leave the selected state
        all_states = self.STATES
        flows = []
        for _ in range(self.migration_flow_count):
            origin_state = state or str(rng.choice(all_states))
            destination_state = str(rng.choice(all_states))
            flows.append(MigrationFlow(
                origin_region_key=self._region_key(origin_state, int(rng.integers(1, self.MAX_COUNTIES + 1))),
                destination_region_key=self._region_key(destination_state, int(rng.integers(1, self.MAX_COUNTIES + 1))),
                year=year or 2023,
                net_persons=int(rng.integers(10, 5010)),
            ))
        return flows

    def get_migration(self, state: Optional[str] = None, year: Optional[int] = None) -> pd.DataFrame:
        totals = net_migration_by_region(self.get_migration_flows(state=state, year=year))
        rng = self._rng("population", state, year)

        rows = []
        for s, count in self._county_counts(state, year).items():
            for i in range(1, count + 1):
                key = self._region_key(s, i)
                entry = totals.get(key, {"in_migration": 0, "out_migration": 0, "net_migration": 0})
                rows.append({
                    "region_key": key,
                    "state": s,
                    **entry,
                    "population": int(50000 + rng.random() * 450000),
                })
        return pd.DataFrame(rows, columns=MIGRATION_COLUMNS)

    def get_storm_events(self, state: Optional[str] = None, year: Optional[int] = None) -> pd.DataFrame:
        rng = self._rng("storms", state, year)
        n = self.storm_count
        state_col = rng.choice(self._states(state), size=n)
        counties = rng.integers(1, self.MAX_COUNTIES + 1, size=n)
        event_year = year or 2024

        df = pd.DataFrame({
            "region_key": [self._region_key(s, c) for s, c in zip(state_col, counties)],
            "state": state_col,
            "event_type": rng.choice(self.STORM_TYPES, size=n),
            "begin_date": pd.to_datetime(pd.DataFrame({
                "year": np.full(n, event_year),
                "month": rng.integers(1, 13, size=n),
                "day": rng.integers(1, 29, size=n),
            })),
            "injuries": rng.integers(0, 50, size=n),
            "deaths": rng.integers(0, 10, size=n),
            "damage_property": rng.random(n) * 10_000_000,
            "damage_crops": rng.random(n) * 1_000_000,
            "latitude": 25 + rng.random(n) * 24,
            "longitude": -125 + rng.random(n) * 58,
        })
        return df[STORM_COLUMNS]
