"""
Data source interface

Every source (mock or live) yields the same normalized frames so the scoring
core never knows where its data came from. An empty DataFrame means "no
records"; None means the data could not be obtained.
"""

from abc import ABC, abstractmethod
from typing import Optional

import pandas as pd

DISASTER_COLUMNS = ["region_key", "state", "incident_type", "declared_at", "declaration_type", "disaster_number"]
DEMAND_COLUMNS = ["region_key", "state", "timestamp", "hour", "demand_mw"]
BURDEN_COLUMNS = [
    "region_key", "state", "year", "cooling_cost_usd", "heating_cost_usd",
    "total_energy_burden_pct", "latitude", "longitude",
]
MIGRATION_COLUMNS = ["region_key", "state", "in_migration", "out_migration", "net_migration", "population"]
STORM_COLUMNS = [
    "region_key", "state", "event_type", "begin_date", "injuries", "deaths",
    "damage_property", "damage_crops", "latitude", "longitude",
]


class DataSource(ABC):
    """Produces normalized input frames for a state/period"""

    @abstractmethod
    def get_disasters(self, state: Optional[str] = None, year: Optional[int] = None) -> Optional[pd.DataFrame]:
        """Disaster declarations (DISASTER_COLUMNS)"""

    @abstractmethod
    def get_demand(self, state: Optional[str] = None) -> Optional[pd.DataFrame]:
        """Electricity demand samples keyed by state (DEMAND_COLUMNS)"""

    @abstractmethod
    def get_energy_burden(self, state: Optional[str] = None, year: Optional[int] = None) -> Optional[pd.DataFrame]:
        """Cooling/heating costs and energy burden per region (BURDEN_COLUMNS)"""

    @abstractmethod
    def get_migration(self, state: Optional[str] = None, year: Optional[int] = None) -> Optional[pd.DataFrame]:
        """In/out/net migration and population per region (MIGRATION_COLUMNS)"""

    @abstractmethod
    def get_storm_events(self, state: Optional[str] = None, year: Optional[int] = None) -> Optional[pd.DataFrame]:
        """Storm events per region (STORM_COLUMNS)"""
