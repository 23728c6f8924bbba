"""
Live Data Source

DataSource backed by the public FEMA, EIA and Census APIs. Responses are kept
in an injectable TTL cache. Feeds without a public API (energy burden, storm
events) report None so scores mark them as unknown.
"""

import logging
from typing import Callable, List, Optional

import pandas as pd

from .base import DataSource
from .cache import TTLCache
from .census_connector import STATE_FIPS, CensusConnector
from .eia_connector import EIAConnector
from .fema_connector import FEMAConnector

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class LiveDataSource(DataSource):
    """DataSource fetching live public data through cached connectors"""

    def __init__(
        self,
        fema: Optional[FEMAConnector] = None,
        eia: Optional[EIAConnector] = None,
        census: Optional[CensusConnector] = None,
        cache: Optional[TTLCache] = None,
        disaster_years: int = 5
    ):
        self.fema = fema or FEMAConnector()
        self.eia = eia or EIAConnector()
        self.census = census or CensusConnector()
        self.cache = cache or TTLCache()
        self.disaster_years = disaster_years

    def _per_state(
        self,
        states: List[str],
        fetch: Callable[[str], Optional[pd.DataFrame]]
    ) -> Optional[pd.DataFrame]:
        """Concatenate per-state frames; None if every state failed"""
        frames = [fetch(s) for s in states]
        available = [df for df in frames if df is not None]
        if not available:
            return None
        failed = len(frames) - len(available)
        if failed:
            logger.warning(f"{failed} of {len(frames)} state requests failed")
        non_empty = [df for df in available if not df.empty]
        if not non_empty:
            return available[0]
        return pd.concat(non_empty, ignore_index=True)

    def get_disasters(self, state: Optional[str] = None, year: Optional[int] = None) -> Optional[pd.DataFrame]:
        if year:
            return self.cache.get_or_compute(
                ("fema", state, year),
                lambda: self.fema.get_disaster_declarations(state=state, year=year, limit=10000),
            )
        return self.cache.get_or_compute(
            ("fema-recent", state, self.disaster_years),
            lambda: self.fema.get_recent_disasters(years=self.disaster_years, state=state),
        )

    def get_demand(self, state: Optional[str] = None) -> Optional[pd.DataFrame]:
        states = [state] if state else sorted(self.eia.STATE_RESPONDENTS)
        return self._per_state(
            states,
            lambda s: self.cache.get_or_compute(("eia", s), lambda: self.eia.get_demand(s)),
        )

    def get_energy_burden(self, state: Optional[str] = None, year: Optional[int] = None) -> Optional[pd.DataFrame]:
        # LEAD burden data is a manual download with no public API
        return None

    def get_migration(self, state: Optional[str] = None, year: Optional[int] = None) -> Optional[pd.DataFrame]:
        states = [state] if state else sorted(STATE_FIPS)
        return self._per_state(
            states,
            lambda s: self.cache.get_or_compute(("census-migration", s), lambda: self.census.get_migration(s)),
        )

    def get_storm_events(self, state: Optional[str] = None, year: Optional[int] = None) -> Optional[pd.DataFrame]:
        # NOAA storm events ship as bulk CSV archives, not a query API
        return None

    def refresh(self) -> None:
        """Drop all cached responses"""
        self.cache.invalidate()
