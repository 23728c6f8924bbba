"""
U.S. Census Bureau Population Estimates Connector

Fetches county population and net migration from the Census Population
Estimates Program (PEP) API.
API Documentation: https://www.census.gov/data/developers/data-sets/popest-popproj.html
"""

import requests
import pandas as pd
from typing import List, Optional
import logging
import os

from .base import MIGRATION_COLUMNS

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


STATE_FIPS = {
    "AL": "01", "AK": "02", "AZ": "04", "AR": "05", "CA": "06", "CO": "08",
    "CT": "09", "DE": "10", "DC": "11", "FL": "12", "GA": "13", "HI": "15",
    "ID": "16", "IL": "17", "IN": "18", "IA": "19", "KS": "20", "KY": "21",
    "LA": "22", "ME": "23", "MD": "24", "MA": "25", "MI": "26", "MN": "27",
    "MS": "28", "MO": "29", "MT": "30", "NE": "31", "NV": "32", "NH": "33",
    "NJ": "34", "NM": "35", "NY": "36", "NC": "37", "ND": "38", "OH": "39",
    "OK": "40", "OR": "41", "PA": "42", "RI": "44", "SC": "45", "SD": "46",
    "TN": "47", "TX": "48", "UT": "49", "VT": "50", "VA": "51", "WA": "53",
    "WV": "54", "WI": "55", "WY": "56",
}


class CensusConnector:
    """Connector for Census PEP population and components of change"""

    BASE_URL = "https://api.census.gov/data"

    # Last vintage publishing county components through this API
    DEFAULT_VINTAGE = 2019

    def __init__(self, api_key: Optional[str] = None, vintage: int = DEFAULT_VINTAGE):
        """
        Initialize Census connector

        Args:
            api_key: Census API key. If None, reads CENSUS_API_KEY; requests
                without a key are rate limited.
            vintage: PEP vintage year
        """
        self.api_key = api_key or os.getenv("CENSUS_API_KEY")
        self.vintage = vintage

        if not self.api_key:
            logger.warning("CENSUS_API_KEY not set - requests are rate limited")

        self.session = requests.Session()

    def _query(self, dataset: str, variables: List[str], state: str) -> Optional[pd.DataFrame]:
        state_fips = STATE_FIPS.get(state)
        if state_fips is None:
            logger.error(f"Unknown state code '{state}'")
            return None

        params = {
            "get": ",".join(["NAME"] + variables),
            "for": "county:*",
            "in": f"state:{state_fips}",
        }
        if self.api_key:
            params["key"] = self.api_key

        url = f"{self.BASE_URL}/{self.vintage}/pep/{dataset}"

        try:
            logger.info(f"Fetching Census {dataset} for {state}")
            response = self.session.get(url, params=params, timeout=30)
            response.raise_for_status()

            rows = response.json()
            if len(rows) < 2:
                return pd.DataFrame(columns=rows[0] if rows else [])

            df = pd.DataFrame(rows[1:], columns=rows[0])
            df["region_key"] = df["state"].str.zfill(2) + df["county"].str.zfill(3)
            for variable in variables:
                df[variable] = pd.to_numeric(df[variable], errors="coerce")
            return df

        except requests.exceptions.RequestException as e:
            logger.error(f"Error fetching Census {dataset}: {e}")
            return None
        except ValueError as e:
            logger.error(f"Error parsing Census {dataset}: {e}")
            return None

    def get_population(self, state: str) -> Optional[pd.DataFrame]:
        """County population estimates (region_key, name, population)"""
        df = self._query("population", ["POP"], state)
        if df is None or df.empty:
            return df
        return df.rename(columns={"NAME": "name", "POP": "population"})[["region_key", "name", "population"]]

    def get_migration(self, state: str) -> Optional[pd.DataFrame]:
        """
        County net migration joined with population

        PEP publishes net figures only, so in/out migration are left empty.

        Returns:
            DataFrame with migration columns, or None if either request failed
        """
        components = self._query("components", ["NETMIG"], state)
        population = self.get_population(state)
        if components is None or population is None:
            return None
        if components.empty or population.empty:
            return pd.DataFrame(columns=MIGRATION_COLUMNS)

        df = components[["region_key", "NETMIG"]].merge(population, on="region_key", how="inner")
        df = df.rename(columns={"NETMIG": "net_migration"})
        df.dropna(subset=["net_migration", "population"], inplace=True)
        df["state"] = state
        df["in_migration"] = pd.NA
        df["out_migration"] = pd.NA

        logger.info(f"Retrieved migration for {len(df)} counties")
        return df[MIGRATION_COLUMNS].reset_index(drop=True)
