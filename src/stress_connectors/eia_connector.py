"""
EIA Electricity Demand Connector

Fetches hourly balancing-authority demand from the EIA Open Data v2 API.
API Documentation: https://www.eia.gov/opendata/documentation.php
"""

import requests
import pandas as pd
from datetime import datetime, timedelta
from typing import Optional
import logging
import os

from .base import DEMAND_COLUMNS

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class EIAConnector:
    """Connector for EIA hourly electric grid monitor data"""

    BASE_URL = "https://api.eia.gov/v2/electricity/rto/region-data/data/"

    # Balancing authority covering most of each state's load
    STATE_RESPONDENTS = {
        "TX": "ERCO",
        "CA": "CISO",
        "NY": "NYIS",
        "FL": "FPL",
        "LA": "MISO",
        "MS": "MISO",
        "AL": "SOCO",
        "OK": "SWPP",
        "KS": "SWPP",
        "NE": "SWPP",
        "CO": "PSCO",
        "AZ": "AZPS",
        "NV": "NEVP",
        "WA": "BPAT",
        "OR": "BPAT",
    }

    def __init__(self, api_key: Optional[str] = None):
        """
        Initialize EIA connector

        Args:
            api_key: EIA API key. If None, reads EIA_API_KEY from the environment.
        """
        self.api_key = api_key or os.getenv("EIA_API_KEY")

        if not self.api_key:
            logger.warning("EIA_API_KEY not set - demand data unavailable. Register at: https://www.eia.gov/opendata/register.php")

        self.session = requests.Session()

    def get_demand(
        self,
        state: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 5000
    ) -> Optional[pd.DataFrame]:
        """
        Fetch hourly demand for the balancing authority serving a state

        Args:
            state: Two-letter state code
            start_date: ISO date (default: 30 days ago)
            end_date: ISO date (default: today)
            limit: Maximum rows returned

        Returns:
            DataFrame with demand samples, or None if unavailable
        """
        if not self.api_key:
            return None

        respondent = self.STATE_RESPONDENTS.get(state)
        if respondent is None:
            logger.error(f"No balancing authority mapped for state '{state}'")
            return None

        if end_date is None:
            end_date = datetime.now().strftime("%Y-%m-%d")
        if start_date is None:
            start_date = (datetime.now() - timedelta(days=30)).strftime("%Y-%m-%d")

        params = {
            "api_key": self.api_key,
            "frequency": "hourly",
            "data[0]": "value",
            "facets[respondent][]": respondent,
            "facets[type][]": "D",
            "start": f"{start_date}T00",
            "end": f"{end_date}T23",
            "sort[0][column]": "period",
            "sort[0][direction]": "asc",
            "length": limit,
        }

        try:
            logger.info(f"Fetching EIA demand for {state} ({respondent}) from {start_date} to {end_date}")
            response = self.session.get(self.BASE_URL, params=params, timeout=30)
            response.raise_for_status()

            rows = response.json().get("response", {}).get("data", [])
            if not rows:
                logger.info("No demand data returned")
                return pd.DataFrame(columns=DEMAND_COLUMNS)

            df = pd.DataFrame(rows)
            df["timestamp"] = pd.to_datetime(df["period"], format="%Y-%m-%dT%H")
            df["demand_mw"] = pd.to_numeric(df["value"], errors="coerce")
            df.dropna(subset=["demand_mw"], inplace=True)
            df["hour"] = df["timestamp"].dt.hour
            df["region_key"] = state
            df["state"] = state

            logger.info(f"Retrieved {len(df)} demand samples")
            return df[DEMAND_COLUMNS].reset_index(drop=True)

        except requests.exceptions.RequestException as e:
            logger.error(f"Error fetching EIA demand: {e}")
            return None
        except (ValueError, KeyError) as e:
            logger.error(f"Error processing EIA demand: {e}")
            return None
