"""
FEMA OpenFEMA API Connector

Fetches disaster declarations from the OpenFEMA v2 API.
API Documentation: https://www.fema.gov/about/openfema/api
"""

import requests
import pandas as pd
from datetime import datetime
from typing import Optional
import logging

from .base import DISASTER_COLUMNS

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FEMAConnector:
    """Connector for the OpenFEMA Disaster Declarations Summaries API"""

    BASE_URL = "https://www.fema.gov/api/open/v2"
    DISASTERS_ENDPOINT = "/DisasterDeclarationsSummaries"

    def __init__(self):
        self.session = requests.Session()

    def get_disaster_declarations(
        self,
        state: Optional[str] = None,
        year: Optional[int] = None,
        declaration_type: Optional[str] = None,
        limit: int = 1000,
        skip: int = 0
    ) -> Optional[pd.DataFrame]:
        """
        Fetch disaster declarations

        Args:
            state: Two-letter state code (e.g., "TX")
            year: Fiscal year declared
            declaration_type: "DR" (major disaster), "EM" (emergency) or "FM" (fire management)
            limit: Maximum records per request ($top)
            skip: Records to skip, for paging

        Returns:
            DataFrame with one row per designated area, or None if the request failed
        """
        filters = []
        if state:
            filters.append(f"state eq '{state}'")
        if year:
            filters.append(f"fyDeclared eq {year}")
        if declaration_type:
            filters.append(f"declarationType eq '{declaration_type}'")

        params = {"$top": limit, "$skip": skip}
        if filters:
            params["$filter"] = " and ".join(filters)

        url = f"{self.BASE_URL}{self.DISASTERS_ENDPOINT}"

        try:
            logger.info(f"Fetching FEMA declarations (params: {params})")
            response = self.session.get(url, params=params, timeout=30)
            response.raise_for_status()

            data = response.json()
            declarations = data.get("DisasterDeclarationsSummaries", [])

            if not declarations:
                logger.info("No disaster declarations returned")
                return pd.DataFrame(columns=DISASTER_COLUMNS)

            df = self.parse_declarations(declarations)
            logger.info(f"Retrieved {len(df)} disaster declarations")
            return df

        except requests.exceptions.RequestException as e:
            logger.error(f"Error fetching FEMA declarations: {e}")
            return None
        except ValueError as e:
            logger.error(f"Error parsing FEMA response: {e}")
            return None

    @staticmethod
    def parse_declarations(declarations: list) -> pd.DataFrame:
        """Normalize raw OpenFEMA records to the disaster frame layout"""
        records = []
        for item in declarations:
            state_fips = str(item.get("fipsStateCode", "")).zfill(2)
            county_fips = str(item.get("fipsCountyCode", "")).zfill(3)

            records.append({
                "region_key": f"{state_fips}{county_fips}",
                "state": item.get("state"),
                "incident_type": item.get("incidentType"),
                "declared_at": pd.to_datetime(item.get("declarationDate"), errors="coerce", utc=True),
                "declaration_type": item.get("declarationType"),
                "disaster_number": item.get("disasterNumber") or item.get("femaDeclarationString"),
                "designated_area": item.get("designatedArea"),
                "title": item.get("declarationTitle"),
            })

        return pd.DataFrame(records, columns=DISASTER_COLUMNS + ["designated_area", "title"])

    def get_recent_disasters(self, years: int = 5, state: Optional[str] = None) -> Optional[pd.DataFrame]:
        """
        Get declarations for the last ``years`` fiscal years

        Fetched year by year to keep responses small. Returns None when any
        year fails, since a partial history would understate disaster stress.
        """
        current_year = datetime.now().year
        frames = []

        for year in range(current_year - years, current_year + 1):
            df = self.get_disaster_declarations(state=state, year=year, limit=10000)
            if df is None:
                return None
            if not df.empty:
                frames.append(df)

        if not frames:
            return pd.DataFrame(columns=DISASTER_COLUMNS)
        return pd.concat(frames, ignore_index=True)


if __name__ == "__main__":
    connector = FEMAConnector()
    df = connector.get_disaster_declarations(state="TX", limit=100)

    if df is not None and not df.empty:
        print(f"\n✓ Retrieved {len(df)} declarations")
        print(df[["region_key", "incident_type", "declared_at"]].head())
    else:
        print("✗ No declaration data retrieved")
