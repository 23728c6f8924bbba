"""
Data connectors for the stress platform

This package contains the data sources feeding the stress scorers:
- FEMA: Disaster declarations (OpenFEMA)
- EIA: Hourly electricity demand
- Census: County population and net migration
- Mock: Seeded synthetic data with the same frame layout
"""

from .base import DataSource
from .cache import TTLCache
from .fema_connector import FEMAConnector
from .eia_connector import EIAConnector
from .census_connector import CensusConnector
from .mock_source import MockDataSource
from .live_source import LiveDataSource

__all__ = [
    "DataSource",
    "TTLCache",
    "FEMAConnector",
    "EIAConnector",
    "CensusConnector",
    "MockDataSource",
    "LiveDataSource",
]
