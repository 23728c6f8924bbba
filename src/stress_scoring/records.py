"""
Data model

Plain, immutable records consumed and produced by the scorers. Records are
created fresh per computation (``frozen=True``) and never edited in place.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Dict, Optional, Tuple, Union
import math


class StressInputError(ValueError):
    """Raised when a scorer receives input outside its documented domain."""


def require_finite(value: float, name: str) -> float:
    """Return ``value`` as float, rejecting NaN/inf/non-numeric input"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise StressInputError(f"{name} must be numeric, got {value!r}")
    if not math.isfinite(number):
        raise StressInputError(f"{name} must be a finite number, got {value!r}")
    return number


def require_non_negative(value: float, name: str) -> float:
    number = require_finite(value, name)
    if number < 0:
        raise StressInputError(f"{name} must be >= 0, got {value!r}")
    return number


def require_score(value: float, name: str) -> float:
    """Validate a 0-100 score"""
    number = require_finite(value, name)
    if number < 0 or number > 100:
        raise StressInputError(f"{name} must be within [0, 100], got {value!r}")
    return number


@dataclass(frozen=True)
class DisasterRecord:
    """One disaster declaration (or storm event) for a region."""
    region_key: str
    incident_type: str
    # datetime or ISO-8601 string; None when the source carried no usable date
    declared_at: Optional[Union[datetime, str]] = None


@dataclass(frozen=True)
class DemandSample:
    region_key: str
    timestamp: datetime
    demand_mw: float
    hour: int = 0


@dataclass(frozen=True)
class EnergyBurdenRecord:
    region_key: str
    cooling_cost_usd: float
    heating_cost_usd: float
    total_energy_burden_pct: float


@dataclass(frozen=True)
class MigrationFlow:
    """Persons moving from one region to another in a given year."""
    origin_region_key: str
    destination_region_key: str
    year: int
    net_persons: int


@dataclass(frozen=True)
class RegionScoreSnapshot:
    """Scored output for one region.

    ``missing_sources`` names the inputs that were unknown for the region
    (as opposed to confirmed zero). Their sub-scores default to 0.
    """
    region_key: str
    disaster_stress_score: float
    energy_stress_score: float
    migration_stress_score: float
    overall_stress_score: float
    stress_level: str
    is_top_stressed: bool
    missing_sources: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_complete_data(self) -> bool:
        return not self.missing_sources

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["missing_sources"] = list(self.missing_sources)
        return data


@dataclass(frozen=True)
class ForecastSnapshot:
    region_key: str
    as_of_date: date
    forecast_score: float
    forecast_level: str

    def to_dict(self) -> Dict:
        return {
            "region_key": self.region_key,
            "as_of_date": self.as_of_date.isoformat(),
            "forecast_score": self.forecast_score,
            "forecast_level": self.forecast_level,
        }
