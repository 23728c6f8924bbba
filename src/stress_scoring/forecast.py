"""
Forecast Projection

Projects a composite stress score forward in time from three drivers:
seasonal demand, a linear secular trend and recent disaster momentum.
"""

from datetime import date, datetime
from typing import Union

import pandas as pd

from .config import (
    DISASTER_MOMENTUM_MAX,
    DISASTER_MOMENTUM_PER_EVENT,
    SHOULDER_ADJUSTMENT,
    SUMMER_ADJUSTMENT,
    SUMMER_MONTHS,
    TREND_BASE_YEAR,
    TREND_PER_YEAR,
    WINTER_ADJUSTMENT,
    WINTER_MONTHS,
)
from .records import ForecastSnapshot, StressInputError, require_finite, require_non_negative
from .tiering import clamp_score, stress_level

DateLike = Union[date, datetime, str, pd.Timestamp]


def _to_date(value: DateLike) -> date:
    if isinstance(value, (str, pd.Timestamp)):
        try:
            value = pd.Timestamp(value)
        except ValueError as e:
            raise StressInputError(f"Invalid forecast date {value!r}: {e}")
        if pd.isna(value):
            raise StressInputError("Forecast date is missing")
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise StressInputError(f"Unsupported forecast date {value!r}")


def seasonal_adjustment(as_of: DateLike) -> float:
    """Cooling season (Jun-Oct) adds 12, heating season (Dec-Feb) 9, otherwise 5"""
    month = _to_date(as_of).month
    if month in SUMMER_MONTHS:
        return SUMMER_ADJUSTMENT
    if month in WINTER_MONTHS:
        return WINTER_ADJUSTMENT
    return SHOULDER_ADJUSTMENT


def trend_adjustment(as_of: DateLike) -> float:
    return (_to_date(as_of).year - TREND_BASE_YEAR) * TREND_PER_YEAR


def disaster_momentum(disaster_count: int) -> float:
    disaster_count = require_non_negative(disaster_count, "disaster_count")
    return min(disaster_count * DISASTER_MOMENTUM_PER_EVENT, DISASTER_MOMENTUM_MAX)


def project_score(base_score: float, as_of: DateLike, disaster_count: int = 0) -> float:
    """
    Forward-projected stress score, clamped to [0, 100]

    Example:
        >>> project_score(50, "2020-01-01", 0)
        59.0
    """
    base_score = require_finite(base_score, "base_score")
    return clamp_score(
        base_score
        + seasonal_adjustment(as_of)
        + trend_adjustment(as_of)
        + disaster_momentum(disaster_count)
    )


def project_forecast(
    region_key: str,
    base_score: float,
    as_of: DateLike,
    disaster_count: int = 0
) -> ForecastSnapshot:
    score = project_score(base_score, as_of, disaster_count)
    return ForecastSnapshot(
        region_key=region_key,
        as_of_date=_to_date(as_of),
        forecast_score=score,
        forecast_level=stress_level(score),
    )


def forecast_series(
    base_score: float,
    start: DateLike,
    periods: int = 12,
    disaster_count: int = 0,
    months_per_step: int = 1
) -> pd.DataFrame:
    """
    Project a score across a time axis

    Args:
        base_score: Current composite score
        start: First date of the axis; the first row is projected for it
        periods: Number of steps
        disaster_count: Recent disaster count driving momentum
        months_per_step: Calendar months between steps (day of month is
            kept, clipped to the month end)

    Returns:
        DataFrame with date, forecast_score, forecast_level and the three drivers
    """
    if periods < 0:
        raise StressInputError(f"periods must be >= 0, got {periods}")
    if months_per_step < 1:
        raise StressInputError(f"months_per_step must be >= 1, got {months_per_step}")

    first = pd.Timestamp(_to_date(start))
    dates = [first + pd.DateOffset(months=i * months_per_step) for i in range(periods)]
    rows = []
    for ts in dates:
        score = project_score(base_score, ts, disaster_count)
        rows.append({
            "date": ts,
            "seasonal": seasonal_adjustment(ts),
            "trend": trend_adjustment(ts),
            "momentum": disaster_momentum(disaster_count),
            "forecast_score": score,
            "forecast_level": stress_level(score),
        })

    return pd.DataFrame(
        rows,
        columns=["date", "seasonal", "trend", "momentum", "forecast_score", "forecast_level"],
    )
