"""
Tiering

Shared threshold logic mapping a 0-100 score to a stress level and a legend
color. Scorers, the forecast, the API and the dashboard all bucket through
these functions.
"""

from typing import List, Tuple

from .config import (
    CRITICAL_THRESHOLD,
    HIGH_THRESHOLD,
    LEGEND_BANDS,
    MODERATE_THRESHOLD,
    NO_DATA_COLOR,
    SCORE_MAX,
    SCORE_MIN,
)
from .records import require_finite


def clamp_score(value: float, low: float = SCORE_MIN, high: float = SCORE_MAX) -> float:
    """Clamp ``value`` into [low, high]"""
    return max(low, min(high, value))


def stress_level(score: float) -> str:
    """
    Classify a score into Low / Moderate / High / Critical

    Lower bounds are inclusive: 25 is Moderate, 50 is High, 75 is Critical.
    """
    score = require_finite(score, "score")

    if score >= CRITICAL_THRESHOLD:
        return "Critical"
    elif score >= HIGH_THRESHOLD:
        return "High"
    elif score >= MODERATE_THRESHOLD:
        return "Moderate"
    return "Low"


def is_top_stressed(score: float, threshold: float) -> bool:
    return require_finite(score, "score") >= threshold


def legend_color(score) -> str:
    """Choropleth fill color for a score; grey when the score is unknown"""
    if score is None:
        return NO_DATA_COLOR
    score = require_finite(score, "score")
    for lower_bound, color in LEGEND_BANDS:
        if score >= lower_bound:
            return color
    # Below zero never happens for clamped scores
    return LEGEND_BANDS[-1][1]


def legend_entries() -> List[Tuple[str, str]]:
    """Legend rows as (label, color), highest band first"""
    entries = []
    upper = None
    for lower_bound, color in LEGEND_BANDS:
        if upper is None:
            label = f"{lower_bound:.0f}+"
        else:
            label = f"{lower_bound:.0f}-{upper:.0f}"
        entries.append((label, color))
        upper = lower_bound
    return entries
