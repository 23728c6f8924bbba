"""
Map layers

Lookup table of map layers. Each layer id maps to a descriptor telling the
map which value to read from a region row and how to color it, so the view
never branches on layer ids.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Mapping, Optional

import numpy as np
import pandas as pd

from .forecast import project_score
from .records import StressInputError
from .tiering import legend_color


@dataclass(frozen=True)
class LayerDescriptor:
    id: str
    name: str
    kind: str  # choropleth | symbols
    value: Callable[[Mapping, date], Optional[float]]
    color: str
    enabled: bool = False
    icon: Optional[str] = None

    def value_for(self, row: Mapping, as_of: date) -> Optional[float]:
        return self.value(row, as_of)

    def fill_color(self, row: Mapping, as_of: date) -> str:
        return legend_color(self.value_for(row, as_of))

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.kind,
            "color": self.color,
            "enabled": self.enabled,
            "icon": self.icon,
        }


def _column(name: str) -> Callable[[Mapping, date], Optional[float]]:
    def accessor(row: Mapping, as_of: date) -> Optional[float]:
        value = row.get(name)
        if value is None or pd.isna(value):
            return None
        return float(value)
    return accessor


def _forecast(row: Mapping, as_of: date) -> Optional[float]:
    base = row.get("overall_stress_score")
    if base is None or pd.isna(base):
        return None
    count = row.get("disaster_count", row.get("disaster_declarations_count", 0))
    if count is None or pd.isna(count):
        count = 0
    return project_score(base, as_of, int(count))


def _top_stressed(row: Mapping, as_of: date) -> Optional[float]:
    flag = row.get("is_top_stressed")
    if flag is None:
        return None
    return 100.0 if bool(flag) else 0.0


LAYERS: Dict[str, LayerDescriptor] = {
    layer.id: layer
    for layer in (
        LayerDescriptor(
            id="county-choropleth",
            name="County Readiness Pressure",
            kind="choropleth",
            value=_column("overall_stress_score"),
            color="#b91c1c",
            enabled=True,
        ),
        LayerDescriptor(
            id="disaster-stress",
            name="Disaster Exposure Level",
            kind="choropleth",
            value=_column("disaster_stress_score"),
            color="#f97316",
        ),
        LayerDescriptor(
            id="energy-stress",
            name="Energy Cost Pressure",
            kind="choropleth",
            value=_column("energy_stress_score"),
            color="#38bdf8",
        ),
        LayerDescriptor(
            id="forecast-pressure",
            name="Forecast Pressure Hotspots",
            kind="choropleth",
            value=_forecast,
            color="#7c3aed",
        ),
        LayerDescriptor(
            id="top-stressed",
            name="Priority Action Counties",
            kind="symbols",
            value=_top_stressed,
            color="#b91c1c",
            enabled=True,
            icon="⚠️",
        ),
    )
}


def get_layer(layer_id: str) -> LayerDescriptor:
    try:
        return LAYERS[layer_id]
    except KeyError:
        raise StressInputError(f"Unknown layer '{layer_id}', available: {sorted(LAYERS)}")


def choropleth_layers() -> List[LayerDescriptor]:
    return [layer for layer in LAYERS.values() if layer.kind == "choropleth"]


def toggle_layer(enabled: Mapping[str, bool], layer_id: str, on: bool) -> Dict[str, bool]:
    """
    New enabled-state map after toggling a layer

    Only one choropleth is shown at a time: enabling one disables the others.
    """
    target = get_layer(layer_id)
    state = {lid: bool(enabled.get(lid, layer.enabled)) for lid, layer in LAYERS.items()}
    state[layer_id] = on
    if on and target.kind == "choropleth":
        for layer in choropleth_layers():
            if layer.id != layer_id:
                state[layer.id] = False
    return state


def apply_layer(df: pd.DataFrame, layer_id: str, as_of: date) -> pd.DataFrame:
    """Add layer_value and fill_color columns for ``layer_id`` to a copy of ``df``"""
    layer = get_layer(layer_id)
    out = df.copy()
    records = out.to_dict(orient="records")
    values = [layer.value_for(row, as_of) for row in records]
    out["layer_value"] = [np.nan if v is None else v for v in values]
    out["fill_color"] = [legend_color(v) for v in values]
    return out


def metrics_to_geojson(df: pd.DataFrame) -> Dict:
    """
    Convert a metrics frame to a GeoJSON FeatureCollection of points

    Rows without coordinates get a null geometry.
    """
    features = []
    for row in df.to_dict(orient="records"):
        lon, lat = row.get("longitude"), row.get("latitude")
        geometry = None
        if lon is not None and lat is not None and not (pd.isna(lon) or pd.isna(lat)):
            geometry = {"type": "Point", "coordinates": [float(lon), float(lat)]}

        properties = {}
        for key, value in row.items():
            if isinstance(value, (np.integer,)):
                value = int(value)
            elif isinstance(value, (np.floating, float)):
                value = None if pd.isna(value) else float(value)
            elif isinstance(value, (np.bool_,)):
                value = bool(value)
            elif isinstance(value, tuple):
                value = list(value)
            properties[key] = value

        features.append({"type": "Feature", "properties": properties, "geometry": geometry})

    return {"type": "FeatureCollection", "features": features}
