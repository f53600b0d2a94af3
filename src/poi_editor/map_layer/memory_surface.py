from __future__ import annotations

import copy
import itertools
import math
from typing import Any, Dict, List, Optional

from shapely.geometry import Point

from poi_editor.map_layer.config import MapConfig
from poi_editor.map_layer.providers import Bounds

TILE_SIZE = 256


def degrees_per_pixel(zoom: float) -> float:
    return 360.0 / (TILE_SIZE * 2 ** zoom)


def _mercator_y(lat: float) -> float:
    lat = max(min(lat, 85.0511), -85.0511)
    return math.log(math.tan(math.pi / 4 + math.radians(lat) / 2))


class InMemorySurface:
    """Headless map surface that records what a renderer would draw.

    Hit-testing and viewport fitting approximate a web-mercator map of
    `width` x `height` pixels.
    """

    def __init__(
        self,
        container: Any = None,
        config: Optional[MapConfig] = None,
        *,
        width: int = 1024,
        height: int = 768,
        hit_radius_px: Optional[int] = None,
    ) -> None:
        self.container = container
        self.config = config or MapConfig()
        self.width = width
        self.height = height
        self.hit_radius_px = (
            hit_radius_px if hit_radius_px is not None else self.config.circle_radius
        )
        self.center = tuple(self.config.center)
        self.zoom = float(self.config.zoom)
        self.cursor = ""
        self.sources: Dict[str, Dict[str, Any]] = {}
        self.layers: List[Dict[str, Any]] = []
        self.markers: Dict[str, Dict[str, Any]] = {}
        self.popups: Dict[str, Dict[str, Any]] = {}
        self.removed = False
        self._ids = itertools.count(1)

    def _require_live(self) -> None:
        if self.removed:
            raise RuntimeError("surface has been removed")

    def add_source(self, source_id: str, data: Dict[str, Any]) -> None:
        self._require_live()
        if source_id in self.sources:
            raise ValueError(f"Source already exists: {source_id}")
        self.sources[source_id] = copy.deepcopy(data)

    def set_source_data(self, source_id: str, data: Dict[str, Any]) -> None:
        self._require_live()
        if source_id not in self.sources:
            raise KeyError(f"Source not found: {source_id}")
        self.sources[source_id] = copy.deepcopy(data)

    def add_layer(self, layer: Dict[str, Any]) -> None:
        self._require_live()
        if layer.get("source") not in self.sources:
            raise KeyError(f"Source not found: {layer.get('source')}")
        self.layers.append(dict(layer))

    def query_rendered_features(
        self, lon: float, lat: float, layers: List[str]
    ) -> List[Dict[str, Any]]:
        self._require_live()
        tolerance = self.hit_radius_px * degrees_per_pixel(self.zoom)
        click = Point(lon, lat)
        hits = []
        for layer in self.layers:
            if layer["id"] not in layers:
                continue
            data = self.sources.get(layer["source"]) or {}
            for feature in data.get("features", []):
                distance = click.distance(Point(*feature["geometry"]["coordinates"]))
                if distance <= tolerance:
                    rendered = copy.deepcopy(feature)
                    # Renderers drop non-numeric top-level ids.
                    if not isinstance(rendered.get("id"), (int, float)):
                        rendered.pop("id", None)
                    rendered["layer"] = {"id": layer["id"]}
                    hits.append((distance, rendered))
        hits.sort(key=lambda item: item[0])
        return [rendered for _, rendered in hits]

    def add_marker(self, lon: float, lat: float, *, draggable: bool = True) -> str:
        self._require_live()
        marker_id = f"marker-{next(self._ids)}"
        self.markers[marker_id] = {"lngLat": [lon, lat], "draggable": draggable}
        return marker_id

    def remove_marker(self, marker_id: str) -> None:
        self.markers.pop(marker_id, None)

    def open_popup(self, lon: float, lat: float, html: str) -> str:
        self._require_live()
        popup_id = f"popup-{next(self._ids)}"
        self.popups[popup_id] = {"lngLat": [lon, lat], "html": html}
        return popup_id

    def close_popup(self, popup_id: str) -> None:
        self.popups.pop(popup_id, None)

    def fit_bounds(
        self, bounds: Bounds, *, padding: int, max_zoom: Optional[float] = None
    ) -> None:
        self._require_live()
        (min_lon, min_lat), (max_lon, max_lat) = bounds
        max_zoom = self.config.fit_max_zoom if max_zoom is None else max_zoom
        usable_w = max(self.width - 2 * padding, 1)
        usable_h = max(self.height - 2 * padding, 1)

        span_lon = max_lon - min_lon
        span_y = _mercator_y(max_lat) - _mercator_y(min_lat)
        candidates = [max_zoom]
        if span_lon > 0:
            candidates.append(math.log2(360.0 * usable_w / (TILE_SIZE * span_lon)))
        if span_y > 0:
            candidates.append(math.log2(2 * math.pi * usable_h / (TILE_SIZE * span_y)))

        self.zoom = max(min(candidates), 0.0)
        self.center = ((min_lon + max_lon) / 2, (min_lat + max_lat) / 2)

    def set_cursor(self, cursor: str) -> None:
        self.cursor = cursor

    def remove(self) -> None:
        self.sources.clear()
        self.layers.clear()
        self.markers.clear()
        self.popups.clear()
        self.removed = True

    def snapshot(self) -> Dict[str, Any]:
        return {
            "center": list(self.center),
            "zoom": self.zoom,
            "style": self.config.style,
            "cursor": self.cursor,
            "sources": copy.deepcopy(self.sources),
            "layers": [layer["id"] for layer in self.layers],
            "markers": copy.deepcopy(self.markers),
            "popups": copy.deepcopy(self.popups),
        }
