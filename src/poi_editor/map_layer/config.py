from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

DEFAULT_STYLE = "https://demotiles.maplibre.org/globe.json"


@dataclass(frozen=True)
class MapConfig:
    center: Tuple[float, float] = (-70.6483, -33.4569)
    zoom: float = 2.0
    style: str = DEFAULT_STYLE
    fit_padding: int = 50
    fit_max_zoom: float = 15.0
    source_id: str = "points"
    circle_layer_id: str = "points-circle"
    label_layer_id: str = "points-label"
    circle_color: str = "#e74c3c"
    circle_radius: int = 8

    def layers(self):
        """Circle and label layers bound to the point source."""
        return [
            {
                "id": self.circle_layer_id,
                "type": "circle",
                "source": self.source_id,
                "paint": {
                    "circle-radius": self.circle_radius,
                    "circle-color": self.circle_color,
                    "circle-stroke-width": 2,
                    "circle-stroke-color": "#ffffff",
                },
            },
            {
                "id": self.label_layer_id,
                "type": "symbol",
                "source": self.source_id,
                "layout": {
                    "text-field": ["get", "name"],
                    "text-offset": [0, 1.25],
                    "text-anchor": "top",
                    "text-size": 12,
                },
            },
        ]
