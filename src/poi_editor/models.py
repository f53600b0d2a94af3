from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

FeatureId = Union[str, int]
Coordinates = Tuple[float, float]

# Wire mirror of Feature.id inside properties.
BACKREF_KEY = "_feature_id"
CREATED_AT_KEY = "created_at"


@dataclass
class Feature:
    """A single point of interest.

    `id` is the store identity. It is written into `properties` under
    BACKREF_KEY only when serializing, so user-supplied keys never collide
    with it in memory.
    """

    id: FeatureId
    coordinates: Coordinates
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return str(self.properties.get("name", ""))

    @property
    def category(self) -> str:
        return str(self.properties.get("category", ""))

    @property
    def created_at(self) -> Optional[str]:
        return self.properties.get(CREATED_AT_KEY)

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]

    def to_dict(self) -> Dict[str, Any]:
        properties = copy.deepcopy(self.properties)
        properties[BACKREF_KEY] = self.id
        return {
            "type": "Feature",
            "id": self.id,
            "geometry": {
                "type": "Point",
                "coordinates": [self.coordinates[0], self.coordinates[1]],
            },
            "properties": properties,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Feature":
        """Build from an already validated GeoJSON feature carrying an id."""
        properties = dict(raw.get("properties") or {})
        properties.pop(BACKREF_KEY, None)
        lon, lat = raw["geometry"]["coordinates"]
        return cls(id=raw["id"], coordinates=(lon, lat), properties=properties)


def to_feature_collection(features: List[Feature]) -> Dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [f.to_dict() for f in features],
    }


@dataclass
class ImportResult:
    imported: int = 0
    discarded: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "imported": self.imported,
            "discarded": self.discarded,
            "errors": list(self.errors),
        }


@dataclass
class SearchState:
    term: str = ""
    category: str = ""

    @property
    def active(self) -> bool:
        return bool(self.term) or bool(self.category)

    def to_dict(self) -> Dict[str, Any]:
        return {"term": self.term, "category": self.category}


@dataclass
class MapSyncState:
    selected_feature: Optional[Feature] = None
    click_coordinates: Optional[Coordinates] = None

    def clear(self) -> None:
        self.selected_feature = None
        self.click_coordinates = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selected_feature": (
                self.selected_feature.to_dict() if self.selected_feature else None
            ),
            "click_coordinates": (
                list(self.click_coordinates) if self.click_coordinates else None
            ),
        }
