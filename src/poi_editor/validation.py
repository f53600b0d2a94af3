"""Structural and value checks for candidate GeoJSON point features.

Candidates come straight from `json.loads`, so nothing about their shape is
assumed; every field is checked before it is read.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping

LON_RANGE = (-180.0, 180.0)
LAT_RANGE = (-90.0, 90.0)


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    errors: List[str] = field(default_factory=list)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a coordinate.
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def coordinates_in_range(lon: float, lat: float) -> bool:
    # Compare before any float conversion; huge ints cannot become floats.
    if not (
        LON_RANGE[0] <= lon <= LON_RANGE[1] and LAT_RANGE[0] <= lat <= LAT_RANGE[1]
    ):
        return False
    return math.isfinite(lon) and math.isfinite(lat)


def check_coordinates(coords: Any) -> List[str]:
    """Rules 3-5 on their own; shared with `PointStore.add`."""
    if not isinstance(coords, (list, tuple)) or len(coords) != 2:
        return ["Invalid coordinates format"]
    lon, lat = coords
    if not _is_number(lon) or not _is_number(lat):
        return ["Coordinates must be numbers"]
    if not coordinates_in_range(lon, lat):
        return ["Coordinates out of range"]
    return []


def validate_feature(candidate: Any) -> ValidationResult:
    if not isinstance(candidate, Mapping) or candidate.get("type") != "Feature":
        return ValidationResult(False, ["Not a Feature"])

    geometry = candidate.get("geometry")
    if not isinstance(geometry, Mapping) or geometry.get("type") != "Point":
        return ValidationResult(False, ["Geometry must be Point"])

    coord_errors = check_coordinates(geometry.get("coordinates"))
    if coord_errors:
        return ValidationResult(False, coord_errors)

    properties = candidate.get("properties")
    if not isinstance(properties, Mapping):
        return ValidationResult(False, ["Missing properties"])

    errors: List[str] = []
    if not isinstance(properties.get("name"), str):
        errors.append("Name must be string")
    if not isinstance(properties.get("category"), str):
        errors.append("Category must be string")

    return ValidationResult(not errors, errors)


def is_feature_collection(value: Any) -> bool:
    return (
        isinstance(value, Mapping)
        and value.get("type") == "FeatureCollection"
        and isinstance(value.get("features"), list)
    )
