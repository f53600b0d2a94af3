from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from poi_editor.models import Feature, SearchState


@dataclass(frozen=True)
class FieldDefinition:
    name: str
    ui_label: str
    property_key: str
    state_attr: str


# Text filters applied to feature properties; all use case-insensitive
# substring matching and an empty term matches everything.
FILTER_FIELDS: Dict[str, FieldDefinition] = {
    "name": FieldDefinition(
        name="name",
        ui_label="Name",
        property_key="name",
        state_attr="term",
    ),
    "category": FieldDefinition(
        name="category",
        ui_label="Category",
        property_key="category",
        state_attr="category",
    ),
}


def _contains(haystack: object, needle: str) -> bool:
    if not needle:
        return True
    if not isinstance(haystack, str):
        return False
    return needle.casefold() in haystack.casefold()


def matches(feature: Feature, state: SearchState) -> bool:
    for definition in FILTER_FIELDS.values():
        needle = getattr(state, definition.state_attr)
        if not _contains(feature.properties.get(definition.property_key), needle):
            return False
    return True


def filter_features(features: Iterable[Feature], state: SearchState) -> List[Feature]:
    if not state.active:
        return list(features)
    return [f for f in features if matches(f, state)]


def available_categories(features: Iterable[Feature]) -> List[str]:
    return sorted(
        {
            f.properties["category"]
            for f in features
            if isinstance(f.properties.get("category"), str) and f.properties["category"]
        }
    )
