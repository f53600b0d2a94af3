from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional

from poi_editor.errors import FormValidationError
from poi_editor.models import Coordinates, Feature

FormMode = Literal["add", "edit"]

NAME_MIN_LENGTH = 2


@dataclass(frozen=True)
class PointFormData:
    name: str
    category: str

    def errors(self) -> List[str]:
        out: List[str] = []
        name = (self.name or "").strip()
        if not name:
            out.append("name: This field is required")
        elif len(name) < NAME_MIN_LENGTH:
            out.append(f"name: Minimum {NAME_MIN_LENGTH} characters required")
        if not (self.category or "").strip():
            out.append("category: This field is required")
        return out


@dataclass(frozen=True)
class PointFormRequest:
    mode: FormMode
    coordinates: Optional[Coordinates] = None
    feature: Optional[Feature] = None

    def initial(self) -> PointFormData:
        if self.mode == "edit" and self.feature is not None:
            return PointFormData(self.feature.name, self.feature.category)
        return PointFormData("", "")


def request_from_selection(sync) -> Optional[PointFormRequest]:
    """Form to open for the synchronizer's current selection, if any."""
    if sync.selected_feature is not None:
        return PointFormRequest(mode="edit", feature=sync.selected_feature)
    if sync.click_coordinates is not None:
        return PointFormRequest(mode="add", coordinates=sync.click_coordinates)
    return None


def apply_submission(store, request: PointFormRequest, data: PointFormData) -> Optional[Feature]:
    errors = data.errors()
    if errors:
        raise FormValidationError(errors)
    attributes = {"name": data.name.strip(), "category": data.category.strip()}
    if request.mode == "add":
        if request.coordinates is None:
            raise ValueError("add requires coordinates")
        return store.add(request.coordinates, attributes)
    if request.feature is None:
        raise ValueError("edit requires a feature")
    return store.update(request.feature.id, attributes)
