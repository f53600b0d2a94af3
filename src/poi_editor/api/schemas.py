from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


class FeatureCreate(BaseModel):
    coordinates: Tuple[float, float]
    name: str
    category: str
    properties: Dict[str, Any] = Field(default_factory=dict)


class FeatureUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)

    def partial(self) -> Dict[str, Any]:
        out = dict(self.properties)
        if self.name is not None:
            out["name"] = self.name
        if self.category is not None:
            out["category"] = self.category
        return out


class SearchRequest(BaseModel):
    term: str = ""
    category: str = ""


class MapPoint(BaseModel):
    lon: float
    lat: float


class FormSubmission(BaseModel):
    name: str = ""
    category: str = ""


class ImportSummary(BaseModel):
    imported: int = 0
    discarded: int = 0
    errors: List[str] = Field(default_factory=list)
