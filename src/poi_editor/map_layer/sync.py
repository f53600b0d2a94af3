"""Mirror the store's filtered view onto a single map surface.

The synchronizer owns exactly one surface between `initialize` and
`destroy`. It only reads features; selection and click coordinates are
transient state consumed by the form collaborator.
"""

from __future__ import annotations

import html
import logging
from typing import Any, Callable, Dict, List, Optional

from shapely.geometry import MultiPoint

from poi_editor.errors import SurfaceNotInitializedError
from poi_editor.identity import resolve_feature_id
from poi_editor.map_layer.config import MapConfig
from poi_editor.map_layer.cycle import UpdateCycle
from poi_editor.map_layer.memory_surface import InMemorySurface
from poi_editor.map_layer.providers import Bounds, MapSurface
from poi_editor.models import Coordinates, Feature, MapSyncState, to_feature_collection

logger = logging.getLogger("poi.map")

SurfaceFactory = Callable[[Any, MapConfig], MapSurface]

_FIT_KEY = "fit-to-features"


def popup_html(feature: Feature) -> str:
    return (
        f"<strong>{html.escape(feature.name)}</strong><br>"
        f"Category: {html.escape(feature.category)}<br>"
        f"Coordinates: {feature.longitude:.4f}, {feature.latitude:.4f}"
    )


def feature_bounds(features: List[Feature]) -> Optional[Bounds]:
    if not features:
        return None
    min_lon, min_lat, max_lon, max_lat = MultiPoint(
        [f.coordinates for f in features]
    ).bounds
    return (min_lon, min_lat), (max_lon, max_lat)


class MapSynchronizer:
    def __init__(
        self,
        surface_factory: Optional[SurfaceFactory] = None,
        *,
        cycle: Optional[UpdateCycle] = None,
        config: Optional[MapConfig] = None,
    ) -> None:
        self.surface_factory = surface_factory or InMemorySurface
        self.cycle = cycle if cycle is not None else UpdateCycle()
        self.config = config or MapConfig()
        self._surface: Optional[MapSurface] = None
        self._state = MapSyncState()
        self._features: List[Feature] = []
        self._draft_marker: Optional[str] = None
        self._popup: Optional[str] = None

    # -- lifecycle ---------------------------------------------------

    @property
    def surface(self) -> Optional[MapSurface]:
        return self._surface

    @property
    def active(self) -> bool:
        return self._surface is not None

    def initialize(self, container: Any = None, config: Optional[MapConfig] = None) -> MapSurface:
        if self._surface is not None:
            return self._surface
        if config is not None:
            self.config = config
        surface = self.surface_factory(container, self.config)
        surface.add_source(self.config.source_id, to_feature_collection(self._features))
        for layer in self.config.layers():
            surface.add_layer(layer)
        self._surface = surface
        logger.debug("map surface initialized")
        return surface

    def destroy(self) -> None:
        if self._surface is None:
            return
        self.clear_selection()
        self.cycle.cancel(_FIT_KEY)
        self._surface.remove()
        self._surface = None
        logger.debug("map surface destroyed")

    # -- state -------------------------------------------------------

    @property
    def selected_feature(self) -> Optional[Feature]:
        return self._state.selected_feature

    @property
    def click_coordinates(self) -> Optional[Coordinates]:
        return self._state.click_coordinates

    @property
    def state(self) -> MapSyncState:
        return MapSyncState(self._state.selected_feature, self._state.click_coordinates)

    # -- store binding -----------------------------------------------

    def bind(self, store) -> Callable[[], None]:
        """Follow `store`'s filtered view; returns the unsubscribe callable."""
        unsubscribe = store.subscribe(self.on_features_changed)
        self.on_features_changed(store.filtered_view())
        return unsubscribe

    def on_features_changed(self, features: List[Feature]) -> None:
        self.sync_features(features)
        if features:
            self.cycle.defer(lambda: self.fit_to_features(self._features), key=_FIT_KEY)

    # -- projection --------------------------------------------------

    def sync_features(self, features: List[Feature]) -> None:
        self._features = list(features)
        selected = self._state.selected_feature
        if selected is not None:
            current = self._find(selected.id)
            if current is None:
                self._close_popup()
                self._state.selected_feature = None
            else:
                self._state.selected_feature = current
        if self._surface is None:
            return
        self._surface.set_source_data(
            self.config.source_id, to_feature_collection(self._features)
        )

    def fit_to_features(self, features: List[Feature]) -> None:
        bounds = feature_bounds(features)
        if bounds is None or self._surface is None:
            return
        self._surface.fit_bounds(
            bounds, padding=self.config.fit_padding, max_zoom=self.config.fit_max_zoom
        )

    def _find(self, feature_id) -> Optional[Feature]:
        for feature in self._features:
            if feature.id == feature_id:
                return feature
        return None

    # -- interaction -------------------------------------------------

    def _require_surface(self) -> MapSurface:
        if self._surface is None:
            raise SurfaceNotInitializedError("Map surface is not initialized")
        return self._surface

    def _hit(self, lon: float, lat: float) -> Optional[Feature]:
        surface = self._require_surface()
        hits = surface.query_rendered_features(lon, lat, [self.config.circle_layer_id])
        for rendered in hits:
            feature = self._find(resolve_feature_id(rendered))
            if feature is not None:
                return feature
        return None

    def handle_click(self, lon: float, lat: float) -> Optional[Feature]:
        """Select the feature under the click or start a draft point there."""
        surface = self._require_surface()
        feature = self._hit(lon, lat)
        if feature is not None:
            self._remove_draft_marker()
            self._close_popup()
            self._state.selected_feature = feature
            self._state.click_coordinates = None
            self._popup = surface.open_popup(lon, lat, popup_html(feature))
            return feature

        self._close_popup()
        self._remove_draft_marker()
        self._state.selected_feature = None
        self._state.click_coordinates = (lon, lat)
        self._draft_marker = surface.add_marker(lon, lat, draggable=True)
        return None

    def handle_hover(self, lon: float, lat: float) -> str:
        cursor = "pointer" if self._hit(lon, lat) is not None else ""
        self._require_surface().set_cursor(cursor)
        return cursor

    def clear_selection(self) -> None:
        self._state.clear()
        self._remove_draft_marker()
        self._close_popup()

    def _remove_draft_marker(self) -> None:
        if self._draft_marker is not None and self._surface is not None:
            self._surface.remove_marker(self._draft_marker)
        self._draft_marker = None

    def _close_popup(self) -> None:
        if self._popup is not None and self._surface is not None:
            self._surface.close_popup(self._popup)
        self._popup = None

    def snapshot(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"active": self.active, **self._state.to_dict()}
        snap = getattr(self._surface, "snapshot", None)
        out["surface"] = snap() if callable(snap) else None
        return out
