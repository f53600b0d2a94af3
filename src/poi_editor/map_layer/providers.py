from typing import Any, Dict, List, Optional, Protocol, Tuple

Bounds = Tuple[Tuple[float, float], Tuple[float, float]]


class MapSurface(Protocol):
    """Rendering surface the synchronizer drives.

    Implementations wrap a real map widget; `InMemorySurface` records calls
    for headless use and tests.
    """

    def add_source(self, source_id: str, data: Dict[str, Any]) -> None: ...

    def set_source_data(self, source_id: str, data: Dict[str, Any]) -> None: ...

    def add_layer(self, layer: Dict[str, Any]) -> None: ...

    def query_rendered_features(
        self, lon: float, lat: float, layers: List[str]
    ) -> List[Dict[str, Any]]: ...

    def add_marker(self, lon: float, lat: float, *, draggable: bool = True) -> str: ...

    def remove_marker(self, marker_id: str) -> None: ...

    def open_popup(self, lon: float, lat: float, html: str) -> str: ...

    def close_popup(self, popup_id: str) -> None: ...

    def fit_bounds(
        self, bounds: Bounds, *, padding: int, max_zoom: Optional[float] = None
    ) -> None: ...

    def set_cursor(self, cursor: str) -> None: ...

    def remove(self) -> None: ...
