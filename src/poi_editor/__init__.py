"""Package initializer for `poi_editor`."""

from .map_layer import MapSynchronizer
from .models import Feature, ImportResult, MapSyncState, SearchState
from .store import PointStore

__all__ = [
    "Feature",
    "ImportResult",
    "MapSyncState",
    "MapSynchronizer",
    "PointStore",
    "SearchState",
]
