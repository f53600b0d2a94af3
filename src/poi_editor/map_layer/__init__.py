from .config import MapConfig
from .cycle import UpdateCycle
from .memory_surface import InMemorySurface
from .providers import MapSurface
from .sync import MapSynchronizer

__all__ = ["InMemorySurface", "MapConfig", "MapSurface", "MapSynchronizer", "UpdateCycle"]
