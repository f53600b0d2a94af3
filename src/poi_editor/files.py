"""File-level import/export around a `PointStore`."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Union

from poi_editor.errors import ReadFailure
from poi_editor.models import ImportResult

logger = logging.getLogger("poi.io")


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ReadFailure(f"File reading failed: {path}: {e}") from e


async def import_file(store, path: Union[str, Path]) -> ImportResult:
    """Read `path` off the event loop and replace the store with its features.

    Unreadable files raise `ReadFailure`; malformed content raises
    `ParseError` from the store. Neither is folded into the result.
    """
    path = Path(path)
    content = await asyncio.to_thread(_read_text, path)
    result = store.import_collection(content)
    logger.info("imported %s: %d kept, %d discarded", path, result.imported, result.discarded)
    return result


def import_file_sync(store, path: Union[str, Path]) -> ImportResult:
    return asyncio.run(import_file(store, path))


def export_file(store, destination: Union[str, Path], filename: str = "pois-export.geojson") -> Path:
    """Write the pretty-printed collection; a directory gets `filename` appended."""
    destination = Path(destination)
    if destination.is_dir():
        destination = destination / filename
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(store.export_collection(), encoding="utf-8")
    logger.info("exported %d features to %s", len(store), destination)
    return destination
