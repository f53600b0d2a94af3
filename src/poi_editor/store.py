"""In-memory point store with snapshot persistence.

The store is the only owner of feature identity. Every committed mutation
writes the whole FeatureCollection to storage under one key and then pushes
the current filtered view to subscribers.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from poi_editor.errors import (
    InvalidAttributesError,
    InvalidCoordinatesError,
    ParseError,
    StorageWriteError,
)
from poi_editor.identity import assign_identity, generate_feature_id
from poi_editor.models import (
    BACKREF_KEY,
    CREATED_AT_KEY,
    Feature,
    FeatureId,
    ImportResult,
    SearchState,
    to_feature_collection,
)
from poi_editor.search.filters import available_categories, filter_features
from poi_editor.storage import KeyValueStorage, MemoryStorage
from poi_editor.validation import check_coordinates, is_feature_collection, validate_feature

logger = logging.getLogger("poi.store")

DEFAULT_STORAGE_KEY = "poi_editor_state"
RESERVED_KEYS = frozenset({BACKREF_KEY, CREATED_AT_KEY})

Listener = Callable[[List[Feature]], None]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_attributes(attributes: Mapping[str, Any], *, required: bool) -> None:
    for key in ("name", "category"):
        if key not in attributes:
            if required:
                raise InvalidAttributesError(f"Missing {key}")
            continue
        if not isinstance(attributes[key], str):
            raise InvalidAttributesError(f"{key.capitalize()} must be string")


class PointStore:
    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        *,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        self.storage = storage if storage is not None else MemoryStorage()
        self.storage_key = storage_key
        self._features: List[Feature] = []
        self._search = SearchState()
        self._listeners: List[Listener] = []
        self._load()

    # -- persistence -------------------------------------------------

    def _load(self) -> None:
        try:
            stored = self.storage.get_item(self.storage_key)
        except Exception as e:
            logger.warning("could not read %s, starting empty: %s", self.storage_key, e)
            return
        if not stored:
            return
        try:
            parsed = json.loads(stored)
        except (ValueError, TypeError, RecursionError) as e:
            logger.warning("stored %s is not JSON, starting empty: %s", self.storage_key, e)
            return
        if not is_feature_collection(parsed):
            logger.warning("stored %s is not a FeatureCollection, starting empty", self.storage_key)
            return

        loaded: List[Feature] = []
        seen = set()
        for idx, raw in enumerate(parsed["features"]):
            validation = validate_feature(raw)
            if not validation.ok:
                logger.warning(
                    "dropping stored feature %d: %s", idx, ", ".join(validation.errors)
                )
                continue
            feature = Feature.from_dict(assign_identity(raw))
            if feature.id in seen:
                feature.id = generate_feature_id()
            seen.add(feature.id)
            loaded.append(feature)
        self._features = loaded
        logger.debug("loaded %d features from %s", len(loaded), self.storage_key)

    def _snapshot(self) -> Dict[str, Any]:
        return to_feature_collection(self._features)

    def _persist(self) -> None:
        payload = json.dumps(self._snapshot(), separators=(",", ":"))
        try:
            self.storage.set_item(self.storage_key, payload)
        except StorageWriteError:
            raise
        except OSError as e:
            logger.error("failed to persist %s: %s", self.storage_key, e)
            raise StorageWriteError(f"Could not persist {self.storage_key}: {e}") from e

    def _commit(self) -> None:
        try:
            self._persist()
        finally:
            self._notify()

    # -- observers ---------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener` for filtered-view changes; returns an unsubscribe."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        view = self.filtered_view()
        for listener in list(self._listeners):
            listener(view)

    # -- reads -------------------------------------------------------

    def __len__(self) -> int:
        return len(self._features)

    def features(self) -> List[Feature]:
        return list(self._features)

    def _index_of(self, feature_id: FeatureId) -> Optional[int]:
        for idx, feature in enumerate(self._features):
            if feature.id == feature_id:
                return idx
        # Path parameters and form values arrive as strings.
        wanted = str(feature_id)
        for idx, feature in enumerate(self._features):
            if str(feature.id) == wanted:
                return idx
        return None

    def get(self, feature_id: FeatureId) -> Optional[Feature]:
        idx = self._index_of(feature_id)
        return None if idx is None else self._features[idx]

    @property
    def search_state(self) -> SearchState:
        return SearchState(self._search.term, self._search.category)

    def filtered_view(self) -> List[Feature]:
        return filter_features(self._features, self._search)

    def filtered_summary(self) -> Dict[str, Any]:
        view = self.filtered_view()
        return {"features": view, "total": len(self._features), "filtered": len(view)}

    def available_categories(self) -> List[str]:
        return available_categories(self._features)

    # -- mutations ---------------------------------------------------

    def add(self, coordinates: Sequence[float], attributes: Mapping[str, Any]) -> Feature:
        errors = check_coordinates(coordinates)
        if errors:
            raise InvalidCoordinatesError(errors[0])
        _check_attributes(attributes, required=True)

        properties = {k: v for k, v in attributes.items() if k not in RESERVED_KEYS}
        properties[CREATED_AT_KEY] = _now_iso()
        feature = Feature(
            id=generate_feature_id(),
            coordinates=(coordinates[0], coordinates[1]),
            properties=properties,
        )
        self._features.append(feature)
        logger.debug("added feature %s", feature.id)
        self._commit()
        return feature

    def update(self, feature_id: FeatureId, partial: Mapping[str, Any]) -> Optional[Feature]:
        idx = self._index_of(feature_id)
        if idx is None:
            logger.debug("update ignored, no feature %s", feature_id)
            return None
        _check_attributes(partial, required=False)
        feature = self._features[idx]
        feature.properties.update(
            {k: v for k, v in partial.items() if k not in RESERVED_KEYS}
        )
        self._commit()
        return feature

    def remove(self, feature_id: FeatureId) -> bool:
        idx = self._index_of(feature_id)
        if idx is None:
            logger.debug("remove ignored, no feature %s", feature_id)
            return False
        del self._features[idx]
        self._commit()
        return True

    def import_collection(self, raw_text: Union[str, bytes]) -> ImportResult:
        if isinstance(raw_text, bytes):
            try:
                raw_text = raw_text.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ParseError(f"Invalid GeoJSON: not UTF-8 text ({e})") from e
        try:
            parsed = json.loads(raw_text)
        except (ValueError, TypeError, RecursionError) as e:
            raise ParseError(f"Invalid GeoJSON: {e}") from e
        if not is_feature_collection(parsed):
            raise ParseError("Invalid GeoJSON: must be FeatureCollection")

        result = ImportResult()
        valid: List[Feature] = []
        seen = set()
        for idx, raw in enumerate(parsed["features"]):
            validation = validate_feature(raw)
            if not validation.ok:
                result.discarded += 1
                result.errors.append(f"Feature {idx}: {', '.join(validation.errors)}")
                continue
            feature = Feature.from_dict(assign_identity(raw))
            if feature.id in seen:
                fresh = generate_feature_id()
                logger.warning(
                    "feature %d repeats id %s, assigned %s", idx, feature.id, fresh
                )
                feature.id = fresh
            seen.add(feature.id)
            valid.append(feature)
            result.imported += 1

        self._features = valid
        logger.info(
            "import replaced store: imported=%d discarded=%d",
            result.imported,
            result.discarded,
        )
        self._commit()
        return result

    def export_collection(self) -> str:
        return json.dumps(self._snapshot(), indent=2, ensure_ascii=False)

    def clear(self) -> None:
        self._features = []
        try:
            self.storage.remove_item(self.storage_key)
        finally:
            self._notify()

    # -- search ------------------------------------------------------

    def set_filter(self, term: str = "", category: str = "") -> None:
        self._search = SearchState(term or "", category or "")
        self._notify()

    def set_search_term(self, term: str) -> None:
        self.set_filter(term, self._search.category)

    def set_search_category(self, category: str) -> None:
        self.set_filter(self._search.term, category)

    def clear_filter(self) -> None:
        self.set_filter("", "")
