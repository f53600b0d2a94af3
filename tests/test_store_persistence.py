import json
import logging

import pytest

from poi_editor.errors import StorageWriteError
from poi_editor.storage import MemoryStorage, SQLiteKeyValueStorage
from poi_editor.store import DEFAULT_STORAGE_KEY, PointStore


def test_every_mutation_persists_snapshot():
    storage = MemoryStorage()
    store = PointStore(storage)
    feature = store.add([1.0, 2.0], {"name": "A", "category": "x"})
    saved = json.loads(storage.get_item(DEFAULT_STORAGE_KEY))
    assert saved["type"] == "FeatureCollection"
    assert saved["features"][0]["id"] == feature.id

    store.update(feature.id, {"name": "B"})
    saved = json.loads(storage.get_item(DEFAULT_STORAGE_KEY))
    assert saved["features"][0]["properties"]["name"] == "B"

    store.remove(feature.id)
    saved = json.loads(storage.get_item(DEFAULT_STORAGE_KEY))
    assert saved["features"] == []


def test_store_reloads_from_storage(tmp_path):
    path = tmp_path / "state.sqlite"
    storage = SQLiteKeyValueStorage(str(path))
    store = PointStore(storage)
    feature = store.add([-70.0, -33.0], {"name": "Plaza", "category": "square"})
    storage.close()

    reopened = SQLiteKeyValueStorage(str(path))
    try:
        again = PointStore(reopened)
        assert len(again) == 1
        loaded = again.get(feature.id)
        assert loaded.name == "Plaza"
        assert loaded.created_at == feature.created_at
        assert loaded.coordinates == (-70.0, -33.0)
    finally:
        reopened.close()


def test_clear_removes_persisted_key():
    storage = MemoryStorage()
    store = PointStore(storage)
    store.add([0, 0], {"name": "A", "category": "x"})
    store.clear()
    assert len(store) == 0
    assert storage.get_item(DEFAULT_STORAGE_KEY) is None


@pytest.mark.parametrize(
    "stored",
    [
        "not json",
        "[1, 2]",
        "[" * 200000,
        json.dumps({"type": "FeatureCollection", "features": "nope"}),
    ],
)
def test_corrupted_storage_falls_back_to_empty(stored, caplog):
    storage = MemoryStorage({DEFAULT_STORAGE_KEY: stored})
    with caplog.at_level(logging.WARNING, logger="poi.store"):
        store = PointStore(storage)
    assert len(store) == 0
    assert any("starting empty" in r.getMessage() for r in caplog.records)


def test_invalid_stored_features_are_dropped(point_feature):
    stored = json.dumps(
        {
            "type": "FeatureCollection",
            "features": [point_feature("Ok", "a", id="1"), {"type": "Feature"}],
        }
    )
    store = PointStore(MemoryStorage({DEFAULT_STORAGE_KEY: stored}))
    assert [f.id for f in store.features()] == ["1"]


def test_custom_storage_key():
    storage = MemoryStorage()
    store = PointStore(storage, storage_key="other")
    store.add([0, 0], {"name": "A", "category": "x"})
    assert storage.get_item("other") is not None
    assert storage.get_item(DEFAULT_STORAGE_KEY) is None


class _FullStorage(MemoryStorage):
    def set_item(self, key, value):
        raise OSError("quota exceeded")


def test_write_failure_surfaces_but_keeps_memory_and_notifies():
    store = PointStore(_FullStorage())
    seen = []
    store.subscribe(lambda view: seen.append(len(view)))
    with pytest.raises(StorageWriteError):
        store.add([0, 0], {"name": "A", "category": "x"})
    assert len(store) == 1
    assert seen == [1]
