from poi_editor.storage import MemoryStorage, SQLiteKeyValueStorage


def test_sqlite_get_set_remove(tmp_path):
    storage = SQLiteKeyValueStorage(str(tmp_path / "nested" / "kv.sqlite"))
    try:
        assert storage.get_item("k") is None
        storage.set_item("k", "one")
        storage.set_item("k", "two")
        assert storage.get_item("k") == "two"
        count = storage.conn.execute("SELECT COUNT(*) FROM kv_store").fetchone()[0]
        assert count == 1
        storage.remove_item("k")
        storage.remove_item("k")
        assert storage.get_item("k") is None
    finally:
        storage.close()
    storage.close()


def test_memory_storage_copies_initial():
    initial = {"k": "v"}
    storage = MemoryStorage(initial)
    storage.set_item("k", "changed")
    assert initial == {"k": "v"}
    storage.remove_item("missing")
