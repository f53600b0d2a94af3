import re

from poi_editor.identity import assign_identity, generate_feature_id, resolve_feature_id
from poi_editor.models import BACKREF_KEY


def test_generated_id_format():
    assert re.fullmatch(r"feature_\d+_[0-9a-z]{9}", generate_feature_id())


def test_generated_ids_unique_within_batch():
    ids = {generate_feature_id() for _ in range(2000)}
    assert len(ids) == 2000


def test_existing_id_is_reused_and_mirrored(point_feature):
    out = assign_identity(point_feature(id="poi-7"))
    assert out["id"] == "poi-7"
    assert out["properties"][BACKREF_KEY] == "poi-7"


def test_numeric_id_is_kept(point_feature):
    out = assign_identity(point_feature(id=42))
    assert out["id"] == 42


def test_missing_or_blank_id_is_synthesized(point_feature):
    for raw in (point_feature(), point_feature(id=""), point_feature(id=None)):
        out = assign_identity(raw)
        assert out["id"].startswith("feature_")
        assert out["properties"][BACKREF_KEY] == out["id"]


def test_assign_does_not_mutate_input(point_feature):
    raw = point_feature()
    assign_identity(raw)
    assert "id" not in raw
    assert BACKREF_KEY not in raw["properties"]


def test_resolve_from_rendered_clone():
    clone = {"properties": {"name": "x", BACKREF_KEY: "feature_1_abc"}}
    assert resolve_feature_id(clone) == "feature_1_abc"
    assert resolve_feature_id({"id": 3, "properties": {}}) == 3
    assert resolve_feature_id({"properties": {}}) is None


def test_backref_is_reused_when_top_level_id_was_stripped(point_feature):
    clone = point_feature()
    clone["properties"][BACKREF_KEY] = "feature_1_abc"
    out = assign_identity(clone)
    assert out["id"] == "feature_1_abc"
    assert out["properties"][BACKREF_KEY] == "feature_1_abc"
