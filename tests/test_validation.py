import pytest

from poi_editor.validation import is_feature_collection, validate_feature


def test_valid_point_feature(point_feature):
    result = validate_feature(point_feature())
    assert result.ok
    assert result.errors == []


@pytest.mark.parametrize(
    "mutate, expected",
    [
        (lambda f: f.update(type="Polygon"), ["Not a Feature"]),
        (lambda f: f["geometry"].update(type="LineString"), ["Geometry must be Point"]),
        (lambda f: f.pop("geometry"), ["Geometry must be Point"]),
        (lambda f: f["geometry"].update(coordinates=[1.0]), ["Invalid coordinates format"]),
        (lambda f: f["geometry"].update(coordinates="1,2"), ["Invalid coordinates format"]),
        (lambda f: f["geometry"].update(coordinates=[1.0, 2.0, 3.0]), ["Invalid coordinates format"]),
        (lambda f: f["geometry"].update(coordinates=["1", 2.0]), ["Coordinates must be numbers"]),
        (lambda f: f["geometry"].update(coordinates=[True, 2.0]), ["Coordinates must be numbers"]),
        (lambda f: f["geometry"].update(coordinates=[200, 10]), ["Coordinates out of range"]),
        (lambda f: f["geometry"].update(coordinates=[10, -91]), ["Coordinates out of range"]),
        (lambda f: f["geometry"].update(coordinates=[float("nan"), 0]), ["Coordinates out of range"]),
        (lambda f: f.pop("properties"), ["Missing properties"]),
        (lambda f: f.update(properties=None), ["Missing properties"]),
    ],
)
def test_structural_failures_stop_at_first_error(point_feature, mutate, expected):
    feature = point_feature()
    mutate(feature)
    result = validate_feature(feature)
    assert not result.ok
    assert result.errors == expected


def test_name_and_category_errors_accumulate(point_feature):
    feature = point_feature()
    feature["properties"] = {"name": 5, "category": None}
    result = validate_feature(feature)
    assert not result.ok
    assert result.errors == ["Name must be string", "Category must be string"]


def test_range_edges_are_inclusive(point_feature):
    assert validate_feature(point_feature(coords=(180, 90))).ok
    assert validate_feature(point_feature(coords=(-180, -90))).ok


def test_non_mapping_candidate_is_not_a_feature():
    assert validate_feature("Feature").errors == ["Not a Feature"]
    assert validate_feature(None).errors == ["Not a Feature"]


def test_is_feature_collection():
    assert is_feature_collection({"type": "FeatureCollection", "features": []})
    assert not is_feature_collection({"type": "FeatureCollection"})
    assert not is_feature_collection({"type": "Feature", "features": []})
    assert not is_feature_collection([])


def test_oversized_integer_coordinates_are_out_of_range(point_feature):
    result = validate_feature(point_feature(coords=(10**400, 2)))
    assert result.errors == ["Coordinates out of range"]
    result = validate_feature(point_feature(coords=(float("nan"), 0)))
    assert result.errors == ["Coordinates out of range"]
