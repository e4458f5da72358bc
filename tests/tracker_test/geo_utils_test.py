import pytest

from runguide.tracker.geo_utils import (
    haversine_distance,
    haversine_distances,
    offset_coordinate,
    path_length,
)


def test_one_degree_of_latitude_is_about_111_km():
    assert haversine_distance(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_195, rel=1e-3)


def test_vectorized_matches_scalar_in_order():
    lats = [35.001, 35.0, 34.99]
    lons = [139.001, 139.01, 139.0]
    dists = haversine_distances(35.0, 139.0, lats, lons)
    expected = [haversine_distance(35.0, 139.0, la, lo) for la, lo in zip(lats, lons)]
    assert list(dists) == pytest.approx(expected)


def test_offset_coordinate_round_trips_distance():
    lat, lon = offset_coordinate(35.0, 139.0, 30.0, 40.0)
    assert haversine_distance(35.0, 139.0, lat, lon) == pytest.approx(50.0, abs=0.05)


def test_path_length_sums_legs():
    a = (35.0, 139.0)
    b = offset_coordinate(*a, 100.0, 0.0)
    c = offset_coordinate(*a, 100.0, 100.0)
    length = path_length([a[0], b[0], c[0]], [a[1], b[1], c[1]])
    assert length == pytest.approx(200.0, abs=0.2)


def test_path_length_of_single_point_is_zero():
    assert path_length([35.0], [139.0]) == 0.0
    assert path_length([], []) == 0.0
