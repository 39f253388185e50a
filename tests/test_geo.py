import pytest

from pathshare.geo import EARTH_RADIUS_M, distance_meters, path_length_meters


def test_distance_to_same_point_is_zero():
    assert distance_meters((28.6139, 77.2090), (28.6139, 77.2090)) == 0


def test_distance_is_symmetric():
    a = (28.6139, 77.2090)
    b = (22.5726, 88.3639)
    assert distance_meters(a, b) == distance_meters(b, a)


def test_delhi_to_kolkata_roughly_1300_km():
    d = distance_meters((28.6139, 77.2090), (22.5726, 88.3639))
    assert d == pytest.approx(1_305_000, rel=0.01)


def test_one_degree_latitude_matches_radius():
    d = distance_meters((0.0, 0.0), (1.0, 0.0))
    assert d == pytest.approx(EARTH_RADIUS_M * 3.141592653589793 / 180, rel=1e-9)


def test_antipodal_points_do_not_raise():
    d = distance_meters((0.0, 0.0), (0.0, 180.0))
    assert d == pytest.approx(EARTH_RADIUS_M * 3.141592653589793, rel=1e-9)


def test_path_length_sums_segments():
    a, b, c = (0.0, 0.0), (0.0, 1.0), (0.0, 2.0)
    assert path_length_meters([a, b, c]) == pytest.approx(
        distance_meters(a, b) + distance_meters(b, c)
    )
    assert path_length_meters([a]) == 0.0
    assert path_length_meters([]) == 0.0
