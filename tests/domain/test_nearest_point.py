from btc_tracker.domain.entities.market_data import PricePoint
from btc_tracker.domain.services.nearest_point import locate, target_from_fraction

POINTS = [PricePoint(10, 1.0), PricePoint(20, 2.0), PricePoint(30, 3.0)]


def test_targets_outside_the_series_clamp():
    assert locate(POINTS, 5) == 0
    assert locate(POINTS, 35) == 2


def test_equal_distance_picks_earlier_point():
    assert locate(POINTS, 15) == 0
    assert locate(POINTS, 25) == 1


def test_exact_and_near_matches():
    assert locate(POINTS, 20) == 1
    assert locate(POINTS, 24) == 1
    assert locate(POINTS, 26) == 2


def test_empty_and_tiny_series():
    assert locate([], 10) == -1
    assert locate([PricePoint(10, 1.0)], 999) == 0
    two = [PricePoint(10, 1.0), PricePoint(20, 2.0)]
    assert locate(two, 14) == 0
    assert locate(two, 16) == 1


def test_matches_linear_scan():
    points = [PricePoint(t, 0.0) for t in (0, 3, 7, 8, 20, 41, 42, 100)]
    for target in range(-5, 110):
        best = min(range(len(points)), key=lambda i: (abs(points[i].t - target), i))
        assert locate(points, target) == best


def test_target_from_fraction():
    assert target_from_fraction(POINTS, 0.5) == 20
    assert target_from_fraction(POINTS, -1) == 10
    assert target_from_fraction(POINTS, 2) == 30
    assert target_from_fraction([], 0.5) is None
