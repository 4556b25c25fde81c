import pytest

from models import CurveDefinition
from curves import (
    CurveCache, NullCurveCache, calculate_curve_value, evaluate, get_stat_saturation,
    curve_series, marginal_gains,
)


LINEAR = CurveDefinition(
    id=0,
    stage_max_val=[1, 20, 60, 80, 99],
    stage_max_grow_val=[0, 20, 70, 90, 100],
    adj_pt_max_grow_val=[1, 1, 1, 1, 1],
)

SHAPED = CurveDefinition(
    id=1,
    stage_max_val=[0, 10, 20, 30, 40],
    stage_max_grow_val=[0, 100, 100, 100, 100],
    adj_pt_max_grow_val=[-2, 1, 1, 1, 1],
)


def test_breakpoints_hit_growth_values():
    assert calculate_curve_value(LINEAR, 20) == pytest.approx(20)
    assert calculate_curve_value(LINEAR, 60) == pytest.approx(70)
    assert calculate_curve_value(LINEAR, 80) == pytest.approx(90)


def test_interpolates_within_segment():
    assert calculate_curve_value(LINEAR, 40) == pytest.approx(45)
    assert calculate_curve_value(LINEAR, 30) == pytest.approx(32.5)


def test_clamps_outside_range():
    assert calculate_curve_value(LINEAR, 0) == 0
    assert calculate_curve_value(LINEAR, 1) == 0
    assert calculate_curve_value(LINEAR, 99) == 100
    assert calculate_curve_value(LINEAR, 148) == 100


def test_negative_exponent_shapes_segment():
    # 1 - (1 - 0.5) ** 2
    assert calculate_curve_value(SHAPED, 5) == pytest.approx(75)


def test_positive_exponent_shapes_segment():
    curve = CurveDefinition(
        id=2,
        stage_max_val=[0, 10, 20, 30, 40],
        stage_max_grow_val=[0, 100, 100, 100, 100],
        adj_pt_max_grow_val=[2, 1, 1, 1, 1],
    )
    assert calculate_curve_value(curve, 5) == pytest.approx(25)


def test_evaluate_returns_fraction_and_handles_missing_curve():
    assert evaluate(LINEAR, 40) == pytest.approx(0.45)
    assert evaluate(None, 40) == 0.0


def test_saturation_lookup_with_dangling_curve_id():
    assert get_stat_saturation({0: LINEAR}, 99, 40) == 0.0


def test_cache_does_not_change_results():
    curves = {0: LINEAR}
    cache = CurveCache()
    null_cache = NullCurveCache()
    for level in range(1, 100):
        plain = get_stat_saturation(curves, 0, level)
        assert get_stat_saturation(curves, 0, level, cache) == plain
        assert get_stat_saturation(curves, 0, level, cache) == plain
        assert get_stat_saturation(curves, 0, level, null_cache) == plain
    assert len(cache) == 99
    assert len(null_cache) == 0

    cache.clear()
    assert len(cache) == 0


def test_curve_series_and_marginal_gains():
    series = curve_series(LINEAR)
    assert series.shape == (99,)
    assert series[0] == 0.0
    assert series[-1] == pytest.approx(1.0)

    gains = marginal_gains(LINEAR, range(19, 23))
    assert gains[0] == 0.0
    # Slope changes from 20/19 to 50/40 points per level at 20
    assert gains[1] == pytest.approx(20 / 19 / 100)
    assert gains[2] == pytest.approx(1.25 / 100)
