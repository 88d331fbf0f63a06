import numpy as np
import pytest

from forward_curve_engine.cashflows import (
    bucket_durations,
    cashflow_table,
    convexity,
    duration,
    partial_duration,
    present_value,
    spread_present_value,
    z_spread,
)
from forward_curve_engine.config import SpreadSolverConfig
from forward_curve_engine.curves import CurveView, PiecewiseFlatCurve


@pytest.fixture(scope="module")
def curve():
    return PiecewiseFlatCurve([1.0, 2.0, 3.0], [0.1, 0.2, 0.3])


@pytest.fixture(scope="module")
def flows():
    return [0.0, 1.0, 2.0, 3.0, 4.0], [0.0, 1.0, 2.0, 3.0, 4.0]


def test_present_value_accumulates_discounted_flows(curve, flows):
    u, c = flows
    d = [0.0] + [curve.discount(x, 0.2) for x in u[1:]]

    total = 0.0
    for i in range(len(u)):
        total += c[i] * d[i]
        pv = present_value(u[: i + 1], c[: i + 1], curve, 0.2)
        assert np.isfinite(pv)
        assert abs(total - pv) < 1e-10

        if i < 4:
            assert abs(total - present_value(u[: i + 1], c[: i + 1], curve)) < 1e-10
        else:
            assert np.isnan(present_value(u[: i + 1], c[: i + 1], curve)), "Undefined flow poisons the total"


def test_present_value_zero_amount_flow_contributes_nothing(curve):
    assert present_value([0.0], [0.0], curve) == 0.0


def test_present_value_is_linear_in_amounts(curve, flows):
    u, c = flows
    base = present_value(u, c, curve, 0.2)
    for scale in (-2.0, 0.5, 3.0):
        scaled = present_value(u, [scale * x for x in c], curve, 0.2)
        assert scaled == pytest.approx(scale * base, rel=1e-14)


def test_present_value_negative_time_is_nan(curve):
    assert np.isnan(present_value([-1.0, 1.0], [1.0, 1.0], curve, 0.2))


def test_present_value_empty_flows(curve):
    assert present_value([], [], curve) == 0.0


def test_mismatched_flow_lengths_raise(curve):
    with pytest.raises(ValueError):
        present_value([1.0, 2.0], [1.0], curve)
    with pytest.raises(ValueError):
        duration([1.0], [1.0, 2.0], curve)


def test_duration(curve, flows):
    u, c = flows
    expected = -sum(u[i] * c[i] * curve.discount(u[i], 0.2) for i in range(len(u)))
    assert duration(u, c, curve, 0.2) == pytest.approx(expected, rel=1e-14)
    assert duration(u, c, curve, 0.2) < 0.0
    assert np.isnan(duration(u, c, curve))


def test_partial_duration_only_counts_time_past_last_knot(curve, flows):
    u, c = flows
    # flow at t=3 sits on the last knot and has zero exposure; flow at t=4 has one year
    expected = -(4.0 - 3.0) * 4.0 * np.exp(-0.8)
    assert partial_duration(u, c, curve, 0.2) == pytest.approx(expected, rel=1e-12)


def test_partial_duration_zero_when_flows_end_inside_curve(curve):
    assert partial_duration([0.5, 1.0, 2.0], [1.0, 1.0, 1.0], curve) == 0.0


def test_partial_duration_nan_without_extrapolation(curve, flows):
    u, c = flows
    assert np.isnan(partial_duration(u, c, curve))


def test_partial_duration_on_empty_curve_is_full_duration(flows):
    u, c = flows
    empty = CurveView(np.array([]), np.array([]))
    assert partial_duration(u, c, empty, 0.05) == pytest.approx(duration(u, c, empty, 0.05), rel=1e-14)


def test_convexity(curve, flows):
    u, c = flows
    expected = sum(u[i] ** 2 * c[i] * curve.discount(u[i], 0.2) for i in range(len(u)))
    assert convexity(u, c, curve, 0.2) == pytest.approx(expected, rel=1e-14)
    assert convexity(u, c, curve, 0.2) > 0.0


def test_bucket_durations_reconcile(curve, flows):
    u, c = flows
    buckets = bucket_durations(u, c, curve, 0.2)
    assert buckets.shape == (4,)
    assert buckets.sum() == pytest.approx(duration(u, c, curve, 0.2), rel=1e-12)
    assert buckets[-1] == pytest.approx(partial_duration(u, c, curve, 0.2), rel=1e-12)
    assert np.all(buckets <= 0.0), "Long-only flows lose value when any segment rises"


def test_bucket_durations_first_segment(curve):
    # a single flow at t=0.5 only sees the first segment, for half a year
    buckets = bucket_durations([0.5], [1.0], curve)
    assert buckets[0] == pytest.approx(-0.5 * np.exp(-0.05), rel=1e-14)
    assert np.all(buckets[1:] == 0.0)


def test_spread_present_value_zero_spread_matches_pv(curve, flows):
    u, c = flows
    assert spread_present_value(u, c, curve, 0.0, 0.2) == pytest.approx(present_value(u, c, curve, 0.2), rel=1e-15)


def test_spread_present_value_decreases_with_spread(curve, flows):
    u, c = flows
    px0 = spread_present_value(u, c, curve, 0.0, 0.2)
    px50 = spread_present_value(u, c, curve, 0.005, 0.2)
    px100 = spread_present_value(u, c, curve, 0.01, 0.2)
    assert px0 > px50 > px100, "Price should decrease as spread increases"


def test_z_spread_recovers_spread(curve, flows):
    u, c = flows
    price = spread_present_value(u, c, curve, 0.0125, 0.2)
    assert z_spread(u, c, curve, price, 0.2) == pytest.approx(0.0125, abs=1e-10)


def test_z_spread_raises_when_pv_undefined(curve, flows):
    u, c = flows
    with pytest.raises(ValueError):
        z_spread(u, c, curve, 5.0)


def test_z_spread_raises_when_not_bracketed(curve, flows):
    u, c = flows
    with pytest.raises(ValueError):
        z_spread(u, c, curve, 1e6, 0.2)
    with pytest.raises(ValueError):
        z_spread(u, c, curve, 5.0, 0.2, SpreadSolverConfig(lo=0.5, hi=1.0))


def test_cashflow_table(curve, flows):
    u, c = flows
    table = cashflow_table(u, c, curve, 0.2)
    assert list(table.columns) == ["time", "amount", "discount", "pv", "duration_contrib"]
    assert len(table) == 5
    assert table["pv"].sum() == pytest.approx(present_value(u, c, curve, 0.2), rel=1e-12)
    assert table["duration_contrib"].sum() == pytest.approx(duration(u, c, curve, 0.2), rel=1e-12)


def test_cashflow_table_marks_undefined_flow(curve, flows):
    u, c = flows
    table = cashflow_table(u, c, curve)
    assert table["pv"].iloc[:4].notna().all()
    assert np.isnan(table["pv"].iloc[4])


def test_bucket_durations_integer_knot_times(flows):
    u, c = flows
    int_curve = PiecewiseFlatCurve([1, 2, 3], [0.1, 0.2, 0.3])
    float_curve = PiecewiseFlatCurve([1.0, 2.0, 3.0], [0.1, 0.2, 0.3])
    assert np.allclose(bucket_durations(u, c, int_curve, 0.2), bucket_durations(u, c, float_curve, 0.2))
