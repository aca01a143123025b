import numpy as np
import pandas as pd
import pytest

from phenoprep.analytics.check import (
    EmptySubsetError,
    InputCheckError,
    UnsortedTimeError,
    check_input,
    estimate_ylu,
    infer_nptperyear,
    remove_spikes,
    select_w_critical,
)


def test_short_gap_is_interpolated():
    y = [1, 1, np.nan, np.nan, 5, 5]
    res = check_input(np.arange(1, 7), y, maxgap=2)

    assert res.ylu == (1.0, 5.0)
    assert res.y == pytest.approx([1, 1, 7 / 3, 11 / 3, 5, 5])
    assert res.w.tolist() == pytest.approx([1, 1, 0.2, 0.2, 1, 1])
    assert np.isnan(res.y0[2:4]).all()


def test_w_critical_good_tier():
    w = np.array([1, 1, 1, 1, 0, 0], dtype=float)
    assert select_w_critical(w, perc_wc=0.4, wmin=0.2) == 1


def test_w_critical_marginal_and_floor_tiers():
    marginal = np.array([1, 0.5, 0.5, 0.5, 0.2])
    assert select_w_critical(marginal, perc_wc=0.4, wmin=0.2) == 0.5

    bad = np.full(5, 0.2)
    assert select_w_critical(bad, perc_wc=0.4, wmin=0.2) == 0.2


def test_w_critical_tier_boundaries():
    # good tier accepts an exact share, marginal tier needs to exceed it
    assert select_w_critical(np.array([1, 1, 0.2, 0.2, 0.2]), 0.4, 0.2) == 1
    assert select_w_critical(np.array([0.5, 0.5, 0.2, 0.2, 0.2]), 0.4, 0.2) == 0.2


def test_w_critical_ignores_missing_weights():
    w = np.array([1, np.nan, np.nan, np.nan, np.nan])
    assert select_w_critical(w, 0.4, 0.2) == 0.2


def test_w_critical_switches_to_good_when_share_rises():
    w = np.array([1] + [0.5] * 9, dtype=float)
    assert select_w_critical(w, 0.4, 0.2) == 0.5
    w[:5] = 1
    assert select_w_critical(w, 0.4, 0.2) == 1


def test_constant_series_has_no_spikes():
    y = np.full(5, 5.0)
    w = np.full(5, 0.2)
    out = remove_spikes(y, w, w_critical=1)
    assert out.tolist() == [5.0] * 5

    res = check_input(np.arange(5), y, w=w)
    assert res.y.tolist() == [5.0] * 5


def test_spike_removed_only_when_low_confidence():
    y = np.array([0.3] * 5 + [0.9] + [0.3] * 4)
    w = np.ones(10)
    w[5] = 0.5

    out = remove_spikes(y, w, w_critical=1)
    assert np.isnan(out[5])
    assert not np.isnan(np.delete(out, 5)).any()

    trusted = remove_spikes(y, np.ones(10), w_critical=1)
    assert trusted[5] == 0.9


def test_gap_limit_boundary():
    t = np.arange(6)
    y = [1, np.nan, np.nan, np.nan, 5, 5]

    filled = check_input(t, y, maxgap=3, alpha=0)
    assert filled.y == pytest.approx([1, 2, 3, 4, 5, 5])

    too_long = check_input(t, y, maxgap=2, alpha=0)
    assert too_long.y.tolist() == [1, 1, 1, 1, 5, 5]


def test_boundary_gaps_take_missval():
    res = check_input([1, 2, 3, 4], [np.nan, np.nan, 3, 4], alpha=0)
    assert res.ylu == (3.0, 4.0)
    assert res.y.tolist() == [3, 3, 3, 4]
    assert res.w.tolist() == pytest.approx([0.2, 0.2, 1, 1])


def test_demotion_uses_max_good_and_scrubbing_uses_ylu_upper():
    y = [0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0, 0.995]
    w = [1] * 10 + [0.5]
    res = check_input(np.arange(11), y, w=w, maxgap=2)

    assert res.w_critical == 1
    assert res.ylu[0] == pytest.approx(0.109)
    assert res.ylu[1] == pytest.approx(0.991)
    # trusted value above ylu[1] but not above max(y_good) keeps value and weight
    assert res.y[9] == 1.0
    assert res.w[9] == 1.0
    # low-confidence value above ylu[1] is scrubbed without weight demotion
    assert res.y[10] == pytest.approx(res.ylu[0])
    assert res.w[10] == 0.5
    # low value replaced by missval and demoted
    assert res.y[0] == pytest.approx(0.109)
    assert res.w[0] == 0.2


def test_user_floor_and_missval():
    t = np.arange(6)
    y = [0.01, 0.3, 0.5, 0.7, 0.5, 0.3]

    res = check_input(t, y, ymin=0.08, alpha=0)
    assert res.ylu == (0.08, 0.7)
    assert res.y[0] == pytest.approx(0.08)
    assert res.w[0] == 0.2

    res = check_input(t, y, ymin=0.08, missval=0.05, alpha=0)
    assert res.y[0] == pytest.approx(0.05)

    res = check_input(t, y, ymin=np.nan, alpha=0)
    assert res.ylu == (0.01, 0.7)


def test_negative_values_floor_range_at_zero():
    res = check_input([1, 2, 3, 4], [-0.1, 0.3, 0.5, 0.4], alpha=0)
    assert res.ylu == (0.0, 0.5)
    assert res.y[0] == 0.0
    assert res.w[0] == 0.2


def test_estimate_ylu_keeps_order_when_floor_exceeds_upper():
    assert estimate_ylu(np.array([0.1, 0.2]), alpha=0, ymin=0.5) == (0.5, 0.5)
    with pytest.raises(EmptySubsetError):
        estimate_ylu(np.array([]), alpha=0.02)


def test_full_coverage_and_weight_floor():
    rng = np.random.default_rng(42)
    n = 92
    y = 0.2 + 0.5 * np.sin(np.linspace(0, 4 * np.pi, n)) ** 2 + rng.normal(0, 0.05, n)
    y[rng.choice(n, 25, replace=False)] = np.nan
    y[10:20] = np.nan
    w = rng.choice([1.0, 1.0, 0.5, 0.2, 0.0], n)
    w[3] = np.nan

    res = check_input(np.arange(0, n * 8, 8), y, w=w)

    assert not np.isnan(res.y).any()
    assert not np.isnan(res.w).any()
    assert (res.w >= 0.2).all() and (res.w <= 1).all()
    assert res.nptperyear == 46
    assert 0 <= res.ylu[0] <= res.ylu[1]


def test_nptperyear_inferred_from_dates():
    dates = pd.date_range("2020-01-01", periods=10, freq="16D")
    y = [0.2, 0.3, np.nan, np.nan, np.nan, 0.6, 0.5, np.nan, np.nan, 0.3]
    res = check_input(dates, y, alpha=0)

    assert res.nptperyear == 23
    # default maxgap is ceil(23 / 12 * 1.5) == 3
    assert res.y[2:5] == pytest.approx([0.375, 0.45, 0.525])
    assert res.y[7:9] == pytest.approx([0.4333333, 0.3666667])


def test_infer_nptperyear():
    assert infer_nptperyear([1, 17, 33]) == 23
    assert infer_nptperyear(pd.date_range("2020-01-01", periods=3, freq="8D")) == 46
    assert infer_nptperyear([1]) is None


def test_tn_is_filled_without_missval():
    tn = [10, np.nan, 12, np.nan, np.nan, np.nan, np.nan, 20]
    y = [0.3] * 8
    res = check_input(np.arange(8), y, tn=tn, maxgap=2)

    assert res.tn[:3] == pytest.approx([10, 11, 12])
    assert np.isnan(res.tn[3:7]).all()
    assert res.tn[7] == 20


def test_passthrough_fields_and_inputs_untouched():
    y = [0.3, None, 0.5, 0.4]
    w = np.array([1.0, 1.0, 1.0, 0.0])
    flags = ["good", "cloud", "good", "snow"]
    res = check_input([1, 2, 3, 4], y, w=w, qc_flag=flags, south=True, nptperyear=23)

    assert res.qc_flag is flags
    assert res.south is True
    assert res.nptperyear == 23
    assert y == [0.3, None, 0.5, 0.4]
    assert w.tolist() == [1.0, 1.0, 1.0, 0.0]
    assert res.w[3] == 0.2
    assert list(res.to_dataframe().columns) == ["t", "y0", "y", "w", "qc_flag"]


def test_all_missing_series():
    res = check_input([1, 2, 3, 4], [np.nan] * 4)
    assert res.ylu == (0.0, 0.0)
    assert res.y.tolist() == [0.0] * 4
    assert res.w.tolist() == [0.2] * 4

    floored = check_input([1, 2, 3, 4], [None] * 4, ymin=0.1)
    assert floored.ylu == (0.1, 0.1)
    assert floored.y.tolist() == [0.1] * 4


def test_single_and_empty_series():
    single = check_input([1], [0.4])
    assert single.y.tolist() == [0.4]
    assert single.w.tolist() == [1.0]
    assert single.nptperyear == 23

    empty = check_input([], [])
    assert len(empty) == 0
    assert empty.ylu == (0.0, 0.0)


def test_unsorted_time_raises():
    with pytest.raises(UnsortedTimeError):
        check_input([1, 3, 2], [0.1, 0.2, 0.3])
    with pytest.raises(UnsortedTimeError):
        check_input([1, 2, 2], [0.1, 0.2, 0.3])


def test_length_mismatch_raises():
    with pytest.raises(InputCheckError):
        check_input([1, 2, 3], [0.1, 0.2])
    with pytest.raises(InputCheckError):
        check_input([1, 2, 3], [0.1, 0.2, 0.3], w=[1, 1])


def test_empty_qualified_subset_raises():
    with pytest.raises(EmptySubsetError):
        check_input([1, 2, 3], [0.3, 0.4, 0.5], w=[0, 0, 0])
    # the error is a plain ValueError for callers
    with pytest.raises(ValueError):
        check_input([1, 2, 3], [np.nan, 0.4, 0.5], w=[1, 0, 0], perc_wc=0.3)


@pytest.mark.parametrize("marker", [None, np.nan, np.float32("nan"), pd.NA])
def test_missing_markers_mean_not_supplied(marker):
    t = [1, 2, 3, 4]
    y = [np.nan, 0.3, 0.4, 0.5]

    res = check_input(t, y, ymin=marker, missval=marker, alpha=0)

    assert res.ylu == (0.3, 0.5)
    assert not np.isnan(res.y).any()
    assert res.y[0] == pytest.approx(0.3)
