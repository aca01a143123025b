# phenoprep/analytics/check.py
"""
Quality check of a vegetation index series before curve fitting.

The check runs four stages over copies of the caller's vectors:

1. pick the weight-critical threshold ``w_critical`` and estimate the value
   range ``ylu`` from quantiles of the qualified observations;
2. demote weights and replace values that fall outside that range;
3. remove spikes among low-confidence observations;
4. interpolate short gaps and put ``missval`` everywhere else.
"""

import math
from typing import Sequence, Tuple

import numpy as np
import pandas as pd

from phenoprep.core.config import ConfigManager
from phenoprep.core.logger import Logger
from .gapfill import as_float_array, movmean, na_approx
from .results import CheckedSeries

log = Logger.get_logger(__name__)


class InputCheckError(ValueError):
    """Raised when the input series cannot be checked."""


class EmptySubsetError(InputCheckError):
    """Raised when no observation qualifies for range estimation."""


class UnsortedTimeError(InputCheckError):
    """Raised when timestamps are not strictly increasing."""


def _is_missing(value) -> bool:
    return value is None or bool(pd.isna(value))


def _time_in_days(t: np.ndarray) -> np.ndarray:
    """Return *t* as float days, accepting numbers or anything date-like."""
    idx = pd.Index(t)
    if pd.api.types.is_numeric_dtype(idx):
        return idx.to_numpy(dtype=float)
    dates = pd.to_datetime(idx)
    return ((dates - dates[0]) / pd.Timedelta(days=1)).to_numpy(dtype=float)


def infer_nptperyear(t: Sequence) -> int | None:
    """
    Number of observations per year implied by the first two timestamps.

    Numeric timestamps are read as days. Returns ``None`` for fewer than two
    timestamps.
    """
    if len(t) < 2:
        return None
    days = _time_in_days(np.asarray(t))
    return int(math.ceil(365 / (days[1] - days[0])))


def select_w_critical(w: np.ndarray, perc_wc: float, wmin: float) -> float:
    """
    Strictest weight tier that still keeps ``perc_wc`` of the samples.

    Good observations (``w == 1``) win when they make up at least
    ``perc_wc``; otherwise marginal ones (``w >= 0.5``) when they exceed it;
    otherwise ``wmin``. Missing weights never count.
    """
    n = len(w)
    tiers = (
        (1.0, lambda: np.sum(w == 1) >= n * perc_wc),
        # boreal regions rarely reach the good tier, marginal data still helps
        (0.5, lambda: np.sum(w >= 0.5) > n * perc_wc),
    )
    for w_critical, qualifies in tiers:
        if qualifies():
            return w_critical
    return wmin


def qualified_values(y: np.ndarray, w: np.ndarray, w_critical: float) -> np.ndarray:
    """Observed values whose weight reaches ``w_critical``."""
    good = y[w >= w_critical]
    return good[~np.isnan(good)]


def estimate_ylu(
    y_good: np.ndarray, alpha: float, ymin: float | None = None
) -> Tuple[float, float]:
    """
    Robust value range from the ``alpha / 2`` and ``1 - alpha / 2`` quantiles.

    The lower bound is floored at zero, then at ``ymin`` when given. The upper
    bound is never below the lower one.
    """
    if len(y_good) == 0:
        raise EmptySubsetError("No observations with w >= w_critical to estimate ylu")
    lower = max(float(np.quantile(y_good, alpha / 2)), 0.0)
    upper = float(np.quantile(y_good, 1 - alpha / 2))
    if not _is_missing(ymin):
        lower = max(lower, float(ymin))
    return lower, max(upper, lower)


def reclassify(
    y: np.ndarray,
    w: np.ndarray,
    ylu: Tuple[float, float],
    y_good_max: float,
    w_critical: float,
    wmin: float,
    missval: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Demote and replace values outside the estimated range.

    Weights drop to ``wmin`` below ``ylu[0]`` or above the largest qualified
    value. Values below ``ylu[0]`` always become ``missval``; values above
    ``ylu[1]`` only when their weight is under ``w_critical``.
    """
    y = y.copy()
    w = w.copy()
    demoted = (y < ylu[0]) | (y > y_good_max)
    w[demoted] = wmin

    low = y < ylu[0]
    y[low] = missval
    high = (y > ylu[1]) & (w < w_critical)
    y[high] = missval
    log.debug(
        "Demoted %d weights, replaced %d low and %d high values",
        int(demoted.sum()),
        int(low.sum()),
        int(high.sum()),
    )
    return y, w


def remove_spikes(
    y: np.ndarray, w: np.ndarray, w_critical: float, halfwin: int = 2
) -> np.ndarray:
    """
    Set to NaN low-confidence values deviating from the local mean by more
    than two standard deviations.
    """
    y = y.copy()
    std = pd.Series(y).std()
    if np.isnan(std):
        return y
    ymean = movmean(y, halfwin=halfwin)
    spikes = (np.abs(y - ymean) > 2 * std) & (w < w_critical)
    y[spikes] = np.nan
    if spikes.any():
        log.debug("Removed %d spikes", int(spikes.sum()))
    return y


def fill_gaps(
    y: np.ndarray, w: np.ndarray, wmin: float, maxgap: int, missval: float
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Floor weights at ``wmin`` and interpolate gaps up to ``maxgap`` samples.

    Missing samples get ``wmin``. Values still missing after interpolation
    become ``missval``.
    """
    w = w.copy()
    w[np.isnan(w) | np.isnan(y)] = wmin
    w[w <= wmin] = wmin

    y = na_approx(y, maxgap=maxgap)
    unfilled = np.isnan(y)
    if unfilled.any():
        log.debug("Set %d unfillable values to missval %s", int(unfilled.sum()), missval)
    y[unfilled] = missval
    return y, w


def check_input(
    t: Sequence,
    y: Sequence,
    w: Sequence | None = None,
    qc_flag: Sequence | None = None,
    nptperyear: int | None = None,
    south: bool = False,
    tn: Sequence | None = None,
    perc_wc: float = ConfigManager.DEFAULT_PERC_WC,
    wmin: float = ConfigManager.DEFAULT_WMIN,
    ymin: float | None = None,
    missval: float | None = None,
    maxgap: int | None = None,
    alpha: float = ConfigManager.DEFAULT_ALPHA,
) -> CheckedSeries:
    """
    Check a vegetation index series, remove spikes and fill its gaps.

    Parameters
    ----------
    t:
        Strictly increasing timestamps, numeric days or date-like.
    y:
        Vegetation index values; ``None``/NaN marks a missing observation.
    w:
        Weights in ``[0, 1]``; all ones when omitted.
    qc_flag:
        Quality labels, passed through unchanged.
    nptperyear:
        Observations per year; inferred from ``t[1] - t[0]`` when omitted.
    south:
        Southern hemisphere flag, passed through.
    tn:
        Optional covariate (e.g. night temperature), gap-filled with the same
        ``maxgap`` but without the ``missval`` fallback.
    perc_wc:
        Share of samples a weight tier needs to be used for range estimation.
    wmin:
        Floor of every output weight.
    ymin:
        Lower limit for ``ylu[0]``, useful for bare or snow-covered land.
    missval:
        Replacement for rejected and unfillable values; ``ylu[0]`` by default.
    maxgap:
        Longest run of missing values filled by interpolation; defaults to
        ``ceil(nptperyear / 12 * 1.5)``.
    alpha:
        Two-sided quantile probability used for ``ylu``.

    Returns
    -------
    CheckedSeries
        Record with a fully populated ``y`` and weights in ``[wmin, 1]``.

    Raises
    ------
    UnsortedTimeError
        If ``t`` is not strictly increasing.
    EmptySubsetError
        If ``y`` has observations but none has ``w >= w_critical``.
    InputCheckError
        If the vectors differ in length.
    """
    t_arr = np.asarray(t).copy()
    y0 = as_float_array(y)
    n = len(y0)
    w_arr = np.ones(n) if w is None else as_float_array(w)
    tn_arr = None if tn is None or len(tn) == 0 else as_float_array(tn)

    for name, values in (("t", t_arr), ("w", w_arr), ("tn", tn_arr), ("qc_flag", qc_flag)):
        if values is not None and len(values) != n:
            raise InputCheckError(f"Length of {name} ({len(values)}) differs from y ({n})")
    if n > 1 and not np.all(np.diff(_time_in_days(t_arr)) > 0):
        raise UnsortedTimeError("t must be strictly increasing")

    if nptperyear is None:
        nptperyear = infer_nptperyear(t_arr) or ConfigManager.DEFAULT_NPTPERYEAR
    if maxgap is None:
        maxgap = int(math.ceil(nptperyear / 12 * 1.5))

    w_critical = select_w_critical(w_arr, perc_wc, wmin)
    y_good = qualified_values(y0, w_arr, w_critical)
    if len(y_good) == 0 and np.isnan(y0).all():
        floor = 0.0 if _is_missing(ymin) else max(float(ymin), 0.0)
        ylu = (floor, floor)
        log.debug("No observed values, ylu set to %s", ylu)
    else:
        ylu = estimate_ylu(y_good, alpha, ymin)
    if _is_missing(missval):
        missval = ylu[0]
    log.debug("w_critical=%s, ylu=%s, missval=%s", w_critical, ylu, missval)

    y_arr, w_arr = y0.copy(), w_arr.copy()
    if len(y_good):
        y_arr, w_arr = reclassify(
            y_arr, w_arr, ylu, float(y_good.max()), w_critical, wmin, missval
        )
    y_arr = remove_spikes(y_arr, w_arr, w_critical)
    y_arr, w_arr = fill_gaps(y_arr, w_arr, wmin, maxgap, missval)

    if tn_arr is not None:
        tn_arr = na_approx(tn_arr, maxgap=maxgap)

    return CheckedSeries(
        t=t_arr,
        y0=y0,
        y=y_arr,
        w=w_arr,
        ylu=ylu,
        nptperyear=int(nptperyear),
        south=south,
        qc_flag=qc_flag,
        tn=tn_arr,
        w_critical=w_critical,
    )
