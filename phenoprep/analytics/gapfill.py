# phenoprep/analytics/gapfill.py
"""
Bounded-gap interpolation and moving-window helpers working on 1-D float
arrays where NaN marks a missing observation.
"""

from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd


def as_float_array(values: Sequence | None) -> np.ndarray:
    """Return a float copy of *values* with ``None`` read as NaN."""
    if values is None:
        return np.array([], dtype=float)
    series = pd.Series(list(values), dtype="Float64")
    return series.to_numpy(dtype=float, na_value=np.nan)


def find_gaps(values: np.ndarray) -> List[Tuple[int, int]]:
    """
    Locate runs of consecutive NaN.

    Returns a list of ``(start, end)`` pairs, ``end`` exclusive.
    """
    is_missing = np.isnan(values)
    gaps = []
    in_gap = False
    gap_start = 0
    for i, missing in enumerate(is_missing):
        if missing and not in_gap:
            in_gap = True
            gap_start = i
        elif not missing and in_gap:
            in_gap = False
            gaps.append((gap_start, i))
    if in_gap:
        gaps.append((gap_start, len(values)))
    return gaps


def na_approx(values: Sequence, maxgap: int | None = None) -> np.ndarray:
    """
    Linearly interpolate NaN runs over the sample index.

    A run is filled only when it has valid neighbours on both sides and is at
    most ``maxgap`` samples long (``None`` means no limit). Leading and
    trailing runs stay NaN.
    """
    y = as_float_array(values)
    valid_idx = np.flatnonzero(~np.isnan(y))
    if len(valid_idx) < 2:
        return y

    all_idx = np.arange(len(y))
    interpolated = np.interp(all_idx, valid_idx, y[valid_idx])
    for start, end in find_gaps(y):
        if start == 0 or end == len(y):
            continue
        if maxgap is not None and end - start > maxgap:
            continue
        y[start:end] = interpolated[start:end]
    return y


def movmean(values: Sequence, halfwin: int = 1) -> np.ndarray:
    """
    Centered moving average over ``[i - halfwin, i + halfwin]``.

    The window is truncated at the series ends and NaN are ignored; a window
    without any valid value yields NaN.
    """
    y = pd.Series(as_float_array(values))
    window = 2 * halfwin + 1
    return y.rolling(window, center=True, min_periods=1).mean().to_numpy()
