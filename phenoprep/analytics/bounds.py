"""Helpers applying an estimated value range ``ylu`` to fitted curves."""

from typing import Sequence, Tuple

import numpy as np

from .gapfill import as_float_array


def check_ylu(yfit: Sequence, ylu: Tuple[float, float]) -> np.ndarray:
    """
    Constrain curve fitting values to the range of ``ylu``.

    Only the trough is constrained, for a stable background value: values
    below ``ylu[0]`` are raised to it, values above ``ylu[1]`` are kept so
    peak amplitude is not suppressed.
    """
    out = as_float_array(yfit)
    out[out < ylu[0]] = ylu[0]
    return out


def normalize(x: Sequence, ylu: Tuple[float, float]) -> np.ndarray:
    """Scale *x* so that ``ylu`` maps onto ``[0, 1]``."""
    lower, upper = ylu
    return (as_float_array(x) - lower) / (upper - lower)


def backnormalize(x: Sequence, ylu: Tuple[float, float]) -> np.ndarray:
    """Inverse of :func:`normalize`."""
    lower, upper = ylu
    return as_float_array(x) * (upper - lower) + lower
