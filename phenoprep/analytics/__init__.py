from .bounds import backnormalize, check_ylu, normalize
from .check import (
    EmptySubsetError,
    InputCheckError,
    UnsortedTimeError,
    check_input,
)
from .gapfill import movmean, na_approx
from .options import CheckOptions
from .results import CheckedSeries, CheckResult
from .timeseries import TimeSeries

__all__ = [
    "backnormalize",
    "check_ylu",
    "normalize",
    "EmptySubsetError",
    "InputCheckError",
    "UnsortedTimeError",
    "check_input",
    "movmean",
    "na_approx",
    "CheckOptions",
    "CheckedSeries",
    "CheckResult",
    "TimeSeries",
]
