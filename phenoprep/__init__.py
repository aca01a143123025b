"""Quality check and gap filling of vegetation index series for phenology fitting."""

from .analytics import (
    CheckOptions,
    CheckedSeries,
    EmptySubsetError,
    InputCheckError,
    UnsortedTimeError,
    backnormalize,
    check_input,
    check_ylu,
    normalize,
)

__all__ = [
    "CheckOptions",
    "CheckedSeries",
    "EmptySubsetError",
    "InputCheckError",
    "UnsortedTimeError",
    "backnormalize",
    "check_input",
    "check_ylu",
    "normalize",
]
