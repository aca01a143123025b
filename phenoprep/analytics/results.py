from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd


@dataclass
class CheckedSeries:
    """Quality-checked, gap-filled series handed to curve fitting."""

    t: np.ndarray
    y0: np.ndarray
    y: np.ndarray
    w: np.ndarray
    ylu: Tuple[float, float]
    nptperyear: int
    south: bool = False
    qc_flag: Sequence | None = None
    tn: np.ndarray | None = None
    w_critical: float | None = None

    def __len__(self) -> int:
        return len(self.y)

    def to_dataframe(self) -> pd.DataFrame:
        """Return the per-sample vectors as a DataFrame."""
        data: Dict[str, Any] = {"t": self.t, "y0": self.y0, "y": self.y, "w": self.w}
        if self.qc_flag is not None:
            data["qc_flag"] = list(self.qc_flag)
        if self.tn is not None:
            data["tn"] = self.tn
        return pd.DataFrame(data)


@dataclass
class CheckResult:
    """Checked series for every id of a :class:`TimeSeries`."""

    df: pd.DataFrame
    series: Dict[Any, CheckedSeries] = field(default_factory=dict)

    def to_dataframe(self) -> pd.DataFrame:
        """Return the checked values as a DataFrame."""
        return self.df

    def ylu_table(self) -> pd.DataFrame:
        """Return one row per id with its value range and weight threshold."""
        rows: List[Dict[str, Any]] = [
            {
                "id": pid,
                "ymin": checked.ylu[0],
                "ymax": checked.ylu[1],
                "w_critical": checked.w_critical,
                "nptperyear": checked.nptperyear,
            }
            for pid, checked in self.series.items()
        ]
        return pd.DataFrame(rows, columns=["id", "ymin", "ymax", "w_critical", "nptperyear"])
