"""
Module `analytics.timeseries` provides the TimeSeries class, which wraps
a pandas DataFrame of vegetation index series (one per site id) and runs
the quality check on each of them.
"""

from dataclasses import dataclass
from typing import List

import numpy as np
import pandas as pd

from phenoprep.core.config import ConfigManager
from phenoprep.core.logger import Logger
from .check import check_input
from .options import DEFAULT_OPTIONS_PATH, CheckOptions
from .results import CheckResult

log = Logger.get_logger(__name__)

OPTIONAL_COLUMNS = ("w", "qc_flag", "tn")


@dataclass
class TimeSeries:
    """Pandas DataFrame wrapper for the series of several sites."""

    df: pd.DataFrame
    index: str

    @classmethod
    def from_dataframe(
        cls, df: pd.DataFrame, index: str = ConfigManager.DEFAULT_INDEX
    ) -> "TimeSeries":
        """
        Create a TimeSeries from a DataFrame with columns ['id', 'date', f'mean_{index}'].
        Optional columns 'w', 'qc_flag' and 'tn' are used when present.
        Ensures 'date' column is parsed as datetime.
        """
        value_col = ConfigManager.VALUE_COL_TEMPLATE.format(index=index)
        missing = {"id", "date", value_col} - set(df.columns)
        if missing:
            raise KeyError(f"Missing columns: {', '.join(sorted(missing))}")
        df_copy = df.copy()
        df_copy["date"] = pd.to_datetime(df_copy["date"])
        return cls(df_copy, index)

    @property
    def value_col(self) -> str:
        return ConfigManager.VALUE_COL_TEMPLATE.format(index=self.index)

    def check(self, options: CheckOptions | None = None) -> CheckResult:
        """
        Run ``check_input`` on every site in date order.

        The returned frame keeps the input columns, replaces the value column
        with the checked values and adds ``y0``, ``w`` and ``gapfilled``.
        """
        options = options or CheckOptions.from_yaml(DEFAULT_OPTIONS_PATH)
        value_col = self.value_col
        checked_parts: List[pd.DataFrame] = []
        result = CheckResult(pd.DataFrame())
        for pid, grp in self.df.groupby("id", sort=False):
            grp = grp.sort_values("date").reset_index(drop=True)
            if grp[value_col].isna().all():
                log.warning("Site %s has no observed %s values", pid, self.index)
            log.debug("Checking %d observations for site %s", len(grp), pid)
            extra = {col: grp[col].to_numpy() for col in OPTIONAL_COLUMNS if col in grp}
            checked = check_input(
                grp["date"].to_numpy(),
                grp[value_col].to_numpy(dtype=float, na_value=np.nan),
                w=extra.get("w"),
                qc_flag=extra.get("qc_flag"),
                tn=extra.get("tn"),
                **options.to_kwargs(),
            )
            result.series[pid] = checked

            grp["y0"] = checked.y0
            grp[value_col] = checked.y
            grp["w"] = checked.w
            if checked.tn is not None:
                grp["tn"] = checked.tn
            grp["gapfilled"] = np.isnan(checked.y0) | (checked.y != checked.y0)
            checked_parts.append(grp)

        if checked_parts:
            result.df = pd.concat(checked_parts, ignore_index=True)
        return result
