from __future__ import annotations

"""Public shape utilities.

Conventions
-----------
- predictors are 2D: a pandas DataFrame with one row per observation
- the outcome is 1D: a pandas Series sharing the predictors' index

Raw numpy input is accepted and wrapped; a 1D predictor array is treated as a
single column.
"""

from typing import Any, Optional, Tuple

import numpy as np
import pandas as pd


def as_predictor_frame(x: Any) -> pd.DataFrame:
    """Coerce predictors to a non-empty 2D DataFrame.

    numpy input gets column names ``x1 .. xn``.
    """

    if isinstance(x, pd.DataFrame):
        frame = x
    elif isinstance(x, pd.Series):
        frame = x.to_frame(name=x.name if x.name is not None else "x1")
    else:
        if hasattr(x, "toarray"):
            x = x.toarray()
        arr = np.asarray(x)
        if arr.ndim == 1:
            arr = arr[:, None]
        if arr.ndim != 2:
            raise ValueError(f"x must be 2D; got {arr.shape}")
        frame = pd.DataFrame(arr, columns=[f"x{i + 1}" for i in range(arr.shape[1])])

    n_rows, n_cols = frame.shape
    if n_rows < 1 or n_cols < 1:
        raise ValueError(f"x must have at least 1 row and 1 column; got {frame.shape}")
    return frame.rename(columns=str)


def as_outcome(y: Any, name: Optional[str] = None) -> pd.Series:
    """Coerce the outcome to a 1D Series."""

    if isinstance(y, pd.DataFrame):
        if y.shape[1] != 1:
            raise ValueError(f"y must have exactly one column; got {y.shape}")
        y = y.iloc[:, 0]
    if isinstance(y, pd.Series):
        series = y
    else:
        arr = np.asarray(y)
        if arr.ndim == 2 and 1 in arr.shape:
            arr = arr.ravel()
        if arr.ndim != 1:
            raise ValueError(f"y must be 1D; got {arr.shape}")
        series = pd.Series(arr)

    if name is not None:
        series = series.rename(name)
    elif series.name is None:
        series = series.rename(".outcome")
    return series


def ensure_xy_aligned(x: pd.DataFrame, y: pd.Series) -> Tuple[pd.DataFrame, pd.Series]:
    """Strict alignment check: no transposition, no truncation.

    The outcome takes the predictors' index so both stay row-aligned.
    """

    if len(x) != len(y):
        raise ValueError(f"x and y length mismatch: {len(x)} vs {len(y)}.")
    if not y.index.equals(x.index):
        y = pd.Series(y.to_numpy(), index=x.index, name=y.name)
    return x, y


def ensure_new_data_frame(new_data: Any, expected: Optional[Tuple[str, ...]] = None) -> pd.DataFrame:
    """Coerce new data to a DataFrame and check the training predictors are present.

    Unnamed numpy input is matched to ``expected`` positionally.
    """

    if isinstance(new_data, pd.DataFrame):
        frame = new_data.rename(columns=str)
    else:
        frame = as_predictor_frame(new_data)
        if expected is not None and frame.shape[1] == len(expected):
            frame.columns = list(expected)

    if expected is not None:
        missing = [c for c in expected if c not in frame.columns]
        if missing:
            raise ValueError(f"new_data is missing predictor columns: {missing}")
    return frame
