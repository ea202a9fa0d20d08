from __future__ import annotations

"""Normalize engine-native prediction output into fixed tabular shapes.

- numeric: one float column (``settings.numeric_column``)
- class:   one categorical column (``settings.class_column``) over the outcome levels
- prob:    one float column per outcome level, named by level, rows summing to 1
- raw:     the engine output as a frame, otherwise untouched

The output index is always the caller's index, in the caller's order.
"""

from typing import Any, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from modelspec.contracts.results import FittedModel
from modelspec.contracts.settings import DispatchSettings
from modelspec.core.errors import InvariantViolation


def _violation(fitted: FittedModel, message: str, element: str) -> InvariantViolation:
    return InvariantViolation(
        message,
        model_type=fitted.model_type,
        engine=fitted.engine,
        mode=fitted.mode,
        element=element,
    )


def _is_default_index(idx: pd.Index, n: int) -> bool:
    return isinstance(idx, pd.RangeIndex) and idx.equals(pd.RangeIndex(n))


def align_rows(
    raw: Any,
    index: pd.Index,
    fitted: FittedModel,
    settings: DispatchSettings,
    element: str,
) -> Any:
    """Put engine output back in the caller's row order.

    pandas output whose index holds exactly the caller's labels is re-indexed
    to the caller's order. A default ``RangeIndex(n)`` carries no labels and,
    like any other output, is taken positionally; it must have one entry per
    input row.
    """

    n = len(index)
    if isinstance(raw, (pd.Series, pd.DataFrame)):
        same_labels = (
            settings.realign_rows
            and not _is_default_index(raw.index, n)
            and raw.index.is_unique
            and index.is_unique
            and len(raw.index) == n
            and raw.index.isin(index).all()
        )
        if same_labels:
            return raw.reindex(index)
        if len(raw) != n:
            raise _violation(fitted, f"Engine returned {len(raw)} rows for {n} input rows", element)
        out = raw.copy()
        out.index = index
        return out

    arr = np.asarray(raw)
    if arr.ndim == 0 or arr.shape[0] != n:
        raise _violation(
            fitted, f"Engine returned output of shape {arr.shape} for {n} input rows", element
        )
    return arr


def _as_vector(values: Any, index: pd.Index) -> pd.Series:
    if isinstance(values, pd.DataFrame):
        if values.shape[1] != 1:
            raise ValueError(f"expected a single column; got {values.shape[1]}")
        values = values.iloc[:, 0]
    if isinstance(values, pd.Series):
        return pd.Series(values.to_numpy(), index=index)
    arr = np.asarray(values)
    if arr.ndim == 2 and arr.shape[1] == 1:
        arr = arr[:, 0]
    if arr.ndim != 1:
        raise ValueError(f"expected a 1D vector; got {arr.shape}")
    return pd.Series(arr, index=index)


def normalize_numeric(
    raw: Any, index: pd.Index, fitted: FittedModel, settings: DispatchSettings
) -> pd.DataFrame:
    aligned = align_rows(raw, index, fitted, settings, "numeric")
    try:
        values = _as_vector(aligned, index).astype(float)
    except (TypeError, ValueError) as exc:
        raise _violation(fitted, f"Numeric predictions are not a numeric vector: {exc}", "numeric") from exc
    return pd.DataFrame({settings.numeric_column: values}, index=index)


def _levels(fitted: FittedModel, element: str) -> Tuple[str, ...]:
    if not fitted.levels:
        raise _violation(fitted, "Prediction type needs outcome levels but the fit has none", element)
    return fitted.levels


def normalize_class(
    raw: Any, index: pd.Index, fitted: FittedModel, settings: DispatchSettings
) -> pd.DataFrame:
    levels = _levels(fitted, "class")
    aligned = align_rows(raw, index, fitted, settings, "class")
    try:
        values = _as_vector(aligned, index).astype(str)
    except ValueError as exc:
        raise _violation(fitted, f"Class predictions are not a vector: {exc}", "class") from exc

    unknown = sorted(set(values.unique()) - set(levels))
    if unknown:
        raise _violation(
            fitted, f"Class predictions contain values outside the outcome levels {list(levels)}: {unknown}", "class"
        )
    column = pd.Categorical(values, categories=list(levels))
    return pd.DataFrame({settings.class_column: column}, index=index)


def _prob_frame(aligned: Any, levels: Sequence[str], index: pd.Index, fitted: FittedModel) -> pd.DataFrame:
    if isinstance(aligned, pd.DataFrame):
        renamed = aligned.rename(columns=str)
        missing = [lvl for lvl in levels if lvl not in renamed.columns]
        if missing:
            raise _violation(
                fitted, f"Probability output has no column for levels {missing}", "prob"
            )
        out = renamed.loc[:, list(levels)]
        out.index = index
        return out.astype(float)

    arr = np.asarray(aligned, dtype=float)
    if arr.ndim == 1 and len(levels) == 2:
        # a single column is the probability of the second level
        arr = np.column_stack([1.0 - arr, arr])
    if arr.ndim != 2 or arr.shape[1] != len(levels):
        raise _violation(
            fitted,
            f"Probability output of shape {arr.shape} does not match {len(levels)} outcome levels",
            "prob",
        )
    return pd.DataFrame(arr, columns=list(levels), index=index)


def normalize_prob(
    raw: Any, index: pd.Index, fitted: FittedModel, settings: DispatchSettings
) -> pd.DataFrame:
    levels = _levels(fitted, "prob")
    aligned = align_rows(raw, index, fitted, settings, "prob")
    out = _prob_frame(aligned, levels, index, fitted)

    if len(out):
        values = out.to_numpy()
        if np.isnan(values).any():
            raise _violation(fitted, "Probability output contains missing values", "prob")
        sums = values.sum(axis=1)
        bad = np.flatnonzero(np.abs(sums - 1.0) > settings.prob_tolerance)
        if bad.size:
            first = int(bad[0])
            raise _violation(
                fitted,
                f"Probability rows must sum to 1 (tolerance {settings.prob_tolerance:g}); "
                f"{bad.size} row(s) do not, e.g. row {index[first]!r} sums to {sums[first]:.8g}",
                "prob",
            )
    return out


def normalize_raw(
    raw: Any, index: pd.Index, fitted: FittedModel, settings: DispatchSettings
) -> pd.DataFrame:
    aligned = align_rows(raw, index, fitted, settings, "raw")
    if isinstance(aligned, pd.DataFrame):
        return aligned
    if isinstance(aligned, pd.Series):
        return aligned.to_frame(name=settings.numeric_column)
    arr = np.asarray(aligned)
    if arr.ndim == 1:
        return pd.DataFrame({settings.numeric_column: arr}, index=index)
    return pd.DataFrame(arr.reshape(arr.shape[0], -1), index=index)


_NORMALIZERS = {
    "numeric": normalize_numeric,
    "class": normalize_class,
    "prob": normalize_prob,
    "raw": normalize_raw,
}


def normalize(
    pred_type: str,
    raw: Any,
    index: pd.Index,
    fitted: FittedModel,
    settings: Optional[DispatchSettings] = None,
) -> pd.DataFrame:
    fn = _NORMALIZERS[pred_type]
    return fn(raw, index, fitted, settings or DispatchSettings())
