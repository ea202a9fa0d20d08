from __future__ import annotations

"""Bind data to a declaration.

- :func:`build_descriptor` summarizes training data for the translator.
- :func:`prepare_training_data` shapes it for the engine's fit interface.
- :func:`prepare_new_data` replays the same shaping on prediction data.
"""

from typing import Any, Optional, Tuple

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype

from modelspec.components.encoding import (
    EncodingBlueprint,
    build_blueprint,
    column_levels,
    count_encoded_columns,
    is_categorical,
)
from modelspec.contracts.descriptors import DataDescriptor
from modelspec.contracts.registry_specs import EncodingPolicy
from modelspec.contracts.results import CallTemplate, FittedModel
from modelspec.contracts.training import TrainingData
from modelspec.core.formula import make_formula
from modelspec.core.shapes import ensure_new_data_frame

# Formula engines receive predictors untouched.
_PASSTHROUGH = EncodingPolicy(predictor_indicators="none", compute_intercept=False)


def outcome_levels(y: pd.Series) -> Tuple[str, ...]:
    return column_levels(y)


def prepare_outcome(y: pd.Series, mode: str) -> pd.Series:
    """Classification outcomes become string categoricals; others numeric."""
    if mode == "classification":
        levels = list(outcome_levels(y))
        if len(levels) < 2:
            raise ValueError(f"Classification needs at least 2 outcome levels; got {levels}.")
        return pd.Series(
            pd.Categorical(y.astype(str), categories=levels),
            index=y.index,
            name=y.name,
        )
    if not is_numeric_dtype(y.dtype) or is_categorical(y):
        raise ValueError(
            f"Outcome {y.name!r} must be numeric for mode {mode!r}; got dtype {y.dtype}."
        )
    return y.astype(float)


def build_descriptor(x: pd.DataFrame, y: pd.Series, mode: str) -> DataDescriptor:
    levels = outcome_levels(y) if mode == "classification" else None
    return DataDescriptor(
        n_predictors=int(x.shape[1]),
        n_obs=int(x.shape[0]),
        n_factors=sum(1 for c in x.columns if is_categorical(x[c])),
        levels=levels,
        encoded_cols=count_encoded_columns(x),
    )


def is_sparse(x: Any) -> bool:
    return hasattr(x, "toarray") and hasattr(x, "nnz")


def accepts_sparse(template: CallTemplate) -> bool:
    return template.interface == "matrix" and template.encoding.allow_sparse_x


def build_sparse_descriptor(x: Any, y: pd.Series, mode: str) -> DataDescriptor:
    n_rows, n_cols = (int(v) for v in x.shape)
    return DataDescriptor(
        n_predictors=n_cols,
        n_obs=n_rows,
        levels=outcome_levels(y) if mode == "classification" else None,
        encoded_cols={"none": n_cols, "traditional": n_cols, "one_hot": n_cols},
    )


def prepare_sparse_training_data(template: CallTemplate, x: Any, y: pd.Series) -> TrainingData:
    """Pass a sparse numeric matrix straight to an engine that accepts one."""
    if int(x.shape[0]) != len(y):
        raise ValueError(f"x and y length mismatch: {x.shape[0]} vs {len(y)}.")
    y = prepare_outcome(y, template.mode)
    y_arr = y.astype(str).to_numpy() if template.mode == "classification" else y.to_numpy(dtype=float)
    return TrainingData(interface="matrix", x=x, y=y_arr, outcome=str(y.name))


def prepare_training_data(
    template: CallTemplate,
    x: pd.DataFrame,
    y: pd.Series,
) -> Tuple[TrainingData, EncodingBlueprint]:
    """Shape (x, y) for ``template.interface`` and learn the encoding blueprint."""

    y = prepare_outcome(y, template.mode)
    outcome = str(y.name)

    if template.interface == "formula":
        blueprint = build_blueprint(x, _PASSTHROUGH)
        if outcome in x.columns:
            raise ValueError(f"Outcome name {outcome!r} collides with a predictor column.")
        data = x.copy()
        data[outcome] = y
        return (
            TrainingData(
                interface="formula",
                formula=make_formula(outcome, blueprint.predictors),
                data=data,
                outcome=outcome,
            ),
            blueprint,
        )

    blueprint = build_blueprint(x, template.encoding)

    if template.interface == "data.frame":
        return (
            TrainingData(interface="data.frame", x=blueprint.transform(x), y=y, outcome=outcome),
            blueprint,
        )

    if template.interface == "matrix":
        y_arr = y.astype(str).to_numpy() if template.mode == "classification" else y.to_numpy(dtype=float)
        x_mat = blueprint.to_matrix(x)
        return (
            TrainingData(interface="matrix", x=x_mat, y=y_arr, outcome=outcome),
            blueprint,
        )

    raise ValueError(f"Unknown fit interface {template.interface!r}")


def prepare_new_data(fitted: FittedModel, new_data: Any) -> Tuple[Any, pd.Index]:
    """Shape new data like the training predictors.

    Returns the engine-ready data and the index of the caller's rows, which
    the prediction dispatcher uses to keep the output row order.
    """

    blueprint: Optional[EncodingBlueprint] = fitted.blueprint

    if blueprint is None:
        # fitted on a sparse matrix: new data must already be numeric columns
        if is_sparse(new_data):
            return new_data, pd.RangeIndex(int(new_data.shape[0]))
        arr = np.asarray(new_data, dtype=float)
        if arr.ndim == 1:
            arr = arr[:, None]
        if arr.ndim != 2:
            raise ValueError(f"new_data must be 2D; got {arr.shape}")
        return arr, pd.RangeIndex(arr.shape[0])

    frame = ensure_new_data_frame(new_data, blueprint.predictors)
    if fitted.template.interface == "matrix":
        return blueprint.to_matrix(frame), frame.index
    return blueprint.transform(frame), frame.index
