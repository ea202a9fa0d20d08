"""Fitting use-case.

Binds data to a declaration and runs it:

    data -> descriptor -> translate -> shape for the fit interface -> fit dispatch

Design goals
------------
- The declaration is never modified; the returned FittedModel carries the
  declaration and the resolved call template it was fitted with.
- Errors from the registry/translator surface unchanged; engine errors arrive
  as :class:`~modelspec.core.errors.FitFailure`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import pandas as pd

from modelspec.components.data_prep import (
    accepts_sparse,
    build_descriptor,
    build_sparse_descriptor,
    is_sparse,
    prepare_sparse_training_data,
    prepare_training_data,
)
from modelspec.components.trainers.fitting import fit_template
from modelspec.components.translation import translate
from modelspec.contracts.declaration import ModelDeclaration
from modelspec.contracts.results import FittedModel
from modelspec.core.formula import parse_formula
from modelspec.core.shapes import as_outcome, as_predictor_frame, ensure_xy_aligned
from modelspec.registries.models import ModelRegistry, resolve_registry

logger = logging.getLogger(__name__)


def _fit_frame(
    declaration: ModelDeclaration,
    x: pd.DataFrame,
    y: pd.Series,
    reg: ModelRegistry,
) -> FittedModel:
    descriptor = build_descriptor(x, y, declaration.mode)
    template = translate(declaration, descriptor, reg)
    data, blueprint = prepare_training_data(template, x, y)
    return fit_template(template, data, blueprint=blueprint)


def fit(
    declaration: ModelDeclaration,
    formula: str,
    data: pd.DataFrame,
    *,
    registry: Optional[ModelRegistry] = None,
) -> FittedModel:
    """Fit ``declaration`` with the formula interface (``"y ~ ."``)."""

    if not isinstance(data, pd.DataFrame):
        raise TypeError(f"data must be a pandas DataFrame; got {type(data).__name__}")
    reg = resolve_registry(registry)

    parsed = parse_formula(formula, [str(c) for c in data.columns])
    frame = data.rename(columns=str)
    x = as_predictor_frame(frame.loc[:, list(parsed.predictors)])
    y = frame[parsed.outcome]

    logger.debug("fit %s with formula %r", declaration.model_type, parsed.render())
    return _fit_frame(declaration, x, y, reg)


def fit_xy(
    declaration: ModelDeclaration,
    x: Any,
    y: Any,
    *,
    registry: Optional[ModelRegistry] = None,
) -> FittedModel:
    """Fit ``declaration`` with the x/y interface.

    ``x`` may be a DataFrame, a 2D array or a scipy sparse matrix. Sparse
    input reaches the engine unchanged when its encoding policy allows it
    and is densified otherwise.
    """

    reg = resolve_registry(registry)
    y_series = as_outcome(y)

    if is_sparse(x):
        descriptor = build_sparse_descriptor(x, y_series, declaration.mode)
        template = translate(declaration, descriptor, reg)
        if accepts_sparse(template):
            data = prepare_sparse_training_data(template, x, y_series)
            return fit_template(template, data, blueprint=None)
        logger.debug("engine %r does not accept sparse x; densifying", template.engine)

    frame = as_predictor_frame(x)
    frame, y_series = ensure_xy_aligned(frame, y_series)
    return _fit_frame(declaration, frame, y_series, reg)
