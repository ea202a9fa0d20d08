from __future__ import annotations

"""Prediction dispatch.

``predict_fitted`` runs one registered PredictionSpec against a FittedModel:

    new data -> encoding blueprint -> pre -> engine predict -> post -> normalize

``multi_predict`` repeats the engine call for several values of a submodel
argument against the same fitted object; it never refits.

Both are pure: neither the fitted model nor the registry is modified.
"""

import logging
from typing import Any, Dict, Iterable, Optional

import pandas as pd

from modelspec.components.data_prep import prepare_new_data
from modelspec.components.interfaces import SubmodelAdapter
from modelspec.components.prediction.normalize import normalize
from modelspec.contracts.choices import normalize_prediction_type
from modelspec.contracts.declaration import Deferred
from modelspec.contracts.registry_specs import PredictionContext, PredictionSpec
from modelspec.contracts.results import FittedModel
from modelspec.contracts.settings import DispatchSettings, load_settings
from modelspec.core.errors import (
    UnknownArgument,
    UnsupportedEngine,
    UnsupportedPredictionType,
)
from modelspec.registries.models import ModelRegistry, resolve_registry

logger = logging.getLogger(__name__)


def default_prediction_type(fitted: FittedModel) -> str:
    return "class" if fitted.mode == "classification" else "numeric"


def _fitted_registry(fitted: FittedModel, registry: Optional[ModelRegistry]) -> ModelRegistry:
    if registry is None:
        registry = fitted.template.registry
    return resolve_registry(registry)


def _prediction_spec(fitted: FittedModel, pred_type: str, registry: ModelRegistry) -> PredictionSpec:
    spec = registry.prediction_spec(fitted.model_type, fitted.engine, fitted.mode, pred_type)
    if spec is None:
        available = registry.prediction_types(fitted.model_type, fitted.engine, fitted.mode)
        raise UnsupportedPredictionType(
            f"No prediction specification for type {pred_type!r} (available: {available})",
            model_type=fitted.model_type,
            engine=fitted.engine,
            mode=fitted.mode,
            element=pred_type,
        )
    return spec


def _dispatch(
    fitted: FittedModel,
    new_data: Any,
    pred_type: str,
    registry: ModelRegistry,
    settings: DispatchSettings,
    submodel: Optional[Dict[str, Any]] = None,
) -> pd.DataFrame:
    spec = _prediction_spec(fitted, pred_type, registry)

    prepared, index = prepare_new_data(fitted, new_data)
    if spec.pre is not None:
        prepared = spec.pre(prepared, fitted)

    context = PredictionContext(fitted=fitted, new_data=prepared)
    args = {
        name: value.evaluate(context) if isinstance(value, Deferred) else value
        for name, value in spec.args.items()
    }

    adapter = fitted.template.adapter
    if submodel:
        raw = adapter.predict_submodel(fitted.fit, prepared, pred_type, spec.method, args, submodel)
    else:
        raw = adapter.predict(fitted.fit, prepared, pred_type, spec.method, args)

    if spec.post is not None:
        raw = spec.post(raw, fitted)

    return normalize(pred_type, raw, index, fitted, settings)


def predict_fitted(
    fitted: FittedModel,
    new_data: Any,
    type: Optional[str] = None,
    *,
    registry: Optional[ModelRegistry] = None,
    settings: Optional[DispatchSettings] = None,
) -> pd.DataFrame:
    """Predict from ``fitted`` on ``new_data``.

    Returns a DataFrame indexed like ``new_data`` (row order preserved).
    ``type`` defaults to ``class`` for classification fits and ``numeric``
    otherwise; ``probability`` is accepted for ``prob``.
    Specs are looked up in ``registry``, defaulting to the registry the model
    was fitted with.
    """

    pred_type = normalize_prediction_type(type or default_prediction_type(fitted))
    reg = _fitted_registry(fitted, registry)
    return _dispatch(fitted, new_data, pred_type, reg, settings or load_settings())


def multi_predict(
    fitted: FittedModel,
    new_data: Any,
    type: Optional[str] = None,
    *,
    registry: Optional[ModelRegistry] = None,
    settings: Optional[DispatchSettings] = None,
    **submodel_values: Iterable[Any],
) -> pd.DataFrame:
    """Predict at several values of one submodel argument without refitting.

    Example::

        multi_predict(knn_fit, new_data, neighbors=[1, 3, 5])

    Returns a long frame with ``.row`` (input position), the argument column
    and the normalized prediction columns; values appear in the order given.
    """

    if len(submodel_values) != 1:
        raise ValueError(
            f"multi_predict takes exactly one submodel argument; got {sorted(submodel_values)}"
        )
    (canonical, values), = submodel_values.items()

    reg = _fitted_registry(fitted, registry)
    cfg = settings or load_settings()
    pred_type = normalize_prediction_type(type or default_prediction_type(fitted))

    ctx = {"model_type": fitted.model_type, "engine": fitted.engine, "mode": fitted.mode}
    arg_spec = reg.arguments(fitted.model_type, fitted.engine).get(canonical)
    if arg_spec is None or not arg_spec.has_submodel:
        raise UnknownArgument(
            f"Argument {canonical!r} is not registered as a submodel argument for this engine",
            element=canonical,
            **ctx,
        )
    if not isinstance(fitted.template.adapter, SubmodelAdapter):
        raise UnsupportedEngine(
            "Engine adapter cannot predict submodels",
            element="predict_submodel",
            **ctx,
        )

    frames = []
    for value in list(values):
        out = _dispatch(fitted, new_data, pred_type, reg, cfg, submodel={arg_spec.native: value})
        out = out.reset_index(drop=True)
        out.insert(0, canonical, value)
        out.insert(0, ".row", range(len(out)))
        frames.append(out)

    logger.debug(
        "multi_predict %s/%s over %d value(s) of %r", fitted.model_type, fitted.engine, len(frames), canonical
    )
    if not frames:
        return pd.DataFrame(columns=[".row", canonical])
    return pd.concat(frames, ignore_index=True)


def augment(
    fitted: FittedModel,
    new_data: pd.DataFrame,
    *,
    registry: Optional[ModelRegistry] = None,
    settings: Optional[DispatchSettings] = None,
) -> pd.DataFrame:
    """Return ``new_data`` with prediction columns appended.

    Regression adds the numeric column; classification adds the class column
    and, when the engine registers it, one probability column per level
    (prefixed ``.pred_``).
    """

    reg = _fitted_registry(fitted, registry)
    cfg = settings or load_settings()
    out = new_data.copy()

    if fitted.mode == "classification":
        preds = _dispatch(fitted, new_data, "class", reg, cfg)
        out[cfg.class_column] = preds[cfg.class_column].values
        if reg.prediction_spec(fitted.model_type, fitted.engine, fitted.mode, "prob") is not None:
            probs = _dispatch(fitted, new_data, "prob", reg, cfg)
            for level in probs.columns:
                out[f".pred_{level}"] = probs[level].to_numpy()
        return out

    preds = _dispatch(fitted, new_data, "numeric", reg, cfg)
    out[cfg.numeric_column] = preds[cfg.numeric_column].to_numpy()
    return out
