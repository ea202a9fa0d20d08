"""Public modelspec API.

This module is the **stable public surface**. Prefer importing from here
instead of reaching into internal subpackages:

    from modelspec.api import declare, set_engine, fit, predict

The underlying implementations live under :mod:`modelspec.components`,
:mod:`modelspec.registries` and :mod:`modelspec.use_cases`.
"""

from __future__ import annotations

from typing import Optional

from modelspec.components.declarations import declare, finalize, set_args, set_engine, set_mode
from modelspec.components.prediction.predicting import augment, multi_predict
from modelspec.components.prediction.predicting import predict_fitted as predict
from modelspec.components.translation import translate
from modelspec.components.tuning.params import (
    ParamRange,
    ParamValues,
    cost_complexity,
    grid_regular,
    min_n,
    mixture,
    mtry,
    neighbors,
    penalty,
    tree_depth,
    trees,
    tunable,
    weight_func,
)
from modelspec.contracts.declaration import Deferred, cols, facts, lev, obs, preds, tune
from modelspec.contracts.registry_specs import EncodingPolicy, FitSpec, PredictionSpec
from modelspec.contracts.results import FittedModel, ModelTypeSummary
from modelspec.contracts.settings import DispatchSettings, load_settings
from modelspec.registries.models import ModelRegistry, default_registry, resolve_registry
from modelspec.use_cases.fitting import fit, fit_xy


def describe(model_type: str, registry: Optional[ModelRegistry] = None) -> ModelTypeSummary:
    """Snapshot of a registered model type (modes, engines, arguments)."""
    return resolve_registry(registry).describe(model_type)


__all__ = [
    # declarations
    "declare",
    "set_mode",
    "set_engine",
    "set_args",
    "finalize",
    "tune",
    "Deferred",
    "preds",
    "cols",
    "obs",
    "lev",
    "facts",
    # fitting / prediction
    "translate",
    "fit",
    "fit_xy",
    "predict",
    "multi_predict",
    "augment",
    "FittedModel",
    "DispatchSettings",
    "load_settings",
    # registry
    "ModelRegistry",
    "default_registry",
    "describe",
    "ModelTypeSummary",
    "FitSpec",
    "PredictionSpec",
    "EncodingPolicy",
    # tuning
    "ParamRange",
    "ParamValues",
    "penalty",
    "mixture",
    "neighbors",
    "tree_depth",
    "min_n",
    "trees",
    "mtry",
    "cost_complexity",
    "weight_func",
    "tunable",
    "grid_regular",
]
