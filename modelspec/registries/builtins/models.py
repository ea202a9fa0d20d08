"""Built-in model type registrations.

This module is imported lazily by :func:`modelspec.registries.models.default_registry`.

To add a new engine to an existing model type:
    1) write (or reuse) an adapter
    2) register engine, arguments, fit spec and prediction specs on a registry

Every engine here is backed by scikit-learn and fits on a dense numeric
matrix; categorical predictors are expanded by the engine's encoding policy.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence, Tuple

import pandas as pd
from sklearn.ensemble import RandomForestClassifier, RandomForestRegressor
from sklearn.linear_model import ElasticNet, LinearRegression
from sklearn.neighbors import KNeighborsClassifier, KNeighborsRegressor
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor

from modelspec.components.engines import ForestAdapter, LogisticRegressionAdapter, SklearnAdapter
from modelspec.components.tuning import params
from modelspec.contracts.registry_specs import EncodingPolicy, FitSpec, PredictionSpec
from modelspec.contracts.results import FittedModel
from modelspec.registries.models import ModelRegistry

SKLEARN = ("scikit-learn",)

# Slots filled from the bound training data.
_PROTECT = ("X", "y")

_ONE_HOT = EncodingPolicy(predictor_indicators="one_hot", compute_intercept=False, remove_intercept=True)


def _proba_frame(raw: Any, fitted: FittedModel) -> pd.DataFrame:
    """Name predict_proba columns by the estimator's class labels."""
    classes = [str(c) for c in fitted.fit.classes_]
    return pd.DataFrame(raw, columns=classes)


_NUMERIC = {
    "numeric": PredictionSpec(method="predict"),
    "raw": PredictionSpec(method="predict"),
}

_CLASSIFICATION = {
    "class": PredictionSpec(method="predict"),
    "prob": PredictionSpec(method="predict_proba", post=_proba_frame),
    "raw": PredictionSpec(method="predict_proba"),
}


def _register_engine(
    reg: ModelRegistry,
    model_type: str,
    mode: str,
    engine: str,
    adapter: Any,
    *,
    defaults: Optional[dict] = None,
    encoding: Optional[EncodingPolicy] = None,
) -> None:
    reg.register_engine(model_type, mode, engine, dependency_packages=SKLEARN)
    reg.register_fit_spec(
        model_type,
        engine,
        mode,
        FitSpec(interface="matrix", adapter=adapter, protect=_PROTECT, defaults=dict(defaults or {})),
    )
    pred_specs = _CLASSIFICATION if mode == "classification" else _NUMERIC
    for pred_type, spec in pred_specs.items():
        reg.register_prediction_spec(model_type, engine, mode, pred_type, spec)
    if encoding is not None:
        reg.register_encoding_policy(model_type, engine, mode, encoding)


def _register_arguments(
    reg: ModelRegistry,
    model_type: str,
    engine: str,
    arguments: Iterable[Tuple[str, str, Any, bool]],
) -> None:
    for canonical, native, constructor, has_submodel in arguments:
        reg.register_argument(model_type, engine, canonical, native, constructor, has_submodel)


def _new_type(reg: ModelRegistry, model_type: str, modes: Sequence[str]) -> None:
    reg.register_model_type(model_type)
    for mode in modes:
        reg.register_mode(model_type, mode)


# ---------------------------------------------------------------------------
# Model types
# ---------------------------------------------------------------------------


def register_linear_reg(reg: ModelRegistry) -> None:
    _new_type(reg, "linear_reg", ["regression"])

    _register_engine(reg, "linear_reg", "regression", "sklearn", SklearnAdapter(ElasticNet))
    _register_arguments(
        reg,
        "linear_reg",
        "sklearn",
        [
            ("penalty", "alpha", params.penalty, False),
            ("mixture", "l1_ratio", params.mixture, False),
        ],
    )

    _register_engine(reg, "linear_reg", "regression", "ols", SklearnAdapter(LinearRegression))
    reg.set_default_engine("linear_reg", "ols")


def register_logistic_reg(reg: ModelRegistry) -> None:
    _new_type(reg, "logistic_reg", ["classification"])

    _register_engine(
        reg,
        "logistic_reg",
        "classification",
        "sklearn",
        LogisticRegressionAdapter(),
        defaults={"max_iter": 1000},
    )
    _register_arguments(
        reg,
        "logistic_reg",
        "sklearn",
        [
            ("penalty", "lambda", params.penalty, False),
            ("mixture", "l1_ratio", params.mixture, False),
        ],
    )
    reg.set_default_engine("logistic_reg", "sklearn")


def register_decision_tree(reg: ModelRegistry, seed: Optional[int] = None) -> None:
    _new_type(reg, "decision_tree", ["classification", "regression"])

    _register_engine(
        reg, "decision_tree", "classification", "sklearn", SklearnAdapter(DecisionTreeClassifier, seed=seed)
    )
    _register_engine(
        reg, "decision_tree", "regression", "sklearn", SklearnAdapter(DecisionTreeRegressor, seed=seed)
    )
    _register_arguments(
        reg,
        "decision_tree",
        "sklearn",
        [
            ("tree_depth", "max_depth", params.tree_depth, False),
            ("min_n", "min_samples_split", params.min_n, False),
            ("cost_complexity", "ccp_alpha", params.cost_complexity, False),
        ],
    )
    reg.set_default_engine("decision_tree", "sklearn")


def register_rand_forest(reg: ModelRegistry, seed: Optional[int] = None) -> None:
    _new_type(reg, "rand_forest", ["classification", "regression"])

    _register_engine(
        reg,
        "rand_forest",
        "classification",
        "sklearn",
        ForestAdapter(RandomForestClassifier, seed=seed),
        encoding=_ONE_HOT,
    )
    _register_engine(
        reg,
        "rand_forest",
        "regression",
        "sklearn",
        ForestAdapter(RandomForestRegressor, seed=seed),
        encoding=_ONE_HOT,
    )
    _register_arguments(
        reg,
        "rand_forest",
        "sklearn",
        [
            ("mtry", "max_features", params.mtry, False),
            ("trees", "n_estimators", params.trees, True),
            ("min_n", "min_samples_split", params.min_n, False),
        ],
    )
    reg.set_default_engine("rand_forest", "sklearn")


def register_nearest_neighbor(reg: ModelRegistry) -> None:
    _new_type(reg, "nearest_neighbor", ["classification", "regression"])

    for mode, estimator_cls in (
        ("classification", KNeighborsClassifier),
        ("regression", KNeighborsRegressor),
    ):
        _register_engine(
            reg,
            "nearest_neighbor",
            mode,
            "sklearn",
            SklearnAdapter(estimator_cls, submodel_params=("n_neighbors",)),
            encoding=_ONE_HOT,
        )
    _register_arguments(
        reg,
        "nearest_neighbor",
        "sklearn",
        [
            ("neighbors", "n_neighbors", params.neighbors, True),
            ("weight_func", "weights", params.weight_func, False),
        ],
    )
    reg.set_default_engine("nearest_neighbor", "sklearn")


def register_builtins(reg: ModelRegistry) -> ModelRegistry:
    register_linear_reg(reg)
    register_logistic_reg(reg)
    register_decision_tree(reg)
    register_rand_forest(reg)
    register_nearest_neighbor(reg)
    return reg
