"""Shared test fixtures for the modelspec test suite."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

import numpy as np
import pandas as pd
import pytest

from modelspec.contracts.registry_specs import FitSpec, PredictionSpec
from modelspec.registries.models import ModelRegistry


# ---------------------------------------------------------------------------
# Stub engines
# ---------------------------------------------------------------------------


class StubOLS:
    """Ridge-penalized least squares on a DataFrame; counts calls."""

    def __init__(self) -> None:
        self.fit_calls = 0
        self.predict_calls = 0
        self.last_args: Dict[str, Any] = {}
        self.last_columns: list = []

    def fit(self, template, data):
        self.fit_calls += 1
        self.last_args = dict(template.args)
        self.last_columns = list(data.x.columns)

        lam = float(template.args.get("lambda", 0.0))
        X = np.column_stack([np.ones(len(data.x)), data.x.to_numpy(dtype=float)])
        y = np.asarray(data.y, dtype=float)
        penalty = lam * np.eye(X.shape[1])
        penalty[0, 0] = 0.0
        coef = np.linalg.solve(X.T @ X + penalty, X.T @ y)
        return {"coef": coef, "columns": list(data.x.columns)}

    def predict(self, raw_fit, new_data, pred_type, method, args):
        self.predict_calls += 1
        X = np.column_stack(
            [np.ones(len(new_data)), new_data.loc[:, raw_fit["columns"]].to_numpy(dtype=float)]
        )
        return X @ raw_fit["coef"]


class StubRanger:
    """Nearest-centroid classifier with softmax probabilities.

    Predictions are deliberately produced in reversed row order, carrying the
    input index, so the dispatcher has to re-align them. ``num.trees`` acts as
    a temperature and can be varied after fitting.
    """

    def __init__(self) -> None:
        self.fit_calls = 0
        self.predict_calls = 0
        self.submodel_calls = 0

    def fit(self, template, data):
        self.fit_calls += 1
        levels = [str(lvl) for lvl in data.y.cat.categories]
        X = data.x.to_numpy(dtype=float)
        labels = data.y.astype(str).to_numpy()
        centroids = np.vstack([X[labels == lvl].mean(axis=0) for lvl in levels])
        return {
            "levels": levels,
            "centroids": centroids,
            "columns": list(data.x.columns),
            "temperature": float(template.args.get("num.trees", 1.0)),
        }

    def _probs(self, raw_fit, new_data, temperature):
        X = new_data.loc[:, raw_fit["columns"]].to_numpy(dtype=float)
        dist = np.linalg.norm(X[:, None, :] - raw_fit["centroids"][None, :, :], axis=2)
        logits = -dist / temperature
        logits -= logits.max(axis=1, keepdims=True)
        weights = np.exp(logits)
        probs = weights / weights.sum(axis=1, keepdims=True)
        return pd.DataFrame(probs, columns=raw_fit["levels"], index=new_data.index)

    def _output(self, raw_fit, new_data, method, temperature):
        probs = self._probs(raw_fit, new_data, temperature)
        if method == "predict_class":
            out = probs.idxmax(axis=1)
        else:
            out = probs
        return out.iloc[::-1]

    def predict(self, raw_fit, new_data, pred_type, method, args):
        self.predict_calls += 1
        return self._output(raw_fit, new_data, method, raw_fit["temperature"])

    def predict_submodel(self, raw_fit, new_data, pred_type, method, args, submodel):
        self.submodel_calls += 1
        return self._output(raw_fit, new_data, method, float(submodel["num.trees"]))


# ---------------------------------------------------------------------------
# Registry fixtures
# ---------------------------------------------------------------------------


@dataclass
class ToyRegistry:
    registry: ModelRegistry
    ols: StubOLS
    ranger: StubRanger


def register_toy_linear(reg: ModelRegistry, adapter: Any) -> None:
    reg.register_model_type("toy_linear")
    reg.register_mode("toy_linear", "regression")
    reg.register_engine("toy_linear", "regression", "stub_ols", ["stubpkg"])
    reg.register_argument("toy_linear", "stub_ols", "penalty", "lambda")
    reg.register_fit_spec(
        "toy_linear",
        "stub_ols",
        "regression",
        FitSpec(interface="data.frame", adapter=adapter, protect=("x", "y")),
    )
    reg.register_prediction_spec(
        "toy_linear", "stub_ols", "regression", "numeric", PredictionSpec(method="predict")
    )


def register_toy_tree(reg: ModelRegistry, adapter: Any) -> None:
    reg.register_model_type("toy_tree")
    reg.register_mode("toy_tree", "classification")
    reg.register_engine("toy_tree", "classification", "stub_ranger", ["stubpkg"])
    reg.register_argument("toy_tree", "stub_ranger", "trees", "num.trees", has_submodel=True)
    reg.register_argument("toy_tree", "stub_ranger", "min_n", "min.node.size")
    reg.register_fit_spec(
        "toy_tree",
        "stub_ranger",
        "classification",
        FitSpec(interface="data.frame", adapter=adapter, protect=("x", "y")),
    )
    reg.register_prediction_spec(
        "toy_tree", "stub_ranger", "classification", "class", PredictionSpec(method="predict_class")
    )
    reg.register_prediction_spec(
        "toy_tree", "stub_ranger", "classification", "prob", PredictionSpec(method="predict_prob")
    )


@pytest.fixture
def registry() -> ModelRegistry:
    return ModelRegistry(name="test")


@pytest.fixture
def toy() -> ToyRegistry:
    reg = ModelRegistry(name="toy")
    ols = StubOLS()
    ranger = StubRanger()
    register_toy_linear(reg, ols)
    register_toy_tree(reg, ranger)
    return ToyRegistry(registry=reg, ols=ols, ranger=ranger)


# ---------------------------------------------------------------------------
# Synthetic data
# ---------------------------------------------------------------------------


@pytest.fixture
def regression_frame() -> pd.DataFrame:
    """10 rows, 2 predictors, y = 1 + 2*x1 - x2 + noise."""
    rng = np.random.default_rng(0)
    x1 = rng.normal(size=10)
    x2 = rng.normal(size=10)
    y = 1.0 + 2.0 * x1 - x2 + rng.normal(scale=0.01, size=10)
    return pd.DataFrame({"x1": x1, "x2": x2, "y": y})


@pytest.fixture
def class_frame() -> pd.DataFrame:
    """5 "A" rows around (0, 0) and 5 "B" rows around (3, 3)."""
    rng = np.random.default_rng(1)
    a = rng.normal(loc=0.0, scale=0.3, size=(5, 2))
    b = rng.normal(loc=3.0, scale=0.3, size=(5, 2))
    X = np.vstack([a, b])
    return pd.DataFrame({"x1": X[:, 0], "x2": X[:, 1], "label": ["A"] * 5 + ["B"] * 5})


@pytest.fixture
def class_new_data() -> pd.DataFrame:
    return pd.DataFrame(
        {"x1": [0.1, 2.9, -0.2, 3.2], "x2": [0.0, 3.1, 0.3, 2.8]},
        index=[10, 11, 12, 13],
    )
