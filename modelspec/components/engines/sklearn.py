from __future__ import annotations

"""scikit-learn engine adapters.

An adapter builds the estimator from the call template's native arguments,
fits it on matrix-shaped training data and calls the registered predict
method. Submodel predictions work on a shallow copy of the fitted estimator,
so the original fit is never touched.
"""

import copy
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
from sklearn.linear_model import LogisticRegression

from modelspec.contracts.results import CallTemplate
from modelspec.contracts.training import TrainingData

from .common import _estimator_kwargs, _maybe_set_random_state


@dataclass
class SklearnAdapter:
    estimator_cls: type
    seed: Optional[int] = None
    # native parameters that can be changed on a fitted estimator
    submodel_params: Tuple[str, ...] = ()

    def make_estimator(self, args: Mapping[str, Any]) -> Any:
        kw = _estimator_kwargs(self.estimator_cls, args)
        _maybe_set_random_state(self.estimator_cls, kw, self.seed)
        return self.estimator_cls(**kw)

    def fit(self, template: CallTemplate, data: TrainingData) -> Any:
        if data.interface == "formula":
            raise ValueError(f"{self.estimator_cls.__name__} cannot be fitted from a formula")
        x = data.x if hasattr(data.x, "toarray") else np.asarray(data.x)
        y = np.asarray(data.y).ravel()
        if x.ndim != 2 or x.shape[0] != y.shape[0]:
            raise ValueError(f"Expected 2D predictors with one row per outcome; got {x.shape} and {y.shape}")
        est = self.make_estimator(template.args)
        est.fit(x, y)
        return est

    def predict(
        self,
        raw_fit: Any,
        new_data: Any,
        pred_type: str,
        method: str,
        args: Dict[str, Any],
    ) -> Any:
        return getattr(raw_fit, method)(new_data, **args)

    def _check_submodel(self, submodel: Mapping[str, Any]) -> None:
        unknown = sorted(k for k in submodel if k not in self.submodel_params)
        if unknown:
            raise ValueError(
                f"{self.estimator_cls.__name__} cannot vary {unknown} after fitting "
                f"(supported: {list(self.submodel_params)})"
            )

    def predict_submodel(
        self,
        raw_fit: Any,
        new_data: Any,
        pred_type: str,
        method: str,
        args: Dict[str, Any],
        submodel: Dict[str, Any],
    ) -> Any:
        self._check_submodel(submodel)
        est = copy.copy(raw_fit)
        est.set_params(**submodel)
        return self.predict(est, new_data, pred_type, method, args)


@dataclass
class ForestAdapter(SklearnAdapter):
    """Random forests predict from the first ``n_estimators`` trees of one fit."""

    submodel_params: Tuple[str, ...] = ("n_estimators",)

    def predict_submodel(
        self,
        raw_fit: Any,
        new_data: Any,
        pred_type: str,
        method: str,
        args: Dict[str, Any],
        submodel: Dict[str, Any],
    ) -> Any:
        self._check_submodel(submodel)
        n_trees = int(submodel["n_estimators"])
        fitted_trees = len(raw_fit.estimators_)
        if not 1 <= n_trees <= fitted_trees:
            raise ValueError(f"n_estimators must be between 1 and {fitted_trees}; got {n_trees}")
        est = copy.copy(raw_fit)
        est.estimators_ = raw_fit.estimators_[:n_trees]
        est.n_estimators = n_trees
        return self.predict(est, new_data, pred_type, method, args)


@dataclass
class LogisticRegressionAdapter(SklearnAdapter):
    """LogisticRegression with glmnet-style regularization arguments.

    ``lambda`` is the penalty amount (``C = 1 / lambda``; 0 means no
    penalty) and ``l1_ratio`` the lasso proportion. The sklearn penalty and
    solver are derived from the two.
    """

    estimator_cls: type = LogisticRegression

    def make_estimator(self, args: Mapping[str, Any]) -> Any:
        args = dict(args)
        amount = args.pop("lambda", None)
        mixture = args.pop("l1_ratio", None)

        kw = _estimator_kwargs(LogisticRegression, args)
        _maybe_set_random_state(LogisticRegression, kw, self.seed)

        if amount is not None:
            amount = float(amount)
            if amount < 0:
                raise ValueError(f"penalty must be non-negative; got {amount}")
            if amount == 0:
                kw["penalty"] = None
            else:
                kw["C"] = 1.0 / amount

        if mixture is not None and kw.get("penalty", "l2") is not None:
            mixture = float(mixture)
            if not 0.0 <= mixture <= 1.0:
                raise ValueError(f"mixture must be in [0, 1]; got {mixture}")
            # sklearn quirks: penalty/solver/l1_ratio interplay
            if mixture == 1.0:
                kw["penalty"] = "l1"
                kw["solver"] = "saga" if kw.get("solver") not in ("liblinear", "saga") else kw["solver"]
            elif mixture > 0.0:
                kw["penalty"] = "elasticnet"
                kw["solver"] = "saga"
                kw["l1_ratio"] = mixture

        if kw.get("penalty", "l2") is None and kw.get("solver") == "liblinear":
            kw["solver"] = "lbfgs"

        return LogisticRegression(**kw)
