from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from modelspec.api import declare, fit, fit_xy
from modelspec.contracts.registry_specs import FitSpec, PredictionSpec
from modelspec.core.errors import FitFailure, ModeMismatch


class ExplodingAdapter:
    def fit(self, template, data):
        raise ZeroDivisionError("singular design")

    def predict(self, raw_fit, new_data, pred_type, method, args):
        raise AssertionError("never fitted")


def test_engine_error_is_wrapped_with_original(toy, regression_frame):
    reg = toy.registry
    reg.register_engine("toy_linear", "regression", "stub_broken")
    reg.register_fit_spec(
        "toy_linear", "stub_broken", "regression", FitSpec(interface="matrix", adapter=ExplodingAdapter())
    )
    decl = declare("toy_linear", mode="regression", engine="stub_broken", registry=reg)

    with pytest.raises(FitFailure) as excinfo:
        fit(decl, "y ~ .", regression_frame, registry=reg)

    err = excinfo.value
    assert isinstance(err.original, ZeroDivisionError)
    assert err.__cause__ is err.original
    assert (err.model_type, err.engine, err.mode) == ("toy_linear", "stub_broken", "regression")
    assert "singular design" in str(err)


def test_fit_leaves_declaration_untouched(toy, regression_frame):
    decl = declare("toy_linear", mode="regression", engine="stub_ols", registry=toy.registry, penalty=0.5)
    before = decl.model_dump()

    fitted = fit(decl, "y ~ .", regression_frame, registry=toy.registry)

    assert decl.model_dump() == before
    assert fitted.declaration == decl
    assert fitted.template.args == {"lambda": 0.5}
    assert fitted.levels is None
    assert fitted.elapsed >= 0.0
    assert toy.ols.fit_calls == 1


@pytest.mark.parametrize(
    "formula, expected",
    [
        ("y ~ .", ["x1", "x2"]),
        ("y ~ x1", ["x1"]),
        ("y ~ . - x1", ["x2"]),
        ("y ~ x2 + x1", ["x2", "x1"]),
    ],
)
def test_formula_selects_predictors(toy, regression_frame, formula, expected):
    decl = declare("toy_linear", mode="regression", engine="stub_ols", registry=toy.registry)
    fitted = fit(decl, formula, regression_frame, registry=toy.registry)

    assert toy.ols.last_columns == expected
    assert fitted.blueprint.predictors == tuple(expected)


def test_fit_xy_accepts_numpy(toy, regression_frame):
    decl = declare("toy_linear", mode="regression", engine="stub_ols", registry=toy.registry)
    x = regression_frame[["x1", "x2"]].to_numpy()
    y = regression_frame["y"].to_numpy()

    fitted = fit_xy(decl, x, y, registry=toy.registry)

    assert toy.ols.last_columns == ["x1", "x2"]
    coef = fitted.fit["coef"]
    np.testing.assert_allclose(coef, [1.0, 2.0, -1.0], atol=0.05)


def test_classification_captures_levels(toy, class_frame):
    decl = declare("toy_tree", mode="classification", engine="stub_ranger", registry=toy.registry)
    fitted = fit(decl, "label ~ .", class_frame, registry=toy.registry)

    assert fitted.levels == ("A", "B")
    assert fitted.mode == "classification"


def test_classification_needs_two_levels(toy, class_frame):
    decl = declare("toy_tree", mode="classification", engine="stub_ranger", registry=toy.registry)
    one_level = class_frame.assign(label="A")

    with pytest.raises(ValueError, match="at least 2 outcome levels"):
        fit(decl, "label ~ .", one_level, registry=toy.registry)
    assert toy.ranger.fit_calls == 0


def test_regression_outcome_must_be_numeric(toy, class_frame):
    decl = declare("toy_linear", mode="regression", engine="stub_ols", registry=toy.registry)
    with pytest.raises(ValueError, match="must be numeric"):
        fit(decl, "label ~ .", class_frame, registry=toy.registry)


def test_unset_mode_fails_before_engine_runs(toy, regression_frame):
    toy.registry.register_mode("toy_linear", "classification")
    decl = declare("toy_linear", registry=toy.registry)

    with pytest.raises(ModeMismatch):
        fit(decl, "y ~ .", regression_frame, registry=toy.registry)
    assert toy.ols.fit_calls == 0


def test_fit_xy_rejects_misaligned_lengths(toy, regression_frame):
    decl = declare("toy_linear", mode="regression", engine="stub_ols", registry=toy.registry)
    with pytest.raises(ValueError, match="length mismatch"):
        fit_xy(decl, regression_frame[["x1", "x2"]], regression_frame["y"].iloc[:5], registry=toy.registry)


class FormulaAdapter:
    def __init__(self):
        self.seen = None

    def fit(self, template, data):
        self.seen = data
        return {"mean": float(data.data[data.outcome].mean())}

    def predict(self, raw_fit, new_data, pred_type, method, args):
        return np.full(len(new_data), raw_fit["mean"])


def test_formula_interface_receives_formula_and_frame(registry, regression_frame):
    adapter = FormulaAdapter()
    registry.register_model_type("mean_model")
    registry.register_mode("mean_model", "regression")
    registry.register_engine("mean_model", "regression", "r_mean")
    registry.register_fit_spec(
        "mean_model", "r_mean", "regression", FitSpec(interface="formula", adapter=adapter, protect=("formula", "data"))
    )
    registry.register_prediction_spec(
        "mean_model", "r_mean", "regression", "numeric", PredictionSpec(method="predict")
    )

    decl = declare("mean_model", engine="r_mean", registry=registry)
    fit_xy(decl, regression_frame[["x1", "x2"]], regression_frame["y"].rename("y"), registry=registry)

    assert adapter.seen.interface == "formula"
    assert adapter.seen.formula == "y ~ x1 + x2"
    assert list(adapter.seen.data.columns) == ["x1", "x2", "y"]
