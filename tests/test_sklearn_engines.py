from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
from scipy import sparse
from sklearn.linear_model import LinearRegression

from modelspec.api import (
    EncodingPolicy,
    FitSpec,
    PredictionSpec,
    ModelRegistry,
    augment,
    cols,
    declare,
    fit,
    fit_xy,
    multi_predict,
    predict,
    set_engine,
)
from modelspec.components.engines import LogisticRegressionAdapter, SklearnAdapter
from modelspec.contracts.training import TrainingData
from modelspec.core.errors import FitFailure


@pytest.fixture
def housing() -> pd.DataFrame:
    rng = np.random.default_rng(42)
    n = 60
    area = rng.uniform(50, 150, size=n)
    rooms = rng.integers(1, 5, size=n).astype(float)
    district = rng.choice(["north", "south", "east"], size=n)
    bump = pd.Series(district).map({"north": 10.0, "south": 0.0, "east": -5.0}).to_numpy()
    price = 2.0 * area + 5.0 * rooms + bump + rng.normal(scale=0.5, size=n)
    return pd.DataFrame({"area": area, "rooms": rooms, "district": district, "price": price})


@pytest.fixture
def iris_like() -> pd.DataFrame:
    rng = np.random.default_rng(7)
    centers = {"setosa": (0.0, 0.0), "versicolor": (3.0, 0.0), "virginica": (0.0, 3.0)}
    rows = []
    for label, (cx, cy) in centers.items():
        for _ in range(20):
            rows.append({"f1": rng.normal(cx, 0.4), "f2": rng.normal(cy, 0.4), "species": label})
    return pd.DataFrame(rows)


def test_ols_recovers_coefficients_with_factor(housing):
    decl = declare("linear_reg", engine="ols")
    fitted = fit(decl, "price ~ .", housing)

    assert fitted.mode == "regression"
    assert isinstance(fitted.fit, LinearRegression)
    assert fitted.blueprint.columns == ("area", "rooms", "district_north", "district_south")
    np.testing.assert_allclose(fitted.fit.coef_[:2], [2.0, 5.0], atol=0.2)

    out = predict(fitted, housing.drop(columns="price").iloc[:5])
    np.testing.assert_allclose(out[".pred"], housing["price"].iloc[:5], atol=2.0)


def test_elastic_net_maps_penalty_and_mixture(housing):
    decl = declare("linear_reg", mode="regression", engine="sklearn", penalty=0.01, mixture=0.5)
    fitted = fit(decl, "price ~ area + rooms", housing)

    assert fitted.template.args == {"alpha": 0.01, "l1_ratio": 0.5}
    assert fitted.fit.alpha == 0.01
    assert fitted.fit.l1_ratio == 0.5


def test_logistic_probabilities(iris_like):
    decl = declare("logistic_reg", penalty=0.1)
    fitted = fit(decl, "species ~ .", iris_like)

    assert fitted.fit.C == pytest.approx(10.0)
    new = pd.DataFrame({"f1": [0.1, 2.9, 0.0], "f2": [0.0, 0.1, 3.1]}, index=["a", "b", "c"])

    classes = predict(fitted, new)
    assert list(classes[".pred_class"]) == ["setosa", "versicolor", "virginica"]

    probs = predict(fitted, new, "prob")
    assert list(probs.columns) == ["setosa", "versicolor", "virginica"]
    assert list(probs.index) == ["a", "b", "c"]
    np.testing.assert_allclose(probs.sum(axis=1), 1.0, atol=1e-6)


@pytest.mark.parametrize(
    "args, expected",
    [
        ({"lambda": 0.5}, {"C": 2.0}),
        ({"lambda": 0.5, "l1_ratio": 1.0}, {"C": 2.0, "penalty": "l1", "solver": "saga"}),
        ({"lambda": 0.5, "l1_ratio": 0.3}, {"C": 2.0, "penalty": "elasticnet", "solver": "saga", "l1_ratio": 0.3}),
    ],
)
def test_logistic_adapter_translates_regularization(args, expected):
    est = LogisticRegressionAdapter().make_estimator(args)
    params = est.get_params()
    for key, value in expected.items():
        assert params[key] == value


def test_logistic_adapter_rejects_negative_penalty():
    with pytest.raises(ValueError, match="non-negative"):
        LogisticRegressionAdapter().make_estimator({"lambda": -1.0})


def test_unknown_native_argument_fails_the_fit(housing):
    decl = set_engine(declare("linear_reg", mode="regression"), "ols", not_a_param=1)
    with pytest.raises(FitFailure) as excinfo:
        fit(decl, "price ~ .", housing)
    assert isinstance(excinfo.value.original, TypeError)


def test_decision_tree_both_modes(housing, iris_like):
    reg_fit = fit(declare("decision_tree", mode="regression", tree_depth=3, min_n=4), "price ~ .", housing)
    assert reg_fit.fit.get_depth() <= 3
    assert reg_fit.fit.min_samples_split == 4

    cls_fit = fit(declare("decision_tree", mode="classification", cost_complexity=0.01), "species ~ .", iris_like)
    probs = predict(cls_fit, iris_like.drop(columns="species"), "prob")
    assert probs.shape == (60, 3)


def test_random_forest_mtry_from_encoded_width(housing):
    decl = declare("rand_forest", mode="regression", trees=20, mtry=cols())
    fitted = fit(decl, "price ~ .", housing)

    # one_hot: area, rooms and three district columns
    assert fitted.template.args["max_features"] == 5
    assert fitted.fit.n_estimators == 20


def test_random_forest_submodel_trees(iris_like):
    decl = declare("rand_forest", mode="classification", trees=30)
    fitted = fit(decl, "species ~ .", iris_like)
    new = iris_like.drop(columns="species").iloc[::10]

    out = multi_predict(fitted, new, "prob", trees=[1, 10, 30])

    assert list(out["trees"].unique()) == [1, 10, 30]
    assert len(fitted.fit.estimators_) == 30
    full = predict(fitted, new, "prob").reset_index(drop=True)
    last = out[out["trees"] == 30].reset_index(drop=True)[list(full.columns)]
    pd.testing.assert_frame_equal(last, full)

    with pytest.raises(ValueError, match="between 1 and 30"):
        multi_predict(fitted, new, trees=[31])


def test_knn_submodel_matches_refit(iris_like):
    new = iris_like.drop(columns="species").iloc[::7]
    base = fit(declare("nearest_neighbor", mode="classification", neighbors=5), "species ~ .", iris_like)

    out = multi_predict(base, new, "prob", neighbors=[1, 9])

    for k in (1, 9):
        refit = fit(declare("nearest_neighbor", mode="classification", neighbors=k), "species ~ .", iris_like)
        expected = predict(refit, new, "prob").reset_index(drop=True)
        got = out[out["neighbors"] == k].reset_index(drop=True)[list(expected.columns)]
        pd.testing.assert_frame_equal(got, expected)
    assert base.fit.n_neighbors == 5


def test_sparse_input_is_densified_for_dense_engines(housing):
    x = sparse.csr_matrix(housing[["area", "rooms"]].to_numpy())
    fitted = fit_xy(declare("linear_reg", engine="ols"), x, housing["price"])

    assert fitted.blueprint is not None
    assert fitted.blueprint.predictors == ("x1", "x2")


class SparseCheckingAdapter(SklearnAdapter):
    def fit(self, template, data):
        assert sparse.issparse(data.x)
        return super().fit(template, data)


def test_sparse_input_passes_through_when_allowed(housing):
    reg = ModelRegistry(name="sparse")
    reg.register_model_type("linear_reg")
    reg.register_mode("linear_reg", "regression")
    reg.register_engine("linear_reg", "regression", "sparse_ols")
    reg.register_fit_spec(
        "linear_reg", "sparse_ols", "regression",
        FitSpec(interface="matrix", adapter=SparseCheckingAdapter(LinearRegression), protect=("X", "y")),
    )
    reg.register_prediction_spec("linear_reg", "sparse_ols", "regression", "numeric", PredictionSpec(method="predict"))
    reg.register_encoding_policy(
        "linear_reg", "sparse_ols", "regression", EncodingPolicy(allow_sparse_x=True)
    )

    x = sparse.csr_matrix(housing[["area", "rooms"]].to_numpy())
    fitted = fit_xy(declare("linear_reg", registry=reg), x, housing["price"], registry=reg)

    assert fitted.blueprint is None
    out = predict(fitted, x[:3], registry=reg)
    assert out.shape == (3, 1)


def test_probabilities_follow_a_permuted_integer_index():
    train = pd.DataFrame({"x1": [-3.0, -2.0, -1.5, -1.0, 1.0, 1.5, 2.0, 3.0], "y": list("AAAABBBB")})
    fitted = fit(declare("logistic_reg"), "y ~ .", train)
    new = pd.DataFrame({"x1": [-3.0, 0.0, 3.0]}, index=[2, 1, 0])

    classes = predict(fitted, new)
    probs = predict(fitted, new, "prob")

    assert list(classes.index) == list(probs.index) == [2, 1, 0]
    assert classes.loc[2, ".pred_class"] == "A"
    assert probs.loc[2, "A"] > 0.5
    assert probs.loc[0, "B"] > 0.5


BUILTIN_CASES = [
    ("linear_reg", "ols", "regression", {}),
    ("linear_reg", "sklearn", "regression", {"penalty": 0.01}),
    ("decision_tree", "sklearn", "regression", {"tree_depth": 4}),
    ("rand_forest", "sklearn", "regression", {"trees": 10}),
    ("nearest_neighbor", "sklearn", "regression", {"neighbors": 3}),
    ("logistic_reg", "sklearn", "classification", {}),
    ("decision_tree", "sklearn", "classification", {"tree_depth": 3}),
    ("rand_forest", "sklearn", "classification", {"trees": 10}),
    ("nearest_neighbor", "sklearn", "classification", {"neighbors": 3}),
]


@pytest.mark.parametrize("seed", [0, 1, 2])
@pytest.mark.parametrize("model_type, engine, mode, args", BUILTIN_CASES)
def test_builtin_row_order_follows_shuffled_input(housing, iris_like, model_type, engine, mode, args, seed):
    frame, outcome = (housing, "price") if mode == "regression" else (iris_like, "species")
    decl = declare(model_type, mode=mode, engine=engine, **args)
    fitted = fit(decl, f"{outcome} ~ .", frame)

    new = frame.drop(columns=outcome).iloc[:15].reset_index(drop=True)
    shuffled = new.sample(frac=1, random_state=seed)

    pred_types = ("numeric",) if mode == "regression" else ("class", "prob")
    for pred_type in pred_types:
        reference = predict(fitted, new, pred_type)
        out = predict(fitted, shuffled, pred_type)

        assert list(out.index) == list(shuffled.index)
        pd.testing.assert_frame_equal(out, reference.loc[shuffled.index])


def test_prediction_uses_the_registry_the_model_was_fitted_with(housing):
    reg = ModelRegistry(name="private")
    reg.register_model_type("ols_only")
    reg.register_mode("ols_only", "regression")
    reg.register_engine("ols_only", "regression", "ols")
    reg.register_fit_spec(
        "ols_only", "ols", "regression",
        FitSpec(interface="matrix", adapter=SklearnAdapter(LinearRegression), protect=("X", "y")),
    )
    reg.register_prediction_spec("ols_only", "ols", "regression", "numeric", PredictionSpec(method="predict"))

    fitted = fit(declare("ols_only", registry=reg), "price ~ area + rooms", housing, registry=reg)
    new = housing[["area", "rooms"]].iloc[:3]

    out = predict(fitted, new)
    assert out.shape == (3, 1)
    pd.testing.assert_frame_equal(out, predict(fitted, new, registry=reg))
    assert list(augment(fitted, new).columns) == ["area", "rooms", ".pred"]
    assert fitted.template.registry is reg


def test_adapter_rejects_misaligned_training_data():
    data = TrainingData(interface="matrix", x=np.zeros((4, 2)), y=np.zeros(3), outcome="y")
    with pytest.raises(ValueError, match="one row per outcome"):
        SklearnAdapter(LinearRegression).fit(None, data)
