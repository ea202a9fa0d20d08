from __future__ import annotations

import pytest

from modelspec.core.formula import make_formula, parse_formula

COLUMNS = ["y", "a", "b", "c"]


@pytest.mark.parametrize(
    "formula, predictors",
    [
        ("y ~ .", ("a", "b", "c")),
        ("y ~ a + b", ("a", "b")),
        ("y~c+a", ("c", "a")),
        ("y ~ . - b", ("a", "c")),
        ("y ~ a + b - a", ("b",)),
        ("y ~ a + a", ("a",)),
    ],
)
def test_parse(formula, predictors):
    parsed = parse_formula(formula, COLUMNS)
    assert parsed.outcome == "y"
    assert parsed.predictors == predictors


@pytest.mark.parametrize(
    "formula, match",
    [
        ("y a", "exactly one"),
        ("y ~ a ~ b", "exactly one"),
        (" ~ a", "no outcome"),
        ("z ~ a", "not a column"),
        ("y ~ d", "not a column"),
        ("y ~ y", "cannot also be a predictor"),
        ("y ~ a + ", "Malformed"),
        ("y ~ . - a - b - c", "selects no predictors"),
        ("y ~ ", "no predictors"),
    ],
)
def test_parse_errors(formula, match):
    with pytest.raises(ValueError, match=match):
        parse_formula(formula, COLUMNS)


def test_make_formula():
    assert make_formula("y", ["a", "b"]) == "y ~ a + b"


def test_backticks_quote_names_with_separators():
    columns = ["y", "x-1", "a+b", "c"]

    assert parse_formula("y ~ `x-1` + c", columns).predictors == ("x-1", "c")
    assert parse_formula("y ~ . - `a+b`", columns).predictors == ("x-1", "c")
    with pytest.raises(ValueError, match="not a column"):
        parse_formula("y ~ x-1", columns)
    with pytest.raises(ValueError, match="Unclosed"):
        parse_formula("y ~ `x-1 + c", columns)


def test_make_formula_quotes_what_needs_it():
    formula = make_formula("y", ["x-1", "c"])
    assert formula == "y ~ `x-1` + c"
    assert parse_formula(formula, ["y", "x-1", "c"]).predictors == ("x-1", "c")
