from __future__ import annotations

"""Minimal model formula parsing.

Supported right-hand sides:

    y ~ .            all columns except the outcome
    y ~ a + b        explicit predictors
    y ~ . - c        all columns except the outcome and ``c``
    y ~ a + b - a    terms are applied left to right

``+`` and ``-`` always separate terms, so a column whose name contains them
must be quoted with backticks: ``y ~ `x-1` + b``. Names cannot contain ``~``
or backticks.

Interactions, transformations and inline functions are not supported; build
those columns before fitting.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

_SEPARATORS = "+-"


@dataclass(frozen=True)
class ParsedFormula:
    outcome: str
    predictors: Tuple[str, ...]

    def render(self) -> str:
        return f"{_quote(self.outcome)} ~ {' + '.join(_quote(p) for p in self.predictors)}"


def _quote(name: str) -> str:
    if any(ch in name for ch in _SEPARATORS) or name != name.strip() or name == ".":
        return f"`{name}`"
    return name


def _unquote(term: str) -> Tuple[str, bool]:
    if len(term) >= 2 and term[0] == "`" and term[-1] == "`":
        return term[1:-1], True
    if "`" in term:
        raise ValueError(f"Malformed quoted name: {term!r}")
    return term, False


def _tokenize(rhs: str) -> List[Tuple[str, str]]:
    """Split a right-hand side into (sign, term) pairs.

    Terms keep their backticks; separators inside backticks are literal.
    """
    out: List[Tuple[str, str]] = []
    sign = "+"
    term = ""
    quoted = False
    for ch in rhs:
        if ch == "`":
            quoted = not quoted
            term += ch
        elif ch in _SEPARATORS and not quoted:
            if term.strip():
                out.append((sign, term.strip()))
            elif out:
                raise ValueError(f"Malformed formula right-hand side: {rhs!r}")
            sign = ch
            term = ""
        else:
            term += ch
    if quoted:
        raise ValueError(f"Unclosed backtick in formula right-hand side: {rhs!r}")
    if term.strip():
        out.append((sign, term.strip()))
    elif out:
        raise ValueError(f"Malformed formula right-hand side: {rhs!r}")
    return out


def parse_formula(formula: str, columns: Sequence[str]) -> ParsedFormula:
    """Parse ``formula`` against the available ``columns``."""

    if not isinstance(formula, str) or formula.count("~") != 1:
        raise ValueError(f"Formula must contain exactly one '~'; got {formula!r}.")

    lhs, rhs = (part.strip() for part in formula.split("~"))
    lhs, _ = _unquote(lhs)
    cols = [str(c) for c in columns]

    if not lhs:
        raise ValueError(f"Formula has no outcome: {formula!r}.")
    if lhs not in cols:
        raise ValueError(f"Outcome {lhs!r} is not a column of the data.")

    terms = _tokenize(rhs)
    if not terms:
        raise ValueError(f"Formula has no predictors: {formula!r}.")

    selected: List[str] = []
    for sign, raw_term in terms:
        term, quoted = _unquote(raw_term)
        if term == "." and not quoted:
            names = [c for c in cols if c != lhs]
        else:
            if term not in cols:
                raise ValueError(f"Formula term {term!r} is not a column of the data.")
            if term == lhs:
                raise ValueError(f"Outcome {lhs!r} cannot also be a predictor.")
            names = [term]

        if sign == "+":
            selected.extend(n for n in names if n not in selected)
        else:
            selected = [n for n in selected if n not in names]

    if not selected:
        raise ValueError(f"Formula selects no predictors: {formula!r}.")

    return ParsedFormula(outcome=lhs, predictors=tuple(selected))


def make_formula(outcome: str, predictors: Sequence[str]) -> str:
    return ParsedFormula(outcome=str(outcome), predictors=tuple(str(p) for p in predictors)).render()
