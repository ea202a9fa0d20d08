from __future__ import annotations

"""Categorical predictor encoding.

An :class:`EncodingBlueprint` is learned from the training predictors under an
:class:`~modelspec.contracts.registry_specs.EncodingPolicy` and replayed on new
data, so prediction sees exactly the training columns in the training order.
Levels unseen during training encode as all-zero indicator rows.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype

from modelspec.contracts.registry_specs import EncodingPolicy

INTERCEPT_COLUMN = "(Intercept)"


def is_categorical(series: pd.Series) -> bool:
    """Factor-like columns: category/object/string dtypes and booleans."""
    if is_bool_dtype(series.dtype):
        return True
    return not is_numeric_dtype(series.dtype)


def column_levels(series: pd.Series) -> Tuple[str, ...]:
    if isinstance(series.dtype, pd.CategoricalDtype):
        return tuple(str(c) for c in series.cat.categories)
    values = series.dropna().astype(str).unique().tolist()
    return tuple(sorted(values))


def count_encoded_columns(x: pd.DataFrame) -> Dict[str, int]:
    """Predictor width under each indicator kind (intercept excluded)."""
    numeric = 0
    traditional = 0
    one_hot = 0
    for name in x.columns:
        col = x[name]
        if is_categorical(col):
            n_levels = len(column_levels(col))
            traditional += max(n_levels - 1, 0)
            one_hot += n_levels
        else:
            numeric += 1
    return {
        "none": int(x.shape[1]),
        "traditional": numeric + traditional,
        "one_hot": numeric + one_hot,
    }


@dataclass(frozen=True)
class EncodingBlueprint:
    policy: EncodingPolicy
    predictors: Tuple[str, ...]
    factors: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    columns: Tuple[str, ...] = ()

    @property
    def n_cols(self) -> int:
        return len(self.columns)

    def _indicator_levels(self, name: str, first_factor: bool) -> Tuple[str, ...]:
        levels = self.factors[name]
        kind = self.policy.predictor_indicators
        if kind == "one_hot":
            return levels
        if kind == "traditional":
            if first_factor and not self.policy.compute_intercept:
                return levels
            return levels[1:]
        return ()

    def transform(self, x: pd.DataFrame) -> pd.DataFrame:
        """Encode ``x``; the output keeps ``x``'s index and row order."""
        missing = [c for c in self.predictors if c not in x.columns]
        if missing:
            raise ValueError(f"Data is missing predictor columns: {missing}")

        if self.policy.predictor_indicators == "none":
            out = x.loc[:, list(self.predictors)].copy()
            for name, levels in self.factors.items():
                out[name] = pd.Categorical(out[name].astype(str), categories=list(levels))
        else:
            parts: Dict[str, pd.Series] = {}
            first_factor = True
            for name in self.predictors:
                col = x[name]
                if name not in self.factors:
                    parts[name] = col.astype(float)
                    continue
                as_text = col.astype(str)
                for level in self._indicator_levels(name, first_factor):
                    parts[f"{name}_{level}"] = (as_text == level).astype(float)
                first_factor = False
            out = pd.DataFrame(parts, index=x.index)

        if self.policy.keeps_intercept:
            out.insert(0, INTERCEPT_COLUMN, 1.0)
        return out

    def to_matrix(self, x: pd.DataFrame) -> np.ndarray:
        encoded = self.transform(x)
        if self.factors and self.policy.predictor_indicators == "none":
            raise ValueError(
                "Matrix interfaces need numeric predictors; categorical columns "
                f"{sorted(self.factors)} are not expanded under predictor_indicators='none'."
            )
        return encoded.to_numpy(dtype=float)


def build_blueprint(x: pd.DataFrame, policy: EncodingPolicy) -> EncodingBlueprint:
    """Learn the encoding of ``x`` under ``policy``."""
    factors = {str(c): column_levels(x[c]) for c in x.columns if is_categorical(x[c])}
    predictors = tuple(str(c) for c in x.columns)

    draft = EncodingBlueprint(policy=policy, predictors=predictors, factors=factors)
    columns: List[str] = []
    if policy.keeps_intercept:
        columns.append(INTERCEPT_COLUMN)
    if policy.predictor_indicators == "none":
        columns.extend(predictors)
    else:
        first_factor = True
        for name in predictors:
            if name not in factors:
                columns.append(name)
                continue
            columns.extend(f"{name}_{lvl}" for lvl in draft._indicator_levels(name, first_factor))
            first_factor = False

    return EncodingBlueprint(
        policy=policy,
        predictors=predictors,
        factors=factors,
        columns=tuple(columns),
    )
