"""Literal-based "choice" types shared across contracts.

Keep this file dependency-free (stdlib + typing only).
"""

from __future__ import annotations

from typing import Literal, Tuple, TypeAlias, get_args


# -----------------------------
# Modes
# -----------------------------

ModeName: TypeAlias = Literal["classification", "regression", "censored regression"]

# Declarations may leave the mode open until an engine is chosen.
DeclaredMode: TypeAlias = Literal["unknown", "classification", "regression", "censored regression"]

UNKNOWN_MODE = "unknown"
ALL_MODES: Tuple[str, ...] = get_args(ModeName)


# -----------------------------
# Fit interfaces
# -----------------------------

InterfaceKind: TypeAlias = Literal["formula", "data.frame", "matrix"]


# -----------------------------
# Predictions
# -----------------------------

PredictionType: TypeAlias = Literal["numeric", "class", "prob", "raw"]

_PREDICTION_ALIASES = {"probability": "prob"}


def normalize_prediction_type(pred_type: str) -> str:
    """Map accepted aliases (``probability``) onto canonical type names."""
    key = str(pred_type)
    return _PREDICTION_ALIASES.get(key, key)


# -----------------------------
# Categorical predictor encoding
# -----------------------------

# none:        pass factor columns through untouched
# traditional: dummy columns, reference level dropped
# one_hot:     one column per level
IndicatorKind: TypeAlias = Literal["none", "traditional", "one_hot"]


__all__ = [
    "ModeName",
    "DeclaredMode",
    "UNKNOWN_MODE",
    "ALL_MODES",
    "InterfaceKind",
    "PredictionType",
    "normalize_prediction_type",
    "IndicatorKind",
]
