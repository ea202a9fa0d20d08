"""Prediction components.

Public API:
- predict_fitted
- multi_predict
- augment

Output normalization helpers live in :mod:`.normalize`.
"""

from .predicting import augment, multi_predict, predict_fitted

__all__ = [
    "predict_fitted",
    "multi_predict",
    "augment",
]
