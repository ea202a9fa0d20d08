"""Engine adapters.

Adapters turn a resolved call template into a concrete engine call:

    from modelspec.components.engines import SklearnAdapter, ...
"""

from .sklearn import ForestAdapter, LogisticRegressionAdapter, SklearnAdapter

__all__ = [
    "SklearnAdapter",
    "ForestAdapter",
    "LogisticRegressionAdapter",
]
