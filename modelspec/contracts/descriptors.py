from __future__ import annotations

"""Data descriptors.

A descriptor summarizes the shape of the training data once it is bound to a
declaration. Deferred argument expressions are evaluated against it by the
translator; nothing else reads it.
"""

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Mapping, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from .registry_specs import EncodingPolicy


@dataclass(frozen=True)
class DataDescriptor:
    """Shape summary of bound training data.

    Attributes
    ----------
    n_predictors:
        Number of raw predictor variables (before any encoding).
    n_obs:
        Number of training rows.
    n_factors:
        Number of categorical predictor variables.
    levels:
        Outcome levels for classification, else None.
    encoded_cols:
        Post-encoding predictor width for each indicator kind
        (``none``/``traditional``/``one_hot``), intercept excluded.
    n_cols:
        Post-encoding width under the applicable policy. Only set on the copy
        returned by :meth:`for_policy`.
    """

    n_predictors: int
    n_obs: int
    n_factors: int = 0
    levels: Optional[Tuple[str, ...]] = None
    encoded_cols: Mapping[str, int] = field(default_factory=dict)
    n_cols: Optional[int] = None

    def for_policy(self, policy: "EncodingPolicy") -> "DataDescriptor":
        """Return a copy with ``n_cols`` resolved for ``policy``."""
        kind = policy.predictor_indicators
        width = int(self.encoded_cols.get(kind, self.n_predictors))
        if kind == "traditional" and not policy.compute_intercept and self.n_factors > 0:
            # without an intercept the first factor keeps its reference level
            width += 1
        if policy.keeps_intercept:
            width += 1
        return replace(self, n_cols=width)

    @property
    def n_levels(self) -> int:
        return len(self.levels) if self.levels is not None else 0
