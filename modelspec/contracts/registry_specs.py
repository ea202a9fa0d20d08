from __future__ import annotations

"""Registration contracts.

These pydantic models describe what an engine registers: its arguments, how to
fit it, how to predict from it and how categorical predictors reach it. They
are validated on construction and immutable afterwards, so a registry can hand
them out to concurrent readers without copying.
"""

from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .choices import IndicatorKind, InterfaceKind


class SpecModel(BaseModel):
    """Base class for registration contracts (strict, frozen)."""

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)


class ArgumentSpec(SpecModel):
    """A hyperparameter exposed under a canonical name.

    ``constructor`` is a parameter constructor from
    :mod:`modelspec.components.tuning.params` (or any object with the same
    ``grid``/``sample`` surface) used to generate candidate tuning values.
    """

    canonical: str
    native: str
    constructor: Optional[Any] = None
    has_submodel: bool = False


class FitSpec(SpecModel):
    """How to invoke an engine's fitting routine.

    ``protect`` names the native argument slots filled by the dispatcher from
    the bound training data; callers can never set them.
    """

    interface: InterfaceKind
    adapter: Any
    protect: Tuple[str, ...] = ()
    defaults: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _defaults_do_not_touch_protected(self) -> "FitSpec":
        clash = sorted(set(self.defaults) & set(self.protect))
        if clash:
            raise ValueError(f"defaults may not set protected arguments: {clash}")
        if not hasattr(self.adapter, "fit"):
            raise ValueError("adapter must define a 'fit' method.")
        return self


class PredictionSpec(SpecModel):
    """How to produce one prediction type from a fitted engine object.

    - ``pre(new_data, fitted)`` runs before the engine call.
    - ``post(raw_output, fitted)`` runs on the engine's raw output.
    - ``args`` values may be :class:`modelspec.contracts.declaration.Deferred`;
      those receive a :class:`PredictionContext` at predict time.
    """

    method: str
    pre: Optional[Callable[..., Any]] = None
    post: Optional[Callable[..., Any]] = None
    args: Dict[str, Any] = Field(default_factory=dict)


class EncodingPolicy(SpecModel):
    """How categorical predictors are expanded before reaching the engine."""

    predictor_indicators: IndicatorKind = "traditional"
    compute_intercept: bool = True
    remove_intercept: bool = True
    allow_sparse_x: bool = False

    @property
    def keeps_intercept(self) -> bool:
        return self.compute_intercept and not self.remove_intercept


DEFAULT_ENCODING = EncodingPolicy()


class PredictionContext(BaseModel):
    """What deferred prediction arguments can see."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    fitted: Any
    new_data: Any


__all__ = [
    "ArgumentSpec",
    "FitSpec",
    "PredictionSpec",
    "EncodingPolicy",
    "DEFAULT_ENCODING",
    "PredictionContext",
]
