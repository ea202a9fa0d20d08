from __future__ import annotations

import inspect
from typing import Any, Dict, Mapping, Optional


def _estimator_kwargs(estimator_cls: type, args: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop None values and check every remaining kwarg is accepted by the estimator."""
    raw = {k: v for k, v in args.items() if v is not None}
    allowed = set(inspect.signature(estimator_cls).parameters.keys())
    rejected = sorted(k for k in raw if k not in allowed)
    if rejected:
        raise TypeError(f"{estimator_cls.__name__} does not accept arguments {rejected}")
    return raw


def _maybe_set_random_state(estimator_cls: type, kw: Dict[str, Any], seed: Optional[int]) -> None:
    if seed is None:
        return
    sig = inspect.signature(estimator_cls)
    if "random_state" in sig.parameters and "random_state" not in kw:
        kw["random_state"] = int(seed)
