from __future__ import annotations

"""Tuning parameter constructors.

A constructor describes the candidate values of one tunable argument:

- :class:`ParamRange`: a numeric interval, optionally on a log10 scale and/or
  restricted to integers. Bounds are given on the transformed scale
  (``penalty()`` spans ``10**-10 .. 10**0``).
- :class:`ParamValues`: a fixed set of qualitative values.

Ranges whose bounds depend on the data (``mtry``) are left open until
:meth:`ParamRange.finalize` is called with a data descriptor.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.model_selection import ParameterGrid

from modelspec.components.translation import resolve_engine
from modelspec.contracts.declaration import ModelDeclaration, is_tune
from modelspec.contracts.descriptors import DataDescriptor
from modelspec.registries.models import ModelRegistry, resolve_registry

logger = logging.getLogger(__name__)

# transform name -> inverse (transformed scale back to natural units)
_TRANSFORMS = {
    None: lambda v: v,
    "log10": lambda v: np.power(10.0, v),
}


@dataclass(frozen=True)
class ParamRange:
    name: str
    lower: Optional[float]
    upper: Optional[float]
    transform: Optional[str] = None
    integer: bool = False
    label: str = ""
    finalizer: Optional[Callable[["ParamRange", DataDescriptor], "ParamRange"]] = None

    def __post_init__(self) -> None:
        if self.transform not in _TRANSFORMS:
            raise ValueError(f"Unknown transform {self.transform!r}; expected one of {list(_TRANSFORMS)}")
        if self.lower is not None and self.upper is not None and self.lower > self.upper:
            raise ValueError(f"{self.name}: lower bound {self.lower} exceeds upper bound {self.upper}")

    @property
    def is_finalized(self) -> bool:
        return self.lower is not None and self.upper is not None

    def _bounds(self) -> Tuple[float, float]:
        if not self.is_finalized:
            raise ValueError(
                f"Parameter {self.name!r} has unknown bounds; call finalize() with a data descriptor first"
            )
        return float(self.lower), float(self.upper)

    def _values(self, transformed: np.ndarray) -> List[Any]:
        inverse = _TRANSFORMS[self.transform]
        values = np.asarray(inverse(transformed), dtype=float)
        if not self.integer:
            return [float(v) for v in values]
        out: List[int] = []
        for v in np.rint(values).astype(int):
            if int(v) not in out:
                out.append(int(v))
        return out

    def grid(self, levels: int = 3) -> List[Any]:
        """``levels`` evenly spaced values (on the transformed scale)."""
        if levels < 1:
            raise ValueError(f"levels must be >= 1; got {levels}")
        lo, hi = self._bounds()
        return self._values(np.linspace(lo, hi, levels))

    def sample(self, n: int, seed: Optional[int] = None) -> List[Any]:
        """``n`` uniform random values (on the transformed scale)."""
        lo, hi = self._bounds()
        rng = np.random.default_rng(seed)
        if self.integer and self.transform is None:
            return [int(v) for v in rng.integers(int(lo), int(hi) + 1, size=n)]
        inverse = _TRANSFORMS[self.transform]
        values = np.asarray(inverse(rng.uniform(lo, hi, size=n)), dtype=float)
        if self.integer:
            return [int(v) for v in np.rint(values)]
        return [float(v) for v in values]

    def finalize(self, descriptor: DataDescriptor) -> "ParamRange":
        """Fill data-dependent bounds from ``descriptor``."""
        if self.finalizer is None:
            return self
        return self.finalizer(self, descriptor)


@dataclass(frozen=True)
class ParamValues:
    name: str
    values: Tuple[Any, ...]
    label: str = ""

    @property
    def is_finalized(self) -> bool:
        return True

    def grid(self, levels: Optional[int] = None) -> List[Any]:
        values = list(self.values)
        return values if levels is None else values[: max(int(levels), 0)]

    def sample(self, n: int, seed: Optional[int] = None) -> List[Any]:
        rng = np.random.default_rng(seed)
        picks = rng.integers(0, len(self.values), size=n)
        return [self.values[int(i)] for i in picks]

    def finalize(self, descriptor: DataDescriptor) -> "ParamValues":
        return self


Param = Union[ParamRange, ParamValues]


# ---------------------------------------------------------------------------
# Built-in constructors
# ---------------------------------------------------------------------------


def penalty(range: Tuple[float, float] = (-10.0, 0.0), transform: Optional[str] = "log10") -> ParamRange:
    return ParamRange("penalty", range[0], range[1], transform=transform, label="Amount of Regularization")


def mixture(range: Tuple[float, float] = (0.0, 1.0)) -> ParamRange:
    return ParamRange("mixture", range[0], range[1], label="Proportion of Lasso Penalty")


def neighbors(range: Tuple[int, int] = (1, 10)) -> ParamRange:
    return ParamRange("neighbors", range[0], range[1], integer=True, label="# Nearest Neighbors")


def tree_depth(range: Tuple[int, int] = (1, 15)) -> ParamRange:
    return ParamRange("tree_depth", range[0], range[1], integer=True, label="Tree Depth")


def min_n(range: Tuple[int, int] = (2, 40)) -> ParamRange:
    return ParamRange("min_n", range[0], range[1], integer=True, label="Minimal Node Size")


def trees(range: Tuple[int, int] = (1, 2000)) -> ParamRange:
    return ParamRange("trees", range[0], range[1], integer=True, label="# Trees")


def _mtry_upper(param: ParamRange, descriptor: DataDescriptor) -> ParamRange:
    return replace(param, upper=descriptor.n_predictors)


def mtry(range: Tuple[int, Optional[int]] = (1, None)) -> ParamRange:
    """Randomly selected predictors; the upper bound defaults to the predictor count."""
    return ParamRange(
        "mtry",
        range[0],
        range[1],
        integer=True,
        label="# Randomly Selected Predictors",
        finalizer=_mtry_upper if range[1] is None else None,
    )


def cost_complexity(range: Tuple[float, float] = (-10.0, -1.0)) -> ParamRange:
    return ParamRange("cost_complexity", range[0], range[1], transform="log10", label="Cost-Complexity Parameter")


def weight_func(values: Sequence[str] = ("uniform", "distance")) -> ParamValues:
    return ParamValues("weight_func", tuple(values), label="Distance Weighting Function")


# ---------------------------------------------------------------------------
# Declaration helpers
# ---------------------------------------------------------------------------


def tunable(declaration: ModelDeclaration, registry: Optional[ModelRegistry] = None) -> pd.DataFrame:
    """Arguments of ``declaration`` marked ``tune()``, with their constructors.

    Columns: ``name`` (canonical), ``id`` (placeholder id or the name),
    ``native`` and ``constructor`` (None when the engine registers none).
    Engine-specific arguments marked ``tune()`` are listed with their native
    name and no constructor.
    """

    reg = resolve_registry(registry)
    engine = resolve_engine(declaration, reg)
    specs = reg.arguments(declaration.model_type, engine)

    rows = []
    for name, value in declaration.args.items():
        if not is_tune(value):
            continue
        spec = specs.get(name)
        rows.append(
            {
                "name": name,
                "id": value.id or name,
                "native": spec.native if spec is not None else None,
                "constructor": spec.constructor if spec is not None else None,
            }
        )
    for name, value in declaration.engine_args.items():
        if is_tune(value):
            rows.append({"name": name, "id": value.id or name, "native": name, "constructor": None})

    return pd.DataFrame(rows, columns=["name", "id", "native", "constructor"])


def grid_regular(params: Sequence[Param], levels: Union[int, Sequence[int]] = 3) -> pd.DataFrame:
    """Regular grid: every combination of each parameter's grid values.

    ``levels`` is one count for all parameters or one per parameter.
    Qualitative parameters always contribute all of their values. Rows are
    expanded with scikit-learn's ``ParameterGrid``; columns keep the order of
    ``params``.
    """

    params = list(params)
    if isinstance(levels, int):
        per_param = [levels] * len(params)
    else:
        per_param = [int(n) for n in levels]
        if len(per_param) != len(params):
            raise ValueError(f"Got {len(per_param)} level counts for {len(params)} parameters")

    names = [p.name for p in params]
    if len(set(names)) != len(names):
        raise ValueError(f"Parameter names must be unique; got {names}")

    axes = {}
    for param, n in zip(params, per_param):
        if isinstance(param, ParamValues):
            axes[param.name] = list(param.grid())
        else:
            axes[param.name] = list(param.grid(n))

    rows = list(ParameterGrid(axes))
    logger.debug("regular grid over %s: %d candidates", names, len(rows))
    return pd.DataFrame(rows, columns=names)
