from __future__ import annotations

"""Model declarations and argument values.

A declaration is an unevaluated model specification: model type, mode, engine
and argument values. Each argument value is one of

- a concrete value (anything that is not one of the two types below),
- :class:`Deferred`: an expression evaluated once data is bound,
- :class:`TunePlaceholder` (from :func:`tune`): a value to be chosen by tuning.

Declarations are frozen. The ``with_*`` methods return updated copies; the
registry-aware front-ends live in :mod:`modelspec.components.declarations`.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .choices import UNKNOWN_MODE, DeclaredMode


@dataclass(frozen=True)
class Deferred:
    """An argument value computed from context that is not available yet.

    For fit arguments ``fn`` receives a
    :class:`~modelspec.contracts.descriptors.DataDescriptor`; for prediction
    arguments it receives a
    :class:`~modelspec.contracts.registry_specs.PredictionContext`.
    """

    fn: Callable[[Any], Any]
    label: str = "<deferred>"

    def evaluate(self, context: Any) -> Any:
        return self.fn(context)

    def __repr__(self) -> str:
        return f"Deferred({self.label})"


@dataclass(frozen=True)
class TunePlaceholder:
    """Marks an argument whose value will be chosen by tuning."""

    id: str = ""

    def __repr__(self) -> str:
        return f"tune({self.id!r})" if self.id else "tune()"


def tune(id: str = "") -> TunePlaceholder:
    """Return a placeholder meaning "to be tuned"."""
    return TunePlaceholder(id=str(id))


def is_tune(value: Any) -> bool:
    return isinstance(value, TunePlaceholder)


# ---------------------------------------------------------------------------
# Descriptor shortcuts
# ---------------------------------------------------------------------------


def preds() -> Deferred:
    """Number of raw predictor variables."""
    return Deferred(lambda d: d.n_predictors, ".preds()")


def cols() -> Deferred:
    """Number of predictor columns after categorical encoding."""
    return Deferred(lambda d: d.n_cols, ".cols()")


def obs() -> Deferred:
    """Number of training rows."""
    return Deferred(lambda d: d.n_obs, ".obs()")


def lev() -> Deferred:
    """Number of outcome levels (0 for non-classification data)."""
    return Deferred(lambda d: d.n_levels, ".lev()")


def facts() -> Deferred:
    """Number of categorical predictors."""
    return Deferred(lambda d: d.n_factors, ".facts()")


# ---------------------------------------------------------------------------
# Declaration
# ---------------------------------------------------------------------------


class ModelDeclaration(BaseModel):
    """A user-built, unevaluated model specification.

    ``args`` uses canonical argument names; ``engine_args`` uses the engine's
    native names and is only set through ``set_engine``.
    """

    model_config = ConfigDict(
        extra="forbid", frozen=True, arbitrary_types_allowed=True, protected_namespaces=()
    )

    model_type: str
    mode: DeclaredMode = UNKNOWN_MODE
    engine: Optional[str] = None
    args: Dict[str, Any] = Field(default_factory=dict)
    engine_args: Dict[str, Any] = Field(default_factory=dict)

    @property
    def mode_resolved(self) -> bool:
        return self.mode != UNKNOWN_MODE

    def tune_args(self) -> List[str]:
        """Names (canonical or native) still holding tune() placeholders."""
        names = [k for k, v in self.args.items() if is_tune(v)]
        names += [k for k, v in self.engine_args.items() if is_tune(v)]
        return names

    @property
    def is_finalized(self) -> bool:
        return not self.tune_args()

    def with_mode(self, mode: str) -> "ModelDeclaration":
        return self.model_copy(update={"mode": mode})

    def with_engine(self, engine: str, engine_args: Optional[Mapping[str, Any]] = None) -> "ModelDeclaration":
        update: Dict[str, Any] = {"engine": engine}
        if engine_args is not None:
            update["engine_args"] = dict(engine_args)
        return self.model_copy(update=update)

    def with_args(self, **args: Any) -> "ModelDeclaration":
        merged = dict(self.args)
        merged.update(args)
        return self.model_copy(update={"args": merged})

    def finalize(self, values: Mapping[str, Any]) -> "ModelDeclaration":
        """Replace tune() placeholders with concrete values.

        Keys match either the argument name or the placeholder id. Names in
        ``values`` that do not refer to a placeholder are ignored, so a row of
        a tuning grid can be passed as-is.
        """

        def _fill(current: Dict[str, Any]) -> Dict[str, Any]:
            out = dict(current)
            for name, value in current.items():
                if not is_tune(value):
                    continue
                if value.id and value.id in values:
                    out[name] = values[value.id]
                elif name in values:
                    out[name] = values[name]
            return out

        return self.model_copy(
            update={"args": _fill(self.args), "engine_args": _fill(self.engine_args)}
        )

    def __str__(self) -> str:  # pragma: no cover
        shown = ", ".join(f"{k}={v!r}" for k, v in self.args.items())
        return (
            f"{self.model_type} ({self.mode}) engine={self.engine or '<default>'}"
            + (f" args: {shown}" if shown else "")
        )


__all__ = [
    "Deferred",
    "TunePlaceholder",
    "tune",
    "is_tune",
    "preds",
    "cols",
    "obs",
    "lev",
    "facts",
    "ModelDeclaration",
]
