from __future__ import annotations

"""Result contracts.

- Registry snapshots (``describe``): JSON-friendly, strict.
- Resolved call templates and fitted models: carry opaque engine objects, so
  they allow arbitrary types.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .declaration import ModelDeclaration
from .descriptors import DataDescriptor
from .registry_specs import EncodingPolicy


class ResultModel(BaseModel):
    """Base class for snapshot contracts (strict by default)."""

    model_config = ConfigDict(extra="forbid", protected_namespaces=())


# ---------------------------------------------------------------------------
# describe() snapshots
# ---------------------------------------------------------------------------


class ArgumentSummary(ResultModel):
    engine: str
    canonical: str
    native: str
    has_submodel: bool = False
    constructor: Optional[str] = None


class EngineSummary(ResultModel):
    engine: str
    mode: str
    packages: List[str] = Field(default_factory=list)
    fit_interface: Optional[str] = None
    prediction_types: List[str] = Field(default_factory=list)
    encoding: Dict[str, Any] = Field(default_factory=dict)


class ModelTypeSummary(ResultModel):
    model_type: str
    modes: List[str] = Field(default_factory=list)
    default_engine: Optional[str] = None
    engines: List[EngineSummary] = Field(default_factory=list)
    arguments: List[ArgumentSummary] = Field(default_factory=list)

    def engines_for(self, mode: str) -> List[str]:
        return [e.engine for e in self.engines if e.mode == mode]


# ---------------------------------------------------------------------------
# Translation / fitting
# ---------------------------------------------------------------------------


class CallTemplate(BaseModel):
    """A declaration resolved against the registry and a data descriptor.

    ``args`` uses engine-native names and holds only concrete values: engine
    defaults overlaid by the declaration's arguments.
    ``registry`` is the registry the template was resolved against; prediction
    looks up its specs there unless the caller passes another one.
    """

    model_config = ConfigDict(
        extra="forbid", frozen=True, arbitrary_types_allowed=True, protected_namespaces=()
    )

    model_type: str
    engine: str
    mode: str
    interface: str
    adapter: Any
    protect: Tuple[str, ...] = ()
    args: Dict[str, Any] = Field(default_factory=dict)
    encoding: EncodingPolicy
    descriptor: DataDescriptor
    declaration: ModelDeclaration
    registry: Any = Field(default=None, exclude=True, repr=False)


class FittedModel(BaseModel):
    """Normalized output of the fit dispatcher.

    ``fit`` is the engine-native fitted object and is opaque to modelspec.
    ``blueprint`` records how predictors were encoded so new data can be
    encoded identically at predict time.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    fit: Any
    template: CallTemplate
    levels: Optional[Tuple[str, ...]] = None
    blueprint: Optional[Any] = None
    elapsed: float = 0.0

    @property
    def model_type(self) -> str:
        return self.template.model_type

    @property
    def engine(self) -> str:
        return self.template.engine

    @property
    def mode(self) -> str:
        return self.template.mode

    @property
    def declaration(self) -> ModelDeclaration:
        return self.template.declaration

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"FittedModel(model_type={self.model_type!r}, engine={self.engine!r}, "
            f"mode={self.mode!r}, fit={type(self.fit).__name__})"
        )


__all__ = [
    "ResultModel",
    "ArgumentSummary",
    "EngineSummary",
    "ModelTypeSummary",
    "CallTemplate",
    "FittedModel",
]
