from __future__ import annotations

"""Model/engine registry.

The registry maps

    model type -> modes -> engines -> (fit spec, prediction specs, encoding)

plus, per (model type, engine), the canonical arguments the engine accepts.

It is an explicit object: build one per test, or use the lazily populated
process-wide instance from :func:`default_registry`. Registration is expected
to happen during single-threaded initialization; afterwards every read method
is safe to call from concurrent workers.

Each mutation runs all of its existence checks before touching state, so a
failed call leaves the registry exactly as it was.
"""

import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional, Tuple, get_args

from modelspec.contracts.choices import ALL_MODES, PredictionType, normalize_prediction_type
from modelspec.contracts.registry_specs import (
    DEFAULT_ENCODING,
    ArgumentSpec,
    EncodingPolicy,
    FitSpec,
    PredictionSpec,
)
from modelspec.contracts.results import (
    ArgumentSummary,
    EngineSummary,
    ModelTypeSummary,
)
from modelspec.core.errors import (
    DuplicateRegistration,
    InvalidMode,
    UnknownEngine,
    UnknownModelType,
    UnregisteredMode,
)
from modelspec.registries.base import Registry

logger = logging.getLogger(__name__)

_PREDICTION_TYPES = frozenset(get_args(PredictionType))


@dataclass
class _EngineEntry:
    engine: str
    mode: str
    packages: List[str] = field(default_factory=list)
    fit: Optional[FitSpec] = None
    predict: Dict[str, PredictionSpec] = field(default_factory=dict)
    encoding: Optional[EncodingPolicy] = None


@dataclass
class _ModelTypeEntry:
    name: str
    modes: List[str] = field(default_factory=list)
    default_engine: Optional[str] = None
    # keyed by (mode, engine)
    engines: Dict[Tuple[str, str], _EngineEntry] = field(default_factory=dict)
    # engine -> canonical name -> spec
    arguments: Dict[str, Dict[str, ArgumentSpec]] = field(default_factory=dict)

    def engine_names(self, mode: Optional[str] = None) -> List[str]:
        out: List[str] = []
        for (m, e) in self.engines:
            if mode is not None and m != mode:
                continue
            if e not in out:
                out.append(e)
        return out


def _constructor_name(ref: Any) -> Optional[str]:
    if ref is None:
        return None
    name = getattr(ref, "name", None)
    if isinstance(name, str):
        return name
    return getattr(ref, "__name__", type(ref).__name__)


class ModelRegistry:
    """Registry of model types, modes, engines and their specifications."""

    def __init__(self, name: str = "models") -> None:
        self._types: Registry[str, _ModelTypeEntry] = Registry(_name=name)

    # ------------------------------------------------------------------
    # internal lookups (raise; never mutate)
    # ------------------------------------------------------------------

    def _type(self, model_type: str, *, engine: Optional[str] = None, mode: Optional[str] = None) -> _ModelTypeEntry:
        entry = self._types.try_get(str(model_type))
        if entry is None:
            raise UnknownModelType(
                "Model type is not registered",
                model_type=model_type,
                engine=engine,
                mode=mode,
                element="model_type",
            )
        return entry

    @staticmethod
    def _check_mode_name(model_type: str, mode: str, engine: Optional[str] = None) -> None:
        if mode not in ALL_MODES:
            raise InvalidMode(
                f"Mode must be one of {list(ALL_MODES)}",
                model_type=model_type,
                engine=engine,
                mode=mode,
                element="mode",
            )

    @staticmethod
    def _mode(entry: _ModelTypeEntry, mode: str, *, engine: Optional[str] = None) -> None:
        if mode not in entry.modes:
            raise UnregisteredMode(
                f"Mode is not registered for this model type (registered: {entry.modes})",
                model_type=entry.name,
                engine=engine,
                mode=mode,
                element="mode",
            )

    @staticmethod
    def _engine(entry: _ModelTypeEntry, engine: str, mode: str) -> _EngineEntry:
        found = entry.engines.get((mode, engine))
        if found is None:
            raise UnknownEngine(
                f"Engine is not registered for this model type and mode "
                f"(registered: {entry.engine_names(mode)})",
                model_type=entry.name,
                engine=engine,
                mode=mode,
                element="engine",
            )
        return found

    def _engine_entry(self, model_type: str, engine: str, mode: str) -> _EngineEntry:
        entry = self._type(model_type, engine=engine, mode=mode)
        self._mode(entry, mode, engine=engine)
        return self._engine(entry, engine, mode)

    # ------------------------------------------------------------------
    # registration
    # ------------------------------------------------------------------

    def register_model_type(self, name: str) -> None:
        name = str(name)
        if name in self._types:
            raise DuplicateRegistration(
                "Model type is already registered",
                model_type=name,
                element="model_type",
            )
        self._types.add(name, _ModelTypeEntry(name=name))
        logger.debug("registered model type %r", name)

    def register_mode(self, model_type: str, mode: str) -> None:
        entry = self._type(model_type, mode=mode)
        self._check_mode_name(entry.name, mode)
        if mode in entry.modes:
            return
        entry.modes.append(mode)
        logger.debug("registered mode %r for %r", mode, entry.name)

    def register_engine(
        self,
        model_type: str,
        mode: str,
        engine: str,
        dependency_packages: Iterable[str] = (),
    ) -> None:
        entry = self._type(model_type, engine=engine, mode=mode)
        self._mode(entry, mode, engine=engine)
        packages = [str(p) for p in dependency_packages]

        existing = entry.engines.get((mode, engine))
        if existing is not None:
            for p in packages:
                if p not in existing.packages:
                    existing.packages.append(p)
            logger.debug("engine %r already registered for %r/%r", engine, entry.name, mode)
            return

        entry.engines[(mode, engine)] = _EngineEntry(engine=engine, mode=mode, packages=packages)
        entry.arguments.setdefault(engine, {})
        logger.debug("registered engine %r for %r/%r", engine, entry.name, mode)

    def register_argument(
        self,
        model_type: str,
        engine: str,
        canonical_name: str,
        native_name: str,
        constructor_ref: Any = None,
        has_submodel: bool = False,
    ) -> None:
        entry = self._type(model_type, engine=engine)
        if engine not in entry.engine_names():
            raise UnknownEngine(
                "Engine is not registered under any mode of this model type",
                model_type=entry.name,
                engine=engine,
                element=f"argument {canonical_name!r}",
            )
        spec = ArgumentSpec(
            canonical=str(canonical_name),
            native=str(native_name),
            constructor=constructor_ref,
            has_submodel=bool(has_submodel),
        )
        entry.arguments.setdefault(engine, {})[spec.canonical] = spec
        logger.debug(
            "registered argument %r -> %r for %r/%r", spec.canonical, spec.native, entry.name, engine
        )

    def register_fit_spec(self, model_type: str, engine: str, mode: str, fit_spec: FitSpec) -> None:
        if not isinstance(fit_spec, FitSpec):
            raise TypeError(f"fit_spec must be a FitSpec; got {type(fit_spec).__name__}")
        found = self._engine_entry(model_type, engine, mode)
        found.fit = fit_spec

    def register_prediction_spec(
        self,
        model_type: str,
        engine: str,
        mode: str,
        pred_type: str,
        pred_spec: PredictionSpec,
    ) -> None:
        if not isinstance(pred_spec, PredictionSpec):
            raise TypeError(f"pred_spec must be a PredictionSpec; got {type(pred_spec).__name__}")
        key = normalize_prediction_type(pred_type)
        if key not in _PREDICTION_TYPES:
            raise ValueError(
                f"Unknown prediction type {pred_type!r}; expected one of {sorted(_PREDICTION_TYPES)}"
            )
        found = self._engine_entry(model_type, engine, mode)
        found.predict[key] = pred_spec

    def register_encoding_policy(
        self,
        model_type: str,
        engine: str,
        mode: str,
        policy: EncodingPolicy,
    ) -> None:
        if not isinstance(policy, EncodingPolicy):
            raise TypeError(f"policy must be an EncodingPolicy; got {type(policy).__name__}")
        found = self._engine_entry(model_type, engine, mode)
        found.encoding = policy

    def set_default_engine(self, model_type: str, engine: str) -> None:
        entry = self._type(model_type, engine=engine)
        if engine not in entry.engine_names():
            raise UnknownEngine(
                "Cannot make an unregistered engine the default",
                model_type=entry.name,
                engine=engine,
                element="default_engine",
            )
        entry.default_engine = engine

    # ------------------------------------------------------------------
    # read-only lookups
    # ------------------------------------------------------------------

    def list_model_types(self) -> List[str]:
        return sorted(self._types.keys())

    def has_model_type(self, model_type: str) -> bool:
        return str(model_type) in self._types

    def modes(self, model_type: str) -> Tuple[str, ...]:
        return tuple(self._type(model_type).modes)

    def engines(self, model_type: str, mode: Optional[str] = None) -> List[str]:
        return self._type(model_type, mode=mode).engine_names(mode)

    def engine_modes(self, model_type: str, engine: str) -> List[str]:
        entry = self._type(model_type, engine=engine)
        return [m for (m, e) in entry.engines if e == engine]

    def default_engine(self, model_type: str, mode: Optional[str] = None) -> Optional[str]:
        """Engine to use when a declaration does not pick one.

        The explicit default wins when it supports ``mode``; otherwise the
        first engine registered for the mode (or for the type) is used.
        """
        entry = self._type(model_type, mode=mode)
        candidates = entry.engine_names(mode)
        if entry.default_engine is not None and entry.default_engine in candidates:
            return entry.default_engine
        return candidates[0] if candidates else None

    def fit_spec(self, model_type: str, engine: str, mode: str) -> Optional[FitSpec]:
        entry = self._type(model_type, engine=engine, mode=mode)
        found = entry.engines.get((mode, engine))
        return found.fit if found is not None else None

    def prediction_spec(self, model_type: str, engine: str, mode: str, pred_type: str) -> Optional[PredictionSpec]:
        entry = self._type(model_type, engine=engine, mode=mode)
        found = entry.engines.get((mode, engine))
        if found is None:
            return None
        return found.predict.get(normalize_prediction_type(pred_type))

    def prediction_types(self, model_type: str, engine: str, mode: str) -> List[str]:
        found = self._engine_entry(model_type, engine, mode)
        return list(found.predict.keys())

    def encoding_policy(self, model_type: str, engine: str, mode: str) -> EncodingPolicy:
        entry = self._type(model_type, engine=engine, mode=mode)
        found = entry.engines.get((mode, engine))
        if found is None or found.encoding is None:
            return DEFAULT_ENCODING
        return found.encoding

    def arguments(self, model_type: str, engine: str) -> Dict[str, ArgumentSpec]:
        entry = self._type(model_type, engine=engine)
        return dict(entry.arguments.get(engine, {}))

    def describe(self, model_type: str) -> ModelTypeSummary:
        """Structured snapshot of one model type. Never mutates."""
        entry = self._type(model_type)

        engines = [
            EngineSummary(
                engine=e.engine,
                mode=e.mode,
                packages=list(e.packages),
                fit_interface=e.fit.interface if e.fit is not None else None,
                prediction_types=list(e.predict.keys()),
                encoding=(e.encoding or DEFAULT_ENCODING).model_dump(),
            )
            for e in list(entry.engines.values())
        ]
        arguments = [
            ArgumentSummary(
                engine=engine,
                canonical=spec.canonical,
                native=spec.native,
                has_submodel=spec.has_submodel,
                constructor=_constructor_name(spec.constructor),
            )
            for engine, specs in list(entry.arguments.items())
            for spec in list(specs.values())
        ]
        return ModelTypeSummary(
            model_type=entry.name,
            modes=list(entry.modes),
            default_engine=self.default_engine(entry.name),
            engines=engines,
            arguments=arguments,
        )


# ---------------------------------------------------------------------------
# Process-wide default
# ---------------------------------------------------------------------------

_DEFAULT: Optional[ModelRegistry] = None
_DEFAULT_LOCK = Lock()


def default_registry() -> ModelRegistry:
    """Return the process-wide registry, populated with built-in engines."""
    global _DEFAULT
    if _DEFAULT is not None:
        return _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            from modelspec.registries.builtins.models import register_builtins

            reg = ModelRegistry(name="default")
            register_builtins(reg)
            _DEFAULT = reg
    return _DEFAULT


def resolve_registry(registry: Optional[ModelRegistry]) -> ModelRegistry:
    return registry if registry is not None else default_registry()
