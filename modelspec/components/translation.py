from __future__ import annotations

"""Resolve a declaration into an engine call template.

Translation is a pure function of the declaration, the data descriptor and the
registry contents. It is the only place where deferred fit arguments are
evaluated: the descriptor (and with it the post-encoding column count) does
not exist before data is bound.
"""

import logging
from typing import Any, Dict, Optional

from modelspec.contracts.declaration import Deferred, ModelDeclaration
from modelspec.contracts.descriptors import DataDescriptor
from modelspec.contracts.results import CallTemplate
from modelspec.core.errors import (
    DeclarationNotFinalized,
    ModeMismatch,
    ProtectedArgument,
    UnknownArgument,
    UnknownModelType,
    UnsupportedEngine,
)
from modelspec.registries.models import ModelRegistry, resolve_registry

logger = logging.getLogger(__name__)


def _resolve_value(value: Any, descriptor: DataDescriptor) -> Any:
    if isinstance(value, Deferred):
        return value.evaluate(descriptor)
    return value


def _context(declaration: ModelDeclaration, engine: Optional[str]) -> Dict[str, Any]:
    return {"model_type": declaration.model_type, "engine": engine, "mode": declaration.mode}


def resolve_engine(declaration: ModelDeclaration, registry: ModelRegistry) -> str:
    """The declaration's engine, or the registry default for its mode."""
    if declaration.engine is not None:
        return declaration.engine
    mode = declaration.mode if declaration.mode_resolved else None
    engine = registry.default_engine(declaration.model_type, mode)
    if engine is None:
        raise UnsupportedEngine(
            "No engine is registered for this model type and mode",
            element="engine",
            **_context(declaration, None),
        )
    logger.debug("using default engine %r for %r", engine, declaration.model_type)
    return engine


def translate(
    declaration: ModelDeclaration,
    descriptor: DataDescriptor,
    registry: Optional[ModelRegistry] = None,
) -> CallTemplate:
    """Resolve ``declaration`` against the registry and ``descriptor``.

    Raises
    ------
    UnknownModelType
        The model type is not registered.
    ModeMismatch
        The mode is unset or not registered for the type.
    DeclarationNotFinalized
        Arguments still hold ``tune()`` placeholders.
    UnsupportedEngine
        The engine has no fit specification for (type, mode).
    UnknownArgument
        A canonical argument is not registered for the engine.
    ProtectedArgument
        An argument targets a slot reserved for the training data.
    """

    reg = resolve_registry(registry)
    model_type = declaration.model_type

    if not reg.has_model_type(model_type):
        raise UnknownModelType(
            "Model type is not registered",
            element="model_type",
            **_context(declaration, declaration.engine),
        )

    if not declaration.mode_resolved:
        raise ModeMismatch(
            "Declaration mode must be set before translation",
            element="mode",
            **_context(declaration, declaration.engine),
        )
    if declaration.mode not in reg.modes(model_type):
        raise ModeMismatch(
            f"Mode is not registered for this model type (registered: {list(reg.modes(model_type))})",
            element="mode",
            **_context(declaration, declaration.engine),
        )

    engine = resolve_engine(declaration, reg)
    mode = declaration.mode
    ctx = _context(declaration, engine)

    fit_spec = reg.fit_spec(model_type, engine, mode)
    if fit_spec is None:
        raise UnsupportedEngine(
            "Engine has no fit specification for this model type and mode "
            f"(engines with mode {mode!r}: {reg.engines(model_type, mode)})",
            element="fit_spec",
            **ctx,
        )

    pending = declaration.tune_args()
    if pending:
        raise DeclarationNotFinalized(
            f"Declaration is not finalized; arguments still marked tune(): {pending}",
            element=", ".join(pending),
            **ctx,
        )

    arg_specs = reg.arguments(model_type, engine)
    unknown = [name for name in declaration.args if name not in arg_specs]
    if unknown:
        raise UnknownArgument(
            f"Arguments are not registered for this engine: {unknown} "
            f"(registered: {sorted(arg_specs)})",
            element=unknown[0],
            **ctx,
        )

    native: Dict[str, Any] = {}
    for canonical, value in declaration.args.items():
        if value is None:
            # None leaves the engine default in place
            continue
        native[arg_specs[canonical].native] = value
    native.update(declaration.engine_args)

    protected = sorted(set(native) & set(fit_spec.protect))
    if protected:
        raise ProtectedArgument(
            f"Arguments are reserved for training data and cannot be set: {protected}",
            element=protected[0],
            **ctx,
        )

    policy = reg.encoding_policy(model_type, engine, mode)
    bound = descriptor.for_policy(policy)

    merged: Dict[str, Any] = dict(fit_spec.defaults)
    merged.update(native)
    resolved = {name: _resolve_value(value, bound) for name, value in merged.items()}

    logger.debug("translated %s/%s/%s -> %s", model_type, engine, mode, sorted(resolved))

    return CallTemplate(
        model_type=model_type,
        engine=engine,
        mode=mode,
        interface=fit_spec.interface,
        adapter=fit_spec.adapter,
        protect=tuple(fit_spec.protect),
        args=resolved,
        encoding=policy,
        descriptor=bound,
        declaration=declaration,
        registry=reg,
    )

