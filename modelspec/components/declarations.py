from __future__ import annotations

"""Registry-aware declaration builders.

These are the user-facing ways to build a :class:`ModelDeclaration`. They
check what can be checked before data is bound (model type, mode, engine,
protected engine arguments) and leave everything else to the translator.
"""

import logging
from typing import Any, Mapping, Optional

from modelspec.contracts.choices import ALL_MODES, UNKNOWN_MODE
from modelspec.contracts.declaration import ModelDeclaration
from modelspec.core.errors import (
    InvalidMode,
    ModeMismatch,
    ProtectedArgument,
    UnknownEngine,
    UnknownModelType,
    UnsupportedEngine,
)
from modelspec.registries.models import ModelRegistry, resolve_registry

logger = logging.getLogger(__name__)


def _check_mode(reg: ModelRegistry, model_type: str, mode: str, engine: Optional[str] = None) -> None:
    if mode == UNKNOWN_MODE:
        return
    if mode not in ALL_MODES:
        raise InvalidMode(
            f"Mode must be one of {list(ALL_MODES)}",
            model_type=model_type,
            engine=engine,
            mode=mode,
            element="mode",
        )
    if mode not in reg.modes(model_type):
        raise ModeMismatch(
            f"Mode is not available for this model type (available: {list(reg.modes(model_type))})",
            model_type=model_type,
            engine=engine,
            mode=mode,
            element="mode",
        )


def declare(
    model_type: str,
    *,
    mode: str = UNKNOWN_MODE,
    engine: Optional[str] = None,
    registry: Optional[ModelRegistry] = None,
    **args: Any,
) -> ModelDeclaration:
    """Start a declaration for ``model_type`` with canonical ``args``.

    Example::

        spec = declare("rand_forest", mode="classification", trees=500, mtry=tune())
    """

    reg = resolve_registry(registry)
    if not reg.has_model_type(model_type):
        raise UnknownModelType(
            f"Model type is not registered (registered: {reg.list_model_types()})",
            model_type=model_type,
            mode=mode,
            engine=engine,
            element="model_type",
        )
    _check_mode(reg, model_type, mode, engine)

    modes = reg.modes(model_type)
    if mode == UNKNOWN_MODE and len(modes) == 1:
        mode = modes[0]

    decl = ModelDeclaration(model_type=model_type, mode=mode, args=dict(args))
    if engine is not None:
        decl = set_engine(decl, engine, registry=reg)
    return decl


def set_mode(
    declaration: ModelDeclaration,
    mode: str,
    *,
    registry: Optional[ModelRegistry] = None,
) -> ModelDeclaration:
    reg = resolve_registry(registry)
    _check_mode(reg, declaration.model_type, mode, declaration.engine)
    return declaration.with_mode(mode)


def set_engine(
    declaration: ModelDeclaration,
    engine: str,
    *,
    registry: Optional[ModelRegistry] = None,
    **engine_args: Any,
) -> ModelDeclaration:
    """Pick ``engine`` and attach engine-specific (native) arguments.

    When the declaration has no mode yet and the engine supports exactly one
    mode of the model type, that mode is taken.

    Raises
    ------
    UnknownEngine
        The engine is not registered for the model type.
    UnsupportedEngine
        The engine does not support the declaration's mode.
    ProtectedArgument
        An engine argument names a slot reserved for the training data.
    """

    reg = resolve_registry(registry)
    model_type = declaration.model_type
    mode = declaration.mode

    engine_modes = reg.engine_modes(model_type, engine)
    if not engine_modes:
        raise UnknownEngine(
            f"Engine is not registered for this model type (registered: {reg.engines(model_type)})",
            model_type=model_type,
            engine=engine,
            mode=mode,
            element="engine",
        )

    if declaration.mode_resolved:
        if mode not in engine_modes:
            raise UnsupportedEngine(
                f"Engine does not support this mode (supported: {engine_modes})",
                model_type=model_type,
                engine=engine,
                mode=mode,
                element="engine",
            )
        modes_to_check = [mode]
    else:
        modes_to_check = engine_modes

    for m in modes_to_check:
        fit_spec = reg.fit_spec(model_type, engine, m)
        if fit_spec is None:
            continue
        clash = sorted(set(engine_args) & set(fit_spec.protect))
        if clash:
            raise ProtectedArgument(
                f"Arguments are reserved for training data and cannot be set: {clash}",
                model_type=model_type,
                engine=engine,
                mode=m,
                element=clash[0],
            )

    out = declaration.with_engine(engine, engine_args)
    if not out.mode_resolved and len(engine_modes) == 1:
        logger.debug("mode of %r resolved to %r by engine %r", model_type, engine_modes[0], engine)
        out = out.with_mode(engine_modes[0])
    return out


def set_args(declaration: ModelDeclaration, **args: Any) -> ModelDeclaration:
    """Return a copy with canonical ``args`` added or replaced.

    ``None`` resets an argument to the engine default.
    """
    return declaration.with_args(**args)


def finalize(declaration: ModelDeclaration, values: Mapping[str, Any]) -> ModelDeclaration:
    """Replace ``tune()`` placeholders with ``values`` (e.g. one row of a tuning grid)."""
    if hasattr(values, "to_dict"):
        values = values.to_dict()
    return declaration.finalize(dict(values))
