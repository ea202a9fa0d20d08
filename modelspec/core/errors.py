"""Registry, translation and dispatch exceptions.

Every error carries the (model_type, engine, mode) triple it was raised for,
plus the registration element that was missing or invalid. Any of the triple
may be None when it is not known yet at the point of failure.
"""

from __future__ import annotations

from typing import Any, Optional


class ModelSpecError(RuntimeError):
    """Base class for all modelspec errors."""

    def __init__(
        self,
        message: str,
        *,
        model_type: Optional[str] = None,
        engine: Optional[str] = None,
        mode: Optional[str] = None,
        element: Optional[str] = None,
    ) -> None:
        self.model_type = model_type
        self.engine = engine
        self.mode = mode
        self.element = element
        self.reason = message
        super().__init__(self._format(message))

    def _format(self, message: str) -> str:
        where = (
            f"model_type={self.model_type!r}, engine={self.engine!r}, mode={self.mode!r}"
        )
        if self.element is not None:
            where += f", element={self.element!r}"
        return f"{message} [{where}]"


class DuplicateRegistration(ModelSpecError):
    """Raised when a model type is registered twice."""


class UnknownModelType(ModelSpecError):
    """Raised when a model type has not been registered."""


class InvalidMode(ModelSpecError, ValueError):
    """Raised when a mode name is outside the closed set of modes."""


class UnregisteredMode(ModelSpecError):
    """Raised when a mode is not registered for a model type."""


class UnknownEngine(ModelSpecError):
    """Raised when an engine is not registered for a model type (and mode)."""


class UnsupportedEngine(ModelSpecError):
    """Raised when an engine has no fit specification for the requested mode."""


class ModeMismatch(ModelSpecError):
    """Raised when a declaration's mode is missing or not valid for its type."""


class DeclarationNotFinalized(ModeMismatch):
    """Raised when a declaration still holds tune() placeholders."""


class UnknownArgument(ModelSpecError):
    """Raised when a declaration names an argument the engine does not register."""


class ProtectedArgument(UnknownArgument):
    """Raised when a caller tries to set an argument reserved for data injection."""


class FitFailure(ModelSpecError):
    """Raised when the engine's fitting routine fails.

    The engine's original exception is kept on ``original`` and chained as
    ``__cause__``.
    """

    def __init__(self, message: str, *, original: BaseException, **context: Any) -> None:
        self.original = original
        super().__init__(message, **context)


class UnsupportedPredictionType(ModelSpecError):
    """Raised when no prediction specification exists for the requested type."""


class InvariantViolation(ModelSpecError):
    """Raised when engine output breaks a normalization invariant.

    This points to a bug in an engine adapter or its post-processing hook and
    is not recoverable for the call that raised it.
    """


__all__ = [
    "ModelSpecError",
    "DuplicateRegistration",
    "UnknownModelType",
    "InvalidMode",
    "UnregisteredMode",
    "UnknownEngine",
    "UnsupportedEngine",
    "ModeMismatch",
    "DeclarationNotFinalized",
    "UnknownArgument",
    "ProtectedArgument",
    "FitFailure",
    "UnsupportedPredictionType",
    "InvariantViolation",
]
