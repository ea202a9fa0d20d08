from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable

from modelspec.contracts.results import CallTemplate
from modelspec.contracts.training import TrainingData


@runtime_checkable
class EngineAdapter(Protocol):
    """One engine's calling convention.

    The registry stores adapters inside :class:`~modelspec.contracts.FitSpec`;
    the dispatchers only ever talk to engines through this surface.
    """

    def fit(self, template: CallTemplate, data: TrainingData) -> Any:
        """Fit with ``template.args`` on ``data``; return the engine-native fitted object.

        ``data`` is already shaped for ``template.interface``.
        """
        ...

    def predict(
        self,
        raw_fit: Any,
        new_data: Any,
        pred_type: str,
        method: str,
        args: Dict[str, Any],
    ) -> Any:
        """Return engine-native predictions.

        ``method`` and ``args`` come from the registered PredictionSpec; deferred
        arguments are already evaluated. Output shape is engine-native: a
        vector for numeric/class, a matrix or frame for probabilities.
        """
        ...


@runtime_checkable
class SubmodelAdapter(EngineAdapter, Protocol):
    """An adapter that can predict at other values of a submodel argument
    from the same fitted object, without refitting."""

    def predict_submodel(
        self,
        raw_fit: Any,
        new_data: Any,
        pred_type: str,
        method: str,
        args: Dict[str, Any],
        submodel: Dict[str, Any],
    ) -> Any:
        """Like :meth:`predict`, with ``submodel`` (native name -> value) overriding the fit."""
        ...
