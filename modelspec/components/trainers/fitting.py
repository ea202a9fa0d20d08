from __future__ import annotations

import logging
import time
from typing import Any, Optional, Tuple

from modelspec.contracts.results import CallTemplate, FittedModel
from modelspec.contracts.training import TrainingData
from modelspec.core.errors import FitFailure

logger = logging.getLogger(__name__)


def fit_template(
    template: CallTemplate,
    data: TrainingData,
    *,
    levels: Optional[Tuple[str, ...]] = None,
    blueprint: Any = None,
) -> FittedModel:
    """Run the engine fit described by ``template`` on ``data``.

    The template and the declaration inside it are only read. Any exception
    raised by the engine is wrapped in :class:`FitFailure`; there is no retry
    and no fallback to another engine.
    """

    if data.interface != template.interface:
        raise ValueError(
            f"Training data is shaped for {data.interface!r} but the engine expects "
            f"{template.interface!r}."
        )

    if template.mode == "classification" and levels is None:
        levels = template.descriptor.levels

    start = time.perf_counter()
    try:
        raw = template.adapter.fit(template, data)
    except Exception as exc:
        logger.debug(
            "fit failed for %s/%s/%s: %s", template.model_type, template.engine, template.mode, exc
        )
        raise FitFailure(
            f"Engine fit failed: {type(exc).__name__}: {exc}",
            original=exc,
            model_type=template.model_type,
            engine=template.engine,
            mode=template.mode,
            element="fit",
        ) from exc
    elapsed = time.perf_counter() - start

    logger.debug(
        "fitted %s/%s/%s on %d rows in %.3fs",
        template.model_type,
        template.engine,
        template.mode,
        data.n_obs,
        elapsed,
    )

    return FittedModel(
        fit=raw,
        template=template,
        levels=tuple(levels) if levels is not None else None,
        blueprint=blueprint,
        elapsed=elapsed,
    )
