from __future__ import annotations

"""Dispatch settings.

Defaults are script-friendly; ``load_settings`` lets deployments override the
probability tolerance through the environment.
"""

import os

from pydantic import BaseModel, ConfigDict, Field


class DispatchSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    # Allowed deviation of a probability row sum from 1.
    prob_tolerance: float = Field(default=1e-6, gt=0.0)

    class_column: str = ".pred_class"
    numeric_column: str = ".pred"

    # Re-align engine output that carries its own index to the input rows.
    realign_rows: bool = True


def load_settings() -> DispatchSettings:
    raw = os.getenv("MODELSPEC_PROB_TOLERANCE")
    if raw is None or not raw.strip():
        return DispatchSettings()
    return DispatchSettings(prob_tolerance=float(raw))


DEFAULT_SETTINGS = DispatchSettings()
