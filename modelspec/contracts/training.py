from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class TrainingData:
    """Training data shaped for one fit interface.

    The fields are the protected slots: they are filled only by the fit
    dispatcher from the bound data and never from user arguments.

    - ``formula``:    ``formula`` + ``data`` (pandas DataFrame incl. outcome)
    - ``data.frame``: ``x`` (pandas DataFrame) + ``y`` (pandas Series)
    - ``matrix``:     ``x`` (2D numpy array) + ``y`` (1D numpy array)
    """

    interface: str
    x: Any = None
    y: Any = None
    formula: Optional[str] = None
    data: Any = None
    outcome: Optional[str] = None

    @property
    def n_obs(self) -> int:
        if self.interface == "formula":
            return int(len(self.data))
        return int(len(self.y))
