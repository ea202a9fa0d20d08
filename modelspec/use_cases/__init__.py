from .fitting import fit, fit_xy

__all__ = [
    "fit",
    "fit_xy",
]
