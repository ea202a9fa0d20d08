"""modelspec registries.

A registry maps model types to modes, engines and the specifications needed
to fit and predict with them. New engines are added by registering them; the
translator and dispatchers never change.
"""

from .models import ModelRegistry, default_registry, resolve_registry

__all__ = [
    "ModelRegistry",
    "default_registry",
    "resolve_registry",
]
