"""Shared contracts.

Pydantic models, dataclasses and Literal-based choice types used across
modelspec. Keep module imports explicit in most of the codebase:

    from modelspec.contracts.declaration import ModelDeclaration

The names re-exported here are a small convenience namespace.
"""

from .choices import ALL_MODES, UNKNOWN_MODE, IndicatorKind, InterfaceKind, ModeName, PredictionType
from .declaration import Deferred, ModelDeclaration, TunePlaceholder, tune
from .descriptors import DataDescriptor
from .registry_specs import ArgumentSpec, EncodingPolicy, FitSpec, PredictionSpec
from .results import CallTemplate, FittedModel, ModelTypeSummary
from .settings import DispatchSettings
from .training import TrainingData

__all__ = [
    "ALL_MODES",
    "UNKNOWN_MODE",
    "IndicatorKind",
    "InterfaceKind",
    "ModeName",
    "PredictionType",
    "Deferred",
    "ModelDeclaration",
    "TunePlaceholder",
    "tune",
    "DataDescriptor",
    "ArgumentSpec",
    "EncodingPolicy",
    "FitSpec",
    "PredictionSpec",
    "CallTemplate",
    "FittedModel",
    "ModelTypeSummary",
    "DispatchSettings",
    "TrainingData",
]
