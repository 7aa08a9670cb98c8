"""Emission estimation package.

Provides the pure :func:`calculate` and :func:`classify` functions, the
versioned :class:`ModelParameters` registry, and the :class:`EstimationEngine`
that wires them together.
"""

from __future__ import annotations

from .calculator import calculate
from .engine import EstimationEngine
from .parameters import (
    DEFAULT_MODEL_VERSION,
    EnergyIntensities,
    ModelParameters,
    available_models,
    get_model,
)
from .profile import ProfileSettings, project
from .rating import RatingScale, classify

__all__ = [
    "DEFAULT_MODEL_VERSION",
    "EnergyIntensities",
    "EstimationEngine",
    "ModelParameters",
    "ProfileSettings",
    "RatingScale",
    "available_models",
    "calculate",
    "classify",
    "get_model",
    "project",
]
