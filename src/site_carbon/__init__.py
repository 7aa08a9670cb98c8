"""Site Carbon - per-visit carbon estimates for web pages."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "CarbonIntensityTable",
    "EmissionEstimate",
    "EmissionPipeline",
    "EmissionReport",
    "EstimationEngine",
    "create_app",
]

if TYPE_CHECKING:
    from .api import create_app
    from .estimation import EstimationEngine
    from .intensity import CarbonIntensityTable
    from .models import EmissionEstimate
    from .pipeline import EmissionPipeline
    from .schemas import EmissionReport


def __getattr__(name: str) -> Any:
    """Lazily import heavy modules to avoid eager dependency loading."""

    module_map = {
        "CarbonIntensityTable": "intensity",
        "EmissionEstimate": "models",
        "EmissionPipeline": "pipeline",
        "EmissionReport": "schemas",
        "EstimationEngine": "estimation",
        "create_app": "api",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
