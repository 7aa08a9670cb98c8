"""Grid carbon intensity data and lookup."""

from __future__ import annotations

from site_carbon.intensity.defaults import (
    GLOBAL_AVERAGE_INTENSITY,
    IntensityData,
    load_intensity_data,
)
from site_carbon.intensity.table import ALPHA2_TO_ALPHA3, CarbonIntensityTable

__all__ = [
    "ALPHA2_TO_ALPHA3",
    "CarbonIntensityTable",
    "GLOBAL_AVERAGE_INTENSITY",
    "IntensityData",
    "load_intensity_data",
]
