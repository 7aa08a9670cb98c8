"""Default data loaders for the country carbon intensity table.

The module centralises disk/resource access for grid intensity values.
Callers receive fully typed values that are cached for the process lifetime.
"""

from __future__ import annotations

import json
import logging
import math
import pathlib
from dataclasses import dataclass
from functools import lru_cache
from typing import Final

from site_carbon.settings import get_settings

LOGGER = logging.getLogger(__name__)

GLOBAL_AVERAGE_INTENSITY: Final[float] = 466.0

_FALLBACK_INTENSITIES: Final[dict[str, float]] = {
    "BRA": 63.0,
    "USA": 367.0,
    "CAN": 122.0,
    "MEX": 442.0,
    "ARG": 295.0,
    "FRA": 87.0,
    "DEU": 421.0,
    "GBR": 206.0,
    "ESP": 167.0,
    "PRT": 164.0,
    "POL": 738.0,
    "CHN": 598.0,
    "IND": 699.0,
    "JPN": 462.0,
    "KOR": 418.0,
    "AUS": 531.0,
}


@dataclass(frozen=True, slots=True)
class IntensityData:
    """Raw intensity values keyed by ISO alpha-3 code plus the global value."""

    intensities: dict[str, float]
    global_intensity: float
    source: str


def _parse_payload(data: object, source: str) -> IntensityData:
    """Convert decoded JSON into :class:`IntensityData`.

    Two layouts are accepted: ``{"global": ..., "intensities": {...}}`` and a
    flat ``{"CODE": value, ...}`` mapping where ``GLOBAL`` holds the fallback.

    Raises:
        ValueError: If the payload is not a mapping or a value is not numeric.
    """

    if not isinstance(data, dict):
        raise ValueError("carbon intensity payload must be a JSON object")
    if isinstance(data.get("intensities"), dict):
        raw = data["intensities"]
        global_value = data.get("global", GLOBAL_AVERAGE_INTENSITY)
        source = str(data.get("source") or source)
    else:
        raw = {key: value for key, value in data.items() if key != "GLOBAL"}
        global_value = data.get("GLOBAL", GLOBAL_AVERAGE_INTENSITY)

    intensities: dict[str, float] = {}
    for key, value in raw.items():
        number = float(value)
        if not math.isfinite(number) or number < 0:
            raise ValueError(f"invalid intensity for {key!r}")
        intensities[str(key).strip().upper()] = number
    global_number = float(global_value)
    if not math.isfinite(global_number) or global_number < 0:
        raise ValueError("invalid global intensity")
    return IntensityData(
        intensities=intensities, global_intensity=global_number, source=source
    )


@lru_cache(maxsize=1)
def load_intensity_data() -> IntensityData:
    """Load the country → intensity table.

    Returns:
        Intensity values in gCO2e/kWh.

    Raises:
        FileNotFoundError: Raised when the path named by
            ``SITE_CARBON_INTENSITY_FILE`` does not exist.
        RuntimeError: Raised when the override file cannot be parsed.
    """
    settings = get_settings()
    override_path = settings.carbon_intensity_file
    if override_path:
        path = pathlib.Path(override_path)
        if not path.exists():
            msg = f"SITE_CARBON_INTENSITY_FILE not found: {path}"
            raise FileNotFoundError(msg)
        try:
            return _parse_payload(
                json.loads(path.read_text(encoding="utf-8")), source=str(path)
            )
        except (json.JSONDecodeError, TypeError, ValueError) as exc:
            raise RuntimeError("Failed to parse carbon intensity override JSON") from exc

    try:
        import importlib.resources as resources

        data_text = (
            resources.files("site_carbon.data")
            .joinpath("carbon_intensity.json")
            .read_text(encoding="utf-8")
        )
        return _parse_payload(json.loads(data_text), source="packaged")
    except Exception as exc:  # pragma: no cover - defensive fallback
        LOGGER.error("Failed to load packaged carbon intensity defaults: %s", exc)
        return IntensityData(
            intensities=dict(_FALLBACK_INTENSITIES),
            global_intensity=GLOBAL_AVERAGE_INTENSITY,
            source="builtin",
        )
