"""Country carbon intensity table with code normalisation and fallback."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Final

LOGGER = logging.getLogger(__name__)

# ISO 3166 alpha-2 codes emitted by ip-api.com, mapped to the alpha-3 keys
# used by the intensity data.
ALPHA2_TO_ALPHA3: Final[dict[str, str]] = {
    "AR": "ARG",
    "AU": "AUS",
    "BR": "BRA",
    "CA": "CAN",
    "CN": "CHN",
    "DE": "DEU",
    "ES": "ESP",
    "FR": "FRA",
    "GB": "GBR",
    "UK": "GBR",
    "IN": "IND",
    "JP": "JPN",
    "KR": "KOR",
    "MX": "MEX",
    "PL": "POL",
    "PT": "PRT",
    "US": "USA",
    "CL": "CHL",
    "CO": "COL",
    "IE": "IRL",
    "IT": "ITA",
    "NL": "NLD",
    "SE": "SWE",
    "SG": "SGP",
    "ZA": "ZAF",
}

GLOBAL_KEYS: Final[frozenset[str]] = frozenset({"GLOBAL", "WORLD", "WLD"})


class CarbonIntensityTable:
    """Read-only lookup of grid carbon intensity (gCO2e/kWh) by country code.

    The three steps of a lookup are exposed separately so each can be
    exercised on its own: :meth:`normalize`, :meth:`lookup` and
    :meth:`intensity_for`.
    """

    __slots__ = ("_intensities", "_aliases", "_global", "_source")

    def __init__(
        self,
        intensities: Mapping[str, float],
        global_intensity: float,
        *,
        aliases: Mapping[str, str] | None = None,
        source: str = "static",
    ) -> None:
        if not math.isfinite(global_intensity) or global_intensity < 0:
            raise ValueError("global_intensity must be finite and non-negative")
        self._intensities = {
            str(key).strip().upper(): float(value)
            for key, value in intensities.items()
        }
        if any(
            not math.isfinite(value) or value < 0
            for value in self._intensities.values()
        ):
            raise ValueError("intensities must be finite and non-negative")
        self._aliases = dict(ALPHA2_TO_ALPHA3 if aliases is None else aliases)
        self._global = float(global_intensity)
        self._source = source

    @classmethod
    def default(cls) -> CarbonIntensityTable:
        """Return the process-wide table built from packaged or override data."""

        from site_carbon.intensity.defaults import load_intensity_data

        data = load_intensity_data()
        return cls(
            data.intensities, data.global_intensity, source=data.source
        )

    @property
    def global_intensity(self) -> float:
        """Global average intensity used as the fallback."""

        return self._global

    @property
    def source(self) -> str:
        return self._source

    def regions(self) -> dict[str, float]:
        """Return a copy of the alpha-3 → intensity mapping."""

        return dict(self._intensities)

    def normalize(self, code: str | None) -> str:
        """Normalise a country code to the table's key space.

        Alpha-2 codes with a known alpha-3 counterpart are translated; any
        other code is returned upper-cased and stripped.
        """

        if not code:
            return ""
        key = code.strip().upper()
        return self._aliases.get(key, key)

    def lookup(self, key: str) -> float | None:
        """Return the intensity stored under an already-normalised key."""

        if key in GLOBAL_KEYS:
            return self._global
        return self._intensities.get(key)

    def intensity_for(self, code: str | None) -> float:
        """Return the intensity for ``code``, falling back to the global value.

        Never raises: unknown, empty, or sentinel codes yield
        :attr:`global_intensity`.
        """

        value = self.lookup(self.normalize(code))
        if value is None:
            LOGGER.debug(
                "Intensity fallback to global average",
                extra={"country_code": code, "intensity": self._global},
            )
            return self._global
        return value
