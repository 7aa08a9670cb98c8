"""Data models shared by the emission pipeline.

Every model is a frozen dataclass: values are created once per request and
never mutated afterwards. Lookup sentinels live here so that the fallback
substitution performed by the pipeline is an explicit, testable mapping.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Final, Generic, Literal, TypeVar

__all__ = [
    "EmissionBreakdown",
    "EmissionEstimate",
    "HostingContext",
    "LocationContext",
    "LookupResult",
    "PageProfile",
    "Rating",
    "ResourceRecord",
    "UNKNOWN_CITY",
    "UNKNOWN_COUNTRY",
    "UNKNOWN_HOSTING",
    "UNKNOWN_LOCATION",
    "UNKNOWN_ORGANIZATION",
    "UNKNOWN_PROVIDER",
]

Rating = Literal["A+", "A", "B", "C", "D", "E", "F"]

UNKNOWN_CITY: Final[str] = "Indefinido"
UNKNOWN_COUNTRY: Final[str] = "Indefinido"
UNKNOWN_ORGANIZATION: Final[str] = "Desconhecido"
UNKNOWN_PROVIDER: Final[str] = "Desconhecido"

T = TypeVar("T")


def _non_negative(value: object) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


@dataclass(frozen=True, slots=True)
class ResourceRecord:
    """One network fetch observed while loading the page."""

    url: str
    transfer_size_bytes: float = 0.0
    encoded_size_bytes: float = 0.0
    decoded_size_bytes: float = 0.0
    initiator_type: str = "other"

    @classmethod
    def from_timing_entry(cls, entry: dict[str, object]) -> ResourceRecord:
        """Build a record from a browser ``PerformanceResourceTiming`` entry.

        Args:
            entry: Mapping with the ``name``, ``transferSize``,
                ``encodedBodySize``, ``decodedBodySize`` and
                ``initiatorType`` keys reported by the browser.

        Returns:
            Record with missing or negative sizes clamped to zero.
        """

        return cls(
            url=str(entry.get("name") or ""),
            transfer_size_bytes=_non_negative(entry.get("transferSize")),
            encoded_size_bytes=_non_negative(entry.get("encodedBodySize")),
            decoded_size_bytes=_non_negative(entry.get("decodedBodySize")),
            initiator_type=str(entry.get("initiatorType") or "other"),
        )


@dataclass(frozen=True, slots=True)
class PageProfile:
    """Page weight and third-party fan-out derived from resource records."""

    total_weight_mb: float = 0.0
    external_script_count: int = 0
    heavy_domain_count: int = 0
    resource_count: int = 0
    total_weight_bytes: float = 0.0


@dataclass(frozen=True, slots=True)
class LocationContext:
    """Geolocation facts about a server or requester IP address."""

    country_code: str = UNKNOWN_COUNTRY
    city: str = UNKNOWN_CITY
    organization: str = UNKNOWN_ORGANIZATION
    ip_address: str = ""

    @property
    def is_known(self) -> bool:
        """Return ``True`` when the country was actually resolved."""

        return self.country_code != UNKNOWN_COUNTRY


@dataclass(frozen=True, slots=True)
class HostingContext:
    """Green-hosting facts about the target hostname."""

    is_green_certified: bool = False
    hosted_by: str = UNKNOWN_PROVIDER
    hosted_by_url: str = ""


UNKNOWN_LOCATION: Final[LocationContext] = LocationContext()
UNKNOWN_HOSTING: Final[HostingContext] = HostingContext()


@dataclass(frozen=True, slots=True)
class LookupResult(Generic[T]):
    """Outcome of a best-effort lookup: either a value or an error message.

    Attributes:
        value: The resolved value, ``None`` on failure.
        error: Human-readable failure description, ``None`` on success.
    """

    value: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: T) -> LookupResult[T]:
        """Wrap a resolved value."""

        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> LookupResult[T]:
        """Wrap a failure description."""

        return cls(error=error)

    @property
    def ok(self) -> bool:
        """Return ``True`` when the lookup produced a value."""

        return self.error is None and self.value is not None

    def value_or(self, sentinel: T) -> T:
        """Return the value, or ``sentinel`` when the lookup failed."""

        if self.value is None or self.error is not None:
            return sentinel
        return self.value


@dataclass(frozen=True, slots=True)
class EmissionBreakdown:
    """Numeric output of the emission calculator with every subtotal kept.

    All emission values are grams CO2e for one visit; energies are kWh.
    """

    emission_grams_per_visit: float
    energy_kwh_per_visit: float

    operational_data_center_g: float
    operational_network_g: float
    operational_user_device_g: float
    embodied_data_center_g: float
    embodied_network_g: float
    embodied_user_device_g: float

    operational_g: float
    embodied_g: float
    cache_factor: float
    adjusted_subtotal_g: float

    connection_g: float
    render_g: float
    external_script_penalty_g: float
    heavy_domain_penalty_g: float

    server_intensity: float
    user_intensity: float
    global_intensity: float
    green_factor: float

    @property
    def total_penalty_g(self) -> float:
        """Return the sum of both behavioural penalty terms."""

        return self.external_script_penalty_g + self.heavy_domain_penalty_g


@dataclass(frozen=True, slots=True)
class EmissionEstimate:
    """Rated emission estimate for one page visit."""

    breakdown: EmissionBreakdown
    rating: Rating
    model_version: str

    @property
    def emission_grams_per_visit(self) -> float:
        return self.breakdown.emission_grams_per_visit

    @property
    def energy_kwh_per_visit(self) -> float:
        return self.breakdown.energy_kwh_per_visit
