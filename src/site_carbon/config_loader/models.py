"""Typed configuration dataclasses for :mod:`site_carbon.config_loader`."""

from __future__ import annotations

from dataclasses import dataclass, field

from site_carbon.estimation.parameters import DEFAULT_MODEL_VERSION


@dataclass(slots=True)
class ModelSection:
    """Which model revision to run and which coefficients to override.

    Attributes:
        version: Registered model version.
        overrides: Numeric :class:`ModelParameters` fields to replace, keyed by
            field name (for example ``cache_factor``). ``None`` values are
            kept and disable the optional term they name.
        operational: Replacement operational intensities (kWh/MB) by segment.
        embodied: Replacement embodied intensities (kWh/MB) by segment.
    """

    version: str = DEFAULT_MODEL_VERSION
    overrides: dict[str, float | None] = field(default_factory=dict)
    operational: dict[str, float] = field(default_factory=dict)
    embodied: dict[str, float] = field(default_factory=dict)


@dataclass(slots=True)
class RatingSection:
    """Optional replacement of the model's rating scale."""

    bounds: tuple[float, ...] | None = None
    inclusive: bool | None = None
    green_gate: bool | None = None


@dataclass(slots=True)
class ProfileSection:
    """Optional replacement of the page-profile settings."""

    size_field: str | None = None
    heavy_domain_patterns: tuple[str, ...] | None = None


@dataclass(slots=True)
class TimeoutSettings:
    """Per-collaborator timeouts in seconds."""

    lookup: float = 30.0
    telemetry: float = 60.0
    notify: float = 30.0


@dataclass(slots=True)
class ServiceConfig:
    """Strongly typed configuration container for the service."""

    model: ModelSection = field(default_factory=ModelSection)
    rating: RatingSection = field(default_factory=RatingSection)
    profile: ProfileSection = field(default_factory=ProfileSection)
    timeouts: TimeoutSettings = field(default_factory=TimeoutSettings)
