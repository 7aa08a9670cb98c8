"""Versioned emission model parameters.

Each published revision of the per-visit model is one :class:`ModelParameters`
instance. Revisions differ only in coefficients and in which optional terms
they switch on, so a single calculator serves all of them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from typing import Final

from site_carbon.errors import UnknownModelError
from site_carbon.estimation.profile import ProfileSettings
from site_carbon.estimation.rating import RatingScale

__all__ = [
    "DEFAULT_MODEL_VERSION",
    "EnergyIntensities",
    "ModelParameters",
    "available_models",
    "get_model",
    "register_model",
]

DEFAULT_MODEL_VERSION: Final[str] = "swdm-v4"

_GB_TO_MB: Final[float] = 1024.0


@dataclass(frozen=True, slots=True)
class EnergyIntensities:
    """Energy intensity per MB of page weight (kWh/MB) for each segment."""

    data_center: float
    network: float
    user_device: float

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{item.name} must be finite and non-negative")

    @classmethod
    def from_kwh_per_gb(
        cls, data_center: float, network: float, user_device: float
    ) -> EnergyIntensities:
        """Build intensities from the kWh/GB figures published by SWDM."""

        return cls(
            data_center=data_center / _GB_TO_MB,
            network=network / _GB_TO_MB,
            user_device=user_device / _GB_TO_MB,
        )

    @property
    def total(self) -> float:
        return self.data_center + self.network + self.user_device


def _check_finite(name: str, value: float) -> None:
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"{name} must be finite and non-negative")


@dataclass(frozen=True, slots=True)
class ModelParameters:
    """Coefficients and switches of one emission model revision.

    Attributes:
        version: Registry name of the revision.
        operational: Operational energy intensities (kWh/MB).
        embodied: Embodied energy intensities (kWh/MB).
        green_hosting_factor: Multiplier for the data-center operational term
            when hosting is green-certified.
        cache_factor: Multiplier applied to the operational + embodied
            subtotal and to the energy figure; ``None`` disables it.
        external_script_penalty_g: Grams CO2e added per external script.
        heavy_domain_penalty_g: Grams CO2e added per heavy-domain resource.
        connection_g_per_mb: Flat transport emission per MB.
        render_kwh_per_mb: Device rendering energy per MB, converted to grams
            with the requester intensity.
        grid_intensity_override: When set, every segment (server, requester
            and embodied) uses this intensity instead of the table.
        rating: Grade bounds and policy.
        profile: Size field and heavy-domain patterns used to build the page
            profile.
        description: Free-form provenance note.
    """

    version: str
    operational: EnergyIntensities
    embodied: EnergyIntensities
    green_hosting_factor: float = 1.0
    cache_factor: float | None = None
    external_script_penalty_g: float = 0.0
    heavy_domain_penalty_g: float = 0.0
    connection_g_per_mb: float = 0.0
    render_kwh_per_mb: float = 0.0
    grid_intensity_override: float | None = None
    rating: RatingScale = field(
        default_factory=lambda: RatingScale(
            bounds=(0.040, 0.079, 0.145, 0.209, 0.278, 0.359)
        )
    )
    profile: ProfileSettings = field(default_factory=ProfileSettings)
    description: str = ""

    def __post_init__(self) -> None:
        for name in (
            "green_hosting_factor",
            "external_script_penalty_g",
            "heavy_domain_penalty_g",
            "connection_g_per_mb",
            "render_kwh_per_mb",
        ):
            _check_finite(name, getattr(self, name))
        for name in ("cache_factor", "grid_intensity_override"):
            value = getattr(self, name)
            if value is not None:
                _check_finite(name, value)

    def with_overrides(self, **changes: object) -> ModelParameters:
        """Return a copy with the given fields replaced."""

        return replace(self, **changes)  # type: ignore[arg-type]


_SWDM_V4: Final[ModelParameters] = ModelParameters(
    version="swdm-v4",
    operational=EnergyIntensities.from_kwh_per_gb(0.055, 0.059, 0.080),
    embodied=EnergyIntensities.from_kwh_per_gb(0.012, 0.013, 0.081),
    green_hosting_factor=0.0,
    cache_factor=0.75,
    rating=RatingScale(
        bounds=(0.040, 0.079, 0.145, 0.209, 0.278, 0.359), inclusive=True
    ),
    profile=ProfileSettings(size_field="transfer"),
    description=(
        "Sustainable Web Design Model v4 with regional grid intensity and "
        "the 0.75 returning-visitor cache adjustment."
    ),
)

_WCC_CALIBRATED_V4: Final[ModelParameters] = ModelParameters(
    version="wcc-calibrated-v4",
    operational=EnergyIntensities.from_kwh_per_gb(0.007530, 0.008079, 0.010953),
    embodied=EnergyIntensities.from_kwh_per_gb(0.001643, 0.001779, 0.011067),
    green_hosting_factor=0.20,
    cache_factor=None,
    external_script_penalty_g=0.0006845,
    heavy_domain_penalty_g=0.001369,
    connection_g_per_mb=0.240544,
    render_kwh_per_mb=0.000004107,
    grid_intensity_override=494.0,
    rating=RatingScale(
        bounds=(0.095, 0.186, 0.341, 0.493, 0.656, 0.846), inclusive=False
    ),
    profile=ProfileSettings(size_field="decoded"),
    description=(
        "Coefficients reduced by 86.31% to match Website Carbon Calculator "
        "results, with third-party penalties, connection and render terms "
        "at a flat 494 gCO2e/kWh."
    ),
)

_SWDM_V4_GREEN_GATE: Final[ModelParameters] = replace(
    _SWDM_V4,
    version="swdm-v4-green-gate",
    rating=replace(_SWDM_V4.rating, green_gate=True),
    description="swdm-v4 where hosting without green certification rates F.",
)

_REGISTRY: dict[str, ModelParameters] = {
    model.version: model
    for model in (_SWDM_V4, _WCC_CALIBRATED_V4, _SWDM_V4_GREEN_GATE)
}


def register_model(model: ModelParameters) -> None:
    """Add or replace a model revision in the registry."""

    _REGISTRY[model.version] = model


def get_model(version: str | None = None) -> ModelParameters:
    """Return the registered model for ``version``.

    Args:
        version: Registry name; the default model is used when ``None``.

    Raises:
        UnknownModelError: If no model is registered under ``version``.
    """

    key = (version or DEFAULT_MODEL_VERSION).strip().lower()
    try:
        return _REGISTRY[key]
    except KeyError:
        known = ", ".join(sorted(_REGISTRY))
        raise UnknownModelError(
            f"unknown emission model {version!r}; available: {known}"
        ) from None


def available_models() -> dict[str, str]:
    """Return registered versions mapped to their descriptions."""

    return {name: model.description for name, model in sorted(_REGISTRY.items())}
