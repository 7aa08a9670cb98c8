"""Parsing and transformation helpers for :mod:`site_carbon.config_loader`."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import replace

from site_carbon.config_loader.models import (
    ModelSection,
    ProfileSection,
    RatingSection,
    ServiceConfig,
    TimeoutSettings,
)
from site_carbon.estimation.parameters import (
    EnergyIntensities,
    ModelParameters,
    get_model,
)
from site_carbon.estimation.profile import ProfileSettings
from site_carbon.estimation.rating import RatingScale
from site_carbon.settings import SiteCarbonSettings

LOGGER = logging.getLogger(__name__)

OVERRIDABLE_FIELDS: tuple[str, ...] = (
    "green_hosting_factor",
    "cache_factor",
    "external_script_penalty_g",
    "heavy_domain_penalty_g",
    "connection_g_per_mb",
    "render_kwh_per_mb",
    "grid_intensity_override",
)
NULLABLE_FIELDS: frozenset[str] = frozenset({"cache_factor", "grid_intensity_override"})
SEGMENTS: tuple[str, ...] = ("data_center", "network", "user_device")


def apply_environment_overrides(
    config: ServiceConfig, settings: SiteCarbonSettings
) -> ServiceConfig:
    """Apply environment-derived overrides to the configuration.

    Args:
        config: Base configuration instance.
        settings: Environment-derived settings.

    Returns:
        Configuration with the model version and timeouts taken from the
        environment.
    """

    return replace(
        config,
        model=replace(config.model, version=settings.emission_model),
        timeouts=TimeoutSettings(
            lookup=settings.lookup_timeout,
            telemetry=settings.telemetry_timeout,
            notify=settings.notify_timeout,
        ),
    )


def apply_structured_overrides(
    config: ServiceConfig, data: Mapping[str, object]
) -> ServiceConfig:
    """Apply overrides sourced from a parsed configuration file.

    Unknown keys and values of the wrong type are ignored.
    """

    updated = config

    model_section = _expect_mapping(data.get("model"))
    if model_section is not None:
        updated = replace(
            updated, model=_parse_model_section(updated.model, model_section)
        )

    rating_section = _expect_mapping(data.get("rating"))
    if rating_section is not None:
        updated = replace(updated, rating=_parse_rating_section(rating_section))

    profile_section = _expect_mapping(data.get("profile"))
    if profile_section is not None:
        updated = replace(updated, profile=_parse_profile_section(profile_section))

    timeouts_section = _expect_mapping(data.get("timeouts"))
    if timeouts_section is not None:
        updated = replace(
            updated, timeouts=_parse_timeouts(updated.timeouts, timeouts_section)
        )

    return updated


def _parse_model_section(
    current: ModelSection, section: Mapping[str, object]
) -> ModelSection:
    version = _coerce_str(section.get("version")) or current.version

    overrides: dict[str, float | None] = dict(current.overrides)
    for name in OVERRIDABLE_FIELDS:
        if name not in section:
            continue
        raw = section[name]
        if raw is None and name in NULLABLE_FIELDS:
            overrides[name] = None
            continue
        number = _coerce_float(raw)
        if number is None or number < 0:
            LOGGER.warning("Ignoring invalid model override", extra={"field": name})
            continue
        overrides[name] = number

    return ModelSection(
        version=version,
        overrides=overrides,
        operational=_parse_segments(section.get("operational"), current.operational),
        embodied=_parse_segments(section.get("embodied"), current.embodied),
    )


def _parse_segments(
    value: object, current: Mapping[str, float]
) -> dict[str, float]:
    section = _expect_mapping(value)
    result = dict(current)
    if section is None:
        return result
    for segment in SEGMENTS:
        number = _coerce_float(section.get(segment))
        if number is not None and number >= 0:
            result[segment] = number
    return result


def _parse_rating_section(section: Mapping[str, object]) -> RatingSection:
    bounds: tuple[float, ...] | None = None
    raw_bounds = section.get("bounds")
    if isinstance(raw_bounds, Sequence) and not isinstance(raw_bounds, str):
        parsed = [_coerce_float(item) for item in raw_bounds]
        if all(item is not None for item in parsed):
            bounds = tuple(item for item in parsed if item is not None)
    return RatingSection(
        bounds=bounds,
        inclusive=_coerce_bool(section.get("inclusive")),
        green_gate=_coerce_bool(section.get("green_gate")),
    )


def _parse_profile_section(section: Mapping[str, object]) -> ProfileSection:
    patterns: tuple[str, ...] | None = None
    raw_patterns = section.get("heavy_domain_patterns")
    if isinstance(raw_patterns, Sequence) and not isinstance(raw_patterns, str):
        patterns = tuple(str(item).strip() for item in raw_patterns if str(item).strip())
    return ProfileSection(
        size_field=_coerce_str(section.get("size_field")),
        heavy_domain_patterns=patterns,
    )


def _parse_timeouts(
    current: TimeoutSettings, section: Mapping[str, object]
) -> TimeoutSettings:
    values = {}
    for name in ("lookup", "telemetry", "notify"):
        number = _coerce_float(section.get(name))
        if number is not None and number > 0:
            values[name] = number
    return replace(current, **values)


def build_model_parameters(config: ServiceConfig) -> ModelParameters:
    """Return the registered model with every configured override applied.

    Raises:
        UnknownModelError: If the configured version is not registered.
    """

    params = get_model(config.model.version)
    for name, value in config.model.overrides.items():
        try:
            params = replace(params, **{name: value})
        except (TypeError, ValueError) as exc:
            LOGGER.warning(
                "Ignoring model override", extra={"field": name, "error": str(exc)}
            )

    params = _with_intensities(params, "operational", config.model.operational)
    params = _with_intensities(params, "embodied", config.model.embodied)

    rating = config.rating
    if (rating.bounds, rating.inclusive, rating.green_gate) != (None, None, None):
        current = params.rating
        try:
            scale = RatingScale(
                bounds=rating.bounds or current.bounds,  # type: ignore[arg-type]
                inclusive=(
                    current.inclusive if rating.inclusive is None else rating.inclusive
                ),
                green_gate=(
                    current.green_gate if rating.green_gate is None else rating.green_gate
                ),
            )
        except ValueError as exc:
            LOGGER.warning("Ignoring rating override", extra={"error": str(exc)})
        else:
            params = replace(params, rating=scale)

    profile = config.profile
    if profile.size_field is not None or profile.heavy_domain_patterns is not None:
        try:
            settings = ProfileSettings(
                size_field=profile.size_field or params.profile.size_field,  # type: ignore[arg-type]
                heavy_domain_patterns=(
                    profile.heavy_domain_patterns
                    if profile.heavy_domain_patterns is not None
                    else params.profile.heavy_domain_patterns
                ),
            )
        except ValueError as exc:
            LOGGER.warning("Ignoring profile override", extra={"error": str(exc)})
        else:
            params = replace(params, profile=settings)

    return params


def _with_intensities(
    params: ModelParameters, attribute: str, values: Mapping[str, float]
) -> ModelParameters:
    if not values:
        return params
    current: EnergyIntensities = getattr(params, attribute)
    updated = replace(current, **{key: values[key] for key in SEGMENTS if key in values})
    return replace(params, **{attribute: updated})


def _expect_mapping(value: object) -> Mapping[str, object] | None:
    if isinstance(value, Mapping):
        return value
    return None


def _coerce_str(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _coerce_float(value: object) -> float | None:
    """Return ``value`` as a finite float, or ``None``."""

    number: float | None = None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    if number is None or not math.isfinite(number):
        return None
    return number


def _coerce_bool(value: object) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off"}:
            return False
    return None
