"""Public entry points for the :mod:`site_carbon` configuration loader."""

from __future__ import annotations

from site_carbon.config_loader.models import (
    ModelSection,
    ProfileSection,
    RatingSection,
    ServiceConfig,
    TimeoutSettings,
)
from site_carbon.config_loader.parsing import (
    apply_environment_overrides,
    apply_structured_overrides,
    build_model_parameters,
)
from site_carbon.config_loader.sources import load_structured_config
from site_carbon.estimation.parameters import ModelParameters
from site_carbon.settings import SiteCarbonSettings, get_settings

__all__ = [
    "ModelSection",
    "ProfileSection",
    "RatingSection",
    "ServiceConfig",
    "TimeoutSettings",
    "load_config",
    "resolve_model",
]


def load_config(
    path: str | None = None, *, settings: SiteCarbonSettings | None = None
) -> ServiceConfig:
    """Load configuration from environment and optional file sources.

    Args:
        path: Optional explicit path to a configuration file. When omitted the
            loader inspects ``SITE_CARBON_CONFIG_PATH`` and the default search
            locations.
        settings: Optional pre-instantiated environment settings.

    Returns:
        Fully populated :class:`ServiceConfig` instance; defaults when no
        readable file is found.
    """

    env_settings = settings or get_settings()
    base = apply_environment_overrides(ServiceConfig(), env_settings)
    structured = load_structured_config(path, env_settings)
    if structured is None:
        return base
    return apply_structured_overrides(base, structured)


def resolve_model(config: ServiceConfig) -> ModelParameters:
    """Return the effective :class:`ModelParameters` for ``config``."""

    return build_model_parameters(config)
