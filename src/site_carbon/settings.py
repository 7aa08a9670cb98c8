"""Environment-backed settings primitives for :mod:`site_carbon`."""

from __future__ import annotations

import math

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["SiteCarbonSettings", "get_settings"]


class SiteCarbonSettings(BaseSettings):
    """Expose environment-derived configuration knobs for the service.

    All environment lookups go through this class. Every attribute maps to a
    documented environment variable and falls back to an inline default when
    the variable is absent or malformed.

    Attributes:
        emission_model: Registered emission model used when no configuration
            file overrides it.
        config_path: Explicit path to a YAML/JSON configuration file.
        carbon_intensity_file: Optional JSON file replacing the packaged
            country intensity table.
        cors_origins: Comma separated list of origins allowed by CORS.
        lookup_timeout: Timeout in seconds for green-hosting and geo-IP
            lookups.
        telemetry_timeout: Timeout in seconds for the full page load.
        notify_timeout: Timeout in seconds for the SMTP conversation.
        lookup_retries: Extra attempts for idempotent lookups on transport
            errors.
        log_level: Logging level name for the structured logger.
        email_user: SMTP account used both as sender and lead recipient.
        email_password: SMTP password.
        smtp_host: SMTP server host.
        smtp_port: SMTP-over-SSL port.
        port: HTTP port used by ``site-carbon serve``.
        trust_proxy: Honour ``X-Forwarded-For`` when resolving requester IPs.
        locate_requester: Geolocate the requester to pick a regional
            intensity for network and device segments.
    """

    emission_model: str = Field(default="swdm-v4", alias="SITE_CARBON_MODEL_VERSION")
    config_path: str | None = Field(default=None, alias="SITE_CARBON_CONFIG_PATH")
    carbon_intensity_file: str | None = Field(
        default=None, alias="SITE_CARBON_INTENSITY_FILE"
    )
    cors_origins: str = Field(
        default="https://aplicacoes.tec.br", alias="SITE_CARBON_CORS_ORIGINS"
    )
    lookup_timeout: float = Field(default=30.0, alias="SITE_CARBON_LOOKUP_TIMEOUT")
    telemetry_timeout: float = Field(
        default=60.0, alias="SITE_CARBON_TELEMETRY_TIMEOUT"
    )
    notify_timeout: float = Field(default=30.0, alias="SITE_CARBON_NOTIFY_TIMEOUT")
    lookup_retries: int = Field(default=1, alias="SITE_CARBON_LOOKUP_RETRIES")
    log_level: str = Field(default="INFO", alias="SITE_CARBON_LOG_LEVEL")
    email_user: str | None = Field(default=None, alias="EMAIL_USER")
    email_password: str | None = Field(default=None, alias="EMAIL_PASS")
    smtp_host: str = Field(default="smtp.hostinger.com", alias="SMTP_HOST")
    smtp_port: int = Field(default=465, alias="SMTP_PORT")
    port: int = Field(default=3000, alias="PORT")
    trust_proxy: bool = Field(default=True, alias="SITE_CARBON_TRUST_PROXY")
    locate_requester: bool = Field(default=True, alias="SITE_CARBON_LOCATE_REQUESTER")

    model_config = SettingsConfigDict(
        env_file=None, extra="ignore", populate_by_name=True
    )

    @field_validator(
        "lookup_timeout", "telemetry_timeout", "notify_timeout", mode="before"
    )
    @classmethod
    def _parse_timeout(cls, value: object, info: ValidationInfo) -> float:
        """Parse timeouts while tolerating malformed input.

        Args:
            value: Raw environment value.
            info: Validation context naming the field being parsed.

        Returns:
            Parsed positive float, or the field default when the value is
            unusable.
        """

        fallback = 60.0 if info.field_name == "telemetry_timeout" else 30.0
        parsed: float | None = None
        if isinstance(value, (int, float)):
            parsed = float(value)
        elif isinstance(value, str):
            try:
                parsed = float(value.strip())
            except ValueError:
                parsed = None
        if parsed is None or not math.isfinite(parsed) or parsed <= 0:
            return fallback
        return parsed

    @field_validator("lookup_retries", "smtp_port", "port", mode="before")
    @classmethod
    def _parse_int(cls, value: object, info: ValidationInfo) -> int:
        """Parse integer fields, falling back to the field default."""

        defaults = {"lookup_retries": 1, "smtp_port": 465, "port": 3000}
        field_name = info.field_name or ""
        if isinstance(value, bool):
            return defaults.get(field_name, 0)
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                return defaults.get(field_name, 0)
        return defaults.get(field_name, 0)

    @property
    def allowed_origins(self) -> list[str]:
        """Return the CORS origins as a list.

        Returns:
            Stripped, non-empty origin strings.
        """

        return [item.strip() for item in self.cors_origins.split(",") if item.strip()]

    @property
    def email_configured(self) -> bool:
        """Return ``True`` when SMTP credentials are present."""

        return bool(self.email_user and self.email_password)


def get_settings() -> SiteCarbonSettings:
    """Return a :class:`SiteCarbonSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return SiteCarbonSettings()
