"""Tests for environment-backed settings."""

from __future__ import annotations

import pytest

from site_carbon.settings import SiteCarbonSettings, get_settings


def test_defaults() -> None:
    settings = get_settings()

    assert settings.emission_model == "swdm-v4"
    assert settings.lookup_timeout == 30.0
    assert settings.telemetry_timeout == 60.0
    assert settings.notify_timeout == 30.0
    assert settings.lookup_retries == 1
    assert settings.smtp_host == "smtp.hostinger.com"
    assert settings.smtp_port == 465
    assert settings.port == 3000
    assert settings.trust_proxy is True
    assert settings.allowed_origins == ["https://aplicacoes.tec.br"]
    assert not settings.email_configured


def test_environment_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SITE_CARBON_MODEL_VERSION", "wcc-calibrated-v4")
    monkeypatch.setenv("SITE_CARBON_CORS_ORIGINS", "https://a.example, https://b.example,,")
    monkeypatch.setenv("SITE_CARBON_LOOKUP_TIMEOUT", "2.5")
    monkeypatch.setenv("SITE_CARBON_TRUST_PROXY", "false")
    monkeypatch.setenv("EMAIL_USER", "leads@example.org")
    monkeypatch.setenv("EMAIL_PASS", "secret")
    monkeypatch.setenv("PORT", "8080")

    settings = SiteCarbonSettings()

    assert settings.emission_model == "wcc-calibrated-v4"
    assert settings.allowed_origins == ["https://a.example", "https://b.example"]
    assert settings.lookup_timeout == 2.5
    assert settings.trust_proxy is False
    assert settings.email_configured
    assert settings.port == 8080


@pytest.mark.parametrize(
    ("variable", "raw", "attribute", "expected"),
    [
        ("SITE_CARBON_LOOKUP_TIMEOUT", "abc", "lookup_timeout", 30.0),
        ("SITE_CARBON_LOOKUP_TIMEOUT", "-5", "lookup_timeout", 30.0),
        ("SITE_CARBON_TELEMETRY_TIMEOUT", "0", "telemetry_timeout", 60.0),
        ("SITE_CARBON_TELEMETRY_TIMEOUT", "nan", "telemetry_timeout", 60.0),
        ("SITE_CARBON_LOOKUP_TIMEOUT", "inf", "lookup_timeout", 30.0),
        ("SITE_CARBON_NOTIFY_TIMEOUT", "", "notify_timeout", 30.0),
        ("SITE_CARBON_LOOKUP_RETRIES", "many", "lookup_retries", 1),
        ("SMTP_PORT", "ssl", "smtp_port", 465),
        ("PORT", "http", "port", 3000),
    ],
)
def test_malformed_values_fall_back_to_defaults(
    monkeypatch: pytest.MonkeyPatch,
    variable: str,
    raw: str,
    attribute: str,
    expected: float,
) -> None:
    monkeypatch.setenv(variable, raw)

    assert getattr(SiteCarbonSettings(), attribute) == expected


def test_constructor_accepts_field_names() -> None:
    settings = SiteCarbonSettings(cors_origins="https://only.example", port=9000)

    assert settings.allowed_origins == ["https://only.example"]
    assert settings.port == 9000


def test_get_settings_reads_current_environment(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("PORT", "8001")
    assert get_settings().port == 8001

    monkeypatch.setenv("PORT", "8002")
    assert get_settings().port == 8002
