"""Tests for loading service configuration from environment and files."""

import json
import logging
import math

import pytest

from site_carbon.config_loader import ServiceConfig, load_config, resolve_model
from site_carbon.errors import UnknownModelError
from site_carbon.estimation import calculate
from site_carbon.intensity import CarbonIntensityTable
from site_carbon.models import UNKNOWN_HOSTING, UNKNOWN_LOCATION, PageProfile
from site_carbon.settings import SiteCarbonSettings


def test_defaults_without_file(tmp_path, monkeypatch):
    """No file and no environment yields the default model."""
    monkeypatch.chdir(tmp_path)

    config = load_config()

    assert config.model.version == "swdm-v4"
    assert config.timeouts.lookup == 30.0
    assert config.timeouts.telemetry == 60.0
    assert resolve_model(config) is not None
    assert resolve_model(config).version == "swdm-v4"


def test_environment_selects_model_and_timeouts(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SITE_CARBON_MODEL_VERSION", "wcc-calibrated-v4")
    monkeypatch.setenv("SITE_CARBON_TELEMETRY_TIMEOUT", "45")

    config = load_config()

    assert config.model.version == "wcc-calibrated-v4"
    assert config.timeouts.telemetry == 45.0
    assert resolve_model(config).grid_intensity_override == 494.0


def test_yaml_file_overrides_model(tmp_path):
    cfg_file = tmp_path / "site_carbon.yaml"
    cfg_file.write_text(
        """
model:
  version: swdm-v4
  cache_factor: null
  external_script_penalty_g: 0.001
  operational:
    data_center: 0.0001
rating:
  inclusive: false
profile:
  size_field: decoded
  heavy_domain_patterns: [cdn.example]
timeouts:
  lookup: 5
""",
        encoding="utf-8",
    )

    config = load_config(str(cfg_file), settings=SiteCarbonSettings())
    params = resolve_model(config)

    assert params.cache_factor is None
    assert params.external_script_penalty_g == 0.001
    assert params.operational.data_center == 0.0001
    assert params.operational.network == pytest.approx(0.059 / 1024)
    assert params.rating.inclusive is False
    assert params.rating.bounds[0] == 0.040
    assert params.profile.size_field == "decoded"
    assert params.profile.heavy_domain_patterns == ("cdn.example",)
    assert config.timeouts.lookup == 5.0
    assert config.timeouts.telemetry == 60.0


def test_json_file_from_environment_path(tmp_path, monkeypatch):
    cfg_file = tmp_path / "custom.json"
    cfg_file.write_text(
        json.dumps(
            {
                "model": {"version": "swdm-v4-green-gate"},
                "rating": {"bounds": [1, 2, 3, 4, 5, 6]},
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("SITE_CARBON_CONFIG_PATH", str(cfg_file))

    params = resolve_model(load_config())

    assert params.version == "swdm-v4-green-gate"
    assert params.rating.bounds == (1.0, 2.0, 3.0, 4.0, 5.0, 6.0)
    assert params.rating.green_gate is True


def test_default_search_location(tmp_path, monkeypatch):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "site_carbon.yml").write_text(
        "model:\n  heavy_domain_penalty_g: 0.5\n", encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)

    params = resolve_model(load_config())

    assert params.heavy_domain_penalty_g == 0.5


def test_invalid_values_are_ignored(tmp_path, caplog):
    cfg_file = tmp_path / "bad_values.yaml"
    cfg_file.write_text(
        """
model:
  cache_factor: -2
  connection_g_per_mb: lots
rating:
  bounds: [0.5, 0.4, 0.3, 0.2, 0.1, 0.0]
profile:
  size_field: compressed
timeouts:
  lookup: -1
""",
        encoding="utf-8",
    )

    with caplog.at_level(logging.WARNING):
        config = load_config(str(cfg_file), settings=SiteCarbonSettings())
        params = resolve_model(config)

    assert params.cache_factor == 0.75
    assert params.connection_g_per_mb == 0.0
    assert params.rating.bounds[0] == 0.040
    assert params.profile.size_field == "transfer"
    assert config.timeouts.lookup == 30.0
    assert "Ignoring" in caplog.text


def test_non_finite_yaml_values_are_ignored(tmp_path):
    cfg_file = tmp_path / "nan.yaml"
    cfg_file.write_text(
        """
model:
  cache_factor: .nan
  heavy_domain_penalty_g: .inf
  operational:
    network: .nan
rating:
  bounds: [0.1, 0.2, 0.3, 0.4, 0.5, .inf]
timeouts:
  telemetry: .inf
""",
        encoding="utf-8",
    )

    config = load_config(str(cfg_file), settings=SiteCarbonSettings())
    params = resolve_model(config)
    breakdown = calculate(
        PageProfile(total_weight_mb=1.0, heavy_domain_count=1),
        UNKNOWN_LOCATION,
        None,
        UNKNOWN_HOSTING,
        params,
        CarbonIntensityTable.default(),
    )

    assert params.cache_factor == 0.75
    assert params.heavy_domain_penalty_g == 0.0
    assert math.isfinite(params.operational.network)
    assert params.rating.bounds[-1] == 0.359
    assert config.timeouts.telemetry == 60.0
    assert math.isfinite(breakdown.emission_grams_per_visit)
    assert breakdown.emission_grams_per_visit > 0


def test_non_finite_json_strings_are_ignored(tmp_path):
    cfg_file = tmp_path / "inf.json"
    cfg_file.write_text(
        json.dumps(
            {"model": {"connection_g_per_mb": "inf", "render_kwh_per_mb": "NaN"}}
        ),
        encoding="utf-8",
    )

    params = resolve_model(load_config(str(cfg_file), settings=SiteCarbonSettings()))

    assert params.connection_g_per_mb == 0.0
    assert params.render_kwh_per_mb == 0.0


@pytest.mark.parametrize(
    ("name", "content"),
    [("broken.yaml", "model: [unclosed"), ("broken.json", "{not json")],
)
def test_unparseable_file_falls_back_to_defaults(tmp_path, name, content):
    cfg_file = tmp_path / name
    cfg_file.write_text(content, encoding="utf-8")

    config = load_config(str(cfg_file), settings=SiteCarbonSettings())

    assert config.model.version == "swdm-v4"
    assert config.model.overrides == {}


def test_non_mapping_file_is_ignored(tmp_path):
    cfg_file = tmp_path / "list.yaml"
    cfg_file.write_text("- one\n- two\n", encoding="utf-8")

    config = load_config(str(cfg_file), settings=SiteCarbonSettings())

    assert config.model.version == "swdm-v4"


def test_unknown_model_raises_on_resolve(tmp_path):
    cfg_file = tmp_path / "unknown.json"
    cfg_file.write_text('{"model": {"version": "v0"}}', encoding="utf-8")
    config = load_config(str(cfg_file), settings=SiteCarbonSettings())

    with pytest.raises(UnknownModelError):
        resolve_model(config)


def test_service_config_defaults():
    config = ServiceConfig()

    assert config.model.overrides == {}
    assert config.rating.bounds is None
    assert config.profile.size_field is None
