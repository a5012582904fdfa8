import types
from pathlib import Path

import pytest

from co2_forecaster_src import config_utils
from co2_forecaster_src.config_utils import ConfigurationManager, get_config_value, initialize_config


@pytest.fixture(autouse=True)
def _reset_global_config():
    config_utils.reset_config()
    yield
    config_utils.reset_config()


def test_bundled_settings_file_is_valid():
    manager = ConfigurationManager()

    assert manager.loaded
    assert manager.validate_configuration() == {}
    assert manager.get("data.country") == "USA"
    assert manager.get("forecast.horizons") == [4, 14]
    assert manager.get("data.source") == 57
    assert manager.get("model.search_space.p_range") == "0-5"


def test_partial_file_is_merged_over_defaults(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text("data:\n  country: DEU\nforecast:\n  horizons: [5]\n", encoding="utf-8")
    manager = ConfigurationManager(path)

    assert manager.get("data.country") == "DEU"
    assert manager.get("data.start_year") == 1960
    assert manager.get("forecast.horizons") == [5]
    assert manager.get("forecast.intervals") == [80, 95]
    assert manager.get("no.such.key", "fallback") == "fallback"


def test_validation_reports_bad_values(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "data:\n  start_year: 2020\n  end_year: 2000\nstationarity:\n  alpha: 1.5\n  max_d: 3\n"
        "model:\n  criterion: mse\nforecast:\n  horizons: [0]\n",
        encoding="utf-8",
    )
    errors = ConfigurationManager(path).validate_configuration()

    assert set(errors) == {"data", "stationarity", "model", "forecast"}
    assert len(errors["stationarity"]) == 2


@pytest.mark.parametrize("text", ["data: [unclosed\n", "- just\n- a list\n"])
def test_malformed_file_falls_back_to_defaults(tmp_path: Path, text):
    path = tmp_path / "settings.yaml"
    path.write_text(text, encoding="utf-8")
    manager = initialize_config(path)

    assert not manager.loaded
    assert manager.get("data.country") == "USA"


def test_missing_file_uses_defaults(tmp_path: Path):
    manager = initialize_config(tmp_path / "absent.yaml")

    assert not manager.loaded
    assert manager.get("stationarity.max_d") == 2
    assert manager.get("data.source") == 57


def test_cli_value_wins_over_config_and_default(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text("data:\n  country: FRA\n", encoding="utf-8")
    initialize_config(path)

    args = types.SimpleNamespace(country="GBR", max_d=None)
    assert get_config_value("data.country", "USA", args, "country") == "GBR"
    assert get_config_value("data.country", "USA", types.SimpleNamespace(country=None), "country") == "FRA"
    assert get_config_value("stationarity.max_d", 1, args, "max_d") == 2
    assert get_config_value("not.configured", 7, args, "missing") == 7


def test_default_used_without_config():
    assert get_config_value("data.country", "USA") == "USA"
