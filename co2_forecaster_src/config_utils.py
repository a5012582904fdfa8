# co2_forecaster_src/config_utils.py

import argparse
import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.yaml"

# Built-in defaults; the YAML file only needs to override what differs.
DEFAULT_SETTINGS: Dict[str, Any] = {
    "data": {
        "country": "USA",
        "indicators": [
            "EN.ATM.CO2E.GF.KT",
            "EN.ATM.CO2E.LF.KT",
            "EN.ATM.CO2E.SF.KT",
        ],
        "start_year": 1960,
        "end_year": 2016,
        "series_name": "co2_kt",
        "source": 57,
    },
    "stationarity": {
        "alpha": 0.05,
        "max_d": 2,
        "allow_inconclusive": False,
    },
    "model": {
        "search_space": {
            "p_range": "0-5",
            "q_range": "0-5",
        },
        "criterion": "aic",
    },
    "diagnostics": {
        "alpha": 0.05,
        "ljungbox_lags": None,
    },
    "forecast": {
        "horizons": [4, 14],
        "intervals": [80, 95],
    },
    "output": {
        "out_dir": "reports",
        "figure_dpi": 150,
    },
}

# Initialize the global configuration manager
config_manager = None


class ConfigurationManager:
    """
    YAML-backed settings store with dot-path access.

    Values from the file are merged over ``DEFAULT_SETTINGS`` so that a
    partial file is always valid.
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None, load: bool = True):
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self.settings = copy.deepcopy(DEFAULT_SETTINGS)
        self.loaded = False
        if load:
            self._load()

    def _load(self) -> None:
        if not self.config_path.is_file():
            logger.warning("Configuration file not found: %s - using defaults", self.config_path)
            return
        with self.config_path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Configuration root must be a mapping: {self.config_path}")
        _deep_merge(self.settings, raw)
        self.loaded = True
        logger.info("Loaded configuration from %s", self.config_path)

    def get(self, key_path: str, default=None):
        """
        Look up a dotted key such as ``'forecast.horizons'``.

        Returns ``default`` when any path component is missing.
        """
        node: Any = self.settings
        for part in key_path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def validate_configuration(self) -> Dict[str, List[str]]:
        """
        Check value ranges and return a mapping of section -> problems.

        An empty mapping means the configuration is usable as is.
        """
        errors: Dict[str, List[str]] = {}

        def add(section: str, message: str) -> None:
            errors.setdefault(section, []).append(message)

        start = self.get("data.start_year")
        end = self.get("data.end_year")
        if not isinstance(start, int) or not isinstance(end, int) or start >= end:
            add("data", f"start_year/end_year must be integers with start < end (got {start}, {end})")
        if not self.get("data.indicators"):
            add("data", "at least one indicator code is required")

        for section in ("stationarity", "diagnostics"):
            alpha = self.get(f"{section}.alpha")
            if not isinstance(alpha, (int, float)) or not 0.0 < float(alpha) < 1.0:
                add(section, f"alpha must lie in (0, 1) (got {alpha})")

        max_d = self.get("stationarity.max_d")
        if not isinstance(max_d, int) or not 0 <= max_d <= 2:
            add("stationarity", f"max_d must be 0, 1 or 2 (got {max_d})")

        if str(self.get("model.criterion", "")).lower() not in {"aic", "bic", "hqic"}:
            add("model", f"criterion must be one of aic, bic, hqic (got {self.get('model.criterion')})")

        horizons = self.get("forecast.horizons") or []
        if any((not isinstance(h, int)) or h < 1 for h in horizons):
            add("forecast", f"horizons must be positive integers (got {horizons})")

        return errors


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def initialize_config(config_path: Optional[Union[str, Path]] = None) -> ConfigurationManager:
    """
    Initializes the global configuration manager.
    This function loads and validates the project's configuration file. Validation
    problems are logged as warnings; a malformed file is logged and replaced by defaults.
    """
    global config_manager
    try:
        config_manager = ConfigurationManager(config_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Failed to initialize configuration: %s. Using defaults.", e)
        config_manager = ConfigurationManager(config_path, load=False)
    validation_errors = config_manager.validate_configuration()
    if validation_errors:
        logger.warning("Configuration validation warnings: %s", validation_errors)
    return config_manager


def reset_config() -> None:
    """Drop the global configuration manager (used by tests)."""
    global config_manager
    config_manager = None


def get_config_value(key_path: str, default=None, args: Optional[argparse.Namespace] = None,
                     cli_param: Optional[str] = None):
    """
    Retrieves a configuration value, providing support for command-line overrides.
    The function prioritizes values in the following order:
    1. CLI argument (if provided)
    2. Configuration file
    3. Default value
    """
    # First priority: CLI argument
    if args is not None and cli_param and hasattr(args, cli_param):
        cli_value = getattr(args, cli_param)
        if cli_value is not None:
            return cli_value

    # Second priority: Configuration file (merged over built-in defaults)
    if config_manager is not None:
        config_value = config_manager.get(key_path, None)
        if config_value is not None:
            return config_value

    # Third priority: Default value
    return default
