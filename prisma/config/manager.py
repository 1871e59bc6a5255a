"""Configuration Management for Prisma
===================================

YAML/JSON configuration loading with defaults. The loaded file is merged
over the default configuration, so a file only needs the keys it changes.

Layout::

    metadata:
      config_version: "1.0"
    optimization:
      levenberg_marquardt:
        max_iterations: 1000
        max_evaluations: 10000
        damping: {initial_damping: 1.0e-3, damping_decrease: 10, damping_increase: 10, ...}
        tolerances: {cost_relative_tolerance: 1.0e-10, ...}
        initial_guess: {r: 20.0, alpha1_deg: 60.0, alpha2_deg: 60.0}
    output:
      output_dir: ./prisma_results
      save_json: true
    plotting:
      dpi: 150
      format: png
    logging:
      level: INFO
"""

import copy
import json
from pathlib import Path
from typing import Any

import yaml

from prisma.utils.logging import get_logger

logger = get_logger(__name__)


DEFAULT_CONFIG: dict[str, Any] = {
    "metadata": {
        "config_version": "1.0",
        "description": "Default prismatic rule assessment configuration",
    },
    "optimization": {
        "levenberg_marquardt": {
            "max_iterations": 1000,
            "max_evaluations": 10000,
            "damping": {
                "initial_damping": 1e-3,
                "damping_decrease": 10.0,
                "damping_increase": 10.0,
                "min_damping": 1e-15,
            },
            "tolerances": {
                "cost_relative_tolerance": 1e-10,
                "point_relative_tolerance": 1e-10,
                "point_absolute_tolerance": 1e-12,
                "cost_absolute_tolerance": 1e-20,
            },
            "singularity_threshold": 1e-14,
            "rcond": 1e-10,
            "reject_out_of_domain": False,
            "initial_guess": None,
        },
    },
    "output": {
        "output_dir": "./prisma_results",
        "save_json": True,
    },
    "plotting": {
        "dpi": 150,
        "format": "png",
    },
    "logging": {
        "level": "INFO",
    },
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigManager:
    """Configuration manager for prismatic rule assessment.

    Usage:
        config_manager = ConfigManager('prisma_config.yaml')
        options = config_manager.get_solver_options()
    """

    def __init__(
        self,
        config_file: str | Path | None = None,
        config_override: dict[str, Any] | None = None,
    ):
        """Initialize configuration manager.

        Parameters
        ----------
        config_file : str or Path, optional
            Path to YAML/JSON configuration file; None uses the defaults
        config_override : dict, optional
            Configuration data merged over the defaults instead of a file
        """
        self.config_file = config_file
        self.config: dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

        if config_override is not None:
            self.config = _deep_merge(DEFAULT_CONFIG, config_override)
            logger.info("Configuration loaded from override data")
        elif config_file is not None:
            self.load_config()
        else:
            logger.debug("Using default configuration")

    def load_config(self) -> None:
        """Load and parse the YAML/JSON configuration file.

        Parsing errors and missing files are logged and the default
        configuration is used instead.
        """
        try:
            config_path = Path(self.config_file)
            if not config_path.exists():
                raise FileNotFoundError(
                    f"Configuration file not found: {self.config_file}",
                )

            with open(config_path, encoding="utf-8") as f:
                if config_path.suffix.lower() == ".json":
                    loaded = json.load(f)
                else:
                    loaded = yaml.safe_load(f)

            if loaded is None:
                loaded = {}
            if not isinstance(loaded, dict):
                raise ValueError(
                    f"configuration root must be a mapping, got {type(loaded).__name__}"
                )

            self.config = _deep_merge(DEFAULT_CONFIG, loaded)
            logger.info(f"Configuration loaded from: {self.config_file}")

            version = self.config["metadata"].get("config_version", "Unknown")
            logger.debug(f"Configuration version: {version}")

            self._validate_config()

        except (OSError, ValueError, yaml.YAMLError) as e:
            # json.JSONDecodeError is a ValueError
            error_type = "YAML parsing" if isinstance(e, yaml.YAMLError) else "Configuration"
            logger.error(f"{error_type} error: {e}")
            logger.info("Using default configuration...")
            self.config = copy.deepcopy(DEFAULT_CONFIG)

    def get_config(self) -> dict[str, Any]:
        """Get the current configuration dictionary."""
        return self.config

    def update_config(self, key: str, value: Any) -> None:
        """Update a configuration value using dot notation.

        Parameters
        ----------
        key : str
            Configuration key (dot notation like
            'optimization.levenberg_marquardt.max_iterations')
        value : Any
            New value to set
        """
        keys = key.split(".")
        config_ref = self.config

        for k in keys[:-1]:
            if k not in config_ref or not isinstance(config_ref[k], dict):
                config_ref[k] = {}
            config_ref = config_ref[k]

        config_ref[keys[-1]] = value

    def get_solver_options(self) -> dict[str, Any]:
        """Options mapping for :meth:`LMConfig.from_dict`."""
        return copy.deepcopy(
            self.config.get("optimization", {}).get("levenberg_marquardt", {})
        )

    def get_output_dir(self) -> Path:
        return Path(self.config.get("output", {}).get("output_dir", "./prisma_results"))

    def get_plotting_options(self) -> dict[str, Any]:
        return dict(self.config.get("plotting", {}))

    def _validate_config(self) -> None:
        """Warn about unknown sections and logging levels."""
        known_sections = set(DEFAULT_CONFIG)
        for section in self.config:
            if section not in known_sections:
                logger.warning(f"Unknown configuration section: {section}")

        level = str(self.config.get("logging", {}).get("level", "INFO")).upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            logger.warning(f"Unknown logging level: '{level}'")

        logger.debug("Configuration validation completed")


def load_prisma_config(config_path: str | Path) -> dict[str, Any]:
    """Load a prisma configuration file merged over the defaults.

    Parameters
    ----------
    config_path : str or Path
        Path to configuration file

    Returns
    -------
    dict
        Configuration dictionary
    """
    return ConfigManager(config_path).config
