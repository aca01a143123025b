"""core.config
---------------

Configuration loader/manager for phenoprep. Holds the preprocessing defaults
and loads overrides from YAML/TOML/JSON files, retrievable via
:py:meth:`ConfigManager.get`.
"""

import os
import json
import yaml
import toml


class ConfigValidationError(Exception):
    """Raised when configuration loading or validation fails."""


class ConfigManager:
    """
    Loads and manages configuration from file or defaults.
    """

    # Quality-weight defaults for range estimation
    DEFAULT_PERC_WC: float = 0.4
    DEFAULT_WMIN: float = 0.2
    DEFAULT_ALPHA: float = 0.02
    # 16-day composites, used when the sampling rate cannot be inferred
    DEFAULT_NPTPERYEAR: int = 23

    # Default vegetation index and value column naming
    DEFAULT_INDEX: str = "ndvi"
    VALUE_COL_TEMPLATE: str = "mean_{index}"

    SUPPORTED_CONFIG_FORMATS: tuple[str, ...] = (".yaml", ".yml", ".toml", ".json")

    def __init__(self, config_path=None):
        self.config = {
            "default_index": self.DEFAULT_INDEX,
            "value_col_template": self.VALUE_COL_TEMPLATE,
            "check": {
                "perc_wc": self.DEFAULT_PERC_WC,
                "wmin": self.DEFAULT_WMIN,
                "alpha": self.DEFAULT_ALPHA,
            },
        }
        if config_path:
            self.load(config_path)

    def load(self, path: str) -> None:
        """
        Load configuration from a file (YAML, TOML, or JSON).
        Top-level keys overwrite existing ones; the ``check`` section is
        merged key by key.
        """
        ext = os.path.splitext(path)[1].lower()
        if ext not in self.SUPPORTED_CONFIG_FORMATS:
            raise ConfigValidationError(f"Unsupported config format: {ext}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                if ext in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                elif ext == ".toml":
                    data = toml.load(f)
                else:
                    data = json.load(f)
        except Exception as e:
            raise ConfigValidationError(
                f"Failed to load config from {path}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise ConfigValidationError(f"Config file {path} did not produce a dict")
        self._update(data)

    def _update(self, data: dict) -> None:
        check = data.get("check")
        if check is not None and not isinstance(check, dict):
            raise ConfigValidationError("'check' section must be a mapping")
        merged_check = {**self.config.get("check", {}), **(check or {})}
        self.config.update(data)
        self.config["check"] = merged_check

    def get(self, key, default=None):
        """
        Retrieve a configuration value by key, or return `default` if not present.

        Args:
            key (str): The configuration parameter to look up.
            default:  The value to return if `key` is not found.
        """
        return self.config.get(key, default)

    def merge(self, other: "ConfigManager") -> None:
        """
        Merge another ConfigManager into this one.
        Values in other.config override this.config.
        """
        if not isinstance(other, ConfigManager):
            raise TypeError("Can only merge ConfigManager instances")
        self._update(other.config)

    def get_value_col(self, index: str | None = None) -> str:
        """Return the value column name for a given index."""
        idx = index or self.get("default_index", self.DEFAULT_INDEX)
        template = self.get("value_col_template", self.VALUE_COL_TEMPLATE)
        return template.format(index=idx)
