from __future__ import annotations

"""Per-call configuration of :func:`phenoprep.analytics.check.check_input`."""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict
import yaml

from phenoprep.core.config import ConfigManager, ConfigValidationError


@dataclass
class CheckOptions:
    """Options of the quality check; ``None`` means derive from the data."""

    nptperyear: int | None = None
    south: bool = False
    perc_wc: float = ConfigManager.DEFAULT_PERC_WC
    wmin: float = ConfigManager.DEFAULT_WMIN
    ymin: float | None = None
    missval: float | None = None
    maxgap: int | None = None
    alpha: float = ConfigManager.DEFAULT_ALPHA

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckOptions":
        """Build options from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigValidationError(
                f"Unknown check options: {', '.join(sorted(unknown))}"
            )
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CheckOptions":
        """Load options from a YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def from_config(cls, cfg: ConfigManager) -> "CheckOptions":
        """Read the ``check`` section of a loaded configuration."""
        return cls.from_dict(dict(cfg.get("check", {}) or {}))

    def to_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments accepted by ``check_input``."""
        return asdict(self)


DEFAULT_OPTIONS_PATH = (
    Path(__file__).resolve().parent.parent / "config" / "check_defaults.yaml"
)
