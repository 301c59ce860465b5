# gridagg/rulebook.py
"""
Single Source of Truth (SSOT) for aggregation settings and zone classification.

This module is the ONLY place that reads rulebook.yml and implements the
cell-hour classification rule. The classifier, the CLI and the map exporter
all go through it so a threshold or colour change lands everywhere at once.

Rulebook lookup order: explicit path argument, then the GRIDAGG_RULEBOOK
environment variable, then the rulebook packaged with gridagg.
"""
from __future__ import annotations

import functools
import logging
import pathlib
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from gridagg import constants
from gridagg.core.grid.models import ZoneStatus
from gridagg.utils.env import env_str
from gridagg.utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)

RULEBOOK_ENV_VAR = "GRIDAGG_RULEBOOK"
_DEFAULT_RULEBOOK_PATH = pathlib.Path(__file__).parent / "config" / "rulebook.yml"

# ---------- Data Models ----------


class AggregationSettings(BaseModel):
    """Validated aggregation parameters."""
    grid_size_m: float = Field(default=constants.DEFAULT_GRID_SIZE_M, gt=0, allow_inf_nan=False)
    capacity_factor: float = Field(default=constants.DEFAULT_CAPACITY_FACTOR, ge=0, allow_inf_nan=False)
    min_activity_threshold: int = Field(default=constants.DEFAULT_MIN_ACTIVITY_THRESHOLD, ge=0)
    max_workers: Optional[int] = Field(default=None, ge=1)


class SyntheticSettings(BaseModel):
    """Parameters for the synthetic demo dataset."""
    n_events: int = Field(default=constants.DEFAULT_SYNTHETIC_EVENTS, ge=0)
    seed: int = constants.DEFAULT_SYNTHETIC_SEED
    bounds: Dict[str, float] = Field(default_factory=lambda: dict(constants.DEFAULT_SYNTHETIC_BOUNDS))

    @field_validator("bounds")
    @classmethod
    def validate_bounds(cls, v: Dict[str, float]) -> Dict[str, float]:
        missing = [k for k in constants.DEFAULT_SYNTHETIC_BOUNDS if k not in v]
        if missing:
            raise ValueError(f"bounds missing keys: {', '.join(missing)}")
        if v["lon_min"] > v["lon_max"] or v["lat_min"] > v["lat_max"]:
            raise ValueError("bounds min must not exceed max")
        return v


class ReportingSettings(BaseModel):
    """Presentation settings: colour and label per ZoneStatus value."""
    status_colors: Dict[str, str] = Field(default_factory=lambda: dict(constants.STATUS_COLORS))
    status_labels: Dict[str, str] = Field(default_factory=dict)

    def color_for(self, status: ZoneStatus) -> str:
        return self.status_colors.get(status.value, constants.STATUS_COLORS[status.value])

    def label_for(self, status: ZoneStatus) -> str:
        return self.status_labels.get(status.value, status.value)


# ---------- Loader / SSOT ----------


def resolve_rulebook_path(path: Optional[str] = None) -> pathlib.Path:
    """Explicit path > GRIDAGG_RULEBOOK > packaged default."""
    return pathlib.Path(path or env_str(RULEBOOK_ENV_VAR) or _DEFAULT_RULEBOOK_PATH)


@functools.lru_cache(maxsize=8)
def _load_yaml(path: str) -> Dict[str, Any]:
    """Load rulebook YAML (cached per resolved path)."""
    p = pathlib.Path(path)
    logger.info(f"Loading rulebook from {p}")
    if not p.exists():
        raise FileNotFoundError(f"rulebook not found at {p}")
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"rulebook at {p} must be a mapping (got {type(data).__name__})")
    return data


def load_rulebook(path: Optional[str] = None) -> Dict[str, Any]:
    """Raw rulebook mapping."""
    return _load_yaml(str(resolve_rulebook_path(path)))


def version(path: Optional[str] = None) -> str:
    """Get rulebook version."""
    return str(load_rulebook(path).get("version", "unversioned"))


def _section(model, data: Dict[str, Any], key: str):
    try:
        return model(**(data.get(key) or {}))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid '{key}' section in rulebook: {e}") from e


def load_settings(path: Optional[str] = None) -> AggregationSettings:
    """Aggregation parameters from the rulebook; absent keys fall back to constants."""
    settings = _section(AggregationSettings, load_rulebook(path), "aggregation")
    logger.debug(f"Aggregation settings (rulebook v{version(path)}): {settings.model_dump()}")
    return settings


def load_reporting(path: Optional[str] = None) -> ReportingSettings:
    return _section(ReportingSettings, load_rulebook(path), "reporting")


def load_synthetic(path: Optional[str] = None) -> SyntheticSettings:
    return _section(SyntheticSettings, load_rulebook(path), "synthetic")


def clear_cache() -> None:
    """Forget loaded rulebooks (tests and long-lived processes editing the file)."""
    _load_yaml.cache_clear()


# ---------- Classification ----------


def classify_zone(
    supply: int,
    demand: int,
    effective_supply: int,
    min_activity_threshold: int = constants.DEFAULT_MIN_ACTIVITY_THRESHOLD,
) -> ZoneStatus:
    """
    Classify one cell-hour.

    Precedence:
    1. supply + demand below the threshold -> Unsupported, whatever the net
    2. effective_supply - demand > 0 -> NetSupply
    3. effective_supply - demand < 0 -> NetDemand
    4. otherwise -> Balanced
    """
    if supply + demand < min_activity_threshold:
        return ZoneStatus.UNSUPPORTED
    net = effective_supply - demand
    if net > 0:
        return ZoneStatus.NET_SUPPLY
    if net < 0:
        return ZoneStatus.NET_DEMAND
    return ZoneStatus.BALANCED
