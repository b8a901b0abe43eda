"""Configuration loader wrapping the tax schedule schema models."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .schema import (
    ConfigurationError,
    DeductionBracket,
    EmploymentDeductionConfig,
    FlatRateConfig,
    IncomeTaxConfig,
    RateBracket,
    ScheduleMeta,
    TaxSchedule,
)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
SCHEDULE_FILE = CONFIG_DIRECTORY / "tax_schedule.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must define a mapping at the top level")
    return data


def parse_tax_schedule(raw: dict[str, Any]) -> TaxSchedule:
    """Validate a raw mapping into a :class:`TaxSchedule`."""

    try:
        return TaxSchedule.model_validate(raw)
    except ValidationError as error:
        raise ConfigurationError(f"Tax schedule validation failed: {error}") from error


def read_tax_schedule(path: Path) -> TaxSchedule:
    """Load a schedule from an arbitrary YAML file without caching."""

    if not path.exists():
        raise FileNotFoundError(f"Tax schedule file missing: {path.name}")
    return parse_tax_schedule(_load_yaml(path))


@lru_cache(maxsize=1)
def load_tax_schedule() -> TaxSchedule:
    """Load and cache the packaged tax schedule."""

    return read_tax_schedule(SCHEDULE_FILE)


__all__ = [
    "CONFIG_DIRECTORY",
    "ConfigurationError",
    "DeductionBracket",
    "EmploymentDeductionConfig",
    "FlatRateConfig",
    "IncomeTaxConfig",
    "RateBracket",
    "SCHEDULE_FILE",
    "ScheduleMeta",
    "TaxSchedule",
    "load_tax_schedule",
    "parse_tax_schedule",
    "read_tax_schedule",
]
