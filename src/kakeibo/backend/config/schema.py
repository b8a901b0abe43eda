"""Pydantic models describing the tax schedule configuration."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import Self


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class DeductionBracket(ImmutableModel):
    """Employment income deduction bracket: ``income * rate + amount``."""

    upper_bound: float | None = Field(default=None, alias="upper")
    rate: float = 0.0
    amount: float = 0.0

    @model_validator(mode="after")
    def _validate_values(self) -> Self:
        if self.rate < 0:
            raise ConfigurationError("Deduction rates must be non-negative")
        if self.amount < 0:
            raise ConfigurationError("Deduction amounts must be non-negative")
        if self.upper_bound is not None and self.upper_bound <= 0:
            raise ConfigurationError("Upper bounds must be positive values")
        return self

    def deduction_for(self, income: float) -> float:
        if self.rate == 0:
            return self.amount
        return income * self.rate + self.amount


class RateBracket(ImmutableModel):
    """Flat tax rate applied when taxable income falls within the bracket."""

    upper_bound: float | None = Field(default=None, alias="upper")
    rate: float

    @model_validator(mode="after")
    def _validate_values(self) -> Self:
        if self.rate < 0:
            raise ConfigurationError("Tax rates must be non-negative")
        if self.upper_bound is not None and self.upper_bound <= 0:
            raise ConfigurationError("Upper bounds must be positive values")
        return self


def _check_bracket_order(brackets: Sequence[DeductionBracket | RateBracket]) -> None:
    if not brackets:
        raise ConfigurationError("At least one bracket is required")

    *bounded, last = brackets
    if last.upper_bound is not None:
        raise ConfigurationError("The final bracket must be unbounded (upper: null)")

    previous: float | None = None
    for bracket in bounded:
        if bracket.upper_bound is None:
            raise ConfigurationError("Only the final bracket may be unbounded")
        if previous is not None and bracket.upper_bound <= previous:
            raise ConfigurationError("Bracket upper bounds must be strictly ascending")
        previous = bracket.upper_bound


class EmploymentDeductionConfig(ImmutableModel):
    """給与所得控除 brackets."""

    brackets: tuple[DeductionBracket, ...]

    @model_validator(mode="after")
    def _validate_brackets(self) -> Self:
        _check_bracket_order(self.brackets)
        return self


class IncomeTaxConfig(ImmutableModel):
    """所得税 rate brackets."""

    brackets: tuple[RateBracket, ...]

    @model_validator(mode="after")
    def _validate_brackets(self) -> Self:
        _check_bracket_order(self.brackets)
        return self


class FlatRateConfig(ImmutableModel):
    """A single proportional rate."""

    rate: float = Field(ge=0)


class ScheduleMeta(ImmutableModel):
    currency: str = "JPY"
    locale: str = "ja"
    display_unit_factor: int = Field(default=10_000, gt=0)


class TaxSchedule(ImmutableModel):
    """Complete schedule consumed by the tax estimator."""

    version: str
    meta: ScheduleMeta = Field(default_factory=ScheduleMeta)
    employment_deduction: EmploymentDeductionConfig
    income_tax: IncomeTaxConfig
    social_insurance: FlatRateConfig
    residence_tax: FlatRateConfig

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: Any) -> str:
        if value is None:
            raise ConfigurationError("Tax schedule must declare a version")
        return str(value)


__all__ = [
    "ConfigurationError",
    "DeductionBracket",
    "EmploymentDeductionConfig",
    "FlatRateConfig",
    "ImmutableModel",
    "IncomeTaxConfig",
    "RateBracket",
    "ScheduleMeta",
    "TaxSchedule",
]
