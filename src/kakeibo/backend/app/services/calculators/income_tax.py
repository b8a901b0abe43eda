"""Simplified Japanese salary income tax and residence tax estimate.

Every function here is pure: amounts are plain yen values, nothing is read or
written besides the (cached, immutable) tax schedule. The schedule follows
the simplified household-budget model:

* one flat rate is applied to the whole taxable income rather than stacking
  marginal brackets;
* taxable income is never clamped, so a negative base yields a negative tax
  amount (clamped only once credits are applied) and a negative residence tax
  (not clamped at all).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any, TypeVar

from kakeibo.backend.config.tax_schedule import (
    DeductionBracket,
    RateBracket,
    TaxSchedule,
    load_tax_schedule,
)

from .utils import rounded_product, to_percentage

_BracketT = TypeVar("_BracketT", DeductionBracket, RateBracket)


@dataclass(frozen=True, slots=True)
class TaxCalculationResult:
    """Derived tax breakdown for one set of salary inputs (never persisted)."""

    employment_deduction: float
    employment_income: float
    total_deduction: float
    taxable_income: float
    tax_rate_percent: float
    tax_amount: float
    final_tax: float
    residence_tax: float
    total_tax: float

    @property
    def tax_rate(self) -> float:
        return self.tax_rate_percent / 100

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _resolve(schedule: TaxSchedule | None) -> TaxSchedule:
    return schedule if schedule is not None else load_tax_schedule()


def _select_bracket(amount: float, brackets: Sequence[_BracketT]) -> _BracketT:
    """Return the first bracket whose inclusive upper bound covers ``amount``."""

    for bracket in brackets:
        if bracket.upper_bound is None or amount <= bracket.upper_bound:
            return bracket
    return brackets[-1]


def employment_income_deduction(
    income: float, schedule: TaxSchedule | None = None
) -> float:
    """給与所得控除 for gross salary ``income`` (no rounding applied)."""

    schedule = _resolve(schedule)
    bracket = _select_bracket(income, schedule.employment_deduction.brackets)
    return bracket.deduction_for(income)


def social_insurance_deduction(
    income: float, schedule: TaxSchedule | None = None
) -> float:
    """Estimate social insurance premiums as a fixed share of ``income``."""

    schedule = _resolve(schedule)
    return rounded_product(income, schedule.social_insurance.rate)


def tax_rate(taxable_income: float, schedule: TaxSchedule | None = None) -> float:
    """Return the flat income tax rate (a fraction) for ``taxable_income``."""

    schedule = _resolve(schedule)
    return _select_bracket(taxable_income, schedule.income_tax.brackets).rate


def residence_tax(taxable_income: float, schedule: TaxSchedule | None = None) -> float:
    """住民税 estimate; negative taxable income gives a negative amount."""

    schedule = _resolve(schedule)
    return rounded_product(taxable_income, schedule.residence_tax.rate)


def calculate_tax(
    income: float,
    social_insurance_deduction: float,
    other_deduction: float,
    tax_credit: float,
    *,
    schedule: TaxSchedule | None = None,
) -> TaxCalculationResult:
    """Run the full salary tax pipeline over four yen amounts."""

    schedule = _resolve(schedule)

    employment_deduction = employment_income_deduction(income, schedule)
    employment_income = income - employment_deduction
    total_deduction = social_insurance_deduction + other_deduction
    taxable_income = employment_income - total_deduction
    rate = tax_rate(taxable_income, schedule)
    tax_amount = taxable_income * rate
    final_tax = max(0.0, tax_amount - tax_credit)
    residence = residence_tax(taxable_income, schedule)

    return TaxCalculationResult(
        employment_deduction=employment_deduction,
        employment_income=employment_income,
        total_deduction=total_deduction,
        taxable_income=taxable_income,
        tax_rate_percent=to_percentage(rate),
        tax_amount=tax_amount,
        final_tax=final_tax,
        residence_tax=residence,
        total_tax=final_tax + residence,
    )


__all__ = [
    "TaxCalculationResult",
    "calculate_tax",
    "employment_income_deduction",
    "residence_tax",
    "social_insurance_deduction",
    "tax_rate",
]
