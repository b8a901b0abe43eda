"""Domain-specific calculation helpers."""

from .income_tax import (
    TaxCalculationResult,
    calculate_tax,
    employment_income_deduction,
    residence_tax,
    social_insurance_deduction,
    tax_rate,
)
from .utils import (
    format_percentage,
    format_yen,
    round_currency,
    rounded_product,
    to_percentage,
)

__all__ = [
    "TaxCalculationResult",
    "calculate_tax",
    "employment_income_deduction",
    "format_percentage",
    "format_yen",
    "residence_tax",
    "round_currency",
    "rounded_product",
    "social_insurance_deduction",
    "tax_rate",
    "to_percentage",
]
