"""Plain value records exchanged between routes, services and storage."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from flask_login import UserMixin


class SalaryField(str, Enum):
    """Editable input fields of a :class:`SalaryRecord`."""

    INCOME = "income"
    SOCIAL_INSURANCE_DEDUCTION = "social_insurance_deduction"
    OTHER_DEDUCTION = "other_deduction"
    TAX_CREDIT = "tax_credit"


@dataclass(frozen=True, slots=True)
class SalaryRecord:
    """The four salary inputs stored per user; derived tax is never stored."""

    user_id: str
    income: float = 0.0
    social_insurance_deduction: float = 0.0
    other_deduction: float = 0.0
    tax_credit: float = 0.0
    id: int | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        for name in SalaryField:
            amount = getattr(self, name.value)
            if not math.isfinite(amount) or amount < 0:
                raise ValueError(f"Field '{name.value}' must be a non-negative finite amount")

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "income": self.income,
            "social_insurance_deduction": self.social_insurance_deduction,
            "other_deduction": self.other_deduction,
            "tax_credit": self.tax_credit,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def parse_amount(value: float | int | str | None) -> float:
    """Coerce form input into a yen amount; blank or unparseable text is ``0``."""

    if value is None:
        return 0.0
    if isinstance(value, str):
        try:
            amount = float(value.strip().replace(",", ""))
        except ValueError:
            return 0.0
    else:
        amount = float(value)

    if not math.isfinite(amount):
        raise ValueError("Amounts must be finite numbers")
    if amount < 0:
        raise ValueError("Amounts cannot be negative")
    return amount


_FIELD_SETTERS: dict[SalaryField, Callable[[SalaryRecord, float], SalaryRecord]] = {
    SalaryField.INCOME: lambda record, amount: replace(record, income=amount),
    SalaryField.SOCIAL_INSURANCE_DEDUCTION: lambda record, amount: replace(
        record, social_insurance_deduction=amount
    ),
    SalaryField.OTHER_DEDUCTION: lambda record, amount: replace(
        record, other_deduction=amount
    ),
    SalaryField.TAX_CREDIT: lambda record, amount: replace(record, tax_credit=amount),
}


def apply_field_update(
    record: SalaryRecord,
    field: SalaryField | str,
    value: float | int | str | None,
) -> SalaryRecord:
    """Return a copy of ``record`` with one input field replaced.

    Unknown field names raise ``ValueError``.
    """

    salary_field = SalaryField(field)
    return _FIELD_SETTERS[salary_field](record, parse_amount(value))


@dataclass(frozen=True, slots=True)
class TodoItem:
    user_id: str
    text: str
    done: bool = False
    id: int | None = None
    created_at: datetime | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "done": self.done,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True, slots=True)
class AuthUser(UserMixin):
    """Identity reported by the OAuth provider; ``get_id`` returns ``id``."""

    id: str
    email: str
    provider: str

    def as_dict(self) -> dict[str, str]:
        return {"id": self.id, "email": self.email, "provider": self.provider}


__all__ = [
    "AuthUser",
    "SalaryField",
    "SalaryRecord",
    "TodoItem",
    "apply_field_update",
    "parse_amount",
]
