"""Pydantic models describing the public API surface."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .records import SalaryField

__all__ = [
    "AmountUnit",
    "CalculationInputs",
    "CalculationRequest",
    "CalculationResponse",
    "CalculationStep",
    "ResponseMeta",
    "SalaryPatchRequest",
    "SalaryRecordRequest",
    "SignInRequest",
    "TaxResultPayload",
    "TodoCreateRequest",
    "format_validation_error",
]

AmountUnit = Literal["yen", "man_yen"]


class _RequestModel(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)


class CalculationRequest(_RequestModel):
    """Payload accepted by the anonymous estimate endpoint.

    ``social_insurance_deduction`` may be omitted, in which case the service
    estimates it from ``income``.
    """

    income: float = Field(..., ge=0)
    social_insurance_deduction: float | None = Field(default=None, ge=0)
    other_deduction: float = Field(default=0.0, ge=0)
    tax_credit: float = Field(default=0.0, ge=0)
    unit: AmountUnit = "yen"
    locale: str = Field(default="ja")

    @field_validator("locale", mode="before")
    @classmethod
    def _normalise_locale(cls, value: Any) -> str:
        if value is None:
            return "ja"
        text = str(value).strip()
        return text or "ja"


class SalaryRecordRequest(_RequestModel):
    """Full salary record submitted from the Salary form."""

    id: int | None = Field(default=None, ge=1)
    user_id: str | None = None
    income: float = Field(default=0.0, ge=0)
    social_insurance_deduction: float = Field(default=0.0, ge=0)
    other_deduction: float = Field(default=0.0, ge=0)
    tax_credit: float = Field(default=0.0, ge=0)
    unit: AmountUnit = "yen"


class SalaryPatchRequest(_RequestModel):
    """Single-field (``field``/``value``) or multi-field (``updates``) edit."""

    field: SalaryField | None = None
    value: float | str | None = None
    updates: dict[SalaryField, float | str] = Field(default_factory=dict)
    unit: AmountUnit = "yen"

    @model_validator(mode="after")
    def _require_changes(self) -> "SalaryPatchRequest":
        if self.field is None and not self.updates:
            raise ValueError("Provide either 'field' and 'value' or an 'updates' mapping")
        if self.field is not None and self.value is None:
            raise ValueError("'value' is required when 'field' is provided")
        return self

    def changes(self) -> dict[SalaryField, float | str]:
        merged = dict(self.updates)
        if self.field is not None and self.value is not None:
            merged[self.field] = self.value
        return merged


class TodoCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(..., max_length=500)
    done: bool = False

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("Todo text cannot be blank")
        return text


class SignInRequest(BaseModel):
    """Identity returned by the OAuth provider after the browser handshake."""

    model_config = ConfigDict(extra="forbid")

    provider: str = "google"
    user_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        email = value.strip()
        if "@" not in email:
            raise ValueError("email must contain '@'")
        return email


class CalculationInputs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    income: float
    social_insurance_deduction: float
    social_insurance_estimated: bool
    other_deduction: float
    tax_credit: float


class TaxResultPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    employment_deduction: float
    employment_income: float
    total_deduction: float
    taxable_income: float
    tax_rate_percent: float
    tax_amount: float
    final_tax: float
    residence_tax: float
    total_tax: float


class CalculationStep(BaseModel):
    """One line of the progressive-disclosure breakdown."""

    model_config = ConfigDict(extra="forbid")

    id: str
    label: str
    expression: str
    result: float


class ResponseMeta(BaseModel):
    model_config = ConfigDict(extra="forbid")

    locale: str
    schedule_version: str
    currency: str


class CalculationResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    inputs: CalculationInputs
    result: TaxResultPayload
    steps: list[CalculationStep]
    meta: ResponseMeta


def format_validation_error(error: ValidationError, *, context: str = "request") -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if "greater than or equal to 0" in message.lower():
            message = "value cannot be negative"
        if "finite number" in message.lower():
            message = "value must be a finite number"
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid {context} payload: {details}"
