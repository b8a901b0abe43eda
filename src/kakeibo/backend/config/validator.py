"""Utilities for validating the tax schedule and surfacing issues."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from .tax_schedule import (
    SCHEDULE_FILE,
    ConfigurationError,
    DeductionBracket,
    RateBracket,
    TaxSchedule,
    read_tax_schedule,
)


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_rate(scope: str, rate: float) -> list[str]:
    if rate < 0 or rate > 1:
        return [_format_scope(scope, f"rate {rate} must be between 0 and 1")]
    return []


def _validate_bounds(
    scope: str, brackets: Sequence[DeductionBracket | RateBracket]
) -> list[str]:
    errors: list[str] = []
    if not brackets:
        return [_format_scope(scope, "no brackets defined")]

    if brackets[-1].upper_bound is not None:
        errors.append(_format_scope(scope, "final bracket must be unbounded"))

    bounds = [bracket.upper_bound for bracket in brackets[:-1]]
    if any(bound is None for bound in bounds):
        errors.append(_format_scope(scope, "only the final bracket may be unbounded"))
        return errors

    if bounds != sorted(set(bounds)):
        errors.append(_format_scope(scope, "upper bounds must be strictly ascending"))

    return errors


def _validate_employment_deduction(schedule: TaxSchedule) -> list[str]:
    scope = "employment_deduction"
    brackets = schedule.employment_deduction.brackets
    errors = _validate_bounds(scope, brackets)

    for index, bracket in enumerate(brackets):
        errors.extend(_validate_rate(f"{scope}.brackets[{index}]", bracket.rate))
        if bracket.amount < 0:
            errors.append(
                _format_scope(f"{scope}.brackets[{index}]", "amount must be non-negative")
            )
    return errors


def _validate_income_tax(schedule: TaxSchedule) -> list[str]:
    scope = "income_tax"
    brackets = schedule.income_tax.brackets
    errors = _validate_bounds(scope, brackets)

    rates = [bracket.rate for bracket in brackets]
    for index, rate in enumerate(rates):
        errors.extend(_validate_rate(f"{scope}.brackets[{index}]", rate))
    if rates != sorted(rates):
        errors.append(_format_scope(scope, "rates should not decrease as income grows"))
    return errors


def validate_tax_schedule(schedule: TaxSchedule) -> list[str]:
    """Return a list of human-readable issues found in ``schedule``."""

    errors: list[str] = []
    errors.extend(_validate_employment_deduction(schedule))
    errors.extend(_validate_income_tax(schedule))
    errors.extend(_validate_rate("social_insurance", schedule.social_insurance.rate))
    errors.extend(_validate_rate("residence_tax", schedule.residence_tax.rate))
    return errors


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate a Kakeibo tax schedule file.")
    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        help="YAML schedule files to check (defaults to the packaged schedule)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    paths: list[Path] = args.paths or [SCHEDULE_FILE]

    exit_code = 0
    for path in paths:
        try:
            schedule = read_tax_schedule(path)
        except (FileNotFoundError, ConfigurationError) as error:
            print(f"[{path.name}] failed to load schedule: {error}")
            exit_code = 1
            continue

        issues = validate_tax_schedule(schedule)
        if issues:
            exit_code = 1
            print(f"[{path.name}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{path.name}] OK (version {schedule.version})")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
