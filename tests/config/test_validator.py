from pathlib import Path

import pytest

from kakeibo.backend.config.tax_schedule import (
    ConfigurationError,
    load_tax_schedule,
    parse_tax_schedule,
)
from kakeibo.backend.config.validator import main, validate_tax_schedule


def _raw_schedule() -> dict:
    return {
        "version": 2024,
        "employment_deduction": {
            "brackets": [
                {"upper": 1_625_000, "amount": 550_000},
                {"upper": None, "rate": 0.1, "amount": 1_000_000},
            ]
        },
        "income_tax": {
            "brackets": [
                {"upper": 1_950_000, "rate": 0.05},
                {"upper": None, "rate": 0.10},
            ]
        },
        "social_insurance": {"rate": 0.1945},
        "residence_tax": {"rate": 0.10},
    }


def test_packaged_schedule_is_valid() -> None:
    assert validate_tax_schedule(load_tax_schedule()) == []


def test_parse_tax_schedule_coerces_version_and_defaults_meta() -> None:
    schedule = parse_tax_schedule(_raw_schedule())

    assert schedule.version == "2024"
    assert schedule.meta.display_unit_factor == 10_000


def test_parse_rejects_bounded_final_bracket() -> None:
    raw = _raw_schedule()
    raw["income_tax"]["brackets"][-1]["upper"] = 5_000_000

    with pytest.raises(ConfigurationError, match="unbounded"):
        parse_tax_schedule(raw)


def test_parse_rejects_descending_bounds() -> None:
    raw = _raw_schedule()
    raw["income_tax"]["brackets"].insert(1, {"upper": 1_000_000, "rate": 0.08})

    with pytest.raises(ConfigurationError, match="strictly ascending"):
        parse_tax_schedule(raw)


def test_parse_rejects_unknown_keys() -> None:
    raw = _raw_schedule()
    raw["surtax"] = {"rate": 0.021}

    with pytest.raises(ConfigurationError):
        parse_tax_schedule(raw)


def test_validator_flags_rates_above_one() -> None:
    schedule = load_tax_schedule()
    broken = schedule.model_copy(
        update={"residence_tax": schedule.residence_tax.model_copy(update={"rate": 1.5})}
    )

    errors = validate_tax_schedule(broken)

    assert any(error.startswith("residence_tax:") for error in errors)


def test_validator_flags_decreasing_income_tax_rates() -> None:
    raw = _raw_schedule()
    raw["income_tax"]["brackets"][1]["rate"] = 0.01

    errors = validate_tax_schedule(parse_tax_schedule(raw))

    assert any("should not decrease" in error for error in errors)


def test_cli_reports_ok_for_packaged_schedule(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 0
    assert "OK (version" in capsys.readouterr().out


def test_cli_reports_missing_files(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main([str(tmp_path / "missing.yaml")]) == 1
    assert "failed to load schedule" in capsys.readouterr().out


def test_cli_reports_invalid_yaml_structure(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    assert main([str(path)]) == 1
    assert "mapping at the top level" in capsys.readouterr().out
