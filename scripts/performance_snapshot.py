#!/usr/bin/env python3
"""Report timing baselines for the tax estimator and the calculation service."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from time import perf_counter
from typing import Callable

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from kakeibo.backend.app.services.calculation_service import calculate_tax  # noqa: E402
from kakeibo.backend.app.services.calculators import (  # noqa: E402
    calculate_tax as calculate_breakdown,
)

SAMPLE_PAYLOAD = {
    "income": 500,
    "other_deduction": 48,
    "tax_credit": 2,
    "unit": "man_yen",
}


def _measure(iterations: int, func: Callable[[], object]) -> dict[str, float]:
    func()  # warm caches
    start = perf_counter()
    for _ in range(iterations):
        func()
    elapsed = perf_counter() - start
    return {
        "iterations": iterations,
        "total_ms": elapsed * 1000,
        "average_ms": (elapsed / iterations) * 1000,
    }


def main() -> None:
    iterations = int(os.getenv("KAKEIBO_PROFILE_ITERATIONS", "1000"))
    report = {
        "pipeline": _measure(
            iterations, lambda: calculate_breakdown(5_000_000, 972_500, 0, 0)
        ),
        "service": _measure(iterations, lambda: calculate_tax(dict(SAMPLE_PAYLOAD))),
    }
    print(json.dumps(report, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
