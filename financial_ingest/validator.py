"""
Validation Layer.

Checks the merged dataset *before* it is handed to the analysis engines.

Checks performed
----------------
1. **Usable data** — at least one metric must have a non-empty, all-finite
   series; otherwise the dataset is a validation failure.
2. **Required fields** — configurable list of canonical metrics that must
   be present with a usable series.
3. **Numeric sanity** — values beyond ``max_absolute_value`` produce a
   warning (likely a unit error).

A failed report makes the pipeline substitute ``REFERENCE_DATASET``.
"""

from __future__ import annotations

import math
from typing import List

from financial_ingest.config import ValidationConfig
from financial_ingest.logging_setup import get_logger
from financial_ingest.schema import CanonicalMetric, FinancialSeries, metric_lookup

logger = get_logger("validator")


# Fixed single-period dataset used when an upload yields nothing usable
REFERENCE_DATASET: FinancialSeries = {
    CanonicalMetric.REVENUE: [19457.0],
    CanonicalMetric.EXPENSES: [8131.0],
    CanonicalMetric.NET_PROFIT: [2300.0],
    CanonicalMetric.EBITDA: [3992.0],
    CanonicalMetric.PAT: [2300.0],
    CanonicalMetric.DEBT_EQUITY_RATIO: [0.94],
    CanonicalMetric.NPM: [0.118],
    CanonicalMetric.CURRENT_RATIO: [1.59],
    CanonicalMetric.ROE: [0.14],
}


def reference_dataset() -> FinancialSeries:
    """Return a fresh copy of the reference dataset."""
    return {m: list(v) for m, v in REFERENCE_DATASET.items()}


def is_usable(values: List[float]) -> bool:
    return bool(values) and all(
        isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)
        for v in values
    )


class ValidationReport:
    """Accumulates errors and warnings during a validation pass."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)
        logger.error("Validation ERROR: %s", msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)
        logger.warning("Validation WARNING: %s", msg)


class Validator:
    """Validates a merged ``FinancialSeries``.

    Parameters
    ----------
    config:
        Required fields and sanity bounds.
    """

    def __init__(self, config: ValidationConfig) -> None:
        self._config = config

    def validate(self, series: FinancialSeries) -> ValidationReport:
        """Run all checks and return a ``ValidationReport``."""
        report = ValidationReport()
        self._check_usable(series, report)
        self._check_required_fields(series, report)
        self._check_values(series, report)
        return report

    # ------------------------------------------------------------------ #
    # Individual checks
    # ------------------------------------------------------------------ #

    def _check_usable(self, series: FinancialSeries, report: ValidationReport) -> None:
        if not any(is_usable(v) for v in series.values()):
            report.add_error("Dataset has no usable metrics")

    def _check_required_fields(
        self, series: FinancialSeries, report: ValidationReport
    ) -> None:
        for name in self._config.required_fields:
            metric = metric_lookup(name)
            if metric is None:
                report.add_warning(f"Unknown required field ignored: '{name}'")
                continue
            values = series.get(metric)
            if values is None:
                report.add_error(f"Required field missing: '{metric.value}'")
            elif not is_usable(values):
                report.add_error(f"Required field not numeric: '{metric.value}'")

    def _check_values(self, series: FinancialSeries, report: ValidationReport) -> None:
        limit = self._config.max_absolute_value
        for metric, values in series.items():
            for i, v in enumerate(values):
                if isinstance(v, (int, float)) and math.isfinite(v) and abs(v) > limit:
                    report.add_warning(
                        f"'{metric.value}' period {i} value {v} exceeds "
                        f"max_absolute_value ({limit}). Possible unit error?"
                    )
