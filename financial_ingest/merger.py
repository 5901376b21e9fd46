"""
Dataset Merger.

Combines per-sheet partial results into one aligned dataset.

Rules
-----
* Successful results are applied strictly in input (workbook) order.
* First sheet wins: a metric adopted from an earlier sheet is never
  replaced by a later one, so the merge is order-sensitive.
* Empty series are not adopted; they carry no value to win with.
* Every series is right-padded with ``0.0`` to the longest one.  Padding
  makes a missing period indistinguishable from a reported zero.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from financial_ingest.logging_setup import get_logger
from financial_ingest.schema import CanonicalMetric, FinancialSeries, SheetProcessingResult

logger = get_logger("merger")


class DatasetMerger:
    """Merge ``SheetProcessingResult`` objects into one ``FinancialSeries``."""

    def combine(self, results: Sequence[SheetProcessingResult]) -> FinancialSeries:
        adopted: Dict[CanonicalMetric, List[float]] = {}
        sources: Dict[CanonicalMetric, str] = {}

        for result in results:
            if not result.success:
                logger.info("Merge: skipping failed sheet '%s'", result.sheet_name)
                continue
            for metric, values in result.partial_series.items():
                if not values:
                    continue
                if metric in adopted:
                    logger.debug(
                        "Merge: '%s' from '%s' ignored; already taken from '%s'",
                        metric.value, result.sheet_name, sources[metric],
                    )
                    continue
                adopted[metric] = list(values)
                sources[metric] = result.sheet_name

        max_length = self.max_length(adopted)
        merged: FinancialSeries = {}
        # Catalog declaration order keeps output stable regardless of which
        # sheet supplied which metric.
        for metric in CanonicalMetric:
            if metric not in adopted:
                continue
            values = adopted[metric]
            if len(values) < max_length:
                logger.info(
                    "Merge: padding '%s' from %d to %d period(s) with zeros",
                    metric.value, len(values), max_length,
                )
            merged[metric] = values + [0.0] * (max_length - len(values))

        logger.info(
            "Merge complete — metrics=%d, periods=%d, sheets=%d",
            len(merged), max_length, len(results),
        )
        return merged

    @staticmethod
    def max_length(series: FinancialSeries) -> int:
        return max((len(v) for v in series.values()), default=0)
