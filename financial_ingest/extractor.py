"""
Sheet Extraction.

Pulls per-metric time series out of one sheet, given the sheet's detected
metadata and the metric catalog:

    rows  →  relevant labels (exact alias match, sheet eligibility)
          →  per-label series over the year columns (ValueNormalizer)
          →  per-metric series (derivation rule or first alias present)

Failure is always local: any error inside ``process`` yields a failed
``SheetProcessingResult`` and the caller moves on to the next sheet.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from financial_ingest.catalog import DEFAULT_CATALOG, MetricCatalog, first_present
from financial_ingest.config import ExtractionConfig
from financial_ingest.errors import SheetExtractionError
from financial_ingest.logging_setup import get_logger
from financial_ingest.near_miss import NearMissDetector
from financial_ingest.normalizer import ValueNormalizer
from financial_ingest.schema import (
    ExcelMetadata,
    FinancialSeries,
    Sheet,
    SheetProcessingResult,
)

logger = get_logger("extractor")


def _label_of(cell: Any) -> Optional[str]:
    if isinstance(cell, str):
        text = cell.strip()
        return text or None
    return None


class SheetExtractor:
    """Extract canonical metric series from a single sheet.

    Parameters
    ----------
    catalog:
        Alias / eligibility / derivation registry.
    config:
        Extraction heuristics (EBITDA fallback ratio, near-miss threshold).
    normalizer:
        Cell value parser.
    """

    def __init__(
        self,
        catalog: Optional[MetricCatalog] = None,
        config: Optional[ExtractionConfig] = None,
        normalizer: Optional[ValueNormalizer] = None,
    ) -> None:
        self._catalog = catalog or DEFAULT_CATALOG
        self._config = config or ExtractionConfig()
        self._normalizer = normalizer or ValueNormalizer()
        self._near_miss = NearMissDetector(
            self._catalog.all_aliases(),
            threshold=self._config.near_miss_threshold,
        )

    def process(self, sheet: Sheet, metadata: ExcelMetadata) -> SheetProcessingResult:
        """Extract every eligible metric from *sheet*.  Never raises."""
        warnings: list[str] = []
        try:
            raw = self._read_rows(sheet, metadata, warnings)
            series = self._resolve_metrics(sheet.name, raw)
        except Exception as exc:  # noqa: BLE001
            if isinstance(exc, SheetExtractionError):
                err = exc
            else:
                err = SheetExtractionError(sheet.name, f"{type(exc).__name__}: {exc}")
            logger.exception("Extraction failed — %s", err)
            return SheetProcessingResult(
                sheet_name=sheet.name,
                success=False,
                partial_series={},
                error=str(err),
                metadata=metadata,
                warnings=warnings,
            )

        logger.info(
            "Sheet '%s': %d relevant row(s), %d metric(s) extracted",
            sheet.name, len(raw), len(series),
        )
        return SheetProcessingResult(
            sheet_name=sheet.name,
            success=True,
            partial_series=series,
            metadata=metadata,
            warnings=warnings,
        )

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    def _read_rows(
        self, sheet: Sheet, metadata: ExcelMetadata, warnings: list[str]
    ) -> Dict[str, List[float]]:
        """Return ``{label: series}`` for every relevant row of *sheet*."""
        self._check_columns(sheet, metadata)
        relevant = self._catalog.relevant_labels(sheet.name)
        raw: Dict[str, List[float]] = {}

        for row_idx, row in enumerate(sheet.rows):
            label = _label_of(row[0] if row else None)
            if label is None:
                continue
            # A header row labelled like a metric still carries that metric
            if row_idx == metadata.header_row_index and label not in relevant:
                continue

            if label not in relevant:
                if not self._catalog.match_label(label):
                    miss = self._near_miss.check(label)
                    if miss is not None:
                        warnings.append(f"Row {row_idx}: {miss.describe()}")
                continue

            if label in raw:
                msg = f"Row {row_idx}: duplicate label {label!r} ignored; first occurrence kept"
                warnings.append(msg)
                logger.warning("Sheet '%s': %s", sheet.name, msg)
                continue

            values: List[float] = []
            for col in metadata.year_column_indices:
                cell = sheet.cell(row_idx, col)
                values.append(
                    self._normalizer.clean(cell, self._normalizer.data_type_for(cell))
                )
            raw[label] = values
            logger.debug("Sheet '%s' row %d: %r → %s", sheet.name, row_idx, label, values)

        return raw

    def _resolve_metrics(self, sheet_name: str, raw: Dict[str, List[float]]) -> FinancialSeries:
        series: FinancialSeries = {}
        for metric in self._catalog.eligible_metrics(sheet_name):
            definition = self._catalog.definition(metric)
            if definition.derive is not None:
                values = definition.derive(raw, self._config)
            else:
                values = first_present(raw, definition.aliases)
            if values is not None:
                series[metric] = values
        return series

    @staticmethod
    def _check_columns(sheet: Sheet, metadata: ExcelMetadata) -> None:
        indices = metadata.year_column_indices
        if any(b <= a for a, b in zip(indices, indices[1:])):
            raise SheetExtractionError(sheet.name, f"year columns not increasing: {indices}")
        if indices and (indices[0] < 0 or indices[-1] >= max(sheet.n_cols, 1)):
            raise SheetExtractionError(sheet.name, f"year columns out of bounds: {indices}")
