"""
Sheet Metadata Detection.

Scans the header window (the first ``header_search_rows`` rows) of a sheet
and infers:

* whether figures are stated in millions,
* the reporting currency,
* which row holds the period headers,
* which columns of that row are year columns.

Detection never fails.  Wherever nothing qualifies a default is applied
and a ``MetadataDetectionWarning`` is recorded on the result.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, List, Optional, Tuple

from financial_ingest.catalog import DEFAULT_CATALOG, MetricCatalog
from financial_ingest.config import ExtractionConfig
from financial_ingest.errors import MetadataDetectionWarning
from financial_ingest.logging_setup import get_logger
from financial_ingest.schema import ExcelMetadata, Sheet

logger = get_logger("metadata")

# "FY2023", "FY 2023", "FY-2023"
_FY_RE = re.compile(r"^FY[\s\-']?(\d{4})$", re.IGNORECASE)


def _integral(number: float) -> Optional[int]:
    if not math.isfinite(number) or number != int(number):
        return None
    return int(number)


def year_of(cell: Any, year_min: int = 2000, year_max: int = 2100) -> Optional[int]:
    """Return the year a header cell denotes, or ``None``.

    Accepts integral numbers, numeric strings, ``FY2023``-style strings and
    dates, as long as the year lies in ``[year_min, year_max]``.
    """
    if cell is None or isinstance(cell, bool):
        return None

    year: Optional[int]
    if isinstance(cell, (datetime, date)):
        year = cell.year
    elif isinstance(cell, int):
        year = cell
    elif isinstance(cell, float):
        year = _integral(cell)
    elif isinstance(cell, str):
        text = cell.strip()
        m = _FY_RE.match(text)
        if m:
            year = int(m.group(1))
        else:
            try:
                year = _integral(float(text))
            except ValueError:
                return None
    else:
        return None

    if year is not None and year_min <= year <= year_max:
        return year
    return None


class MetadataDetector:
    """Infer scale, currency, header row and year columns for one sheet.

    Parameters
    ----------
    config:
        Header window size, tokens and year bounds.
    catalog:
        Supplies the row labels that mark a row as data rather than header.
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        catalog: Optional[MetricCatalog] = None,
    ) -> None:
        self._config = config or ExtractionConfig()
        self._data_labels = (catalog or DEFAULT_CATALOG).all_labels()

    def detect(self, sheet: Sheet) -> ExcelMetadata:
        cfg = self._config
        window = sheet.rows[: cfg.header_search_rows]
        meta = ExcelMetadata(currency=cfg.default_currency)

        currency_found = False
        for row in window:
            for cell in row:
                if not isinstance(cell, str):
                    continue
                lowered = cell.lower()
                if any(tok.lower() in lowered for tok in cfg.scale_tokens):
                    meta.is_in_millions = True
                code = self._currency_of(cell)
                if code is not None:
                    meta.currency = code
                    currency_found = True

        header_row = self._find_header_row(window)
        if header_row is None:
            header_row = 0
            meta.warnings.append(MetadataDetectionWarning(
                f"Sheet '{sheet.name}': no header row found in first "
                f"{cfg.header_search_rows} rows; using row 0"
            ))
        meta.header_row_index = header_row

        columns, years = self._year_columns(window[header_row] if header_row < len(window) else [])
        meta.year_column_indices = columns
        meta.years = years
        if not columns:
            meta.warnings.append(MetadataDetectionWarning(
                f"Sheet '{sheet.name}': no year columns in header row {header_row}"
            ))

        if not currency_found:
            logger.debug("Sheet '%s': no currency token; defaulting to %s",
                         sheet.name, cfg.default_currency)
        for w in meta.warnings:
            logger.warning("%s", w)

        logger.info(
            "Sheet '%s' metadata — header_row=%d, years=%s, currency=%s, millions=%s",
            sheet.name, meta.header_row_index, meta.years, meta.currency,
            meta.is_in_millions,
        )
        return meta

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _currency_of(self, text: str) -> Optional[str]:
        lowered = text.lower()
        for token, code in self._config.currency_tokens:
            if token[0].isalpha():
                # Codes must stand alone: "INR" yes, "years." no
                pattern = r"\b" + re.escape(token.lower())
                if token[-1].isalpha():
                    pattern += r"\b"
                if re.search(pattern, lowered):
                    return code
            elif token.lower() in lowered:
                return code
        return None

    def _is_trigger_row(self, row: List[Any]) -> bool:
        triggers = [t.lower() for t in self._config.header_triggers]
        for cell in row:
            if isinstance(cell, str):
                lowered = cell.lower()
                if any(t in lowered for t in triggers):
                    return True
        return False

    def _is_data_row(self, row: List[Any]) -> bool:
        label = row[0] if row else None
        return isinstance(label, str) and label.strip() in self._data_labels

    def _find_header_row(self, window: List[List[Any]]) -> Optional[int]:
        """Header row index within *window*, or ``None`` if nothing qualifies."""
        last_trigger: Optional[int] = None
        last_trigger_with_years: Optional[int] = None
        first_year_row: Optional[int] = None
        for i, row in enumerate(window):
            # "Net sales  2050  2060" is data whose values look like years
            has_years = bool(self._year_columns(row)[0]) and not self._is_data_row(row)
            if has_years and first_year_row is None:
                first_year_row = i
            if self._is_trigger_row(row):
                last_trigger = i
                if has_years:
                    last_trigger_with_years = i

        if not self._config.require_year_cells_in_header:
            return last_trigger

        if last_trigger_with_years is not None:
            return last_trigger_with_years
        # A year row without a trigger beats a data row that merely
        # mentions revenue.
        if first_year_row is not None:
            return first_year_row
        return last_trigger

    def _year_columns(self, row: List[Any]) -> Tuple[List[int], List[int]]:
        columns: List[int] = []
        years: List[int] = []
        for j, cell in enumerate(row):
            year = year_of(cell, self._config.year_min, self._config.year_max)
            if year is not None:
                columns.append(j)
                years.append(year)
        return columns, years
