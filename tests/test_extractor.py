"""
Unit tests for the SheetExtractor.
"""

from __future__ import annotations

import pytest

from financial_ingest.config import ExtractionConfig
from financial_ingest.extractor import SheetExtractor
from financial_ingest.metadata import MetadataDetector
from financial_ingest.schema import CanonicalMetric, ExcelMetadata, Sheet

M = CanonicalMetric


@pytest.fixture
def extractor() -> SheetExtractor:
    return SheetExtractor()


def _run(extractor: SheetExtractor, name: str, rows):
    sheet = Sheet(name, rows)
    return extractor.process(sheet, MetadataDetector().detect(sheet))


# ======================================================================
# Income statement
# ======================================================================

class TestIncomeStatement:
    def test_reference_example(self, extractor: SheetExtractor, income_rows) -> None:
        result = _run(extractor, "Income Statement", income_rows)
        assert result.success
        series = result.partial_series
        assert series[M.REVENUE] == [100.0, 120.0, 140.0]
        assert series[M.EXPENSES] == [40.0, 45.0, 50.0]
        assert series[M.EBITDA] == pytest.approx([20.0, 24.0, 28.0])
        assert series[M.GROSS_MARGIN] == pytest.approx([0.6, 0.625, 90 / 140])
        assert set(series) == {M.REVENUE, M.EXPENSES, M.EBITDA, M.GROSS_MARGIN}

    def test_balance_metrics_not_read_from_income_sheet(self, extractor: SheetExtractor) -> None:
        rows = [["Particulars", 2022], ["Net sales", 10], ["Current Ratio", 1.5]]
        series = _run(extractor, "Income Statement", rows).partial_series
        assert M.CURRENT_RATIO not in series

    def test_direct_ebitda_row(self, extractor: SheetExtractor) -> None:
        rows = [["Particulars", 2022], ["Revenue", 100], ["EBITDA", 33]]
        assert _run(extractor, "Income Statement", rows).partial_series[M.EBITDA] == [33.0]

    def test_custom_ebitda_ratio(self) -> None:
        extractor = SheetExtractor(config=ExtractionConfig(ebitda_fallback_ratio=0.5))
        rows = [["Particulars", 2022], ["Revenue", 100]]
        assert _run(extractor, "Income Statement", rows).partial_series[M.EBITDA] == [50.0]

    def test_messy_cells_normalised(self, extractor: SheetExtractor) -> None:
        rows = [["Particulars", 2021, 2022, 2023], ["Revenue", "$1,000", "(200)", "N/A"]]
        series = _run(extractor, "Income Statement", rows).partial_series
        assert series[M.REVENUE] == [1000.0, -200.0, 0.0]

    def test_short_row_reads_zero(self, extractor: SheetExtractor) -> None:
        rows = [["Particulars", 2021, 2022], ["Revenue", 5]]
        assert _run(extractor, "Income Statement", rows).partial_series[M.REVENUE] == [5.0, 0.0]

    def test_percentage_cells(self, extractor: SheetExtractor) -> None:
        rows = [["Particulars", 2022], ["Net sales", 100], ["NPM", "12%"]]
        assert _run(extractor, "Income Statement", rows).partial_series[M.NPM] == pytest.approx([0.12])

    def test_npm_derived_from_profit(self, extractor: SheetExtractor) -> None:
        rows = [["Particulars", 2022], ["Net sales", 200], ["Net profit", 30]]
        assert _run(extractor, "Income Statement", rows).partial_series[M.NPM] == pytest.approx([0.15])


# ======================================================================
# Label handling
# ======================================================================

class TestLabels:
    def test_duplicate_label_first_wins(self, extractor: SheetExtractor) -> None:
        rows = [["Particulars", 2022], ["Revenue", 10], ["Revenue", 99]]
        result = _run(extractor, "Income Statement", rows)
        assert result.partial_series[M.REVENUE] == [10.0]
        assert any("duplicate" in w for w in result.warnings)

    def test_casing_variant_not_mapped_but_reported(self, extractor: SheetExtractor) -> None:
        rows = [["Particulars", 2022], ["net sales", 10]]
        result = _run(extractor, "Income Statement", rows)
        assert M.REVENUE not in result.partial_series
        assert any("'net sales'" in w and "closest" in w for w in result.warnings)

    def test_unrelated_label_silent(self, extractor: SheetExtractor) -> None:
        rows = [["Particulars", 2022], ["Dividend per share", 3]]
        result = _run(extractor, "Income Statement", rows)
        assert result.success
        assert result.partial_series == {}
        assert result.warnings == []

    def test_metric_row_chosen_as_header_still_read(self, extractor: SheetExtractor, income_rows) -> None:
        meta = ExcelMetadata(header_row_index=1, year_column_indices=[1, 2, 3])
        result = extractor.process(Sheet("Income Statement", income_rows), meta)
        assert result.partial_series[M.REVENUE] == [100.0, 120.0, 140.0]

    def test_plain_header_row_skipped(self, extractor: SheetExtractor) -> None:
        rows = [["Revenue", 2021, 2022], ["Particulars", 1, 2]]
        meta = ExcelMetadata(header_row_index=1, year_column_indices=[1, 2])
        result = extractor.process(Sheet("Income Statement", rows), meta)
        assert result.partial_series[M.REVENUE] == [2021.0, 2022.0]
        assert result.warnings == []

    def test_non_string_labels_skipped(self, extractor: SheetExtractor) -> None:
        rows = [["Particulars", 2022], [None, 10], [123, 20], ["Revenue", 30]]
        assert _run(extractor, "Income Statement", rows).partial_series[M.REVENUE] == [30.0]


# ======================================================================
# Failure isolation
# ======================================================================

class TestFailure:
    def test_non_increasing_columns(self, extractor: SheetExtractor, income_rows) -> None:
        meta = ExcelMetadata(year_column_indices=[3, 1])
        result = extractor.process(Sheet("Income Statement", income_rows), meta)
        assert result.success is False
        assert result.partial_series == {}
        assert "not increasing" in result.error
        assert "Income Statement" in result.error

    def test_out_of_bounds_columns(self, extractor: SheetExtractor, income_rows) -> None:
        meta = ExcelMetadata(year_column_indices=[1, 50])
        result = extractor.process(Sheet("Income Statement", income_rows), meta)
        assert result.success is False
        assert "out of bounds" in result.error

    def test_unexpected_error_captured(self, income_rows) -> None:
        class Exploding:
            def clean(self, raw, data_type="currency"):
                raise RuntimeError("boom")

            @staticmethod
            def data_type_for(raw):
                return "currency"

        extractor = SheetExtractor(normalizer=Exploding())
        sheet = Sheet("Income Statement", income_rows)
        result = extractor.process(sheet, MetadataDetector().detect(sheet))
        assert result.success is False
        assert "RuntimeError: boom" in result.error

    def test_no_year_columns_gives_empty_series(self, extractor: SheetExtractor) -> None:
        rows = [["Particulars", "A", "B"], ["Sales", 1, 2]]
        result = _run(extractor, "Income Statement", rows)
        assert result.success
        assert result.partial_series[M.REVENUE] == []
