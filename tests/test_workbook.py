"""
Unit tests for the WorkbookReader and sheet routing.
"""

from __future__ import annotations

import io

import pytest

from financial_ingest.config import ExtractionConfig
from financial_ingest.errors import FatalIOError
from financial_ingest.schema import Workbook
from financial_ingest.workbook import WorkbookReader, is_routable, route_sheets


@pytest.fixture
def reader() -> WorkbookReader:
    return WorkbookReader()


# ======================================================================
# Reading
# ======================================================================

class TestRead:
    def test_bytes(self, reader: WorkbookReader, make_xlsx, income_rows) -> None:
        data = make_xlsx({"Income Statement": income_rows, "Notes": [["n/a"]]})
        wb = reader.read(data)
        assert wb.sheet_names == ["Income Statement", "Notes"]
        assert wb.sheets[0].rows == income_rows

    def test_path(self, reader: WorkbookReader, make_xlsx, income_rows, tmp_path) -> None:
        path = tmp_path / "statements.xlsx"
        path.write_bytes(make_xlsx({"Income Statement": income_rows}))
        assert reader.read(path).sheets[0].cell(1, 0) == "Net sales"
        assert reader.read(str(path)).sheet_names == ["Income Statement"]

    def test_file_object(self, reader: WorkbookReader, make_xlsx, income_rows) -> None:
        stream = io.BytesIO(make_xlsx({"Balance Sheet": income_rows}))
        assert reader.read(stream).sheet_names == ["Balance Sheet"]

    def test_ragged_rows_trimmed(self, reader: WorkbookReader, make_xlsx) -> None:
        data = make_xlsx({"S": [["a", None, 1], ["b"], [None, None, None]]})
        assert reader.read(data).sheets[0].rows == [["a", None, 1], ["b"]]

    def test_garbage_bytes(self, reader: WorkbookReader) -> None:
        with pytest.raises(FatalIOError) as info:
            reader.read(b"this is not a workbook")
        assert info.value.user_message == FatalIOError.DEFAULT_USER_MESSAGE

    def test_missing_file(self, reader: WorkbookReader, tmp_path) -> None:
        with pytest.raises(FatalIOError, match="not found"):
            reader.read(tmp_path / "missing.xlsx")


# ======================================================================
# Routing
# ======================================================================

class TestRouting:
    allow = ExtractionConfig().sheet_allow_list

    @pytest.mark.parametrize("name", [
        "Income Statement", "income statement FY23", "Consolidated Balance Sheet",
        "Cash Flows", "FINANCIAL SUMMARY",
    ])
    def test_routable(self, name: str) -> None:
        assert is_routable(name, self.allow)

    @pytest.mark.parametrize("name", ["Notes", "Cover", "Cash", "Sheet1"])
    def test_not_routable(self, name: str) -> None:
        assert not is_routable(name, self.allow)

    def test_route_preserves_order(self) -> None:
        wb = Workbook.from_rows({
            "Cover": [], "Balance Sheet": [], "Notes": [], "Income Statement": [],
        })
        routed, skipped = route_sheets(wb, self.allow)
        assert [s.name for s in routed] == ["Balance Sheet", "Income Statement"]
        assert skipped == ["Cover", "Notes"]
