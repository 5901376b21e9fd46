"""
Shared fixtures: in-memory workbooks written with openpyxl.
"""

from __future__ import annotations

import io
from typing import Any, Callable, Dict, List

import openpyxl
import pytest


def build_xlsx(sheets: Dict[str, List[List[Any]]]) -> bytes:
    """Serialise ``{sheet_name: rows}`` into .xlsx bytes."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


INCOME_ROWS: List[List[Any]] = [
    ["Particulars", 2021, 2022, 2023],
    ["Net sales", 100, 120, 140],
    ["Cost of sales", 40, 45, 50],
]


@pytest.fixture
def make_xlsx() -> Callable[[Dict[str, List[List[Any]]]], bytes]:
    return build_xlsx


@pytest.fixture
def income_rows() -> List[List[Any]]:
    return [list(r) for r in INCOME_ROWS]
