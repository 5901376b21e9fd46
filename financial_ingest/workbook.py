"""
Excel Workbook Reader.

Loads an uploaded ``.xlsx`` workbook into the in-memory ``Workbook`` /
``Sheet`` model and decides which sheets are routed into extraction.

Only cell *values* are read (``data_only=True``): formulas resolve to
their cached results, styles and merged-cell ranges are ignored.  Any
failure to open the file is a ``FatalIOError``; nothing here tries to
recover a partially readable workbook.
"""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Any, BinaryIO, Iterable, List, Tuple, Union

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from financial_ingest.errors import FatalIOError
from financial_ingest.logging_setup import get_logger
from financial_ingest.schema import Sheet, Workbook

logger = get_logger("workbook")

WorkbookSource = Union[str, Path, bytes, BinaryIO]


def _trim_row(row: Iterable[Any]) -> List[Any]:
    """Drop trailing empty cells so ragged rows stay small."""
    cells = list(row)
    while cells and (cells[-1] is None or (isinstance(cells[-1], str) and not cells[-1].strip())):
        cells.pop()
    return cells


def _read_grid(ws: Worksheet) -> List[List[Any]]:
    grid: List[List[Any]] = []
    for row in ws.iter_rows(min_row=1, max_row=ws.max_row,
                            max_col=ws.max_column, values_only=True):
        grid.append(_trim_row(row))
    # Trailing blank rows carry no data
    while grid and not grid[-1]:
        grid.pop()
    return grid


class WorkbookReader:
    """Read Excel workbooks into ``Workbook`` objects."""

    def read(self, source: WorkbookSource) -> Workbook:
        """Load every sheet of *source*.

        Parameters
        ----------
        source:
            Path, raw bytes, or a binary file object.

        Raises
        ------
        FatalIOError
            The file is missing, not a workbook, or corrupt.
        """
        label = self._describe(source)
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)

        try:
            wb = openpyxl.load_workbook(source, data_only=True)
        except FileNotFoundError as exc:
            raise FatalIOError(f"Workbook not found: {label}") from exc
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as exc:
            raise FatalIOError(f"Cannot open workbook {label}: {exc}") from exc

        try:
            sheets: List[Sheet] = []
            for sheet_name in wb.sheetnames:
                ws = wb[sheet_name]
                grid = _read_grid(ws)
                logger.info("Read sheet '%s' (%d rows)", sheet_name, len(grid))
                sheets.append(Sheet(name=sheet_name, rows=grid))
        except (zipfile.BadZipFile, KeyError, OSError, ValueError) as exc:
            raise FatalIOError(f"Cannot read workbook {label}: {exc}") from exc
        finally:
            wb.close()

        logger.info("Loaded workbook %s with %d sheet(s)", label, len(sheets))
        return Workbook(sheets=sheets)

    @staticmethod
    def _describe(source: WorkbookSource) -> str:
        if isinstance(source, (str, Path)):
            return repr(str(source))
        if isinstance(source, (bytes, bytearray)):
            return f"<{len(source)} bytes>"
        return repr(getattr(source, "name", "<stream>"))


def is_routable(sheet_name: str, allow_list: Iterable[str]) -> bool:
    """True if *sheet_name* contains (case-insensitive) an allow-listed name."""
    name = sheet_name.lower()
    return any(allowed.lower() in name for allowed in allow_list)


def route_sheets(
    workbook: Workbook, allow_list: Iterable[str]
) -> Tuple[List[Sheet], List[str]]:
    """Split *workbook* into ``(routed_sheets, skipped_sheet_names)``."""
    allowed = tuple(allow_list)
    routed: List[Sheet] = []
    skipped: List[str] = []
    for sheet in workbook.sheets:
        if is_routable(sheet.name, allowed):
            routed.append(sheet)
        else:
            logger.info("Skipping sheet '%s': not a recognised statement", sheet.name)
            skipped.append(sheet.name)
    return routed, skipped
