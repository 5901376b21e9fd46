"""
Error taxonomy for the ingestion pipeline.

Only ``FatalIOError`` and ``ValidationFailure`` ever reach the caller.
Metadata problems are recorded as warnings on the detected metadata, and
per-sheet extraction errors are captured inside the sheet's
``SheetProcessingResult``.
"""

from __future__ import annotations

from typing import List, Optional


class FinancialIngestError(Exception):
    """Base class for every error raised by ``financial_ingest``."""


class MetadataDetectionWarning(UserWarning):
    """Header-region detection fell back to a default value."""


class SheetExtractionError(FinancialIngestError):
    """A single sheet could not be processed.

    Raised inside the extractor and converted into a failed
    ``SheetProcessingResult``; it never aborts the workbook.
    """

    def __init__(self, sheet_name: str, reason: str) -> None:
        super().__init__(f"Sheet '{sheet_name}': {reason}")
        self.sheet_name = sheet_name
        self.reason = reason


class ValidationFailure(FinancialIngestError):
    """The merged dataset has no usable metrics or lacks required fields."""

    def __init__(self, errors: List[str]) -> None:
        super().__init__(
            f"Merged dataset failed validation with {len(errors)} error(s):\n"
            + "\n".join(errors)
        )
        self.errors = list(errors)


class FatalIOError(FinancialIngestError):
    """The uploaded workbook could not be read at all."""

    DEFAULT_USER_MESSAGE = (
        "We could not read this file. Please upload a valid Excel workbook "
        "(.xlsx) and try again."
    )

    def __init__(self, detail: str, user_message: Optional[str] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.user_message = user_message or self.DEFAULT_USER_MESSAGE
