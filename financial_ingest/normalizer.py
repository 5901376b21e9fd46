"""
Value Normalization Layer.

Converts a raw spreadsheet cell into a float under the conventions seen in
uploaded statements:

1. Numbers pass through unchanged
2. Currency symbols / codes, commas and whitespace are stripped
3. Percentages (``"45%"`` or ``data_type="percentage"``) are divided by 100
4. Parenthesised values ``"(1,234)"`` are negated (accounting notation)
5. Unit suffixes ``k`` / ``m`` / ``b`` scale by 1e3 / 1e6 / 1e9
6. Anything unparsable resolves to ``0.0``

``clean`` is total: it never raises and always returns a finite float.
Resolving malformed cells to zero is a known source of silent data
corruption; callers that need to tell "0" from "garbage" should use
``parse``.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Literal, Optional

from financial_ingest.logging_setup import get_logger

logger = get_logger("normalizer")

DataType = Literal["currency", "percentage", "number"]

_UNIT_MULTIPLIERS = {"k": 1e3, "m": 1e6, "b": 1e9}


class ValueNormalizer:
    """Stateless cell normaliser.  All methods are pure functions."""

    # Currency symbols and ISO prefixes to strip from values
    _CURRENCY_RE = re.compile(r"(?i)[₹$€£¥]|\b(?:usd|inr|eur|gbp|jpy|rs)\b\.?")

    # Parenthetical negative: ``(1234)`` → ``-1234``
    _PAREN_NEG_RE = re.compile(r"^\((.*)\)$", re.DOTALL)

    # Number followed by a single-letter unit suffix
    _SUFFIX_RE = re.compile(r"^([-+]?(?:\d+\.?\d*|\.\d+))([kmb])$", re.IGNORECASE)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def clean(self, raw: Any, data_type: DataType = "currency") -> float:
        """Return the numeric value of *raw*, or ``0.0`` if it has none.

        Parameters
        ----------
        raw:
            Cell value as read from the workbook.
        data_type:
            ``"percentage"`` forces division by 100 even without a ``%``.
        """
        value = self.parse(raw, data_type)
        return 0.0 if value is None else value

    def parse(self, raw: Any, data_type: DataType = "currency") -> Optional[float]:
        """Like ``clean`` but returns ``None`` for unparsable input."""
        try:
            value = self._parse(raw, data_type)
        except (ValueError, TypeError, OverflowError):
            value = None

        if value is not None and not math.isfinite(value):
            value = None
        if value is None and raw not in (None, ""):
            logger.debug("parse: %r is not numeric; resolving to None", raw)
        return value

    @staticmethod
    def data_type_for(raw: Any) -> DataType:
        """Cells literally containing ``%`` are percentages, all else currency."""
        if isinstance(raw, str) and "%" in raw:
            return "percentage"
        return "currency"

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _parse(self, raw: Any, data_type: DataType) -> Optional[float]:
        if raw is None or isinstance(raw, bool):
            return None

        # Dates are header material, never values
        if isinstance(raw, (datetime, date)):
            return None

        if isinstance(raw, (int, float)):
            return float(raw)

        if not isinstance(raw, str):
            return None

        text = raw.strip()
        if not text:
            return None

        negative = False
        m = self._PAREN_NEG_RE.match(text)
        if m:
            negative = True
            text = m.group(1)

        text = self._CURRENCY_RE.sub("", text)
        text = text.replace(",", "").replace("(", "").replace(")", "")
        text = "".join(text.split())

        is_percent = "%" in text
        text = text.replace("%", "")
        if not text:
            return None

        if data_type == "percentage" or is_percent:
            value = float(text) / 100.0
        else:
            suffix = self._SUFFIX_RE.match(text)
            if suffix:
                value = float(suffix.group(1)) * _UNIT_MULTIPLIERS[suffix.group(2).lower()]
            else:
                value = float(text)

        return -value if negative else value
