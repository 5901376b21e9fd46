"""
Near-miss Label Diagnostics.

Alias matching is exact and case-sensitive, so "net sales" does not match
the alias "Net sales".  This layer uses ``rapidfuzz`` to spot such labels
and report them.  It never maps a label: a near-miss only produces a
warning on the sheet result, so extraction semantics stay exact.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from rapidfuzz import fuzz, process

from financial_ingest.logging_setup import get_logger

logger = get_logger("near_miss")


@dataclass
class NearMiss:
    """A row label that narrowly failed to match a known alias."""

    label: str
    closest_alias: str
    score: float  # 0–100

    def describe(self) -> str:
        return (
            f"Label {self.label!r} did not match any alias exactly; "
            f"closest is {self.closest_alias!r} (score={self.score:.1f})"
        )


class NearMissDetector:
    """Compare unmatched labels against the catalog's aliases.

    Parameters
    ----------
    aliases:
        Every alias the catalog accepts.
    threshold:
        Minimum similarity (0–100) for a label to be reported.
    """

    def __init__(self, aliases: Iterable[str], threshold: float = 90.0) -> None:
        self._aliases: List[str] = list(aliases)
        self._threshold = threshold

    def check(self, label: str) -> Optional[NearMiss]:
        """Return a ``NearMiss`` if *label* resembles an alias, else ``None``."""
        text = label.strip()
        if not text or not self._aliases:
            return None

        # Case-folded comparison: casing variants are the common miss
        best = process.extractOne(
            text,
            self._aliases,
            scorer=fuzz.ratio,
            processor=str.lower,
        )
        if best is None:
            return None

        alias, score, _ = best
        if score < self._threshold or alias == text:
            return None

        miss = NearMiss(label=text, closest_alias=alias, score=score)
        logger.info("Near-miss: %s", miss.describe())
        return miss
