"""
Unit tests for near-miss label diagnostics.
"""

from __future__ import annotations

import pytest

from financial_ingest.catalog import DEFAULT_CATALOG
from financial_ingest.near_miss import NearMissDetector


@pytest.fixture
def detector() -> NearMissDetector:
    return NearMissDetector(DEFAULT_CATALOG.all_aliases(), threshold=90.0)


class TestNearMiss:
    def test_casing_variant_reported(self, detector: NearMissDetector) -> None:
        miss = detector.check("net sales")
        assert miss is not None
        assert miss.closest_alias.lower() == "net sales"
        assert miss.score == pytest.approx(100.0)

    def test_typo_reported(self, detector: NearMissDetector) -> None:
        miss = detector.check("Net profitt")
        assert miss is not None
        assert miss.closest_alias.lower() == "net profit"

    def test_exact_alias_not_reported(self, detector: NearMissDetector) -> None:
        assert detector.check("Net sales") is None

    def test_unrelated_label(self, detector: NearMissDetector) -> None:
        assert detector.check("Dividend per share") is None

    def test_blank_label(self, detector: NearMissDetector) -> None:
        assert detector.check("   ") is None

    def test_no_aliases(self) -> None:
        assert NearMissDetector([]).check("Revenue") is None

    def test_describe(self, detector: NearMissDetector) -> None:
        text = detector.check("net sales").describe()
        assert "'net sales'" in text
        assert "closest" in text
