"""
Configuration module for Financial Ingest.

All tuneable parameters live here: header heuristics, thresholds, score
weights and timeouts.  Nothing is hard-coded in business logic modules.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class ExtractionConfig:
    """Controls header detection and per-sheet extraction."""

    # Number of leading rows scanned for scale, currency and the header row
    header_search_rows: int = 10

    # Inclusive bounds for a header cell to count as a year column
    year_min: int = 2000
    year_max: int = 2100

    # Case-insensitive substrings marking a sheet as "in millions"
    scale_tokens: Tuple[str, ...] = ("million", "in millions")

    # (token, ISO code) pairs, matched case-insensitively against header
    # cells.  Alphabetic tokens must stand alone as words; symbols match
    # anywhere.  The last matching cell in the window wins.
    currency_tokens: Tuple[Tuple[str, str], ...] = (
        ("USD", "USD"),
        ("$", "USD"),
        ("INR", "INR"),
        ("Rs.", "INR"),
        ("₹", "INR"),
        ("EUR", "EUR"),
        ("€", "EUR"),
        ("GBP", "GBP"),
        ("£", "GBP"),
        ("JPY", "JPY"),
        ("¥", "JPY"),
    )
    default_currency: str = "USD"

    # A row containing one of these (case-insensitive) is a header candidate
    header_triggers: Tuple[str, ...] = ("net sales", "revenue", "income")

    # When True only trigger rows that also hold a year cell compete for the
    # header row, so data rows such as "Net sales" cannot displace it.
    require_year_cells_in_header: bool = True

    # Sheets are routed into the pipeline only if their name contains one
    # of these (case-insensitive).
    sheet_allow_list: Tuple[str, ...] = (
        "Income Statement",
        "Balance Sheet",
        "Cash Flows",
        "Financial Summary",
        "Consolidated Statements",
        "Consolidated Balance",
    )

    # Minimum rapidfuzz score (0–100) for an unmatched label to be reported
    # as a near-miss of a known alias.  Reporting only; never maps.
    near_miss_threshold: float = 90.0

    # EBITDA approximation when no EBITDA row exists: ratio × revenue
    ebitda_fallback_ratio: float = 0.20

    # Worker threads for sheet extraction; 1 means sequential
    max_workers: int = 1


@dataclass(frozen=True)
class ValidationConfig:
    """Controls validation of the merged dataset."""

    # Canonical metric values (e.g. "revenue") that must be present with a
    # usable series.  An empty tuple only requires one usable metric.
    required_fields: Tuple[str, ...] = ("revenue", "expenses")

    # Values beyond this magnitude are reported as likely unit errors
    max_absolute_value: float = 1e15


@dataclass(frozen=True)
class ScoreWeights:
    """Weights of the composite competitive-position score."""

    market_share: float = 0.30
    revenue_growth: float = 0.20
    profitability: float = 0.20
    innovation: float = 0.15
    brand_strength: float = 0.15

    def __post_init__(self) -> None:
        if not math.isclose(self.total, 1.0, rel_tol=0.0, abs_tol=1e-9):
            raise ValueError(
                f"Score weights must sum to 1.0, got {self.total!r}"
            )

    @property
    def total(self) -> float:
        return (
            self.market_share
            + self.revenue_growth
            + self.profitability
            + self.innovation
            + self.brand_strength
        )


@dataclass(frozen=True)
class AnalysisConfig:
    """Thresholds used by the anomaly, score and recommendation engines."""

    # A point is anomalous when its z-score exceeds this value
    anomaly_z_threshold: float = 2.0

    # Net profit margin that earns full profitability credit
    benchmark_npm: float = 0.15

    score_weights: ScoreWeights = field(default_factory=ScoreWeights)

    # Recommendation rules
    max_debt_equity: float = 2.0
    min_npm: float = 0.10
    min_current_ratio: float = 1.0

    # Insight heuristics
    cost_reduction_target: float = 0.05
    profit_uplift_low: float = 0.02
    profit_uplift_high: float = 0.03
    industry_roe: float = 12.0
    target_current_ratio: float = 1.7
    projected_profit_growth: float = 0.043


@dataclass(frozen=True)
class ExternalConfig:
    """Controls calls to network-bound collaborators."""

    # Upper bound on any single external call, in seconds
    timeout_seconds: float = 5.0

    # Number of competitor names always returned
    competitor_count: int = 3


@dataclass(frozen=True)
class PipelineConfig:
    """Top-level configuration aggregating all sub-configs."""

    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    external: ExternalConfig = field(default_factory=ExternalConfig)

    # Logging level for the extraction audit trail
    log_level: int = logging.INFO

    # When True a failed validation raises ``ValidationFailure`` instead of
    # substituting the reference dataset.
    strict_mode: bool = False
