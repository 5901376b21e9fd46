"""
Canonical metric set and data models.

Defines the closed set of metrics every raw row label is mapped onto, and
the typed data structures carried through the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from financial_ingest.errors import MetadataDetectionWarning


# ---------------------------------------------------------------------------
# Canonical metrics
# ---------------------------------------------------------------------------

class CanonicalMetric(str, Enum):
    """
    Every metric the pipeline can produce.

    The ``.value`` is the key used in serialised output.
    """

    REVENUE = "revenue"
    EXPENSES = "expenses"
    NET_PROFIT = "netProfit"
    CASH_FLOW = "cashFlow"
    EBITDA = "ebitda"
    PAT = "pat"
    DEBT_EQUITY_RATIO = "debtEquityRatio"
    NPM = "npm"
    CURRENT_RATIO = "currentRatio"
    ROE = "roe"
    ROCE = "roce"
    GROSS_MARGIN = "grossMargin"
    OPERATING_MARGIN = "operatingMargin"


def metric_lookup(name: str) -> Optional[CanonicalMetric]:
    """Case-insensitive lookup by value or member name."""
    _lower = name.strip().lower()
    for m in CanonicalMetric:
        if m.value.lower() == _lower or m.name.lower() == _lower:
            return m
    return None


# Mapping CanonicalMetric -> per-period values, in year-column order
FinancialSeries = Dict[CanonicalMetric, List[float]]


def series_to_dict(series: FinancialSeries) -> Dict[str, List[float]]:
    return {m.value: list(values) for m, values in series.items()}


# ---------------------------------------------------------------------------
# Workbook model
# ---------------------------------------------------------------------------

@dataclass
class Sheet:
    """A named 2-D grid of raw cell values (str, number, date or None)."""

    name: str
    rows: List[List[Any]] = field(default_factory=list)

    @property
    def n_rows(self) -> int:
        return len(self.rows)

    @property
    def n_cols(self) -> int:
        return max((len(r) for r in self.rows), default=0)

    def cell(self, row: int, col: int) -> Any:
        """Return the cell value, or ``None`` outside the grid."""
        if row < 0 or col < 0 or row >= len(self.rows):
            return None
        r = self.rows[row]
        return r[col] if col < len(r) else None


@dataclass
class Workbook:
    """Ordered sequence of sheets from one upload."""

    sheets: List[Sheet] = field(default_factory=list)

    @classmethod
    def from_rows(cls, sheets: Dict[str, List[List[Any]]]) -> "Workbook":
        """Build an in-memory workbook from ``{sheet_name: rows}``."""
        return cls(sheets=[Sheet(name, [list(r) for r in rows])
                           for name, rows in sheets.items()])

    @property
    def sheet_names(self) -> List[str]:
        return [s.name for s in self.sheets]


# ---------------------------------------------------------------------------
# Pipeline data models
# ---------------------------------------------------------------------------

@dataclass
class ExcelMetadata:
    """Layout conventions detected in a sheet's header region."""

    is_in_millions: bool = False
    currency: str = "USD"
    header_row_index: int = 0
    year_column_indices: List[int] = field(default_factory=list)
    years: List[int] = field(default_factory=list)
    warnings: List[MetadataDetectionWarning] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_in_millions": self.is_in_millions,
            "currency": self.currency,
            "header_row_index": self.header_row_index,
            "year_column_indices": list(self.year_column_indices),
            "years": list(self.years),
            "warnings": [str(w) for w in self.warnings],
        }


@dataclass
class SheetProcessingResult:
    """Outcome of extracting one sheet.  Isolated from every other sheet."""

    sheet_name: str
    success: bool
    partial_series: FinancialSeries = field(default_factory=dict)
    error: Optional[str] = None
    metadata: Optional[ExcelMetadata] = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sheet_name": self.sheet_name,
            "success": self.success,
            "partial_series": series_to_dict(self.partial_series),
            "error": self.error,
            "metadata": self.metadata.to_dict() if self.metadata else None,
            "warnings": self.warnings,
        }


@dataclass
class AnomalyFlag:
    """Z-score verdict for one (metric, period) pair."""

    metric: CanonicalMetric
    value: float
    is_anomaly: bool
    period_index: int = 0
    z_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "metric": self.metric.value,
            "value": self.value,
            "is_anomaly": self.is_anomaly,
            "period_index": self.period_index,
            "z_score": round(self.z_score, 4),
        }


@dataclass
class CompetitivePositionScore:
    overall: float
    market_share: float
    revenue_growth: float
    profitability: float
    innovation: float
    brand_strength: float

    def to_dict(self) -> dict[str, float]:
        return {
            "overall": self.overall,
            "market_share": self.market_share,
            "revenue_growth": self.revenue_growth,
            "profitability": self.profitability,
            "innovation": self.innovation,
            "brand_strength": self.brand_strength,
        }


@dataclass(frozen=True)
class MarketContext:
    """Externally supplied market figures; never read from the workbook."""

    total_market_size: float = 205_000.0
    innovation: float = 0.8
    brand_strength: float = 0.9


@dataclass(frozen=True)
class Sentiment:
    score: float
    label: str


@dataclass(frozen=True)
class AnalysisContext:
    """Per-request context threaded through the analysis engines."""

    company_name: str = "Company"
    sector: str = "Consumer Goods"
    report_period: str = ""
    market: MarketContext = field(default_factory=MarketContext)
    competitors: tuple[str, ...] = ()
    sentiment: Optional[Sentiment] = None


@dataclass
class Insight:
    """One dashboard insight card."""

    summary: str
    diagnosis: str
    solutions: str
    profitability: str
    confidence: float
    metrics: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "diagnosis": self.diagnosis,
            "solutions": self.solutions,
            "profitability": self.profitability,
            "confidence": self.confidence,
            "metrics": dict(self.metrics),
        }


@dataclass
class PipelineOutput:
    """Aggregate result of a full pipeline run."""

    series: FinancialSeries = field(default_factory=dict)
    sheet_results: list[SheetProcessingResult] = field(default_factory=list)
    skipped_sheets: list[str] = field(default_factory=list)
    anomalies: list[AnomalyFlag] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    ratios: Dict[str, float] = field(default_factory=dict)
    score: Optional[CompetitivePositionScore] = None
    used_fallback: bool = False
    fallback_reason: Optional[str] = None
    validation_errors: list[str] = field(default_factory=list)
    validation_warnings: list[str] = field(default_factory=list)
    insights: Dict[str, Insight] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        """True when the workbook's own data was used."""
        return not self.used_fallback

    @property
    def recommendation(self) -> str:
        return self.recommendations[0] if self.recommendations else ""

    @property
    def period_count(self) -> int:
        return max((len(v) for v in self.series.values()), default=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "used_fallback": self.used_fallback,
            "fallback_reason": self.fallback_reason,
            "series": series_to_dict(self.series),
            "period_count": self.period_count,
            "sheets": [r.to_dict() for r in self.sheet_results],
            "skipped_sheets": list(self.skipped_sheets),
            "anomalies": [a.to_dict() for a in self.anomalies],
            "recommendation": self.recommendation,
            "recommendations": list(self.recommendations),
            "ratios": dict(self.ratios),
            "score": self.score.to_dict() if self.score else None,
            "validation_errors": list(self.validation_errors),
            "validation_warnings": list(self.validation_warnings),
            "insights": {name: card.to_dict() for name, card in self.insights.items()},
        }
