"""
Ratio and Competitive-Position Scoring.

Computes latest-period financial ratios and the weighted composite
competitive-position score from a merged dataset.

"Latest" is the last element of a series: periods are held in the
left-to-right order of the sheet's year columns.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional

from financial_ingest.config import AnalysisConfig
from financial_ingest.logging_setup import get_logger
from financial_ingest.schema import (
    CanonicalMetric,
    CompetitivePositionScore,
    FinancialSeries,
    MarketContext,
)

logger = get_logger("scoring")

M = CanonicalMetric


def safe_divide(
    numerator: Optional[float],
    denominator: Optional[float],
    default: Optional[float] = None,
) -> Optional[float]:
    """Safely divide two numbers, returning *default* if invalid."""
    if numerator is None or denominator is None:
        return default
    if denominator == 0:
        return default
    result = numerator / denominator
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def latest(series: FinancialSeries, metric: CanonicalMetric, offset: int = 0) -> Optional[float]:
    """Value *offset* periods before the latest one, or ``None``."""
    values: List[float] = series.get(metric) or []
    if len(values) <= offset:
        return None
    return values[-1 - offset]


def latest_npm(series: FinancialSeries) -> Optional[float]:
    """Latest net profit margin, derived from profit / revenue if needed."""
    npm = latest(series, M.NPM)
    if npm is not None:
        return npm
    return safe_divide(latest(series, M.NET_PROFIT), latest(series, M.REVENUE))


def revenue_growth(series: FinancialSeries) -> float:
    """Growth over the two most recent periods; 0 with fewer than two."""
    return safe_divide(
        _diff(latest(series, M.REVENUE), latest(series, M.REVENUE, 1)),
        latest(series, M.REVENUE, 1),
        default=0.0,
    )


def _diff(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if a is None or b is None:
        return None
    return a - b


class ScoreEngine:
    """Ratio calculator and competitive-position scorer.

    Parameters
    ----------
    config:
        Benchmark NPM and score weights.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None) -> None:
        self._config = config or AnalysisConfig()

    def compute_ratios(self, series: FinancialSeries) -> Dict[str, float]:
        """Latest-period ratios; ratios whose inputs are missing are omitted."""
        revenue = latest(series, M.REVENUE)
        candidates = {
            "net_profit_margin": latest_npm(series),
            "expense_ratio": safe_divide(latest(series, M.EXPENSES), revenue),
            "ebitda_margin": safe_divide(latest(series, M.EBITDA), revenue),
            "debt_equity_ratio": latest(series, M.DEBT_EQUITY_RATIO),
            "current_ratio": latest(series, M.CURRENT_RATIO),
            "roe": latest(series, M.ROE),
            "roce": latest(series, M.ROCE),
            "gross_margin": latest(series, M.GROSS_MARGIN),
            "operating_margin": latest(series, M.OPERATING_MARGIN),
            "revenue_growth": (
                revenue_growth(series) if len(series.get(M.REVENUE) or []) >= 2 else None
            ),
        }
        return {k: v for k, v in candidates.items() if v is not None}

    def compute_competitive_position(
        self, series: FinancialSeries, market: MarketContext
    ) -> CompetitivePositionScore:
        weights = self._config.score_weights

        # Unclamped: a market size smaller than revenue yields a share > 1
        market_share = safe_divide(
            latest(series, M.REVENUE), market.total_market_size, default=0.0
        )
        growth = revenue_growth(series)
        npm_ratio = safe_divide(latest_npm(series), self._config.benchmark_npm, default=0.0)
        profitability = min(1.0, npm_ratio)

        overall = (
            weights.market_share * market_share
            + weights.revenue_growth * growth
            + weights.profitability * profitability
            + weights.innovation * market.innovation
            + weights.brand_strength * market.brand_strength
        )

        score = CompetitivePositionScore(
            overall=overall,
            market_share=market_share,
            revenue_growth=growth,
            profitability=profitability,
            innovation=market.innovation,
            brand_strength=market.brand_strength,
        )
        logger.info(
            "Competitive position — overall=%.3f share=%.3f growth=%.3f profit=%.3f",
            overall, market_share, growth, profitability,
        )
        return score
