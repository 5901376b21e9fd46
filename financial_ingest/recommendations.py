"""
Rule-based recommendations over the latest period of a merged dataset.
"""

from __future__ import annotations

from typing import List, Optional

from financial_ingest.config import AnalysisConfig
from financial_ingest.logging_setup import get_logger
from financial_ingest.schema import CanonicalMetric, FinancialSeries
from financial_ingest.scoring import latest

logger = get_logger("recommendations")

REDUCE_DEBT = "Consider reducing debt levels to improve financial stability"
OPTIMIZE_COSTS = "Focus on cost optimization to improve net profit margin"
IMPROVE_LIQUIDITY = "Improve working capital management to enhance liquidity"
REVERSE_PROFIT_DECLINE = "Investigate the decline in net profit and address its drivers"
DEFAULT_RECOMMENDATION = "Maintain current operational efficiency"


class RecommendationEngine:
    """Threshold rules evaluated in a fixed order.

    Parameters
    ----------
    config:
        Rule thresholds (debt/equity ceiling, NPM and current-ratio floors).
    """

    def __init__(self, config: Optional[AnalysisConfig] = None) -> None:
        self._config = config or AnalysisConfig()

    def recommend(self, series: FinancialSeries) -> List[str]:
        """Return matching recommendations, or the default one.  Never empty."""
        cfg = self._config
        out: List[str] = []

        debt_equity = latest(series, CanonicalMetric.DEBT_EQUITY_RATIO)
        if debt_equity is not None and debt_equity > cfg.max_debt_equity:
            out.append(REDUCE_DEBT)

        npm = latest(series, CanonicalMetric.NPM)
        if npm is not None and npm < cfg.min_npm:
            out.append(OPTIMIZE_COSTS)

        current_ratio = latest(series, CanonicalMetric.CURRENT_RATIO)
        if current_ratio is not None and current_ratio < cfg.min_current_ratio:
            out.append(IMPROVE_LIQUIDITY)

        profit = latest(series, CanonicalMetric.NET_PROFIT)
        previous = latest(series, CanonicalMetric.NET_PROFIT, 1)
        if profit is not None and previous is not None and profit < previous:
            out.append(REVERSE_PROFIT_DECLINE)

        if not out:
            out.append(DEFAULT_RECOMMENDATION)

        logger.info("Recommendations: %s", out)
        return out

    def primary(self, series: FinancialSeries) -> str:
        return self.recommend(series)[0]
