"""
Dashboard Insight Cards.

Deterministic, template-based insight text for each dashboard.  Figures
come from the latest period of the dataset; a metric the upload did not
supply is taken from the reference dataset so every card renders.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

import numpy as np

from financial_ingest.config import AnalysisConfig
from financial_ingest.logging_setup import get_logger
from financial_ingest.schema import AnalysisContext, CanonicalMetric, FinancialSeries, Insight
from financial_ingest.scoring import latest
from financial_ingest.validator import REFERENCE_DATASET

logger = get_logger("insights")

M = CanonicalMetric

DASHBOARDS = ("financial", "eda", "competitor", "kpi", "ai")


def _value(series: FinancialSeries, metric: CanonicalMetric) -> float:
    v = latest(series, metric)
    if v is None:
        v = REFERENCE_DATASET[metric][-1] if metric in REFERENCE_DATASET else 0.0
    return v


def _subject(context: AnalysisContext) -> str:
    """Card heading such as ``Acme (Consumer Goods, FY2023)``."""
    qualifiers = [q for q in (context.sector, context.report_period) if q]
    if not qualifiers:
        return context.company_name
    return f"{context.company_name} ({', '.join(qualifiers)})"


class InsightGenerator:
    """Build insight cards for the financial, EDA, competitor, KPI and AI views."""

    def __init__(self, config: Optional[AnalysisConfig] = None) -> None:
        self._config = config or AnalysisConfig()
        self._builders: Dict[str, Callable[[FinancialSeries, AnalysisContext], Insight]] = {
            "financial": self._financial,
            "eda": self._eda,
            "competitor": self._competitor,
            "kpi": self._kpi,
            "ai": self._ai,
        }

    def generate(
        self,
        series: FinancialSeries,
        context: AnalysisContext,
        dashboard: str = "financial",
    ) -> Insight:
        """Insight for *dashboard*; unknown names get the financial card."""
        builder = self._builders.get(dashboard)
        if builder is None:
            logger.debug("Unknown dashboard %r; using 'financial'", dashboard)
            builder = self._financial
        return builder(series, context)

    def generate_all(
        self, series: FinancialSeries, context: AnalysisContext
    ) -> Dict[str, Insight]:
        return {name: self._builders[name](series, context) for name in DASHBOARDS}

    # ------------------------------------------------------------------ #
    # Cards
    # ------------------------------------------------------------------ #

    def _financial(self, series: FinancialSeries, context: AnalysisContext) -> Insight:
        cfg = self._config
        revenue = _value(series, M.REVENUE)
        expenses = _value(series, M.EXPENSES)
        profit = _value(series, M.NET_PROFIT)
        ebitda = _value(series, M.EBITDA)
        expense_ratio = expenses / revenue * 100 if revenue else 0.0
        return Insight(
            summary=(
                f"{_subject(context)} revenue {revenue:,.0f}, expenses {expenses:,.0f}, "
                f"net profit {profit:,.0f}, EBITDA {ebitda:,.0f}."
            ),
            diagnosis=f"Expense ratio of {expense_ratio:.0f}% limits margin.",
            solutions=(
                f"Cut costs by {cfg.cost_reduction_target:.0%} "
                f"({expenses * cfg.cost_reduction_target:,.0f}) through operational efficiency."
            ),
            profitability=(
                f"Increase net profit by {profit * cfg.profit_uplift_low:,.0f}-"
                f"{profit * cfg.profit_uplift_high:,.0f} with cost efficiency."
            ),
            confidence=0.85,
            metrics={"revenue": revenue, "expenses": expenses,
                     "profit": profit, "ebitda": ebitda},
        )

    def _eda(self, series: FinancialSeries, context: AnalysisContext) -> Insight:
        roe = _value(series, M.ROE) * 100
        npm = _value(series, M.NPM) * 100
        correlation = self._revenue_expense_correlation(series)
        return Insight(
            summary=f"Revenue-expense correlation {correlation:.2f}, ROE {roe:.1f}%, NPM {npm:.1f}%.",
            diagnosis="Expense control significantly impacts profitability.",
            solutions="Implement expense forecasting to anticipate cost pressure.",
            profitability=f"Raise ROE to {roe * 1.15:.1f}% by optimising capital structure.",
            confidence=0.9,
            metrics={"correlation": correlation, "roe": roe, "npm": npm},
        )

    def _competitor(self, series: FinancialSeries, context: AnalysisContext) -> Insight:
        revenue = _value(series, M.REVENUE)
        share = revenue / context.market.total_market_size if context.market.total_market_size else 0.0
        rivals = ", ".join(context.competitors) or "peers"
        return Insight(
            summary=f"{context.company_name} holds {share:.1%} of the market versus {rivals}.",
            diagnosis="Market share gap with leading competitors.",
            solutions="Target competitor pricing strategies in key markets.",
            profitability=(
                f"Gain {context.market.total_market_size * 0.01:,.0f} revenue "
                f"with each 1% of market share."
            ),
            confidence=0.8,
            metrics={"market_share": share},
        )

    def _kpi(self, series: FinancialSeries, context: AnalysisContext) -> Insight:
        cfg = self._config
        roe = _value(series, M.ROE) * 100
        current_ratio = _value(series, M.CURRENT_RATIO)
        return Insight(
            summary=(
                f"ROE {roe:.1f}% vs. industry {cfg.industry_roe:.0f}%, "
                f"current ratio {current_ratio:.2f}."
            ),
            diagnosis=(
                "Above-average ROE but liquidity could improve."
                if roe >= cfg.industry_roe
                else "ROE trails the industry; liquidity needs attention."
            ),
            solutions="Enhance cash flow through working capital optimisation.",
            profitability=f"Raise current ratio to {cfg.target_current_ratio} for a 1% profit uplift.",
            confidence=0.87,
            metrics={"roe": roe, "industry_roe": cfg.industry_roe, "current_ratio": current_ratio},
        )

    def _ai(self, series: FinancialSeries, context: AnalysisContext) -> Insight:
        cfg = self._config
        profit = _value(series, M.NET_PROFIT)
        npm = _value(series, M.NPM) * 100
        predicted = profit * (1 + cfg.projected_profit_growth)
        sentiment = context.sentiment
        metrics = {"predicted_profit": predicted, "target_npm": npm + 1.2}
        if sentiment is None:
            mood = "No market sentiment available"
        else:
            mood = f"Market sentiment is {sentiment.label.lower()} ({sentiment.score:+.2f})"
            metrics["sentiment"] = sentiment.score
        return Insight(
            summary=f"Projected next-period profit for {_subject(context)}: {predicted:,.0f} with cost cuts.",
            diagnosis=f"{mood}; current trends support growth but expense volatility is a risk.",
            solutions="Adopt risk mitigation such as currency hedging.",
            profitability=f"Target {npm + 1.2:.1f}% NPM.",
            confidence=0.83,
            metrics=metrics,
        )

    @staticmethod
    def _revenue_expense_correlation(series: FinancialSeries) -> float:
        revenue = series.get(M.REVENUE) or []
        expenses = series.get(M.EXPENSES) or []
        n = min(len(revenue), len(expenses))
        if n < 2:
            return 0.0
        xs = np.asarray(revenue[:n], dtype=float)
        ys = np.asarray(expenses[:n], dtype=float)
        # corrcoef is undefined for a flat series
        if np.ptp(xs) == 0 or np.ptp(ys) == 0:
            return 0.0
        return float(np.corrcoef(xs, ys)[0, 1])
