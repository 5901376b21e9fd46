"""
Unit tests for ratios, score weights and the competitive-position score.
"""

from __future__ import annotations

import pytest

from financial_ingest.config import AnalysisConfig, ScoreWeights
from financial_ingest.schema import CanonicalMetric, MarketContext
from financial_ingest.scoring import (
    ScoreEngine,
    latest,
    latest_npm,
    revenue_growth,
    safe_divide,
)

M = CanonicalMetric


@pytest.fixture
def engine() -> ScoreEngine:
    return ScoreEngine(AnalysisConfig())


# ======================================================================
# Weights
# ======================================================================

class TestScoreWeights:
    def test_defaults_sum_to_one(self) -> None:
        assert ScoreWeights().total == pytest.approx(1.0)

    def test_invalid_sum_rejected(self) -> None:
        with pytest.raises(ValueError, match="sum to 1.0"):
            ScoreWeights(market_share=0.5)

    def test_custom_weights_accepted(self) -> None:
        w = ScoreWeights(0.2, 0.2, 0.2, 0.2, 0.2)
        assert w.total == pytest.approx(1.0)


# ======================================================================
# Helpers
# ======================================================================

class TestHelpers:
    def test_safe_divide(self) -> None:
        assert safe_divide(1.0, 4.0) == 0.25
        assert safe_divide(1.0, 0.0) is None
        assert safe_divide(None, 1.0, default=0.0) == 0.0

    def test_latest_is_last_element(self) -> None:
        series = {M.REVENUE: [1.0, 2.0, 3.0]}
        assert latest(series, M.REVENUE) == 3.0
        assert latest(series, M.REVENUE, 1) == 2.0
        assert latest(series, M.REVENUE, 3) is None
        assert latest(series, M.EXPENSES) is None

    def test_latest_npm_prefers_direct(self) -> None:
        assert latest_npm({M.NPM: [0.2], M.NET_PROFIT: [1.0], M.REVENUE: [100.0]}) == 0.2
        assert latest_npm({M.NET_PROFIT: [10.0], M.REVENUE: [100.0]}) == pytest.approx(0.1)

    def test_revenue_growth(self) -> None:
        assert revenue_growth({M.REVENUE: [100.0, 120.0]}) == pytest.approx(0.2)
        assert revenue_growth({M.REVENUE: [100.0]}) == 0.0
        assert revenue_growth({M.REVENUE: [0.0, 50.0]}) == 0.0
        assert revenue_growth({}) == 0.0


# ======================================================================
# Ratios
# ======================================================================

class TestRatios:
    def test_latest_period_ratios(self, engine: ScoreEngine) -> None:
        ratios = engine.compute_ratios({
            M.REVENUE: [100.0, 200.0],
            M.EXPENSES: [50.0, 80.0],
            M.EBITDA: [20.0, 40.0],
            M.CURRENT_RATIO: [1.1, 1.4],
        })
        assert ratios["expense_ratio"] == pytest.approx(0.4)
        assert ratios["ebitda_margin"] == pytest.approx(0.2)
        assert ratios["current_ratio"] == 1.4
        assert ratios["revenue_growth"] == pytest.approx(1.0)

    def test_missing_inputs_omitted(self, engine: ScoreEngine) -> None:
        ratios = engine.compute_ratios({M.REVENUE: [100.0]})
        assert "net_profit_margin" not in ratios
        assert "revenue_growth" not in ratios
        assert "debt_equity_ratio" not in ratios


# ======================================================================
# Competitive position
# ======================================================================

class TestCompetitivePosition:
    def test_weighted_overall(self, engine: ScoreEngine) -> None:
        series = {M.REVENUE: [100.0, 120.0], M.NPM: [0.3, 0.3]}
        market = MarketContext(total_market_size=1000.0, innovation=0.8, brand_strength=0.9)
        score = engine.compute_competitive_position(series, market)
        assert score.market_share == pytest.approx(0.12)
        assert score.revenue_growth == pytest.approx(0.2)
        assert score.profitability == 1.0
        assert score.overall == pytest.approx(0.3 * 0.12 + 0.2 * 0.2 + 0.2 * 1.0 + 0.15 * 0.8 + 0.15 * 0.9)

    def test_profitability_scaled_by_benchmark(self, engine: ScoreEngine) -> None:
        score = engine.compute_competitive_position({M.NPM: [0.075]}, MarketContext())
        assert score.profitability == pytest.approx(0.5)

    def test_market_share_unclamped(self, engine: ScoreEngine) -> None:
        score = engine.compute_competitive_position(
            {M.REVENUE: [300.0]}, MarketContext(total_market_size=100.0)
        )
        assert score.market_share == pytest.approx(3.0)

    def test_empty_dataset(self, engine: ScoreEngine) -> None:
        score = engine.compute_competitive_position({}, MarketContext(innovation=0.0, brand_strength=0.0))
        assert score.overall == 0.0
        assert score.market_share == 0.0
        assert score.profitability == 0.0

    def test_zero_market_size(self, engine: ScoreEngine) -> None:
        score = engine.compute_competitive_position(
            {M.REVENUE: [10.0]}, MarketContext(total_market_size=0.0)
        )
        assert score.market_share == 0.0
