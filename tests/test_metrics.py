"""Unit tests for domain/metrics/.

Tests verify:
1. Drawdown state machine (depth, periods, recovery, ulcer index)
2. Risk-adjusted ratios on daily returns
3. Distribution statistics against numpy reference values
4. Trade-quality ratios and their None cases
"""

from datetime import datetime, timezone
from decimal import Decimal

import numpy as np
import pytest

from journal_analytics.domain.metrics import (
    calculate_distribution_stats,
    calculate_drawdown_analysis,
    calculate_risk_adjusted_returns,
    calculate_volatility_metrics,
    expectancy,
    kelly_criterion,
    median,
    payoff_ratio,
    profit_factor,
    sample_std,
    win_rate,
)
from journal_analytics.domain.returns import DailyReturnPoint, EquityCurvePoint


def curve(*equities):
    return [
        EquityCurvePoint(datetime(2024, 1, i + 1, tzinfo=timezone.utc), str(e))
        for i, e in enumerate(equities)
    ]


def daily(*pnls):
    return [
        DailyReturnPoint(datetime(2024, 1, i + 1, tzinfo=timezone.utc), str(p), 1, "0")
        for i, p in enumerate(pnls)
    ]


DAY_MS = 86_400_000


# =============================================================================
# Drawdown Tests
# =============================================================================

class TestDrawdown:
    """Tests for calculate_drawdown_analysis."""

    def test_single_dip_recovered(self):
        """100 -> 60 -> 120 is a 40% drawdown that recovers."""
        result = calculate_drawdown_analysis(curve(100, 60, 120))
        assert result.max_drawdown_percentage == "40"
        assert result.max_drawdown_dollar == "40"
        assert result.current_drawdown == "0"
        assert len(result.drawdown_periods) == 1

        period = result.drawdown_periods[0]
        assert period.recovered
        assert period.peak_equity == "100"
        assert period.trough_equity == "60"
        assert period.drawdown_percent == "40"
        assert period.duration_ms == DAY_MS

    def test_max_is_deepest_point(self):
        """Max drawdown is the most negative pointwise drawdown."""
        result = calculate_drawdown_analysis(curve(100, 90, 200, 150, 250))
        assert result.max_drawdown_percentage == "25"
        assert result.max_drawdown_dollar == "50"
        assert len(result.drawdown_periods) == 2

    def test_trough_updates(self):
        result = calculate_drawdown_analysis(curve(100, 80, 50, 70))
        period = result.drawdown_periods[0]
        assert period.trough_equity == "50"
        assert period.drawdown_percent == "50"
        assert not period.recovered
        assert period.end_date is None
        # Runs to the last point
        assert period.duration_ms == 2 * DAY_MS
        assert result.current_drawdown == "30"

    def test_never_below_peak(self):
        result = calculate_drawdown_analysis(curve(10, 20, 30))
        assert result.max_drawdown_percentage == "0"
        assert result.drawdown_periods == ()
        assert result.average_drawdown is None
        assert result.max_drawdown_duration is None
        assert result.ulcer_index == 0

    def test_non_positive_peak_not_measured(self):
        """Drawdown percentages need a positive peak."""
        result = calculate_drawdown_analysis(curve(-10, -50, -20))
        assert result.max_drawdown_percentage == "0"
        assert result.drawdown_periods == ()

    def test_ulcer_and_average(self):
        """Ulcer index averages squared drawdowns over all points."""
        result = calculate_drawdown_analysis(curve(100, 60, 120))
        assert result.ulcer_index == pytest.approx(np.sqrt(0.4 ** 2 / 3) * 100)
        assert result.average_drawdown == "40"

    def test_max_duration_accumulates(self):
        result = calculate_drawdown_analysis(curve(100, 90, 80, 110))
        # Entering step counts as time under water
        assert result.max_drawdown_duration == 2 * DAY_MS

    def test_empty_curve(self):
        result = calculate_drawdown_analysis([])
        assert result.max_drawdown_percentage is None
        assert result.drawdown_periods == ()


# =============================================================================
# Risk Tests
# =============================================================================

class TestRiskAdjustedReturns:
    """Tests for calculate_risk_adjusted_returns."""

    def test_requires_two_days(self):
        result = calculate_risk_adjusted_returns(Decimal("100"), daily(100), "0", 1)
        assert result.sharpe_ratio is None
        assert result.calmar_ratio is None

    def test_requires_closed_trade(self):
        result = calculate_risk_adjusted_returns(Decimal("0"), daily(1, 2), "0", 0)
        assert result.sharpe_ratio is None

    def test_sharpe_matches_numpy(self):
        pnls = [100, -40, 60]
        result = calculate_risk_adjusted_returns(Decimal("120"), daily(*pnls), "40", 3)

        values = np.array(pnls, dtype=float)
        rf = 0.05 / 252
        expected = (values.mean() - rf) / values.std() * np.sqrt(252)
        assert result.sharpe_ratio == pytest.approx(expected)

    def test_sortino_uses_days_below_rf(self):
        pnls = [100, -40, 60]
        result = calculate_risk_adjusted_returns(Decimal("120"), daily(*pnls), "40", 3)

        values = np.array(pnls, dtype=float)
        rf = 0.05 / 252
        downside = np.sqrt(np.mean((values[values < rf] - rf) ** 2))
        expected = (values.mean() - rf) / downside * np.sqrt(252)
        assert result.sortino_ratio == pytest.approx(expected)

    def test_sortino_none_without_losing_days(self):
        result = calculate_risk_adjusted_returns(Decimal("30"), daily(10, 20), "0", 2)
        assert result.sortino_ratio is None

    def test_drawdown_ratios(self):
        result = calculate_risk_adjusted_returns(Decimal("120"), daily(100, -40, 60), "40", 3)
        assert result.calmar_ratio == pytest.approx(120 / 3 * 252 / 40)
        assert result.return_on_max_drawdown == pytest.approx(3.0)
        assert result.recovery_factor == pytest.approx(120 / (0.4 * 120))

    def test_drawdown_ratios_none_without_drawdown(self):
        result = calculate_risk_adjusted_returns(Decimal("30"), daily(10, 20), "0", 2)
        assert result.calmar_ratio is None
        assert result.recovery_factor is None
        assert result.return_on_max_drawdown is None

    def test_constant_returns_no_sharpe(self):
        result = calculate_risk_adjusted_returns(Decimal("20"), daily(10, 10), "0", 2)
        assert result.sharpe_ratio is None


class TestVolatility:
    """Tests for calculate_volatility_metrics."""

    def test_population_std(self):
        result = calculate_volatility_metrics([Decimal("100"), Decimal("-40"), Decimal("60")])
        assert result.return_volatility == pytest.approx(np.std([100, -40, 60]))
        assert result.downside_deviation == pytest.approx(40.0)

    def test_needs_two_trades(self):
        result = calculate_volatility_metrics([Decimal("1")])
        assert result.return_volatility is None


# =============================================================================
# Distribution Tests
# =============================================================================

class TestDistribution:
    """Tests for median, sample_std and calculate_distribution_stats."""

    def test_median_odd_and_even(self):
        assert median([Decimal(3), Decimal(1), Decimal(2)]) == 2
        assert median([Decimal(1), Decimal(2), Decimal(3), Decimal(4)]) == Decimal("2.5")
        assert median([]) is None

    def test_sample_std_matches_numpy(self):
        values = [Decimal("100"), Decimal("-40"), Decimal("60")]
        expected = np.std([100, -40, 60], ddof=1)
        assert float(sample_std(values)) == pytest.approx(expected)

    def test_sample_std_needs_two(self):
        assert sample_std([Decimal("1")]) is None

    def test_skew_and_kurtosis_match_numpy(self):
        raw = [100, -40, 60, 10, -5]
        stats = calculate_distribution_stats([Decimal(v) for v in raw])

        values = np.array(raw, dtype=float)
        z = (values - values.mean()) / values.std()
        assert stats.skewness == pytest.approx(np.mean(z ** 3))
        assert stats.kurtosis == pytest.approx(np.mean(z ** 4) - 3)
        assert stats.median_pnl == "10"

    def test_minimum_counts(self):
        stats = calculate_distribution_stats([Decimal(1), Decimal(2), Decimal(4)])
        assert stats.skewness is not None
        assert stats.kurtosis is None

        stats = calculate_distribution_stats([Decimal(1), Decimal(2)])
        assert stats.skewness is None

    def test_zero_spread(self):
        stats = calculate_distribution_stats([Decimal(5)] * 4)
        assert stats.skewness is None
        assert stats.kurtosis is None
        assert stats.standard_deviation_pnl == "0"

    def test_empty(self):
        stats = calculate_distribution_stats([])
        assert stats.median_pnl is None
        assert stats.standard_deviation_pnl is None


# =============================================================================
# Trade Quality Tests
# =============================================================================

class TestTradeQuality:
    """Tests for the performance ratios."""

    def test_win_rate_excludes_break_even(self):
        assert win_rate(2, 1) == pytest.approx(2 / 3)
        assert win_rate(0, 0) is None

    def test_profit_factor(self):
        assert profit_factor(Decimal("160"), Decimal("-40")) == pytest.approx(4.0)

    def test_profit_factor_without_losses_is_none(self):
        """No losses: None rather than inf or an exception."""
        assert profit_factor(Decimal("160"), Decimal("0")) is None

    def test_profit_factor_without_wins_is_none(self):
        assert profit_factor(Decimal("0"), Decimal("-40")) is None

    def test_payoff_ratio(self):
        assert payoff_ratio(Decimal("80"), Decimal("-40")) == pytest.approx(2.0)
        assert payoff_ratio(None, Decimal("-40")) is None

    def test_expectancy(self):
        # 2/3 x 80 - 1/3 x 40
        result = expectancy(2, 1, Decimal("80"), Decimal("-40"))
        assert float(result) == pytest.approx(40.0)
        assert expectancy(0, 0, None, None) is None

    def test_kelly(self):
        assert kelly_criterion(2 / 3, 2.0) == pytest.approx(2 / 3 - (1 / 3) / 2)
        assert kelly_criterion(0.5, 0.0) is None
        assert kelly_criterion(None, 2.0) is None
