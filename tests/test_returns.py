"""Unit tests for domain/returns.py."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from journal_analytics.domain.returns import (
    EquityCurvePoint,
    PnlPoint,
    build_equity_curve,
    calculate_daily_returns,
    correlation_coefficient,
    day_key,
    sort_pnl_series,
)


# =============================================================================
# Equity Curve Tests
# =============================================================================

class TestEquityCurve:
    """Tests for build_equity_curve."""

    def test_cumulative_sum(self):
        """+100, -40, +60 -> 100, 60, 120."""
        series = [
            PnlPoint(datetime(2024, 1, 1), "100"),
            PnlPoint(datetime(2024, 1, 2), "-40"),
            PnlPoint(datetime(2024, 1, 3), "60"),
        ]
        curve = build_equity_curve(series)
        assert [p.equity for p in curve] == ["100", "60", "120"]

    def test_sorted_by_timestamp(self):
        series = [
            PnlPoint(datetime(2024, 1, 3), "60"),
            PnlPoint(datetime(2024, 1, 1), "100"),
        ]
        curve = build_equity_curve(series)
        assert curve[0].timestamp == datetime(2024, 1, 1)
        assert [p.equity for p in curve] == ["100", "160"]

    def test_stable_for_equal_timestamps(self):
        t = datetime(2024, 1, 1)
        series = [PnlPoint(t, "1"), PnlPoint(t, "2")]
        assert [p.pnl for p in sort_pnl_series(series)] == ["1", "2"]

    def test_empty(self):
        assert build_equity_curve([]) == []

    def test_to_dict_uses_epoch_ms(self):
        point = EquityCurvePoint(datetime(2024, 1, 1, tzinfo=timezone.utc), "5")
        assert point.to_dict() == {"date": 1704067200000, "equity": "5"}


# =============================================================================
# Daily Returns Tests
# =============================================================================

class TestDailyReturns:
    """Tests for day_key and calculate_daily_returns."""

    def test_day_key_is_utc_date(self):
        assert day_key(datetime(2024, 3, 5, 23, 59)) == "2024-03-05"

    def test_sorted_with_running_total(self):
        daily = {
            "2024-01-03": (Decimal("60"), 1),
            "2024-01-01": (Decimal("100"), 2),
            "2024-01-02": (Decimal("-40"), 1),
        }
        points = calculate_daily_returns(daily)
        assert [p.date.day for p in points] == [1, 2, 3]
        assert [p.cumulative_pnl for p in points] == ["100", "60", "120"]
        assert points[0].trade_count == 2
        assert points[0].date.tzinfo == timezone.utc


# =============================================================================
# Correlation Tests
# =============================================================================

class TestCorrelation:
    """Tests for correlation_coefficient."""

    def test_perfect_positive(self):
        assert correlation_coefficient([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert correlation_coefficient([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)

    def test_too_few_samples(self):
        assert correlation_coefficient([1, 2], [1, 2]) is None

    def test_zero_variance(self):
        assert correlation_coefficient([1, 1, 1], [1, 2, 3]) is None

    def test_length_mismatch(self):
        with pytest.raises(ValueError, match="same length"):
            correlation_coefficient([1, 2, 3], [1, 2])
