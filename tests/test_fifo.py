"""Unit tests for domain/fifo.py.

Tests verify:
1. FIFO matching of exits against the oldest entries
2. Fee attribution to the closed portion
3. Quantity conservation and net = gross - fees
4. The trade-closure predicate and its tolerance
"""

from datetime import datetime
from decimal import Decimal

import pytest

from journal_analytics.domain.fifo import (
    calculate_open_position_size,
    compute_trade_pnl,
    determine_trade_direction,
    should_close_trade,
)
from journal_analytics.domain.models import Trade, Transaction


def tx(action, qty, price, day, fees="0", hour=0):
    return Transaction(action, Decimal(qty), Decimal(price), datetime(2024, 1, day, hour), fees=Decimal(fees))


# =============================================================================
# FIFO Matching Tests
# =============================================================================

class TestFifoMatching:
    """Tests for compute_trade_pnl matching."""

    def test_partial_close_long(self):
        """E1 10@100, E2 10@110, X 15@120 -> gross 250, open 5 @ 110."""
        trade = Trade(direction="long", status="open", id="t1")
        result = compute_trade_pnl(trade, [
            tx("buy", "10", "100", 1),
            tx("buy", "10", "110", 2),
            tx("sell", "15", "120", 3),
        ])
        assert result.realized_gross_pnl == "250"
        assert result.closed_quantity == "15"
        assert result.open_quantity == "5"
        assert result.average_open_price == "110"
        assert result.trade_id == "t1"

    def test_short_is_mirror_image(self):
        """Same fills with actions swapped on a short give -250."""
        trade = Trade(direction="short", status="open")
        result = compute_trade_pnl(trade, [
            tx("sell", "10", "100", 1),
            tx("sell", "10", "110", 2),
            tx("buy", "15", "120", 3),
        ])
        assert result.realized_gross_pnl == "-250"
        assert result.open_quantity == "5"
        assert result.average_open_price == "110"

    def test_input_order_does_not_matter(self):
        """Fills are sorted by time before matching."""
        trade = Trade(direction="long", status="open")
        fills = [
            tx("sell", "15", "120", 3),
            tx("buy", "10", "110", 2),
            tx("buy", "10", "100", 1),
        ]
        assert compute_trade_pnl(trade, fills).realized_gross_pnl == "250"

    def test_equal_timestamps_keep_list_order(self):
        """Entries at the same instant are consumed in list order."""
        trade = Trade(direction="long", status="open")
        result = compute_trade_pnl(trade, [
            tx("buy", "5", "100", 1),
            tx("buy", "5", "200", 1),
            tx("sell", "5", "150", 2),
        ])
        assert result.realized_gross_pnl == "250"
        assert result.average_open_price == "200"

    def test_no_transactions(self):
        """Zero transactions give zero sums and null optionals."""
        result = compute_trade_pnl(Trade(direction="long", status="closed"), [])
        assert result.realized_gross_pnl == "0"
        assert result.realized_net_pnl == "0"
        assert result.open_quantity == "0"
        assert result.average_open_price is None
        assert result.unrealized_gross_pnl is None
        assert result.is_fully_closed

    def test_inputs_not_mutated(self):
        fills = [tx("buy", "10", "100", 1), tx("sell", "4", "110", 2)]
        snapshot = list(fills)
        compute_trade_pnl(Trade(direction="long", status="open"), fills)
        assert fills == snapshot
        assert fills[0].quantity == Decimal("10")


# =============================================================================
# Fees & Invariants Tests
# =============================================================================

class TestFeesAndInvariants:
    """Tests for fee attribution and conservation laws."""

    def test_fee_attribution(self):
        """Exit fee in full plus the matched share of the entry fee."""
        trade = Trade(direction="long", status="open")
        result = compute_trade_pnl(trade, [
            tx("buy", "10", "100", 1, fees="10"),
            tx("sell", "4", "110", 2, fees="2"),
        ])
        # 2 + 10 x 4/10
        assert result.fees_attributable_to_closed_portion == "6"
        assert result.realized_gross_pnl == "40"
        assert result.realized_net_pnl == "34"

    def test_net_equals_gross_minus_fees(self):
        trade = Trade(direction="long", status="open")
        result = compute_trade_pnl(trade, [
            tx("buy", "3", "10.1", 1, fees="0.3"),
            tx("buy", "7", "10.7", 2, fees="0.7"),
            tx("sell", "6", "11.05", 3, fees="0.25"),
        ])
        gross = Decimal(result.realized_gross_pnl)
        fees = Decimal(result.fees_attributable_to_closed_portion)
        assert gross - fees == Decimal(result.realized_net_pnl)

    def test_quantity_conservation(self):
        """closed + open == sum of entry quantities."""
        trade = Trade(direction="long", status="open")
        result = compute_trade_pnl(trade, [
            tx("buy", "2.5", "10", 1),
            tx("buy", "4", "11", 2),
            tx("sell", "3", "12", 3),
            tx("sell", "1.25", "12", 4),
        ])
        total = Decimal(result.closed_quantity) + Decimal(result.open_quantity)
        assert total == Decimal("6.5")

    def test_exit_beyond_entries_is_capped(self):
        """Unmatched exit quantity realizes nothing."""
        trade = Trade(direction="long", status="open")
        result = compute_trade_pnl(trade, [
            tx("buy", "5", "100", 1),
            tx("sell", "8", "110", 2),
        ])
        assert result.closed_quantity == "5"
        assert result.realized_gross_pnl == "50"
        assert result.open_quantity == "0"


# =============================================================================
# Derived Fields Tests
# =============================================================================

class TestDerivedFields:
    """Tests for unrealized P&L, R-multiple, outcome and duration."""

    def test_unrealized_with_market_price(self):
        trade = Trade(direction="long", status="open", current_market_price="130")
        result = compute_trade_pnl(trade, [
            tx("buy", "10", "100", 1),
            tx("buy", "10", "110", 2),
            tx("sell", "15", "120", 3),
        ])
        assert result.unrealized_gross_pnl == "100"

    def test_unrealized_short(self):
        trade = Trade(direction="short", status="open", current_market_price="90")
        result = compute_trade_pnl(trade, [tx("sell", "10", "100", 1)])
        assert result.unrealized_gross_pnl == "100"

    def test_no_market_price_no_unrealized(self):
        result = compute_trade_pnl(
            Trade(direction="long", status="open"), [tx("buy", "1", "1", 1)]
        )
        assert result.unrealized_gross_pnl is None

    def test_r_multiple_and_outcome(self):
        trade = Trade(
            direction="long",
            status="closed",
            fees_total="10",
            initial_risk="50",
            open_datetime=datetime(2024, 1, 1),
            close_datetime=datetime(2024, 1, 2),
        )
        result = compute_trade_pnl(trade, [
            tx("buy", "10", "100", 1),
            tx("sell", "10", "111", 2),
        ])
        # (110 - 10) / 50
        assert result.r_multiple_actual == "2"
        assert result.outcome == "win"
        assert result.duration_ms == 86_400_000

    def test_open_trade_has_no_outcome(self):
        result = compute_trade_pnl(
            Trade(direction="long", status="open", initial_risk="50"),
            [tx("buy", "1", "1", 1)],
        )
        assert result.outcome is None
        assert result.r_multiple_actual is None
        assert result.duration_ms is None

    def test_zero_initial_risk_gives_no_r_multiple(self):
        trade = Trade(direction="long", status="closed", initial_risk="0")
        result = compute_trade_pnl(trade, [tx("buy", "1", "1", 1), tx("sell", "1", "2", 2)])
        assert result.r_multiple_actual is None

    def test_break_even_within_tolerance(self):
        trade = Trade(direction="long", status="closed", fees_total="10")
        result = compute_trade_pnl(trade, [
            tx("buy", "1", "100", 1),
            tx("sell", "1", "110.0000001", 2),
        ])
        assert result.outcome == "break_even"

    def test_loss(self):
        trade = Trade(direction="short", status="closed")
        result = compute_trade_pnl(trade, [tx("sell", "1", "100", 1), tx("buy", "1", "105", 2)])
        assert result.outcome == "loss"
        assert result.is_loss


# =============================================================================
# Closure Predicate Tests
# =============================================================================

class TestClosurePredicate:
    """Tests for should_close_trade and helpers."""

    def test_direction_from_first_action(self):
        assert determine_trade_direction("buy") == "long"
        assert determine_trade_direction("sell") == "short"

    def test_open_position_size(self):
        fills = [tx("buy", "10", "1", 1), tx("sell", "4", "1", 2)]
        assert calculate_open_position_size(fills, "long") == Decimal("6")
        assert calculate_open_position_size(fills, "short") == Decimal("-6")

    def test_flat_position_closes(self):
        fills = [tx("buy", "10", "1", 1), tx("sell", "10", "1", 2)]
        assert should_close_trade(fills, "long")

    def test_residual_within_tolerance_closes(self):
        fills = [tx("buy", "10.00000001", "1", 1), tx("sell", "10", "1", 2)]
        assert should_close_trade(fills, "long")

    def test_residual_beyond_tolerance_stays_open(self):
        fills = [tx("buy", "10.0000001", "1", 1), tx("sell", "10", "1", 2)]
        assert not should_close_trade(fills, "long")

    def test_oversold_reads_as_closed_only_within_tolerance(self):
        fills = [tx("buy", "10", "1", 1), tx("sell", "10.00000001", "1", 2)]
        assert should_close_trade(fills, "long")

    def test_custom_tolerance(self):
        fills = [tx("buy", "10.001", "1", 1), tx("sell", "10", "1", 2)]
        assert should_close_trade(fills, "long", tolerance=Decimal("0.01"))

    @pytest.mark.parametrize("direction", ["long", "short"])
    def test_no_fills_is_flat(self, direction):
        assert should_close_trade([], direction)
