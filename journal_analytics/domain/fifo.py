"""FIFO P&L Engine: Match exits against entries in time order.

FIFO Logic:
- Entries are buys for a long trade and sells for a short trade
- Exits are the complement
- Each exit consumes the oldest entry quantity first
- Matched quantity realizes (exit - entry) x qty x sign, sign = +1 long, -1 short
- Exit fees go fully to the closed portion; entry fees pro rata to matched qty
- Unmatched entry quantity is the open position

Closure:
- should_close_trade() decides whether net open size is effectively zero,
  using a tolerance (1e-8) tighter than the general zero tolerance (1e-6)

All functions are pure: input records are never mutated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from journal_analytics.domain.decimal_math import DEFAULT_MATH, ZERO, DecimalMath
from journal_analytics.domain.models import (
    PnlResult,
    Trade,
    TradeDirection,
    TradeOutcome,
    Transaction,
    TransactionAction,
    to_epoch_ms,
)

logger = logging.getLogger(__name__)

# Residual open size at or below this counts as flat
CLOSE_TOLERANCE = Decimal("0.00000001")


# =============================================================================
# Working Lots
# =============================================================================

@dataclass
class _EntryLot:
    """An entry fill with the quantity still unmatched."""
    price: Decimal
    quantity: Decimal
    fees: Decimal
    remaining: Decimal


def _opening_action(direction: TradeDirection) -> TransactionAction:
    return "buy" if direction == "long" else "sell"


def _split_fills(
    trade: Trade,
    transactions: Sequence[Transaction],
) -> tuple[list[Transaction], list[Transaction]]:
    """Partition into (entries, exits), each stable-sorted by time."""
    opening = _opening_action(trade.direction)
    ordered = sorted(transactions, key=lambda tx: to_epoch_ms(tx.datetime))
    entries = [tx for tx in ordered if tx.action == opening]
    exits = [tx for tx in ordered if tx.action != opening]
    return entries, exits


# =============================================================================
# P&L Calculation
# =============================================================================

def compute_trade_pnl(
    trade: Trade,
    transactions: Sequence[Transaction],
    dmath: DecimalMath = DEFAULT_MATH,
) -> PnlResult:
    """Calculate realized and unrealized P&L for one trade using FIFO.

    Args:
        trade: The position; its direction selects entries vs exits
        transactions: Fills of this trade, in any order
        dmath: Decimal arithmetic to use

    Returns:
        PnlResult with decimal fields as base-10 strings

    Example:
        >>> trade = Trade(direction="long", status="open")
        >>> txs = [
        ...     Transaction("buy", Decimal("10"), Decimal("100"), datetime(2024, 1, 1)),
        ...     Transaction("buy", Decimal("10"), Decimal("110"), datetime(2024, 1, 2)),
        ...     Transaction("sell", Decimal("15"), Decimal("120"), datetime(2024, 1, 3)),
        ... ]
        >>> result = compute_trade_pnl(trade, txs)
        >>> result.realized_gross_pnl, result.open_quantity, result.average_open_price
        ('250', '5', '110')
    """
    sign = trade.direction_sign
    entries, exits = _split_fills(trade, transactions)

    lots = [
        _EntryLot(
            price=tx.price,
            quantity=tx.quantity,
            fees=tx.fees,
            remaining=dmath.abs(tx.quantity),
        )
        for tx in entries
    ]

    realized_gross = ZERO
    fees_closed = ZERO
    closed_qty = ZERO

    for exit_tx in exits:
        to_match = dmath.abs(exit_tx.quantity)
        fees_closed = dmath.add(fees_closed, exit_tx.fees)

        for lot in lots:
            if lot.remaining.is_zero() or to_match.is_zero():
                continue

            matched = dmath.min(to_match, lot.remaining)
            pnl = dmath.multiply(dmath.subtract(exit_tx.price, lot.price), matched, sign)
            realized_gross = dmath.add(realized_gross, pnl)

            if not lot.quantity.is_zero():
                share = dmath.divide(matched, lot.quantity)
                fees_closed = dmath.add(fees_closed, dmath.multiply(lot.fees, share))

            lot.remaining = dmath.subtract(lot.remaining, matched)
            to_match = dmath.subtract(to_match, matched)
            closed_qty = dmath.add(closed_qty, matched)

            if to_match.is_zero():
                break

        if not to_match.is_zero():
            logger.debug(
                "Trade %s: exit of %s left %s unmatched",
                trade.id, exit_tx.quantity, to_match,
            )

    # Open position from unmatched entry quantity
    open_value = ZERO
    open_qty = ZERO
    for lot in lots:
        if lot.remaining > 0:
            open_value = dmath.add(open_value, dmath.multiply(lot.price, lot.remaining))
            open_qty = dmath.add(open_qty, lot.remaining)

    average_open: Decimal | None = None
    if open_qty > 0:
        average_open = dmath.divide(open_value, open_qty)

    realized_net = dmath.subtract(realized_gross, fees_closed)

    unrealized: str | None = None
    if average_open is not None and trade.current_market_price is not None:
        unrealized = dmath.to_string(
            dmath.multiply(
                dmath.subtract(trade.current_market_price, average_open),
                open_qty,
                sign,
            )
        )

    return PnlResult(
        trade_id=trade.id,
        realized_gross_pnl=dmath.to_string(realized_gross),
        realized_net_pnl=dmath.to_string(realized_net),
        fees_attributable_to_closed_portion=dmath.to_string(fees_closed),
        is_fully_closed=trade.is_closed,
        closed_quantity=dmath.to_string(closed_qty),
        open_quantity=dmath.to_string(open_qty),
        average_open_price=dmath.to_string(average_open) if average_open is not None else None,
        unrealized_gross_pnl=unrealized,
        r_multiple_actual=_r_multiple(trade, realized_gross, dmath),
        duration_ms=_duration_ms(trade),
        outcome=_outcome(trade, realized_gross, dmath),
    )


def _r_multiple(trade: Trade, realized_gross: Decimal, dmath: DecimalMath) -> str | None:
    """(gross - fees_total) / initial_risk for closed trades with a risk set."""
    if not trade.is_closed or trade.initial_risk is None:
        return None
    if dmath.is_zero(trade.initial_risk):
        return None
    final_net = dmath.subtract(realized_gross, trade.fees_total)
    return dmath.to_string(dmath.divide(final_net, trade.initial_risk))


def _duration_ms(trade: Trade) -> int | None:
    if not trade.is_closed or trade.open_datetime is None or trade.close_datetime is None:
        return None
    return to_epoch_ms(trade.close_datetime) - to_epoch_ms(trade.open_datetime)


def _outcome(trade: Trade, realized_gross: Decimal, dmath: DecimalMath) -> TradeOutcome | None:
    if not trade.is_closed:
        return None
    final_net = dmath.subtract(realized_gross, trade.fees_total)
    if dmath.is_positive(final_net):
        return "win"
    if dmath.is_negative(final_net):
        return "loss"
    return "break_even"


# =============================================================================
# Closure Predicate
# =============================================================================

def determine_trade_direction(first_action: TransactionAction) -> TradeDirection:
    """A trade opened by a buy is long, by a sell is short."""
    return "long" if first_action == "buy" else "short"


def calculate_open_position_size(
    transactions: Sequence[Transaction],
    direction: TradeDirection,
    dmath: DecimalMath = DEFAULT_MATH,
) -> Decimal:
    """Signed net open size: +qty for opening fills, -qty for closing fills."""
    opening = _opening_action(direction)
    size = ZERO
    for tx in transactions:
        if tx.action == opening:
            size = dmath.add(size, tx.quantity)
        else:
            size = dmath.subtract(size, tx.quantity)
    return size


def should_close_trade(
    transactions: Sequence[Transaction],
    direction: TradeDirection,
    dmath: DecimalMath = DEFAULT_MATH,
    tolerance: Decimal = CLOSE_TOLERANCE,
) -> bool:
    """Check whether the position is flat.

    Residuals of at most `tolerance` (either sign, so oversold positions
    also read as closed) are treated as zero.
    """
    size = calculate_open_position_size(transactions, direction, dmath)
    return dmath.abs(size) <= tolerance
