"""Trade-quality ratios.

- Win rate:      wins / (wins + losses); break-evens are not decided trades
- Profit factor: sum(winning pnl) / |sum(losing pnl)|
- Payoff ratio:  |avg_win / avg_loss|
- Expectancy:    win_rate x avg_win - loss_rate x |avg_loss|
- Kelly:         win_rate - (1 - win_rate) / payoff_ratio

Each function returns None when its inputs cannot define the ratio, so no
inf or division error reaches a report.
"""

from __future__ import annotations

from decimal import Decimal

from journal_analytics.domain.decimal_math import DEFAULT_MATH, DecimalMath


def win_rate(wins: int, losses: int) -> float | None:
    decided = wins + losses
    return wins / decided if decided > 0 else None


def profit_factor(
    sum_wins: Decimal,
    sum_losses: Decimal,
    dmath: DecimalMath = DEFAULT_MATH,
) -> float | None:
    """Gross wins over gross losses; None without both wins and losses."""
    abs_losses = dmath.abs(sum_losses)
    if dmath.is_zero(abs_losses) or not dmath.greater_than(sum_wins, 0):
        return None
    return dmath.to_number(dmath.divide(sum_wins, abs_losses))


def payoff_ratio(avg_win: Decimal | None, avg_loss: Decimal | None) -> float | None:
    if avg_win is None or avg_loss is None or avg_loss == 0:
        return None
    return abs(float(avg_win) / float(avg_loss))


def expectancy(
    wins: int,
    losses: int,
    avg_win: Decimal | None,
    avg_loss: Decimal | None,
    dmath: DecimalMath = DEFAULT_MATH,
) -> Decimal | None:
    """Expected net P&L per decided trade."""
    decided = wins + losses
    if decided == 0 or avg_win is None or avg_loss is None:
        return None
    win_pct = dmath.divide(wins, decided)
    loss_pct = dmath.divide(losses, decided)
    return dmath.subtract(
        dmath.multiply(win_pct, avg_win),
        dmath.multiply(loss_pct, dmath.abs(avg_loss)),
    )


def kelly_criterion(rate: float | None, payoff: float | None) -> float | None:
    """Optimal fraction of capital to risk; needs a positive payoff ratio."""
    if rate is None or payoff is None or payoff <= 0:
        return None
    return rate - (1 - rate) / payoff
