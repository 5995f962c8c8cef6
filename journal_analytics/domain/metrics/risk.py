"""Risk-adjusted returns and volatility.

Ratios are computed on day-granularity P&L (daily returns) rather than per
trade, so several trades closed on one day count as one observation:

- Sharpe:  (mean_daily - rf_daily) / std(daily) x sqrt(252)
- Sortino: (mean_daily - rf_daily) / downside_dev x sqrt(252), where the
           downside deviation only uses days below rf_daily
- Calmar:  annualized / max_drawdown_pct, annualized = total / n_days x 252
- Recovery factor and return on max drawdown relate total P&L to the
  max drawdown percentage

Volatility of individual trades (population std and downside deviation) is
reported alongside. These are statistical ratios and use float precision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

import numpy as np

from journal_analytics.domain.returns import DailyReturnPoint

logger = logging.getLogger(__name__)

RISK_FREE_RATE = 0.05
TRADING_DAYS_PER_YEAR = 252


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True, slots=True)
class RiskAdjustedReturns:
    """Annualized risk-adjusted ratios; None where undefined."""
    sharpe_ratio: float | None = None
    sortino_ratio: float | None = None
    calmar_ratio: float | None = None
    recovery_factor: float | None = None
    return_on_max_drawdown: float | None = None


@dataclass(frozen=True, slots=True)
class VolatilityMetrics:
    """Dispersion of closed-trade P&L.

    Attributes:
        return_volatility: Population std of trade P&L (>= 2 trades)
        downside_deviation: Root mean square of losing trade P&L
    """
    return_volatility: float | None = None
    downside_deviation: float | None = None


# =============================================================================
# Volatility
# =============================================================================

def calculate_volatility_metrics(trade_pnls: Sequence[Decimal]) -> VolatilityMetrics:
    """Volatility of closed-trade P&L values."""
    if len(trade_pnls) < 2:
        return VolatilityMetrics()

    values = np.array([float(p) for p in trade_pnls], dtype=float)
    return_volatility = float(np.std(values))

    negatives = values[values < 0]
    downside_deviation = None
    if negatives.size > 0:
        downside_deviation = float(np.sqrt(np.mean(negatives ** 2)))

    return VolatilityMetrics(
        return_volatility=return_volatility,
        downside_deviation=downside_deviation,
    )


# =============================================================================
# Risk-Adjusted Returns
# =============================================================================

def calculate_risk_adjusted_returns(
    total_pnl: Decimal,
    daily_returns: Sequence[DailyReturnPoint],
    max_drawdown_pct: str | None,
    closed_trades: int,
    risk_free_rate: float = RISK_FREE_RATE,
    trading_days_per_year: int = TRADING_DAYS_PER_YEAR,
) -> RiskAdjustedReturns:
    """Calculate Sharpe, Sortino, Calmar, recovery factor and ROMAD.

    Args:
        total_pnl: Total realized net P&L
        daily_returns: Day-granularity P&L, ascending
        max_drawdown_pct: Max drawdown as a positive percentage string
        closed_trades: Number of fully closed trades
        risk_free_rate: Annual risk-free rate
        trading_days_per_year: Annualization factor

    Returns:
        RiskAdjustedReturns; every ratio is None unless there are at least
        two daily points and one closed trade
    """
    if len(daily_returns) < 2 or closed_trades == 0:
        logger.debug(
            "Risk ratios skipped: %d daily points, %d closed trades",
            len(daily_returns), closed_trades,
        )
        return RiskAdjustedReturns()

    daily = np.array([float(d.pnl) for d in daily_returns], dtype=float)
    mean_daily = float(np.mean(daily))
    rf_daily = risk_free_rate / trading_days_per_year
    excess = mean_daily - rf_daily
    annualize = float(np.sqrt(trading_days_per_year))

    sharpe = None
    std_daily = float(np.std(daily))
    if std_daily > 0:
        sharpe = excess / std_daily * annualize

    sortino = None
    below = daily[daily < rf_daily]
    if below.size > 0:
        downside = float(np.sqrt(np.mean((below - rf_daily) ** 2)))
        if downside > 0:
            sortino = excess / downside * annualize

    calmar = None
    recovery = None
    romad = None
    max_dd = float(max_drawdown_pct) if max_drawdown_pct else 0.0
    if max_dd > 0:
        total = float(total_pnl)
        annualized_return = total / len(daily) * trading_days_per_year
        calmar = annualized_return / max_dd
        # Profit over the drawdown expressed as a share of that profit
        recovery = total / (max_dd / 100 * total) if total > 0 else None
        romad = total / max_dd

    return RiskAdjustedReturns(
        sharpe_ratio=sharpe,
        sortino_ratio=sortino,
        calmar_ratio=calmar,
        recovery_factor=recovery,
        return_on_max_drawdown=romad,
    )
