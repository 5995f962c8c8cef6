"""P&L series, equity curve and daily returns.

Provides pure functions over closed-trade P&L points:
- Equity curve: cumulative realized P&L in close-time order
- Daily returns: P&L grouped by UTC calendar day, with a running total
- Pearson correlation for pairing review scores with outcomes

All functions are stateless and depend only on their inputs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence

from journal_analytics.domain.decimal_math import DEFAULT_MATH, ZERO, DecimalMath
from journal_analytics.domain.models import to_epoch_ms, to_utc


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True, slots=True)
class PnlPoint:
    """Realized net P&L of one closed trade at its close time."""
    timestamp: datetime
    pnl: str
    is_fully_closed: bool = True

    def to_dict(self) -> dict:
        return {
            "date": to_epoch_ms(self.timestamp),
            "pnl": self.pnl,
            "is_fully_closed": self.is_fully_closed,
        }


@dataclass(frozen=True, slots=True)
class EquityCurvePoint:
    """Cumulative realized P&L after a trade closed."""
    timestamp: datetime
    equity: str

    def to_dict(self) -> dict:
        return {"date": to_epoch_ms(self.timestamp), "equity": self.equity}


@dataclass(frozen=True, slots=True)
class DailyReturnPoint:
    """Realized P&L of one calendar day.

    Attributes:
        date: Day (UTC midnight)
        pnl: Net P&L of trades closed that day
        trade_count: Number of trades closed that day
        cumulative_pnl: Running total up to and including this day
    """
    date: datetime
    pnl: str
    trade_count: int
    cumulative_pnl: str

    def to_dict(self) -> dict:
        return {
            "date": to_epoch_ms(self.date),
            "pnl": self.pnl,
            "trade_count": self.trade_count,
            "cumulative_pnl": self.cumulative_pnl,
        }


# =============================================================================
# Equity Curve
# =============================================================================

def sort_pnl_series(series: Sequence[PnlPoint]) -> list[PnlPoint]:
    """Chronological order (stable for equal timestamps)."""
    return sorted(series, key=lambda p: to_epoch_ms(p.timestamp))


def build_equity_curve(
    series: Sequence[PnlPoint],
    dmath: DecimalMath = DEFAULT_MATH,
) -> list[EquityCurvePoint]:
    """Cumulative sum of P&L points sorted by timestamp.

    Example:
        >>> pts = [PnlPoint(datetime(2024, 1, 2), "-40"),
        ...        PnlPoint(datetime(2024, 1, 1), "100")]
        >>> [p.equity for p in build_equity_curve(pts)]
        ['100', '60']
    """
    curve = []
    cumulative = ZERO
    for point in sort_pnl_series(series):
        cumulative = dmath.add(cumulative, point.pnl)
        curve.append(EquityCurvePoint(timestamp=point.timestamp, equity=dmath.to_string(cumulative)))
    return curve


# =============================================================================
# Daily Returns
# =============================================================================

def day_key(value: datetime) -> str:
    """ISO date (YYYY-MM-DD) of a timestamp in UTC."""
    return to_utc(value).date().isoformat()


def calculate_daily_returns(
    daily_pnl: dict[str, tuple[Decimal, int]],
    dmath: DecimalMath = DEFAULT_MATH,
) -> list[DailyReturnPoint]:
    """Turn a {day: (pnl, trade_count)} map into a sorted daily series.

    Args:
        daily_pnl: ISO date string -> (net pnl, trades closed that day);
                   need not be sorted

    Returns:
        One point per day, ascending, with running cumulative P&L
    """
    points = []
    cumulative = ZERO
    for key in sorted(daily_pnl):
        pnl, count = daily_pnl[key]
        cumulative = dmath.add(cumulative, pnl)
        points.append(DailyReturnPoint(
            date=datetime.fromisoformat(key).replace(tzinfo=timezone.utc),
            pnl=dmath.to_string(pnl),
            trade_count=count,
            cumulative_pnl=dmath.to_string(cumulative),
        ))
    return points


# =============================================================================
# Correlation
# =============================================================================

def correlation_coefficient(
    x: Sequence[float],
    y: Sequence[float],
    min_samples: int = 3,
) -> float | None:
    """Pearson correlation coefficient.

    Returns:
        r in [-1, 1], or None if fewer than min_samples points or
        either sequence has zero variance

    Raises:
        ValueError: If x and y have different lengths
    """
    if len(x) != len(y):
        raise ValueError(f"x and y must have same length: {len(x)} != {len(y)}")

    n = len(x)
    if n < min_samples:
        return None

    mean_x = sum(x) / n
    mean_y = sum(y) / n

    numerator = sum((xi - mean_x) * (yi - mean_y) for xi, yi in zip(x, y))
    var_x = sum((xi - mean_x) ** 2 for xi in x)
    var_y = sum((yi - mean_y) ** 2 for yi in y)

    denom = math.sqrt(var_x * var_y)
    if denom == 0:
        return None

    return numerator / denom
