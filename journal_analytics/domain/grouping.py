"""Grouped performance buckets.

Trades are bucketed by time of opening (month, weekday, hour, ISO week) and
by categorical dimensions (asset class, exchange, direction, ...). Each
bucket tracks net P&L, trade count and outcome counts; buckets keep
insertion order until the final sort.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from journal_analytics.domain.decimal_math import DEFAULT_MATH, ZERO, DecimalMath
from journal_analytics.domain.metrics.performance import win_rate
from journal_analytics.domain.models import TradeOutcome


@dataclass(frozen=True, slots=True)
class GroupedPerformance:
    """Performance of one bucket.

    Attributes:
        name: Bucket key ("March 2024", "Monday", "09:00", "stock", ...)
        total_net_pnl: Sum of realized net P&L (string)
        trade_count: Trades in the bucket, open or closed
        wins: Winning closed trades
        losses: Losing closed trades
        break_evens: Break-even closed trades
        win_rate: wins / (wins + losses), None if no decided trades
    """
    name: str
    total_net_pnl: str
    trade_count: int
    wins: int
    losses: int
    break_evens: int
    win_rate: float | None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "total_net_pnl": self.total_net_pnl,
            "trade_count": self.trade_count,
            "wins": self.wins,
            "losses": self.losses,
            "break_evens": self.break_evens,
            "win_rate": self.win_rate,
        }


@dataclass
class _Bucket:
    total: Decimal = ZERO
    trade_count: int = 0
    wins: int = 0
    losses: int = 0
    break_evens: int = 0


class GroupAccumulator:
    """Insertion-ordered buckets keyed by name.

    Example:
        >>> acc = GroupAccumulator()
        >>> acc.add("stock", Decimal("100"), "win")
        >>> acc.add("stock", Decimal("-40"), "loss")
        >>> acc.results()[0].total_net_pnl
        '60'
    """

    def __init__(self, dmath: DecimalMath = DEFAULT_MATH):
        self._dmath = dmath
        self._buckets: dict[str, _Bucket] = {}

    def add(self, key: str, pnl: Decimal, outcome: TradeOutcome | None) -> None:
        bucket = self._buckets.setdefault(key, _Bucket())
        bucket.total = self._dmath.add(bucket.total, pnl)
        bucket.trade_count += 1
        if outcome == "win":
            bucket.wins += 1
        elif outcome == "loss":
            bucket.losses += 1
        elif outcome == "break_even":
            bucket.break_evens += 1

    def __len__(self) -> int:
        return len(self._buckets)

    def results(self, sort_by_pnl: bool = False) -> list[GroupedPerformance]:
        """Freeze buckets, optionally sorted by net P&L descending."""
        items = list(self._buckets.items())
        if sort_by_pnl:
            items.sort(key=lambda kv: kv[1].total, reverse=True)
        return [
            GroupedPerformance(
                name=key,
                total_net_pnl=self._dmath.to_string(b.total),
                trade_count=b.trade_count,
                wins=b.wins,
                losses=b.losses,
                break_evens=b.break_evens,
                win_rate=win_rate(b.wins, b.losses),
            )
            for key, b in items
        ]


# =============================================================================
# Time Keys
# =============================================================================

def month_key(value: datetime) -> str:
    """'March 2024'"""
    return f"{calendar.month_name[value.month]} {value.year}"


def weekday_key(value: datetime) -> str:
    """'Monday'"""
    return calendar.day_name[value.weekday()]


def hour_key(value: datetime) -> str:
    """'09:00'"""
    return f"{value.hour:02d}:00"


def week_key(value: datetime) -> str:
    """'Week 5 2024': ISO week number with the calendar year."""
    return f"Week {value.isocalendar()[1]} {value.year}"


# =============================================================================
# Best / Worst
# =============================================================================

def find_best_period(periods: Sequence[GroupedPerformance]) -> GroupedPerformance | None:
    """Highest net P&L; the first one wins ties."""
    best = None
    for period in periods:
        if best is None or Decimal(period.total_net_pnl) > Decimal(best.total_net_pnl):
            best = period
    return best


def find_worst_period(periods: Sequence[GroupedPerformance]) -> GroupedPerformance | None:
    """Lowest net P&L; the first one wins ties."""
    worst = None
    for period in periods:
        if worst is None or Decimal(period.total_net_pnl) < Decimal(worst.total_net_pnl):
            worst = period
    return worst
