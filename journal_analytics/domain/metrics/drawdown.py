"""Drawdown analysis over the equity curve.

Walks the curve once as a two-state machine:

    at_peak --(equity dips below peak)--> in_drawdown
    in_drawdown --(equity lower than trough)--> in_drawdown (trough updated)
    in_drawdown --(equity above peak)--> at_peak (period recovered)

The series may end in_drawdown; that period is reported unrecovered.

Percentages are computed as (equity - peak) / peak, which needs peak > 0.
While the running peak is zero or negative no drawdown is measured.
Reported percentages are absolute values x 100.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from journal_analytics.domain.decimal_math import DEFAULT_MATH, ZERO, DecimalMath
from journal_analytics.domain.models import to_epoch_ms
from journal_analytics.domain.returns import EquityCurvePoint

logger = logging.getLogger(__name__)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True, slots=True)
class DrawdownPeriod:
    """A decline from a peak, with its trough and recovery.

    Attributes:
        start_date: First point below the peak
        end_date: Point that set a new high, None if not recovered
        peak_equity: Equity of the peak the decline started from
        trough_equity: Lowest equity seen during the period
        drawdown_percent: Depth at the trough, as a positive percentage
        drawdown_dollar: Depth at the trough, peak - trough
        duration_ms: start_date to end_date (or to the last point if open)
        recovered: Whether a new high ended the period
    """
    start_date: datetime
    end_date: datetime | None
    peak_equity: str
    trough_equity: str
    drawdown_percent: str
    drawdown_dollar: str
    duration_ms: int
    recovered: bool

    def to_dict(self) -> dict:
        return {
            "start_date": to_epoch_ms(self.start_date),
            "end_date": to_epoch_ms(self.end_date) if self.end_date else None,
            "peak_equity": self.peak_equity,
            "trough_equity": self.trough_equity,
            "drawdown_percent": self.drawdown_percent,
            "drawdown_dollar": self.drawdown_dollar,
            "duration_ms": self.duration_ms,
            "recovered": self.recovered,
        }


@dataclass(frozen=True, slots=True)
class DrawdownAnalysis:
    """Drawdown structure of an equity curve.

    Attributes:
        max_drawdown_percentage: Deepest pointwise drawdown (positive %)
        max_drawdown_dollar: Largest peak - equity seen
        average_drawdown: Mean |drawdown| x 100 over in-drawdown points
        max_drawdown_duration: Longest accumulated time under water (ms)
        current_drawdown: Distance of the last point below the peak (%)
        ulcer_index: sqrt(mean(drawdown^2)) x 100 over all points
        drawdown_periods: Periods in chronological order
    """
    max_drawdown_percentage: str | None = None
    max_drawdown_dollar: str | None = None
    average_drawdown: str | None = None
    max_drawdown_duration: int | None = None
    current_drawdown: str | None = None
    ulcer_index: float | None = None
    drawdown_periods: tuple[DrawdownPeriod, ...] = ()


@dataclass
class _OpenPeriod:
    start: datetime
    start_ms: int
    peak: Decimal
    trough: Decimal
    pct: Decimal
    dollar: Decimal

    def freeze(
        self,
        dmath: DecimalMath,
        end: datetime | None,
        end_ms: int,
        recovered: bool,
    ) -> DrawdownPeriod:
        return DrawdownPeriod(
            start_date=self.start,
            end_date=end,
            peak_equity=dmath.to_string(self.peak),
            trough_equity=dmath.to_string(self.trough),
            drawdown_percent=_as_percent(self.pct, dmath),
            drawdown_dollar=dmath.to_string(self.dollar),
            duration_ms=end_ms - self.start_ms,
            recovered=recovered,
        )


def _as_percent(fraction: Decimal, dmath: DecimalMath) -> str:
    return dmath.to_string(dmath.multiply(dmath.abs(fraction), 100))


# =============================================================================
# Analysis
# =============================================================================

def calculate_drawdown_analysis(
    equity_curve: Sequence[EquityCurvePoint],
    dmath: DecimalMath = DEFAULT_MATH,
) -> DrawdownAnalysis:
    """Analyze drawdowns of a chronologically ordered equity curve.

    Args:
        equity_curve: Cumulative P&L points, oldest first
        dmath: Decimal arithmetic to use

    Returns:
        DrawdownAnalysis; all fields None/empty for an empty curve

    Example:
        >>> curve = [EquityCurvePoint(datetime(2024, 1, 1), "100"),
        ...          EquityCurvePoint(datetime(2024, 1, 2), "60"),
        ...          EquityCurvePoint(datetime(2024, 1, 3), "120")]
        >>> calculate_drawdown_analysis(curve).max_drawdown_percentage
        '40'
    """
    if not equity_curve:
        return DrawdownAnalysis()

    peak: Decimal | None = None
    max_pct = ZERO
    max_dollar = ZERO
    sum_pct_squared = ZERO
    sum_abs_pct = ZERO
    drawdown_points = 0

    periods: list[DrawdownPeriod] = []
    open_period: _OpenPeriod | None = None
    underwater_ms = 0
    max_underwater_ms = 0
    prev_ms: int | None = None

    for point in equity_curve:
        equity = dmath.to_decimal(point.equity)
        point_ms = to_epoch_ms(point.timestamp)

        if peak is None or equity > peak:
            if open_period is not None:
                periods.append(open_period.freeze(dmath, point.timestamp, point_ms, True))
                open_period = None
            peak = equity
            underwater_ms = 0

        elif peak > 0 and (open_period is not None or equity < peak):
            pct = dmath.divide(dmath.subtract(equity, peak), peak)
            dollar = dmath.subtract(peak, equity)

            if pct < max_pct:
                max_pct = pct
            if dollar > max_dollar:
                max_dollar = dollar

            sum_pct_squared = dmath.add(sum_pct_squared, dmath.multiply(pct, pct))
            sum_abs_pct = dmath.add(sum_abs_pct, dmath.abs(pct))
            drawdown_points += 1

            if open_period is None:
                open_period = _OpenPeriod(
                    start=point.timestamp,
                    start_ms=point_ms,
                    peak=peak,
                    trough=equity,
                    pct=pct,
                    dollar=dollar,
                )
            elif equity < open_period.trough:
                open_period.trough = equity
                open_period.pct = pct
                open_period.dollar = dollar

            if prev_ms is not None:
                underwater_ms += point_ms - prev_ms
                max_underwater_ms = max(max_underwater_ms, underwater_ms)

        prev_ms = point_ms

    last = equity_curve[-1]
    if open_period is not None:
        periods.append(open_period.freeze(dmath, None, to_epoch_ms(last.timestamp), False))

    ulcer_index = math.sqrt(
        float(dmath.divide(sum_pct_squared, len(equity_curve)))
    ) * 100

    average_drawdown = None
    if drawdown_points > 0:
        average_drawdown = dmath.to_string(
            dmath.multiply(dmath.divide(sum_abs_pct, drawdown_points), 100)
        )

    last_equity = dmath.to_decimal(last.equity)
    current_drawdown = "0"
    if peak is not None and peak > 0 and last_equity < peak:
        current_drawdown = _as_percent(
            dmath.divide(dmath.subtract(last_equity, peak), peak), dmath
        )

    logger.debug(
        "Drawdown analysis: %d points, %d periods, max %s%%",
        len(equity_curve), len(periods), _as_percent(max_pct, dmath),
    )

    return DrawdownAnalysis(
        max_drawdown_percentage=_as_percent(max_pct, dmath),
        max_drawdown_dollar=dmath.to_string(max_dollar),
        average_drawdown=average_drawdown,
        max_drawdown_duration=max_underwater_ms if max_underwater_ms > 0 else None,
        current_drawdown=current_drawdown,
        ulcer_index=ulcer_index,
        drawdown_periods=tuple(periods),
    )
