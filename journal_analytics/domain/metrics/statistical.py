"""Distribution statistics of closed-trade P&L.

- Median: middle value, or mean of the two middle values for an even count
- Standard deviation: sample (n - 1) deviation, in exact decimal
- Skewness: mean of cubed z-scores (>= 3 points)
- Excess kurtosis: mean of fourth-power z-scores minus 3 (>= 4 points)

Skewness and kurtosis use population moments, the same convention as
scipy.stats.skew / scipy.stats.kurtosis with their defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

import numpy as np

from journal_analytics.domain.decimal_math import DEFAULT_MATH, ZERO, DecimalMath


@dataclass(frozen=True, slots=True)
class DistributionStats:
    """Shape of the P&L distribution.

    Attributes:
        median_pnl: Median net P&L (string, exact)
        standard_deviation_pnl: Sample standard deviation (string)
        skewness: Asymmetry; None below 3 points or with zero spread
        kurtosis: Excess tail weight; None below 4 points or with zero spread
    """
    median_pnl: str | None = None
    standard_deviation_pnl: str | None = None
    skewness: float | None = None
    kurtosis: float | None = None


def median(values: Sequence[Decimal], dmath: DecimalMath = DEFAULT_MATH) -> Decimal | None:
    """Median of decimal values."""
    if not values:
        return None
    ordered = sorted(values)
    n = len(ordered)
    mid = n // 2
    if n % 2 == 0:
        return dmath.divide(dmath.add(ordered[mid - 1], ordered[mid]), 2)
    return ordered[mid]


def sample_std(values: Sequence[Decimal], dmath: DecimalMath = DEFAULT_MATH) -> Decimal | None:
    """Sample standard deviation; None below two values."""
    n = len(values)
    if n < 2:
        return None
    mean = dmath.divide(dmath.add(*values), n)
    squared = ZERO
    for value in values:
        diff = dmath.subtract(value, mean)
        squared = dmath.add(squared, dmath.multiply(diff, diff))
    return dmath.sqrt(dmath.divide(squared, n - 1))


def standardized_moment(values: np.ndarray, order: int) -> float | None:
    """Mean of z-scores raised to `order`, using the population std."""
    std = float(np.std(values))
    if std == 0:
        return None
    z = (values - np.mean(values)) / std
    return float(np.mean(z ** order))


def calculate_distribution_stats(
    trade_pnls: Sequence[Decimal],
    dmath: DecimalMath = DEFAULT_MATH,
) -> DistributionStats:
    """Calculate median, spread and shape of closed-trade P&L.

    Example:
        >>> stats = calculate_distribution_stats(
        ...     [Decimal("100"), Decimal("-40"), Decimal("60")])
        >>> stats.median_pnl
        '60'
    """
    if not trade_pnls:
        return DistributionStats()

    mid = median(trade_pnls, dmath)
    std = sample_std(trade_pnls, dmath)

    values = np.array([float(p) for p in trade_pnls], dtype=float)
    n = values.size

    skewness = standardized_moment(values, 3) if n >= 3 else None
    kurtosis = None
    if n >= 4:
        fourth = standardized_moment(values, 4)
        kurtosis = fourth - 3 if fourth is not None else None

    return DistributionStats(
        median_pnl=dmath.to_string(mid) if mid is not None else None,
        standard_deviation_pnl=dmath.to_string(std) if std is not None else None,
        skewness=skewness,
        kurtosis=kurtosis,
    )
