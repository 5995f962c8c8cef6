"""Metric folds over closed-trade P&L and the equity curve."""

from journal_analytics.domain.metrics.drawdown import (
    DrawdownAnalysis,
    DrawdownPeriod,
    calculate_drawdown_analysis,
)
from journal_analytics.domain.metrics.performance import (
    expectancy,
    kelly_criterion,
    payoff_ratio,
    profit_factor,
    win_rate,
)
from journal_analytics.domain.metrics.risk import (
    RiskAdjustedReturns,
    VolatilityMetrics,
    calculate_risk_adjusted_returns,
    calculate_volatility_metrics,
)
from journal_analytics.domain.metrics.statistical import (
    DistributionStats,
    calculate_distribution_stats,
    median,
    sample_std,
)

__all__ = [
    # Drawdown
    "DrawdownAnalysis",
    "DrawdownPeriod",
    "calculate_drawdown_analysis",
    # Trade quality
    "expectancy",
    "kelly_criterion",
    "payoff_ratio",
    "profit_factor",
    "win_rate",
    # Risk
    "RiskAdjustedReturns",
    "VolatilityMetrics",
    "calculate_risk_adjusted_returns",
    "calculate_volatility_metrics",
    # Distribution
    "DistributionStats",
    "calculate_distribution_stats",
    "median",
    "sample_std",
]
