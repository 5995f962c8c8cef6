"""Journal Analytics: Exact-decimal P&L and portfolio analytics for a trade journal.

Architecture:
- domain/: Core business logic (decimal math, FIFO engine, metrics)
- infrastructure/: Configuration and snapshot loading
- application/: Analytics aggregation and report export
- interfaces/: CLI
"""

__version__ = "0.1.0"

from journal_analytics.domain import (
    ContractViolationError,
    DecimalConfig,
    DecimalMath,
    PnlResult,
    Trade,
    TradeRecord,
    Transaction,
    compute_trade_pnl,
    should_close_trade,
)
from journal_analytics.application import (
    AnalyticsData,
    AnalyticsFilters,
    compute_analytics,
)
from journal_analytics.infrastructure import (
    AnalysisConfig,
    DataPaths,
    DEFAULT_CONFIG,
    DEFAULT_PATHS,
    RepositoryError,
)

__all__ = [
    # Version
    "__version__",
    # Domain
    "ContractViolationError",
    "DecimalConfig",
    "DecimalMath",
    "PnlResult",
    "Trade",
    "TradeRecord",
    "Transaction",
    "compute_trade_pnl",
    "should_close_trade",
    # Application
    "AnalyticsData",
    "AnalyticsFilters",
    "compute_analytics",
    # Infrastructure
    "AnalysisConfig",
    "DataPaths",
    "DEFAULT_CONFIG",
    "DEFAULT_PATHS",
    "RepositoryError",
]
