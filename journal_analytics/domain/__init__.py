"""Domain Layer: Core business logic.

This layer contains:
- decimal_math: Exact decimal arithmetic with an immutable precision policy
- models: Trade, Transaction, PnlResult
- fifo: FIFO P&L engine and the trade-closure predicate
- returns: P&L series, equity curve, daily returns
- grouping: Time and dimension buckets
- metrics/: Drawdown, risk-adjusted, distribution and trade-quality metrics
"""

from journal_analytics.domain.decimal_math import (
    DEFAULT_MATH,
    DecimalConfig,
    DecimalMath,
    is_valid_financial_number,
)
from journal_analytics.domain.errors import ContractViolationError
from journal_analytics.domain.fifo import (
    CLOSE_TOLERANCE,
    calculate_open_position_size,
    compute_trade_pnl,
    determine_trade_direction,
    should_close_trade,
)
from journal_analytics.domain.models import (
    PnlResult,
    Trade,
    TradeRecord,
    Transaction,
)

__all__ = [
    # Decimal
    "DEFAULT_MATH",
    "DecimalConfig",
    "DecimalMath",
    "is_valid_financial_number",
    # Errors
    "ContractViolationError",
    # FIFO
    "CLOSE_TOLERANCE",
    "calculate_open_position_size",
    "compute_trade_pnl",
    "determine_trade_direction",
    "should_close_trade",
    # Models
    "PnlResult",
    "Trade",
    "TradeRecord",
    "Transaction",
]
