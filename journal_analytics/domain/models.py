"""Domain Models: Core data structures for trade journal analytics.

These models represent the fundamental business entities:
- Transaction: An atomic fill (buy or sell) belonging to a trade
- Trade: One instrument position, opened and possibly closed by fills
- PnlResult: The FIFO engine's per-trade output
- TradeRecord: A trade paired with its explicit transaction list

Design Principles:
- Immutable (frozen dataclass); the engines derive new records, never mutate
- Contract checks in __post_init__: malformed input is rejected here so the
  engines can assume pre-validated data
- Money and quantities are Decimal inside, base-10 strings at the boundary
- Native floats are refused for money fields to prevent silent precision loss
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Literal, NamedTuple, Sequence

from journal_analytics.domain.decimal_math import DEFAULT_MATH, ZERO

# Type aliases
TradeDirection = Literal["long", "short"]
TradeStatus = Literal["open", "closed"]
TradeOutcome = Literal["win", "loss", "break_even"]
TransactionAction = Literal["buy", "sell"]
AssetClass = Literal[
    "stock",
    "cryptocurrency",
    "forex",
    "futures",
    "options",
    "prediction_market",
]
ThesisValidation = Literal["correct", "partial", "incorrect"]
PlanAdherence = Literal["high", "medium", "low"]

DIRECTIONS = ("long", "short")
STATUSES = ("open", "closed")
OUTCOMES = ("win", "loss", "break_even")
ACTIONS = ("buy", "sell")
ASSET_CLASSES = (
    "stock",
    "cryptocurrency",
    "forex",
    "futures",
    "options",
    "prediction_market",
)
THESIS_VALIDATIONS = ("correct", "partial", "incorrect")
PLAN_ADHERENCES = ("high", "medium", "low")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


def to_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_epoch_ms(value: datetime) -> int:
    """Unix timestamp in whole milliseconds."""
    return (to_utc(value) - _EPOCH) // _ONE_MS


def _coerce_decimal(value: object, field_name: str) -> Decimal:
    """Accept Decimal, str or int; refuse float."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        raise TypeError(f"{field_name} must be Decimal or str, not float: {value!r}")
    return DEFAULT_MATH.to_decimal(value)  # type: ignore[arg-type]


def _validate_positive(value: Decimal, field_name: str) -> None:
    """Validate that value is positive."""
    if value <= 0:
        raise ValueError(f"{field_name} must be positive, got: {value}")


def _validate_non_negative(value: Decimal, field_name: str) -> None:
    """Validate that value is non-negative."""
    if value < 0:
        raise ValueError(f"{field_name} must be non-negative, got: {value}")


def _validate_choice(value: object, choices: tuple[str, ...], field_name: str) -> None:
    if value not in choices:
        raise ValueError(f"{field_name} must be one of {choices}, got: {value!r}")


@dataclass(frozen=True, slots=True)
class Transaction:
    """An atomic fill.

    Attributes:
        action: "buy" or "sell"
        quantity: Filled quantity (must be positive)
        price: Fill price (must be positive)
        datetime: Execution time
        fees: Fees charged on this fill (must be non-negative)
        notes: Optional free text
        id: Optional transaction identifier
        trade_id: Optional identifier of the owning trade

    Example:
        >>> tx = Transaction("buy", Decimal("10"), Decimal("100"),
        ...                  datetime(2024, 1, 15, 9, 30))
        >>> tx.notional
        Decimal('1000')
    """

    action: TransactionAction
    quantity: Decimal
    price: Decimal
    datetime: datetime
    fees: Decimal = ZERO
    notes: str | None = None
    id: str | None = None
    trade_id: str | None = None

    def __post_init__(self) -> None:
        """Validate all fields after initialization."""
        _validate_choice(self.action, ACTIONS, "action")
        for name in ("quantity", "price", "fees"):
            object.__setattr__(self, name, _coerce_decimal(getattr(self, name), name))
        _validate_positive(self.quantity, "quantity")
        _validate_positive(self.price, "price")
        _validate_non_negative(self.fees, "fees")

    @property
    def notional(self) -> Decimal:
        """Quantity times price."""
        return DEFAULT_MATH.multiply(self.quantity, self.price)


@dataclass(frozen=True, slots=True)
class Trade:
    """One instrument position.

    `status` is a cache maintained by the caller; the engines recompute
    position truth from transactions except where documented.

    Attributes:
        direction: "long" or "short", fixed at creation
        status: "open" or "closed"
        id: Trade identifier
        instrument_ticker: Symbol traded
        asset_class: Instrument class used for grouping and filtering
        exchange: Venue, optional
        open_datetime: Time of the first fill
        close_datetime: Time the position went flat
        fees_total: All fees charged on the trade
        current_market_price: Mark used for unrealized P&L
        initial_risk: Planned risk amount, denominator of the R-multiple
        strategy_id: Optional strategy tag
        thesis_validation: Post-trade review, optional
        plan_adherence: Post-trade review, optional
        overall_rating: Post-trade review score 1-5, optional
    """

    direction: TradeDirection
    status: TradeStatus
    id: str = ""
    instrument_ticker: str = ""
    asset_class: AssetClass = "stock"
    exchange: str | None = None
    open_datetime: datetime | None = None
    close_datetime: datetime | None = None
    fees_total: Decimal = ZERO
    current_market_price: Decimal | None = None
    initial_risk: Decimal | None = None
    strategy_id: str | None = None
    thesis_validation: ThesisValidation | None = None
    plan_adherence: PlanAdherence | None = None
    overall_rating: int | None = None

    def __post_init__(self) -> None:
        """Validate all fields after initialization."""
        _validate_choice(self.direction, DIRECTIONS, "direction")
        _validate_choice(self.status, STATUSES, "status")
        _validate_choice(self.asset_class, ASSET_CLASSES, "asset_class")

        object.__setattr__(
            self, "fees_total", _coerce_decimal(self.fees_total, "fees_total")
        )
        _validate_non_negative(self.fees_total, "fees_total")

        for name in ("current_market_price", "initial_risk"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, _coerce_decimal(value, name))
        if self.current_market_price is not None:
            _validate_non_negative(self.current_market_price, "current_market_price")
        if self.initial_risk is not None:
            _validate_non_negative(self.initial_risk, "initial_risk")

        if self.thesis_validation is not None:
            _validate_choice(self.thesis_validation, THESIS_VALIDATIONS, "thesis_validation")
        if self.plan_adherence is not None:
            _validate_choice(self.plan_adherence, PLAN_ADHERENCES, "plan_adherence")
        if self.overall_rating is not None and not 1 <= self.overall_rating <= 5:
            raise ValueError(
                f"overall_rating must be between 1 and 5, got: {self.overall_rating}"
            )

    @property
    def is_long(self) -> bool:
        return self.direction == "long"

    @property
    def direction_sign(self) -> int:
        """+1 for long, -1 for short."""
        return 1 if self.direction == "long" else -1

    @property
    def is_closed(self) -> bool:
        """Caller's cached status flag."""
        return self.status == "closed"


class TradeRecord(NamedTuple):
    """A trade and its explicit transaction list."""

    trade: Trade
    transactions: Sequence[Transaction] = ()


@dataclass(frozen=True, slots=True)
class PnlResult:
    """FIFO P&L result for one trade.

    Decimal-valued fields are exact base-10 strings so they can be
    serialized without precision loss.

    Attributes:
        trade_id: Identifier of the trade
        realized_gross_pnl: P&L of the matched quantity before fees
        realized_net_pnl: realized_gross_pnl - fees_attributable_to_closed_portion
        fees_attributable_to_closed_portion: Exit fees plus matched share of entry fees
        is_fully_closed: Mirrors the trade's status flag
        closed_quantity: Total matched quantity
        open_quantity: Entry quantity not yet matched
        average_open_price: Weighted entry price of the open quantity
        unrealized_gross_pnl: Mark-to-market P&L of the open quantity
        r_multiple_actual: (gross - fees_total) / initial_risk
        duration_ms: Close minus open time in milliseconds
        outcome: "win", "loss" or "break_even" for closed trades
    """

    trade_id: str
    realized_gross_pnl: str
    realized_net_pnl: str
    fees_attributable_to_closed_portion: str
    is_fully_closed: bool
    closed_quantity: str
    open_quantity: str
    average_open_price: str | None = None
    unrealized_gross_pnl: str | None = None
    r_multiple_actual: str | None = None
    duration_ms: int | None = None
    outcome: TradeOutcome | None = None

    @property
    def is_win(self) -> bool:
        return self.outcome == "win"

    @property
    def is_loss(self) -> bool:
        return self.outcome == "loss"

    def to_dict(self) -> dict:
        """Convert to a JSON-safe dictionary."""
        return {
            "trade_id": self.trade_id,
            "realized_gross_pnl": self.realized_gross_pnl,
            "realized_net_pnl": self.realized_net_pnl,
            "fees_attributable_to_closed_portion": self.fees_attributable_to_closed_portion,
            "is_fully_closed": self.is_fully_closed,
            "closed_quantity": self.closed_quantity,
            "open_quantity": self.open_quantity,
            "average_open_price": self.average_open_price,
            "unrealized_gross_pnl": self.unrealized_gross_pnl,
            "r_multiple_actual": self.r_multiple_actual,
            "duration_ms": self.duration_ms,
            "outcome": self.outcome,
        }
