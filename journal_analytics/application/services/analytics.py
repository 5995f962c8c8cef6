"""Analytics Service: Aggregate per-trade P&L into a portfolio report.

Pipeline:
1. Filter trades (date range on open time, asset class, exchange, strategy)
2. Run the FIFO engine once per trade (optionally on a thread pool)
3. Re-sort by close time and fold every trade into running totals,
   streaks, durations, groupings and the daily P&L map
4. Derive equity curve, drawdowns, daily returns, risk ratios and
   distribution statistics from the fold

Every metric degrades to None (or zero) on its own; numeric edge cases
never raise. The only error is ContractViolationError for a transaction
attached to the wrong trade.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Literal, Sequence

from journal_analytics.domain.decimal_math import ZERO, DecimalMath
from journal_analytics.domain.errors import ContractViolationError
from journal_analytics.domain.fifo import compute_trade_pnl
from journal_analytics.domain.grouping import (
    GroupAccumulator,
    GroupedPerformance,
    find_best_period,
    find_worst_period,
    hour_key,
    month_key,
    week_key,
    weekday_key,
)
from journal_analytics.domain.metrics.drawdown import (
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
    calculate_risk_adjusted_returns,
    calculate_volatility_metrics,
)
from journal_analytics.domain.metrics.statistical import calculate_distribution_stats
from journal_analytics.domain.models import (
    PLAN_ADHERENCES,
    THESIS_VALIDATIONS,
    PnlResult,
    Trade,
    TradeRecord,
    Transaction,
    to_epoch_ms,
    to_utc,
)
from journal_analytics.domain.returns import (
    DailyReturnPoint,
    EquityCurvePoint,
    PnlPoint,
    build_equity_curve,
    calculate_daily_returns,
    correlation_coefficient,
    day_key,
)
from journal_analytics.infrastructure.config import DEFAULT_CONFIG, AnalysisConfig

logger = logging.getLogger(__name__)

StreakType = Literal["win", "loss", "none"]


# =============================================================================
# Filters
# =============================================================================

@dataclass(frozen=True)
class AnalyticsFilters:
    """Trade selection applied before aggregation.

    All criteria are AND-combined; empty collections mean "no filter".
    Date bounds are inclusive and compare against the trade's open time.

    Attributes:
        start_date: Earliest open time (date or datetime)
        end_date: Latest open time; a plain date includes the whole day
        asset_classes: Allowed asset classes
        exchanges: Allowed exchanges
        strategy_ids: Allowed strategy tags
    """
    start_date: date | datetime | None = None
    end_date: date | datetime | None = None
    asset_classes: frozenset[str] = frozenset()
    exchanges: frozenset[str] = frozenset()
    strategy_ids: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        for name in ("asset_classes", "exchanges", "strategy_ids"):
            object.__setattr__(self, name, frozenset(getattr(self, name) or ()))

    def matches(self, trade: Trade) -> bool:
        if self.start_date is not None or self.end_date is not None:
            if trade.open_datetime is None:
                return False
            opened = to_utc(trade.open_datetime)
            if self.start_date is not None and opened < _lower_bound(self.start_date):
                return False
            if self.end_date is not None and _past_upper_bound(opened, self.end_date):
                return False

        if self.asset_classes and trade.asset_class not in self.asset_classes:
            return False
        if self.exchanges and trade.exchange not in self.exchanges:
            return False
        if self.strategy_ids and trade.strategy_id not in self.strategy_ids:
            return False
        return True


def _lower_bound(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return to_utc(value)
    return to_utc(datetime(value.year, value.month, value.day))


def _past_upper_bound(opened: datetime, value: date | datetime) -> bool:
    if isinstance(value, datetime):
        return opened > to_utc(value)
    return opened.date() > value


def filter_trades(
    records: Iterable[TradeRecord],
    filters: AnalyticsFilters | None,
) -> list[TradeRecord]:
    """Keep the records whose trade passes every filter."""
    records = list(records)
    if filters is None:
        return records
    return [r for r in records if filters.matches(r.trade)]


# =============================================================================
# Result
# =============================================================================

@dataclass(frozen=True)
class AnalyticsData:
    """Portfolio analytics over a set of trades.

    Decimal-valued fields are base-10 strings; ratios are floats; durations
    are milliseconds. Every optional field is None when undefined for the
    input (e.g. profit_factor with no losing trade).
    """

    # --- Core P&L ---
    total_realized_net_pnl: str = "0"
    total_realized_gross_pnl: str = "0"
    total_fees_paid_on_closed_portions: str = "0"
    total_unrealized_pnl: str | None = None
    total_fees: str = "0"

    # --- Counts ---
    total_trades: int = 0
    closed_trades: int = 0
    open_trades: int = 0
    number_of_winning_trades: int = 0
    number_of_losing_trades: int = 0
    number_of_break_even_trades: int = 0
    total_fully_closed_trades: int = 0

    # --- Win / Loss ---
    win_rate_overall: float | None = None
    average_win_pnl: str | None = None
    average_loss_pnl: str | None = None
    largest_win_pnl: str | None = None
    largest_loss_pnl: str | None = None
    smallest_win_pnl: str | None = None
    smallest_loss_pnl: str | None = None

    # --- Streaks ---
    longest_win_streak: int = 0
    longest_lose_streak: int = 0
    average_win_streak: float | None = None
    average_lose_streak: float | None = None
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0
    current_streak: int = 0
    current_streak_type: StreakType = "none"

    # --- Risk-adjusted ---
    sharpe_ratio: float | None = None
    sortino_ratio: float | None = None
    calmar_ratio: float | None = None
    recovery_factor: float | None = None
    return_on_max_drawdown: float | None = None

    # --- Trade quality ---
    avg_r_multiple: str | None = None
    profit_factor: float | None = None
    expectancy: str | None = None
    payoff_ratio: float | None = None
    kelly_criterion: float | None = None

    # --- Volatility ---
    return_volatility: float | None = None
    downside_deviation: float | None = None
    ulcer_index: float | None = None

    # --- Durations (ms) ---
    average_trade_duration: float | None = None
    average_winning_trade_duration: float | None = None
    average_losing_trade_duration: float | None = None
    shortest_trade_duration: int | None = None
    longest_trade_duration: int | None = None

    # --- Distribution ---
    median_pnl: str | None = None
    standard_deviation_pnl: str | None = None
    skewness: float | None = None
    kurtosis: float | None = None

    # --- Drawdown ---
    max_drawdown_percentage: str | None = None
    max_drawdown_dollar: str | None = None
    average_drawdown: str | None = None
    max_drawdown_duration: int | None = None
    current_drawdown: str | None = None
    drawdown_periods: tuple[DrawdownPeriod, ...] = ()

    # --- Series ---
    pnl_per_trade_series: tuple[PnlPoint, ...] = ()
    equity_curve: tuple[EquityCurvePoint, ...] = ()
    daily_returns: tuple[DailyReturnPoint, ...] = ()

    # --- Time groupings (insertion order) ---
    pnl_by_month: tuple[GroupedPerformance, ...] = ()
    pnl_by_day_of_week: tuple[GroupedPerformance, ...] = ()
    pnl_by_hour_of_day: tuple[GroupedPerformance, ...] = ()
    pnl_by_week_of_year: tuple[GroupedPerformance, ...] = ()
    best_trading_month: GroupedPerformance | None = None
    worst_trading_month: GroupedPerformance | None = None
    best_trading_day: GroupedPerformance | None = None
    worst_trading_day: GroupedPerformance | None = None

    # --- Categorical groupings (net P&L descending) ---
    pnl_by_asset_class: tuple[GroupedPerformance, ...] = ()
    pnl_by_exchange: tuple[GroupedPerformance, ...] = ()
    pnl_by_strategy: tuple[GroupedPerformance, ...] = ()
    pnl_by_trade_direction: tuple[GroupedPerformance, ...] = ()
    pnl_by_thesis_validation: tuple[GroupedPerformance, ...] = ()
    pnl_by_plan_adherence: tuple[GroupedPerformance, ...] = ()

    # --- Qualitative review ---
    average_overall_rating: float | None = None
    thesis_validation_distribution: dict[str, int] = field(
        default_factory=lambda: dict.fromkeys(THESIS_VALIDATIONS, 0)
    )
    plan_adherence_distribution: dict[str, int] = field(
        default_factory=lambda: dict.fromkeys(PLAN_ADHERENCES, 0)
    )
    rating_pnl_correlation: float | None = None

    def to_dict(self) -> dict:
        """Convert to a JSON-safe dictionary (datetimes as epoch ms)."""
        return {f.name: _to_jsonable(getattr(self, f.name)) for f in fields(self)}


def _to_jsonable(value):
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, tuple):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return dict(value)
    return value


# =============================================================================
# FIFO Fan-out
# =============================================================================

def _check_ownership(record: TradeRecord) -> None:
    trade = record.trade
    for tx in record.transactions:
        if tx.trade_id is not None and trade.id and tx.trade_id != trade.id:
            raise ContractViolationError(
                f"Transaction {tx.id or '?'} belongs to trade {tx.trade_id}",
                trade_id=trade.id,
            )


def compute_pnls(
    records: Sequence[TradeRecord],
    config: AnalysisConfig = DEFAULT_CONFIG,
    dmath: DecimalMath | None = None,
) -> list[PnlResult]:
    """Run the FIFO engine for each record, results in input order.

    Fans out to a thread pool when `config.parallel_workers > 1` and there
    are at least `config.parallel_threshold` records.
    """
    dmath = dmath or DecimalMath(config.decimal)

    for record in records:
        _check_ownership(record)

    if config.parallel_workers <= 1 or len(records) < config.parallel_threshold:
        return [compute_trade_pnl(r.trade, r.transactions, dmath) for r in records]

    logger.info(
        "Computing P&L for %d trades on %d workers",
        len(records), config.parallel_workers,
    )
    results: list[PnlResult | None] = [None] * len(records)
    with ThreadPoolExecutor(max_workers=config.parallel_workers) as executor:
        futures = {
            executor.submit(compute_trade_pnl, r.trade, r.transactions, dmath): i
            for i, r in enumerate(records)
        }
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    return results  # type: ignore[return-value]


def _close_order(pairs: list[tuple[Trade, PnlResult]]) -> list[tuple[Trade, PnlResult]]:
    """Stable sort by close time; trades without one go last."""
    def key(pair: tuple[Trade, PnlResult]) -> tuple[int, int]:
        closed_at = pair[0].close_datetime
        return (0, to_epoch_ms(closed_at)) if closed_at is not None else (1, 0)
    return sorted(pairs, key=key)


# =============================================================================
# Aggregation
# =============================================================================

def compute_analytics(
    trades_with_transactions: Iterable[TradeRecord | tuple[Trade, Sequence[Transaction]]],
    filters: AnalyticsFilters | None = None,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> AnalyticsData:
    """Compute portfolio analytics.

    Args:
        trades_with_transactions: (Trade, transactions) pairs
        filters: Optional trade selection
        config: Engine configuration

    Returns:
        AnalyticsData; an empty input gives zero totals and None metrics

    Raises:
        ContractViolationError: If a transaction's trade_id differs from
            its trade's id

    Example:
        >>> data = compute_analytics(records)
        >>> data.win_rate_overall, data.profit_factor
        (0.6666666666666666, 4.0)
    """
    dmath = DecimalMath(config.decimal)
    records = filter_trades((TradeRecord(*r) for r in trades_with_transactions), filters)
    pnls = compute_pnls(records, config, dmath)
    pairs = _close_order([(r.trade, p) for r, p in zip(records, pnls)])

    logger.debug("Aggregating %d trades", len(pairs))

    total_net = ZERO
    total_gross = ZERO
    total_fees_closed = ZERO
    total_unrealized = ZERO
    has_unrealized = False
    total_fees = ZERO

    open_trades = 0
    closed_count = 0
    wins = losses = break_evens = 0
    sum_wins = ZERO
    sum_losses = ZERO
    largest_win: Decimal | None = None
    smallest_win: Decimal | None = None
    largest_loss: Decimal | None = None
    smallest_loss: Decimal | None = None

    current_wins = current_losses = 0
    longest_wins = longest_losses = 0
    win_streaks: list[int] = []
    loss_streaks: list[int] = []

    sum_r = ZERO
    r_count = 0

    total_duration = win_duration = loss_duration = 0
    win_duration_count = loss_duration_count = 0
    shortest: int | None = None
    longest: int | None = None

    closed_pnls: list[Decimal] = []
    series: list[PnlPoint] = []
    daily: dict[str, tuple[Decimal, int]] = {}

    by_month = GroupAccumulator(dmath)
    by_weekday = GroupAccumulator(dmath)
    by_hour = GroupAccumulator(dmath)
    by_week = GroupAccumulator(dmath)
    by_asset_class = GroupAccumulator(dmath)
    by_exchange = GroupAccumulator(dmath)
    by_strategy = GroupAccumulator(dmath)
    by_direction = GroupAccumulator(dmath)
    by_thesis = GroupAccumulator(dmath)
    by_adherence = GroupAccumulator(dmath)

    ratings: list[int] = []
    rated_closed: list[tuple[float, float]] = []
    thesis_counts = dict.fromkeys(THESIS_VALIDATIONS, 0)
    adherence_counts = dict.fromkeys(PLAN_ADHERENCES, 0)

    for trade, pnl in pairs:
        net = dmath.to_decimal(pnl.realized_net_pnl)

        total_net = dmath.add(total_net, net)
        total_gross = dmath.add(total_gross, pnl.realized_gross_pnl)
        total_fees_closed = dmath.add(total_fees_closed, pnl.fees_attributable_to_closed_portion)
        total_fees = dmath.add(total_fees, trade.fees_total)

        if pnl.unrealized_gross_pnl is not None:
            total_unrealized = dmath.add(total_unrealized, pnl.unrealized_gross_pnl)
            has_unrealized = True

        if not pnl.is_fully_closed:
            open_trades += 1
        else:
            closed_count += 1
            closed_pnls.append(net)

            if pnl.duration_ms is not None:
                total_duration += pnl.duration_ms
                shortest = pnl.duration_ms if shortest is None else min(shortest, pnl.duration_ms)
                longest = pnl.duration_ms if longest is None else max(longest, pnl.duration_ms)

            if pnl.outcome == "win":
                wins += 1
                sum_wins = dmath.add(sum_wins, net)
                if largest_win is None or net > largest_win:
                    largest_win = net
                if smallest_win is None or net < smallest_win:
                    smallest_win = net
                if pnl.duration_ms is not None:
                    win_duration += pnl.duration_ms
                    win_duration_count += 1
                if current_losses > 0:
                    loss_streaks.append(current_losses)
                current_wins += 1
                current_losses = 0
                longest_wins = max(longest_wins, current_wins)

            elif pnl.outcome == "loss":
                losses += 1
                sum_losses = dmath.add(sum_losses, net)
                if largest_loss is None or net < largest_loss:
                    largest_loss = net
                if smallest_loss is None or net > smallest_loss:
                    smallest_loss = net
                if pnl.duration_ms is not None:
                    loss_duration += pnl.duration_ms
                    loss_duration_count += 1
                if current_wins > 0:
                    win_streaks.append(current_wins)
                current_losses += 1
                current_wins = 0
                longest_losses = max(longest_losses, current_losses)

            else:
                # Break-even ends both streaks without extending either
                break_evens += 1
                if current_wins > 0:
                    win_streaks.append(current_wins)
                if current_losses > 0:
                    loss_streaks.append(current_losses)
                current_wins = current_losses = 0

            if pnl.r_multiple_actual is not None:
                sum_r = dmath.add(sum_r, pnl.r_multiple_actual)
                r_count += 1

            if trade.close_datetime is not None:
                series.append(PnlPoint(
                    timestamp=trade.close_datetime,
                    pnl=pnl.realized_net_pnl,
                    is_fully_closed=True,
                ))
                key = day_key(trade.close_datetime)
                day_pnl, day_count = daily.get(key, (ZERO, 0))
                daily[key] = (dmath.add(day_pnl, net), day_count + 1)

            if trade.overall_rating is not None:
                rated_closed.append((float(trade.overall_rating), float(net)))

        if trade.open_datetime is not None:
            opened = to_utc(trade.open_datetime)
            by_month.add(month_key(opened), net, pnl.outcome)
            by_weekday.add(weekday_key(opened), net, pnl.outcome)
            by_hour.add(hour_key(opened), net, pnl.outcome)
            by_week.add(week_key(opened), net, pnl.outcome)

        by_asset_class.add(trade.asset_class, net, pnl.outcome)
        by_direction.add(trade.direction, net, pnl.outcome)
        if trade.exchange:
            by_exchange.add(trade.exchange, net, pnl.outcome)
        if trade.strategy_id:
            by_strategy.add(trade.strategy_id, net, pnl.outcome)
        if trade.thesis_validation:
            by_thesis.add(trade.thesis_validation, net, pnl.outcome)
            thesis_counts[trade.thesis_validation] += 1
        if trade.plan_adherence:
            by_adherence.add(trade.plan_adherence, net, pnl.outcome)
            adherence_counts[trade.plan_adherence] += 1
        if trade.overall_rating is not None:
            ratings.append(trade.overall_rating)

    if current_wins > 0:
        win_streaks.append(current_wins)
    if current_losses > 0:
        loss_streaks.append(current_losses)

    # --- Win / loss derived ---
    rate = win_rate(wins, losses)
    avg_win = dmath.divide(sum_wins, wins) if wins > 0 else None
    avg_loss = dmath.divide(sum_losses, losses) if losses > 0 else None
    payoff = payoff_ratio(avg_win, avg_loss)
    exp = expectancy(wins, losses, avg_win, avg_loss, dmath)

    # --- Curves and ratios ---
    equity_curve = build_equity_curve(series, dmath)
    drawdown = calculate_drawdown_analysis(equity_curve, dmath)
    daily_returns = calculate_daily_returns(daily, dmath)
    risk = calculate_risk_adjusted_returns(
        total_net,
        daily_returns,
        drawdown.max_drawdown_percentage,
        closed_count,
        risk_free_rate=config.risk_free_rate,
        trading_days_per_year=config.trading_days_per_year,
    )
    volatility = calculate_volatility_metrics(closed_pnls)
    distribution = calculate_distribution_stats(closed_pnls, dmath)

    # --- Groupings ---
    months = by_month.results()
    weekdays = by_weekday.results()

    rating_correlation = None
    if rated_closed:
        xs, ys = zip(*rated_closed)
        rating_correlation = correlation_coefficient(xs, ys)

    def as_str(value: Decimal | None) -> str | None:
        return dmath.to_string(value) if value is not None else None

    return AnalyticsData(
        total_realized_net_pnl=dmath.to_string(total_net),
        total_realized_gross_pnl=dmath.to_string(total_gross),
        total_fees_paid_on_closed_portions=dmath.to_string(total_fees_closed),
        total_unrealized_pnl=dmath.to_string(total_unrealized) if has_unrealized else None,
        total_fees=dmath.to_string(total_fees),
        total_trades=len(pairs),
        closed_trades=closed_count,
        open_trades=open_trades,
        number_of_winning_trades=wins,
        number_of_losing_trades=losses,
        number_of_break_even_trades=break_evens,
        total_fully_closed_trades=closed_count,
        win_rate_overall=rate,
        average_win_pnl=as_str(avg_win),
        average_loss_pnl=as_str(avg_loss),
        largest_win_pnl=as_str(largest_win),
        largest_loss_pnl=as_str(largest_loss),
        smallest_win_pnl=as_str(smallest_win),
        smallest_loss_pnl=as_str(smallest_loss),
        longest_win_streak=longest_wins,
        longest_lose_streak=longest_losses,
        average_win_streak=sum(win_streaks) / len(win_streaks) if win_streaks else None,
        average_lose_streak=sum(loss_streaks) / len(loss_streaks) if loss_streaks else None,
        max_consecutive_wins=longest_wins,
        max_consecutive_losses=longest_losses,
        current_streak=current_wins if current_wins > 0 else -current_losses,
        current_streak_type="win" if current_wins > 0 else "loss" if current_losses > 0 else "none",
        sharpe_ratio=risk.sharpe_ratio,
        sortino_ratio=risk.sortino_ratio,
        calmar_ratio=risk.calmar_ratio,
        recovery_factor=risk.recovery_factor,
        return_on_max_drawdown=risk.return_on_max_drawdown,
        avg_r_multiple=dmath.to_string(dmath.divide(sum_r, r_count)) if r_count > 0 else None,
        profit_factor=profit_factor(sum_wins, sum_losses, dmath),
        expectancy=as_str(exp),
        payoff_ratio=payoff,
        kelly_criterion=kelly_criterion(rate, payoff),
        return_volatility=volatility.return_volatility,
        downside_deviation=volatility.downside_deviation,
        ulcer_index=drawdown.ulcer_index,
        average_trade_duration=total_duration / closed_count if closed_count > 0 else None,
        average_winning_trade_duration=(
            win_duration / win_duration_count if win_duration_count > 0 else None
        ),
        average_losing_trade_duration=(
            loss_duration / loss_duration_count if loss_duration_count > 0 else None
        ),
        shortest_trade_duration=shortest,
        longest_trade_duration=longest,
        median_pnl=distribution.median_pnl,
        standard_deviation_pnl=distribution.standard_deviation_pnl,
        skewness=distribution.skewness,
        kurtosis=distribution.kurtosis,
        max_drawdown_percentage=drawdown.max_drawdown_percentage,
        max_drawdown_dollar=drawdown.max_drawdown_dollar,
        average_drawdown=drawdown.average_drawdown,
        max_drawdown_duration=drawdown.max_drawdown_duration,
        current_drawdown=drawdown.current_drawdown,
        drawdown_periods=drawdown.drawdown_periods,
        pnl_per_trade_series=tuple(series),
        equity_curve=tuple(equity_curve),
        daily_returns=tuple(daily_returns),
        pnl_by_month=tuple(months),
        pnl_by_day_of_week=tuple(weekdays),
        pnl_by_hour_of_day=tuple(by_hour.results()),
        pnl_by_week_of_year=tuple(by_week.results()),
        best_trading_month=find_best_period(months),
        worst_trading_month=find_worst_period(months),
        best_trading_day=find_best_period(weekdays),
        worst_trading_day=find_worst_period(weekdays),
        pnl_by_asset_class=tuple(by_asset_class.results(sort_by_pnl=True)),
        pnl_by_exchange=tuple(by_exchange.results(sort_by_pnl=True)),
        pnl_by_strategy=tuple(by_strategy.results(sort_by_pnl=True)),
        pnl_by_trade_direction=tuple(by_direction.results(sort_by_pnl=True)),
        pnl_by_thesis_validation=tuple(by_thesis.results(sort_by_pnl=True)),
        pnl_by_plan_adherence=tuple(by_adherence.results(sort_by_pnl=True)),
        average_overall_rating=sum(ratings) / len(ratings) if ratings else None,
        thesis_validation_distribution=thesis_counts,
        plan_adherence_distribution=adherence_counts,
        rating_pnl_correlation=rating_correlation,
    )
