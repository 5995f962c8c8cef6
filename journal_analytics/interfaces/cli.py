"""Command Line Interface for Journal Analytics.

Provides CLI access to analytics functions:
- pnl: FIFO P&L of one trade
- report: Portfolio analytics summary (with filters)
- verify: Verify snapshot integrity

Usage:
    python -m journal_analytics pnl TRADE_ID
    python -m journal_analytics report [--asset-class stock] [--start 2024-01-01] [--save]
    python -m journal_analytics verify
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from journal_analytics import __version__
from journal_analytics.application import (
    AnalyticsFilters,
    AnalyticsReportService,
    ReportConfig,
)
from journal_analytics.infrastructure import DataPaths, RepositoryError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _service(args: argparse.Namespace) -> AnalyticsReportService:
    paths = DataPaths(root=Path(args.root), snapshot_format=args.snapshot_format)
    report_config = ReportConfig(
        output_dir=Path(args.output_dir) if getattr(args, "output_dir", None) else None,
        output_formats=tuple(getattr(args, "formats", "csv").split(",")),
    )
    return AnalyticsReportService(paths=paths, report_config=report_config)


def _fmt(value, suffix: str = "") -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.4f}{suffix}"
    return f"{value}{suffix}"


def _pct(value: float | None) -> str:
    return "-" if value is None else f"{value * 100:.1f}%"


def cmd_pnl(args: argparse.Namespace) -> int:
    """Show one trade's FIFO result."""
    service = _service(args)
    try:
        result = service.trade_pnl(args.trade_id)
    except RepositoryError as e:
        print(f"Error: {e}")
        return 1

    print(f"[Trade {result.trade_id}]")
    print("=" * 50)
    print(f"  Realized gross P&L:   {result.realized_gross_pnl}")
    print(f"  Fees (closed part):   {result.fees_attributable_to_closed_portion}")
    print(f"  Realized net P&L:     {result.realized_net_pnl}")
    print(f"  Closed quantity:      {result.closed_quantity}")
    print(f"  Open quantity:        {result.open_quantity}")
    print(f"  Average open price:   {_fmt(result.average_open_price)}")
    print(f"  Unrealized P&L:       {_fmt(result.unrealized_gross_pnl)}")
    print(f"  R-multiple:           {_fmt(result.r_multiple_actual)}")
    print(f"  Outcome:              {_fmt(result.outcome)}")
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    """Show portfolio analytics."""
    filters = AnalyticsFilters(
        start_date=args.start,
        end_date=args.end,
        asset_classes=args.asset_class or (),
        exchanges=args.exchange or (),
        strategy_ids=args.strategy or (),
    )
    service = _service(args)
    try:
        data = service.generate(filters)
    except RepositoryError as e:
        print(f"Error: {e}")
        return 1

    print(f"Journal Analytics v{__version__}")
    print("=" * 60)
    print(f"Trades: {data.total_trades} ({data.closed_trades} closed, {data.open_trades} open)")
    print()

    print("[P&L]")
    print(f"  Realized net:    {data.total_realized_net_pnl}")
    print(f"  Realized gross:  {data.total_realized_gross_pnl}")
    print(f"  Fees:            {data.total_fees}")
    print(f"  Unrealized:      {_fmt(data.total_unrealized_pnl)}")
    print()

    print("[Win / Loss]")
    print(f"  Wins / Losses / Break-even: {data.number_of_winning_trades} / "
          f"{data.number_of_losing_trades} / {data.number_of_break_even_trades}")
    print(f"  Win rate:        {_pct(data.win_rate_overall)}")
    print(f"  Profit factor:   {_fmt(data.profit_factor)}")
    print(f"  Expectancy:      {_fmt(data.expectancy)}")
    print(f"  Payoff ratio:    {_fmt(data.payoff_ratio)}")
    print(f"  Current streak:  {data.current_streak} ({data.current_streak_type})")
    print()

    print("[Risk]")
    print(f"  Sharpe:          {_fmt(data.sharpe_ratio)}")
    print(f"  Sortino:         {_fmt(data.sortino_ratio)}")
    print(f"  Calmar:          {_fmt(data.calmar_ratio)}")
    print(f"  Max drawdown:    {_fmt(data.max_drawdown_percentage, '%')}")
    print(f"  Ulcer index:     {_fmt(data.ulcer_index)}")
    print()

    if data.pnl_by_asset_class:
        print("[By Asset Class]")
        print(f"{'Name':<20} {'Net P&L':>14} {'Trades':>7} {'Win rate':>9}")
        print("-" * 54)
        for group in data.pnl_by_asset_class:
            print(f"{group.name:<20} {group.total_net_pnl:>14} "
                  f"{group.trade_count:>7} {_pct(group.win_rate):>9}")
        print()

    if data.best_trading_month is not None:
        print(f"Best month:  {data.best_trading_month.name} "
              f"({data.best_trading_month.total_net_pnl})")
        print(f"Worst month: {data.worst_trading_month.name} "
              f"({data.worst_trading_month.total_net_pnl})")

    if args.save:
        for path in service.save_report(data, args.output):
            print(f"Saved: {path}")

    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """Verify snapshot integrity."""
    paths = DataPaths(root=Path(args.root), snapshot_format=args.snapshot_format)

    print("[Snapshot Verification]")
    print("=" * 50)

    errors = []

    print("\n1. Checking snapshot files...")
    missing = paths.validate()
    if missing:
        for m in missing:
            print(f"  x Missing: {m}")
            errors.append(f"Missing file: {m}")
    else:
        print("  ok Snapshot files exist")

    print("\n2. Loading trades...")
    service = _service(args)
    try:
        records = service.repository.get_all()
        print(f"  Trades: {len(records)}")
        print(f"  Transactions: {sum(len(r.transactions) for r in records)}")
    except RepositoryError as e:
        print(f"  x Error: {e}")
        errors.append(str(e))
        records = []

    if records:
        print("\n3. Checking trade status against fills...")
        mismatched = service.status_mismatches()
        if mismatched:
            for record in mismatched:
                print(f"  ! {record.trade.id}: status '{record.trade.status}' "
                      f"disagrees with net open size")
        else:
            print("  ok Status flags agree with fills")

    print("\n" + "=" * 50)
    if errors:
        print(f"FAILED: {len(errors)} problem(s)")
        return 1
    print("OK: all checks passed")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        prog="journal_analytics",
        description="Journal Analytics - Trade P&L and Portfolio Analysis",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--root",
        default=".",
        help="Project root containing data/ (default: current directory)",
    )
    parser.add_argument(
        "--snapshot-format",
        choices=("parquet", "csv"),
        default="parquet",
        help="Snapshot file format",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        help="Logging verbosity",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # pnl command
    pnl_parser = subparsers.add_parser("pnl", help="Show one trade's FIFO P&L")
    pnl_parser.add_argument("trade_id", help="Trade identifier")

    # report command
    report_parser = subparsers.add_parser("report", help="Show portfolio analytics")
    report_parser.add_argument(
        "--asset-class",
        action="append",
        help="Only this asset class (repeatable)",
    )
    report_parser.add_argument(
        "--exchange",
        action="append",
        help="Only this exchange (repeatable)",
    )
    report_parser.add_argument(
        "--strategy",
        action="append",
        help="Only this strategy id (repeatable)",
    )
    report_parser.add_argument(
        "--start",
        type=date.fromisoformat,
        help="Earliest open date (YYYY-MM-DD)",
    )
    report_parser.add_argument(
        "--end",
        type=date.fromisoformat,
        help="Latest open date (YYYY-MM-DD)",
    )
    report_parser.add_argument(
        "--save",
        action="store_true",
        help="Save report tables",
    )
    report_parser.add_argument(
        "-o", "--output",
        default="analytics",
        help="Output base filename (without extension)",
    )
    report_parser.add_argument(
        "--output-dir",
        help="Output directory (default: data/reports)",
    )
    report_parser.add_argument(
        "-f", "--formats",
        default="csv",
        help="Output formats (comma-separated)",
    )

    # verify command
    subparsers.add_parser("verify", help="Verify snapshot integrity")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "pnl": cmd_pnl,
        "report": cmd_report,
        "verify": cmd_verify,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
