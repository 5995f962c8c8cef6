"""Journal Repository: Access to a pre-validated journal snapshot.

A snapshot is two tables:
- trades: one row per trade, keyed by `id`
- transactions: one row per fill, joined to its trade by `trade_id`

Money and quantity columns are read as strings and parsed into Decimal so
no value passes through a binary float. Rows are expected to be
normalised already; this is not a broker import.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import polars as pl

from journal_analytics.domain.models import Trade, TradeRecord, Transaction
from journal_analytics.infrastructure.config import DEFAULT_PATHS, DataPaths
from journal_analytics.infrastructure.repositories.base import Repository, RepositoryError

logger = logging.getLogger(__name__)

TRADE_REQUIRED_COLUMNS = ("id", "direction", "status")
TRADE_OPTIONAL_COLUMNS = (
    "instrument_ticker",
    "asset_class",
    "exchange",
    "open_datetime",
    "close_datetime",
    "fees_total",
    "current_market_price",
    "initial_risk",
    "strategy_id",
    "thesis_validation",
    "plan_adherence",
    "overall_rating",
)
TRANSACTION_REQUIRED_COLUMNS = ("trade_id", "action", "quantity", "price", "datetime")
TRANSACTION_OPTIONAL_COLUMNS = ("id", "fees", "notes")

TRADE_DECIMAL_COLUMNS = ("fees_total", "current_market_price", "initial_risk")
TRANSACTION_DECIMAL_COLUMNS = ("quantity", "price", "fees")


def _parse_datetime(value: datetime | str | None) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _optional(value: str | None) -> str | None:
    return value if value not in (None, "") else None


class JournalRepository(Repository[list[TradeRecord]]):
    """Repository for journal snapshots.

    Example:
        >>> repo = JournalRepository(DataPaths(root=Path("/srv/journal")))
        >>> records = repo.get_all()
        >>> record = repo.get_trade("t-42")
    """

    def __init__(self, paths: DataPaths = DEFAULT_PATHS):
        self._paths = paths
        self._trades_df: pl.DataFrame | None = None
        self._transactions_df: pl.DataFrame | None = None
        self._records: list[TradeRecord] | None = None

    # --- Raw tables ---

    def get_trades_frame(self) -> pl.DataFrame:
        """Trades table with every known column present."""
        if self._trades_df is None:
            self._trades_df = self._load(
                self._paths.trades_file,
                TRADE_REQUIRED_COLUMNS,
                TRADE_OPTIONAL_COLUMNS,
                TRADE_DECIMAL_COLUMNS,
            )
        return self._trades_df

    def get_transactions_frame(self) -> pl.DataFrame:
        """Transactions table with every known column present."""
        if self._transactions_df is None:
            self._transactions_df = self._load(
                self._paths.transactions_file,
                TRANSACTION_REQUIRED_COLUMNS,
                TRANSACTION_OPTIONAL_COLUMNS,
                TRANSACTION_DECIMAL_COLUMNS,
            )
        return self._transactions_df

    def _load(
        self,
        path: Path,
        required: tuple[str, ...],
        optional: tuple[str, ...],
        decimal_columns: tuple[str, ...],
    ) -> pl.DataFrame:
        if not path.exists():
            raise RepositoryError("Snapshot file not found", str(path))

        try:
            if path.suffix == ".csv":
                # All columns as strings; decimals stay exact
                df = pl.read_csv(path, infer_schema_length=0)
            else:
                df = pl.read_parquet(path)
        except Exception as e:
            raise RepositoryError(f"Failed to read snapshot: {e}", str(path)) from e

        missing = [c for c in required if c not in df.columns]
        if missing:
            raise RepositoryError(f"Missing columns: {', '.join(missing)}", str(path))

        absent = [c for c in optional if c not in df.columns]
        if absent:
            df = df.with_columns([pl.lit(None, dtype=pl.Utf8).alias(c) for c in absent])

        present = [c for c in decimal_columns if c in df.columns]
        df = df.with_columns([pl.col(c).cast(pl.Utf8) for c in present])

        logger.debug("Loaded %d rows from %s", len(df), path)
        return df

    # --- Records ---

    def get_all(self) -> list[TradeRecord]:
        """Load every trade with its transactions, in trades-table order.

        Raises:
            RepositoryError: If a file is missing or a row is malformed
        """
        if self._records is not None:
            return self._records

        fills: dict[str, list[Transaction]] = {}
        for row in self.get_transactions_frame().iter_rows(named=True):
            tx = self._build_transaction(row)
            fills.setdefault(str(row["trade_id"]), []).append(tx)

        records = []
        for row in self.get_trades_frame().iter_rows(named=True):
            trade = self._build_trade(row)
            records.append(TradeRecord(trade, tuple(fills.pop(trade.id, ()))))

        if fills:
            logger.warning(
                "%d transaction group(s) reference unknown trades: %s",
                len(fills), ", ".join(sorted(fills)),
            )

        self._records = records
        return records

    def get_trade(self, trade_id: str) -> TradeRecord:
        """Load one trade and its transactions.

        Raises:
            RepositoryError: If the trade does not exist
        """
        for record in self.get_all():
            if record.trade.id == trade_id:
                return record
        raise RepositoryError(f"Trade not found: {trade_id}", str(self._paths.trades_file))

    def list_trade_ids(self) -> list[str]:
        return [record.trade.id for record in self.get_all()]

    def clear_cache(self) -> None:
        """Clear cached data."""
        self._trades_df = None
        self._transactions_df = None
        self._records = None

    # --- Row conversion ---

    def _build_trade(self, row: dict) -> Trade:
        rating = row["overall_rating"]
        try:
            return Trade(
                id=str(row["id"]),
                direction=row["direction"],
                status=row["status"],
                instrument_ticker=row["instrument_ticker"] or "",
                asset_class=row["asset_class"] or "stock",
                exchange=_optional(row["exchange"]),
                open_datetime=_parse_datetime(row["open_datetime"]),
                close_datetime=_parse_datetime(row["close_datetime"]),
                fees_total=row["fees_total"] or "0",
                current_market_price=_optional(row["current_market_price"]),
                initial_risk=_optional(row["initial_risk"]),
                strategy_id=_optional(row["strategy_id"]),
                thesis_validation=_optional(row["thesis_validation"]),
                plan_adherence=_optional(row["plan_adherence"]),
                overall_rating=int(rating) if rating not in (None, "") else None,
            )
        except (TypeError, ValueError) as e:
            raise RepositoryError(
                f"Invalid trade row {row['id']!r}: {e}", str(self._paths.trades_file)
            ) from e

    def _build_transaction(self, row: dict) -> Transaction:
        try:
            return Transaction(
                action=row["action"],
                quantity=row["quantity"],
                price=row["price"],
                datetime=_parse_datetime(row["datetime"]),
                fees=row["fees"] or "0",
                notes=_optional(row["notes"]),
                id=_optional(row["id"]),
                trade_id=str(row["trade_id"]),
            )
        except (TypeError, ValueError) as e:
            raise RepositoryError(
                f"Invalid transaction row for trade {row['trade_id']!r}: {e}",
                str(self._paths.transactions_file),
            ) from e
