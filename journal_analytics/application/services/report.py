"""Report Service: Analytics over a journal snapshot, exported as tables.

Orchestrates:
1. Load trade records via JournalRepository
2. Run compute_analytics (with optional filters)
3. Turn summary, groupings, equity curve and drawdown periods into
   polars DataFrames
4. Export to CSV / Parquet
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import polars as pl

from journal_analytics.application.services.analytics import (
    AnalyticsData,
    AnalyticsFilters,
    compute_analytics,
)
from journal_analytics.domain.decimal_math import DecimalMath
from journal_analytics.domain.fifo import compute_trade_pnl, should_close_trade
from journal_analytics.domain.models import PnlResult, TradeRecord, to_epoch_ms
from journal_analytics.infrastructure import (
    DEFAULT_CONFIG,
    DEFAULT_PATHS,
    AnalysisConfig,
    DataPaths,
    JournalRepository,
)

logger = logging.getLogger(__name__)

GROUPINGS = (
    "pnl_by_month",
    "pnl_by_day_of_week",
    "pnl_by_hour_of_day",
    "pnl_by_week_of_year",
    "pnl_by_asset_class",
    "pnl_by_exchange",
    "pnl_by_strategy",
    "pnl_by_trade_direction",
    "pnl_by_thesis_validation",
    "pnl_by_plan_adherence",
)

GROUP_SCHEMA = {
    "name": pl.Utf8,
    "total_net_pnl": pl.Utf8,
    "trade_count": pl.Int64,
    "wins": pl.Int64,
    "losses": pl.Int64,
    "break_evens": pl.Int64,
    "win_rate": pl.Float64,
}


# =============================================================================
# Report Configuration
# =============================================================================

@dataclass(frozen=True)
class ReportConfig:
    """Configuration for report export.

    Attributes:
        output_dir: Directory for output files (None = paths.reports_dir)
        output_formats: Formats to write ("csv", "parquet")
    """
    output_dir: Path | None = None
    output_formats: tuple[str, ...] = ("csv",)


# =============================================================================
# Report Service
# =============================================================================

class AnalyticsReportService:
    """Service for journal analytics reports.

    Example:
        >>> service = AnalyticsReportService()
        >>> data = service.generate(AnalyticsFilters(asset_classes={"stock"}))
        >>> service.save_report(data, "q1")
    """

    def __init__(
        self,
        paths: DataPaths = DEFAULT_PATHS,
        config: AnalysisConfig = DEFAULT_CONFIG,
        report_config: ReportConfig | None = None,
        repository: JournalRepository | None = None,
    ):
        self._paths = paths
        self._config = config
        self._report_config = report_config or ReportConfig()
        self._repo = repository or JournalRepository(paths)

    @property
    def repository(self) -> JournalRepository:
        return self._repo

    def generate(self, filters: AnalyticsFilters | None = None) -> AnalyticsData:
        """Run analytics over every trade in the snapshot."""
        records = self._repo.get_all()
        logger.info("Running analytics over %d trades", len(records))
        return compute_analytics(records, filters=filters, config=self._config)

    def trade_pnl(self, trade_id: str) -> PnlResult:
        """FIFO result for a single trade."""
        record = self._repo.get_trade(trade_id)
        return compute_trade_pnl(
            record.trade, record.transactions, DecimalMath(self._config.decimal)
        )

    def status_mismatches(self) -> list[TradeRecord]:
        """Trades whose stored status disagrees with the closure predicate."""
        dmath = DecimalMath(self._config.decimal)
        mismatched = []
        for record in self._repo.get_all():
            if not record.transactions:
                continue
            flat = should_close_trade(
                record.transactions,
                record.trade.direction,
                dmath,
                tolerance=self._config.close_tolerance,
            )
            if flat != record.trade.is_closed:
                mismatched.append(record)
        return mismatched

    # --- Tables ---

    def summary_frame(self, data: AnalyticsData) -> pl.DataFrame:
        """Scalar metrics as a two-column (metric, value) table."""
        rows = [
            {"metric": name, "value": None if value is None else str(value)}
            for name, value in data.to_dict().items()
            if not isinstance(value, (list, dict))
        ]
        return pl.DataFrame(rows, schema={"metric": pl.Utf8, "value": pl.Utf8})

    def grouping_frame(self, data: AnalyticsData, grouping: str) -> pl.DataFrame:
        """One grouped breakdown, e.g. "pnl_by_month"."""
        if grouping not in GROUPINGS:
            raise ValueError(f"Unknown grouping: {grouping}")
        rows = [g.to_dict() for g in getattr(data, grouping)]
        return pl.DataFrame(rows, schema=GROUP_SCHEMA)

    def equity_frame(self, data: AnalyticsData) -> pl.DataFrame:
        """Equity curve with a UTC datetime column."""
        equity = pl.DataFrame(
            {
                "timestamp": [to_epoch_ms(p.timestamp) for p in data.equity_curve],
                "equity": [p.equity for p in data.equity_curve],
            },
            schema={"timestamp": pl.Int64, "equity": pl.Utf8},
        )
        return equity.with_columns(
            pl.from_epoch("timestamp", time_unit="ms").cast(pl.Datetime("ms")).alias("datetime")
        )

    def daily_returns_frame(self, data: AnalyticsData) -> pl.DataFrame:
        rows = [p.to_dict() for p in data.daily_returns]
        return pl.DataFrame(
            rows,
            schema={
                "date": pl.Int64,
                "pnl": pl.Utf8,
                "trade_count": pl.Int64,
                "cumulative_pnl": pl.Utf8,
            },
        )

    def drawdown_frame(self, data: AnalyticsData) -> pl.DataFrame:
        rows = [p.to_dict() for p in data.drawdown_periods]
        return pl.DataFrame(
            rows,
            schema={
                "start_date": pl.Int64,
                "end_date": pl.Int64,
                "peak_equity": pl.Utf8,
                "trough_equity": pl.Utf8,
                "drawdown_percent": pl.Utf8,
                "drawdown_dollar": pl.Utf8,
                "duration_ms": pl.Int64,
                "recovered": pl.Boolean,
            },
        )

    def tables(self, data: AnalyticsData) -> dict[str, pl.DataFrame]:
        """Every exportable table keyed by name."""
        tables = {
            "summary": self.summary_frame(data),
            "equity_curve": self.equity_frame(data),
            "daily_returns": self.daily_returns_frame(data),
            "drawdown_periods": self.drawdown_frame(data),
        }
        for grouping in GROUPINGS:
            tables[grouping] = self.grouping_frame(data, grouping)
        return tables

    def save_report(
        self,
        data: AnalyticsData,
        base_name: str = "analytics",
        formats: tuple[str, ...] | None = None,
    ) -> list[Path]:
        """Write every table as <base_name>_<table>.<fmt>.

        Returns:
            List of saved file paths
        """
        formats = formats or self._report_config.output_formats
        output_dir = self._report_config.output_dir or self._paths.reports_dir
        output_dir.mkdir(parents=True, exist_ok=True)
        saved = []

        for name, df in self.tables(data).items():
            for fmt in formats:
                path = output_dir / f"{base_name}_{name}.{fmt}"
                if fmt == "csv":
                    df.write_csv(path)
                elif fmt == "parquet":
                    df.write_parquet(path)
                else:
                    raise ValueError(f"Unknown format: {fmt}")
                saved.append(path)

        logger.info("Saved %d report files to %s", len(saved), output_dir)
        return saved
