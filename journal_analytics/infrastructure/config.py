"""Configuration: Centralized paths and settings.

This module provides:
- DataPaths: File locations of a journal snapshot and report output
- AnalysisConfig: Parameters for the P&L and analytics engines

Directory Structure:
    data/
    ├── trades.parquet           # One row per trade
    ├── transactions.parquet     # One row per fill, keyed by trade_id
    └── reports/                 # Exported report tables
"""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from journal_analytics.domain.decimal_math import DecimalConfig

SNAPSHOT_FORMATS = ("parquet", "csv")


@dataclass(frozen=True)
class DataPaths:
    """File paths for a journal snapshot.

    Attributes:
        root: Project root directory
        snapshot_format: "parquet" or "csv"
    """

    root: Path = Path(".")
    snapshot_format: str = "parquet"

    def __post_init__(self) -> None:
        if self.snapshot_format not in SNAPSHOT_FORMATS:
            raise ValueError(
                f"snapshot_format must be one of {SNAPSHOT_FORMATS}, "
                f"got: {self.snapshot_format!r}"
            )

    # --- Directories ---

    @property
    def data_dir(self) -> Path:
        """Main data directory."""
        return self.root / "data"

    @property
    def reports_dir(self) -> Path:
        """Exported report tables."""
        return self.data_dir / "reports"

    # --- Files ---

    @property
    def trades_file(self) -> Path:
        return self.data_dir / f"trades.{self.snapshot_format}"

    @property
    def transactions_file(self) -> Path:
        return self.data_dir / f"transactions.{self.snapshot_format}"

    # --- Helper Methods ---

    def validate(self) -> list[str]:
        """Check which required paths are missing.

        Returns:
            List of missing paths (empty if all exist)
        """
        missing = []
        if not self.data_dir.exists():
            missing.append(str(self.data_dir))
        if not self.trades_file.exists():
            missing.append(str(self.trades_file))
        if not self.transactions_file.exists():
            missing.append(str(self.transactions_file))
        return missing

    def ensure_dirs(self) -> None:
        """Create all required directories."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.reports_dir.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for the analytics engine.

    Attributes:
        risk_free_rate: Annual risk-free rate for Sharpe / Sortino
        trading_days_per_year: Annualization factor
        close_tolerance: Residual open size treated as flat
        parallel_workers: Threads for per-trade FIFO (1 = sequential)
        parallel_threshold: Minimum trade count before fanning out
        decimal: Precision policy for all decimal arithmetic
    """

    risk_free_rate: float = 0.05
    trading_days_per_year: int = 252
    close_tolerance: Decimal = Decimal("0.00000001")
    parallel_workers: int = 1
    parallel_threshold: int = 500
    decimal: DecimalConfig = field(default_factory=DecimalConfig)

    def __post_init__(self) -> None:
        if self.trading_days_per_year <= 0:
            raise ValueError(
                f"trading_days_per_year must be positive, got: {self.trading_days_per_year}"
            )
        if self.parallel_workers < 1:
            raise ValueError(
                f"parallel_workers must be at least 1, got: {self.parallel_workers}"
            )
        if self.close_tolerance < 0:
            raise ValueError(
                f"close_tolerance must be non-negative, got: {self.close_tolerance}"
            )


# Default instances
DEFAULT_PATHS = DataPaths()
DEFAULT_CONFIG = AnalysisConfig()
