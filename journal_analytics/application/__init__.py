"""Application Layer: Use cases and service orchestration.

This layer contains:
- services/: Business logic orchestration
  - analytics.py: Portfolio aggregation over FIFO results
  - report.py: Snapshot loading and table export
"""

from journal_analytics.application.services import (
    AnalyticsData,
    AnalyticsFilters,
    AnalyticsReportService,
    ReportConfig,
    compute_analytics,
)

__all__ = [
    "AnalyticsData",
    "AnalyticsFilters",
    "AnalyticsReportService",
    "ReportConfig",
    "compute_analytics",
]
