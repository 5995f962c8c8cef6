"""Application Services for Journal Analytics.

Available services:
- compute_analytics: Portfolio analytics over trade records
- AnalyticsReportService: Analytics over a snapshot, exported as tables
"""

from journal_analytics.application.services.analytics import (
    AnalyticsData,
    AnalyticsFilters,
    compute_analytics,
    compute_pnls,
    filter_trades,
)
from journal_analytics.application.services.report import (
    AnalyticsReportService,
    ReportConfig,
)

__all__ = [
    "AnalyticsData",
    "AnalyticsFilters",
    "compute_analytics",
    "compute_pnls",
    "filter_trades",
    "AnalyticsReportService",
    "ReportConfig",
]
