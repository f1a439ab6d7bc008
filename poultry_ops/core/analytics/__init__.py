from .models import (
    Period,
    LogSource,
    EventRecord,
    PeriodWindow,
    BucketPoint,
    AnalyticsSummary,
    AnalyticsResult,
    HistoryPoint,
    HistoryPage
)
from .aggregator import aggregate_events, clean_events, compute_windows
from .history import HistoryService, build_history_page
from .service import AnalyticsService

__all__ = [
    "Period",
    "LogSource",
    "EventRecord",
    "PeriodWindow",
    "BucketPoint",
    "AnalyticsSummary",
    "AnalyticsResult",
    "HistoryPoint",
    "HistoryPage",
    "aggregate_events",
    "clean_events",
    "compute_windows",
    "HistoryService",
    "build_history_page",
    "AnalyticsService"
]
