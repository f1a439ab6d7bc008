"""
Data models for analytics.
"""
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, model_validator


class Period(str, Enum):
    """Chart granularity."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class LogSource(str, Enum):
    """Analytics logs in the realtime database."""
    FEEDING = "feeding"
    WATER = "water"


class EventRecord(BaseModel):
    """A cleaned, immutable log record."""
    model_config = ConfigDict(frozen=True)

    timestamp: int
    value: float
    key: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PeriodWindow(BaseModel):
    """Inclusive range of epoch seconds."""
    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    @model_validator(mode="after")
    def check_order(self):
        if self.start > self.end:
            raise ValueError(f"window start {self.start} is after end {self.end}")
        return self

    def contains(self, timestamp: float) -> bool:
        return self.start <= timestamp <= self.end


class BucketPoint(BaseModel):
    """One chart slot; comparison is None when there is nothing to compare."""
    label: str
    current: float = 0
    comparison: Optional[float] = None


class AnalyticsSummary(BaseModel):
    """All-time figures over the cleaned records."""
    total: float
    average_per_day: float
    days_covered: int
    peak_hour: Optional[str] = None


class AnalyticsResult(BaseModel):
    """Display-ready series for a period."""
    period: Period
    compare: bool = False
    has_data: bool = True
    current_window: Optional[PeriodWindow] = None
    comparison_window: Optional[PeriodWindow] = None
    points: List[BucketPoint] = Field(default_factory=list)
    summary: Optional[AnalyticsSummary] = None
    generated_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def no_data(cls, period: Period, compare: bool = False) -> "AnalyticsResult":
        """Result for an empty or fully invalid record set."""
        return cls(period=period, compare=compare, has_data=False)


class HistoryPoint(BaseModel):
    """Temperature and humidity at one instant."""
    timestamp: int
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    key: Optional[str] = None


class HistoryPage(BaseModel):
    """One page of the historical chart."""
    period: Period
    has_data: bool = True
    message: Optional[str] = None
    page: int = 0
    total_pages: int = 1
    points_per_page: int = 24
    used_fallback: bool = False
    points: List[HistoryPoint] = Field(default_factory=list)
